"""
Clocks for the usage services.

Engines take ``now`` as a parameter.  Services own a Clock and read it
once per operation; that reading becomes the ``now`` of every engine call
made for the operation.

    SystemClock         wall clock, UTC
    DeterministicClock  fixed instant that tests move explicitly
    SequentialClock     scripted instants; counts reads
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

DEFAULT_TEST_INSTANT = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class Clock(ABC):
    """Source of the evaluation instant."""

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware."""

    def now_utc(self) -> datetime:
        return self.now().astimezone(UTC)


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Repeated reads return the same instant until ``advance()``, ``tick()``
    or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None) -> None:
        self._current = fixed_time or DEFAULT_TEST_INSTANT

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: float = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        self.advance(1)
        return self._current


class SequentialClock(Clock):
    """
    Clock that replays a list of instants, then repeats the last one.

    ``calls`` counts reads, so a test can assert that an operation sampled
    the clock exactly once.

    Raises:
        ValueError: If constructed with no instants.
    """

    def __init__(self, times: Iterable[datetime]) -> None:
        self._times = list(times)
        if not self._times:
            raise ValueError("SequentialClock requires at least one time")
        self.calls = 0

    def now(self) -> datetime:
        index = min(self.calls, len(self._times) - 1)
        self.calls += 1
        return self._times[index]
