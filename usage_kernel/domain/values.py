"""
Domain value objects for the usage accounting engine.

Responsibility:
    Immutable, I/O-free representations of occupancy records, assets,
    lookups, cost snapshots and reporting windows, plus the tagged
    enumerations (status, rate source, group-by dimension) every engine
    switches on.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by usage_engines, usage_services and the selectors.

Invariants enforced:
    - OccupancyRecord.status is always a UsageStatus member; construction
      with an unknown stored status raises InvalidRecordStatusError.
    - Timestamps are parsed once at construction.  Unparsable values are
      kept verbatim on the raw field and surface as ``None`` on the parsed
      field, never as an exception.
    - Stored snapshot amounts read back half-up rounded, the way billing
      charges them; a non-numeric amount means no snapshot.
    - ReportWindow bounds are always timezone-aware UTC instants.

Failure modes:
    - InvalidRecordStatusError on an out-of-domain stored status.
    - InvalidReportWindowError when a window bound cannot be parsed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from usage_kernel.exceptions import (
    InvalidRecordStatusError,
    InvalidReportWindowError,
)

_ONE = Decimal("1")

# ============================================================================
# Enumerations
# ============================================================================


class UsageStatus(str, Enum):
    """Lifecycle status of an occupancy record."""

    NOT_STARTED = "not-started"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class RateSource(str, Enum):
    """Which rate tier priced a cost line."""

    SNAPSHOT = "snapshot"
    CATEGORY = "category"
    ASSET = "asset"


class SnapshotSource(str, Enum):
    """Why a cost snapshot was written."""

    COMPLETION = "completion"
    RECOMPUTE = "recompute"
    BACKFILL = "backfill"


class GroupBy(str, Enum):
    """Aggregation dimension for cost reports."""

    ASSET = "asset"
    PROJECT = "project"
    USER = "user"
    CATEGORY = "category"


class AssetStatus(str, Enum):
    """Occupancy status of an asset."""

    AVAILABLE = "available"
    IN_USE = "in-use"
    MAINTENANCE = "maintenance"


# Stored statuses that allow an open record to be estimated up to "now".
ESTIMABLE_STATUSES = frozenset({UsageStatus.IN_PROGRESS, UsageStatus.OVERDUE})


# ============================================================================
# Instant parsing
# ============================================================================


def parse_instant(value: Any) -> datetime | None:
    """
    Parse a timestamp into an aware UTC datetime.

    Accepts ``datetime`` (naive values are taken as UTC), ISO-8601 strings
    (a trailing ``Z`` is accepted) and epoch milliseconds as int/float.
    Anything else, including blank strings, booleans and non-finite
    numbers, returns None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)
    if isinstance(value, (int, float, Decimal)):
        try:
            ms = float(value)
        except (OverflowError, ValueError):
            return None
        if not math.isfinite(ms):
            return None
        try:
            return datetime.fromtimestamp(ms / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        return parse_instant(parsed)
    return None


def require_instant(value: Any, name: str = "now") -> datetime:
    """Parse a caller-supplied parameter instant, raising if it is invalid."""
    parsed = parse_instant(value)
    if parsed is None:
        raise InvalidReportWindowError(name, value)
    return parsed


def utc_day(instant: datetime) -> date:
    """UTC calendar day of an instant."""
    return instant.astimezone(UTC).date()


def is_blank(value: str | None) -> bool:
    return value is None or not str(value).strip()


def is_finite_number(value: Any) -> bool:
    """True for finite int, float or Decimal values (bool excluded)."""
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, float):
        return math.isfinite(value)
    if isinstance(value, Decimal):
        return value.is_finite()
    return False


def whole_cents(value: Any) -> int:
    """Round half-up to an integer, clamping at 0.  Non-numbers give 0."""
    if not is_finite_number(value):
        return 0
    dec = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    try:
        rounded = int(dec.quantize(_ONE, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return 0
    return max(0, rounded)


# ============================================================================
# Lookups
# ============================================================================


@dataclass(frozen=True)
class Asset:
    """
    A billable piece of equipment.

    ``category`` distinguishes absent (None) from blank (""); both resolve
    to the uncategorized category-rate key ``""``.
    """

    asset_id: str
    name: str | None = None
    category: str | None = None
    hourly_rate_cents: Any = 0
    status: AssetStatus | None = None

    def __post_init__(self) -> None:
        if self.status is not None and not isinstance(self.status, AssetStatus):
            object.__setattr__(self, "status", AssetStatus(self.status))

    @property
    def category_key(self) -> str:
        """Category-rate lookup key (blank categories share the key "")."""
        return "" if is_blank(self.category) else str(self.category)


@dataclass(frozen=True)
class Project:
    project_id: str
    name: str | None = None


@dataclass(frozen=True)
class TestProject:
    test_project_id: str
    name: str | None = None

    # Keeps pytest from collecting this class from test modules that import it.
    __test__ = False


# ============================================================================
# Snapshot
# ============================================================================


@dataclass(frozen=True)
class CostSnapshot:
    """
    Rate, hours and cost captured on a record at completion or recompute.

    The only persisted derivative of an occupancy record; later changes to
    category or asset rates never alter it.
    """

    rate_cents: int
    billable_hours: int
    cost_cents: int
    captured_at: datetime | None = None
    source: SnapshotSource | None = None

    def same_amounts(self, other: CostSnapshot | None) -> bool:
        """True if ``other`` carries identical rate, hours and cost."""
        if other is None:
            return False
        return (
            self.rate_cents == other.rate_cents
            and self.billable_hours == other.billable_hours
            and self.cost_cents == other.cost_cents
        )


# ============================================================================
# Occupancy record
# ============================================================================


@dataclass(frozen=True)
class OccupancyRecord:
    """
    A timed record that an asset was in use, possibly still open-ended.

    The stored status is authoritative only when ``completed``; otherwise
    it is a hint that may be stale relative to the evaluation instant.
    """

    record_id: str
    asset_id: str
    start_time: Any
    status: UsageStatus
    end_time: Any = None
    project_id: str | None = None
    test_project_id: str | None = None
    user: str | None = None
    notes: str | None = None
    snapshot_rate_cents: Any = None
    snapshot_billable_hours: int | None = None
    snapshot_cost_cents: int | None = None
    snapshot_at: Any = None
    snapshot_source: str | None = None

    start: datetime | None = field(init=False, repr=False, compare=False)
    end: datetime | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.status, UsageStatus):
            try:
                object.__setattr__(self, "status", UsageStatus(self.status))
            except ValueError:
                raise InvalidRecordStatusError(self.record_id, self.status) from None
        object.__setattr__(self, "start", parse_instant(self.start_time))
        object.__setattr__(self, "end", parse_instant(self.end_time))

    @property
    def snapshot(self) -> CostSnapshot | None:
        """
        Stored snapshot, or None unless rate, hours and cost are all finite
        numbers.  Amounts are read back the way billing rounds them.
        """
        amounts = (
            self.snapshot_rate_cents,
            self.snapshot_billable_hours,
            self.snapshot_cost_cents,
        )
        if not all(is_finite_number(amount) for amount in amounts):
            return None
        source = None
        if self.snapshot_source:
            try:
                source = SnapshotSource(self.snapshot_source)
            except ValueError:
                source = None
        return CostSnapshot(
            rate_cents=whole_cents(self.snapshot_rate_cents),
            billable_hours=whole_cents(self.snapshot_billable_hours),
            cost_cents=whole_cents(self.snapshot_cost_cents),
            captured_at=parse_instant(self.snapshot_at),
            source=source,
        )

    @property
    def has_complete_snapshot(self) -> bool:
        return (
            self.snapshot_rate_cents is not None
            and self.snapshot_billable_hours is not None
            and self.snapshot_cost_cents is not None
            and self.snapshot_at is not None
            and self.snapshot_source is not None
        )


# ============================================================================
# Report parameters
# ============================================================================


@dataclass(frozen=True)
class ReportWindow:
    """Half-open reporting window [range_start, range_end)."""

    range_start: datetime
    range_end: datetime

    def __post_init__(self) -> None:
        start = parse_instant(self.range_start)
        if start is None:
            raise InvalidReportWindowError("range_start", self.range_start)
        end = parse_instant(self.range_end)
        if end is None:
            raise InvalidReportWindowError("range_end", self.range_end)
        object.__setattr__(self, "range_start", start)
        object.__setattr__(self, "range_end", end)

    @property
    def duration(self):
        """Window length as a timedelta (may be non-positive)."""
        return self.range_end - self.range_start


@dataclass(frozen=True)
class ReportLabels:
    """Caller-supplied placeholder labels (typically localized)."""

    unlinked: str = "Unlinked"
    uncategorized: str = "Uncategorized"
    user_placeholder: str = "-"
