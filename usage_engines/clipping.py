"""
WindowClipper -- how much of a record counts toward a reporting window.

Pure functions with deterministic behavior. No I/O, no clock reads.

This is the single routine that decides "how much of this record counts
here".  Cost lines, group totals, daily points and utilization all route
through clip_record.

Algorithm:
    raw_end = stored end time, if parseable               (estimated=False)
    else excluded unless include_in_progress and the stored status is
        in-progress or overdue, in which case
        raw_end = min(now, range_end)                     (estimated=True)
    clipped_start = max(start, range_start)
    clipped_end   = min(raw_end, range_end)
    excluded when clipped_end <= clipped_start

Estimation never projects past ``now`` or past the window.

Failure modes:
    - Unparsable start: excluded (DEBUG log).
    - Completed record without an end time: excluded and logged at
      WARNING for investigation; the missing end is never inferred.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from usage_kernel.domain.values import (
    ESTIMABLE_STATUSES,
    OccupancyRecord,
    ReportWindow,
    UsageStatus,
    parse_instant,
    require_instant,
)
from usage_kernel.logging_config import get_logger

logger = get_logger("engines.clipping")


@dataclass(frozen=True)
class ClippedInterval:
    """A record's interval restricted to a reporting window."""

    start: datetime
    end: datetime
    estimated: bool = False

    @property
    def duration(self) -> timedelta:
        return self.end - self.start


def clip_interval(
    start: datetime | None,
    end: datetime | None,
    window: ReportWindow,
) -> ClippedInterval | None:
    """
    Restrict [start, end) to the window.

    Returns None when either bound is missing or the overlap is empty.
    Clipping an already-clipped interval to the same window is a no-op.
    """
    start = parse_instant(start)
    end = parse_instant(end)
    if start is None or end is None:
        return None
    clipped_start = max(start, window.range_start)
    clipped_end = min(end, window.range_end)
    if clipped_end <= clipped_start:
        return None
    return ClippedInterval(start=clipped_start, end=clipped_end)


def clip_record(
    record: OccupancyRecord,
    window: ReportWindow,
    include_in_progress: bool,
    now: datetime,
) -> ClippedInterval | None:
    """
    Clip one record to the window, estimating open records up to ``now``.

    Args:
        record: The occupancy record.
        window: Reporting window [range_start, range_end).
        include_in_progress: Whether open records may be estimated.
        now: Evaluation instant captured once by the caller.

    Returns:
        ClippedInterval, or None if the record contributes nothing.
    """
    now = require_instant(now)

    if record.start is None:
        logger.debug("record_excluded", extra={
            "record_id": record.record_id,
            "reason": "unparsable_start",
        })
        return None

    estimated = False
    raw_end = record.end
    if raw_end is None:
        if record.status == UsageStatus.COMPLETED:
            logger.warning("completed_record_without_end", extra={
                "record_id": record.record_id,
                "asset_id": record.asset_id,
            })
            return None
        if not include_in_progress or record.status not in ESTIMABLE_STATUSES:
            logger.debug("record_excluded", extra={
                "record_id": record.record_id,
                "reason": "open_not_estimated",
                "stored_status": record.status.value,
            })
            return None
        raw_end = min(now, window.range_end)
        estimated = True

    clipped = clip_interval(record.start, raw_end, window)
    if clipped is None:
        logger.debug("record_excluded", extra={
            "record_id": record.record_id,
            "reason": "outside_window",
        })
        return None
    if estimated:
        return ClippedInterval(start=clipped.start, end=clipped.end, estimated=True)
    return clipped
