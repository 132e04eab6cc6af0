"""
StatusResolver -- effective lifecycle status of an occupancy record.

Pure functions with deterministic behavior. No I/O, no clock reads: the
evaluation instant is always passed in.

Rules, in priority order:
    1. stored completed            -> completed (terminal, even with a
                                      future end time)
    2. end valid and end < now     -> overdue
    3. start valid, start <= now and (end absent or end > now)
                                   -> in-progress
    4. otherwise                   -> stored status unchanged

A record flips between in-progress, overdue and not-started purely as
``now`` advances, without any write.

Usage:
    from usage_engines.status import resolve_status, is_occupying

    status = resolve_status(record, now)
    busy = is_occupying(record, now)
"""

from __future__ import annotations

from datetime import datetime

from usage_kernel.domain.values import OccupancyRecord, UsageStatus, require_instant
from usage_kernel.logging_config import get_logger

logger = get_logger("engines.status")


def resolve_status(record: OccupancyRecord, now: datetime) -> UsageStatus:
    """
    Derive the status a record has at ``now``.

    Args:
        record: The occupancy record.
        now: Evaluation instant supplied by the caller.

    Returns:
        The effective UsageStatus.
    """
    now = require_instant(now)
    if record.status == UsageStatus.COMPLETED:
        return UsageStatus.COMPLETED

    start, end = record.start, record.end
    if end is not None and end < now:
        return UsageStatus.OVERDUE
    if start is not None and start <= now and (end is None or end > now):
        return UsageStatus.IN_PROGRESS
    return record.status


def is_occupying(record: OccupancyRecord, now: datetime) -> bool:
    """
    True iff the record ties up its asset at ``now``.

    Independent of the display status: a record still tagged not-started
    whose start has passed is occupying.
    """
    now = require_instant(now)
    if record.status == UsageStatus.COMPLETED:
        return False
    start, end = record.start, record.end
    if start is None or start > now:
        return False
    return end is None or end > now


def resolve_statuses(
    records: list[OccupancyRecord],
    now: datetime,
) -> dict[str, UsageStatus]:
    """Effective status keyed by record id, all evaluated at one instant."""
    result = {r.record_id: resolve_status(r, now) for r in records}
    logger.debug("statuses_resolved", extra={
        "record_count": len(records),
        "now": now,
    })
    return result
