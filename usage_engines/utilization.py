"""
UtilizationEngine -- non-double-counted occupied time for dashboard KPIs.

Pure functions with deterministic behavior. No I/O, no clock reads.

For each asset, every record's window-clipped interval (via clip_record,
with open in-progress/overdue records estimated up to ``now``) is merged
into a non-overlapping set: sort by start, extend the current span while
next.start <= current.end, else start a new span.  Two overlapping records
on the same asset never double-count.

    ratio = sum(merged occupied time) / (asset count x window duration)

capped at 1 and 0 when capacity is zero.

Usage:
    from usage_engines.utilization import compute_utilization

    result = compute_utilization(records, asset_ids, window, now)
    result.ratio, result.occupied, result.capacity
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal

from usage_engines.clipping import clip_record
from usage_engines.status import resolve_status
from usage_engines.tracer import traced_engine
from usage_kernel.domain.values import (
    OccupancyRecord,
    ReportWindow,
    UsageStatus,
    require_instant,
)
from usage_kernel.logging_config import get_logger

logger = get_logger("engines.utilization")

Interval = tuple[datetime, datetime]

_ZERO = timedelta(0)
_ONE = Decimal("1")


@dataclass(frozen=True)
class AssetUtilization:
    """Occupied time and ratio for one asset."""

    asset_id: str
    occupied: timedelta
    ratio: Decimal


@dataclass(frozen=True)
class UtilizationResult:
    """Fleet utilization over one window."""

    occupied: timedelta
    capacity: timedelta
    ratio: Decimal
    asset_count: int
    overdue_active_count: int = 0
    per_asset: tuple[AssetUtilization, ...] = field(default=(), repr=False)

    def busiest(self, limit: int = 6) -> list[AssetUtilization]:
        return busiest_assets(self.per_asset, limit)


def merge_intervals(intervals: Iterable[Interval]) -> list[Interval]:
    """
    Merge overlapping or touching intervals.

    Returns:
        Non-overlapping intervals sorted by start.
    """
    ordered = sorted(intervals, key=lambda iv: iv[0])
    merged: list[list[datetime]] = []
    for start, end in ordered:
        if merged and start <= merged[-1][1]:
            if end > merged[-1][1]:
                merged[-1][1] = end
            continue
        merged.append([start, end])
    return [(start, end) for start, end in merged]


def occupied_duration(intervals: Iterable[Interval]) -> timedelta:
    """Total time covered by the intervals, counting overlaps once."""
    return sum(
        (end - start for start, end in merge_intervals(intervals)),
        _ZERO,
    )


def utilization_ratio(occupied: timedelta, capacity: timedelta) -> Decimal:
    """occupied / capacity, capped at 1; 0 when capacity is not positive."""
    if capacity <= _ZERO:
        return Decimal(0)
    micros = Decimal(occupied // timedelta(microseconds=1))
    capacity_micros = Decimal(capacity // timedelta(microseconds=1))
    ratio = micros / capacity_micros
    if ratio < 0:
        return Decimal(0)
    return min(_ONE, ratio)


def busiest_assets(
    per_asset: Sequence[AssetUtilization],
    limit: int = 6,
) -> list[AssetUtilization]:
    """Top ``limit`` assets by ratio (asset id breaks ties)."""
    ranked = sorted(per_asset, key=lambda a: (-a.ratio, a.asset_id))
    return ranked[: max(0, limit)]


@traced_engine("utilization", "1.0", fingerprint_fields=("asset_ids", "window", "now"))
def compute_utilization(
    records: Sequence[OccupancyRecord],
    asset_ids: Sequence[str],
    window: ReportWindow,
    now: datetime,
) -> UtilizationResult:
    """
    Merged-interval utilization for a set of assets.

    Args:
        records: Occupancy records; records for other assets are ignored.
        asset_ids: Assets that make up the capacity.
        window: Reporting window.
        now: Evaluation instant captured once by the caller.

    Returns:
        UtilizationResult with fleet and per-asset figures and the number
        of overdue records overlapping the window.
    """
    t0 = time.monotonic()
    now = require_instant(now)
    ids = list(dict.fromkeys(asset_ids))
    wanted = set(ids)

    intervals: dict[str, list[Interval]] = {asset_id: [] for asset_id in ids}
    overdue_active = 0
    for record in records:
        if record.asset_id not in wanted:
            continue
        clipped = clip_record(record, window, include_in_progress=True, now=now)
        if clipped is None:
            continue
        if resolve_status(record, now) == UsageStatus.OVERDUE:
            overdue_active += 1
        intervals[record.asset_id].append((clipped.start, clipped.end))

    window_span = max(window.duration, _ZERO)
    per_asset: list[AssetUtilization] = []
    total = _ZERO
    for asset_id in ids:
        occupied = occupied_duration(intervals[asset_id])
        total += occupied
        per_asset.append(AssetUtilization(
            asset_id=asset_id,
            occupied=occupied,
            ratio=utilization_ratio(occupied, window_span),
        ))

    capacity = window_span * len(ids)
    result = UtilizationResult(
        occupied=total,
        capacity=capacity,
        ratio=utilization_ratio(total, capacity),
        asset_count=len(ids),
        overdue_active_count=overdue_active,
        per_asset=tuple(per_asset),
    )

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("utilization_computed", extra={
        "asset_count": len(ids),
        "occupied_seconds": total.total_seconds(),
        "capacity_seconds": capacity.total_seconds(),
        "ratio": str(result.ratio),
        "overdue_active_count": overdue_active,
        "duration_ms": duration_ms,
    })
    return result
