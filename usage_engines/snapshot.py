"""
Cost snapshot engine -- rate, hours and cost cached on a record.

Pure functions with deterministic behavior. No I/O, no clock reads.

A snapshot is the only persisted derivative of an occupancy record.  It is
written once at completion, on an explicit recompute, or by the backfill
job, and later changes to category or asset rates never alter it.

Invariants enforced:
    - A new snapshot's rate always comes from the category / asset tiers,
      never from the snapshot it replaces.
    - Idempotence: recomputing with identical inputs yields the identical
      snapshot (same amounts, same captured_at) and reports updated=False.
    - Backfill only touches completed records with a stored end time and at
      least one missing amount, oldest start first, at most ``max_limit``
      per batch.

Failure modes:
    - Unparsable start or end: no snapshot (None), never an exception.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from usage_engines.billing import billable_hours, normalize_rate_cents
from usage_engines.rates import fallback_rate
from usage_engines.tracer import traced_engine
from usage_kernel.domain.values import (
    Asset,
    CostSnapshot,
    OccupancyRecord,
    SnapshotSource,
    UsageStatus,
    parse_instant,
    require_instant,
)
from usage_kernel.logging_config import get_logger

logger = get_logger("engines.snapshot")

DEFAULT_BACKFILL_LIMIT = 2000
MAX_BACKFILL_LIMIT = 5000


@dataclass(frozen=True)
class RecomputeResult:
    """Outcome of a single-record recompute, consumed by the audit writer."""

    record_id: str
    updated: bool
    previous_snapshot: CostSnapshot | None
    next_snapshot: CostSnapshot | None


@dataclass(frozen=True)
class BackfillPlan:
    """Snapshots to write for one backfill batch."""

    scanned: int
    writes: tuple[tuple[str, CostSnapshot], ...] = ()

    @property
    def updated(self) -> int:
        return len(self.writes)


def compute_cost_snapshot(
    start: Any,
    end: Any,
    rate_cents: Any,
    captured_at: datetime | None = None,
    source: SnapshotSource | None = None,
) -> CostSnapshot | None:
    """
    Snapshot for a closed interval.

    Returns:
        None if either instant is unparsable; zero hours and cost when the
        duration is not positive; otherwise ceil hours x normalized rate.
    """
    start_at = parse_instant(start)
    end_at = parse_instant(end)
    if start_at is None or end_at is None:
        return None

    rate = normalize_rate_cents(rate_cents)
    hours = billable_hours(end_at - start_at)
    return CostSnapshot(
        rate_cents=rate,
        billable_hours=hours,
        cost_cents=hours * rate,
        captured_at=captured_at,
        source=source,
    )


def recompute_snapshot(
    record: OccupancyRecord,
    asset: Asset | None,
    category_rates: Mapping[str, Any],
    now: datetime,
    source: SnapshotSource = SnapshotSource.RECOMPUTE,
) -> RecomputeResult:
    """
    Recompute a record's snapshot from the current category / asset rates.

    Args:
        record: The record to snapshot.
        asset: The record's asset, or None (bills at 0).
        category_rates: Sparse category key -> rate cents table.
        now: Capture instant for a changed snapshot.
        source: Tag written on a changed snapshot.

    Returns:
        RecomputeResult.  When the amounts are unchanged the previous
        snapshot is returned as the next one and updated is False.
    """
    now = require_instant(now)
    previous = record.snapshot
    rate = fallback_rate(asset, category_rates)
    candidate = compute_cost_snapshot(
        record.start_time,
        record.end_time,
        rate.hourly_rate_cents,
        captured_at=now,
        source=source,
    )

    if candidate is None:
        logger.warning("snapshot_not_computable", extra={
            "record_id": record.record_id,
            "has_start": record.start is not None,
            "has_end": record.end is not None,
        })
        return RecomputeResult(
            record_id=record.record_id,
            updated=False,
            previous_snapshot=previous,
            next_snapshot=None,
        )

    if candidate.same_amounts(previous):
        logger.debug("snapshot_unchanged", extra={"record_id": record.record_id})
        return RecomputeResult(
            record_id=record.record_id,
            updated=False,
            previous_snapshot=previous,
            next_snapshot=previous,
        )

    logger.info("snapshot_recomputed", extra={
        "record_id": record.record_id,
        "rate_source": rate.source.value,
        "rate_cents": candidate.rate_cents,
        "billable_hours": candidate.billable_hours,
        "cost_cents": candidate.cost_cents,
        "previous_cost_cents": previous.cost_cents if previous else None,
    })
    return RecomputeResult(
        record_id=record.record_id,
        updated=True,
        previous_snapshot=previous,
        next_snapshot=candidate,
    )


def normalize_backfill_limit(
    limit: Any,
    default: int = DEFAULT_BACKFILL_LIMIT,
    maximum: int = MAX_BACKFILL_LIMIT,
) -> int:
    """Non-numeric or non-positive limits use the default; others clamp to maximum."""
    if isinstance(limit, bool) or not isinstance(limit, (int, float)):
        return default
    if isinstance(limit, float) and not math.isfinite(limit):
        return default
    value = math.floor(limit)
    if value <= 0:
        return default
    return min(maximum, value)


def needs_backfill(record: OccupancyRecord) -> bool:
    """Completed, with a stored end time, and missing any snapshot amount."""
    return (
        record.status == UsageStatus.COMPLETED
        and record.end_time is not None
        and (
            record.snapshot_rate_cents is None
            or record.snapshot_billable_hours is None
            or record.snapshot_cost_cents is None
        )
    )


@traced_engine("snapshot_backfill", "1.0", fingerprint_fields=("now", "limit"))
def plan_snapshot_backfill(
    records: Sequence[OccupancyRecord],
    assets: Mapping[str, Asset],
    category_rates: Mapping[str, Any],
    now: datetime,
    limit: Any = None,
    default_limit: int = DEFAULT_BACKFILL_LIMIT,
    max_limit: int = MAX_BACKFILL_LIMIT,
) -> BackfillPlan:
    """
    Select records missing a snapshot and compute one for each.

    Records whose interval cannot be parsed are scanned but not written.
    """
    now = require_instant(now)
    batch_size = normalize_backfill_limit(limit, default_limit, max_limit)

    candidates = [r for r in records if needs_backfill(r)]
    candidates.sort(key=lambda r: (
        r.start is None,
        r.start or now,
        r.record_id,
    ))
    batch = candidates[:batch_size]

    writes: list[tuple[str, CostSnapshot]] = []
    for record in batch:
        rate = fallback_rate(assets.get(record.asset_id), category_rates)
        snapshot = compute_cost_snapshot(
            record.start_time,
            record.end_time,
            rate.hourly_rate_cents,
            captured_at=now,
            source=SnapshotSource.BACKFILL,
        )
        if snapshot is None:
            logger.warning("backfill_record_skipped", extra={
                "record_id": record.record_id,
            })
            continue
        writes.append((record.record_id, snapshot))

    plan = BackfillPlan(scanned=len(batch), writes=tuple(writes))
    logger.info("snapshot_backfill_planned", extra={
        "candidate_count": len(candidates),
        "scanned": plan.scanned,
        "updated": plan.updated,
        "batch_size": batch_size,
    })
    return plan
