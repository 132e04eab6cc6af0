"""
SnapshotService -- writes cost snapshots onto usage logs.

Composes the pure snapshot engine with clock injection, the selector and
the ORM.  The only service that writes the five snapshot columns.

Architecture: usage_services -- imperative shell.
    Flush only; the caller owns commit (``session_scope()``).  Concurrent
    writers on the same record resolve last-write-wins in the database.

Invariants enforced:
    - Idempotent: recomputing with unchanged inputs writes nothing.
    - Backfill batch size follows the active BackfillPolicy.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from usage_config import UsageAccountingConfig, get_active_config
from usage_engines.snapshot import (
    BackfillPlan,
    RecomputeResult,
    plan_snapshot_backfill,
    recompute_snapshot,
)
from usage_kernel.domain.clock import Clock
from usage_kernel.domain.values import CostSnapshot, SnapshotSource
from usage_kernel.exceptions import UsageRecordNotFoundError
from usage_kernel.logging_config import LogContext, get_logger
from usage_kernel.models.usage_log import UsageLogModel
from usage_kernel.services.base import BaseService

logger = get_logger("services.snapshot")


def _write_snapshot(row: UsageLogModel, snapshot: CostSnapshot) -> None:
    row.hourly_rate_cents_snapshot = snapshot.rate_cents
    row.billable_hours_snapshot = snapshot.billable_hours
    row.cost_cents_snapshot = snapshot.cost_cents
    row.snapshot_at = snapshot.captured_at.isoformat() if snapshot.captured_at else None
    row.snapshot_source = snapshot.source.value if snapshot.source else None


class SnapshotService(BaseService[UsageLogModel]):
    """Recompute and backfill cost snapshots.

    Contract:
        - ``recompute()`` refreshes one record's snapshot from current rates.
        - ``capture_on_completion()`` is the same operation tagged
          ``completion``.
        - ``backfill()`` fills missing snapshots on completed records.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: UsageAccountingConfig | None = None,
    ) -> None:
        super().__init__(session, clock)
        self._config = config or get_active_config()

    def recompute(
        self,
        record_id: str,
        source: SnapshotSource = SnapshotSource.RECOMPUTE,
    ) -> RecomputeResult:
        """Recompute one record's snapshot and write it if it changed.

        Raises:
            UsageRecordNotFoundError: No usage log with ``record_id``.
        """
        with LogContext.bind(record_id=record_id):
            row = self.session.get(UsageLogModel, record_id)
            if row is None:
                logger.warning("snapshot_record_not_found")
                raise UsageRecordNotFoundError(record_id)

            record = self.selector.get_record(record_id)
            asset = self.selector.get_asset(record.asset_id)
            result = recompute_snapshot(
                record,
                asset,
                self.selector.category_rates(),
                now=self.clock.now(),
                source=source,
            )
            if result.updated and result.next_snapshot is not None:
                _write_snapshot(row, result.next_snapshot)
                self._flush("snapshot_flushed", snapshot_source=source.value)
                logger.info("snapshot_written", extra={
                    "snapshot_source": source.value,
                    "cost_cents": result.next_snapshot.cost_cents,
                })
        return result

    def capture_on_completion(self, record_id: str) -> RecomputeResult:
        return self.recompute(record_id, source=SnapshotSource.COMPLETION)

    def backfill(self, limit: Any = None) -> BackfillPlan:
        """Fill missing snapshots on completed records, oldest first."""
        policy = self._config.backfill
        plan = plan_snapshot_backfill(
            self.selector.list_completed_records(),
            self.selector.assets(),
            self.selector.category_rates(),
            now=self.clock.now(),
            limit=limit,
            default_limit=policy.default_limit,
            max_limit=policy.max_limit,
        )
        for record_id, snapshot in plan.writes:
            row = self.session.get(UsageLogModel, record_id)
            _write_snapshot(row, snapshot)
        if plan.writes:
            self._flush("snapshot_backfill_flushed", write_count=plan.updated)
        logger.info("snapshot_backfill_completed", extra={
            "scanned": plan.scanned,
            "updated": plan.updated,
        })
        return plan
