"""
Module: usage_kernel.selectors.usage_selector
Responsibility: Read-only loading of usage logs and their lookup tables into
    the immutable domain objects consumed by usage_engines.
Architecture position: Kernel > Selectors.  May import from models/,
    domain/values.py and selectors/base.py.

Invariants enforced:
    - Returned records, assets and lookups are frozen domain objects; no ORM
      instance escapes this module.
    - Window pruning only drops records that cannot overlap the window
      (parsed start at or after range_end), so it never changes a report.

Failure modes:
    - Bad rows never raise.  A record status outside the four lifecycle
      states loads as not-started and an unknown asset status loads as
      None, both logged at WARNING.
"""

from dataclasses import dataclass, field

from sqlalchemy import select

from usage_kernel.domain.values import (
    Asset,
    AssetStatus,
    OccupancyRecord,
    Project,
    ReportWindow,
    TestProject,
    UsageStatus,
)
from usage_kernel.logging_config import get_logger
from usage_kernel.models.asset import AssetCategoryRateModel, AssetModel
from usage_kernel.models.project import ProjectModel, TestProjectModel
from usage_kernel.models.usage_log import UsageLogModel
from usage_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.usage")


@dataclass(frozen=True)
class ReportInputs:
    """Everything a cost report or dashboard needs, already materialized."""

    records: tuple[OccupancyRecord, ...]
    assets: dict[str, Asset] = field(default_factory=dict)
    category_rates: dict[str, int] = field(default_factory=dict)
    projects: dict[str, Project] = field(default_factory=dict)
    test_projects: dict[str, TestProject] = field(default_factory=dict)


def _record_status(row: UsageLogModel) -> UsageStatus:
    try:
        return UsageStatus(row.status)
    except ValueError:
        # Unknown stored statuses compare unequal to every lifecycle state.
        logger.warning("record_status_unknown", extra={
            "record_id": row.id,
            "stored_status": row.status,
        })
        return UsageStatus.NOT_STARTED


def _asset_status(row: AssetModel) -> AssetStatus | None:
    if row.status is None:
        return None
    try:
        return AssetStatus(row.status)
    except ValueError:
        logger.warning("asset_status_unknown", extra={
            "asset_id": row.id,
            "stored_status": row.status,
        })
        return None


def _to_record(row: UsageLogModel) -> OccupancyRecord:
    return OccupancyRecord(
        record_id=row.id,
        asset_id=row.asset_id,
        start_time=row.start_time,
        status=_record_status(row),
        end_time=row.end_time,
        project_id=row.project_id,
        test_project_id=row.test_project_id,
        user=row.user,
        notes=row.notes,
        snapshot_rate_cents=row.hourly_rate_cents_snapshot,
        snapshot_billable_hours=row.billable_hours_snapshot,
        snapshot_cost_cents=row.cost_cents_snapshot,
        snapshot_at=row.snapshot_at,
        snapshot_source=row.snapshot_source,
    )


def _to_asset(row: AssetModel) -> Asset:
    return Asset(
        asset_id=row.id,
        name=row.name,
        category=row.category,
        hourly_rate_cents=row.hourly_rate_cents,
        status=_asset_status(row),
    )


class UsageSelector(BaseSelector[UsageLogModel]):
    """Read-only queries over usage logs, assets and projects."""

    def get_record(self, record_id: str) -> OccupancyRecord | None:
        row = self.session.get(UsageLogModel, record_id)
        return _to_record(row) if row is not None else None

    def list_records(
        self,
        asset_ids: list[str] | None = None,
        window: ReportWindow | None = None,
    ) -> list[OccupancyRecord]:
        """
        Load usage logs ordered by start time.

        Args:
            asset_ids: Restrict to these assets (None = all).
            window: If given, drop records whose start is at or after
                the window end.
        """
        stmt = select(UsageLogModel).order_by(
            UsageLogModel.start_time, UsageLogModel.id
        )
        if asset_ids is not None:
            stmt = stmt.where(UsageLogModel.asset_id.in_(asset_ids))
        records = [_to_record(row) for row in self._rows(stmt)]
        if window is not None:
            before = len(records)
            records = [
                r for r in records
                if r.start is None or r.start < window.range_end
            ]
            logger.debug("records_pruned", extra={
                "loaded": before,
                "kept": len(records),
            })
        return records

    def list_completed_records(self) -> list[OccupancyRecord]:
        """Completed usage logs with a stored end time, oldest start first."""
        stmt = (
            select(UsageLogModel)
            .where(
                UsageLogModel.status == UsageStatus.COMPLETED.value,
                UsageLogModel.end_time.is_not(None),
            )
            .order_by(UsageLogModel.start_time, UsageLogModel.id)
        )
        return [_to_record(row) for row in self._rows(stmt)]

    def get_asset(self, asset_id: str) -> Asset | None:
        row = self.session.get(AssetModel, asset_id)
        return _to_asset(row) if row is not None else None

    def assets(self) -> dict[str, Asset]:
        rows = self._rows(select(AssetModel).order_by(AssetModel.id))
        return {row.id: _to_asset(row) for row in rows}

    def category_rates(self) -> dict[str, int]:
        rows = self._rows(select(AssetCategoryRateModel))
        return {row.category: row.hourly_rate_cents for row in rows}

    def projects(self) -> dict[str, Project]:
        rows = self._rows(select(ProjectModel))
        return {row.id: Project(project_id=row.id, name=row.name) for row in rows}

    def test_projects(self) -> dict[str, TestProject]:
        rows = self._rows(select(TestProjectModel))
        return {
            row.id: TestProject(test_project_id=row.id, name=row.name)
            for row in rows
        }

    def load_report_inputs(
        self,
        window: ReportWindow | None = None,
    ) -> ReportInputs:
        """Load records and every lookup table in one read."""
        inputs = ReportInputs(
            records=tuple(self.list_records(window=window)),
            assets=self.assets(),
            category_rates=self.category_rates(),
            projects=self.projects(),
            test_projects=self.test_projects(),
        )
        logger.debug("report_inputs_loaded", extra={
            "record_count": len(inputs.records),
            "asset_count": len(inputs.assets),
            "category_rate_count": len(inputs.category_rates),
            "project_count": len(inputs.projects),
        })
        return inputs
