"""
DashboardService -- utilization, busiest assets and usage alerts.

Composes the pure utilization, alerts and asset_status engines from one
clock reading.  Read-only.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from usage_config import UsageAccountingConfig, get_active_config
from usage_engines.alerts import UsageAlert, derive_usage_alerts
from usage_engines.asset_status import count_asset_statuses
from usage_engines.utilization import (
    AssetUtilization,
    UtilizationResult,
    compute_utilization,
)
from usage_kernel.domain.clock import Clock, SystemClock
from usage_kernel.domain.values import AssetStatus, ReportWindow
from usage_kernel.logging_config import get_logger
from usage_kernel.selectors.usage_selector import ReportInputs

logger = get_logger("services.dashboard")


@dataclass(frozen=True)
class DashboardSummary:
    """Everything the dashboard tiles show, computed from one ``now``."""

    now: datetime
    total_assets: int
    status_counts: dict[AssetStatus, int]
    utilization: UtilizationResult
    busiest_assets: tuple[AssetUtilization, ...]
    alerts: tuple[UsageAlert, ...]


class DashboardService:
    """Build dashboard KPIs from materialized inputs."""

    def __init__(
        self,
        clock: Clock | None = None,
        config: UsageAccountingConfig | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()

    def summary(
        self,
        inputs: ReportInputs,
        range_start: datetime | str,
        range_end: datetime | str,
        asset_ids: Sequence[str] | None = None,
    ) -> DashboardSummary:
        """Utilization, busiest assets and alerts for a window.

        Args:
            inputs: Records and lookups, already fetched.
            range_start: Window start.
            range_end: Window end.
            asset_ids: Assets that make up capacity (default: all known).
        """
        now = self._clock.now()
        window = ReportWindow(range_start, range_end)
        ids = list(asset_ids) if asset_ids is not None else sorted(inputs.assets)
        wanted = set(ids)
        assets = {k: v for k, v in inputs.assets.items() if k in wanted}

        utilization = compute_utilization(inputs.records, ids, window, now)
        busiest = utilization.busiest(self._config.dashboard.top_busy_assets)
        alerts = derive_usage_alerts(
            inputs.records,
            assets,
            now,
            long_threshold=self._config.alerts.long_occupancy,
        )

        summary = DashboardSummary(
            now=now,
            total_assets=len(ids),
            status_counts=count_asset_statuses(assets.values()),
            utilization=utilization,
            busiest_assets=tuple(busiest),
            alerts=tuple(alerts),
        )
        logger.info("dashboard_summary_built", extra={
            "asset_count": len(ids),
            "ratio": str(utilization.ratio),
            "alert_count": len(alerts),
            "overdue_active_count": utilization.overdue_active_count,
        })
        return summary
