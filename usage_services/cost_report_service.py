"""
CostReportService -- service wrapper for cost reports and drill-down.

Composes the pure aggregation engine with clock injection and the active
configuration's default labels.

Architecture: usage_services -- imperative shell.
    The clock is sampled exactly once per call and the resulting ``now``
    is threaded through every engine call, so estimated / in-progress
    decisions are consistent within one report.

Non-goals:
    - Does NOT persist anything (read-only).
    - Does NOT serialize reports to files.
"""

from __future__ import annotations

from datetime import datetime
from uuid import uuid4

from sqlalchemy.orm import Session

from usage_config import UsageAccountingConfig, get_active_config
from usage_engines.aggregation import (
    PROJECT_FILTER_ALL,
    CostLine,
    CostReport,
    CostReportParams,
    build_cost_report,
    compute_cost_lines,
    filter_lines_by_group,
)
from usage_kernel.domain.clock import Clock, SystemClock
from usage_kernel.domain.values import GroupBy, ReportLabels, ReportWindow
from usage_kernel.logging_config import LogContext, get_logger
from usage_kernel.selectors.usage_selector import ReportInputs, UsageSelector

logger = get_logger("services.cost_report")


class CostReportService:
    """Service that builds cost reports from materialized inputs.

    Contract:
        - ``report()`` returns lines, groups and daily series for one window.
        - ``drill_down()`` returns the lines of a single group.
        - ``load_inputs()`` reads everything a report needs from a session.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        config: UsageAccountingConfig | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()

    @property
    def default_labels(self) -> ReportLabels:
        return self._config.reporting.to_report_labels()

    def params(
        self,
        range_start: datetime | str,
        range_end: datetime | str,
        group_by: GroupBy | str = GroupBy.PROJECT,
        project_filter: str = PROJECT_FILTER_ALL,
        include_unlinked: bool = True,
        include_in_progress: bool = False,
        labels: ReportLabels | None = None,
    ) -> CostReportParams:
        """Build validated report parameters, defaulting labels from config."""
        return CostReportParams(
            window=ReportWindow(range_start, range_end),
            group_by=group_by,
            project_filter=project_filter,
            include_unlinked=include_unlinked,
            include_in_progress=include_in_progress,
            labels=labels or self.default_labels,
        )

    def load_inputs(
        self,
        session: Session,
        window: ReportWindow | None = None,
    ) -> ReportInputs:
        return UsageSelector(session).load_report_inputs(window=window)

    def report(
        self,
        inputs: ReportInputs,
        params: CostReportParams,
    ) -> CostReport:
        """Build a full report from one clock reading.

        Args:
            inputs: Records and lookups, already fetched.
            params: Report parameters.

        Returns:
            CostReport with lines, groups, series and the ``now`` used.
        """
        now = self._clock.now()
        report_id = str(uuid4())
        with LogContext.bind(report_id=report_id):
            logger.info("cost_report_started", extra={
                "group_by": params.group_by.value,
                "range_start": params.window.range_start,
                "range_end": params.window.range_end,
                "project_filter": params.project_filter,
                "include_in_progress": params.include_in_progress,
                "now": now,
            })
            report = build_cost_report(
                inputs.records,
                inputs.assets,
                inputs.category_rates,
                inputs.projects,
                params=params,
                now=now,
                test_projects=inputs.test_projects,
            )
            logger.info("cost_report_completed", extra={
                "line_count": len(report.lines),
                "group_count": len(report.groups),
                "day_count": len(report.series),
                "total_cost_cents": report.total_cost_cents,
            })
        return report

    def drill_down(
        self,
        inputs: ReportInputs,
        params: CostReportParams,
        key: str,
    ) -> list[CostLine]:
        """Lines belonging to one group, using the same key derivation as grouping."""
        now = self._clock.now()
        lines = compute_cost_lines(
            inputs.records,
            inputs.assets,
            inputs.category_rates,
            inputs.projects,
            window=params.window,
            now=now,
            project_filter=params.project_filter,
            include_unlinked=params.include_unlinked,
            include_in_progress=params.include_in_progress,
            labels=params.labels,
            test_projects=inputs.test_projects,
        )
        selected = filter_lines_by_group(lines, params.group_by, key)
        logger.debug("cost_report_drill_down", extra={
            "group_by": params.group_by.value,
            "group_key": key,
            "line_count": len(selected),
        })
        return selected
