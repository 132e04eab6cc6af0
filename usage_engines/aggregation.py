"""
Aggregator -- cost lines, group totals and zero-filled daily series.

Pure functions with deterministic behavior. No I/O, no clock reads.

Pipeline:
    records + lookups
        -> compute_cost_lines   (clip, resolve rate, bill each record)
        -> group_cost_lines     (sum by asset | project | user | category)
        -> build_daily_series   (sum by UTC day of the clipped start)

Grouping keys:
    asset     asset id                      label: asset name (or id)
    project   project id, or "unlinked"     label: caller's unlinked label,
                                                   else project name (or id)
    user      trimmed user, or "-"          label: user, or caller's
                                                   placeholder label
    category  category label; blank categories use the caller's
              "uncategorized" label (distinct from the "" rate key)

A group reports a single hourly rate only when every member line shares
it; otherwise the rate is None, a "mixed rate" signal the caller must
surface.  Groups are ordered by cost descending.

Failure modes:
    - UnsupportedGroupByError for a group-by value outside the four
      dimensions.  Mis-grouping is never silently coerced.

Usage:
    from usage_engines.aggregation import CostReportParams, build_cost_report

    params = CostReportParams(window=window, group_by=GroupBy.PROJECT)
    report = build_cost_report(records, assets, category_rates, projects,
                               params=params, now=now)
"""

from __future__ import annotations

import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from usage_engines.billing import bill_interval
from usage_engines.clipping import clip_record
from usage_engines.rates import resolve_rate
from usage_engines.tracer import traced_engine
from usage_kernel.domain.values import (
    Asset,
    GroupBy,
    OccupancyRecord,
    Project,
    RateSource,
    ReportLabels,
    ReportWindow,
    TestProject,
    is_blank,
    require_instant,
    utc_day,
)
from usage_kernel.exceptions import UnsupportedGroupByError
from usage_kernel.logging_config import get_logger

logger = get_logger("engines.aggregation")


# ============================================================================
# Constants
# ============================================================================

PROJECT_FILTER_ALL = "all"
UNLINKED_KEY = "unlinked"
BLANK_USER_KEY = "-"


# ============================================================================
# Value Objects
# ============================================================================


@dataclass(frozen=True)
class CostLine:
    """One record's billed contribution to a reporting window."""

    log_id: str
    asset_id: str
    asset_name: str
    category_key: str
    asset_category: str
    project_id: str | None
    project_name: str
    start: datetime
    end: datetime
    billable_hours: int
    hourly_rate_cents: int
    rate_source: RateSource
    cost_cents: int
    estimated: bool
    user: str
    notes: str | None = None
    test_project_id: str | None = None
    test_project_name: str | None = None

    @property
    def day(self) -> date:
        """UTC calendar day of the clipped start."""
        return utc_day(self.start)


@dataclass(frozen=True)
class CostGroup:
    """Summed cost lines for one group key."""

    key: str
    label: str
    cost_cents: int
    billable_hours: int
    log_count: int
    hourly_rate_cents: int | None
    has_snapshot: bool
    has_category: bool
    has_asset: bool
    has_fallback: bool
    lines: tuple[CostLine, ...] = field(default=(), repr=False)

    @property
    def mixed_rate(self) -> bool:
        return self.hourly_rate_cents is None


@dataclass(frozen=True)
class DailyPoint:
    """Summed cost for one UTC calendar day (zero-filled)."""

    day: date
    cost_cents: int = 0
    billable_hours: int = 0
    log_count: int = 0


@dataclass(frozen=True)
class CostReportParams:
    """Caller-supplied report parameters."""

    window: ReportWindow
    group_by: GroupBy = GroupBy.PROJECT
    project_filter: str = PROJECT_FILTER_ALL
    include_unlinked: bool = True
    include_in_progress: bool = False
    labels: ReportLabels = field(default_factory=ReportLabels)

    def __post_init__(self) -> None:
        object.__setattr__(self, "group_by", coerce_group_by(self.group_by))


@dataclass(frozen=True)
class CostReport:
    """Lines, groups and daily series computed from one ``now``."""

    now: datetime
    params: CostReportParams
    lines: tuple[CostLine, ...]
    groups: tuple[CostGroup, ...]
    series: tuple[DailyPoint, ...]

    @property
    def total_cost_cents(self) -> int:
        return sum(line.cost_cents for line in self.lines)

    @property
    def total_billable_hours(self) -> int:
        return sum(line.billable_hours for line in self.lines)


# ============================================================================
# Helpers
# ============================================================================


def coerce_group_by(value: Any) -> GroupBy:
    """Return the GroupBy member for ``value`` or raise UnsupportedGroupByError."""
    if isinstance(value, GroupBy):
        return value
    try:
        return GroupBy(value)
    except ValueError:
        logger.error("unsupported_group_by", extra={"group_by": repr(value)})
        raise UnsupportedGroupByError(value) from None


def passes_project_filter(
    record: OccupancyRecord,
    project_filter: str,
    include_unlinked: bool,
) -> bool:
    """
    A specific project id keeps only that project's records.  The "all"
    filter keeps everything, minus unlinked records unless included.
    """
    if project_filter != PROJECT_FILTER_ALL:
        return record.project_id == project_filter
    if not include_unlinked:
        return record.project_id is not None
    return True


def category_label(asset: Asset | None, labels: ReportLabels) -> str:
    if asset is None or is_blank(asset.category):
        return labels.uncategorized
    return str(asset.category)


def project_label(
    project_id: str | None,
    projects: Mapping[str, Project],
    labels: ReportLabels,
) -> str:
    if project_id is None:
        return labels.unlinked
    project = projects.get(project_id)
    if project is None or is_blank(project.name):
        return project_id
    return project.name


def group_key(line: CostLine, group_by: GroupBy | str) -> str:
    """Group key of a line; the same derivation serves grouping and drill-down."""
    group_by = coerce_group_by(group_by)
    if group_by == GroupBy.ASSET:
        return line.asset_id
    if group_by == GroupBy.PROJECT:
        return line.project_id if line.project_id is not None else UNLINKED_KEY
    if group_by == GroupBy.USER:
        return BLANK_USER_KEY if is_blank(line.user) else line.user.strip()
    return line.asset_category


def group_label(line: CostLine, group_by: GroupBy, labels: ReportLabels) -> str:
    if group_by == GroupBy.ASSET:
        return line.asset_name
    if group_by == GroupBy.PROJECT:
        return line.project_name
    if group_by == GroupBy.USER:
        return labels.user_placeholder if is_blank(line.user) else line.user.strip()
    return line.asset_category


# ============================================================================
# Cost lines
# ============================================================================


def build_cost_line(
    record: OccupancyRecord,
    asset: Asset | None,
    category_rates: Mapping[str, Any],
    projects: Mapping[str, Project],
    window: ReportWindow,
    now: datetime,
    include_in_progress: bool = False,
    labels: ReportLabels | None = None,
    test_projects: Mapping[str, TestProject] | None = None,
) -> CostLine | None:
    """
    Cost line for a single record, or None if it contributes nothing.

    This is the imperative (preview) path; compute_cost_lines is the same
    routine applied to a whole collection.
    """
    labels = labels or ReportLabels()
    clipped = clip_record(record, window, include_in_progress, now)
    if clipped is None:
        return None

    rate = resolve_rate(record, asset, category_rates)
    billed = bill_interval(clipped, rate.hourly_rate_cents)

    test_project_name = None
    if record.test_project_id is not None and test_projects:
        tp = test_projects.get(record.test_project_id)
        test_project_name = tp.name if tp is not None else None

    return CostLine(
        log_id=record.record_id,
        asset_id=record.asset_id,
        asset_name=(asset.name if asset is not None and asset.name else record.asset_id),
        category_key=asset.category_key if asset is not None else "",
        asset_category=category_label(asset, labels),
        project_id=record.project_id,
        project_name=project_label(record.project_id, projects, labels),
        start=clipped.start,
        end=clipped.end,
        billable_hours=billed.billable_hours,
        hourly_rate_cents=billed.hourly_rate_cents,
        rate_source=rate.source,
        cost_cents=billed.cost_cents,
        estimated=clipped.estimated,
        user=record.user or "",
        notes=record.notes,
        test_project_id=record.test_project_id,
        test_project_name=test_project_name,
    )


@traced_engine(
    "aggregation",
    "1.0",
    fingerprint_fields=(
        "window",
        "now",
        "project_filter",
        "include_unlinked",
        "include_in_progress",
    ),
)
def compute_cost_lines(
    records: Sequence[OccupancyRecord],
    assets: Mapping[str, Asset],
    category_rates: Mapping[str, Any],
    projects: Mapping[str, Project],
    window: ReportWindow,
    now: datetime,
    project_filter: str = PROJECT_FILTER_ALL,
    include_unlinked: bool = True,
    include_in_progress: bool = False,
    labels: ReportLabels | None = None,
    test_projects: Mapping[str, TestProject] | None = None,
) -> list[CostLine]:
    """
    Cost lines for every record that overlaps the window.

    Args:
        records: Occupancy records (any order).
        assets: Asset lookup by id.
        category_rates: Sparse category key -> rate cents table.
        projects: Project lookup by id.
        window: Reporting window.
        now: Evaluation instant captured once by the caller.
        project_filter: "all" or a specific project id.
        include_unlinked: With the "all" filter, keep records without a
            project.
        include_in_progress: Estimate open in-progress/overdue records up
            to min(now, range_end).
        labels: Placeholder labels for unlinked / uncategorized.

    Returns:
        Lines ordered by clipped start descending (log id breaks ties).
    """
    t0 = time.monotonic()
    now = require_instant(now)
    labels = labels or ReportLabels()

    lines: list[CostLine] = []
    filtered = 0
    for record in records:
        if not passes_project_filter(record, project_filter, include_unlinked):
            filtered += 1
            continue
        line = build_cost_line(
            record,
            assets.get(record.asset_id),
            category_rates,
            projects,
            window,
            now,
            include_in_progress=include_in_progress,
            labels=labels,
            test_projects=test_projects,
        )
        if line is not None:
            lines.append(line)

    lines.sort(key=lambda ln: ln.log_id)
    lines.sort(key=lambda ln: ln.start, reverse=True)

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("cost_lines_computed", extra={
        "record_count": len(records),
        "line_count": len(lines),
        "filtered_count": filtered,
        "excluded_count": len(records) - filtered - len(lines),
        "estimated_count": sum(1 for ln in lines if ln.estimated),
        "duration_ms": duration_ms,
    })
    return lines


# ============================================================================
# Grouping
# ============================================================================


def _summarize(
    key: str,
    label: str,
    members: list[CostLine],
) -> CostGroup:
    rates = {ln.hourly_rate_cents for ln in members}
    sources = {ln.rate_source for ln in members}
    return CostGroup(
        key=key,
        label=label,
        cost_cents=sum(ln.cost_cents for ln in members),
        billable_hours=sum(ln.billable_hours for ln in members),
        log_count=len(members),
        hourly_rate_cents=next(iter(rates)) if len(rates) == 1 else None,
        has_snapshot=RateSource.SNAPSHOT in sources,
        has_category=RateSource.CATEGORY in sources,
        has_asset=RateSource.ASSET in sources,
        has_fallback=bool(sources - {RateSource.SNAPSHOT}),
        lines=tuple(members),
    )


@traced_engine("aggregation", "1.0", fingerprint_fields=("group_by",))
def group_cost_lines(
    lines: Sequence[CostLine],
    group_by: GroupBy | str,
    labels: ReportLabels | None = None,
) -> list[CostGroup]:
    """
    Sum cost lines by dimension.

    Returns:
        Groups ordered by cost descending, then key ascending.

    Raises:
        UnsupportedGroupByError: group_by is not a GroupBy value.
    """
    group_by = coerce_group_by(group_by)
    labels = labels or ReportLabels()

    buckets: dict[str, list[CostLine]] = {}
    group_labels: dict[str, str] = {}
    for line in lines:
        key = group_key(line, group_by)
        buckets.setdefault(key, []).append(line)
        group_labels.setdefault(key, group_label(line, group_by, labels))

    groups = [
        _summarize(key, group_labels[key], members)
        for key, members in buckets.items()
    ]
    groups.sort(key=lambda g: (-g.cost_cents, g.key))

    mixed = sum(1 for g in groups if g.mixed_rate)
    logger.debug("cost_lines_grouped", extra={
        "group_by": group_by.value,
        "group_count": len(groups),
        "mixed_rate_groups": mixed,
    })
    return groups


def filter_lines_by_group(
    lines: Sequence[CostLine],
    group_by: GroupBy | str,
    key: str,
) -> list[CostLine]:
    """Drill-down: the lines whose group key equals ``key``, order preserved."""
    group_by = coerce_group_by(group_by)
    return [line for line in lines if group_key(line, group_by) == key]


# ============================================================================
# Daily series
# ============================================================================


def window_days(window: ReportWindow) -> list[date]:
    """Every UTC day from the window's start day to its end day, inclusive."""
    first = utc_day(window.range_start)
    last = utc_day(window.range_end)
    days: list[date] = []
    current = first
    while current <= last:
        days.append(current)
        current += timedelta(days=1)
    return days


def build_daily_series(
    lines: Sequence[CostLine],
    window: ReportWindow,
) -> list[DailyPoint]:
    """
    Zero-filled daily totals bucketed by the UTC day of each clipped start.

    A record that began before the window is attributed to the window's
    first day.
    """
    totals: dict[date, list[int]] = {day: [0, 0, 0] for day in window_days(window)}
    for line in lines:
        bucket = totals.get(line.day)
        if bucket is None:
            logger.warning("line_outside_series", extra={
                "log_id": line.log_id,
                "day": line.day,
            })
            continue
        bucket[0] += line.cost_cents
        bucket[1] += line.billable_hours
        bucket[2] += 1

    return [
        DailyPoint(day=day, cost_cents=c, billable_hours=h, log_count=n)
        for day, (c, h, n) in totals.items()
    ]


# ============================================================================
# Full report
# ============================================================================


def build_cost_report(
    records: Sequence[OccupancyRecord],
    assets: Mapping[str, Asset],
    category_rates: Mapping[str, Any],
    projects: Mapping[str, Project],
    params: CostReportParams,
    now: datetime,
    test_projects: Mapping[str, TestProject] | None = None,
) -> CostReport:
    """Lines, groups and series for one report, all from the same ``now``."""
    now = require_instant(now)
    lines = compute_cost_lines(
        records,
        assets,
        category_rates,
        projects,
        window=params.window,
        now=now,
        project_filter=params.project_filter,
        include_unlinked=params.include_unlinked,
        include_in_progress=params.include_in_progress,
        labels=params.labels,
        test_projects=test_projects,
    )
    groups = group_cost_lines(lines, params.group_by, params.labels)
    series = build_daily_series(lines, params.window)
    return CostReport(
        now=now,
        params=params,
        lines=tuple(lines),
        groups=tuple(groups),
        series=tuple(series),
    )
