"""
Module: usage_engines
Responsibility:
    Package entrypoint that re-exports all public symbols from the pure
    usage accounting engines.  This is the canonical import surface for
    usage_services and any preview / client path.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import usage_kernel domain values, exceptions and logging
    (and sibling engine modules).  MUST NOT import usage_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()``.  The evaluation
      instant is always an explicit ``now`` parameter captured once per
      pipeline by the caller.
    - Integer cents: rates, hours and costs are integers; rate rounding
      goes through Decimal ROUND_HALF_UP.
    - Determinism: identical inputs always produce identical outputs.

Failure modes:
    - UnsupportedGroupByError for an out-of-domain group-by value.
    - InvalidReportWindowError for an unparsable window bound or ``now``.
    - Data-quality problems (bad timestamps, missing rates or assets)
      never raise.

Usage:
    from usage_engines import (
        CostReportParams,
        build_cost_report,
        compute_utilization,
    )
"""

from usage_kernel.logging_config import get_logger

logger = get_logger("engines")

from usage_engines.aggregation import (
    BLANK_USER_KEY,
    PROJECT_FILTER_ALL,
    UNLINKED_KEY,
    CostGroup,
    CostLine,
    CostReport,
    CostReportParams,
    DailyPoint,
    build_cost_line,
    build_cost_report,
    build_daily_series,
    coerce_group_by,
    compute_cost_lines,
    filter_lines_by_group,
    group_cost_lines,
    group_key,
)
from usage_engines.alerts import (
    AlertSeverity,
    AlertType,
    UsageAlert,
    derive_usage_alerts,
)
from usage_engines.asset_status import (
    AssetStatusChange,
    count_asset_statuses,
    derive_asset_status,
)
from usage_engines.billing import (
    BilledInterval,
    bill_interval,
    billable_hours,
    cost_cents,
    normalize_rate_cents,
)
from usage_engines.clipping import ClippedInterval, clip_interval, clip_record
from usage_engines.rates import ResolvedRate, fallback_rate, resolve_rate
from usage_engines.snapshot import (
    BackfillPlan,
    RecomputeResult,
    compute_cost_snapshot,
    normalize_backfill_limit,
    plan_snapshot_backfill,
    recompute_snapshot,
)
from usage_engines.status import is_occupying, resolve_status, resolve_statuses
from usage_engines.utilization import (
    AssetUtilization,
    UtilizationResult,
    busiest_assets,
    compute_utilization,
    merge_intervals,
    occupied_duration,
)

__all__ = [
    # Status
    "resolve_status",
    "resolve_statuses",
    "is_occupying",
    # Rates
    "ResolvedRate",
    "resolve_rate",
    "fallback_rate",
    # Clipping
    "ClippedInterval",
    "clip_interval",
    "clip_record",
    # Billing
    "BilledInterval",
    "bill_interval",
    "billable_hours",
    "cost_cents",
    "normalize_rate_cents",
    # Aggregation
    "BLANK_USER_KEY",
    "PROJECT_FILTER_ALL",
    "UNLINKED_KEY",
    "CostGroup",
    "CostLine",
    "CostReport",
    "CostReportParams",
    "DailyPoint",
    "build_cost_line",
    "build_cost_report",
    "build_daily_series",
    "coerce_group_by",
    "compute_cost_lines",
    "filter_lines_by_group",
    "group_cost_lines",
    "group_key",
    # Utilization
    "AssetUtilization",
    "UtilizationResult",
    "busiest_assets",
    "compute_utilization",
    "merge_intervals",
    "occupied_duration",
    # Snapshot
    "BackfillPlan",
    "RecomputeResult",
    "compute_cost_snapshot",
    "normalize_backfill_limit",
    "plan_snapshot_backfill",
    "recompute_snapshot",
    # Asset status
    "AssetStatusChange",
    "count_asset_statuses",
    "derive_asset_status",
    # Alerts
    "AlertSeverity",
    "AlertType",
    "UsageAlert",
    "derive_usage_alerts",
]

logger.debug("engines_package_loaded", extra={
    "modules": [
        "status", "rates", "clipping", "billing", "aggregation",
        "utilization", "snapshot", "asset_status", "alerts",
    ],
})
