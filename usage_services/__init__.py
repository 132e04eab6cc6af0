"""
usage_services -- imperative shell around the pure usage engines.

Each service takes an injectable Clock (SystemClock by default), samples
it once per operation and passes the instant to the engines explicitly.
Writing services flush within the caller's session and never commit.
"""

from usage_services.asset_status_service import AssetStatusService
from usage_services.cost_report_service import CostReportService
from usage_services.dashboard_service import DashboardService, DashboardSummary
from usage_services.snapshot_service import SnapshotService

__all__ = [
    "AssetStatusService",
    "CostReportService",
    "DashboardService",
    "DashboardSummary",
    "SnapshotService",
]
