"""
Configuration schema (``usage_config.schema``).

Frozen dataclasses for a parsed usage accounting configuration set.  No
I/O; the loader produces these from YAML.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta

from usage_kernel.domain.values import ReportLabels


@dataclass(frozen=True)
class ReportingLabels:
    """Default placeholder labels when the caller supplies none."""

    unlinked_label: str = "Unlinked"
    uncategorized_label: str = "Uncategorized"
    user_placeholder: str = "-"

    def to_report_labels(self) -> ReportLabels:
        return ReportLabels(
            unlinked=self.unlinked_label,
            uncategorized=self.uncategorized_label,
            user_placeholder=self.user_placeholder,
        )


@dataclass(frozen=True)
class BackfillPolicy:
    """Batch sizing for the snapshot backfill job."""

    default_limit: int = 2000
    max_limit: int = 5000


@dataclass(frozen=True)
class AlertPolicy:
    long_occupancy_hours: int = 72

    @property
    def long_occupancy(self) -> timedelta:
        return timedelta(hours=self.long_occupancy_hours)


@dataclass(frozen=True)
class DashboardPolicy:
    top_busy_assets: int = 6


@dataclass(frozen=True)
class UsageAccountingConfig:
    """A complete, validated configuration set."""

    config_id: str
    version: int
    reporting: ReportingLabels = field(default_factory=ReportingLabels)
    backfill: BackfillPolicy = field(default_factory=BackfillPolicy)
    alerts: AlertPolicy = field(default_factory=AlertPolicy)
    dashboard: DashboardPolicy = field(default_factory=DashboardPolicy)
    checksum: str = ""
