"""
Usage alerts derived from occupancy records.

Pure functions with deterministic behavior. No I/O, no clock reads.

Alert types:
    usage-overdue   effective status overdue                   P1
    usage-long      effective status in-progress or overdue and
                    now - start >= threshold                   P2, or P1
                                                               at 2x threshold

Alerts are ordered P1 first, then by occurred_at descending.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from usage_engines.status import resolve_status
from usage_kernel.domain.values import (
    Asset,
    OccupancyRecord,
    UsageStatus,
    require_instant,
)
from usage_kernel.logging_config import get_logger

logger = get_logger("engines.alerts")

DEFAULT_LONG_OCCUPANCY = timedelta(hours=72)


class AlertType(str, Enum):
    USAGE_OVERDUE = "usage-overdue"
    USAGE_LONG = "usage-long"


class AlertSeverity(str, Enum):
    P1 = "P1"
    P2 = "P2"


@dataclass(frozen=True)
class UsageAlert:
    """A derived, never-stored alert about one record."""

    alert_id: str
    alert_type: AlertType
    severity: AlertSeverity
    asset_id: str
    asset_name: str
    record_id: str
    occurred_at: datetime
    running_for: timedelta | None = None


def derive_usage_alerts(
    records: Sequence[OccupancyRecord],
    assets: Mapping[str, Asset],
    now: datetime,
    long_threshold: timedelta = DEFAULT_LONG_OCCUPANCY,
) -> list[UsageAlert]:
    """
    Overdue and long-occupancy alerts for records on known assets.

    Records on unknown assets or with an unparsable start are skipped.
    """
    now = require_instant(now)
    alerts: list[UsageAlert] = []

    for record in records:
        asset = assets.get(record.asset_id)
        if asset is None or record.start is None:
            continue
        asset_name = asset.name or asset.asset_id
        effective = resolve_status(record, now)

        if effective == UsageStatus.OVERDUE:
            alerts.append(UsageAlert(
                alert_id=f"usage-overdue:{record.record_id}",
                alert_type=AlertType.USAGE_OVERDUE,
                severity=AlertSeverity.P1,
                asset_id=asset.asset_id,
                asset_name=asset_name,
                record_id=record.record_id,
                occurred_at=record.end or now,
            ))

        if effective in (UsageStatus.IN_PROGRESS, UsageStatus.OVERDUE):
            running = now - record.start
            if running >= long_threshold:
                alerts.append(UsageAlert(
                    alert_id=f"usage-long:{record.record_id}",
                    alert_type=AlertType.USAGE_LONG,
                    severity=(
                        AlertSeverity.P1
                        if running >= long_threshold * 2
                        else AlertSeverity.P2
                    ),
                    asset_id=asset.asset_id,
                    asset_name=asset_name,
                    record_id=record.record_id,
                    occurred_at=now,
                    running_for=running,
                ))

    alerts.sort(key=lambda a: a.alert_id)
    alerts.sort(key=lambda a: a.occurred_at, reverse=True)
    alerts.sort(key=lambda a: a.severity != AlertSeverity.P1)

    logger.debug("usage_alerts_derived", extra={
        "alert_count": len(alerts),
        "p1_count": sum(1 for a in alerts if a.severity == AlertSeverity.P1),
    })
    return alerts
