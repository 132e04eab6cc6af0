"""
Pure domain layer.

This module contains immutable value objects and the clock abstraction
with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- I/O

All domain objects are immutable and deterministic.
"""

from usage_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SequentialClock,
    SystemClock,
)
from usage_kernel.domain.values import (
    ESTIMABLE_STATUSES,
    Asset,
    AssetStatus,
    CostSnapshot,
    GroupBy,
    OccupancyRecord,
    Project,
    RateSource,
    ReportLabels,
    ReportWindow,
    SnapshotSource,
    TestProject,
    UsageStatus,
    parse_instant,
    require_instant,
    utc_day,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SequentialClock",
    "SystemClock",
    "ESTIMABLE_STATUSES",
    "Asset",
    "AssetStatus",
    "CostSnapshot",
    "GroupBy",
    "OccupancyRecord",
    "Project",
    "RateSource",
    "ReportLabels",
    "ReportWindow",
    "SnapshotSource",
    "TestProject",
    "UsageStatus",
    "parse_instant",
    "require_instant",
    "utc_day",
]
