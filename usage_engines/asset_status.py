"""
Asset occupancy status derived from its usage records.

Pure functions with deterministic behavior. No I/O, no clock reads.

An asset in maintenance is left alone.  Otherwise it is ``in-use`` iff at
least one of its records is occupying at ``now`` (see is_occupying), else
``available``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from usage_engines.status import is_occupying
from usage_kernel.domain.values import (
    Asset,
    AssetStatus,
    OccupancyRecord,
    require_instant,
)
from usage_kernel.logging_config import get_logger

logger = get_logger("engines.asset_status")


@dataclass(frozen=True)
class AssetStatusChange:
    """Target status for an asset and whether it differs from the stored one."""

    asset_id: str
    updated: bool
    target_status: AssetStatus | None


def derive_asset_status(
    asset: Asset | None,
    records: Iterable[OccupancyRecord],
    now: datetime,
) -> AssetStatusChange | None:
    """
    Occupancy status an asset should have at ``now``.

    Returns:
        None if the asset is missing; otherwise an AssetStatusChange whose
        ``updated`` flag is True when the stored status must change.
    """
    if asset is None:
        return None
    now = require_instant(now)

    if asset.status == AssetStatus.MAINTENANCE:
        return AssetStatusChange(
            asset_id=asset.asset_id,
            updated=False,
            target_status=AssetStatus.MAINTENANCE,
        )

    in_use = any(
        is_occupying(r, now) for r in records if r.asset_id == asset.asset_id
    )
    target = AssetStatus.IN_USE if in_use else AssetStatus.AVAILABLE
    updated = asset.status != target
    if updated:
        logger.info("asset_status_changed", extra={
            "asset_id": asset.asset_id,
            "from_status": asset.status.value if asset.status else None,
            "to_status": target.value,
        })
    return AssetStatusChange(
        asset_id=asset.asset_id,
        updated=updated,
        target_status=target,
    )


def count_asset_statuses(assets: Iterable[Asset]) -> dict[AssetStatus, int]:
    """Number of assets per stored status (all three statuses present)."""
    counts = {status: 0 for status in AssetStatus}
    for asset in assets:
        if asset.status is not None:
            counts[asset.status] += 1
    return counts
