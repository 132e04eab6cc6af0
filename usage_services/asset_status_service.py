"""
AssetStatusService -- keeps an asset's stored occupancy status current.

Composes the pure asset_status engine with clock injection.  Flush only;
the caller owns commit.  Assets in maintenance are never touched.
"""

from __future__ import annotations

from usage_engines.asset_status import AssetStatusChange, derive_asset_status
from usage_kernel.logging_config import get_logger
from usage_kernel.models.asset import AssetModel
from usage_kernel.services.base import BaseService

logger = get_logger("services.asset_status")


class AssetStatusService(BaseService[AssetModel]):
    """Recompute and persist asset occupancy status."""

    def refresh(self, asset_id: str) -> AssetStatusChange | None:
        """Derive the asset's status at now and write it if it changed.

        Returns:
            None when the asset does not exist.
        """
        asset = self.selector.get_asset(asset_id)
        change = derive_asset_status(
            asset,
            self.selector.list_records(asset_ids=[asset_id]),
            now=self.clock.now(),
        )
        if change is None:
            logger.debug("asset_status_asset_missing", extra={"asset_id": asset_id})
            return None
        if change.updated:
            row = self.session.get(AssetModel, asset_id)
            row.status = change.target_status.value
            self._flush("asset_status_flushed", asset_id=asset_id)
        return change
