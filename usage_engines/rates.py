"""
RateResolver -- three-tier hourly rate fallback.

Pure functions with deterministic behavior. No I/O.

Exactly one tier prices a record; sources are never blended:
    1. snapshot   record.snapshot_rate_cents, if a finite number
    2. category   category-rate entry for the asset's category key
                  (a blank category is the valid key "")
    3. asset      the asset's default rate, or 0 if the asset is missing

Every tier's value goes through normalize_rate_cents.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from usage_engines.billing import normalize_rate_cents
from usage_kernel.domain.values import (
    Asset,
    OccupancyRecord,
    RateSource,
    is_finite_number,
)
from usage_kernel.logging_config import get_logger

logger = get_logger("engines.rates")


@dataclass(frozen=True)
class ResolvedRate:
    """Hourly rate and the tier it came from."""

    hourly_rate_cents: int
    source: RateSource

    @property
    def is_fallback(self) -> bool:
        return self.source != RateSource.SNAPSHOT


def is_numeric_rate(value: Any) -> bool:
    """True for finite int, float or Decimal values (bool excluded)."""
    return is_finite_number(value)


def fallback_rate(
    asset: Asset | None,
    category_rates: Mapping[str, Any],
) -> ResolvedRate:
    """
    Rate from the category and asset tiers only.

    Used for new snapshots, which must never inherit an older snapshot.
    """
    if asset is None:
        return ResolvedRate(hourly_rate_cents=0, source=RateSource.ASSET)

    category_rate = category_rates.get(asset.category_key)
    if category_rate is not None:
        return ResolvedRate(
            hourly_rate_cents=normalize_rate_cents(category_rate),
            source=RateSource.CATEGORY,
        )
    return ResolvedRate(
        hourly_rate_cents=normalize_rate_cents(asset.hourly_rate_cents),
        source=RateSource.ASSET,
    )


def resolve_rate(
    record: OccupancyRecord,
    asset: Asset | None,
    category_rates: Mapping[str, Any],
) -> ResolvedRate:
    """
    Pick the hourly rate that applies to a record.

    Args:
        record: The occupancy record (its snapshot rate wins if numeric).
        asset: The record's asset, or None if it no longer exists.
        category_rates: Sparse category key -> rate cents table.

    Returns:
        ResolvedRate with the normalized rate and its source tier.
    """
    if is_numeric_rate(record.snapshot_rate_cents):
        return ResolvedRate(
            hourly_rate_cents=normalize_rate_cents(record.snapshot_rate_cents),
            source=RateSource.SNAPSHOT,
        )
    resolved = fallback_rate(asset, category_rates)
    if asset is None:
        logger.debug("rate_asset_missing", extra={
            "record_id": record.record_id,
            "asset_id": record.asset_id,
        })
    return resolved
