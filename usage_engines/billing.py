"""
BillingCalculator -- ceil-hour billing arithmetic.

Pure functions with deterministic behavior. No I/O.

Billing policy:
    - billable hours = ceil(duration / 1 hour), always a whole number.
      One minute of occupancy bills a full hour; exactly N hours bills N
      hours, never N+1.  Non-positive and non-finite durations bill 0.
    - hourly rate is rounded half-up to the nearest integer cent before
      use; negative and non-finite rates clamp to 0.
    - cost cents = billable hours x rate cents, integer multiply, no
      further rounding.

The ceil on hours and the round-half-up on rate are deliberately
asymmetric and must not be "fixed".

Degenerate input clamps, never raises.

Usage:
    from usage_engines.billing import bill_interval

    billed = bill_interval(clipped, rate_cents=500)
    billed.billable_hours, billed.cost_cents
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from decimal import ROUND_CEILING, Decimal
from typing import Any

from usage_engines.clipping import ClippedInterval
from usage_kernel.domain.values import whole_cents
from usage_kernel.logging_config import get_logger

logger = get_logger("engines.billing")


# ============================================================================
# Constants
# ============================================================================

_MICROSECONDS_PER_HOUR = 3_600_000_000
_MILLISECONDS_PER_HOUR = Decimal(3_600_000)


# ============================================================================
# Value Objects
# ============================================================================


@dataclass(frozen=True)
class BilledInterval:
    """Billable hours and cost for one clipped interval."""

    billable_hours: int
    hourly_rate_cents: int
    cost_cents: int


# ============================================================================
# Core Billing Functions
# ============================================================================


def _to_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        dec = value
    elif isinstance(value, (int, float)):
        dec = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    else:
        return None
    if not dec.is_finite():
        return None
    return dec


def billable_hours(duration: timedelta | int | float | Decimal | None) -> int:
    """
    Whole hours billed for a duration, rounded up.

    Args:
        duration: A timedelta, or a number of milliseconds.

    Returns:
        ceil(duration / 1h), or 0 for non-positive or non-finite input.
    """
    if isinstance(duration, timedelta):
        micros = duration // timedelta(microseconds=1)
        if micros <= 0:
            return 0
        return -(-micros // _MICROSECONDS_PER_HOUR)

    ms = _to_decimal(duration)
    if ms is None or ms <= 0:
        return 0
    return int((ms / _MILLISECONDS_PER_HOUR).to_integral_value(rounding=ROUND_CEILING))


def normalize_rate_cents(rate: Any) -> int:
    """
    Round a rate half-up to an integer cent, clamping at 0.

    Non-numeric, negative and non-finite rates normalize to 0.
    """
    return whole_cents(rate)


def cost_cents(hours: int, rate_cents: int) -> int:
    """Integer product of billable hours and normalized rate cents."""
    return max(0, int(hours)) * normalize_rate_cents(rate_cents)


def bill_interval(clipped: ClippedInterval, rate_cents: Any) -> BilledInterval:
    """
    Bill a clipped interval at the given hourly rate.

    Args:
        clipped: Interval already restricted to the reporting window.
        rate_cents: Hourly rate in cents (rounded half-up before use).

    Returns:
        BilledInterval with billable hours, normalized rate and cost.
    """
    hours = billable_hours(clipped.duration)
    rate = normalize_rate_cents(rate_cents)
    return BilledInterval(
        billable_hours=hours,
        hourly_rate_cents=rate,
        cost_cents=hours * rate,
    )
