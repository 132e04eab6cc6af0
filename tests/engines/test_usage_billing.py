"""
Tests for the BillingCalculator.

Covers:
- Ceil-hour boundaries (1 ms, exactly 1 h, 1 h + 1 ms)
- Degenerate durations and rates clamp to zero
- Round-half-up rate normalization
- Integer cost multiply
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from usage_engines.billing import (
    bill_interval,
    billable_hours,
    cost_cents,
    normalize_rate_cents,
)
from usage_engines.clipping import ClippedInterval

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestBillableHours:
    """ceil(duration / 1h), floored at zero."""

    @pytest.mark.parametrize(
        "ms, hours",
        [
            (1, 1),
            (60_000, 1),
            (3_600_000, 1),
            (3_600_001, 2),
            (7_200_000, 2),
            (0, 0),
            (-1, 0),
        ],
    )
    def test_millisecond_boundaries(self, ms, hours):
        assert billable_hours(ms) == hours

    @pytest.mark.parametrize(
        "delta, hours",
        [
            (timedelta(milliseconds=1), 1),
            (timedelta(minutes=1), 1),
            (timedelta(hours=1), 1),
            (timedelta(hours=1, milliseconds=1), 2),
            (timedelta(hours=1, microseconds=1), 2),
            (timedelta(days=3), 72),
            (timedelta(0), 0),
            (timedelta(hours=-2), 0),
        ],
    )
    def test_timedelta_boundaries(self, delta, hours):
        assert billable_hours(delta) == hours

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), None])
    def test_non_finite_is_zero(self, value):
        assert billable_hours(value) == 0


class TestNormalizeRate:
    """Round half-up to an integer cent, clamp at zero."""

    @pytest.mark.parametrize(
        "rate, expected",
        [
            (500, 500),
            (499.5, 500),
            (499.4, 499),
            (Decimal("0.5"), 1),
            (Decimal("1234.49"), 1234),
            (-1, 0),
            (-0.4, 0),
            (float("nan"), 0),
            (float("inf"), 0),
            (None, 0),
            ("500", 0),
            (False, 0),
        ],
    )
    def test_normalization(self, rate, expected):
        assert normalize_rate_cents(rate) == expected


class TestCost:
    def test_integer_product(self):
        assert cost_cents(3, 500) == 1500

    def test_negative_rate_clamps(self):
        assert cost_cents(3, -500) == 0

    def test_bill_interval(self):
        clipped = ClippedInterval(start=T0, end=T0 + timedelta(minutes=61))
        billed = bill_interval(clipped, 250.5)
        assert billed.billable_hours == 2
        assert billed.hourly_rate_cents == 251
        assert billed.cost_cents == 502

    def test_asymmetric_rounding_preserved(self):
        """Hours round up while the rate rounds to nearest."""
        clipped = ClippedInterval(start=T0, end=T0 + timedelta(minutes=1))
        billed = bill_interval(clipped, 100.4)
        assert (billed.billable_hours, billed.hourly_rate_cents, billed.cost_cents) == (1, 100, 100)
