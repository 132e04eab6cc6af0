"""
Domain value tests: instant parsing, records, windows and lookups.
"""

import math
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from usage_kernel.domain.values import (
    Asset,
    AssetStatus,
    CostSnapshot,
    OccupancyRecord,
    ReportWindow,
    SnapshotSource,
    UsageStatus,
    is_blank,
    is_finite_number,
    parse_instant,
    require_instant,
    utc_day,
    whole_cents,
)
from usage_kernel.exceptions import InvalidRecordStatusError, InvalidReportWindowError

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestParseInstant:
    @pytest.mark.parametrize(
        "value",
        [
            "2026-01-01T00:00:00Z",
            "2026-01-01T00:00:00+00:00",
            " 2026-01-01T01:00:00+01:00 ",
            1767225600000,
            1767225600000.0,
            Decimal("1767225600000"),
            datetime(2026, 1, 1),
            T0,
        ],
    )
    def test_accepted_forms(self, value):
        assert parse_instant(value) == T0

    @pytest.mark.parametrize(
        "value",
        [None, "", "   ", "yesterday", True, math.nan, math.inf, object(), [T0]],
    )
    def test_rejected_forms(self, value):
        assert parse_instant(value) is None

    def test_result_is_utc(self):
        parsed = parse_instant("2026-01-01T05:30:00+05:30")
        assert parsed.utcoffset() == timedelta(0)
        assert parsed == T0

    def test_require_instant(self):
        assert require_instant("2026-01-01T00:00:00Z") == T0
        with pytest.raises(InvalidReportWindowError) as exc_info:
            require_instant("soon")
        assert exc_info.value.bound == "now"


class TestHelpers:
    def test_utc_day(self):
        local = datetime(2026, 1, 2, 1, 0, tzinfo=timezone(timedelta(hours=3)))
        assert utc_day(local) == date(2026, 1, 1)

    def test_is_blank(self):
        assert is_blank(None)
        assert is_blank(" \t")
        assert not is_blank("x")


class TestOccupancyRecord:
    def test_status_coerced(self):
        record = OccupancyRecord(record_id="r", asset_id="a", start_time=T0, status="overdue")
        assert record.status is UsageStatus.OVERDUE

    def test_unknown_status_raises(self):
        with pytest.raises(InvalidRecordStatusError) as exc_info:
            OccupancyRecord(record_id="r", asset_id="a", start_time=T0, status="paused")
        assert exc_info.value.status == "paused"

    def test_unparsable_times_kept_raw(self):
        record = OccupancyRecord(
            record_id="r", asset_id="a", start_time="junk", end_time="", status="completed",
        )
        assert record.start is None
        assert record.end is None
        assert record.start_time == "junk"

    def test_snapshot_requires_all_amounts(self):
        partial = OccupancyRecord(
            record_id="r", asset_id="a", start_time=T0, status="completed",
            snapshot_rate_cents=100, snapshot_billable_hours=1,
        )
        assert partial.snapshot is None
        assert not partial.has_complete_snapshot

    def test_snapshot(self):
        record = OccupancyRecord(
            record_id="r", asset_id="a", start_time=T0, status="completed",
            snapshot_rate_cents=100, snapshot_billable_hours=2, snapshot_cost_cents=200,
            snapshot_at="2026-01-01T03:00:00Z", snapshot_source="backfill",
        )
        assert record.snapshot == CostSnapshot(
            rate_cents=100,
            billable_hours=2,
            cost_cents=200,
            captured_at=T0 + timedelta(hours=3),
            source=SnapshotSource.BACKFILL,
        )
        assert record.has_complete_snapshot

    def test_same_amounts_ignores_metadata(self):
        a = CostSnapshot(100, 2, 200, captured_at=T0, source=SnapshotSource.BACKFILL)
        b = CostSnapshot(100, 2, 200)
        assert a.same_amounts(b)
        assert not a.same_amounts(None)


class TestAssetAndWindow:
    def test_category_key(self):
        assert Asset(asset_id="a", category=None).category_key == ""
        assert Asset(asset_id="a", category="  ").category_key == ""
        assert Asset(asset_id="a", category="thermal").category_key == "thermal"

    def test_asset_status_coerced(self):
        assert Asset(asset_id="a", status="in-use").status is AssetStatus.IN_USE

    def test_window_parses_bounds(self):
        window = ReportWindow("2026-01-01T00:00:00Z", "2026-01-02T00:00:00Z")
        assert window.range_start == T0
        assert window.duration == timedelta(days=1)

    @pytest.mark.parametrize("start, end, bound", [
        (None, T0, "range_start"),
        (T0, "later", "range_end"),
    ])
    def test_window_rejects_bad_bounds(self, start, end, bound):
        with pytest.raises(InvalidReportWindowError) as exc_info:
            ReportWindow(start, end)
        assert exc_info.value.bound == bound
        assert exc_info.value.code == "INVALID_REPORT_WINDOW"


class TestNumericHelpers:
    @pytest.mark.parametrize("value", [0, 12, -3, 1.5, Decimal("2.25")])
    def test_finite_numbers(self, value):
        assert is_finite_number(value)

    @pytest.mark.parametrize("value", [None, True, "12", math.nan, math.inf, Decimal("NaN")])
    def test_not_finite_numbers(self, value):
        assert not is_finite_number(value)

    @pytest.mark.parametrize(
        "value, expected",
        [(499.5, 500), (499.49, 499), (Decimal("0.5"), 1), (7, 7), (-2.5, 0), ("oops", 0), (math.nan, 0)],
    )
    def test_whole_cents(self, value, expected):
        assert whole_cents(value) == expected
