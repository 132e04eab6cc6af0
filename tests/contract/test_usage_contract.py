"""
Behavioral contract shared by every path that produces cost reports.

The pure engine (``build_cost_report``) and the service wrapper
(``CostReportService.report``) must agree line for line.  Each property
below is checked against both.

Covers:
- Ceil-hour billing boundaries
- Rate priority (numeric snapshot always wins)
- Idempotent clipping of emitted lines
- Group rate is None iff members carry two or more distinct rates
- Daily series length and per-day sums
- Utilization bounded in [0, 1] and non-decreasing in occupied time
- Completed records always resolve to completed
- Worked scenarios A through D
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from usage_engines import (
    CostReportParams,
    billable_hours,
    build_cost_report,
    clip_interval,
    compute_utilization,
    resolve_status,
)
from usage_kernel.domain.clock import DeterministicClock
from usage_kernel.domain.values import (
    Asset,
    GroupBy,
    OccupancyRecord,
    Project,
    RateSource,
    ReportLabels,
    ReportWindow,
    UsageStatus,
)
from usage_kernel.selectors.usage_selector import ReportInputs
from usage_services import CostReportService

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)
HOUR = timedelta(hours=1)
MINUTE = timedelta(minutes=1)
WINDOW = ReportWindow(T0, T0 + 3 * 24 * HOUR)
NOW = T0 + 40 * HOUR
LABELS = ReportLabels(unlinked="No project", uncategorized="Other", user_placeholder="?")

ASSETS = {
    "a1": Asset(asset_id="a1", name="Chamber 1", category="thermal", hourly_rate_cents=900),
    "a2": Asset(asset_id="a2", name="Shaker", category="", hourly_rate_cents=450.5),
    "a3": Asset(asset_id="a3", name="Scope", category=None, hourly_rate_cents=-20),
}
CATEGORY_RATES = {"thermal": 1200}
PROJECTS = {"p1": Project(project_id="p1", name="Apollo")}

CONTRACT_SETTINGS = settings(
    max_examples=60,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow],
)


# ---------------------------------------------------------------------------
# Strategies and paths
# ---------------------------------------------------------------------------


@st.composite
def occupancy_records(draw, record_id: str) -> OccupancyRecord:
    start = T0 + draw(st.integers(-600, 4800)) * MINUTE
    end_offset = draw(st.one_of(st.none(), st.integers(-30, 900)))
    return OccupancyRecord(
        record_id=record_id,
        asset_id=draw(st.sampled_from(["a1", "a2", "a3", "gone"])),
        start_time=start.isoformat(),
        end_time=(start + end_offset * MINUTE).isoformat() if end_offset is not None else None,
        status=draw(st.sampled_from(list(UsageStatus))),
        project_id=draw(st.sampled_from(["p1", "p2", None])),
        user=draw(st.sampled_from(["alice", " bob ", "", None])),
        snapshot_rate_cents=draw(st.sampled_from([None, None, 500, 499.5, "oops"])),
    )


@st.composite
def record_sets(draw) -> list[OccupancyRecord]:
    count = draw(st.integers(0, 12))
    return [draw(occupancy_records(f"log-{i:02d}")) for i in range(count)]


def _params(group_by=GroupBy.PROJECT, include_in_progress=True, **kwargs) -> CostReportParams:
    return CostReportParams(
        window=kwargs.pop("window", WINDOW),
        group_by=group_by,
        include_in_progress=include_in_progress,
        labels=LABELS,
        **kwargs,
    )


def _engine_report(records, params, now=NOW):
    return build_cost_report(records, ASSETS, CATEGORY_RATES, PROJECTS, params=params, now=now)


def _service_report(records, params, now=NOW):
    service = CostReportService(clock=DeterministicClock(now))
    inputs = ReportInputs(
        records=tuple(records),
        assets=dict(ASSETS),
        category_rates=dict(CATEGORY_RATES),
        projects=dict(PROJECTS),
    )
    return service.report(inputs, params)


def _both(records, params, now=NOW):
    return [_engine_report(records, params, now), _service_report(records, params, now)]


# ===========================================================================
# Engine and service agree
# ===========================================================================


class TestPathsAgree:
    @CONTRACT_SETTINGS
    @given(records=record_sets(), group_by=st.sampled_from(list(GroupBy)))
    def test_same_lines_groups_and_series(self, records, group_by):
        engine, service = _both(records, _params(group_by=group_by))
        assert engine.lines == service.lines
        assert engine.groups == service.groups
        assert engine.series == service.series
        assert engine.now == service.now == NOW


# ===========================================================================
# Properties
# ===========================================================================


class TestCeilHourBilling:
    def test_boundaries(self):
        assert billable_hours(1) == 1
        assert billable_hours(3_600_000) == 1
        assert billable_hours(3_600_001) == 2
        assert billable_hours(0) == 0
        assert billable_hours(-5) == 0


class TestReportProperties:
    @CONTRACT_SETTINGS
    @given(records=record_sets())
    def test_numeric_snapshot_always_wins(self, records):
        for report in _both(records, _params()):
            by_id = {r.record_id: r for r in records}
            for line in report.lines:
                snapshot = by_id[line.log_id].snapshot_rate_cents
                if isinstance(snapshot, (int, float)):
                    assert line.rate_source == RateSource.SNAPSHOT
                else:
                    assert line.rate_source != RateSource.SNAPSHOT

    @CONTRACT_SETTINGS
    @given(records=record_sets())
    def test_lines_are_already_clipped(self, records):
        for report in _both(records, _params()):
            for line in report.lines:
                again = clip_interval(line.start, line.end, WINDOW)
                assert (again.start, again.end) == (line.start, line.end)
                assert line.billable_hours >= 1
                assert line.cost_cents == line.billable_hours * line.hourly_rate_cents
                assert line.hourly_rate_cents >= 0

    @CONTRACT_SETTINGS
    @given(records=record_sets(), group_by=st.sampled_from(list(GroupBy)))
    def test_group_rate_none_iff_mixed(self, records, group_by):
        for report in _both(records, _params(group_by=group_by)):
            for group in report.groups:
                distinct = {line.hourly_rate_cents for line in group.lines}
                assert (group.hourly_rate_cents is None) == (len(distinct) >= 2)
                assert group.cost_cents == sum(line.cost_cents for line in group.lines)
            assert sum(g.cost_cents for g in report.groups) == report.total_cost_cents

    @CONTRACT_SETTINGS
    @given(records=record_sets())
    def test_daily_series_matches_lines(self, records):
        for report in _both(records, _params()):
            assert len(report.series) == (WINDOW.range_end.date() - WINDOW.range_start.date()).days + 1
            for point in report.series:
                expected = sum(ln.cost_cents for ln in report.lines if ln.start.date() == point.day)
                assert point.cost_cents == expected

    @CONTRACT_SETTINGS
    @given(records=record_sets())
    def test_estimated_lines_never_pass_now(self, records):
        for report in _both(records, _params()):
            for line in report.lines:
                if line.estimated:
                    assert line.end <= min(NOW, WINDOW.range_end)

    @CONTRACT_SETTINGS
    @given(records=record_sets(), extra=occupancy_records("log-extra"))
    def test_utilization_bounded_and_monotonic(self, records, extra):
        asset_ids = list(ASSETS)
        before = compute_utilization(records, asset_ids, WINDOW, NOW)
        after = compute_utilization(records + [extra], asset_ids, WINDOW, NOW)
        assert Decimal(0) <= before.ratio <= Decimal(1)
        assert Decimal(0) <= after.ratio <= Decimal(1)
        assert after.occupied >= before.occupied
        assert after.ratio >= before.ratio

    @given(end_offset=st.integers(-1000, 1000))
    def test_completed_always_completed(self, end_offset):
        record = OccupancyRecord(
            record_id="log-1",
            asset_id="a1",
            start_time=NOW - HOUR,
            end_time=NOW + end_offset * MINUTE,
            status="completed",
        )
        assert resolve_status(record, NOW) == UsageStatus.COMPLETED


# ===========================================================================
# Worked scenarios
# ===========================================================================


class TestScenarios:
    def test_one_minute_bills_a_full_hour_at_snapshot_rate(self):
        record = OccupancyRecord(
            record_id="log-a",
            asset_id="a1",
            start_time="2026-01-01T00:00Z",
            end_time="2026-01-01T00:01Z",
            status="completed",
            snapshot_rate_cents=500,
        )
        for report in _both([record], _params(include_in_progress=False)):
            (line,) = report.lines
            assert line.billable_hours == 1
            assert line.cost_cents == 500
            assert line.rate_source == RateSource.SNAPSHOT

    def test_overlapping_records_merge_for_utilization(self):
        records = [
            OccupancyRecord(
                record_id="log-b1", asset_id="a1", status="completed",
                start_time=T0 + 2 * HOUR, end_time=T0 + 3 * HOUR,
            ),
            OccupancyRecord(
                record_id="log-b2", asset_id="a1", status="completed",
                start_time=T0 + 150 * MINUTE, end_time=T0 + 4 * HOUR,
            ),
        ]
        window = ReportWindow(T0, T0 + 10 * HOUR)
        result = compute_utilization(records, ["a1"], window, NOW)
        assert result.occupied == 2 * HOUR
        assert result.ratio == Decimal("0.2")

    def test_open_in_progress_estimated_to_clamped_now(self):
        now = T0 + 5 * HOUR + 30 * MINUTE
        record = OccupancyRecord(
            record_id="log-c",
            asset_id="a1",
            start_time=T0 + 2 * HOUR,
            status="in-progress",
        )
        window = ReportWindow(T0, T0 + 10 * HOUR)
        for report in _both([record], _params(window=window), now=now):
            (line,) = report.lines
            assert line.estimated is True
            assert line.end == now
            assert line.billable_hours == 4
            assert line.cost_cents == 4 * 1200

    def test_unlinked_record_grouped_under_caller_label(self):
        record = OccupancyRecord(
            record_id="log-d",
            asset_id="a1",
            start_time=T0 + HOUR,
            end_time=T0 + 2 * HOUR,
            status="completed",
        )
        params = _params(group_by=GroupBy.PROJECT, include_unlinked=True)
        for report in _both([record], params):
            (group,) = report.groups
            assert group.key == "unlinked"
            assert group.label == "No project"
            assert report.series[0].day == date(2026, 1, 1)
