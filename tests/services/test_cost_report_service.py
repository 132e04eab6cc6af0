"""
CostReportService tests against an in-memory SQLite database.

Covers:
- Inputs loaded through the selector feed the report unchanged
- Labels default from the active configuration
- One clock sample per report
- Drill-down returns exactly a group's lines
- Text timestamps that cannot be parsed are skipped, not raised
- Unknown stored statuses load as not-started instead of failing a report
"""

from datetime import datetime, timezone

import pytest

from usage_engines import UNLINKED_KEY
from usage_kernel.domain.clock import SequentialClock
from usage_kernel.domain.values import (
    GroupBy,
    RateSource,
    ReportLabels,
    ReportWindow,
    UsageStatus,
)
from usage_kernel.exceptions import InvalidReportWindowError, UnsupportedGroupByError
from usage_kernel.selectors.usage_selector import UsageSelector
from usage_services import CostReportService

RANGE_START = "2026-01-01T00:00:00Z"
RANGE_END = "2026-01-03T00:00:00Z"


@pytest.fixture
def seeded(session, seed):
    seed.asset("a1", name="Chamber", category="thermal", rate=900)
    seed.asset("a2", name="Shaker", category=None, rate=400)
    seed.category_rate("thermal", 1200)
    seed.project("p1", "Apollo")
    seed.test_project("tp1", "Thermal cycling")
    seed.log("log-1", "a1", "2026-01-01T01:00:00Z", "2026-01-01T02:30:00Z",
             project_id="p1", user="alice", test_project_id="tp1")
    seed.log("log-2", "a2", "2026-01-01T05:00:00Z", "2026-01-01T06:00:00Z",
             user="bob", hourly_rate_cents_snapshot=350)
    seed.log("log-3", "a1", "2026-01-02T09:00:00Z", None,
             status="in-progress", project_id="p1", user="alice")
    seed.log("log-4", "a2", "not a timestamp", "2026-01-01T08:00:00Z")
    seed.log("log-5", "a1", "2026-01-05T00:00:00Z", "2026-01-05T01:00:00Z")
    return session


class TestCostReportService:
    def test_report_from_database(self, seeded, clock, config):
        service = CostReportService(clock=clock, config=config)
        params = service.params(RANGE_START, RANGE_END, group_by=GroupBy.PROJECT)
        report = service.report(service.load_inputs(seeded, params.window), params)

        assert [line.log_id for line in report.lines] == ["log-2", "log-1"]
        by_id = {line.log_id: line for line in report.lines}
        assert by_id["log-1"].cost_cents == 2 * 1200
        assert by_id["log-1"].test_project_name == "Thermal cycling"
        assert by_id["log-2"].rate_source == RateSource.SNAPSHOT
        assert by_id["log-2"].cost_cents == 350
        assert {g.key for g in report.groups} == {"p1", UNLINKED_KEY}
        assert report.now == clock.now()

    def test_labels_default_from_config(self, seeded, clock, config):
        service = CostReportService(clock=clock, config=config)
        params = service.params(RANGE_START, RANGE_END, group_by="category")
        assert params.labels == ReportLabels(
            unlinked=config.reporting.unlinked_label,
            uncategorized=config.reporting.uncategorized_label,
            user_placeholder=config.reporting.user_placeholder,
        )
        report = service.report(service.load_inputs(seeded), params)
        assert {g.label for g in report.groups} == {"thermal", "Uncategorized"}

    def test_caller_labels_win(self, seeded, clock, config):
        service = CostReportService(clock=clock, config=config)
        labels = ReportLabels(unlinked="Sans projet")
        params = service.params(RANGE_START, RANGE_END, labels=labels)
        report = service.report(service.load_inputs(seeded), params)
        unlinked = next(g for g in report.groups if g.key == UNLINKED_KEY)
        assert unlinked.label == "Sans projet"

    def test_in_progress_estimated_with_single_clock_sample(self, seeded, config):
        clock = SequentialClock([
            datetime(2026, 1, 2, 12, 0, tzinfo=timezone.utc),
            datetime(2026, 1, 2, 20, 0, tzinfo=timezone.utc),
        ])
        service = CostReportService(clock=clock, config=config)
        params = service.params(RANGE_START, RANGE_END, include_in_progress=True)
        report = service.report(service.load_inputs(seeded), params)

        estimated = [line for line in report.lines if line.estimated]
        assert [line.log_id for line in estimated] == ["log-3"]
        assert estimated[0].end == datetime(2026, 1, 2, 12, 0, tzinfo=timezone.utc)
        assert estimated[0].billable_hours == 3
        assert clock.calls == 1

    def test_project_filter(self, seeded, clock, config):
        service = CostReportService(clock=clock, config=config)
        params = service.params(RANGE_START, RANGE_END, project_filter="p1")
        report = service.report(service.load_inputs(seeded), params)
        assert [line.log_id for line in report.lines] == ["log-1"]

    def test_drill_down_matches_group(self, seeded, clock, config):
        service = CostReportService(clock=clock, config=config)
        params = service.params(RANGE_START, RANGE_END, group_by=GroupBy.USER)
        inputs = service.load_inputs(seeded)
        report = service.report(inputs, params)
        for group in report.groups:
            lines = service.drill_down(inputs, params, group.key)
            assert tuple(lines) == group.lines

    def test_report_logs_carry_report_id(self, seeded, clock, config, captured_logs):
        service = CostReportService(clock=clock, config=config)
        params = service.params(RANGE_START, RANGE_END)
        service.report(service.load_inputs(seeded), params)
        logs = captured_logs()
        started = next(r for r in logs if r["message"] == "cost_report_started")
        completed = next(r for r in logs if r["message"] == "cost_report_completed")
        assert started["report_id"] == completed["report_id"]
        assert completed["line_count"] == 2

    def test_invalid_parameters_raise(self, clock, config):
        service = CostReportService(clock=clock, config=config)
        with pytest.raises(UnsupportedGroupByError):
            service.params(RANGE_START, RANGE_END, group_by="team")
        with pytest.raises(InvalidReportWindowError) as exc_info:
            service.params("yesterday", RANGE_END)
        assert exc_info.value.bound == "range_start"

    def test_unknown_stored_status_does_not_fail_report(self, seeded, seed, clock, config):
        seed.log("log-6", "a1", "2026-01-02T10:00:00Z", None, status="cancelled")
        seed.log("log-7", "a2", "2026-01-02T01:00:00Z", "2026-01-02T02:00:00Z", status="archived")
        service = CostReportService(clock=clock, config=config)
        params = service.params(RANGE_START, RANGE_END, include_in_progress=True)
        report = service.report(service.load_inputs(seeded), params)

        by_id = {line.log_id: line for line in report.lines}
        assert "log-6" not in by_id
        assert by_id["log-7"].estimated is False
        assert by_id["log-7"].billable_hours == 1
        assert by_id["log-3"].estimated is True


class TestUsageSelector:
    def test_window_prunes_records_starting_after_end(self, seeded):
        selector = UsageSelector(seeded)
        window = ReportWindow(RANGE_START, RANGE_END)
        ids = [r.record_id for r in selector.list_records(window=window)]
        assert "log-5" not in ids
        assert "log-4" in ids

    def test_completed_records_need_end_time(self, seeded):
        ids = [r.record_id for r in UsageSelector(seeded).list_completed_records()]
        assert "log-3" not in ids
        assert set(ids) == {"log-1", "log-2", "log-4", "log-5"}

    def test_lookups(self, seeded):
        selector = UsageSelector(seeded)
        assert selector.category_rates() == {"thermal": 1200}
        assert selector.get_asset("a2").category_key == ""
        assert selector.get_asset("missing") is None
        assert selector.projects()["p1"].name == "Apollo"
        assert selector.get_record("log-1").user == "alice"

    def test_unknown_statuses_load_leniently(self, seeded, seed, captured_logs):
        seed.log("log-6", "a1", "2026-01-02T10:00:00Z", None, status="cancelled")
        seed.asset("a3", name="Retired rig", status="retired")
        selector = UsageSelector(seeded)

        assert selector.get_record("log-6").status is UsageStatus.NOT_STARTED
        assert selector.get_asset("a3").status is None
        warnings = {r["message"] for r in captured_logs() if r["level"] == "WARNING"}
        assert {"record_status_unknown", "asset_status_unknown"} <= warnings
