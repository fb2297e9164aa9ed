"""
Tests for performance analysis.

Tests cover:
- Case, activity and transition timing
- Bottleneck ranking by impact
- Throughput
- SLA compliance for case duration and transitions
- Trend detection and outliers
"""

from datetime import datetime, timedelta

import pytest

from process_mining.cancellation import CancellationToken
from process_mining.errors import InvalidInputError, OperationCancelledError
from process_mining.performance import (
    CASE_DURATION_LABEL,
    CASE_DURATION_SLA,
    PerformanceAnalyzer,
    sla_status,
    transition_key,
)

from conftest import UTC, build_log

HOUR = timedelta(hours=1)
HOUR_MS = 3600 * 1000
BASE = datetime(2025, 1, 6, 8, 0, tzinfo=UTC)


def two_step_cases(durations, start=BASE, gap=timedelta(days=1)):
    """One A -> B case per duration, each starting ``gap`` after the previous one."""
    return build_log({
        f"C{i}": [("A", start + gap * i, "U1"), ("B", start + gap * i + d, "U2")]
        for i, d in enumerate(durations)
    })


class TestHelpers:
    """Module helpers."""

    def test_transition_key(self):
        """Transition keys use an arrow."""
        assert transition_key("A", "B") == "A → B"

    @pytest.mark.parametrize("rate,status", [(100, "met"), (95, "met"), (90, "at_risk"), (80, "at_risk"), (79.9, "breached")])
    def test_sla_status(self, rate, status):
        """Status thresholds at 95 and 80 percent."""
        assert sla_status(rate) == status


class TestTiming:
    """Case, activity and transition statistics."""

    def test_case_durations(self, o2c_log):
        """Each case duration spans first to last event."""
        result = PerformanceAnalyzer().analyze(o2c_log)
        durations = {c["caseId"]: c["durationMs"] for c in result.case_durations["cases"]}
        assert durations["SO-1001"] == int((datetime(2025, 2, 1, 12, tzinfo=UTC)
                                           - datetime(2025, 1, 10, 8, tzinfo=UTC)).total_seconds() * 1000)
        assert result.case_durations["stats"]["count"] == 3

    def test_activity_stats(self, o2c_log):
        """Occurrences, resources and service times per activity."""
        stats = PerformanceAnalyzer().analyze(o2c_log).activity_stats
        assert stats["Credit Check"]["count"] == 4
        assert stats["Credit Check"]["resourceCount"] == 1
        assert stats["Create Sales Order"]["serviceTimeStats"]["median"] == HOUR_MS
        # last activity of every case has no successor
        assert stats["Receive Payment"]["serviceTimeStats"]["count"] == 0

    def test_transition_stats(self, o2c_log):
        """Transition counts match the directly-follows counts."""
        transitions = PerformanceAnalyzer().analyze(o2c_log).transition_stats
        entry = transitions[transition_key("Create Sales Order", "Credit Check")]
        assert entry["count"] == 3
        assert entry["waitTimeStats"]["median"] == HOUR_MS
        assert "waitTimes" not in entry

    def test_retain_raw(self):
        """Raw wait times are kept on request but never serialized."""
        result = PerformanceAnalyzer(retain_raw=True).analyze(two_step_cases([HOUR, 2 * HOUR]))
        assert result.transition_stats["A → B"]["waitTimes"] == [HOUR_MS, 2 * HOUR_MS]
        assert "waitTimes" not in result.to_dict()["transitionStats"]["A → B"]


class TestBottlenecks:
    """Bottleneck ranking."""

    def test_slow_transition_first(self):
        """B -> C takes ten hours and leads the ranking."""
        log = build_log({"C1": [("A", BASE, None), ("B", BASE + HOUR, None), ("C", BASE + 11 * HOUR, None)]})
        bottlenecks = PerformanceAnalyzer().analyze(log).bottlenecks
        assert bottlenecks[0]["location"] == "B → C"
        assert bottlenecks[0]["type"] == "transition"
        assert bottlenecks[0]["impact"] == 10 * HOUR_MS
        assert [b["impact"] for b in bottlenecks] == sorted((b["impact"] for b in bottlenecks), reverse=True)

    def test_impact_weights_frequency(self):
        """A frequent moderate wait outranks a rare long one."""
        cases = {f"F{i}": [("A", BASE, None), ("B", BASE + 3 * HOUR, None)] for i in range(5)}
        cases["R"] = [("X", BASE, None), ("Y", BASE + 10 * HOUR, None)]
        bottlenecks = PerformanceAnalyzer().analyze(build_log(cases)).bottlenecks
        assert bottlenecks[0]["location"] == "A → B"
        assert bottlenecks[0]["frequency"] == 5


class TestThroughput:
    """Arrival rate statistics."""

    def test_arrival_rate(self):
        """Two cases ten days apart arrive at 0.2 per day."""
        throughput = PerformanceAnalyzer().analyze(two_step_cases([HOUR, HOUR], gap=timedelta(days=10))).throughput
        assert throughput["totalCases"] == 2
        assert throughput["timeRangeDays"] == 10
        assert throughput["arrivalRatePerDay"] == 0.2
        assert throughput["casesPerDay"]["count"] == 2

    def test_single_case(self):
        """Fewer than two cases give zero throughput."""
        throughput = PerformanceAnalyzer().analyze(two_step_cases([HOUR])).throughput
        assert throughput["arrivalRatePerDay"] == 0
        assert throughput["casesPerDay"] == 0


class TestSLA:
    """SLA compliance."""

    def test_case_duration_breach(self):
        """One of three cases exceeds five hours."""
        log = two_step_cases([2 * HOUR, 2 * HOUR, 20 * HOUR])
        sla = PerformanceAnalyzer().analyze(log, {CASE_DURATION_SLA: {"target": 5, "unit": "hours"}}).sla_compliance
        assert len(sla) == 1
        entry = sla[0]
        assert entry["sla"] == CASE_DURATION_LABEL
        assert entry["breachCount"] == 1
        assert entry["totalCount"] == 3
        assert entry["complianceRate"] == 66.67
        assert entry["status"] == "breached"
        assert entry["severity"] == "critical"
        assert entry["targetMs"] == 5 * HOUR_MS

    def test_transition_without_raw_data(self):
        """Without raw wait times transition breaches cannot be counted."""
        log = two_step_cases([HOUR, HOUR, 10 * HOUR])
        sla = PerformanceAnalyzer().analyze(log, {"A → B": {"target": 5, "unit": "hours"}}).sla_compliance
        assert sla[0]["breachCount"] == 0
        assert sla[0]["complianceRate"] == 100.0
        assert sla[0]["status"] == "met"
        assert sla[0]["severity"] == "warning"

    def test_transition_with_raw_data(self):
        """With retained wait times the slow case is a breach."""
        log = two_step_cases([HOUR, HOUR, 10 * HOUR])
        sla = PerformanceAnalyzer(retain_raw=True).analyze(
            log, {"A → B": {"target": 5, "unit": "hours", "severity": "critical"}}
        ).sla_compliance
        assert sla[0]["breachCount"] == 1
        assert sla[0]["complianceRate"] == 66.67
        assert sla[0]["status"] == "breached"

    def test_unknown_transition(self):
        """Targets for transitions that never occur report no data."""
        sla = PerformanceAnalyzer().analyze(two_step_cases([HOUR]), {"X → Y": {"target": 1}}).sla_compliance
        assert sla[0]["status"] == "no_data"
        assert sla[0]["complianceRate"] is None

    @pytest.mark.parametrize("targets", [
        {"A → B": {"target": "fast"}},
        {"A → B": {"target": 1, "severity": "blocker"}},
        {"A → B": 5},
        {"A → B": {"target": 1, "unit": "fortnights"}},
        {"A → B": {"target": 1, "unit": 3}},
    ])
    def test_invalid_targets(self, targets):
        """Malformed SLA targets are rejected."""
        with pytest.raises(InvalidInputError):
            PerformanceAnalyzer().analyze(two_step_cases([HOUR]), targets)


class TestTrends:
    """Trend detection."""

    def test_degrading_monthly(self):
        """Durations growing month over month are a degrading trend."""
        cases = {}
        for i, hours in enumerate([1, 2, 3, 4]):
            start = datetime(2025, i + 1, 5, 8, 0, tzinfo=UTC)
            cases[f"M{i}"] = [("A", start, None), ("B", start + hours * HOUR, None)]
        trends = PerformanceAnalyzer().analyze(build_log(cases)).trends
        assert trends["granularity"] == "month"
        assert trends["periodCount"] == 4
        assert [p["period"] for p in trends["periods"]] == ["2025-01", "2025-02", "2025-03", "2025-04"]
        assert trends["trend"] == "degrading"
        assert trends["slope"] == pytest.approx(HOUR_MS)

    def test_improving_monthly(self):
        """Shrinking durations are an improving trend."""
        cases = {}
        for i, hours in enumerate([8, 6, 4, 2]):
            start = datetime(2025, i + 1, 5, 8, 0, tzinfo=UTC)
            cases[f"M{i}"] = [("A", start, None), ("B", start + hours * HOUR, None)]
        assert PerformanceAnalyzer().analyze(build_log(cases)).trends["trend"] == "improving"

    def test_stable_with_few_periods(self):
        """Fewer than three buckets are always stable."""
        trends = PerformanceAnalyzer().analyze(two_step_cases([HOUR, 9 * HOUR], gap=timedelta(hours=2))).trends
        assert trends["granularity"] == "day"
        assert trends["trend"] == "stable"

    def test_weekly_granularity(self):
        """Three weeks inside one month switch to weekly buckets."""
        log = two_step_cases([HOUR, HOUR, HOUR], start=datetime(2025, 3, 3, 8, tzinfo=UTC), gap=timedelta(days=7))
        assert PerformanceAnalyzer().analyze(log).trends["granularity"] == "week"

    def test_sunday_start_keeps_week_order(self):
        """A case starting on a Sunday stays in its own ISO week."""
        cases = {}
        # Mon 6 Jan, Sun 5 Jan, Mon 13 Jan; durations grow with the week
        for case_id, day, hours in [("C1", 6, 2), ("C2", 5, 1), ("C3", 13, 3)]:
            start = datetime(2025, 1, day, 8, 0, tzinfo=UTC)
            cases[case_id] = [("A", start, None), ("B", start + hours * HOUR, None)]
        trends = PerformanceAnalyzer().analyze(build_log(cases)).trends
        labels = [p["period"] for p in trends["periods"]]
        assert trends["granularity"] == "week"
        assert labels == ["2025-W01", "2025-W02", "2025-W03"]
        assert trends["trend"] == "degrading"
        assert trends["slope"] == pytest.approx(HOUR_MS)


class TestOutliers:
    """IQR outlier detection."""

    def test_slow_outlier(self):
        """One 100-hour case among 1-hour cases."""
        log = two_step_cases([HOUR] * 10 + [100 * HOUR])
        outliers = PerformanceAnalyzer().analyze(log).case_durations["outliers"]
        assert len(outliers) == 1
        assert outliers[0]["caseId"] == "C10"
        assert outliers[0]["direction"] == "slow"
        assert outliers[0]["deviationFromMedian"] == 9900

    def test_small_sample(self):
        """Fewer than four cases are never outliers."""
        log = two_step_cases([HOUR, HOUR, 100 * HOUR])
        assert PerformanceAnalyzer().analyze(log).case_durations["outliers"] == []


class TestEdgeCases:
    """Empty input, cancellation and serialization."""

    def test_empty_log(self, empty_log):
        """Empty logs give zeroed results."""
        result = PerformanceAnalyzer().analyze(empty_log)
        assert result.case_durations["stats"]["count"] == 0
        assert result.bottlenecks == []
        assert result.trends["granularity"] is None
        assert result.get_summary()["topBottleneck"] is None

    def test_rejects_non_log(self):
        """Only EventLogs are analyzed."""
        with pytest.raises(InvalidInputError):
            PerformanceAnalyzer().analyze(None)

    def test_negative_trend_ratio(self):
        """The trend ratio cannot be negative."""
        with pytest.raises(InvalidInputError):
            PerformanceAnalyzer(trend_threshold_ratio=-1)

    def test_cancellation(self, o2c_log):
        """A cancelled token stops the analysis."""
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelledError):
            PerformanceAnalyzer().analyze(o2c_log, cancel_token=token)

    def test_summary(self, o2c_log):
        """Summary carries counts and the top bottleneck."""
        summary = PerformanceAnalyzer().analyze(o2c_log).to_dict()["summary"]
        assert summary["caseCount"] == 3
        assert summary["eventCount"] == 20
        assert summary["topBottleneck"] is not None
