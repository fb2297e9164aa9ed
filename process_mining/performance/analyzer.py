"""
Performance Analysis for SAP Event Logs.

Computes timing statistics for cases, activities and transitions, ranks
bottlenecks, measures throughput, checks SLA targets, detects trends and
flags outlier cases.

Timing model:
- Case duration: last event timestamp minus first event timestamp
- Service time of an event: time until the next event of the same case
- Wait time of a transition A -> B: the same delta, keyed by the pair

All durations are integer milliseconds and every statistics block comes
from ``process_mining.stats.describe``.

Bottleneck ranking follows the "time lost" view used in SAP performance
reviews: a slow step that happens rarely matters less than a moderately
slow step on every order, so entries are ranked by median x frequency.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from ..cancellation import CancellationToken, check_cancelled
from ..errors import InvalidInputError
from ..eventlog import EventLog
from ..eventlog.timestamps import format_iso
from ..stats import MS_PER_DAY, UNIT_TO_MS, describe, linear_slope, percentile, round_pct, to_ms

logger = logging.getLogger(__name__)

CASE_DURATION_SLA = "__case_duration__"
CASE_DURATION_LABEL = "Case Duration"

SLA_MET_RATE = 95
SLA_AT_RISK_RATE = 80
SEVERITIES = ("warning", "critical")

TOP_BOTTLENECKS_PER_KIND = 10
MIN_TREND_PERIODS = 3
OUTLIER_IQR_FACTOR = 1.5
MIN_OUTLIER_SAMPLE = 4


def transition_key(source: str, target: str) -> str:
    return f"{source} → {target}"


def sla_status(compliance_rate: float) -> str:
    if compliance_rate >= SLA_MET_RATE:
        return "met"
    if compliance_rate >= SLA_AT_RISK_RATE:
        return "at_risk"
    return "breached"


@dataclass
class PerformanceResult:
    """
    Output of PerformanceAnalyzer.analyze.

    Attributes:
        case_durations: {cases, stats, outliers}
        activity_stats: activity -> {count, resourceCount, serviceTimeStats}
        transition_stats: "A → B" -> {from, to, count, waitTimeStats}
        bottlenecks: Transition and activity entries sorted by impact
        throughput: Arrival statistics
        sla_compliance: One entry per SLA target
        trends: {granularity, periods, periodCount, trend, slope}
    """
    case_durations: Dict[str, Any]
    activity_stats: Dict[str, Dict[str, Any]]
    transition_stats: Dict[str, Dict[str, Any]]
    bottlenecks: List[Dict[str, Any]]
    throughput: Dict[str, Any]
    sla_compliance: List[Dict[str, Any]]
    trends: Dict[str, Any]
    case_count: int = 0
    event_count: int = 0

    def get_summary(self) -> Dict[str, Any]:
        top = self.bottlenecks[0] if self.bottlenecks else None
        stats = self.case_durations["stats"]
        return {
            "caseCount": self.case_count,
            "eventCount": self.event_count,
            "avgCaseDurationMs": stats["mean"],
            "medianCaseDurationMs": stats["median"],
            "p90CaseDurationMs": stats["p90"],
            "topBottleneck": top["location"] if top else None,
            "topBottleneckMedianMs": (top.get("medianWaitMs") or top.get("medianServiceMs") or 0) if top else 0,
            "throughputPerDay": self.throughput["arrivalRatePerDay"],
            "slaBreaches": sum(1 for s in self.sla_compliance if s["status"] == "breached"),
            "trend": self.trends["trend"],
            "outlierCount": len(self.case_durations["outliers"]),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (raw wait vectors are never included)."""
        transitions = {
            key: {k: v for k, v in entry.items() if k != "waitTimes"}
            for key, entry in self.transition_stats.items()
        }
        return {
            "summary": self.get_summary(),
            "caseDurations": {
                "stats": self.case_durations["stats"],
                "outlierCount": len(self.case_durations["outliers"]),
                "outliers": self.case_durations["outliers"][:20],
            },
            "activityStats": self.activity_stats,
            "transitionStats": transitions,
            "bottlenecks": self.bottlenecks[:20],
            "throughput": self.throughput,
            "slaCompliance": self.sla_compliance,
            "trends": self.trends,
        }


@dataclass
class _TransitionAccumulator:
    source: str
    target: str
    count: int = 0
    wait_times: List[int] = field(default_factory=list)


class PerformanceAnalyzer:
    """
    Timing, bottleneck, throughput, SLA, trend and outlier analysis.

    Transition SLAs can only count breaches when raw wait times are kept;
    by default they are not, so a transition SLA reports zero breaches and
    100% compliance. Pass ``retain_raw=True`` to count them.

    Example:
        analyzer = PerformanceAnalyzer()
        result = analyzer.analyze(log, {
            "__case_duration__": {"target": 5, "unit": "days", "severity": "critical"},
            "Create Delivery → Goods Issue": {"target": 24, "unit": "hours"},
        })
        print(result.get_summary()["topBottleneck"])
    """

    def __init__(
        self,
        retain_raw: bool = False,
        trend_threshold_ratio: float = 0.05,
        logger: Optional[logging.Logger] = None,
    ):
        if trend_threshold_ratio < 0:
            raise InvalidInputError("trend_threshold_ratio must not be negative")
        self.retain_raw = retain_raw
        self.trend_threshold_ratio = trend_threshold_ratio
        self.logger = logger or logging.getLogger(__name__)

    def analyze(
        self,
        event_log: EventLog,
        sla_targets: Optional[Dict[str, Dict[str, Any]]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> PerformanceResult:
        """
        Run every performance measure over an event log.

        Args:
            event_log: Log to analyze
            sla_targets: label -> {target, unit, severity}; the label
                ``__case_duration__`` targets case cycle time, every other
                label must be a transition key "A → B"
            cancel_token: Optional token polled between traces

        Returns:
            PerformanceResult
        """
        if not isinstance(event_log, EventLog):
            raise InvalidInputError("PerformanceAnalyzer.analyze expects an EventLog")
        sla_targets = sla_targets or {}
        self._validate_sla_targets(sla_targets)

        self.logger.info(f"Analyzing performance for {event_log.get_case_count()} cases")

        case_durations = self._calculate_case_durations(event_log, cancel_token)
        activity_stats, transitions = self._calculate_step_stats(event_log, cancel_token)
        transition_stats = {
            key: self._transition_entry(acc) for key, acc in transitions.items()
        }
        bottlenecks = self._detect_bottlenecks(transition_stats, activity_stats)
        throughput = self._calculate_throughput(event_log)
        sla = self._check_sla_compliance(transition_stats, case_durations, sla_targets)
        trends = self._analyze_trends(event_log)

        return PerformanceResult(
            case_durations=case_durations,
            activity_stats=activity_stats,
            transition_stats=transition_stats,
            bottlenecks=bottlenecks,
            throughput=throughput,
            sla_compliance=sla,
            trends=trends,
            case_count=event_log.get_case_count(),
            event_count=event_log.get_event_count(),
        )

    @staticmethod
    def _validate_sla_targets(sla_targets: Dict[str, Dict[str, Any]]) -> None:
        if not isinstance(sla_targets, dict):
            raise InvalidInputError("SLA targets must be a mapping of label -> target definition")
        for label, definition in sla_targets.items():
            if not isinstance(definition, dict) or not isinstance(definition.get("target"), (int, float)):
                raise InvalidInputError(f"SLA {label!r} needs a numeric target")
            severity = definition.get("severity")
            if severity is not None and severity not in SEVERITIES:
                raise InvalidInputError(f"SLA {label!r} severity must be one of {SEVERITIES}")
            unit = definition.get("unit")
            if unit is not None and (not isinstance(unit, str) or unit.strip().lower() not in UNIT_TO_MS):
                raise InvalidInputError(f"SLA {label!r} has unknown unit {unit!r}")

    # ── Durations ───────────────────────────────────────────────────────

    def _calculate_case_durations(
        self, event_log: EventLog, cancel_token: Optional[CancellationToken]
    ) -> Dict[str, Any]:
        cases = []
        for case_id, trace in event_log.traces.items():
            check_cancelled(cancel_token, "case duration analysis")
            if not trace.events:
                continue
            duration = trace.get_duration()
            if duration < 0:
                continue
            cases.append({
                "caseId": case_id,
                "durationMs": duration,
                "startTime": format_iso(trace.get_start_time()),
                "endTime": format_iso(trace.get_end_time()),
                "eventCount": len(trace),
            })

        values = [c["durationMs"] for c in cases]
        stats = describe(values)
        return {"cases": cases, "stats": stats, "outliers": self._detect_outliers(cases, values, stats)}

    def _calculate_step_stats(
        self, event_log: EventLog, cancel_token: Optional[CancellationToken]
    ) -> Tuple[Dict[str, Dict[str, Any]], Dict[str, _TransitionAccumulator]]:
        occurrences: Dict[str, int] = defaultdict(int)
        service_times: Dict[str, List[int]] = defaultdict(list)
        resources: Dict[str, set] = defaultdict(set)
        transitions: Dict[str, _TransitionAccumulator] = {}

        for trace in event_log:
            check_cancelled(cancel_token, "activity statistics")
            events = trace.events
            for i, event in enumerate(events):
                occurrences[event.activity] += 1
                if event.resource:
                    resources[event.activity].add(event.resource)
                if i + 1 < len(events):
                    nxt = events[i + 1]
                    delta = nxt.timestamp_ms - event.timestamp_ms
                    service_times[event.activity].append(delta)
                    key = transition_key(event.activity, nxt.activity)
                    acc = transitions.get(key)
                    if acc is None:
                        acc = transitions[key] = _TransitionAccumulator(event.activity, nxt.activity)
                    acc.count += 1
                    acc.wait_times.append(delta)

        activity_stats = {
            activity: {
                "count": count,
                "resourceCount": len(resources[activity]),
                "serviceTimeStats": describe(service_times[activity]),
            }
            for activity, count in occurrences.items()
        }
        return activity_stats, transitions

    def _transition_entry(self, acc: _TransitionAccumulator) -> Dict[str, Any]:
        entry = {
            "from": acc.source,
            "to": acc.target,
            "count": acc.count,
            "waitTimeStats": describe(acc.wait_times),
        }
        if self.retain_raw:
            entry["waitTimes"] = list(acc.wait_times)
        return entry

    # ── Bottlenecks ─────────────────────────────────────────────────────

    @staticmethod
    def _detect_bottlenecks(
        transition_stats: Dict[str, Dict[str, Any]],
        activity_stats: Dict[str, Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        """Top transitions by median wait plus top activities by median service, ranked by impact."""
        bottlenecks = []

        transitions = sorted(
            ((k, s) for k, s in transition_stats.items() if s["waitTimeStats"]["count"] > 0),
            key=lambda item: -item[1]["waitTimeStats"]["median"],
        )
        for key, stats in transitions[:TOP_BOTTLENECKS_PER_KIND]:
            wait = stats["waitTimeStats"]
            bottlenecks.append({
                "type": "transition",
                "location": key,
                "from": stats["from"],
                "to": stats["to"],
                "medianWaitMs": wait["median"],
                "meanWaitMs": wait["mean"],
                "p90WaitMs": wait["p90"],
                "frequency": stats["count"],
                "impact": wait["median"] * stats["count"],
            })

        activities = sorted(
            ((a, s) for a, s in activity_stats.items() if s["serviceTimeStats"]["count"] > 0),
            key=lambda item: -item[1]["serviceTimeStats"]["median"],
        )
        for activity, stats in activities[:TOP_BOTTLENECKS_PER_KIND]:
            service = stats["serviceTimeStats"]
            bottlenecks.append({
                "type": "activity",
                "location": activity,
                "medianServiceMs": service["median"],
                "meanServiceMs": service["mean"],
                "p90ServiceMs": service["p90"],
                "frequency": stats["count"],
                "impact": service["median"] * stats["count"],
            })

        bottlenecks.sort(key=lambda b: -b["impact"])
        return bottlenecks

    # ── Throughput ──────────────────────────────────────────────────────

    @staticmethod
    def _calculate_throughput(event_log: EventLog) -> Dict[str, Any]:
        starts = sorted(t.get_start_time() for t in event_log if t.events)
        if len(starts) < 2:
            return {
                "totalCases": len(starts),
                "timeRangeMs": 0,
                "timeRangeDays": 0,
                "arrivalRatePerDay": 0,
                "casesPerDay": 0,
                "casesPerWeek": 0,
                "casesPerMonth": 0,
            }

        time_range_ms = int((starts[-1] - starts[0]).total_seconds() * 1000)
        days = time_range_ms / MS_PER_DAY

        by_day: Dict[str, int] = defaultdict(int)
        by_week: Dict[str, int] = defaultdict(int)
        by_month: Dict[str, int] = defaultdict(int)
        for ts in starts:
            iso_year, iso_week, _ = ts.isocalendar()
            by_day[ts.strftime("%Y-%m-%d")] += 1
            by_week[f"{iso_year}-W{iso_week:02d}"] += 1
            by_month[ts.strftime("%Y-%m")] += 1

        return {
            "totalCases": len(starts),
            "timeRangeMs": time_range_ms,
            "timeRangeDays": round(days),
            "arrivalRatePerDay": round(len(starts) / days, 2) if days > 0 else 0,
            "casesPerDay": describe(list(by_day.values())),
            "casesPerWeek": describe(list(by_week.values())),
            "casesPerMonth": describe(list(by_month.values())),
        }

    # ── SLA ─────────────────────────────────────────────────────────────

    def _check_sla_compliance(
        self,
        transition_stats: Dict[str, Dict[str, Any]],
        case_durations: Dict[str, Any],
        sla_targets: Dict[str, Dict[str, Any]],
    ) -> List[Dict[str, Any]]:
        results = []
        for label, definition in sla_targets.items():
            if label == CASE_DURATION_SLA:
                continue
            unit = definition.get("unit") or "ms"
            severity = definition.get("severity") or "warning"
            transition = transition_stats.get(label)
            if transition is None:
                results.append({
                    "sla": label,
                    "target": definition["target"],
                    "targetUnit": unit,
                    "severity": severity,
                    "status": "no_data",
                    "measured": None,
                    "complianceRate": None,
                    "breachCount": 0,
                    "totalCount": 0,
                })
                continue

            target_ms = to_ms(definition["target"], unit)
            raw = transition.get("waitTimes")
            breaches = sum(1 for t in raw if t > target_ms) if raw is not None else 0
            total = transition["count"]
            rate = round_pct(total - breaches, total, default=100.0)
            wait = transition["waitTimeStats"]
            results.append({
                "sla": label,
                "target": definition["target"],
                "targetMs": target_ms,
                "targetUnit": unit,
                "severity": severity,
                "status": sla_status(rate),
                "measured": {"mean": wait["mean"], "median": wait["median"], "p90": wait["p90"]},
                "complianceRate": rate,
                "breachCount": breaches,
                "totalCount": total,
            })

        definition = sla_targets.get(CASE_DURATION_SLA)
        if definition:
            unit = definition.get("unit") or "ms"
            target_ms = to_ms(definition["target"], unit)
            durations = [c["durationMs"] for c in case_durations["cases"]]
            breaches = sum(1 for d in durations if d > target_ms)
            rate = round_pct(len(durations) - breaches, len(durations), default=100.0)
            results.append({
                "sla": CASE_DURATION_LABEL,
                "target": definition["target"],
                "targetMs": target_ms,
                "targetUnit": unit,
                "severity": definition.get("severity") or "critical",
                "status": sla_status(rate) if durations else "no_data",
                "measured": case_durations["stats"],
                "complianceRate": rate,
                "breachCount": breaches,
                "totalCount": len(durations),
            })

        return results

    # ── Trends ──────────────────────────────────────────────────────────

    @staticmethod
    def _bucket(ts: datetime, granularity: str) -> Tuple[str, int]:
        """Label and ordinal position of the calendar bucket holding ``ts``."""
        if granularity == "month":
            return ts.strftime("%Y-%m"), ts.year * 12 + ts.month
        if granularity == "week":
            iso_year, iso_week, _ = ts.isocalendar()
            # Ordinal 1 is a Monday, so shifting by one aligns the weeks with ISO weeks
            return f"{iso_year}-W{iso_week:02d}", (ts.toordinal() - 1) // 7
        return ts.strftime("%Y-%m-%d"), ts.toordinal()

    def _choose_granularity(self, starts: List[datetime]) -> str:
        for granularity in ("month", "week"):
            if len({self._bucket(ts, granularity)[0] for ts in starts}) >= MIN_TREND_PERIODS:
                return granularity
        return "day"

    def _analyze_trends(self, event_log: EventLog) -> Dict[str, Any]:
        """
        Median case duration per calendar bucket and the direction of its slope.

        Months are used when the cases span at least three of them, then ISO
        weeks, then days. A slope beyond ``trend_threshold_ratio`` x overall
        median per bucket is a trend: upward is degrading, downward improving.
        """
        traces = [t for t in event_log if t.events]
        if not traces:
            return {"granularity": None, "periods": [], "periodCount": 0, "trend": "stable", "slope": 0.0}

        granularity = self._choose_granularity([t.get_start_time() for t in traces])
        buckets: Dict[str, Dict[str, Any]] = {}
        for trace in traces:
            label, ordinal = self._bucket(trace.get_start_time(), granularity)
            bucket = buckets.setdefault(label, {"ordinal": ordinal, "caseCount": 0, "durations": []})
            bucket["caseCount"] += 1
            if len(trace) >= 2:
                bucket["durations"].append(trace.get_duration())

        periods = []
        for label, bucket in sorted(buckets.items(), key=lambda item: item[1]["ordinal"]):
            stats = describe(bucket["durations"])
            periods.append({
                "period": label,
                "caseCount": bucket["caseCount"],
                "avgDurationMs": stats["mean"],
                "medianDurationMs": stats["median"],
                "_ordinal": bucket["ordinal"],
            })

        trend = "stable"
        slope = 0.0
        if len(periods) >= MIN_TREND_PERIODS:
            xs = [p["_ordinal"] for p in periods]
            ys = [p["medianDurationMs"] for p in periods]
            slope = linear_slope(ys, xs)
            all_durations = sorted(d for b in buckets.values() for d in b["durations"])
            overall_median = describe(all_durations)["median"]
            threshold = self.trend_threshold_ratio * overall_median
            if slope > threshold:
                trend = "degrading"
            elif slope < -threshold:
                trend = "improving"

        for p in periods:
            del p["_ordinal"]
        return {
            "granularity": granularity,
            "periods": periods,
            "periodCount": len(periods),
            "trend": trend,
            "slope": round(slope, 2),
        }

    # ── Outliers ────────────────────────────────────────────────────────

    @staticmethod
    def _detect_outliers(
        cases: List[Dict[str, Any]], values: List[int], stats: Dict[str, int]
    ) -> List[Dict[str, Any]]:
        """Cases outside [Q1 - 1.5 IQR, Q3 + 1.5 IQR] of the case-duration distribution."""
        if len(values) < MIN_OUTLIER_SAMPLE:
            return []
        ordered = sorted(values)
        q1 = percentile(ordered, 0.25)
        q3 = percentile(ordered, 0.75)
        iqr = q3 - q1
        lower = q1 - OUTLIER_IQR_FACTOR * iqr
        upper = q3 + OUTLIER_IQR_FACTOR * iqr
        median = stats["median"] or 1

        return [
            {
                "caseId": c["caseId"],
                "durationMs": c["durationMs"],
                "direction": "slow" if c["durationMs"] > upper else "fast",
                "deviationFromMedian": round((c["durationMs"] - stats["median"]) / median * 100),
            }
            for c in cases
            if c["durationMs"] < lower or c["durationMs"] > upper
        ]
