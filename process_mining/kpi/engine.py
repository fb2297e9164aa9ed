"""
Process KPI Engine.

Computes one KPIReport per event log across six categories:

- Time: cycle time, touch time, activities per case, top bottleneck
- Quality: rework, first-time-right, happy path, variants, STP, self-loops
- Volume: cases, events, activity types, work in progress, throughput
- Conformance: fitness, precision, conformance rate (when a conformance
  result is supplied)
- Resource: resources, handovers, automation, SoD, workload balance
- Process: the SAP KPIs declared in a catalog process config

Sample-based KPIs carry a confidence interval for the mean (Student's t
below 30 observations, normal quantile above).

Results from the other analyzers are optional inputs. KPIs that depend on
a missing result are reported as None rather than recomputed.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from ..errors import InvalidInputError
from ..eventlog import EventLog
from ..stats import confidence_interval, describe, round_pct, to_ms

logger = logging.getLogger(__name__)

AUTOMATION_USERS = ("SYSTEM", "BATCH")
AUTOMATION_PREFIXES = ("RFC", "WF-BATCH")
REVERSAL_ACTIVITY = "Reverse Journal Entry"
MAX_WIP_SAMPLES = 100

CATEGORIES = (
    ("Time", "time"),
    ("Quality", "quality"),
    ("Volume", "volume"),
    ("Conformance", "conformance"),
    ("Resource", "resource"),
    ("Process", "process"),
)


def is_automated_resource(resource: Optional[str]) -> bool:
    """True for events without a user or run by a technical user."""
    if not resource:
        return True
    upper = resource.upper()
    return upper in AUTOMATION_USERS or upper.startswith(AUTOMATION_PREFIXES)


class KPIReport:
    """
    All KPIs for one event log, grouped by category.

    Each KPI is a dict with at least ``name``, ``value`` and ``unit``; a
    category entry of None means the KPI could not be computed from the
    inputs given.
    """

    def __init__(
        self,
        time: Dict[str, Any],
        quality: Dict[str, Any],
        volume: Dict[str, Any],
        conformance: Dict[str, Any],
        resource: Dict[str, Any],
        process: Dict[str, Any],
        case_count: int,
        event_count: int,
    ):
        self.time = time
        self.quality = quality
        self.volume = volume
        self.conformance = conformance
        self.resource = resource
        self.process = process
        self.case_count = case_count
        self.event_count = event_count

    def get_all_kpis(self) -> List[Dict[str, Any]]:
        """Flat list of every named KPI tagged with its category and key."""
        flat = []
        for label, attr in CATEGORIES:
            for key, kpi in getattr(self, attr).items():
                if kpi and kpi.get("name"):
                    flat.append({"category": label, "key": key, **kpi})
        return flat

    def get_summary(self) -> Dict[str, Any]:
        def value(category: Dict[str, Any], key: str) -> Any:
            kpi = category.get(key)
            return kpi["value"] if kpi else None

        return {
            "caseCount": self.case_count,
            "eventCount": self.event_count,
            "avgCycleTimeMs": value(self.time, "cycleTime"),
            "reworkRate": value(self.quality, "reworkRate"),
            "firstTimeRightRate": value(self.quality, "firstTimeRightRate"),
            "automationRate": value(self.resource, "automationRate"),
            "fitness": value(self.conformance, "fitness"),
            "processKpiCount": len(self.process),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "caseCount": self.case_count,
            "eventCount": self.event_count,
            "time": self.time,
            "quality": self.quality,
            "volume": self.volume,
            "conformance": self.conformance,
            "resource": self.resource,
            "process": self.process,
        }


class KPIEngine:
    """
    Calculate the KPI report for an event log.

    Example:
        engine = KPIEngine(confidence_level=0.95)
        report = engine.calculate(
            log,
            variant_result=VariantAnalyzer().analyze(log),
            process_config=get_process_config("O2C"),
        )
        for kpi in report.get_all_kpis():
            print(kpi["category"], kpi["name"], kpi["value"])
    """

    def __init__(self, confidence_level: float = 0.95, logger: Optional[logging.Logger] = None):
        if not 0 < confidence_level < 1:
            raise InvalidInputError(f"confidence_level must be in (0, 1), got {confidence_level}")
        self.confidence_level = confidence_level
        self.logger = logger or logging.getLogger(__name__)

    def calculate(
        self,
        event_log: EventLog,
        variant_result: Any = None,
        performance_result: Any = None,
        social_result: Any = None,
        conformance_result: Any = None,
        process_config: Optional[Dict[str, Any]] = None,
    ) -> KPIReport:
        """
        Compute every KPI category.

        Args:
            event_log: Log to measure
            variant_result: Optional VariantAnalysisResult
            performance_result: Optional PerformanceResult
            social_result: Optional SocialNetworkResult
            conformance_result: Optional ConformanceResult
            process_config: Optional catalog process config whose ``kpis``
                are measured

        Returns:
            KPIReport
        """
        if not isinstance(event_log, EventLog):
            raise InvalidInputError("KPIEngine.calculate expects an EventLog")
        self.logger.info(f"Calculating KPIs for {event_log.get_case_count()} cases")

        report = KPIReport(
            time=self._time_kpis(event_log, performance_result),
            quality=self._quality_kpis(event_log, variant_result),
            volume=self._volume_kpis(event_log, performance_result),
            conformance=self._conformance_kpis(conformance_result),
            resource=self._resource_kpis(event_log, social_result),
            process=self._process_kpis(event_log, process_config or {}),
            case_count=event_log.get_case_count(),
            event_count=event_log.get_event_count(),
        )
        self.logger.debug(f"Computed {len(report.get_all_kpis())} KPIs")
        return report

    # ── Helpers ─────────────────────────────────────────────────────────

    def _kpi_with_ci(self, name: str, values: Sequence[float], unit: str) -> Dict[str, Any]:
        if len(values) == 0:
            return {"name": name, "value": 0, "unit": unit, "count": 0, "ci": None, "stats": None}
        return {
            "name": name,
            "value": round(float(np.mean(values)), 2),
            "unit": unit,
            "count": len(values),
            "ci": confidence_interval(values, self.confidence_level),
            "stats": describe(values),
        }

    # ── Time ────────────────────────────────────────────────────────────

    def _time_kpis(self, event_log: EventLog, performance_result: Any) -> Dict[str, Any]:
        cycle_times = []
        touch_times = []
        for trace in event_log:
            if len(trace) < 2:
                continue
            cycle_times.append(trace.get_duration())
            touch_times.append(sum(
                nxt.timestamp_ms - cur.timestamp_ms for cur, nxt in zip(trace.events, trace.events[1:])
            ))

        kpis = {
            "cycleTime": self._kpi_with_ci("Cycle Time", cycle_times, "ms"),
            "touchTime": self._kpi_with_ci("Touch Time", touch_times, "ms"),
            "activitiesPerCase": self._kpi_with_ci(
                "Activities per Case", [len(t) for t in event_log], "count"
            ),
            "topBottleneck": None,
        }
        if performance_result is not None and performance_result.bottlenecks:
            top = performance_result.bottlenecks[0]
            kpis["topBottleneck"] = {
                "name": "Top Bottleneck",
                "value": top["location"],
                "unit": "location",
                "medianMs": top.get("medianWaitMs") or top.get("medianServiceMs") or 0,
                "impact": top["impact"],
            }
        return kpis

    # ── Quality ─────────────────────────────────────────────────────────

    def _quality_kpis(self, event_log: EventLog, variant_result: Any) -> Dict[str, Any]:
        total = event_log.get_case_count()
        rework_cases = sum(1 for t in event_log if t.has_rework())
        self_loop_cases = sum(
            1 for t in event_log
            if any(a.activity == b.activity for a, b in zip(t.events, t.events[1:]))
        )

        happy_path_rate = None
        variant_count = None
        if variant_result is not None:
            happy = variant_result.happy_path
            happy_path_rate = happy["frequency"] if happy else 0
            variant_count = variant_result.total_variant_count

        return {
            "reworkRate": {
                "name": "Rework Rate",
                "value": round_pct(rework_cases, total),
                "unit": "%",
                "description": "Percentage of cases containing repeated activities",
            },
            "firstTimeRightRate": {
                "name": "First Time Right Rate",
                "value": round_pct(total - rework_cases, total, default=100.0),
                "unit": "%",
                "description": "Percentage of cases completed without rework",
            },
            "happyPathRate": {
                "name": "Happy Path Rate",
                "value": happy_path_rate,
                "unit": "%",
                "description": "Percentage of cases following the most common rework-free path",
            },
            "variantCount": {
                "name": "Variant Count",
                "value": variant_count if variant_count is not None else event_log.get_variant_count(),
                "unit": "count",
            },
            "straightThroughRate": {
                "name": "Straight-Through Processing Rate",
                "value": round_pct(total - rework_cases, total, default=100.0),
                "unit": "%",
                "description": "Percentage of cases without any repeated activity",
            },
            "selfLoopRate": {
                "name": "Self-Loop Rate",
                "value": round_pct(self_loop_cases, total),
                "unit": "%",
                "description": "Percentage of cases with an immediately repeated activity",
            },
        }

    # ── Volume ──────────────────────────────────────────────────────────

    @staticmethod
    def _average_wip(event_log: EventLog) -> int:
        """
        Mean number of open cases over min(100, n) evenly spaced sample
        points across the log's span.
        """
        ranges = np.array(
            [(t.events[0].timestamp_ms, t.events[-1].timestamp_ms) for t in event_log if len(t) >= 2],
            dtype=float,
        )
        if ranges.size == 0:
            return 0
        start, end = ranges[:, 0].min(), ranges[:, 1].max()
        if end <= start:
            return 0
        samples = np.linspace(start, end, min(MAX_WIP_SAMPLES, len(ranges)))
        active = [
            int(np.count_nonzero((ranges[:, 0] <= t) & (ranges[:, 1] >= t))) for t in samples
        ]
        return int(round(float(np.mean(active))))

    def _volume_kpis(self, event_log: EventLog, performance_result: Any) -> Dict[str, Any]:
        throughput = None
        if performance_result is not None:
            throughput = {
                "name": "Throughput",
                "value": performance_result.throughput["arrivalRatePerDay"],
                "unit": "cases/day",
            }
        return {
            "caseCount": {"name": "Total Cases", "value": event_log.get_case_count(), "unit": "count"},
            "eventCount": {"name": "Total Events", "value": event_log.get_event_count(), "unit": "count"},
            "activityTypes": {"name": "Activity Types", "value": len(event_log.get_activity_set()), "unit": "count"},
            "avgWorkInProgress": {
                "name": "Average Work in Progress",
                "value": self._average_wip(event_log),
                "unit": "cases",
            },
            "throughput": throughput,
        }

    # ── Conformance ─────────────────────────────────────────────────────

    @staticmethod
    def _conformance_kpis(conformance_result: Any) -> Dict[str, Any]:
        if conformance_result is None:
            return {"fitness": None, "precision": None, "conformanceRate": None, "avgDeviationsPerCase": None}
        return {
            "fitness": {
                "name": "Fitness",
                "value": conformance_result.fitness,
                "unit": "ratio",
                "description": "Share of observed behavior the model can replay (0-1)",
            },
            "precision": {
                "name": "Precision",
                "value": conformance_result.precision,
                "unit": "ratio",
                "description": "Share of modeled behavior actually observed (0-1)",
            },
            "conformanceRate": {
                "name": "Conformance Rate",
                "value": conformance_result.conformance_rate,
                "unit": "%",
                "description": "Percentage of fully conformant cases",
            },
            "avgDeviationsPerCase": {
                "name": "Avg Deviations per Case",
                "value": conformance_result.deviation_stats["avgDeviationsPerCase"],
                "unit": "count",
            },
        }

    # ── Resource ────────────────────────────────────────────────────────

    def _resource_kpis(self, event_log: EventLog, social_result: Any) -> Dict[str, Any]:
        handovers_per_case = []
        automated = 0
        total_events = 0
        for trace in event_log:
            handovers_per_case.append(sum(
                1 for a, b in zip(trace.events, trace.events[1:])
                if a.resource and b.resource and a.resource != b.resource
            ))
            for event in trace.events:
                total_events += 1
                if is_automated_resource(event.resource):
                    automated += 1

        kpis = {
            "resourceCount": {
                "name": "Unique Resources",
                "value": len(event_log.get_resource_set()),
                "unit": "count",
            },
            "avgHandoversPerCase": self._kpi_with_ci("Handovers per Case", handovers_per_case, "count"),
            "automationRate": {
                "name": "Automation Rate",
                "value": round_pct(automated, total_events),
                "unit": "%",
                "description": "Percentage of events executed by technical users or without a user",
            },
            "sodViolations": None,
            "workloadBalance": None,
        }
        if social_result is not None:
            sod = social_result.sod_violations
            workload = social_result.resource_utilization["workloadDistribution"]
            kpis["sodViolations"] = {
                "name": "SoD Violations",
                "value": sod["totalViolations"],
                "unit": "count",
                "rulesViolated": sod["rulesViolated"],
            }
            kpis["workloadBalance"] = {
                "name": "Workload Balance (CV)",
                "value": workload["coefficientOfVariation"],
                "unit": "ratio",
                "isBalanced": workload["isBalanced"],
            }
        return kpis

    # ── Process-specific ────────────────────────────────────────────────

    def _process_kpis(self, event_log: EventLog, process_config: Dict[str, Any]) -> Dict[str, Any]:
        kpis = {}
        for name, definition in (process_config.get("kpis") or {}).items():
            if definition.get("from") and definition.get("to"):
                kpis[name] = self._transition_kpi(event_log, name, definition)
            elif definition.get("type") == "ratio":
                kpis[name] = self._ratio_kpi(event_log, name, definition)
            elif definition.get("type") == "composite":
                kpis[name] = {
                    "name": name,
                    "value": None,
                    "unit": "%",
                    "target": round(definition["target"] * 100) if definition.get("target") else None,
                    "components": list(definition.get("components") or []),
                }
        return kpis

    def _transition_kpi(self, event_log: EventLog, name: str, definition: Dict[str, Any]) -> Dict[str, Any]:
        """
        Interval from the first ``from`` event to the next ``to`` event
        after it, per case where both occur.
        """
        source, target_activity = definition["from"], definition["to"]
        values = []
        for trace in event_log:
            start_index = next((i for i, e in enumerate(trace.events) if e.activity == source), None)
            if start_index is None:
                continue
            start = trace.events[start_index]
            end = next((e for e in trace.events[start_index + 1:] if e.activity == target_activity), None)
            if end is not None:
                values.append(end.timestamp_ms - start.timestamp_ms)

        unit = definition.get("unit") or "days"
        target = definition.get("target")
        target_ms = to_ms(target, unit) if target else None
        compliance = None
        if target_ms and values:
            compliance = round_pct(sum(1 for v in values if v <= target_ms), len(values))

        kpi = self._kpi_with_ci(name, values, "ms")
        kpi.update({
            "target": target_ms,
            "targetOriginal": target,
            "targetUnit": unit,
            "compliance": compliance,
        })
        return kpi

    @staticmethod
    def _ratio_kpi(event_log: EventLog, name: str, definition: Dict[str, Any]) -> Dict[str, Any]:
        numerator, denominator = definition.get("numerator"), definition.get("denominator")
        total = event_log.get_case_count()
        value = None
        if numerator == "no_rework_cases" and denominator == "total_cases":
            value = round_pct(sum(1 for t in event_log if not t.has_rework()), total)
        elif numerator == "reversed_entries" and denominator == "total_entries":
            reversed_cases = sum(
                1 for t in event_log if any(e.activity == REVERSAL_ACTIVITY for e in t.events)
            )
            value = round_pct(reversed_cases, total)

        target = definition.get("target")
        return {
            "name": name,
            "value": value,
            "unit": "%",
            "target": round(target * 100, 2) if target else None,
            "description": f"{numerator} / {denominator}",
        }
