"""
Organizational Mining for SAP Event Logs.

Looks at who does the work rather than what work is done:

- Handover of work: resource A finishes an activity and resource B
  performs the next one in the same case
- Working together: resources that appear on the same case
- Resource utilization and workload balance
- Activity-resource matrix: who usually performs which step
- Segregation of duties: conflicting activities performed by one user
- Centrality of resources in the handover network

SAP user ids are taken verbatim from the event resource, so batch users
(e.g. ``BATCH_JOB``) show up as ordinary nodes.

References:
- van der Aalst, W.M.P., Reijers, H.A., & Song, M. (2005). Discovering
  Social Networks from Event Logs. Computer Supported Cooperative Work,
  14(6), 549-593.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..cancellation import CancellationToken, check_cancelled
from ..errors import InvalidInputError
from ..eventlog import EventLog

logger = logging.getLogger(__name__)

TOP_HANDOVERS = 20
TOP_WORKING_TOGETHER = 50
TOP_ACTIVITIES_PER_RESOURCE = 5
TOP_RESOURCES_PER_ACTIVITY = 5
MAX_VIOLATING_CASES = 10
BALANCED_CV = 0.5


@dataclass(frozen=True)
class SoDRule:
    """A set of activities that must not be performed by the same user within one case."""
    name: str
    activities: Tuple[str, ...]

    def __post_init__(self):
        if not self.name:
            raise InvalidInputError("SoD rule requires a name")
        if len(set(self.activities)) < 2:
            raise InvalidInputError(f"SoD rule {self.name!r} needs at least two distinct activities")

    @classmethod
    def coerce(cls, rule: Union["SoDRule", Dict[str, Any]]) -> "SoDRule":
        if isinstance(rule, SoDRule):
            return rule
        if isinstance(rule, dict):
            return cls(rule.get("name", ""), tuple(rule.get("activities") or ()))
        raise InvalidInputError(f"Cannot build an SoD rule from {type(rule).__name__}")

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "activities": list(self.activities)}


DEFAULT_SOD_RULES = (
    SoDRule("Create PO / Approve PO", ("Create Purchase Order", "Approve Purchase Order")),
    SoDRule("Create PR / Approve PR", ("Create Purchase Requisition", "Approve Purchase Requisition")),
    SoDRule("Create Invoice / Approve Payment", ("Create Invoice", "Payment Run")),
    SoDRule("Goods Receipt / Invoice Receipt", ("Goods Receipt", "Invoice Receipt")),
    SoDRule("Create JE / Approve JE", ("Create Journal Entry", "Approve Journal Entry")),
    SoDRule("Create Asset / Retire Asset", ("Create Asset Master", "Retire Asset")),
)


@dataclass
class SocialNetworkResult:
    """
    Output of SocialNetworkMiner.analyze.

    Attributes:
        handover_matrix: {entries, topHandovers, totalHandovers, uniquePairs}
        working_together: {entries, totalPairs, casesWithMultipleResources}
        resource_utilization: {resources, totalResources, workloadDistribution}
        activity_resource_matrix: Per-activity resource breakdown
        sod_violations: {rules, totalViolations, rulesChecked, rulesViolated}
        centrality_metrics: Per-resource centrality, highest first
    """
    handover_matrix: Dict[str, Any]
    working_together: Dict[str, Any]
    resource_utilization: Dict[str, Any]
    activity_resource_matrix: List[Dict[str, Any]]
    sod_violations: Dict[str, Any]
    centrality_metrics: List[Dict[str, Any]]
    resource_count: int = 0
    case_count: int = 0

    def get_summary(self) -> Dict[str, Any]:
        return {
            "resourceCount": self.resource_count,
            "caseCount": self.case_count,
            "totalHandovers": self.handover_matrix["totalHandovers"],
            "uniqueHandoverPairs": self.handover_matrix["uniquePairs"],
            "casesWithMultipleResources": self.working_together["casesWithMultipleResources"],
            "workloadBalanced": self.resource_utilization["workloadDistribution"]["isBalanced"],
            "sodViolations": self.sod_violations["totalViolations"],
            "sodRulesViolated": self.sod_violations["rulesViolated"],
            "mostCentralResource": self.centrality_metrics[0]["resource"] if self.centrality_metrics else None,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.get_summary(),
            "handoverMatrix": self.handover_matrix,
            "workingTogether": self.working_together,
            "resourceUtilization": self.resource_utilization,
            "activityResourceMatrix": self.activity_resource_matrix,
            "sodViolations": self.sod_violations,
            "centralityMetrics": self.centrality_metrics,
        }


class SocialNetworkMiner:
    """
    Mine handover, collaboration and SoD information from an event log.

    Example:
        miner = SocialNetworkMiner()
        result = miner.analyze(log, sod_rules=[
            {"name": "Create/Approve PO", "activities": ["Create PO", "Approve PO"]},
        ])
        print(result.sod_violations["totalViolations"])
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def analyze(
        self,
        event_log: EventLog,
        sod_rules: Optional[Iterable[Union[SoDRule, Dict[str, Any]]]] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SocialNetworkResult:
        """
        Run every organizational measure over an event log.

        Args:
            event_log: Log to analyze
            sod_rules: Rules to check; the six default SAP rules when
                None or empty
            cancel_token: Optional token polled between traces

        Returns:
            SocialNetworkResult
        """
        if not isinstance(event_log, EventLog):
            raise InvalidInputError("SocialNetworkMiner.analyze expects an EventLog")
        rules = [SoDRule.coerce(r) for r in sod_rules or ()] or list(DEFAULT_SOD_RULES)

        self.logger.info(f"Mining social network from {event_log.get_case_count()} cases")

        handover = self._build_handover_matrix(event_log, cancel_token)
        working_together = self._build_working_together(event_log, cancel_token)
        utilization = self._analyze_utilization(event_log)
        activity_matrix = self._build_activity_resource_matrix(event_log)
        sod = self._check_segregation_of_duties(event_log, rules, cancel_token)
        centrality = self._calculate_centrality(handover["entries"])

        self.logger.debug(
            f"{handover['uniquePairs']} handover pairs, {sod['totalViolations']} SoD violations"
        )

        return SocialNetworkResult(
            handover_matrix=handover,
            working_together=working_together,
            resource_utilization=utilization,
            activity_resource_matrix=activity_matrix,
            sod_violations=sod,
            centrality_metrics=centrality,
            resource_count=len(event_log.get_resource_set()),
            case_count=event_log.get_case_count(),
        )

    def _build_handover_matrix(
        self, event_log: EventLog, cancel_token: Optional[CancellationToken]
    ) -> Dict[str, Any]:
        counts: Counter = Counter()
        for trace in event_log:
            check_cancelled(cancel_token, "handover matrix")
            for current, nxt in zip(trace.events, trace.events[1:]):
                if not current.resource or not nxt.resource:
                    continue
                if current.resource == nxt.resource:
                    continue
                counts[(current.resource, nxt.resource)] += 1

        entries = [
            {"from": source, "to": target, "count": count}
            for (source, target), count in counts.most_common()
        ]
        return {
            "entries": entries,
            "topHandovers": entries[:TOP_HANDOVERS],
            "totalHandovers": sum(counts.values()),
            "uniquePairs": len(entries),
        }

    def _build_working_together(
        self, event_log: EventLog, cancel_token: Optional[CancellationToken]
    ) -> Dict[str, Any]:
        pairs: Counter = Counter()
        multi_resource_cases = 0
        for trace in event_log:
            check_cancelled(cancel_token, "working-together matrix")
            resources = sorted(trace.get_resources())
            if len(resources) < 2:
                continue
            multi_resource_cases += 1
            for i, a in enumerate(resources):
                for b in resources[i + 1:]:
                    pairs[(a, b)] += 1

        entries = [
            {"resourceA": a, "resourceB": b, "sharedCases": count}
            for (a, b), count in pairs.most_common()
        ]
        return {
            "entries": entries[:TOP_WORKING_TOGETHER],
            "totalPairs": len(entries),
            "casesWithMultipleResources": multi_resource_cases,
        }

    @staticmethod
    def _analyze_utilization(event_log: EventLog) -> Dict[str, Any]:
        activities: Dict[str, Counter] = defaultdict(Counter)
        cases: Dict[str, set] = defaultdict(set)
        for trace in event_log:
            for event in trace.events:
                if not event.resource:
                    continue
                activities[event.resource][event.activity] += 1
                cases[event.resource].add(trace.case_id)

        resources = []
        for resource, counter in activities.items():
            event_count = sum(counter.values())
            case_count = len(cases[resource])
            resources.append({
                "resource": resource,
                "caseCount": case_count,
                "eventCount": event_count,
                "uniqueActivities": len(counter),
                "topActivities": [
                    {"activity": a, "count": c}
                    for a, c in counter.most_common(TOP_ACTIVITIES_PER_RESOURCE)
                ],
                "avgEventsPerCase": round(event_count / case_count, 2) if case_count else 0,
            })
        resources.sort(key=lambda r: -r["eventCount"])

        # Population statistics: the resources observed are the whole team.
        counts = np.array([r["eventCount"] for r in resources], dtype=float)
        mean = float(counts.mean()) if counts.size else 0.0
        std = float(counts.std()) if counts.size else 0.0
        cv = std / mean if mean > 0 else 0.0

        return {
            "resources": resources,
            "totalResources": len(resources),
            "workloadDistribution": {
                "mean": int(round(mean)),
                "stddev": int(round(std)),
                "coefficientOfVariation": round(cv, 2),
                "isBalanced": cv < BALANCED_CV,
            },
        }

    @staticmethod
    def _build_activity_resource_matrix(event_log: EventLog) -> List[Dict[str, Any]]:
        matrix: Dict[str, Counter] = defaultdict(Counter)
        for trace in event_log:
            for event in trace.events:
                if event.resource:
                    matrix[event.activity][event.resource] += 1

        entries = []
        for activity, counter in matrix.items():
            ranked = counter.most_common()
            total = sum(counter.values())
            primary, primary_count = ranked[0]
            entries.append({
                "activity": activity,
                "totalExecutions": total,
                "resourceCount": len(ranked),
                "primaryResource": primary,
                "primaryResourceShare": int(round(primary_count / total * 100)),
                "resources": [
                    {"resource": r, "count": c} for r, c in ranked[:TOP_RESOURCES_PER_ACTIVITY]
                ],
            })
        entries.sort(key=lambda e: -e["totalExecutions"])
        return entries

    def _check_segregation_of_duties(
        self,
        event_log: EventLog,
        rules: Sequence[SoDRule],
        cancel_token: Optional[CancellationToken],
    ) -> Dict[str, Any]:
        """
        Count, per rule, the cases where one resource performed two or more
        of the rule's activities. Each case counts once per rule.
        """
        results = []
        for rule in rules:
            rule_activities = set(rule.activities)
            violation_count = 0
            violating_cases = []

            for trace in event_log:
                check_cancelled(cancel_token, "segregation-of-duties check")
                performed: Dict[str, set] = defaultdict(set)
                for event in trace.events:
                    if event.resource and event.activity in rule_activities:
                        performed[event.resource].add(event.activity)

                offenders = sorted(r for r, acts in performed.items() if len(acts) >= 2)
                if offenders:
                    violation_count += 1
                    if len(violating_cases) < MAX_VIOLATING_CASES:
                        violating_cases.append({"caseId": trace.case_id, "resources": offenders})

            results.append({
                "rule": rule.name,
                "activities": list(rule.activities),
                "violationCount": violation_count,
                "violatingCases": violating_cases,
                "status": "violation" if violation_count else "compliant",
            })

        return {
            "rules": results,
            "totalViolations": sum(r["violationCount"] for r in results),
            "rulesChecked": len(results),
            "rulesViolated": sum(1 for r in results if r["violationCount"]),
        }

    @staticmethod
    def _calculate_centrality(handover_entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Degree and volume centrality over the handover graph.

        centralityScore = 0.5 * totalDegree / maxDegree + 0.5 * totalVolume / maxVolume
        """
        in_degree: Counter = Counter()
        out_degree: Counter = Counter()
        in_volume: Counter = Counter()
        out_volume: Counter = Counter()
        resources: Dict[str, None] = {}
        for entry in handover_entries:
            source, target, count = entry["from"], entry["to"], entry["count"]
            resources.setdefault(source)
            resources.setdefault(target)
            out_degree[source] += 1
            in_degree[target] += 1
            out_volume[source] += count
            in_volume[target] += count

        rows = []
        for resource in resources:
            rows.append({
                "resource": resource,
                "inDegree": in_degree[resource],
                "outDegree": out_degree[resource],
                "totalDegree": in_degree[resource] + out_degree[resource],
                "inVolume": in_volume[resource],
                "outVolume": out_volume[resource],
                "totalVolume": in_volume[resource] + out_volume[resource],
            })

        max_degree = max((r["totalDegree"] for r in rows), default=0) or 1
        max_volume = max((r["totalVolume"] for r in rows), default=0) or 1
        for row in rows:
            row["centralityScore"] = round(
                0.5 * row["totalDegree"] / max_degree + 0.5 * row["totalVolume"] / max_volume, 4
            )

        rows.sort(key=lambda r: -r["centralityScore"])
        return rows
