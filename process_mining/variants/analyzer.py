"""
Variant Analysis for SAP Event Logs.

A variant is a distinct activity sequence. Grouping cases by variant is the
quickest way to see how standardized a process really is: a healthy O2C
log has a handful of variants covering most cases, while a long tail of
one-off variants points at manual workarounds, rework and missing
approvals.

Pipeline:
1. Extract variants with frequency, rework flags and per-variant durations
2. Pick the happy path (most frequent rework-free variant)
3. Measure rework and first-time-right rates
4. Cluster similar variants by normalized Levenshtein distance
5. Classify every other variant as skip / insertion / substitution / reorder
6. Rank case attributes by lift to suggest root causes for variants

References:
- van der Aalst, W.M.P. (2016). Process Mining: Data Science in Action.
  Springer. Chapter 6: Process Discovery (variants and trace clustering).
- Bose, R.P.J.C., & van der Aalst, W.M.P. (2009). Context aware trace
  clustering: Towards improving process mining results. SIAM SDM.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Set

from ..cancellation import CancellationToken, check_cancelled
from ..errors import InvalidInputError
from ..eventlog import EventLog
from ..stats import describe, round_pct
from .edit_distance import normalized_edit_distance

logger = logging.getLogger(__name__)

ROOT_CAUSE_TOP_VARIANTS = 10
POSITIVE_LIFT = 1.5
NEGATIVE_LIFT = 0.5
MIN_POSITIVE_SUPPORT = 2
MIN_NEGATIVE_POPULATION = 5


@dataclass
class Variant:
    """
    One distinct activity sequence and the cases following it.

    Attributes:
        rank: 1-based position by case count
        variant_key: Activities joined by " -> "
        activities: The activity sequence
        case_ids: Cases following this variant, in log order
        frequency: Share of all cases, in percent (two decimals)
        has_rework: True if any activity repeats
        rework_activities: Repeated activities with their occurrence counts
        duration_stats: Statistics over case durations (ms)
    """
    rank: int
    variant_key: str
    activities: List[str]
    case_ids: List[str]
    frequency: float
    has_rework: bool
    rework_activities: List[Dict[str, Any]]
    duration_stats: Dict[str, int] = field(default_factory=dict)

    @property
    def case_count(self) -> int:
        return len(self.case_ids)

    @property
    def activity_count(self) -> int:
        return len(self.activities)

    @property
    def unique_activities(self) -> int:
        return len(set(self.activities))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rank": self.rank,
            "variantKey": self.variant_key,
            "activities": list(self.activities),
            "activityCount": self.activity_count,
            "uniqueActivities": self.unique_activities,
            "caseCount": self.case_count,
            "frequency": self.frequency,
            "hasRework": self.has_rework,
            "reworkActivities": [dict(r) for r in self.rework_activities],
            "durationStats": dict(self.duration_stats),
        }


@dataclass
class VariantAnalysisResult:
    """
    Output of VariantAnalyzer.analyze.

    ``variants`` is capped at the analyzer's max_variants; the full count
    is kept in total_variant_count.
    """
    variants: List[Variant]
    total_variant_count: int
    total_case_count: int
    happy_path: Optional[Dict[str, Any]]
    rework: Dict[str, Any]
    clusters: List[Dict[str, Any]]
    deviations: Dict[str, Any]
    root_causes: List[Dict[str, Any]]

    def get_summary(self) -> Dict[str, Any]:
        return {
            "totalVariants": self.total_variant_count,
            "totalCases": self.total_case_count,
            "happyPathRate": self.happy_path["frequency"] if self.happy_path else 0,
            "reworkRate": self.rework["reworkRate"],
            "firstTimeRightRate": self.rework["firstTimeRightRate"],
            "clusterCount": len(self.clusters),
            "top5VariantsCoverage": round(sum(v.frequency for v in self.variants[:5]), 2),
            "top10VariantsCoverage": round(sum(v.frequency for v in self.variants[:10]), 2),
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "summary": self.get_summary(),
            "happyPath": self.happy_path,
            "rework": self.rework,
            "variants": [v.to_dict() for v in self.variants],
            "clusters": self.clusters,
            "deviations": self.deviations,
            "rootCauses": self.root_causes,
        }


class VariantAnalyzer:
    """
    Variant extraction, rework detection, clustering and root-cause ranking.

    Example:
        analyzer = VariantAnalyzer(cluster_threshold=0.3)
        result = analyzer.analyze(log)
        print(result.happy_path["variantKey"], result.rework["reworkRate"])
    """

    def __init__(
        self,
        max_variants: int = 100,
        cluster_threshold: float = 0.3,
        logger: Optional[logging.Logger] = None,
    ):
        if max_variants < 1:
            raise InvalidInputError("max_variants must be at least 1")
        if not 0 <= cluster_threshold <= 1:
            raise InvalidInputError("cluster_threshold must be between 0 and 1")
        self.max_variants = max_variants
        self.cluster_threshold = cluster_threshold
        self.logger = logger or logging.getLogger(__name__)

    def analyze(
        self,
        event_log: EventLog,
        cancel_token: Optional[CancellationToken] = None,
    ) -> VariantAnalysisResult:
        if not isinstance(event_log, EventLog):
            raise InvalidInputError("VariantAnalyzer.analyze expects an EventLog")
        self.logger.info(f"Analyzing variants for {event_log.get_case_count()} cases")

        variants = self._extract_variants(event_log, cancel_token)
        happy_path = self._identify_happy_path(variants)
        rework = self._detect_rework(event_log)
        clusters = self._cluster_variants(variants, cancel_token)
        deviations = self._analyze_deviations(variants, happy_path)
        root_causes = self._identify_root_causes(event_log, variants)

        return VariantAnalysisResult(
            variants=variants[: self.max_variants],
            total_variant_count=len(variants),
            total_case_count=event_log.get_case_count(),
            happy_path=happy_path,
            rework=rework,
            clusters=clusters,
            deviations=deviations,
            root_causes=root_causes,
        )

    # ── Extraction ──────────────────────────────────────────────────────

    def _extract_variants(
        self, event_log: EventLog, cancel_token: Optional[CancellationToken]
    ) -> List[Variant]:
        variants = []
        for rank, (key, info) in enumerate(event_log.get_variants().items(), start=1):
            check_cancelled(cancel_token, "variant extraction")
            traces = [event_log.traces[case_id] for case_id in info["caseIds"]]
            sample = traces[0]
            durations = [t.get_duration() for t in traces if len(t) >= 2 and t.get_duration() >= 0]
            variants.append(Variant(
                rank=rank,
                variant_key=key,
                activities=sample.get_activities(),
                case_ids=list(info["caseIds"]),
                frequency=info["percentage"],
                has_rework=sample.has_rework(),
                rework_activities=[
                    {"activity": a, "occurrences": n} for a, n in sample.get_rework_activities().items()
                ],
                duration_stats=describe(durations),
            ))
        self.logger.info(f"Found {len(variants)} unique variants")
        return variants

    @staticmethod
    def _identify_happy_path(variants: List[Variant]) -> Optional[Dict[str, Any]]:
        if not variants:
            return None
        happy = next((v for v in variants if not v.has_rework), variants[0])
        return {
            "variantKey": happy.variant_key,
            "activities": list(happy.activities),
            "caseCount": happy.case_count,
            "frequency": happy.frequency,
            "durationStats": dict(happy.duration_stats),
            "isReworkFree": not happy.has_rework,
        }

    @staticmethod
    def _detect_rework(event_log: EventLog) -> Dict[str, Any]:
        cases_with_rework = 0
        extra_occurrences = 0
        by_activity: Dict[str, int] = defaultdict(int)

        for trace in event_log:
            repeated = trace.get_rework_activities()
            if repeated:
                cases_with_rework += 1
            for activity, count in repeated.items():
                extra_occurrences += count - 1
                by_activity[activity] += count - 1

        total = event_log.get_case_count()
        ranking = sorted(by_activity.items(), key=lambda item: -item[1])
        return {
            "casesWithRework": cases_with_rework,
            "reworkRate": round_pct(cases_with_rework, total),
            "totalReworkEvents": extra_occurrences,
            "reworkByActivity": [{"activity": a, "reworkCount": n} for a, n in ranking],
            "firstTimeRightRate": round_pct(total - cases_with_rework, total, default=100.0),
        }

    # ── Clustering ──────────────────────────────────────────────────────

    def _cluster_variants(
        self, variants: List[Variant], cancel_token: Optional[CancellationToken]
    ) -> List[Dict[str, Any]]:
        """Greedy seed-from-head clustering over the first max_variants variants."""
        candidates = variants[: self.max_variants]
        assigned: Set[int] = set()
        clusters = []

        for i, seed in enumerate(candidates):
            if i in assigned:
                continue
            assigned.add(i)
            cluster = {
                "clusterId": len(clusters),
                "variants": [seed.variant_key],
                "representativeVariant": seed.variant_key,
                "totalCases": seed.case_count,
                "memberDetails": [{"rank": seed.rank, "caseCount": seed.case_count}],
            }
            for j in range(i + 1, len(candidates)):
                if j in assigned:
                    continue
                check_cancelled(cancel_token, "variant clustering")
                other = candidates[j]
                if normalized_edit_distance(seed.activities, other.activities) <= self.cluster_threshold:
                    assigned.add(j)
                    cluster["variants"].append(other.variant_key)
                    cluster["totalCases"] += other.case_count
                    cluster["memberDetails"].append({"rank": other.rank, "caseCount": other.case_count})
            clusters.append(cluster)

        self.logger.debug(f"Clustered {len(candidates)} variants into {len(clusters)} clusters")
        return clusters

    # ── Deviations ──────────────────────────────────────────────────────

    @staticmethod
    def _analyze_deviations(
        variants: List[Variant], happy_path: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        if not happy_path or len(variants) <= 1:
            return {
                "deviationCount": 0,
                "conformantRate": 100.0 if variants else 0,
                "deviations": [],
            }

        happy_sequence = happy_path["activities"]
        happy_set = set(happy_sequence)
        deviations = []

        for variant in variants:
            if variant.variant_key == happy_path["variantKey"]:
                continue
            variant_set = set(variant.activities)
            skipped = [a for a in happy_sequence if a not in variant_set]
            inserted = [a for a in variant.activities if a not in happy_set]

            if skipped and inserted:
                deviation_type = "substitution"
            elif skipped:
                deviation_type = "skip"
            elif inserted:
                deviation_type = "insertion"
            else:
                deviation_type = "reorder"

            deviations.append({
                "variantRank": variant.rank,
                "caseCount": variant.case_count,
                "frequency": variant.frequency,
                "editDistance": round(normalized_edit_distance(happy_sequence, variant.activities), 4),
                "skippedActivities": skipped,
                "insertedActivities": inserted,
                "type": deviation_type,
            })

        total = sum(v.case_count for v in variants)
        deviations.sort(key=lambda d: -d["caseCount"])
        return {
            "deviationCount": len(deviations),
            "conformantRate": round_pct(variants[0].case_count, total),
            "deviations": deviations,
        }

    # ── Root causes ─────────────────────────────────────────────────────

    def _identify_root_causes(self, event_log: EventLog, variants: List[Variant]) -> List[Dict[str, Any]]:
        """Attribute values whose lift for a variant is above 1.5 or below 0.5."""
        attribute_values: Dict[str, Dict[Any, Set[str]]] = defaultdict(lambda: defaultdict(set))
        for case_id, trace in event_log.traces.items():
            for key, value in trace.attributes.items():
                attribute_values[key][value].add(case_id)
            if trace.events:
                for key, value in trace.events[0].attributes.items():
                    attribute_values[f"event:{key}"][value].add(case_id)

        if not attribute_values or len(variants) < 2:
            return []

        total = event_log.get_case_count()
        root_causes = []
        for variant in variants[:ROOT_CAUSE_TOP_VARIANTS]:
            variant_cases = set(variant.case_ids)
            variant_rate = variant.case_count / total
            for attr_key, value_map in attribute_values.items():
                for attr_value, cases_with_value in value_map.items():
                    in_both = len(cases_with_value & variant_cases)
                    conditional = in_both / len(cases_with_value)
                    lift = conditional / variant_rate if variant_rate > 0 else 0

                    if lift > POSITIVE_LIFT and in_both >= MIN_POSITIVE_SUPPORT:
                        direction = "positive"
                    elif 0 < lift < NEGATIVE_LIFT and len(cases_with_value) >= MIN_NEGATIVE_POPULATION:
                        direction = "negative"
                    else:
                        continue

                    root_causes.append({
                        "variantRank": variant.rank,
                        "attribute": attr_key,
                        "value": attr_value,
                        "lift": round(lift, 2),
                        "support": in_both,
                        "confidence": round(conditional * 100, 2),
                        "direction": direction,
                    })

        root_causes.sort(key=lambda r: -r["lift"])
        self.logger.debug(f"Root cause candidates: {len(root_causes)}")
        return root_causes
