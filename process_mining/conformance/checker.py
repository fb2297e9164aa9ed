"""
Conformance Checking by Token-Based Replay.

Replays every trace of an event log on a reference model and counts
tokens:

- produced / consumed: one each per replayed event
- missing: an event that the model could not enable
- remaining: tokens left behind by skipped activities or an unfinished case

Fitness = 0.5 x (1 - missing/consumed) + 0.5 x (1 - remaining/produced)

Precision is estimated from escaping edges: model transitions that are
never observed in the log.

References:
- Rozinat, A., & van der Aalst, W.M.P. (2008). Conformance checking of
  processes based on monitoring real behavior. Information Systems, 33(1).
- van der Aalst, W.M.P. (2016). Process Mining: Data Science in Action.
  Springer. Chapter 8: Conformance Checking.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..cancellation import CancellationToken, check_cancelled
from ..errors import InvalidInputError, PreconditionFailedError
from ..eventlog import EventLog, Trace
from ..stats import round_pct
from .reference_model import ReferenceModel

logger = logging.getLogger(__name__)

MAX_SKIP_DEPTH = 5
MAX_CASE_RESULTS = 100
TOP_DEVIATING_ACTIVITIES = 20


class DeviationType(Enum):
    """Kinds of mismatch found while replaying a trace."""

    UNEXPECTED_START = "unexpected_start"
    INSERT = "insert"                          # Activity unknown to the model
    SKIP = "skip"                              # Model activity jumped over
    INVALID_TRANSITION = "invalid_transition"
    PREMATURE_END = "premature_end"


@dataclass
class Deviation:
    """
    A single replay deviation.

    Attributes:
        type: Deviation kind
        activity: Activity the deviation is attributed to
        index: Event position in the trace (None for end-of-case checks)
        description: Human-readable explanation
    """
    type: DeviationType
    activity: str
    index: Optional[int] = None
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "activity": self.activity,
            "index": self.index,
            "description": self.description,
        }


def calculate_fitness(produced: int, consumed: int, missing: int, remaining: int) -> float:
    missing_part = 1 - missing / consumed if consumed > 0 else 1.0
    remaining_part = 1 - remaining / produced if produced > 0 else 1.0
    return 0.5 * missing_part + 0.5 * remaining_part


@dataclass
class CaseConformanceResult:
    """Replay outcome for one case."""
    case_id: str
    fitness: float
    produced: int
    consumed: int
    missing: int
    remaining: int
    deviations: List[Deviation] = field(default_factory=list)
    trace_length: int = 0

    @property
    def is_conformant(self) -> bool:
        return not self.deviations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "caseId": self.case_id,
            "fitness": self.fitness,
            "isConformant": self.is_conformant,
            "produced": self.produced,
            "consumed": self.consumed,
            "missing": self.missing,
            "remaining": self.remaining,
            "deviationCount": len(self.deviations),
            "deviations": [d.to_dict() for d in self.deviations],
            "traceLength": self.trace_length,
        }


@dataclass
class ConformanceResult:
    """
    Aggregated replay results for an event log.

    Attributes:
        model_name: Reference model the log was replayed on
        fitness: Log-level token fitness (4 decimals)
        precision: 1 - escaping / enabled model edges (4 decimals)
        conformance_rate: Percentage of cases with fitness 1.0
        fully_conformant_cases: Number of cases with fitness 1.0
        total_cases: Number of replayed cases
        counters: Summed produced/consumed/missing/remaining tokens
        deviation_stats: {totalDeviations, casesWithDeviations, byType,
            byActivity, avgDeviationsPerCase}
        case_results: Per-case replay details
    """
    model_name: str
    fitness: float
    precision: float
    conformance_rate: float
    fully_conformant_cases: int
    total_cases: int
    counters: Dict[str, int]
    deviation_stats: Dict[str, Any]
    case_results: List[CaseConformanceResult]

    def get_non_conformant_cases(self) -> List[CaseConformanceResult]:
        return [r for r in self.case_results if not r.is_conformant]

    def get_summary(self) -> Dict[str, Any]:
        by_type = self.deviation_stats["byType"]
        return {
            "referenceModel": self.model_name,
            "fitness": self.fitness,
            "precision": self.precision,
            "conformanceRate": self.conformance_rate,
            "fullyConformantCases": self.fully_conformant_cases,
            "totalCases": self.total_cases,
            "totalDeviations": self.deviation_stats["totalDeviations"],
            "topDeviationType": next(iter(by_type), "none"),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "summary": self.get_summary(),
            "fitness": self.fitness,
            "precision": self.precision,
            "counters": self.counters,
            "deviationStats": self.deviation_stats,
            "caseResults": [r.to_dict() for r in self.case_results[:MAX_CASE_RESULTS]],
        }


class ConformanceChecker:
    """
    Token-replay conformance checker.

    Example:
        model = ReferenceModel.from_sequence("O2C", O2C["referenceActivities"])
        checker = ConformanceChecker(model)
        result = checker.check_log(log)
        print(result.fitness, result.conformance_rate)
    """

    def __init__(self, model: ReferenceModel, logger: Optional[logging.Logger] = None):
        if not isinstance(model, ReferenceModel):
            raise InvalidInputError("ConformanceChecker requires a ReferenceModel")
        if model.is_empty():
            raise PreconditionFailedError(f"Reference model {model.name!r} is empty")
        self._model = model
        self.logger = logger or logging.getLogger(__name__)

    @property
    def model(self) -> ReferenceModel:
        return self._model

    def check_trace(self, trace: Trace) -> CaseConformanceResult:
        """Replay a single trace and collect its deviations."""
        model = self._model
        activities = trace.get_activities()
        produced = consumed = missing = remaining = 0
        deviations: List[Deviation] = []

        for i, activity in enumerate(activities):
            produced += 1
            consumed += 1

            if i == 0:
                if activity in model.start_activities:
                    continue
                missing += 1
                if model.has_activity(activity):
                    deviations.append(Deviation(
                        DeviationType.UNEXPECTED_START, activity, i,
                        f"Case starts with {activity!r}; expected one of {sorted(model.start_activities)}",
                    ))
                else:
                    deviations.append(Deviation(
                        DeviationType.INSERT, activity, i, f"Activity {activity!r} not in reference model",
                    ))
                continue

            previous = activities[i - 1]
            if model.has_edge(previous, activity):
                continue
            if not model.has_activity(activity):
                missing += 1
                deviations.append(Deviation(
                    DeviationType.INSERT, activity, i, f"Activity {activity!r} not in reference model",
                ))
                continue

            skipped = model.find_skipped_path(previous, activity, MAX_SKIP_DEPTH)
            if skipped is None:
                missing += 1
                deviations.append(Deviation(
                    DeviationType.INVALID_TRANSITION, activity, i,
                    f"No valid path from {previous!r} to {activity!r}",
                ))
                continue
            for skipped_activity in skipped:
                produced += 1
                remaining += 1
                deviations.append(Deviation(
                    DeviationType.SKIP, skipped_activity, i,
                    f"Skipped {skipped_activity!r} between {previous!r} and {activity!r}",
                ))

        if activities:
            last = activities[-1]
            if last not in model.end_activities and model.has_activity(last):
                for end_activity in sorted(model.end_activities):
                    path = model.find_skipped_path(last, end_activity, MAX_SKIP_DEPTH)
                    if path is not None:
                        produced += len(path)
                        remaining += len(path)
                        break
                remaining += 1
                deviations.append(Deviation(
                    DeviationType.PREMATURE_END, last, None,
                    f"Case ends with {last!r}; expected one of {sorted(model.end_activities)}",
                ))

        return CaseConformanceResult(
            case_id=trace.case_id,
            fitness=round(calculate_fitness(produced, consumed, missing, remaining), 4),
            produced=produced,
            consumed=consumed,
            missing=missing,
            remaining=remaining,
            deviations=deviations,
            trace_length=len(activities),
        )

    def check_log(
        self,
        event_log: EventLog,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ConformanceResult:
        """
        Replay every trace of an event log.

        Args:
            event_log: Log to check
            cancel_token: Optional token polled between traces

        Returns:
            ConformanceResult
        """
        if not isinstance(event_log, EventLog):
            raise InvalidInputError("ConformanceChecker.check_log expects an EventLog")
        self.logger.info(
            f"Checking conformance against {self._model.name!r} for {event_log.get_case_count()} cases"
        )

        case_results = []
        totals = Counter()
        for trace in event_log:
            check_cancelled(cancel_token, "conformance replay")
            result = self.check_trace(trace)
            case_results.append(result)
            totals["produced"] += result.produced
            totals["consumed"] += result.consumed
            totals["missing"] += result.missing
            totals["remaining"] += result.remaining

        fitness = calculate_fitness(
            totals["produced"], totals["consumed"], totals["missing"], totals["remaining"]
        )
        fully_conformant = sum(1 for r in case_results if r.fitness == 1.0)

        return ConformanceResult(
            model_name=self._model.name,
            fitness=round(fitness, 4),
            precision=round(self._calculate_precision(event_log), 4),
            conformance_rate=round_pct(fully_conformant, len(case_results), default=100.0),
            fully_conformant_cases=fully_conformant,
            total_cases=len(case_results),
            counters={k: totals[k] for k in ("produced", "consumed", "missing", "remaining")},
            deviation_stats=self._aggregate_deviations(case_results),
            case_results=case_results,
        )

    # Same entry-point name as the other analyzers
    analyze = check_log

    def _calculate_precision(self, event_log: EventLog) -> float:
        observed = set()
        for trace in event_log:
            observed.update(zip(trace.get_activities(), trace.get_activities()[1:]))
        enabled = len(self._model.edges)
        if enabled == 0:
            return 1.0
        escaping = sum(1 for edge in self._model.edges if edge not in observed)
        return 1 - escaping / enabled

    @staticmethod
    def _aggregate_deviations(case_results: List[CaseConformanceResult]) -> Dict[str, Any]:
        by_type: Counter = Counter()
        by_activity: Counter = Counter()
        for result in case_results:
            for deviation in result.deviations:
                by_type[deviation.type.value] += 1
                by_activity[deviation.activity] += 1

        total = sum(by_type.values())
        return {
            "totalDeviations": total,
            "casesWithDeviations": sum(1 for r in case_results if r.deviations),
            "byType": dict(by_type.most_common()),
            "byActivity": [
                {"activity": a, "count": c} for a, c in by_activity.most_common(TOP_DEVIATING_ACTIVITIES)
            ],
            "avgDeviationsPerCase": round(total / len(case_results), 2) if case_results else 0,
        }
