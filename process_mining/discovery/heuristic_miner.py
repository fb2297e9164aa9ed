"""
Heuristic Miner for SAP Process Discovery.

Discovers a dependency net (heuristics net) from an event log using
frequency-based dependency measures. Unlike alpha-style algorithms the
heuristic miner tolerates noise and infrequent behavior, which makes it the
usual first choice for real SAP extracts where a few percent of documents
are created, reversed or reposted out of sequence.

Algorithm:
1. Directly-follows counts |a>b| across all traces
2. Dependency measure
       a != b:  (|a>b| - |b>a|) / (|a>b| + |b>a| + 1)     in [-1, 1]
       a == b:  |a>a| / (|a>a| + 1)                      in [0, 1)
3. Length-1 loops (a a) and length-2 loops (a b a)
4. Dependency net: keep a->b when frequent enough and either above the
   absolute threshold or close to the best outgoing edge of a
5. Start/end activity frequencies
6. Split/join gateways classified as and/xor/or by branch co-occurrence

The counts live in dense numpy matrices indexed by activity id; the
resulting ProcessModel exposes them again as read-only nested mappings.

References:
- Weijters, A.J.M.M., & van der Aalst, W.M.P. (2003). Rediscovering workflow
  models from event-based data using Little Thumb. Integrated Computer-Aided
  Engineering, 10(2), 151-162.
- van der Aalst, W.M.P. (2016). Process Mining: Data Science in Action.
  Springer. Chapter 7: Advanced Process Discovery Techniques.
"""

import logging
from dataclasses import asdict, dataclass, field, fields
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

import numpy as np

from ..cancellation import CancellationToken, check_cancelled
from ..errors import InvalidInputError
from ..eventlog import EventLog

logger = logging.getLogger(__name__)

GATEWAY_AND = "and"
GATEWAY_XOR = "xor"
GATEWAY_OR = "or"


def _camel_to_snake(name: str) -> str:
    return "".join("_" + c.lower() if c.isupper() else c for c in name)


@dataclass
class HeuristicMinerConfig:
    """
    Thresholds for the heuristic miner.

    Attributes:
        dependency_threshold: Minimum dependency to keep an edge
        and_threshold: Co-occurrence band used to classify gateways
        loop_length_one_threshold: Minimum dependency for a -> a loops
        loop_length_two_threshold: Minimum dependency for a -> b -> a loops
        relative_to_best_threshold: Keep an edge this close to the best one
        min_frequency: Minimum directly-follows count for an edge
    """
    dependency_threshold: float = 0.5
    and_threshold: float = 0.1
    loop_length_one_threshold: float = 0.5
    loop_length_two_threshold: float = 0.5
    relative_to_best_threshold: float = 0.05
    min_frequency: int = 1

    @classmethod
    def from_dict(cls, options: Optional[Dict[str, Any]]) -> "HeuristicMinerConfig":
        """Build a config from snake_case or camelCase keys; unknown keys are ignored."""
        if not options:
            return cls()
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in options.items():
            name = _camel_to_snake(key)
            if name in known and value is not None:
                values[name] = value
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Edge:
    source: str
    target: str
    frequency: int
    dependency: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "frequency": self.frequency,
            "dependency": self.dependency,
        }


@dataclass(frozen=True)
class LengthOneLoop:
    activity: str
    frequency: int
    dependency: float

    def to_dict(self) -> Dict[str, Any]:
        return {"activity": self.activity, "frequency": self.frequency, "dependency": self.dependency}


@dataclass(frozen=True)
class LengthTwoLoop:
    activities: Tuple[str, str]
    frequency: int
    reverse_frequency: int
    dependency: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "activities": list(self.activities),
            "frequency": self.frequency,
            "reverseFrequency": self.reverse_frequency,
            "dependency": self.dependency,
        }


@dataclass(frozen=True)
class Gateway:
    """
    A split (one source, several kept targets) or join (several sources, one target).

    Attributes:
        type: "and", "xor" or "or"
        gateway_type: "split" or "join"
        activity: The activity the gateway is attached to
        branches: The targets (split) or sources (join)
        branch_frequencies: Directly-follows count of each branch edge
    """
    type: str
    gateway_type: str
    activity: str
    branches: Tuple[str, ...]
    branch_frequencies: Tuple[int, ...]

    def to_dict(self) -> Dict[str, Any]:
        side = "target" if self.gateway_type == "split" else "source"
        return {
            "type": self.type,
            "gatewayType": self.gateway_type,
            "activity": self.activity,
            "branches": list(self.branches),
            "branchFrequencies": [
                {side: branch, "frequency": freq}
                for branch, freq in zip(self.branches, self.branch_frequencies)
            ],
        }


def _freeze_matrix(matrix: Dict[str, Dict[str, Any]]) -> Mapping[str, Mapping[str, Any]]:
    return MappingProxyType({a: MappingProxyType(dict(row)) for a, row in matrix.items()})


@dataclass(frozen=True)
class ProcessModel:
    """
    Discovered dependency net. Immutable once built.

    ``df_matrix`` and ``dep_matrix`` are read-only nested mappings
    (activity -> activity -> value); ``start_activities`` and
    ``end_activities`` map activity to case count, most frequent first.
    """
    activities: Tuple[str, ...]
    edges: Tuple[Edge, ...]
    start_activities: Mapping[str, int]
    end_activities: Mapping[str, int]
    loops_l1: Tuple[LengthOneLoop, ...] = ()
    loops_l2: Tuple[LengthTwoLoop, ...] = ()
    gateways: Tuple[Gateway, ...] = ()
    df_matrix: Mapping[str, Mapping[str, int]] = field(default_factory=lambda: MappingProxyType({}))
    dep_matrix: Mapping[str, Mapping[str, float]] = field(default_factory=lambda: MappingProxyType({}))
    case_count: int = 0
    event_count: int = 0

    def get_successors(self, activity: str) -> List[str]:
        return [e.target for e in self.edges if e.source == activity]

    def get_predecessors(self, activity: str) -> List[str]:
        return [e.source for e in self.edges if e.target == activity]

    def has_transition(self, source: str, target: str) -> bool:
        return self.get_edge(source, target) is not None

    def get_edge(self, source: str, target: str) -> Optional[Edge]:
        for edge in self.edges:
            if edge.source == source and edge.target == target:
                return edge
        return None

    def get_self_loop_activities(self) -> List[str]:
        return [loop.activity for loop in self.loops_l1]

    def get_and_splits(self) -> List[Gateway]:
        return [g for g in self.gateways if g.type == GATEWAY_AND and g.gateway_type == "split"]

    def get_xor_splits(self) -> List[Gateway]:
        return [g for g in self.gateways if g.type == GATEWAY_XOR and g.gateway_type == "split"]

    def get_directly_follows_count(self, source: str, target: str) -> int:
        return self.df_matrix.get(source, {}).get(target, 0)

    def get_dependency_measure(self, source: str, target: str) -> float:
        return self.dep_matrix.get(source, {}).get(target, 0.0)

    def is_empty(self) -> bool:
        return not self.activities

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "activities": list(self.activities),
            "edges": [e.to_dict() for e in self.edges],
            "startActivities": [{"activity": a, "count": c} for a, c in self.start_activities.items()],
            "endActivities": [{"activity": a, "count": c} for a, c in self.end_activities.items()],
            "loopsL1": [loop.to_dict() for loop in self.loops_l1],
            "loopsL2": [loop.to_dict() for loop in self.loops_l2],
            "gateways": [g.to_dict() for g in self.gateways],
            "stats": self.get_summary(),
        }

    def get_summary(self) -> Dict[str, int]:
        return {
            "activityCount": len(self.activities),
            "edgeCount": len(self.edges),
            "gatewayCount": len(self.gateways),
            "loopCount": len(self.loops_l1) + len(self.loops_l2),
            "caseCount": self.case_count,
            "eventCount": self.event_count,
        }

    def to_text(self) -> str:
        """Human-readable description of the model."""
        lines = [
            f"Process Model: {len(self.activities)} activities, {len(self.edges)} edges",
            f"Cases: {self.case_count}, Events: {self.event_count}",
            "",
            "Start Activities:",
        ]
        lines.extend(f"  -> {a} ({c} cases)" for a, c in self.start_activities.items())
        lines.extend(["", "Edges (dependency):"])
        for e in sorted(self.edges, key=lambda e: -e.frequency):
            lines.append(f"  {e.source} -> {e.target} [freq={e.frequency}, dep={e.dependency}]")
        if self.loops_l1:
            lines.extend(["", "Self-loops:"])
            lines.extend(f"  {loop.activity} [freq={loop.frequency}]" for loop in self.loops_l1)
        if self.loops_l2:
            lines.extend(["", "Length-2 loops:"])
            lines.extend(
                f"  {loop.activities[0]} <-> {loop.activities[1]} [freq={loop.frequency}]" for loop in self.loops_l2
            )
        if self.gateways:
            lines.extend(["", "Gateways:"])
            for g in self.gateways:
                lines.append(f"  {g.type.upper()}-{g.gateway_type}: {g.activity} -> [{', '.join(g.branches)}]")
        lines.extend(["", "End Activities:"])
        lines.extend(f"  {a} -> end ({c} cases)" for a, c in self.end_activities.items())
        return "\n".join(lines)


class HeuristicMiner:
    """
    Discovers a ProcessModel from an EventLog.

    Example:
        miner = HeuristicMiner({"dependencyThreshold": 0.6})
        model = miner.analyze(log)
        print(model.to_text())
    """

    def __init__(
        self,
        config: Any = None,
        logger: Optional[logging.Logger] = None,
    ):
        if config is None or isinstance(config, dict):
            config = HeuristicMinerConfig.from_dict(config)
        if not isinstance(config, HeuristicMinerConfig):
            raise InvalidInputError("HeuristicMiner config must be a dict or HeuristicMinerConfig")
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

    def analyze(
        self,
        event_log: EventLog,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ProcessModel:
        """
        Discover a dependency net from an event log.

        Args:
            event_log: Log to mine
            cancel_token: Optional token polled between traces

        Returns:
            Immutable ProcessModel
        """
        if not isinstance(event_log, EventLog):
            raise InvalidInputError("HeuristicMiner.analyze expects an EventLog")

        self.logger.info(
            f"Mining process model from {event_log.get_case_count()} cases, "
            f"{event_log.get_event_count()} events"
        )

        activities, df = self._build_df_counts(event_log, cancel_token)
        dep = self._dependency_matrix(df)
        loops_l1 = self._detect_loops_length_one(activities, df)
        loops_l2 = self._detect_loops_length_two(event_log, cancel_token)
        edges = self._build_dependency_net(activities, df, dep)
        gateways = self._detect_gateways(edges, event_log)

        model = ProcessModel(
            activities=tuple(activities),
            edges=tuple(edges),
            start_activities=MappingProxyType(event_log.get_start_activities()),
            end_activities=MappingProxyType(event_log.get_end_activities()),
            loops_l1=tuple(loops_l1),
            loops_l2=tuple(loops_l2),
            gateways=tuple(gateways),
            df_matrix=_freeze_matrix(self._matrix_to_mapping(activities, df, sparse=True, cast=int)),
            dep_matrix=_freeze_matrix(self._matrix_to_mapping(activities, dep, sparse=False, cast=float)),
            case_count=event_log.get_case_count(),
            event_count=event_log.get_event_count(),
        )

        self.logger.info(
            f"Discovered model: {len(activities)} activities, {len(edges)} edges, "
            f"{len(gateways)} gateways"
        )
        return model

    mine = analyze

    # ── Counting ────────────────────────────────────────────────────────

    def _build_df_counts(
        self, event_log: EventLog, cancel_token: Optional[CancellationToken]
    ) -> Tuple[List[str], np.ndarray]:
        """Activities in first-seen order and the dense |a>b| count matrix."""
        index: Dict[str, int] = {}
        pairs: List[Tuple[int, int]] = []
        for trace in event_log:
            check_cancelled(cancel_token, "directly-follows construction")
            ids = [index.setdefault(e.activity, len(index)) for e in trace.events]
            pairs.extend(zip(ids, ids[1:]))

        n = len(index)
        df = np.zeros((n, n), dtype=np.int64)
        for a, b in pairs:
            df[a, b] += 1
        return list(index), df

    @staticmethod
    def _dependency_matrix(df: np.ndarray) -> np.ndarray:
        forward = df.astype(float)
        backward = forward.T
        dep = (forward - backward) / (forward + backward + 1.0)
        diagonal = np.diag(forward)
        np.fill_diagonal(dep, diagonal / (diagonal + 1.0))
        return dep

    @staticmethod
    def _matrix_to_mapping(
        activities: List[str], matrix: np.ndarray, sparse: bool, cast: Any
    ) -> Dict[str, Dict[str, Any]]:
        result: Dict[str, Dict[str, Any]] = {}
        for i, a in enumerate(activities):
            row = {}
            for j, b in enumerate(activities):
                value = matrix[i, j]
                if sparse and not value:
                    continue
                row[b] = cast(value)
            if row or not sparse:
                result[a] = row
        return result

    # ── Loops ───────────────────────────────────────────────────────────

    def _detect_loops_length_one(self, activities: List[str], df: np.ndarray) -> List[LengthOneLoop]:
        loops = []
        for i, activity in enumerate(activities):
            count = int(df[i, i])
            if count == 0:
                continue
            dep = count / (count + 1)
            if dep >= self.config.loop_length_one_threshold:
                loops.append(LengthOneLoop(activity, count, round(dep, 3)))
        return loops

    def _detect_loops_length_two(
        self, event_log: EventLog, cancel_token: Optional[CancellationToken]
    ) -> List[LengthTwoLoop]:
        """One entry per unordered pair; frequencies of a-b-a and b-a-b are summed into the dependency."""
        counts: Dict[Tuple[str, str], int] = {}
        for trace in event_log:
            check_cancelled(cancel_token, "length-2 loop detection")
            acts = trace.get_activities()
            for a, b, c in zip(acts, acts[1:], acts[2:]):
                if a == c and a != b:
                    counts[(a, b)] = counts.get((a, b), 0) + 1

        loops = []
        seen = set()
        for (a, b), count in counts.items():
            pair = frozenset((a, b))
            if pair in seen:
                continue
            seen.add(pair)
            reverse = counts.get((b, a), 0)
            dep = (count + reverse) / (count + reverse + 1)
            if dep >= self.config.loop_length_two_threshold:
                loops.append(LengthTwoLoop((a, b), count, reverse, round(dep, 3)))
        return loops

    # ── Dependency net ──────────────────────────────────────────────────

    def _build_dependency_net(
        self, activities: List[str], df: np.ndarray, dep: np.ndarray
    ) -> List[Edge]:
        cfg = self.config
        edges = []
        n = len(activities)
        for i in range(n):
            others = [j for j in range(n) if j != i]
            if not others:
                continue
            best = max(dep[i, j] for j in others)
            for j in others:
                freq = int(df[i, j])
                if freq < cfg.min_frequency or freq == 0:
                    continue
                value = float(dep[i, j])
                above = value >= cfg.dependency_threshold
                near_best = best > 0 and (best - value) <= cfg.relative_to_best_threshold
                if above or near_best:
                    edges.append(Edge(activities[i], activities[j], freq, round(value, 3)))
        self.logger.debug(f"Dependency net: kept {len(edges)} edges")
        return edges

    # ── Gateways ────────────────────────────────────────────────────────

    def _detect_gateways(self, edges: List[Edge], event_log: EventLog) -> List[Gateway]:
        outgoing: Dict[str, List[Edge]] = {}
        incoming: Dict[str, List[Edge]] = {}
        for edge in edges:
            outgoing.setdefault(edge.source, []).append(edge)
            incoming.setdefault(edge.target, []).append(edge)

        case_activity_sets = [set(trace.get_activities()) for trace in event_log]

        gateways = []
        for activity, outs in outgoing.items():
            if len(outs) < 2:
                continue
            branches = tuple(e.target for e in outs)
            gateways.append(Gateway(
                type=self._classify_gateway(branches, case_activity_sets),
                gateway_type="split",
                activity=activity,
                branches=branches,
                branch_frequencies=tuple(e.frequency for e in outs),
            ))
        for activity, ins in incoming.items():
            if len(ins) < 2:
                continue
            branches = tuple(e.source for e in ins)
            gateways.append(Gateway(
                type=self._classify_gateway(branches, case_activity_sets),
                gateway_type="join",
                activity=activity,
                branches=branches,
                branch_frequencies=tuple(e.frequency for e in ins),
            ))
        return gateways

    def _classify_gateway(self, branches: Tuple[str, ...], case_activity_sets: List[set]) -> str:
        """High branch co-occurrence across cases means parallel, low means choice."""
        both = 0
        either = 0
        for present_in_case in case_activity_sets:
            present = sum(1 for b in branches if b in present_in_case)
            if present >= 2:
                both += 1
            if present >= 1:
                either += 1
        if either == 0:
            return GATEWAY_XOR

        co_rate = both / either
        if co_rate > 1 - self.config.and_threshold:
            return GATEWAY_AND
        if co_rate < self.config.and_threshold:
            return GATEWAY_XOR
        return GATEWAY_OR
