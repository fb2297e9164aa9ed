"""
Reference Process Models for Conformance Checking.

A reference model is a directed graph of activities with designated start
and end activities. It is either derived from a discovered dependency net,
written down as the expected linear path of a process, e.g. the
``referenceActivities`` of a catalog process:

    Create Sales Order -> Credit Check -> Create Delivery -> ...

or taken from the curated SAP best-practice models in ``sap_models``,
which add exception branches, typed edges, SLA targets and the
transitions auditors verify.

The model is immutable; successor and predecessor lookups are
precomputed so replay does not rescan the edge list.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from ..discovery import ProcessModel
from ..errors import InvalidInputError, PreconditionFailedError
from ..performance import transition_key

EDGE_TYPES = ("sequence", "parallel", "choice")


def _index(pairs, key_of, value_of) -> Dict[str, Tuple[str, ...]]:
    index: Dict[str, List[str]] = {}
    for pair in pairs:
        bucket = index.setdefault(key_of(pair), [])
        if value_of(pair) not in bucket:
            bucket.append(value_of(pair))
    return {k: tuple(v) for k, v in index.items()}


@dataclass(frozen=True)
class ReferenceModel:
    """
    Expected behavior of a process.

    Attributes:
        name: Model name shown in conformance results
        activities: Activities known to the model
        edges: Allowed (source, target) transitions
        start_activities: Activities a case may start with
        end_activities: Activities a case may end with
        process_id: Catalog process id for curated models
        edge_types: (source, target) -> "sequence" | "parallel" | "choice";
            edges without an entry are sequences
        sla_targets: transition key "A → B" -> {target, unit, severity},
            directly usable as PerformanceAnalyzer SLA targets
        critical_transitions: Transition keys that must occur in a
            compliant case
    """
    name: str
    activities: Tuple[str, ...]
    edges: Tuple[Tuple[str, str], ...]
    start_activities: FrozenSet[str]
    end_activities: FrozenSet[str]
    process_id: Optional[str] = None
    edge_types: Mapping[Tuple[str, str], str] = field(default_factory=dict, compare=False)
    sla_targets: Mapping[str, Dict[str, Any]] = field(default_factory=dict, compare=False)
    critical_transitions: Tuple[str, ...] = ()
    _successors: Mapping[str, Tuple[str, ...]] = field(default=None, repr=False, compare=False)
    _predecessors: Mapping[str, Tuple[str, ...]] = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        known = set(self.activities)
        for source, target in self.edges:
            if source not in known or target not in known:
                raise InvalidInputError(f"Edge {source} -> {target} references an unknown activity")
        edge_set = set(self.edges)
        for pair, kind in self.edge_types.items():
            if kind not in EDGE_TYPES:
                raise InvalidInputError(f"Edge type {kind!r} must be one of {EDGE_TYPES}")
            if tuple(pair) not in edge_set:
                raise InvalidInputError(f"Edge type given for unknown edge {pair[0]} -> {pair[1]}")
        object.__setattr__(self, "_successors", _index(self.edges, lambda e: e[0], lambda e: e[1]))
        object.__setattr__(self, "_predecessors", _index(self.edges, lambda e: e[1], lambda e: e[0]))

    @classmethod
    def from_sequence(cls, name: str, activities: Sequence[str]) -> "ReferenceModel":
        """Linear model: each activity is followed by the next one."""
        if not activities:
            raise PreconditionFailedError(f"Reference model {name!r} has no activities")
        ordered = tuple(dict.fromkeys(activities))
        edges = tuple(
            (a, b) for a, b in zip(activities, activities[1:])
        )
        return cls(
            name=name,
            activities=ordered,
            edges=tuple(dict.fromkeys(edges)),
            start_activities=frozenset([activities[0]]),
            end_activities=frozenset([activities[-1]]),
        )

    @classmethod
    def from_process_model(cls, model: ProcessModel, name: str = "Discovered model") -> "ReferenceModel":
        """Use a discovered dependency net, including its self-loops, as the reference."""
        if not isinstance(model, ProcessModel):
            raise InvalidInputError("from_process_model expects a ProcessModel")
        if model.is_empty():
            raise PreconditionFailedError("Cannot build a reference model from an empty ProcessModel")
        edges = [(e.source, e.target) for e in model.edges]
        edges.extend((loop.activity, loop.activity) for loop in model.loops_l1)
        return cls(
            name=name,
            activities=tuple(model.activities),
            edges=tuple(dict.fromkeys(edges)),
            start_activities=frozenset(model.start_activities),
            end_activities=frozenset(model.end_activities),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReferenceModel":
        if not isinstance(data, dict):
            raise InvalidInputError("Reference model data must be a dict")
        edges = []
        edge_types = {}
        for edge in data.get("edges") or []:
            if isinstance(edge, dict):
                pair = (edge["from"], edge["to"])
                if edge.get("type"):
                    edge_types[pair] = edge["type"]
            else:
                pair = tuple(edge)
            edges.append(pair)
        return cls(
            name=data.get("name", "Reference model"),
            activities=tuple(data.get("activities") or ()),
            edges=tuple(dict.fromkeys(edges)),
            start_activities=frozenset(data.get("startActivities") or ()),
            end_activities=frozenset(data.get("endActivities") or ()),
            process_id=data.get("id"),
            edge_types=edge_types,
            sla_targets=dict(data.get("slaTargets") or {}),
            critical_transitions=tuple(data.get("criticalTransitions") or ()),
        )

    def with_sequence(self, activities: Sequence[str]) -> "ReferenceModel":
        """
        Extend the model with a linear path.

        Unknown activities are added, consecutive pairs become sequence
        edges, and the first and last activity become valid start and end
        activities. Used to accept a catalog's ``referenceActivities``
        alongside a curated model with a different vocabulary.
        """
        if not activities:
            return self
        added = tuple(dict.fromkeys(a for a in activities if a not in self.activities))
        edges = tuple(dict.fromkeys(self.edges + tuple(zip(activities, activities[1:]))))
        return ReferenceModel(
            name=self.name,
            activities=self.activities + added,
            edges=edges,
            start_activities=self.start_activities | {activities[0]},
            end_activities=self.end_activities | {activities[-1]},
            process_id=self.process_id,
            edge_types=dict(self.edge_types),
            sla_targets=dict(self.sla_targets),
            critical_transitions=self.critical_transitions,
        )

    def successors(self, activity: str) -> Tuple[str, ...]:
        return self._successors.get(activity, ())

    def predecessors(self, activity: str) -> Tuple[str, ...]:
        return self._predecessors.get(activity, ())

    def has_activity(self, activity: str) -> bool:
        return activity in self.activities

    def has_edge(self, source: str, target: str) -> bool:
        return target in self._successors.get(source, ())

    def edge_type(self, source: str, target: str) -> Optional[str]:
        """Type of an edge, or None if the edge does not exist."""
        if not self.has_edge(source, target):
            return None
        return self.edge_types.get((source, target), "sequence")

    def get_sla_target(self, source: str, target: str) -> Optional[Dict[str, Any]]:
        return self.sla_targets.get(transition_key(source, target))

    def is_empty(self) -> bool:
        return not self.activities

    def find_skipped_path(self, source: str, target: str, max_depth: int = 5) -> Optional[List[str]]:
        """
        Breadth-first search for the activities between ``source`` and
        ``target``.

        Returns:
            The intermediate activities (empty if target is a direct
            successor), or None if no path of at most ``max_depth``
            intermediate steps exists
        """
        queue = deque([(source, [])])
        visited = {source}
        while queue:
            activity, path = queue.popleft()
            if len(path) >= max_depth:
                continue
            for nxt in self.successors(activity):
                if nxt == target:
                    return path
                if nxt not in visited:
                    visited.add(nxt)
                    queue.append((nxt, path + [nxt]))
        return None

    def get_critical_path(self) -> List[str]:
        """
        Longest path through the model.

        On an acyclic model this is a longest-path pass over a topological
        order, ending at the end activity farthest from a start activity
        (or the farthest activity if no end activity is reachable). Models
        with loops fall back to the longest simple path from a start to an
        end activity.
        """
        in_degree = {a: 0 for a in self.activities}
        for _, target in self.edges:
            in_degree[target] += 1

        queue = deque(a for a in self.activities if in_degree[a] == 0)
        order = []
        while queue:
            current = queue.popleft()
            order.append(current)
            for nxt in self.successors(current):
                in_degree[nxt] -= 1
                if in_degree[nxt] == 0:
                    queue.append(nxt)

        if len(order) < len(self.activities):
            return self._longest_simple_path()

        dist = {a: 1 if a in self.start_activities else 0 for a in order}
        prev: Dict[str, Optional[str]] = {a: None for a in order}
        for current in order:
            for nxt in self.successors(current):
                if dist[current] + 1 > dist[nxt]:
                    dist[nxt] = dist[current] + 1
                    prev[nxt] = current

        candidates = [a for a in order if a in self.end_activities] or order
        if not candidates:
            return []
        best = max(candidates, key=lambda a: dist[a])

        path = []
        current: Optional[str] = best
        while current is not None:
            path.append(current)
            current = prev[current]
        return path[::-1]

    def _longest_simple_path(self) -> List[str]:
        longest: List[str] = []
        for start in sorted(self.start_activities):
            stack = [(start, [start])]
            while stack:
                activity, path = stack.pop()
                if activity in self.end_activities and len(path) > len(longest):
                    longest = path
                for nxt in self.successors(activity):
                    if nxt not in path:
                        stack.append((nxt, path + [nxt]))
        return longest

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.process_id,
            "name": self.name,
            "activities": list(self.activities),
            "edges": [
                {"from": a, "to": b, "type": self.edge_types.get((a, b), "sequence")}
                for a, b in self.edges
            ],
            "startActivities": sorted(self.start_activities),
            "endActivities": sorted(self.end_activities),
            "slaTargets": dict(self.sla_targets),
            "criticalTransitions": list(self.critical_transitions),
        }
