"""
Event Log Data Model (IEEE 1849 XES concepts).

Three entities make up an event log:

- Event: a single observation of an activity at a point in time, optionally
  attributed to a resource and linked back to the SAP table row it came from.
- Trace: the chronologically ordered events of one case.
- EventLog: the insertion-ordered collection of traces, keyed by case id.

Traces keep their events sorted on every insertion. Insertion is stable, so
events with equal timestamps stay in the order they were added. This makes
variant keys deterministic for SAP extracts where several documents share a
posting date.

Ownership is a strict tree: a log owns its traces and a trace owns its
events. Filters and ``clone`` always deep-copy so derived logs never share
mutable state with their source.

References:
- IEEE Std 1849-2016, eXtensible Event Stream (XES).
- van der Aalst, W.M.P. (2016). Process Mining: Data Science in Action.
  Springer. Chapter 5: Getting the Data.
"""

import copy
import json
import logging
from bisect import bisect_right
from collections import Counter, defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Set, Union

from ..cancellation import CancellationToken, check_cancelled
from ..errors import InvalidInputError
from .timestamps import format_iso, parse_timestamp, to_epoch_ms

logger = logging.getLogger(__name__)

VARIANT_SEPARATOR = " -> "

DEFAULT_LIFECYCLE = "complete"

DEFAULT_CLASSIFIERS = {
    "activity": "concept:name",
    "resource": "org:resource",
}

DEFAULT_EXTENSIONS = ["concept", "lifecycle", "time", "organizational"]


class SourceRef(NamedTuple):
    """Pointer from an event back to the SAP row that produced it."""

    table: str
    key: str
    field: str

    def to_dict(self) -> Dict[str, str]:
        return {"table": self.table, "key": self.key, "field": self.field}

    @classmethod
    def coerce(cls, value: Any) -> Optional["SourceRef"]:
        if value is None:
            return None
        if isinstance(value, SourceRef):
            return value
        if isinstance(value, dict):
            return cls(
                table=str(value.get("table", "")),
                key=str(value.get("key", "")),
                field=str(value.get("field", "")),
            )
        raise InvalidInputError(f"Invalid sourceRef: {value!r}")


class Event:
    """
    A single event: an activity executed at a point in time.

    Attributes:
        activity: Activity name (XES concept:name)
        timestamp: Aware UTC datetime (XES time:timestamp)
        resource: Optional performer (XES org:resource)
        lifecycle: Lifecycle transition (XES lifecycle:transition)
        attributes: Ordered extra attributes
        source_ref: Optional link to the originating SAP table row
    """

    __slots__ = ("activity", "timestamp", "resource", "lifecycle", "attributes", "source_ref")

    def __init__(
        self,
        activity: str,
        timestamp: Any,
        resource: Optional[str] = None,
        lifecycle: Optional[str] = None,
        attributes: Optional[Dict[str, Any]] = None,
        source_ref: Any = None,
    ):
        if not isinstance(activity, str) or not activity.strip():
            raise InvalidInputError("Event requires a non-empty activity")
        self.activity = activity
        self.timestamp: datetime = parse_timestamp(timestamp)
        self.resource = resource if resource else None
        self.lifecycle = lifecycle or DEFAULT_LIFECYCLE
        self.attributes: Dict[str, Any] = dict(attributes) if attributes else {}
        self.source_ref = SourceRef.coerce(source_ref)

    @property
    def timestamp_ms(self) -> int:
        return to_epoch_ms(self.timestamp)

    def clone(self) -> "Event":
        return Event(
            activity=self.activity,
            timestamp=self.timestamp,
            resource=self.resource,
            lifecycle=self.lifecycle,
            attributes=copy.deepcopy(self.attributes),
            source_ref=self.source_ref,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation; optional keys are omitted when empty."""
        data: Dict[str, Any] = {
            "activity": self.activity,
            "timestamp": format_iso(self.timestamp),
            "lifecycle": self.lifecycle,
        }
        if self.resource:
            data["resource"] = self.resource
        if self.attributes:
            data["attributes"] = {k: _json_value(v) for k, v in self.attributes.items()}
        if self.source_ref:
            data["sourceRef"] = self.source_ref.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        if not isinstance(data, dict):
            raise InvalidInputError("Event data must be a dict")
        return cls(
            activity=data.get("activity"),
            timestamp=data.get("timestamp"),
            resource=data.get("resource"),
            lifecycle=data.get("lifecycle"),
            attributes=data.get("attributes"),
            source_ref=data.get("sourceRef"),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return (
            self.activity == other.activity
            and self.timestamp == other.timestamp
            and self.resource == other.resource
            and self.lifecycle == other.lifecycle
            and self.attributes == other.attributes
            and self.source_ref == other.source_ref
        )

    def __repr__(self) -> str:
        return f"Event({self.activity!r}, {format_iso(self.timestamp)}, resource={self.resource!r})"


class Trace:
    """
    The time-ordered events belonging to one case.

    Events are kept sorted by timestamp. ``add_event`` places a new event
    after every existing event with the same timestamp.
    """

    def __init__(
        self,
        case_id: str,
        attributes: Optional[Dict[str, Any]] = None,
        events: Optional[Iterable[Event]] = None,
    ):
        if not isinstance(case_id, str) or not case_id:
            raise InvalidInputError("Trace requires a non-empty caseId")
        self.case_id = case_id
        self.attributes: Dict[str, Any] = dict(attributes) if attributes else {}
        self.events: List[Event] = []
        for event in events or []:
            self.add_event(event)

    def add_event(self, event: Event) -> None:
        if not isinstance(event, Event):
            raise InvalidInputError(f"add_event expects an Event, got {type(event).__name__}")
        if not self.events or event.timestamp >= self.events[-1].timestamp:
            self.events.append(event)
            return
        index = bisect_right(self.events, event.timestamp, key=lambda e: e.timestamp)
        self.events.insert(index, event)

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.events)

    def get_start_time(self) -> Optional[datetime]:
        return self.events[0].timestamp if self.events else None

    def get_end_time(self) -> Optional[datetime]:
        return self.events[-1].timestamp if self.events else None

    def get_duration(self) -> int:
        """Case duration in milliseconds (0 for fewer than two events)."""
        if len(self.events) < 2:
            return 0
        return self.events[-1].timestamp_ms - self.events[0].timestamp_ms

    def get_activities(self) -> List[str]:
        return [e.activity for e in self.events]

    def get_variant_key(self) -> str:
        return VARIANT_SEPARATOR.join(self.get_activities())

    def get_resources(self) -> Set[str]:
        return {e.resource for e in self.events if e.resource}

    def get_activity_durations(self) -> Dict[str, List[int]]:
        """Time from each event to the next, grouped by the earlier activity."""
        durations: Dict[str, List[int]] = defaultdict(list)
        for current, nxt in zip(self.events, self.events[1:]):
            durations[current.activity].append(nxt.timestamp_ms - current.timestamp_ms)
        return dict(durations)

    def has_rework(self) -> bool:
        activities = self.get_activities()
        return len(set(activities)) < len(activities)

    def get_rework_activities(self) -> Dict[str, int]:
        """Activities executed more than once, with their occurrence counts."""
        counts = Counter(self.get_activities())
        return {activity: n for activity, n in counts.items() if n > 1}

    def clone(self) -> "Trace":
        return Trace(
            self.case_id,
            attributes=copy.deepcopy(self.attributes),
            events=[e.clone() for e in self.events],
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"caseId": self.case_id}
        if self.attributes:
            data["attributes"] = {k: _json_value(v) for k, v in self.attributes.items()}
        data["events"] = [e.to_dict() for e in self.events]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Trace":
        if not isinstance(data, dict):
            raise InvalidInputError("Trace data must be a dict")
        events = [Event.from_dict(e) for e in data.get("events") or []]
        return cls(data.get("caseId"), attributes=data.get("attributes"), events=events)

    def __repr__(self) -> str:
        return f"Trace({self.case_id!r}, events={len(self.events)})"


class EventLog:
    """
    An insertion-ordered collection of traces keyed by case id.

    Example:
        log = EventLog("O2C")
        log.add_event("SO-1001", Event("Create Sales Order", "2025-01-10T08:00:00Z"))
        log.get_variants()
    """

    def __init__(
        self,
        name: str = "EventLog",
        attributes: Optional[Dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.name = name
        self.attributes: Dict[str, Any] = dict(attributes) if attributes else {}
        self.classifiers: Dict[str, str] = dict(DEFAULT_CLASSIFIERS)
        self.extensions: List[str] = list(DEFAULT_EXTENSIONS)
        self.traces: Dict[str, Trace] = {}
        self.logger = logger or logging.getLogger(__name__)

    # ── Mutation ────────────────────────────────────────────────────────

    def add_trace(self, trace: Trace) -> None:
        if not isinstance(trace, Trace):
            raise InvalidInputError(f"add_trace expects a Trace, got {type(trace).__name__}")
        if trace.case_id in self.traces:
            self.logger.warning(f"Replacing existing trace for case {trace.case_id}")
        self.traces[trace.case_id] = trace

    def add_event(self, case_id: str, event: Event) -> None:
        """Append an event to a case, creating the trace if necessary."""
        if not isinstance(event, Event):
            raise InvalidInputError(f"add_event expects an Event, got {type(event).__name__}")
        trace = self.traces.get(case_id)
        if trace is None:
            trace = Trace(case_id)
            self.traces[case_id] = trace
        trace.add_event(event)

    # ── Accessors ───────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self.traces)

    def __iter__(self) -> Iterator[Trace]:
        return iter(self.traces.values())

    def get_trace(self, case_id: str) -> Optional[Trace]:
        return self.traces.get(case_id)

    def get_case_count(self) -> int:
        return len(self.traces)

    def get_event_count(self) -> int:
        return sum(len(t.events) for t in self.traces.values())

    def get_activity_set(self) -> Set[str]:
        return {e.activity for t in self.traces.values() for e in t.events}

    def get_resource_set(self) -> Set[str]:
        return {e.resource for t in self.traces.values() for e in t.events if e.resource}

    def get_variants(self) -> Dict[str, Dict[str, Any]]:
        """
        Group cases by variant key.

        Returns:
            Mapping variant key -> {count, caseIds, percentage}, ordered by
            count descending then variant key ascending
        """
        groups: Dict[str, List[str]] = defaultdict(list)
        for case_id, trace in self.traces.items():
            groups[trace.get_variant_key()].append(case_id)

        total = len(self.traces)
        ordered = sorted(groups.items(), key=lambda item: (-len(item[1]), item[0]))
        return {
            key: {
                "count": len(case_ids),
                "caseIds": case_ids,
                "percentage": round(len(case_ids) / total * 10000) / 100 if total else 0,
            }
            for key, case_ids in ordered
        }

    def get_variant_count(self) -> int:
        return len({t.get_variant_key() for t in self.traces.values()})

    def get_directly_follows_matrix(
        self, cancel_token: Optional[CancellationToken] = None
    ) -> Dict[str, Dict[str, int]]:
        """Count of B immediately following A, per ordered pair, within traces."""
        dfg: Dict[str, Dict[str, int]] = {}
        for trace in self.traces.values():
            check_cancelled(cancel_token, "directly-follows construction")
            for current, nxt in zip(trace.events, trace.events[1:]):
                row = dfg.setdefault(current.activity, {})
                row[nxt.activity] = row.get(nxt.activity, 0) + 1
        return dfg

    def get_start_activities(self) -> Dict[str, int]:
        counts = Counter(t.events[0].activity for t in self.traces.values() if t.events)
        return dict(counts.most_common())

    def get_end_activities(self) -> Dict[str, int]:
        counts = Counter(t.events[-1].activity for t in self.traces.values() if t.events)
        return dict(counts.most_common())

    def get_time_range(self) -> Dict[str, Optional[str]]:
        """Earliest and latest event timestamps as ISO strings (None when empty)."""
        starts = [t.get_start_time() for t in self.traces.values() if t.events]
        ends = [t.get_end_time() for t in self.traces.values() if t.events]
        return {
            "start": format_iso(min(starts)) if starts else None,
            "end": format_iso(max(ends)) if ends else None,
        }

    def get_summary(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "cases": self.get_case_count(),
            "events": self.get_event_count(),
            "activities": len(self.get_activity_set()),
            "variants": self.get_variant_count(),
            "timeRange": self.get_time_range(),
            "resources": len(self.get_resource_set()),
        }

    # ── Filters (always return a new log) ───────────────────────────────

    def _empty_copy(self) -> "EventLog":
        filtered = EventLog(self.name, copy.deepcopy(self.attributes), logger=self.logger)
        filtered.classifiers = dict(self.classifiers)
        filtered.extensions = list(self.extensions)
        return filtered

    def filter_by_cases(self, case_ids: Iterable[str]) -> "EventLog":
        wanted = set(case_ids)
        filtered = self._empty_copy()
        for case_id, trace in self.traces.items():
            if case_id in wanted:
                filtered.traces[case_id] = trace.clone()
        self.logger.debug(f"filter_by_cases: {len(self.traces)} -> {len(filtered.traces)} cases")
        return filtered

    def filter_by_activities(self, activities: Iterable[str]) -> "EventLog":
        """Keep only the named activities; traces left empty are dropped."""
        wanted = set(activities)
        filtered = self._empty_copy()
        for case_id, trace in self.traces.items():
            kept = [e.clone() for e in trace.events if e.activity in wanted]
            if kept:
                filtered.traces[case_id] = Trace(case_id, copy.deepcopy(trace.attributes), kept)
        self.logger.debug(f"filter_by_activities: {len(self.traces)} -> {len(filtered.traces)} cases")
        return filtered

    def filter_by_time_range(self, start: Any, end: Any) -> "EventLog":
        """
        Keep cases whose time span overlaps [start, end].

        Raises:
            InvalidInputError: If start is after end or either bound is unparseable
        """
        range_start = parse_timestamp(start)
        range_end = parse_timestamp(end)
        if range_start > range_end:
            raise InvalidInputError("filter_by_time_range: start must not be after end")

        filtered = self._empty_copy()
        for case_id, trace in self.traces.items():
            if not trace.events:
                continue
            if trace.get_start_time() <= range_end and trace.get_end_time() >= range_start:
                filtered.traces[case_id] = trace.clone()
        self.logger.debug(f"filter_by_time_range: {len(self.traces)} -> {len(filtered.traces)} cases")
        return filtered

    def filter_by_attribute(self, key: str, value: Any) -> "EventLog":
        """Keep cases whose trace attribute ``key`` equals ``value``."""
        filtered = self._empty_copy()
        for case_id, trace in self.traces.items():
            if key in trace.attributes and trace.attributes[key] == value:
                filtered.traces[case_id] = trace.clone()
        self.logger.debug(f"filter_by_attribute({key}={value}): {len(self.traces)} -> {len(filtered.traces)} cases")
        return filtered

    def clone(self) -> "EventLog":
        return self.filter_by_cases(self.traces.keys())

    # ── Codecs ──────────────────────────────────────────────────────────

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "attributes": {k: _json_value(v) for k, v in self.attributes.items()},
            "classifiers": dict(self.classifiers),
            "extensions": list(self.extensions),
            "traces": [t.to_dict() for t in self.traces.values()],
        }

    def to_json_string(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_json(), indent=indent)

    @classmethod
    def from_json(
        cls, data: Union[str, Dict[str, Any]], logger: Optional[logging.Logger] = None
    ) -> "EventLog":
        """
        Rebuild a log from ``to_json`` output (dict or JSON text).

        Raises:
            InvalidInputError: If the payload is not a JSON object
        """
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as e:
                raise InvalidInputError(f"Invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise InvalidInputError("from_json expects a JSON object")

        log = cls(data.get("name") or "EventLog", data.get("attributes"), logger=logger)
        if isinstance(data.get("classifiers"), dict):
            log.classifiers = dict(data["classifiers"])
        if isinstance(data.get("extensions"), list):
            log.extensions = list(data["extensions"])
        for trace_data in data.get("traces") or []:
            log.add_trace(Trace.from_dict(trace_data))
        return log

    def to_csv(self) -> str:
        from .csv_codec import write_csv
        return write_csv(self)

    @classmethod
    def from_csv(
        cls, text: str, name: str = "EventLog", logger: Optional[logging.Logger] = None
    ) -> "EventLog":
        from .csv_codec import read_csv
        return read_csv(text, name=name, logger=logger)

    def to_xes(self) -> str:
        from .xes import write_xes
        return write_xes(self)

    @classmethod
    def from_xes(cls, text: str, logger: Optional[logging.Logger] = None) -> "EventLog":
        from .xes import read_xes
        return read_xes(text, logger=logger)

    def __repr__(self) -> str:
        return f"EventLog({self.name!r}, cases={len(self.traces)})"


def _json_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_iso(value)
    return value
