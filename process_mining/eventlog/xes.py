"""
IEEE 1849 XES 2.0 serialization.

The writer emits a fixed, line-oriented layout so exports are byte-stable:
extensions, trace and event globals, the Activity/Resource classifiers, log
attributes, then every trace with its events in chronological order. Typed
attributes map Python values onto ``<string>``, ``<int>``, ``<float>``,
``<date>`` and ``<boolean>``; dates always carry an explicit ``+00:00``
offset. Event source references are written as ``sap:table``, ``sap:key``
and ``sap:field`` strings.

The reader accepts any XES document (with or without the XES namespace) and
rebuilds an EventLog, ignoring globals, classifiers and nested attributes.
"""

import logging
import math
import xml.etree.ElementTree as ET
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from xml.sax.saxutils import escape

from ..errors import InvalidInputError
from .model import Event, EventLog, Trace
from .timestamps import format_xes, parse_timestamp, try_parse_timestamp

logger = logging.getLogger(__name__)

# Canonical output order
XES_EXTENSIONS = {
    "concept": ("Concept", "concept", "http://www.xes-standard.org/concept.xesext"),
    "time": ("Time", "time", "http://www.xes-standard.org/time.xesext"),
    "lifecycle": ("Lifecycle", "lifecycle", "http://www.xes-standard.org/lifecycle.xesext"),
    "organizational": ("Organizational", "org", "http://www.xes-standard.org/org.xesext"),
}

_XML_ENTITIES = {'"': "&quot;", "'": "&apos;"}

_STANDARD_EVENT_KEYS = {"concept:name", "time:timestamp", "org:resource", "lifecycle:transition"}
_SOURCE_REF_KEYS = {"sap:table": "table", "sap:key": "key", "sap:field": "field"}


def escape_xml(value: Any) -> str:
    """Escape the five XML entities (& < > " ')."""
    return escape(str(value), _XML_ENTITIES)


def xes_attribute(key: str, value: Any) -> str:
    """Render one typed XES attribute element."""
    k = escape_xml(key)
    if isinstance(value, datetime):
        return f'<date key="{k}" value="{format_xes(parse_timestamp(value))}"/>'
    if isinstance(value, bool):
        return f'<boolean key="{k}" value="{"true" if value else "false"}"/>'
    if isinstance(value, int):
        return f'<int key="{k}" value="{value}"/>'
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return f'<int key="{k}" value="{int(value)}"/>'
        return f'<float key="{k}" value="{value!r}"/>'
    if value is None:
        value = ""
    return f'<string key="{k}" value="{escape_xml(value)}"/>'


def write_xes(log: EventLog) -> str:
    lines: List[str] = [
        '<?xml version="1.0" encoding="UTF-8" ?>',
        '<log xes.version="2.0" xes.features="">',
    ]

    for ext_key, (name, prefix, uri) in XES_EXTENSIONS.items():
        if ext_key in log.extensions:
            lines.append(
                f'  <extension name="{escape_xml(name)}" prefix="{escape_xml(prefix)}" uri="{escape_xml(uri)}"/>'
            )

    lines.extend([
        '  <global scope="trace">',
        '    <string key="concept:name" value="UNKNOWN"/>',
        '  </global>',
        '  <global scope="event">',
        '    <string key="concept:name" value="UNKNOWN"/>',
        '    <date key="time:timestamp" value="1970-01-01T00:00:00.000+00:00"/>',
        '  </global>',
        f'  <classifier name="Activity" keys="{escape_xml(log.classifiers.get("activity", "concept:name"))}"/>',
        f'  <classifier name="Resource" keys="{escape_xml(log.classifiers.get("resource", "org:resource"))}"/>',
    ])

    if log.name:
        lines.append(f'  <string key="concept:name" value="{escape_xml(log.name)}"/>')
    for key, value in log.attributes.items():
        lines.append(f"  {xes_attribute(key, value)}")

    for trace in log:
        lines.append("  <trace>")
        lines.append(f'    <string key="concept:name" value="{escape_xml(trace.case_id)}"/>')
        for key, value in trace.attributes.items():
            lines.append(f"    {xes_attribute(key, value)}")

        for event in trace.events:
            lines.append("    <event>")
            lines.append(f'      <string key="concept:name" value="{escape_xml(event.activity)}"/>')
            lines.append(f'      <date key="time:timestamp" value="{format_xes(event.timestamp)}"/>')
            if event.resource:
                lines.append(f'      <string key="org:resource" value="{escape_xml(event.resource)}"/>')
            lines.append(f'      <string key="lifecycle:transition" value="{escape_xml(event.lifecycle)}"/>')
            for key, value in event.attributes.items():
                lines.append(f"      {xes_attribute(key, value)}")
            if event.source_ref:
                ref = event.source_ref
                lines.append(f'      <string key="sap:table" value="{escape_xml(ref.table)}"/>')
                lines.append(f'      <string key="sap:key" value="{escape_xml(ref.key)}"/>')
                lines.append(f'      <string key="sap:field" value="{escape_xml(ref.field)}"/>')
            lines.append("    </event>")

        lines.append("  </trace>")

    lines.append("</log>")
    return "\n".join(lines)


# ── Reader ──────────────────────────────────────────────────────────────


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _typed_value(element: ET.Element) -> Tuple[Optional[str], Any]:
    """Decode a typed attribute element into (key, python value)."""
    tag = _local(element.tag)
    key = element.get("key")
    raw = element.get("value")
    if key is None or raw is None:
        return None, None
    if tag == "int":
        try:
            return key, int(raw)
        except ValueError:
            return key, raw
    if tag == "float":
        try:
            return key, float(raw)
        except ValueError:
            return key, raw
    if tag == "boolean":
        return key, raw.strip().lower() == "true"
    if tag == "date":
        parsed = try_parse_timestamp(raw)
        return key, parsed if parsed is not None else raw
    if tag in ("string", "id"):
        return key, raw
    return None, None


def _attributes(element: ET.Element) -> Dict[str, Any]:
    """Direct typed attribute children of an element, in document order."""
    attrs: Dict[str, Any] = {}
    for child in element:
        key, value = _typed_value(child)
        if key is not None:
            attrs[key] = value
    return attrs


def read_xes(text: str, logger: Optional[logging.Logger] = None) -> EventLog:
    """
    Parse an XES document into an EventLog.

    Raises:
        InvalidInputError: If the text is not well-formed XML or has no <log> root
    """
    log = logger or logging.getLogger(__name__)
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise InvalidInputError(f"Invalid XES document: {e}") from e
    if _local(root.tag) != "log":
        raise InvalidInputError(f"XES root element must be <log>, got <{_local(root.tag)}>")

    log_attrs = _attributes(root)
    name = log_attrs.pop("concept:name", None) or "EventLog"
    event_log = EventLog(str(name), log_attrs, logger=logger)

    extensions = []
    for child in root:
        if _local(child.tag) == "extension":
            prefix = child.get("prefix")
            for ext_key, (_, ext_prefix, _) in XES_EXTENSIONS.items():
                if prefix == ext_prefix:
                    extensions.append(ext_key)
    if extensions:
        event_log.extensions = extensions

    skipped = 0
    for index, trace_el in enumerate(child for child in root if _local(child.tag) == "trace"):
        trace_attrs = _attributes(trace_el)
        case_id = str(trace_attrs.pop("concept:name", "") or f"trace-{index + 1}")
        trace = Trace(case_id, trace_attrs)

        for event_el in trace_el:
            if _local(event_el.tag) != "event":
                continue
            attrs = _attributes(event_el)
            activity = attrs.get("concept:name")
            timestamp = attrs.get("time:timestamp")
            if not activity or not isinstance(timestamp, datetime):
                skipped += 1
                log.warning(f"XES trace {case_id}: skipped event without activity or timestamp")
                continue

            ref_parts = {field: attrs.pop(key) for key, field in _SOURCE_REF_KEYS.items() if key in attrs}
            extra = {k: v for k, v in attrs.items() if k not in _STANDARD_EVENT_KEYS}
            trace.add_event(Event(
                activity=str(activity),
                timestamp=timestamp,
                resource=attrs.get("org:resource"),
                lifecycle=attrs.get("lifecycle:transition"),
                attributes=extra,
                source_ref=ref_parts or None,
            ))

        event_log.add_trace(trace)

    log.info(
        f"XES import: {event_log.get_case_count()} cases, "
        f"{event_log.get_event_count()} events, {skipped} skipped"
    )
    return event_log
