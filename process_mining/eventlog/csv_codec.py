"""
CSV import/export for event logs.

One row per event with the columns
``caseId, activity, timestamp, resource, lifecycle`` followed by every event
attribute key in lexicographic order. Fields containing a comma, quote, CR
or LF are quoted with inner quotes doubled.

Import uses the csv module's reader, which honours quoted fields spanning
several lines. Rows missing a required value or carrying an unparseable
timestamp are skipped with a warning, and a summary is logged at the end.
"""

import csv
import io
import logging
from datetime import datetime
from typing import Any, List, Optional

from ..errors import InvalidInputError
from .model import Event, EventLog
from .timestamps import format_iso, try_parse_timestamp

logger = logging.getLogger(__name__)

STANDARD_COLUMNS = ["caseId", "activity", "timestamp", "resource", "lifecycle"]
REQUIRED_COLUMNS = ["caseId", "activity", "timestamp"]

_NEEDS_QUOTING = (",", '"', "\r", "\n")


def escape_field(value: Any) -> str:
    """Render a value as a CSV field, quoting only when required."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        text = format_iso(value)
    elif isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    if any(ch in text for ch in _NEEDS_QUOTING):
        return '"' + text.replace('"', '""') + '"'
    return text


def write_csv(log: EventLog) -> str:
    """Serialize a log to CSV text (rows joined by ``\\n``, no trailing newline)."""
    attr_keys = sorted({key for trace in log for event in trace for key in event.attributes})
    header = STANDARD_COLUMNS + attr_keys
    lines = [",".join(escape_field(h) for h in header)]

    for case_id, trace in log.traces.items():
        for event in trace.events:
            row: List[Any] = [
                case_id,
                event.activity,
                format_iso(event.timestamp),
                event.resource or "",
                event.lifecycle,
            ]
            row.extend(event.attributes.get(k, "") for k in attr_keys)
            lines.append(",".join(escape_field(v) for v in row))

    return "\n".join(lines)


def read_csv(text: str, name: str = "EventLog", logger: Optional[logging.Logger] = None) -> EventLog:
    """
    Parse CSV text into an EventLog.

    Args:
        text: CSV content with a header row
        name: Name for the resulting log
        logger: Optional logger for row warnings and the import summary

    Returns:
        EventLog built from every parseable row

    Raises:
        InvalidInputError: If the text is empty or a required column is missing
    """
    log = logger or logging.getLogger(__name__)
    if not isinstance(text, str) or not text.strip():
        raise InvalidInputError("from_csv requires a non-empty CSV string")

    reader = csv.reader(io.StringIO(text, newline=""))
    try:
        headers = next(reader)
    except StopIteration:
        raise InvalidInputError("CSV has no header row")
    headers = [h.strip() for h in headers]

    for column in REQUIRED_COLUMNS:
        if column not in headers:
            raise InvalidInputError(f"CSV missing required column: {column}")

    index = {h: i for i, h in enumerate(headers)}
    attr_columns = [(i, h) for i, h in enumerate(headers) if h not in STANDARD_COLUMNS]

    def cell(fields: List[str], column: str) -> str:
        i = index.get(column)
        if i is None or i >= len(fields):
            return ""
        return fields[i]

    event_log = EventLog(name, logger=logger)
    parsed = 0
    skipped = 0

    for fields in reader:
        row_number = reader.line_num
        if not fields or all(f == "" for f in fields):
            continue

        case_id = cell(fields, "caseId")
        activity = cell(fields, "activity")
        timestamp_text = cell(fields, "timestamp")
        if not case_id or not activity.strip() or not timestamp_text:
            skipped += 1
            log.warning(f"CSV record ending at line {row_number}: skipped, missing required field(s)")
            continue

        timestamp = try_parse_timestamp(timestamp_text)
        if timestamp is None:
            skipped += 1
            log.warning(f"CSV record ending at line {row_number}: skipped, invalid timestamp {timestamp_text!r}")
            continue

        attributes = {}
        for i, key in attr_columns:
            if i < len(fields) and fields[i] != "":
                attributes[key] = fields[i]

        event_log.add_event(
            case_id,
            Event(
                activity=activity,
                timestamp=timestamp,
                resource=cell(fields, "resource") or None,
                lifecycle=cell(fields, "lifecycle") or None,
                attributes=attributes,
            ),
        )
        parsed += 1

    log.info(
        f"CSV import: {parsed} events parsed, {skipped} skipped, "
        f"{event_log.get_case_count()} cases"
    )
    return event_log
