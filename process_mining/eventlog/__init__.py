"""
Event Log Module.

Provides the Event / Trace / EventLog data model and the XES, JSON and CSV
codecs used to move logs in and out of the analyzers.

Example Usage:
    from process_mining.eventlog import Event, EventLog

    log = EventLog("O2C")
    log.add_event("SO-1001", Event("Create Sales Order", "2025-01-10T08:00:00Z", resource="USER_A"))
    log.add_event("SO-1001", Event("Create Delivery", "2025-01-12T10:00:00Z", resource="USER_B"))

    print(log.get_variants())
    xml = log.to_xes()
    restored = EventLog.from_xes(xml)
"""

from .model import (
    DEFAULT_CLASSIFIERS,
    DEFAULT_EXTENSIONS,
    DEFAULT_LIFECYCLE,
    VARIANT_SEPARATOR,
    Event,
    EventLog,
    SourceRef,
    Trace,
)
from .timestamps import format_iso, format_xes, parse_timestamp, to_epoch_ms
from .csv_codec import read_csv, write_csv
from .xes import XES_EXTENSIONS, read_xes, write_xes

__all__ = [
    # Model
    "Event",
    "EventLog",
    "SourceRef",
    "Trace",
    "DEFAULT_CLASSIFIERS",
    "DEFAULT_EXTENSIONS",
    "DEFAULT_LIFECYCLE",
    "VARIANT_SEPARATOR",
    # Timestamps
    "format_iso",
    "format_xes",
    "parse_timestamp",
    "to_epoch_ms",
    # Codecs
    "XES_EXTENSIONS",
    "read_csv",
    "read_xes",
    "write_csv",
    "write_xes",
]
