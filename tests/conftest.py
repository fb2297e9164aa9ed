"""
Pytest configuration and fixtures for process mining tests.
"""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from process_mining.eventlog import Event, EventLog  # noqa: E402

UTC = timezone.utc


def build_log(cases, name="TestLog", attributes=None):
    """
    Build an EventLog from {case_id: [(activity, datetime, resource), ...]}.

    ``attributes`` optionally maps case_id -> trace attributes.
    """
    log = EventLog(name)
    for case_id, events in cases.items():
        for activity, timestamp, resource in events:
            log.add_event(case_id, Event(activity, timestamp, resource=resource))
        if attributes and case_id in attributes:
            log.get_trace(case_id).attributes.update(attributes[case_id])
    return log


def sequence(activities, start, step=timedelta(hours=1), resources=None):
    """Evenly spaced events for one case."""
    resources = resources or [None] * len(activities)
    return [(a, start + step * i, r) for i, (a, r) in enumerate(zip(activities, resources))]


O2C_HAPPY = [
    "Create Sales Order",
    "Credit Check",
    "Create Delivery",
    "Goods Issue",
    "Create Invoice",
    "Receive Payment",
]


@pytest.fixture
def o2c_log():
    """Three O2C cases; SO-1003 loops back through a sales order change."""
    d = datetime
    cases = {
        "SO-1001": [
            ("Create Sales Order", d(2025, 1, 10, 8, 0, tzinfo=UTC), "USER_A"),
            ("Credit Check", d(2025, 1, 10, 9, 0, tzinfo=UTC), "BATCH"),
            ("Create Delivery", d(2025, 1, 12, 10, 0, tzinfo=UTC), "USER_B"),
            ("Goods Issue", d(2025, 1, 13, 14, 0, tzinfo=UTC), "USER_C"),
            ("Create Invoice", d(2025, 1, 14, 9, 0, tzinfo=UTC), "USER_D"),
            ("Receive Payment", d(2025, 2, 1, 12, 0, tzinfo=UTC), "USER_E"),
        ],
        "SO-1002": [
            ("Create Sales Order", d(2025, 1, 15, 9, 0, tzinfo=UTC), "USER_A"),
            ("Credit Check", d(2025, 1, 15, 10, 0, tzinfo=UTC), "BATCH"),
            ("Create Delivery", d(2025, 1, 17, 8, 0, tzinfo=UTC), "USER_B"),
            ("Goods Issue", d(2025, 1, 18, 11, 0, tzinfo=UTC), "USER_C"),
            ("Create Invoice", d(2025, 1, 20, 9, 0, tzinfo=UTC), "USER_D"),
            ("Receive Payment", d(2025, 2, 10, 15, 0, tzinfo=UTC), "USER_E"),
        ],
        "SO-1003": [
            ("Create Sales Order", d(2025, 2, 1, 10, 0, tzinfo=UTC), "USER_F"),
            ("Credit Check", d(2025, 2, 1, 11, 0, tzinfo=UTC), "BATCH"),
            ("Change Sales Order", d(2025, 2, 3, 9, 0, tzinfo=UTC), "USER_F"),
            ("Credit Check", d(2025, 2, 3, 10, 0, tzinfo=UTC), "BATCH"),
            ("Create Delivery", d(2025, 2, 5, 8, 0, tzinfo=UTC), "USER_B"),
            ("Goods Issue", d(2025, 2, 6, 13, 0, tzinfo=UTC), "USER_C"),
            ("Create Invoice", d(2025, 2, 7, 9, 0, tzinfo=UTC), "USER_D"),
            ("Receive Payment", d(2025, 2, 20, 16, 0, tzinfo=UTC), "USER_E"),
        ],
    }
    return build_log(cases, name="O2C")


@pytest.fixture
def sequential_p2p_log():
    """20 identical sequential P2P cases."""
    base = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)
    acts = ["CREATE_PO", "APPROVE_PO", "GR", "IR", "PAYMENT"]
    return build_log({
        f"PO-{i:03d}": sequence(acts, base + timedelta(days=i)) for i in range(20)
    })


@pytest.fixture
def xor_log():
    """10 cases A-B-D and 10 cases A-C-D."""
    base = datetime(2025, 3, 1, 8, 0, tzinfo=UTC)
    cases = {}
    for i in range(10):
        cases[f"B-{i}"] = sequence(["A", "B", "D"], base + timedelta(days=i))
        cases[f"C-{i}"] = sequence(["A", "C", "D"], base + timedelta(days=i, hours=12))
    return build_log(cases)


P2P_HAPPY = ["Create PO", "Approve PO", "Goods Receipt", "Invoice Receipt", "Payment"]
P2P_SWAPPED = ["Create PO", "Approve PO", "Invoice Receipt", "Goods Receipt", "Payment"]
P2P_DOUBLE_GR = ["Create PO", "Approve PO", "Goods Receipt", "Goods Receipt", "Invoice Receipt", "Payment"]
P2P_SHORT = ["Create PO", "Goods Receipt", "Payment"]


@pytest.fixture
def p2p_variant_log():
    """15 P2P cases: 6 happy, 4 with a repeated goods receipt, 3 swapped GR/IR, 2 short."""
    base = datetime(2025, 4, 1, 8, 0, tzinfo=UTC)
    layout = [P2P_HAPPY] * 6 + [P2P_DOUBLE_GR] * 4 + [P2P_SWAPPED] * 3 + [P2P_SHORT] * 2
    cases = {
        f"P-{i:02d}": sequence(acts, base + timedelta(days=i))
        for i, acts in enumerate(layout)
    }
    vendors = {
        case_id: {"vendor": "V1" if acts is P2P_DOUBLE_GR else "V2"}
        for (case_id, acts) in zip(cases, layout)
    }
    return build_log(cases, name="P2P", attributes=vendors)


@pytest.fixture
def empty_log():
    return EventLog("Empty")
