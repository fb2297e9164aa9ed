"""
SAP Best-Practice Reference Models.

Expected flows for the seven standard SAP end-to-end processes, with
the happy path, exception branches (credit blocks, invoice blocks,
reversals, dunning, rework loops), SLA targets from SAP benchmarks and
the transitions auditors verify.

Edge types:
    sequence: step of the normal flow
    choice: alternative branch taken by some cases
    parallel: shortcut taken when steps overlap or are skipped

Example Usage:
    from process_mining.conformance import ConformanceChecker, get_reference_model

    o2c = get_reference_model("O2C")
    print(o2c.get_critical_path())
    result = ConformanceChecker(o2c).check_log(log)
"""

import logging
from typing import Dict, List, Sequence, Tuple

from ..errors import NotFoundError
from ..performance import transition_key
from .reference_model import ReferenceModel

logger = logging.getLogger(__name__)

S, C, P = "sequence", "choice", "parallel"


def _model(
    process_id: str,
    name: str,
    activities: Sequence[str],
    edges: Sequence[Tuple[str, str, str]],
    start: Sequence[str],
    end: Sequence[str],
    sla: Sequence[Tuple[str, str, float, str, str]],
    critical: Sequence[Tuple[str, str]],
) -> ReferenceModel:
    return ReferenceModel(
        name=name,
        activities=tuple(activities),
        edges=tuple((a, b) for a, b, _ in edges),
        start_activities=frozenset(start),
        end_activities=frozenset(end),
        process_id=process_id,
        edge_types={(a, b): kind for a, b, kind in edges},
        sla_targets={
            transition_key(a, b): {"target": target, "unit": unit, "severity": severity}
            for a, b, target, unit, severity in sla
        },
        critical_transitions=tuple(transition_key(a, b) for a, b in critical),
    )


O2C = _model(
    "O2C", "Order to Cash",
    activities=[
        "Create Sales Order", "Change Sales Order", "Credit Check", "Approve Credit",
        "Block Order", "Release Order", "Create Delivery", "Pick", "Pack", "Goods Issue",
        "Create Invoice", "Send Invoice", "Dunning", "Payment Received", "Clear Invoice",
    ],
    edges=[
        ("Create Sales Order", "Credit Check", S),
        ("Credit Check", "Create Delivery", S),
        ("Create Delivery", "Pick", S),
        ("Pick", "Pack", S),
        ("Pack", "Goods Issue", S),
        ("Goods Issue", "Create Invoice", S),
        ("Create Invoice", "Send Invoice", S),
        ("Send Invoice", "Payment Received", S),
        ("Payment Received", "Clear Invoice", S),
        # credit block
        ("Credit Check", "Block Order", C),
        ("Block Order", "Approve Credit", S),
        ("Approve Credit", "Release Order", S),
        ("Release Order", "Create Delivery", S),
        # order changes
        ("Create Sales Order", "Change Sales Order", C),
        ("Change Sales Order", "Credit Check", S),
        ("Create Sales Order", "Create Delivery", P),
        # dunning
        ("Send Invoice", "Dunning", C),
        ("Dunning", "Payment Received", S),
        ("Dunning", "Dunning", C),
    ],
    start=["Create Sales Order"],
    end=["Clear Invoice"],
    sla=[
        ("Create Sales Order", "Create Delivery", 3, "days", "warning"),
        ("Create Delivery", "Goods Issue", 1, "days", "warning"),
        ("Goods Issue", "Create Invoice", 2, "days", "warning"),
        ("Create Invoice", "Payment Received", 30, "days", "critical"),
        ("Create Sales Order", "Payment Received", 45, "days", "critical"),
        ("Create Sales Order", "Clear Invoice", 50, "days", "critical"),
        ("Credit Check", "Block Order", 1, "hours", "warning"),
        ("Block Order", "Release Order", 2, "days", "warning"),
    ],
    critical=[
        ("Goods Issue", "Create Invoice"),
        ("Create Invoice", "Payment Received"),
        ("Payment Received", "Clear Invoice"),
        ("Create Sales Order", "Credit Check"),
    ],
)

P2P = _model(
    "P2P", "Procure to Pay",
    activities=[
        "Create Purchase Requisition", "Approve Purchase Requisition", "Reject Purchase Requisition",
        "Create Purchase Order", "Approve Purchase Order", "Send Purchase Order", "Goods Receipt",
        "Invoice Receipt", "Three-Way Match", "Block Invoice", "Release Invoice",
        "Schedule Payment", "Payment Run", "Payment Clearing",
    ],
    edges=[
        ("Create Purchase Requisition", "Approve Purchase Requisition", S),
        ("Approve Purchase Requisition", "Create Purchase Order", S),
        ("Create Purchase Order", "Approve Purchase Order", S),
        ("Approve Purchase Order", "Send Purchase Order", S),
        ("Send Purchase Order", "Goods Receipt", S),
        ("Goods Receipt", "Invoice Receipt", S),
        ("Invoice Receipt", "Three-Way Match", S),
        ("Three-Way Match", "Schedule Payment", S),
        ("Schedule Payment", "Payment Run", S),
        ("Payment Run", "Payment Clearing", S),
        # rejected requisitions
        ("Create Purchase Requisition", "Reject Purchase Requisition", C),
        # invoice block
        ("Three-Way Match", "Block Invoice", C),
        ("Block Invoice", "Release Invoice", S),
        ("Release Invoice", "Schedule Payment", S),
        # POs without approval, service POs, evaluated receipt settlement
        ("Create Purchase Order", "Send Purchase Order", P),
        ("Send Purchase Order", "Invoice Receipt", P),
        ("Goods Receipt", "Three-Way Match", P),
    ],
    start=["Create Purchase Requisition", "Create Purchase Order"],
    end=["Payment Clearing", "Reject Purchase Requisition"],
    sla=[
        ("Create Purchase Requisition", "Approve Purchase Requisition", 2, "days", "warning"),
        ("Approve Purchase Requisition", "Create Purchase Order", 3, "days", "warning"),
        ("Create Purchase Order", "Send Purchase Order", 1, "days", "warning"),
        ("Send Purchase Order", "Goods Receipt", 14, "days", "warning"),
        ("Goods Receipt", "Invoice Receipt", 5, "days", "warning"),
        ("Invoice Receipt", "Three-Way Match", 2, "days", "warning"),
        ("Three-Way Match", "Schedule Payment", 3, "days", "warning"),
        ("Invoice Receipt", "Payment Clearing", 30, "days", "critical"),
        ("Create Purchase Requisition", "Payment Clearing", 60, "days", "critical"),
        ("Block Invoice", "Release Invoice", 5, "days", "warning"),
    ],
    critical=[
        ("Goods Receipt", "Invoice Receipt"),
        ("Invoice Receipt", "Three-Way Match"),
        ("Three-Way Match", "Schedule Payment"),
        ("Payment Run", "Payment Clearing"),
    ],
)

R2R = _model(
    "R2R", "Record to Report",
    activities=[
        "Create Journal Entry", "Park Journal Entry", "Approve Journal Entry", "Post Journal Entry",
        "Reverse Journal Entry", "Clear Line Item", "Run Automatic Clearing",
        "Period Close Posting", "Execute Reconciliation", "Close Period",
    ],
    edges=[
        ("Create Journal Entry", "Post Journal Entry", S),
        ("Post Journal Entry", "Clear Line Item", S),
        ("Clear Line Item", "Run Automatic Clearing", S),
        ("Run Automatic Clearing", "Period Close Posting", S),
        ("Period Close Posting", "Execute Reconciliation", S),
        ("Execute Reconciliation", "Close Period", S),
        # park and approve
        ("Create Journal Entry", "Park Journal Entry", C),
        ("Park Journal Entry", "Approve Journal Entry", S),
        ("Approve Journal Entry", "Post Journal Entry", S),
        # reversal
        ("Post Journal Entry", "Reverse Journal Entry", C),
        ("Reverse Journal Entry", "Create Journal Entry", S),
        ("Post Journal Entry", "Run Automatic Clearing", P),
        ("Period Close Posting", "Close Period", P),
    ],
    start=["Create Journal Entry"],
    end=["Close Period"],
    sla=[
        ("Create Journal Entry", "Post Journal Entry", 1, "days", "warning"),
        ("Park Journal Entry", "Approve Journal Entry", 1, "days", "warning"),
        ("Approve Journal Entry", "Post Journal Entry", 4, "hours", "warning"),
        ("Period Close Posting", "Close Period", 5, "days", "critical"),
        ("Execute Reconciliation", "Close Period", 2, "days", "critical"),
        ("Post Journal Entry", "Clear Line Item", 3, "days", "warning"),
        ("Run Automatic Clearing", "Period Close Posting", 1, "days", "warning"),
    ],
    critical=[
        ("Approve Journal Entry", "Post Journal Entry"),
        ("Execute Reconciliation", "Close Period"),
        ("Period Close Posting", "Close Period"),
    ],
)

A2R = _model(
    "A2R", "Acquire to Retire",
    activities=[
        "Create Asset Master", "Post Asset Acquisition", "Capitalize Asset", "Post Depreciation",
        "Transfer Asset", "Revalue Asset", "Retire Asset", "Scrap Asset", "Settle Asset",
    ],
    edges=[
        ("Create Asset Master", "Post Asset Acquisition", S),
        ("Post Asset Acquisition", "Capitalize Asset", S),
        ("Capitalize Asset", "Post Depreciation", S),
        ("Post Depreciation", "Retire Asset", S),
        ("Retire Asset", "Settle Asset", S),
        # monthly depreciation runs
        ("Post Depreciation", "Post Depreciation", C),
        ("Post Depreciation", "Transfer Asset", C),
        ("Transfer Asset", "Post Depreciation", S),
        ("Post Depreciation", "Revalue Asset", C),
        ("Revalue Asset", "Post Depreciation", S),
        # scrapping instead of retirement
        ("Post Depreciation", "Scrap Asset", C),
        ("Scrap Asset", "Settle Asset", S),
        ("Capitalize Asset", "Retire Asset", C),
        ("Capitalize Asset", "Scrap Asset", C),
    ],
    start=["Create Asset Master"],
    end=["Settle Asset"],
    sla=[
        ("Create Asset Master", "Post Asset Acquisition", 2, "days", "warning"),
        ("Post Asset Acquisition", "Capitalize Asset", 5, "days", "warning"),
        ("Capitalize Asset", "Post Depreciation", 30, "days", "warning"),
        ("Retire Asset", "Settle Asset", 5, "days", "warning"),
        ("Scrap Asset", "Settle Asset", 5, "days", "warning"),
        ("Create Asset Master", "Capitalize Asset", 10, "days", "critical"),
    ],
    critical=[
        ("Post Asset Acquisition", "Capitalize Asset"),
        ("Capitalize Asset", "Post Depreciation"),
        ("Retire Asset", "Settle Asset"),
    ],
)

H2R = _model(
    "H2R", "Hire to Retire",
    activities=[
        "Create Employee", "Hire Action", "Assign Organizational Unit", "Assign Position",
        "Enter Basic Pay", "Onboard", "Change Position", "Promote", "Transfer", "Adjust Pay",
        "Process Payroll", "Terminate",
    ],
    edges=[
        ("Create Employee", "Hire Action", S),
        ("Hire Action", "Assign Organizational Unit", S),
        ("Assign Organizational Unit", "Assign Position", S),
        ("Assign Position", "Enter Basic Pay", S),
        ("Enter Basic Pay", "Onboard", S),
        ("Hire Action", "Assign Position", P),
        ("Hire Action", "Enter Basic Pay", P),
        ("Onboard", "Process Payroll", S),
        # career changes
        ("Onboard", "Change Position", C),
        ("Onboard", "Promote", C),
        ("Onboard", "Transfer", C),
        ("Onboard", "Adjust Pay", C),
        ("Change Position", "Process Payroll", S),
        ("Promote", "Adjust Pay", S),
        ("Adjust Pay", "Process Payroll", S),
        ("Transfer", "Assign Organizational Unit", S),
        # recurring payroll
        ("Process Payroll", "Process Payroll", C),
        ("Process Payroll", "Change Position", C),
        ("Process Payroll", "Promote", C),
        ("Process Payroll", "Transfer", C),
        ("Process Payroll", "Adjust Pay", C),
        ("Process Payroll", "Terminate", S),
        ("Onboard", "Terminate", C),
    ],
    start=["Create Employee"],
    end=["Terminate"],
    sla=[
        ("Create Employee", "Hire Action", 1, "days", "warning"),
        ("Hire Action", "Onboard", 14, "days", "critical"),
        ("Enter Basic Pay", "Onboard", 3, "days", "warning"),
        ("Onboard", "Process Payroll", 30, "days", "warning"),
        ("Process Payroll", "Process Payroll", 30, "days", "warning"),
        ("Promote", "Adjust Pay", 5, "days", "warning"),
        ("Change Position", "Process Payroll", 30, "days", "warning"),
        ("Process Payroll", "Terminate", 30, "days", "warning"),
    ],
    critical=[
        ("Hire Action", "Onboard"),
        ("Enter Basic Pay", "Onboard"),
        ("Onboard", "Process Payroll"),
        ("Process Payroll", "Terminate"),
    ],
)

P2M = _model(
    "P2M", "Plan to Manufacture",
    activities=[
        "Create Production Order", "Plan Order", "Release Production Order",
        "Print Shop Floor Papers", "Issue Materials", "Start Operation", "Confirm Operation",
        "Partial Confirmation", "Goods Receipt", "Technically Complete", "Close Order",
        "Settle Order",
    ],
    edges=[
        ("Create Production Order", "Plan Order", S),
        ("Plan Order", "Release Production Order", S),
        ("Release Production Order", "Print Shop Floor Papers", S),
        ("Release Production Order", "Issue Materials", P),
        ("Print Shop Floor Papers", "Issue Materials", S),
        ("Issue Materials", "Start Operation", S),
        ("Start Operation", "Confirm Operation", S),
        ("Confirm Operation", "Goods Receipt", S),
        ("Goods Receipt", "Technically Complete", S),
        ("Technically Complete", "Close Order", S),
        ("Close Order", "Settle Order", S),
        # multi-operation orders
        ("Start Operation", "Partial Confirmation", C),
        ("Partial Confirmation", "Start Operation", S),
        ("Partial Confirmation", "Confirm Operation", S),
        # backflush
        ("Confirm Operation", "Issue Materials", P),
        ("Goods Receipt", "Close Order", P),
        # rework
        ("Confirm Operation", "Start Operation", C),
    ],
    start=["Create Production Order"],
    end=["Settle Order"],
    sla=[
        ("Create Production Order", "Plan Order", 1, "days", "warning"),
        ("Plan Order", "Release Production Order", 2, "days", "warning"),
        ("Release Production Order", "Issue Materials", 1, "days", "critical"),
        ("Issue Materials", "Start Operation", 4, "hours", "warning"),
        ("Start Operation", "Confirm Operation", 5, "days", "warning"),
        ("Confirm Operation", "Goods Receipt", 1, "days", "warning"),
        ("Goods Receipt", "Technically Complete", 2, "days", "warning"),
        ("Technically Complete", "Settle Order", 5, "days", "warning"),
        ("Release Production Order", "Goods Receipt", 10, "days", "critical"),
    ],
    critical=[
        ("Release Production Order", "Issue Materials"),
        ("Confirm Operation", "Goods Receipt"),
        ("Goods Receipt", "Technically Complete"),
        ("Close Order", "Settle Order"),
    ],
)

M2S = _model(
    "M2S", "Maintain to Settle",
    activities=[
        "Create Notification", "Classify Notification", "Approve Notification",
        "Create Work Order", "Plan Work Order", "Release Work Order", "Print Work Order",
        "Issue Spare Parts", "Execute Maintenance", "Confirm Operations",
        "Technically Complete", "Settle Work Order",
    ],
    edges=[
        ("Create Notification", "Classify Notification", S),
        ("Classify Notification", "Approve Notification", S),
        ("Approve Notification", "Create Work Order", S),
        ("Create Work Order", "Plan Work Order", S),
        ("Plan Work Order", "Release Work Order", S),
        ("Release Work Order", "Print Work Order", S),
        ("Print Work Order", "Issue Spare Parts", S),
        ("Issue Spare Parts", "Execute Maintenance", S),
        ("Execute Maintenance", "Confirm Operations", S),
        ("Confirm Operations", "Technically Complete", S),
        ("Technically Complete", "Settle Work Order", S),
        # emergency maintenance
        ("Create Notification", "Create Work Order", P),
        ("Approve Notification", "Release Work Order", P),
        # digital work orders, no spare parts
        ("Release Work Order", "Issue Spare Parts", P),
        ("Release Work Order", "Execute Maintenance", P),
        ("Print Work Order", "Execute Maintenance", P),
        # multi-operation maintenance
        ("Confirm Operations", "Execute Maintenance", C),
        ("Execute Maintenance", "Issue Spare Parts", C),
    ],
    start=["Create Notification"],
    end=["Settle Work Order"],
    sla=[
        ("Create Notification", "Classify Notification", 4, "hours", "warning"),
        ("Classify Notification", "Approve Notification", 1, "days", "warning"),
        ("Create Notification", "Create Work Order", 1, "days", "critical"),
        ("Approve Notification", "Create Work Order", 5, "days", "warning"),
        ("Plan Work Order", "Release Work Order", 3, "days", "warning"),
        ("Release Work Order", "Execute Maintenance", 5, "days", "warning"),
        ("Execute Maintenance", "Confirm Operations", 2, "days", "warning"),
        ("Confirm Operations", "Technically Complete", 1, "days", "warning"),
        ("Technically Complete", "Settle Work Order", 5, "days", "warning"),
        ("Create Notification", "Settle Work Order", 30, "days", "critical"),
    ],
    critical=[
        ("Create Notification", "Create Work Order"),
        ("Release Work Order", "Execute Maintenance"),
        ("Execute Maintenance", "Confirm Operations"),
        ("Technically Complete", "Settle Work Order"),
    ],
)

REFERENCE_MODELS: Dict[str, ReferenceModel] = {
    model.process_id: model for model in (O2C, P2P, R2R, A2R, H2R, P2M, M2S)
}


def get_reference_model(process_id: str) -> ReferenceModel:
    """
    Get the curated reference model of a process.

    Args:
        process_id: Process identifier, case-insensitive (e.g. 'o2c')

    Returns:
        ReferenceModel

    Raises:
        NotFoundError: If no model exists for the process
    """
    key = str(process_id).upper()
    if key not in REFERENCE_MODELS:
        logger.warning(f"Reference model not found: {process_id}")
        raise NotFoundError(
            f"Unknown reference model: {process_id}. Available: {', '.join(REFERENCE_MODELS)}"
        )
    return REFERENCE_MODELS[key]


def get_all_reference_model_ids() -> List[str]:
    return list(REFERENCE_MODELS)
