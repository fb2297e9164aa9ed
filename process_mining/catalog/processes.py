"""
SAP Process Configurations.

Table, field, activity, case-id correlation and KPI definitions for the
seven standard SAP end-to-end processes. Covers ECC 6.0, with the
``s4hana`` block of each process describing what changes on S/4HANA
(removed tables, replacement tables, migrated fields and CDS views).

This module is pure data. Lookup and S/4 adaptation live in registry.py.

Transition KPIs are ``{from, to, unit, target}``; ratio KPIs are
``{type: "ratio", numerator, denominator, target}`` with target as a
fraction.
"""

from typing import Any, Dict

from .tables import (
    BKPF_FIELDS,
    BSEG_FIELDS,
    OPEN_ITEM_FIELDS,
    TableType,
    change_document_tables,
    table,
)


# =============================================================================
# O2C - Order to Cash
# =============================================================================

O2C: Dict[str, Any] = {
    "id": "O2C",
    "name": "Order to Cash",
    "description": "End-to-end sales process from order creation through payment receipt",
    "caseId": {
        "primary": {"table": "VBAK", "field": "VBELN"},
        "correlations": [
            {"table": "VBFA", "sourceField": "VBELV", "targetField": "VBELN", "targetTable": "VBAK"},
            {"table": "LIKP", "via": "VBFA", "linkField": "VBELN"},
            {"table": "VBRK", "via": "VBFA", "linkField": "VBELN"},
            {"table": "BKPF", "via": "VBRK", "linkField": "BELNR", "joinField": "AWKEY"},
            {"table": "BSAD", "via": "BKPF", "linkField": "BELNR"},
            {"table": "BSID", "via": "BKPF", "linkField": "BELNR"},
            {"table": "NAST", "linkField": "OBJKY", "targetField": "VBELN", "targetTable": "VBRK"},
        ],
    },
    "tables": {
        "VBAK": table(
            TableType.RECORD, "Sales document header",
            ["VBELN", "ERDAT", "ERZET", "AUART", "KUNNR", "VKORG", "VTWEG", "SPART",
             "NETWR", "WAERK", "ERNAM", "VDATU", "BSTNK"],
            activityMapping={"activity": "Create Sales Order", "timestampField": "ERDAT",
                             "timeField": "ERZET", "resourceField": "ERNAM"},
            caseIdField="VBELN",
        ),
        "VBAP": table(
            TableType.DETAIL, "Sales document item",
            ["VBELN", "POSNR", "MATNR", "KWMENG", "VRKME", "NETWR", "WERKS", "LGORT", "PSTYV", "ABGRU"],
            caseIdField="VBELN",
        ),
        "VBEP": table(
            TableType.DETAIL, "Sales document schedule line",
            ["VBELN", "POSNR", "ETENR", "EDATU", "WMENG", "BMENG", "LMENG", "ETTYP", "WADAT"],
            caseIdField="VBELN",
        ),
        "VBFA": table(
            TableType.FLOW, "Sales document flow",
            ["VBELV", "POSNV", "VBELN", "POSNN", "VBTYP_N", "VBTYP_V", "RFMNG", "RFWRT", "ERDAT", "ERZET"],
            caseIdField="VBELV",
            documentTypeMap={
                "A": "Create Inquiry",
                "B": "Create Quotation",
                "C": "Create Sales Order",
                "H": "Create Return Order",
                "J": "Create Delivery",
                "K": "Create Credit Memo Request",
                "L": "Create Debit Memo Request",
                "M": "Create Invoice",
                "N": "Create Invoice Cancellation",
                "O": "Create Credit Memo",
                "P": "Create Debit Memo",
                "R": "Create Goods Movement",
                "T": "Create Shipment",
                "V": "Create Purchase Order",
            },
        ),
        "LIKP": table(
            TableType.RECORD, "Delivery header",
            ["VBELN", "ERDAT", "ERZET", "LFART", "WADAT", "WADAT_IST", "KUNNR", "VSTEL",
             "ROUTE", "ERNAM", "KODAT", "PODAT", "LFDAT"],
            activityMapping={"activity": "Create Delivery", "timestampField": "ERDAT",
                             "timeField": "ERZET", "resourceField": "ERNAM"},
            additionalActivities=[
                {"activity": "Goods Issue", "timestampField": "WADAT_IST", "condition": "WADAT_IST IS NOT NULL"},
                {"activity": "Pick", "timestampField": "KODAT", "condition": "KODAT IS NOT NULL"},
                {"activity": "Pack", "timestampField": "PODAT", "condition": "PODAT IS NOT NULL"},
            ],
            caseIdField="VBELN",
        ),
        "LIPS": table(
            TableType.DETAIL, "Delivery item",
            ["VBELN", "POSNR", "MATNR", "WERKS", "LGORT", "LFIMG", "VRKME", "VGBEL", "VGPOS", "PSTYV"],
            caseIdField="VBELN",
        ),
        "VBRK": table(
            TableType.RECORD, "Billing document header",
            ["VBELN", "FKART", "FKDAT", "ERDAT", "ERZET", "VKORG", "KUNAG", "KUNRG",
             "NETWR", "WAERK", "ERNAM", "BUKRS", "BELNR", "GJAHR"],
            activityMapping={"activity": "Create Invoice", "timestampField": "ERDAT",
                             "timeField": "ERZET", "resourceField": "ERNAM"},
            caseIdField="VBELN",
        ),
        "VBRP": table(
            TableType.DETAIL, "Billing document item",
            ["VBELN", "POSNR", "MATNR", "FKIMG", "VRKME", "NETWR", "WERKS", "AUBEL", "AUPOS"],
            caseIdField="VBELN",
        ),
        "BKPF": table(
            TableType.TRANSACTION, "Accounting document header", BKPF_FIELDS,
            activityMapping={"activity": "Post Accounting Document", "timestampField": "CPUDT",
                             "timeField": "CPUTM", "resourceField": "USNAM"},
            caseIdField="BELNR",
        ),
        "BSEG": table(TableType.DETAIL, "Accounting document line item", BSEG_FIELDS, caseIdField="BELNR"),
        "BSID": table(
            TableType.TRANSACTION, "Customer open items (accounting)",
            ["KUNNR"] + OPEN_ITEM_FIELDS, caseIdField="BELNR",
        ),
        "BSAD": table(
            TableType.TRANSACTION, "Customer cleared items (accounting)",
            ["KUNNR"] + OPEN_ITEM_FIELDS,
            activityMapping={"activity": "Payment Received", "timestampField": "AUGDT", "resourceField": None},
            caseIdField="BELNR",
        ),
        "NAST": table(
            TableType.STATUS, "Message status",
            ["KAPPL", "OBJKY", "KSCHL", "SPRAS", "PARNR", "NACHA", "VSZTP", "VSTAT", "ERDAT", "USNAM"],
            activityMapping={"activity": "Send Invoice", "timestampField": "ERDAT",
                             "resourceField": "USNAM", "condition": "VSTAT = 1"},
            caseIdField="OBJKY",
        ),
        "VBUK": table(
            TableType.STATUS, "Sales document header status",
            ["VBELN", "GBSTK", "LFSTK", "FKSTK", "ABSTK", "COSTA", "LVSTK", "UVALL", "CMGST"],
            ecc_only=True,
            statusTransitions={
                "LFSTK": {"A": "Delivery Not Yet Processed", "B": "Delivery Partially Processed",
                          "C": "Delivery Fully Processed"},
                "FKSTK": {"A": "Billing Not Yet Processed", "B": "Billing Partially Processed",
                          "C": "Billing Fully Processed"},
                "CMGST": {"A": "Credit Check Not Performed", "B": "Credit Check Failed",
                          "C": "Credit Check Passed"},
            },
            caseIdField="VBELN",
        ),
        "VBUP": table(
            TableType.STATUS, "Sales document item status",
            ["VBELN", "POSNR", "GBSTA", "LFSTA", "FKSTA", "ABSTA", "COSTA", "LVSTA", "UVALL"],
            ecc_only=True,
            caseIdField="VBELN",
        ),
        **change_document_tables(["VERKBELEG", "LIEFERUNG", "FAKTBELEG"]),
        "KNA1": table(
            TableType.MASTER, "Customer master (general)",
            ["KUNNR", "NAME1", "NAME2", "LAND1", "ORT01", "REGIO", "PSTLZ", "KTOKD", "STCD1"],
        ),
    },
    "referenceActivities": [
        "Create Sales Order",
        "Credit Check",
        "Create Delivery",
        "Pick",
        "Pack",
        "Goods Issue",
        "Create Invoice",
        "Send Invoice",
        "Payment Received",
    ],
    "kpis": {
        "Order to Delivery Time": {"from": "Create Sales Order", "to": "Create Delivery", "unit": "days", "target": 5},
        "Delivery to Invoice Time": {"from": "Create Delivery", "to": "Create Invoice", "unit": "days", "target": 2},
        "Days Sales Outstanding": {"from": "Create Invoice", "to": "Payment Received", "unit": "days", "target": 30},
        "Order to Cash Cycle": {"from": "Create Sales Order", "to": "Payment Received", "unit": "days", "target": 45},
        "Perfect Order Rate": {"type": "ratio", "numerator": "no_rework_cases",
                               "denominator": "total_cases", "target": 0.95},
        "On-Time Delivery Rate": {"type": "ratio", "numerator": "on_time_deliveries",
                                  "denominator": "total_deliveries", "target": 0.95},
        "Order Rejection Rate": {"type": "ratio", "numerator": "rejected_orders",
                                 "denominator": "total_orders", "target": 0.02},
    },
    "tcodeMap": {
        "VA01": "Create Sales Order",
        "VA02": "Change Sales Order",
        "VA03": "Display Sales Order",
        "VL01N": "Create Delivery",
        "VL02N": "Change Delivery",
        "VL06G": "Goods Issue (List)",
        "VF01": "Create Invoice",
        "VF02": "Change Invoice",
        "VF04": "Maintain Billing Due List",
        "VF11": "Cancel Invoice",
        "F-28": "Post Payment",
        "F-32": "Clear Customer",
        "FBL5N": "Display Customer Line Items",
        "VKM1": "Credit Management (Blocked SOs)",
        "VKM3": "Credit Management (Released SOs)",
        "VA05": "List Sales Orders",
    },
    "enrichment": {
        "KNA1": {"joinField": "KUNNR", "enrichFields": ["NAME1", "LAND1", "ORT01", "REGIO"]},
        "MARA": {"joinField": "MATNR", "enrichFields": ["MTART", "MATKL"]},
        "TVKO": {"joinField": "VKORG", "enrichFields": ["VTEXT"]},
    },
    "s4hana": {
        "tableReplacements": {"VBUK": None, "VBUP": None},
        "fieldMigrations": {
            "VBUK.GBSTK": "VBAK.GBSTK",
            "VBUK.LFSTK": "VBAK.LFSTK",
            "VBUK.FKSTK": "VBAK.FKSTK",
            "VBUK.CMGST": "VBAK.CMGST",
            "VBUP.GBSTA": "VBAP.GBSTA",
            "VBUP.LFSTA": "VBAP.LFSTA",
            "VBUP.FKSTA": "VBAP.FKSTA",
        },
        "cdsViews": {
            "I_SalesDocument": "VBAK/VBAP replacement CDS view",
            "I_SalesDocumentItem": "VBAP replacement CDS view",
            "I_BillingDocument": "VBRK replacement CDS view",
            "I_DeliveryDocument": "LIKP replacement CDS view",
        },
    },
}


# =============================================================================
# P2P - Procure to Pay
# =============================================================================

P2P: Dict[str, Any] = {
    "id": "P2P",
    "name": "Procure to Pay",
    "description": "End-to-end procurement process from purchase requisition through vendor payment",
    "caseId": {
        "primary": {"table": "EKKO", "field": "EBELN"},
        "correlations": [
            {"table": "EBAN", "sourceField": "EBELN", "targetField": "EBELN", "targetTable": "EKKO"},
            {"table": "EKBE", "sourceField": "EBELN", "targetField": "EBELN", "targetTable": "EKKO"},
            {"table": "RBKP", "via": "RSEG", "linkField": "EBELN"},
            {"table": "BKPF", "via": "RBKP", "linkField": "BELNR", "joinField": "AWKEY"},
            {"table": "BSAK", "via": "BKPF", "linkField": "BELNR"},
            {"table": "BSIK", "via": "BKPF", "linkField": "BELNR"},
        ],
    },
    "tables": {
        "EBAN": table(
            TableType.RECORD, "Purchase requisition",
            ["BANFN", "BNFPO", "BSART", "MATNR", "WERKS", "LGORT", "MENGE", "MEINS", "LFDAT",
             "EKGRP", "AFNAM", "ERDAT", "ERNAM", "FRGZU", "FRGST", "FRGKZ", "FRGDT", "EBELN",
             "EBELP", "BADAT", "TXZ01"],
            activityMapping={"activity": "Create Purchase Requisition", "timestampField": "ERDAT",
                             "resourceField": "ERNAM"},
            additionalActivities=[
                {"activity": "Approve Purchase Requisition", "timestampField": "FRGDT",
                 "condition": "FRGKZ = X", "resourceField": None},
            ],
            caseIdField="BANFN",
        ),
        "EBKN": table(
            TableType.DETAIL, "Purchase requisition account assignment",
            ["BANFN", "BNFPO", "SAKTO", "KOSTL", "AUFNR", "ANLN1", "NPLNR", "WRBTR"],
            caseIdField="BANFN",
        ),
        "EKKO": table(
            TableType.RECORD, "Purchasing document header",
            ["EBELN", "BUKRS", "BSTYP", "BSART", "LOEKZ", "AEDAT", "ERNAM", "EKORG", "EKGRP",
             "LIFNR", "ZTERM", "INCO1", "INCO2", "FRGZU", "FRGST", "FRGKE", "PROCSTAT"],
            activityMapping={"activity": "Create Purchase Order", "timestampField": "AEDAT",
                             "resourceField": "ERNAM"},
            additionalActivities=[
                {"activity": "Approve Purchase Order", "condition": "FRGKE = X", "timestampField": "AEDAT"},
            ],
            caseIdField="EBELN",
        ),
        "EKPO": table(
            TableType.DETAIL, "Purchasing document item",
            ["EBELN", "EBELP", "MATNR", "TXZ01", "WERKS", "LGORT", "MENGE", "MEINS", "NETPR",
             "PEINH", "NETWR", "PSTYP", "KNTTP", "LOEKZ", "RETPO"],
            caseIdField="EBELN",
        ),
        "EKET": table(
            TableType.DETAIL, "Purchasing document schedule line",
            ["EBELN", "EBELP", "ETENR", "EINDT", "SLFDT", "MENGE", "WEMNG", "WAMNG"],
            caseIdField="EBELN",
        ),
        "EKBE": table(
            TableType.FLOW, "Purchasing document history",
            ["EBELN", "EBELP", "ZEKKN", "VGABE", "BEWTP", "BELNR", "BUZEI", "GJAHR", "BUDAT",
             "MENGE", "DMBTR", "WAERS", "SHKZG", "BWART", "XBLNR", "CPUDT", "CPUTM", "USNAM"],
            documentTypeMap={
                "1": "Goods Receipt",
                "2": "Invoice Receipt",
                "3": "Goods Issue (Reversal)",
                "4": "Delivery from Subcontractor",
                "5": "Subsequent Adjustment",
                "6": "Subsequent Debit/Credit",
                "E": "Goods Receipt (Valuated)",
                "Q": "Goods Receipt (Delivery Costs)",
                "R": "Invoice Receipt (ERS)",
            },
            caseIdField="EBELN",
        ),
        "RBKP": table(
            TableType.RECORD, "Invoice document header (logistics)",
            ["BELNR", "GJAHR", "BLDAT", "BUDAT", "CPUDT", "CPUTM", "USNAM", "TCODE", "XBLNR",
             "LIFNR", "WAERS", "RMWWR", "WMWST1", "STJAH", "STBLG", "BKTXT"],
            activityMapping={"activity": "Invoice Receipt", "timestampField": "CPUDT",
                             "timeField": "CPUTM", "resourceField": "USNAM"},
            caseIdField="BELNR",
        ),
        "RSEG": table(
            TableType.DETAIL, "Invoice document item (logistics)",
            ["BELNR", "GJAHR", "BUZEI", "EBELN", "EBELP", "MATNR", "WERKS", "MENGE", "BPRME", "WRBTR", "WAERS"],
            caseIdField="BELNR",
        ),
        "BKPF": table(
            TableType.TRANSACTION, "Accounting document header", BKPF_FIELDS,
            activityMapping={"activity": "Post Accounting Document", "timestampField": "CPUDT",
                             "timeField": "CPUTM", "resourceField": "USNAM"},
            caseIdField="BELNR",
        ),
        "BSEG": table(TableType.DETAIL, "Accounting document line item", BSEG_FIELDS, caseIdField="BELNR"),
        "BSIK": table(
            TableType.TRANSACTION, "Vendor open items (accounting)",
            ["LIFNR"] + OPEN_ITEM_FIELDS + ["ZFBDT", "ZBD1T"], caseIdField="BELNR",
        ),
        "BSAK": table(
            TableType.TRANSACTION, "Vendor cleared items (accounting)",
            ["LIFNR"] + OPEN_ITEM_FIELDS,
            activityMapping={"activity": "Payment Sent", "timestampField": "AUGDT", "resourceField": None},
            caseIdField="BELNR",
        ),
        **change_document_tables(["EINKBELEG", "BANF"]),
        "NAST": table(
            TableType.STATUS, "Message status",
            ["KAPPL", "OBJKY", "KSCHL", "SPRAS", "PARNR", "NACHA", "VSZTP", "VSTAT", "ERDAT", "USNAM"],
            activityMapping={"activity": "Send Purchase Order", "timestampField": "ERDAT",
                             "resourceField": "USNAM", "condition": "VSTAT = 1 AND KAPPL = EF"},
            caseIdField="OBJKY",
        ),
        "LFA1": table(
            TableType.MASTER, "Vendor master (general)",
            ["LIFNR", "NAME1", "NAME2", "LAND1", "ORT01", "REGIO", "PSTLZ", "KTOKK", "STCD1"],
        ),
    },
    "referenceActivities": [
        "Create Purchase Requisition",
        "Approve Purchase Requisition",
        "Create Purchase Order",
        "Approve Purchase Order",
        "Send Purchase Order",
        "Goods Receipt",
        "Invoice Receipt",
        "Three-Way Match",
        "Payment Sent",
    ],
    "kpis": {
        "PR to PO Time": {"from": "Create Purchase Requisition", "to": "Create Purchase Order",
                          "unit": "days", "target": 3},
        "PO to GR Time": {"from": "Create Purchase Order", "to": "Goods Receipt", "unit": "days", "target": 14},
        "GR to IR Time": {"from": "Goods Receipt", "to": "Invoice Receipt", "unit": "days", "target": 5},
        "Days Payable Outstanding": {"from": "Invoice Receipt", "to": "Payment Sent", "unit": "days", "target": 45},
        "Procure to Pay Cycle": {"from": "Create Purchase Requisition", "to": "Payment Sent",
                                 "unit": "days", "target": 60},
        "Maverick Buying Rate": {"type": "ratio", "numerator": "po_without_pr",
                                 "denominator": "total_pos", "target": 0.05},
        "PO Touchless Rate": {"type": "ratio", "numerator": "auto_created_pos",
                              "denominator": "total_pos", "target": 0.60},
        "Invoice Automation Rate": {"type": "ratio", "numerator": "auto_invoices",
                                    "denominator": "total_invoices", "target": 0.70},
    },
    "tcodeMap": {
        "ME51N": "Create Purchase Requisition",
        "ME52N": "Change Purchase Requisition",
        "ME54N": "Approve Purchase Requisition",
        "ME21N": "Create Purchase Order",
        "ME22N": "Change Purchase Order",
        "ME23N": "Display Purchase Order",
        "ME28": "Release Purchase Order",
        "ME29N": "Release Purchase Order",
        "MIGO": "Goods Receipt",
        "MIRO": "Invoice Receipt",
        "MIR4": "Display Invoice",
        "MIR7": "Park Invoice",
        "MRRL": "Evaluated Receipt Settlement",
        "F110": "Payment Run",
        "F-53": "Post Vendor Payment",
        "F-44": "Clear Vendor",
        "FBL1N": "Display Vendor Line Items",
        "ME2M": "PO by Material",
        "ME2N": "PO by PO Number",
    },
    "enrichment": {
        "LFA1": {"joinField": "LIFNR", "enrichFields": ["NAME1", "LAND1", "ORT01", "REGIO"]},
        "MARA": {"joinField": "MATNR", "enrichFields": ["MTART", "MATKL"]},
        "T024": {"joinField": "EKGRP", "enrichFields": ["EKNAM"]},
    },
    "s4hana": {
        "tableReplacements": {},
        "fieldMigrations": {},
        "cdsViews": {
            "I_PurchaseOrderAPI01": "EKKO/EKPO replacement CDS view",
            "I_PurchaseRequisitionItem": "EBAN replacement CDS view",
            "I_SupplierInvoice": "RBKP/RSEG replacement CDS view",
        },
    },
}


# =============================================================================
# R2R - Record to Report
# =============================================================================

R2R: Dict[str, Any] = {
    "id": "R2R",
    "name": "Record to Report",
    "description": "End-to-end financial close process from journal entry creation through reporting",
    "caseId": {
        "primary": {"table": "BKPF", "field": "BELNR"},
        "correlations": [
            {"table": "BSEG", "sourceField": "BELNR", "targetField": "BELNR", "targetTable": "BKPF"},
            {"table": "FAGLFLEXA", "sourceField": "BELNR", "targetField": "BELNR", "targetTable": "BKPF"},
            {"table": "ACDOCA", "sourceField": "BELNR", "targetField": "BELNR", "targetTable": "BKPF"},
        ],
    },
    "tables": {
        "BKPF": table(
            TableType.RECORD, "Accounting document header",
            BKPF_FIELDS + ["MONAT", "STBLG", "STJAH", "BSTAT", "XBLNR"],
            activityMapping={"activity": "Create Journal Entry", "timestampField": "CPUDT",
                             "timeField": "CPUTM", "resourceField": "USNAM"},
            additionalActivities=[
                {"activity": "Park Journal Entry", "condition": "BSTAT = V",
                 "timestampField": "CPUDT", "timeField": "CPUTM"},
                {"activity": "Post Journal Entry", "condition": "BSTAT = ' '", "timestampField": "BUDAT"},
                {"activity": "Reverse Journal Entry", "condition": "STBLG IS NOT NULL", "timestampField": "CPUDT"},
            ],
            caseIdField="BELNR",
        ),
        "BSEG": table(
            TableType.DETAIL, "Accounting document line item",
            BSEG_FIELDS + ["DMBTR", "AUFNR", "PRCTR"], caseIdField="BELNR",
        ),
        "FAGLFLEXA": table(
            TableType.TRANSACTION, "General ledger line items (new GL)",
            ["RLDNR", "RBUKRS", "GJAHR", "BELNR", "DOCLN", "POPER", "RACCT", "RCNTR", "PRCTR",
             "RFAREA", "RBUSA", "RHCUR", "HSL", "TSL", "DRCRK", "BUDAT", "USNAM"],
            ecc_only=True,
            caseIdField="BELNR",
        ),
        "ACDOCA": table(
            TableType.TRANSACTION, "Universal journal entry",
            ["RCLNT", "RLDNR", "RBUKRS", "GJAHR", "BELNR", "DOCLN", "POPER", "RACCT", "RCNTR",
             "PRCTR", "RFAREA", "RBUSA", "RHCUR", "HSL", "TSL", "DRCRK", "BUDAT", "TIMESTAMP",
             "USNAM", "AWTYP", "AWKEY", "KTOPL"],
            caseIdField="BELNR",
        ),
        "SKA1": table(
            TableType.MASTER, "G/L account master (chart of accounts)",
            ["KTOPL", "SAKNR", "BILKT", "GVTYP", "KTOKS", "XBILK"],
        ),
        "T001": table(
            TableType.MASTER, "Company codes",
            ["BUKRS", "BUTXT", "ORT01", "LAND1", "WAERS", "KTOPL", "PERIV", "RCOMP"],
        ),
        "T003": table(TableType.MASTER, "Document types", ["BLART", "LTEXT", "NUMKR"]),
        **change_document_tables(["BELEG", "BKPF"]),
    },
    "referenceActivities": [
        "Create Journal Entry",
        "Park Journal Entry",
        "Post Journal Entry",
        "Approve Journal Entry",
        "Clear Line Items",
        "Foreign Currency Valuation",
        "GR/IR Clearing",
        "Reconcile Intercompany",
        "Period Close",
        "Generate Report",
    ],
    "kpis": {
        "Journal Entry Cycle Time": {"from": "Create Journal Entry", "to": "Post Journal Entry",
                                     "unit": "hours", "target": 4},
        "Period Close Duration": {"from": "Period Close", "to": "Generate Report", "unit": "days", "target": 5},
        "Posting Error Rate": {"type": "ratio", "numerator": "reversed_entries",
                               "denominator": "total_entries", "target": 0.01},
        "Automated Posting Rate": {"type": "ratio", "numerator": "auto_posted_entries",
                                   "denominator": "total_entries", "target": 0.80},
        "Manual Journal Entry Rate": {"type": "ratio", "numerator": "manual_entries",
                                      "denominator": "total_entries", "target": 0.15},
        "Intercompany Reconciliation Time": {"from": "Period Close", "to": "Reconcile Intercompany",
                                             "unit": "days", "target": 3},
    },
    "tcodeMap": {
        "FB01": "Post Journal Entry",
        "FB02": "Change Journal Entry",
        "FB03": "Display Journal Entry",
        "FB50": "Post G/L Account Entry",
        "FBV0": "Park Journal Entry",
        "FBV2": "Change Parked Entry",
        "FBRA": "Reset Cleared Items",
        "F-02": "Post General Ledger Entry",
        "F-03": "Clear G/L Account",
        "F-04": "Post with Clearing",
        "F-07": "Post Incoming Payment",
        "FAGL_FC_VAL": "Foreign Currency Valuation",
        "F.5D": "GR/IR Clearing",
        "FAGLB03": "Display GL Balances (New)",
        "F.01": "Financial Statements",
        "FBB1": "Post with Reference",
        "FB08": "Reverse Document",
    },
    "enrichment": {
        "SKA1": {"joinField": "SAKNR", "enrichFields": ["BILKT", "GVTYP"]},
        "T001": {"joinField": "BUKRS", "enrichFields": ["BUTXT", "LAND1", "WAERS"]},
        "T003": {"joinField": "BLART", "enrichFields": ["LTEXT"]},
    },
    "s4hana": {
        "tableReplacements": {
            "FAGLFLEXA": "ACDOCA",
            "BSIS": "ACDOCA",
            "BSAS": "ACDOCA",
            "GLT0": "ACDOCA",
        },
        "fieldMigrations": {},
        "cdsViews": {
            "I_JournalEntry": "BKPF/BSEG replacement CDS view",
            "I_JournalEntryItem": "BSEG/ACDOCA replacement CDS view",
            "I_GLAccountLineItem": "FAGLFLEXA/ACDOCA CDS view",
        },
    },
}


# =============================================================================
# A2R - Acquire to Retire
# =============================================================================

A2R: Dict[str, Any] = {
    "id": "A2R",
    "name": "Acquire to Retire",
    "description": "End-to-end fixed asset lifecycle from creation through retirement",
    "caseId": {
        "primary": {"table": "ANLA", "field": "ANLN1"},
        "correlations": [
            {"table": "ANLB", "sourceField": "ANLN1", "targetField": "ANLN1", "targetTable": "ANLA"},
            {"table": "ANLC", "sourceField": "ANLN1", "targetField": "ANLN1", "targetTable": "ANLA"},
            {"table": "ANLP", "sourceField": "ANLN1", "targetField": "ANLN1", "targetTable": "ANLA"},
            {"table": "ANEK", "sourceField": "ANLN1", "targetField": "ANLN1", "targetTable": "ANLA"},
            {"table": "BKPF", "via": "ANEK", "linkField": "BELNR", "joinField": "AWKEY"},
        ],
    },
    "tables": {
        "ANLA": table(
            TableType.RECORD, "Asset master general data",
            ["BUKRS", "ANLN1", "ANLN2", "ANLKL", "TXT50", "ERNAM", "ERDAT", "AKTIV", "DEAKT",
             "ABGDT", "ZUJHR", "ZUPER", "KOSTL", "WERKS"],
            activityMapping={"activity": "Create Asset Master", "timestampField": "ERDAT",
                             "resourceField": "ERNAM"},
            additionalActivities=[
                {"activity": "Capitalize Asset", "timestampField": "AKTIV", "condition": "AKTIV IS NOT NULL"},
                {"activity": "Retire Asset", "timestampField": "ABGDT", "condition": "ABGDT IS NOT NULL"},
            ],
            caseIdField="ANLN1",
        ),
        "ANLB": table(
            TableType.DETAIL, "Asset depreciation terms",
            ["BUKRS", "ANLN1", "ANLN2", "AFABE", "AFASL", "NDJAR", "NDPER", "AFABG"],
            caseIdField="ANLN1",
        ),
        "ANLC": table(
            TableType.DETAIL, "Asset value fields",
            ["BUKRS", "ANLN1", "ANLN2", "GJAHR", "AFABE", "KANSW", "KNAFA", "NAFAG", "ANSWL"],
            caseIdField="ANLN1",
        ),
        "ANLP": table(
            TableType.TRANSACTION, "Asset periodic values",
            ["BUKRS", "GJAHR", "PERAF", "ANLN1", "ANLN2", "AFABER", "NAFAZ", "BELNR"],
            activityMapping={"activity": "Post Depreciation", "timestampField": None,
                             "derivedTimestamp": "GJAHR + PERAF"},
            caseIdField="ANLN1",
        ),
        "ANEK": table(
            TableType.RECORD, "Asset document header",
            ["BUKRS", "ANLN1", "ANLN2", "GJAHR", "LNRAN", "BELNR", "BUDAT", "BLDAT", "CPUDT",
             "CPUTM", "USNAM", "TCODE", "ANBWA"],
            activityMapping={"activity": "Post Asset Transaction", "timestampField": "CPUDT",
                             "timeField": "CPUTM", "resourceField": "USNAM"},
            additionalActivities=[
                {"activity": "Acquire Asset", "condition": "ANBWA IN (100,110,150,160)", "timestampField": "BUDAT"},
                {"activity": "Transfer Asset", "condition": "ANBWA IN (300,310,320)", "timestampField": "BUDAT"},
                {"activity": "Retire Asset", "condition": "ANBWA IN (200,210,250,260)", "timestampField": "BUDAT"},
                {"activity": "Revalue Asset", "condition": "ANBWA IN (700,710)", "timestampField": "BUDAT"},
                {"activity": "Write-Up Asset", "condition": "ANBWA IN (800,810)", "timestampField": "BUDAT"},
            ],
            caseIdField="ANLN1",
        ),
        "ANEP": table(
            TableType.DETAIL, "Asset line items",
            ["BUKRS", "ANLN1", "ANLN2", "GJAHR", "LNRAN", "AFABE", "ANBWA", "ANBTR", "BZDAT"],
            ecc_only=True,
            caseIdField="ANLN1",
        ),
        "ACDOCA": table(
            TableType.TRANSACTION, "Universal journal entry (asset postings)",
            ["RLDNR", "RBUKRS", "GJAHR", "BELNR", "DOCLN", "ANLN1", "ANLN2", "ANBWA", "HSL", "BUDAT", "USNAM"],
            caseIdField="ANLN1",
        ),
        "BKPF": table(TableType.TRANSACTION, "Accounting document header", BKPF_FIELDS, caseIdField="BELNR"),
        "T093": table(
            TableType.MASTER, "Depreciation areas (real and derived)",
            ["AFAPL", "AFABER", "AFBTXT", "BUHBKT"],
        ),
        **change_document_tables(["ANLA"]),
    },
    "referenceActivities": [
        "Create Asset Master",
        "Acquire Asset",
        "Capitalize Asset",
        "Post Depreciation",
        "Transfer Asset",
        "Revalue Asset",
        "Retire Asset",
        "Scrapping",
    ],
    "kpis": {
        "Acquisition Cycle Time": {"from": "Create Asset Master", "to": "Acquire Asset", "unit": "days", "target": 10},
        "Time to Capitalize": {"from": "Acquire Asset", "to": "Capitalize Asset", "unit": "days", "target": 30},
        "Depreciation Accuracy": {"type": "ratio", "numerator": "correct_depreciation_runs",
                                  "denominator": "total_depreciation_runs", "target": 0.99},
        "Asset Utilization": {"type": "ratio", "numerator": "active_assets",
                              "denominator": "total_assets", "target": 0.90},
        "Asset Lifecycle Duration": {"from": "Capitalize Asset", "to": "Retire Asset",
                                     "unit": "years", "target": None},
        "Retirement Processing Time": {"from": "Retire Asset", "to": "Scrapping", "unit": "days", "target": 5},
    },
    "tcodeMap": {
        "AS01": "Create Asset Master",
        "AS02": "Change Asset Master",
        "AS03": "Display Asset Master",
        "AS05": "Block Asset",
        "AS06": "Mark for Deletion",
        "ABZON": "Acquisition (Clearing)",
        "ABSO": "Miscellaneous Acquisition",
        "AB01": "Post Asset Acquisition",
        "ABNAN": "Post-Capitalization",
        "ABUMN": "Transfer Asset (Within Company)",
        "ABT1N": "Transfer Asset (Intercompany)",
        "ABAVN": "Retirement by Scrapping",
        "ABAON": "Retirement with Revenue",
        "AFAB": "Depreciation Run",
        "AFAR": "Recalculate Depreciation",
        "ABAW": "Balance Sheet Revaluation",
        "AB08": "Reverse Asset Document",
        "AW01N": "Asset Explorer",
        "AR01": "Asset Report",
    },
    "enrichment": {
        "ANKA": {"joinField": "ANLKL", "enrichFields": ["ANLKLTXT"]},
        "T001": {"joinField": "BUKRS", "enrichFields": ["BUTXT", "LAND1", "WAERS"]},
    },
    "s4hana": {
        "tableReplacements": {"ANEP": "ACDOCA", "ANLP": "ACDOCA"},
        "fieldMigrations": {},
        "cdsViews": {
            "I_FixedAsset": "ANLA replacement CDS view",
            "I_FixedAssetDepreciationArea": "ANLB/ANLC CDS view",
        },
    },
}


# =============================================================================
# H2R - Hire to Retire
# =============================================================================

H2R: Dict[str, Any] = {
    "id": "H2R",
    "name": "Hire to Retire",
    "description": "End-to-end employee lifecycle from hiring through termination",
    "caseId": {
        "primary": {"table": "PA0000", "field": "PERNR"},
        "correlations": [
            {"table": "PA0001", "sourceField": "PERNR", "targetField": "PERNR", "targetTable": "PA0000"},
            {"table": "PA0002", "sourceField": "PERNR", "targetField": "PERNR", "targetTable": "PA0000"},
            {"table": "PA0008", "sourceField": "PERNR", "targetField": "PERNR", "targetTable": "PA0000"},
            {"table": "PA0014", "sourceField": "PERNR", "targetField": "PERNR", "targetTable": "PA0000"},
            {"table": "PA0041", "sourceField": "PERNR", "targetField": "PERNR", "targetTable": "PA0000"},
            {"table": "HRP1000", "via": "PA0001", "linkField": "PLANS", "joinField": "OBJID"},
            {"table": "HRP1001", "via": "HRP1000", "linkField": "OBJID"},
        ],
    },
    "tables": {
        "PA0000": table(
            TableType.RECORD, "HR actions (infotype 0000)",
            ["PERNR", "SUBTY", "ENDDA", "BEGDA", "SEQNR", "MASSN", "MASSG", "STAT1", "STAT2", "AEDTM", "UNAME"],
            activityMapping={"activity": None, "timestampField": "BEGDA", "resourceField": None},
            actionTypeMap={
                "01": "Hire",
                "02": "Change",
                "03": "Organizational Reassignment",
                "04": "Leave of Absence",
                "05": "Return from Leave",
                "06": "Separation",
                "07": "Retirement",
                "08": "Rehire",
                "10": "Transfer (External)",
                "12": "Contract Change",
                "Z1": "Promotion",
                "Z2": "Demotion",
            },
            statusMap={"0": "Withdrawn", "1": "Inactive", "2": "Retired", "3": "Active"},
            caseIdField="PERNR",
        ),
        "PA0001": table(
            TableType.RECORD, "Organizational assignment (infotype 0001)",
            ["PERNR", "ENDDA", "BEGDA", "BUKRS", "WERKS", "PERSG", "PERSK", "BTRTL", "ORGEH", "PLANS", "STELL"],
            activityMapping={"activity": "Assign Position", "timestampField": "BEGDA", "resourceField": None},
            additionalActivities=[
                {"activity": "Transfer (Org Change)", "condition": "ORGEH changed", "timestampField": "BEGDA"},
            ],
            caseIdField="PERNR",
        ),
        "PA0002": table(
            TableType.DETAIL, "Personal data (infotype 0002)",
            ["PERNR", "ENDDA", "BEGDA", "NACHN", "VORNA", "GBDAT", "NATIO", "SPRSL"],
            caseIdField="PERNR",
        ),
        "PA0008": table(
            TableType.RECORD, "Basic pay (infotype 0008)",
            ["PERNR", "ENDDA", "BEGDA", "TRFAR", "TRFGB", "TRFGR", "TRFST", "BSGRD", "ANSAL", "WAERS"],
            activityMapping={"activity": "Change Pay", "timestampField": "BEGDA", "resourceField": None},
            caseIdField="PERNR",
        ),
        "PA0014": table(
            TableType.DETAIL, "Recurring payments/deductions (infotype 0014)",
            ["PERNR", "ENDDA", "BEGDA", "LGART", "BETRG", "WAERS"],
            caseIdField="PERNR",
        ),
        "PA0041": table(
            TableType.STATUS, "Date specifications (infotype 0041)",
            ["PERNR", "ENDDA", "BEGDA", "DAR01", "DAT01", "DAR02", "DAT02", "DAR03", "DAT03"],
            dateTypeMap={
                "01": "Original Hire Date",
                "02": "Company Seniority Date",
                "03": "Last Promotion Date",
                "04": "Last Pay Increase Date",
                "05": "Next Probation Review",
                "06": "End of Probation",
            },
            caseIdField="PERNR",
        ),
        "HRP1000": table(
            TableType.MASTER, "Org management infotype - object",
            ["PLVAR", "OTYPE", "OBJID", "ISTAT", "BEGDA", "ENDDA", "SHORT", "STEXT"],
        ),
        "HRP1001": table(
            TableType.MASTER, "Org management infotype - relationships",
            ["PLVAR", "OTYPE", "OBJID", "RSIGN", "RELAT", "SCLAS", "SOBID", "BEGDA", "ENDDA"],
        ),
        "PCL2": table(
            TableType.TRANSACTION, "Payroll cluster (results)",
            ["RELID", "SRTFD", "SRTF2", "PERNR"],
            activityMapping={"activity": "Process Payroll", "timestampField": None, "resourceField": None,
                             "derivedTimestamp": "Cluster period markers"},
            caseIdField="PERNR",
        ),
        **change_document_tables(["PREL"]),
    },
    "referenceActivities": [
        "Hire",
        "Assign Position",
        "Onboard",
        "Change Pay",
        "Promote",
        "Transfer (Org Change)",
        "Process Payroll",
        "Leave of Absence",
        "Return from Leave",
        "Separation",
    ],
    "kpis": {
        "Time to Hire": {"from": None, "to": "Hire", "unit": "days", "target": 30,
                         "description": "Days from requisition to hire (requires PA0041 date type mapping)"},
        "Onboarding Duration": {"from": "Hire", "to": "Onboard", "unit": "days", "target": 14},
        "Payroll Processing Time": {"from": "Process Payroll", "to": "Process Payroll", "unit": "days",
                                    "target": 3, "description": "Duration of each payroll cycle"},
        "Turnover Rate": {"type": "ratio", "numerator": "separations", "denominator": "avg_headcount",
                          "target": 0.10, "period": "annual"},
        "Promotion Rate": {"type": "ratio", "numerator": "promotions", "denominator": "avg_headcount",
                           "target": 0.08, "period": "annual"},
        "Time to Promote": {"from": "Hire", "to": "Promote", "unit": "months", "target": 24},
    },
    "tcodeMap": {
        "PA40": "Personnel Action",
        "PA30": "Maintain HR Master",
        "PA20": "Display HR Master",
        "PA10": "Personnel File",
        "PA61": "Maintain Time",
        "PA63": "Maintain Time (Quota)",
        "PP01": "Maintain Org Object",
        "PPOCE": "Maintain Org Structure (Simple)",
        "PC00_M99_CIPE": "Payroll Run",
        "PC00_M10_CALC": "Payroll Calculation (US)",
        "PU03": "Change Payroll Status",
        "PA42": "Fast Entry (Actions)",
        "PA71": "Fast Entry (Time)",
        "PT60": "Time Evaluation",
        "PA70": "Fast Entry (Absences)",
        "PRMD": "Remuneration Statement",
    },
    "enrichment": {
        "T500P": {"joinField": "PERSA", "enrichFields": ["NAME1", "BUKRS", "LAND1"]},
        "T001P": {"joinField": "BTRTL", "enrichFields": ["BTEXT"]},
        "T503": {"joinField": "PERSG+PERSK", "enrichFields": ["PTEXT"]},
        "HRP1000": {"joinField": "OBJID", "enrichFields": ["STEXT"]},
    },
    "s4hana": {
        "tableReplacements": {},
        "fieldMigrations": {},
        "notes": "HR in S/4HANA may be SAP SuccessFactors; PA infotypes remain for on-premise HCM.",
        "cdsViews": {
            "I_HRPAAction": "PA0000 CDS view",
            "I_HRPAOrgAssignment": "PA0001 CDS view",
        },
    },
}


# =============================================================================
# P2M - Plan to Manufacture
# =============================================================================

P2M: Dict[str, Any] = {
    "id": "P2M",
    "name": "Plan to Manufacture",
    "description": "End-to-end manufacturing process from production planning through goods receipt",
    "caseId": {
        "primary": {"table": "AUFK", "field": "AUFNR"},
        "correlations": [
            {"table": "AFKO", "sourceField": "AUFNR", "targetField": "AUFNR", "targetTable": "AUFK"},
            {"table": "AFPO", "sourceField": "AUFNR", "targetField": "AUFNR", "targetTable": "AUFK"},
            {"table": "AFVC", "via": "AFKO", "linkField": "AUFPL", "joinField": "AUFPL"},
            {"table": "AFRU", "via": "AFVC", "linkField": "RUECK", "joinField": "AUFPL+APLZL"},
            {"table": "MSEG", "sourceField": "AUFNR", "targetField": "AUFNR", "targetTable": "AUFK"},
            {"table": "JEST", "sourceField": "OBJNR", "targetField": "OBJNR", "targetTable": "AUFK"},
            {"table": "RESB", "sourceField": "AUFNR", "targetField": "AUFNR", "targetTable": "AUFK"},
        ],
    },
    "tables": {
        "AUFK": table(
            TableType.RECORD, "Order master data",
            ["AUFNR", "AUART", "AUTYP", "ERNAM", "ERDAT", "AEDAT", "KTEXT", "BUKRS", "WERKS", "OBJNR"],
            activityMapping={"activity": "Create Production Order", "timestampField": "ERDAT",
                             "resourceField": "ERNAM"},
            caseIdField="AUFNR",
        ),
        "AFKO": table(
            TableType.RECORD, "Production order header",
            ["AUFNR", "GLTRP", "GSTRP", "FTRMS", "GLTRS", "GSTRS", "GAMNG", "GMEIN", "PLNBEZ", "AUFPL", "FTRMI"],
            caseIdField="AUFNR",
        ),
        "AFPO": table(
            TableType.DETAIL, "Production order item",
            ["AUFNR", "POSNR", "MATNR", "PSMNG", "WEMNG", "AMEIN", "LTRMI", "DWERK"],
            caseIdField="AUFNR",
        ),
        "AFVC": table(
            TableType.RECORD, "Order operation (routing)",
            ["AUFPL", "APLZL", "VORNR", "ARBID", "STEUS", "LTXA1", "RUECK"],
            caseIdField="AUFPL",
        ),
        "AFRU": table(
            TableType.TRANSACTION, "Order confirmation",
            ["RUECK", "RMZHL", "AUFNR", "VORNR", "BUDAT", "ERSDA", "ERZET", "ERNAM", "LMNGA",
             "XMNGA", "AUERU", "STOKZ"],
            activityMapping={"activity": "Confirm Operation", "timestampField": "BUDAT",
                             "timeField": "ERZET", "resourceField": "ERNAM"},
            additionalActivities=[
                {"activity": "Final Confirmation", "condition": "AUERU = X", "timestampField": "BUDAT"},
            ],
            caseIdField="AUFNR",
        ),
        "MSEG": table(
            TableType.FLOW, "Material document segment",
            ["MBLNR", "MJAHR", "ZEILE", "BWART", "MATNR", "WERKS", "LGORT", "MENGE", "MEINS",
             "AUFNR", "DMBTR", "BUDAT_MKPF", "USNAM_MKPF"],
            documentTypeMap={
                "101": "Goods Receipt (Production)",
                "102": "Goods Receipt Reversal (Production)",
                "261": "Goods Issue to Production Order",
                "262": "Goods Issue Reversal (Production)",
                "531": "By-Product Receipt",
            },
            caseIdField="AUFNR",
        ),
        "MKPF": table(
            TableType.TRANSACTION, "Material document header",
            ["MBLNR", "MJAHR", "BLDAT", "BUDAT", "CPUDT", "CPUTM", "USNAM", "TCODE2"],
            caseIdField="MBLNR",
        ),
        "JEST": table(
            TableType.STATUS, "Individual object status",
            ["OBJNR", "STAT", "INACT", "CHGNR"],
            statusTransitions={
                "I0001": "Created",
                "I0002": "Released",
                "I0009": "Confirmed",
                "I0010": "Partially Confirmed",
                "I0012": "Technically Complete",
                "I0013": "Locked",
                "I0028": "Delivered",
                "I0045": "Closed",
                "I0046": "Deletion Flag",
                "I0076": "Goods Receipt Completed",
            },
            caseIdField="OBJNR",
        ),
        "RESB": table(
            TableType.DETAIL, "Reservation / dependent requirement",
            ["RSNUM", "RSPOS", "MATNR", "WERKS", "BDMNG", "ENMNG", "MEINS", "AUFNR", "BDTER"],
            caseIdField="AUFNR",
        ),
        "MARA": table(TableType.MASTER, "Material master (general)", ["MATNR", "MTART", "MATKL", "MEINS", "BRGEW"]),
        "MARC": table(TableType.MASTER, "Material master (plant level)",
                      ["MATNR", "WERKS", "DISMM", "DISPO", "PLIFZ", "FHORI"]),
        **change_document_tables(["AUFK"]),
    },
    "referenceActivities": [
        "Create Production Order",
        "Release Production Order",
        "Issue Materials",
        "Confirm Operation",
        "Final Confirmation",
        "Goods Receipt (Production)",
        "Technically Complete",
        "Settle Order",
    ],
    "kpis": {
        "Production Lead Time": {"from": "Release Production Order", "to": "Goods Receipt (Production)",
                                 "unit": "days", "target": 5},
        "Material Availability": {"type": "ratio", "numerator": "orders_materials_on_time",
                                  "denominator": "total_orders", "target": 0.95},
        "Scrap Rate": {"type": "ratio", "numerator": "scrapped_quantity",
                       "denominator": "total_produced", "target": 0.02},
        "OEE (Overall Equipment Effectiveness)": {"type": "composite",
                                                  "components": ["availability", "performance", "quality"],
                                                  "target": 0.85},
        "Order Completion Rate": {"type": "ratio", "numerator": "completed_orders",
                                  "denominator": "total_orders", "target": 0.98},
        "On-Time Production Rate": {"type": "ratio", "numerator": "on_time_orders",
                                    "denominator": "total_orders", "target": 0.90},
        "Setup Time": {"from": "Release Production Order", "to": "Issue Materials", "unit": "hours", "target": 2},
    },
    "tcodeMap": {
        "CO01": "Create Production Order",
        "CO02": "Change Production Order",
        "CO03": "Display Production Order",
        "CO05N": "Release Production Order",
        "CO07": "Create Without Material",
        "CO11N": "Confirm Production (Single)",
        "CO15": "Confirm Production (Final)",
        "MIGO": "Goods Movement",
        "MB1A": "Goods Issue",
        "MB31": "Goods Receipt (Production)",
        "CORS": "Reprocess Confirmation",
        "CO13": "Cancel Confirmation",
        "CO88": "Settle Production Order",
        "KO88": "Settle Order",
        "COOIS": "Production Order Info System",
        "CO24": "Missing Parts Info",
        "MD04": "Stock/Requirements List",
    },
    "enrichment": {
        "MARA": {"joinField": "MATNR", "enrichFields": ["MTART", "MATKL"]},
        "MARC": {"joinField": "MATNR+WERKS", "enrichFields": ["DISMM", "DISPO"]},
        "T001W": {"joinField": "WERKS", "enrichFields": ["NAME1", "LAND1"]},
        "CRTX": {"joinField": "ARBPL", "enrichFields": ["KTEXT"]},
    },
    "s4hana": {
        "tableReplacements": {},
        "fieldMigrations": {},
        "cdsViews": {
            "I_ProductionOrder": "AUFK/AFKO replacement CDS view",
            "I_ProductionOrderOperation": "AFVC replacement CDS view",
            "I_ProductionOrderConfirmation": "AFRU CDS view",
            "I_MaterialDocumentItem": "MSEG replacement CDS view",
        },
    },
}


# =============================================================================
# M2S - Maintain to Settle (Plant Maintenance)
# =============================================================================

M2S: Dict[str, Any] = {
    "id": "M2S",
    "name": "Maintain to Settle",
    "description": "End-to-end maintenance process from notification through work order settlement",
    "caseId": {
        "primary": {"table": "QMEL", "field": "QMNUM"},
        "correlations": [
            {"table": "QMFE", "sourceField": "QMNUM", "targetField": "QMNUM", "targetTable": "QMEL"},
            {"table": "QMMA", "sourceField": "QMNUM", "targetField": "QMNUM", "targetTable": "QMEL"},
            {"table": "QMSM", "sourceField": "QMNUM", "targetField": "QMNUM", "targetTable": "QMEL"},
            {"table": "AUFK", "via": "QMEL", "linkField": "AUFNR", "joinField": "AUFNR"},
            {"table": "AFIH", "sourceField": "AUFNR", "targetField": "AUFNR", "targetTable": "AUFK"},
            {"table": "AFVC", "via": "AFIH", "linkField": "AUFPL", "joinField": "AUFPL"},
            {"table": "AFRU", "via": "AFVC", "linkField": "AUFPL+APLZL"},
            {"table": "MSEG", "via": "AUFK", "linkField": "AUFNR", "joinField": "AUFNR"},
            {"table": "JEST", "via": "AUFK", "linkField": "OBJNR", "joinField": "OBJNR"},
        ],
    },
    "tables": {
        "QMEL": table(
            TableType.RECORD, "Quality notification header (includes PM notifications)",
            ["QMNUM", "QMART", "QMTXT", "ERNAM", "ERDAT", "MZEIT", "QMDAB", "PRIOK", "AUFNR", "EQUNR", "OBJNR"],
            activityMapping={"activity": "Create Notification", "timestampField": "ERDAT",
                             "resourceField": "ERNAM"},
            additionalActivities=[
                {"activity": "Complete Notification", "timestampField": "QMDAB", "condition": "QMDAB IS NOT NULL"},
            ],
            caseIdField="QMNUM",
        ),
        "QMFE": table(
            TableType.DETAIL, "Notification items (defect data)",
            ["QMNUM", "FENUM", "FEKAT", "FEGRP", "FECOD", "OTKAT", "OTGRP", "OTEIL"],
            caseIdField="QMNUM",
        ),
        "QMMA": table(
            TableType.RECORD, "Notification activities",
            ["QMNUM", "MANUM", "MNKAT", "MNGRP", "MNCOD", "ERNAM", "ERDAT"],
            activityMapping={"activity": "Execute Activity", "timestampField": "ERDAT", "resourceField": "ERNAM"},
            caseIdField="QMNUM",
        ),
        "QMSM": table(
            TableType.RECORD, "Notification tasks",
            ["QMNUM", "MANUM", "MNKAT", "MNGRP", "MNCOD", "ERNAM", "ERDAT", "PETER"],
            activityMapping={"activity": "Complete Task", "timestampField": "ERDAT", "resourceField": "ERNAM"},
            caseIdField="QMNUM",
        ),
        "AUFK": table(
            TableType.RECORD, "Order master data (maintenance)",
            ["AUFNR", "AUART", "AUTYP", "ERNAM", "ERDAT", "KTEXT", "BUKRS", "WERKS", "OBJNR"],
            activityMapping={"activity": "Create Work Order", "timestampField": "ERDAT", "resourceField": "ERNAM"},
            caseIdField="AUFNR",
        ),
        "AFIH": table(
            TableType.RECORD, "Maintenance order header supplement",
            ["AUFNR", "ARTPR", "PRIOK", "EQUNR", "ILOAN", "QMNUM", "INGPR"],
            caseIdField="AUFNR",
        ),
        "AFVC": table(
            TableType.RECORD, "Order operation (maintenance)",
            ["AUFPL", "APLZL", "VORNR", "ARBID", "STEUS", "LTXA1", "RUECK"],
            caseIdField="AUFPL",
        ),
        "AFRU": table(
            TableType.TRANSACTION, "Order confirmation (maintenance)",
            ["RUECK", "RMZHL", "AUFNR", "VORNR", "BUDAT", "ERSDA", "ERZET", "ERNAM", "ISMNW", "AUERU"],
            activityMapping={"activity": "Confirm Work", "timestampField": "BUDAT",
                             "timeField": "ERZET", "resourceField": "ERNAM"},
            caseIdField="AUFNR",
        ),
        "MSEG": table(
            TableType.FLOW, "Material document segment",
            ["MBLNR", "MJAHR", "ZEILE", "BWART", "MATNR", "WERKS", "MENGE", "AUFNR", "KOSTL"],
            documentTypeMap={
                "261": "Issue Materials (Maintenance)",
                "262": "Goods Issue Reversal (Maintenance)",
                "201": "Goods Issue to Cost Center",
            },
            caseIdField="AUFNR",
        ),
        "JEST": table(
            TableType.STATUS, "Individual object status",
            ["OBJNR", "STAT", "INACT", "CHGNR"],
            statusTransitions={
                "I0001": "Created",
                "I0002": "Released",
                "I0009": "Confirmed",
                "I0010": "Partially Confirmed",
                "I0012": "Technically Complete",
                "I0045": "Closed",
                "I0046": "Deletion Flag",
                "E0001": "Outstanding (Notification)",
                "E0002": "In Process (Notification)",
                "E0003": "Completed (Notification)",
            },
            caseIdField="OBJNR",
        ),
        "EQUI": table(TableType.MASTER, "Equipment master",
                      ["EQUNR", "EQTYP", "EQART", "HERST", "TYPBZ", "BAUJJ", "ERDAT"]),
        "IFLOT": table(TableType.MASTER, "Functional location",
                       ["TPLNR", "FLTYP", "SWERK", "STORT", "ERDAT"]),
        "ILOA": table(TableType.MASTER, "PM object location / account assignment",
                      ["ILOAN", "TPLNR", "SWERK", "KOSTL", "BUKRS"]),
        **change_document_tables(["QMIH", "AUFK"]),
    },
    "referenceActivities": [
        "Create Notification",
        "Approve Notification",
        "Create Work Order",
        "Release Work Order",
        "Issue Materials (Maintenance)",
        "Confirm Work",
        "Technically Complete",
        "Complete Notification",
        "Settle Order",
    ],
    "kpis": {
        "Mean Time to Repair": {"from": "Create Notification", "to": "Technically Complete",
                                "unit": "hours", "target": 8},
        "Work Order Cycle Time": {"from": "Create Work Order", "to": "Technically Complete",
                                  "unit": "days", "target": 5},
        "Backlog Aging": {"from": "Create Work Order", "to": "Release Work Order", "unit": "days", "target": 3},
        "Maintenance Cost per Asset": {"type": "ratio", "numerator": "total_maintenance_cost",
                                       "denominator": "total_assets", "target": None},
        "Planned vs Unplanned Ratio": {"type": "ratio", "numerator": "planned_orders",
                                       "denominator": "total_orders", "target": 0.80},
        "First-Time Fix Rate": {"type": "ratio", "numerator": "single_visit_fixes",
                                "denominator": "total_fixes", "target": 0.85},
        "Notification to Work Order Time": {"from": "Create Notification", "to": "Create Work Order",
                                            "unit": "hours", "target": 24},
    },
    "tcodeMap": {
        "IW21": "Create Notification",
        "IW22": "Change Notification",
        "IW23": "Display Notification",
        "IW24": "Create Notification (Malfunction)",
        "IW31": "Create Work Order",
        "IW32": "Change Work Order",
        "IW33": "Display Work Order",
        "IW38": "Work Order List",
        "IW41": "Confirm Work (Overall)",
        "IW42": "Confirm Work (Individual)",
        "IW44": "Confirm Work (Collective)",
        "MIGO": "Goods Movement (Spare Parts)",
        "MB1A": "Goods Issue (Spare Parts)",
        "KO88": "Settle Order",
        "IW28": "Work Order Change (List)",
        "IW29": "Notification List",
        "IW39": "Work Order by Status",
    },
    "enrichment": {
        "EQUI": {"joinField": "EQUNR", "enrichFields": ["EQTYP", "EQART", "HERST", "TYPBZ"]},
        "EQKT": {"joinField": "EQUNR", "enrichFields": ["EQKTX"]},
        "IFLOT": {"joinField": "TPLNR", "enrichFields": ["FLTYP", "SWERK"]},
        "T001W": {"joinField": "WERKS", "enrichFields": ["NAME1", "LAND1"]},
        "T024I": {"joinField": "INGRP", "enrichFields": ["INNAM"]},
    },
    "s4hana": {
        "tableReplacements": {},
        "fieldMigrations": {},
        "cdsViews": {
            "I_MaintenanceNotification": "QMEL replacement CDS view",
            "I_MaintenanceOrder": "AUFK/AFIH replacement CDS view",
            "I_MaintenanceOrderOperation": "AFVC replacement CDS view",
            "I_MaintOrderConfirmation": "AFRU CDS view",
        },
    },
}


# Declaration order is the lookup order for tcode resolution
PROCESS_CONFIGS: Dict[str, Dict[str, Any]] = {
    "O2C": O2C,
    "P2P": P2P,
    "R2R": R2R,
    "A2R": A2R,
    "H2R": H2R,
    "P2M": P2M,
    "M2S": M2S,
}
