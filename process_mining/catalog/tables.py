"""
SAP table classification.

The table type decides how rows of that table turn into events:

    RECORD       business object creation (EKKO, VBAK)    -> "Create <Object>"
    TRANSACTION  process transactions (RBKP, BKPF)        -> activity from TCODE
    FLOW         document relationships (VBFA, EKBE)      -> activity from document type
    CHANGE       modification history (CDHDR/CDPOS)       -> activity from field changes
    DETAIL       line items (EKPO, BSEG)                  -> enrichment only
    STATUS       status tables (VBUK, JEST)               -> activity from status transitions
    MASTER       master data (KNA1, LFA1)                 -> enrichment only
"""

from enum import Enum
from typing import Any, Dict, List


class TableType(str, Enum):
    """Closed set of SAP table roles."""
    RECORD = "record"
    TRANSACTION = "transaction"
    FLOW = "flow"
    CHANGE = "change"
    DETAIL = "detail"
    STATUS = "status"
    MASTER = "master"


TABLE_TYPES = frozenset(t.value for t in TableType)

CDHDR_FIELDS = ["OBJECTCLAS", "OBJECTID", "CHANGENR", "USERNAME", "UDATE", "UTIME", "TCODE"]
CDPOS_FIELDS = [
    "OBJECTCLAS", "OBJECTID", "CHANGENR", "TABNAME", "TABKEY",
    "FNAME", "CHNGIND", "VALUE_NEW", "VALUE_OLD",
]

BKPF_FIELDS = [
    "BUKRS", "BELNR", "GJAHR", "BLART", "BUDAT", "BLDAT",
    "CPUDT", "CPUTM", "USNAM", "TCODE", "BKTXT", "WAERS",
    "AWTYP", "AWKEY",
]

BSEG_FIELDS = [
    "BUKRS", "BELNR", "GJAHR", "BUZEI", "BSCHL", "KOART",
    "HKONT", "KUNNR", "LIFNR", "WRBTR", "SHKZG", "KOSTL",
    "AUGDT", "AUGBL", "ZUONR", "SGTXT",
]

OPEN_ITEM_FIELDS = [
    "BUKRS", "UMSKS", "UMSKZ", "AUGDT", "AUGBL", "GJAHR",
    "BELNR", "BUZEI", "BUDAT", "BLDAT", "BLART", "WRBTR",
    "SHKZG", "WAERS", "ZUONR",
]


def table(
    table_type: TableType,
    description: str,
    fields: List[str],
    **extra: Any,
) -> Dict[str, Any]:
    """Build a table definition dict; extra keys carry flags and mappings."""
    definition: Dict[str, Any] = {
        "type": table_type.value,
        "description": description,
        "fields": list(fields),
    }
    definition.update(extra)
    return definition


def change_document_tables(object_classes: List[str]) -> Dict[str, Dict[str, Any]]:
    """CDHDR/CDPOS pair restricted to the given change-document object classes."""
    return {
        "CDHDR": table(
            TableType.CHANGE, "Change document header", CDHDR_FIELDS,
            objectClasses=list(object_classes), caseIdField="OBJECTID",
        ),
        "CDPOS": table(
            TableType.CHANGE, "Change document items", CDPOS_FIELDS,
            caseIdField="OBJECTID",
        ),
    }
