"""
SAP Process Catalog.

Static table, field, activity and KPI definitions for the seven standard
SAP end-to-end processes, plus helpers for S/4HANA detection and
adaptation.

Example Usage:
    from process_mining.catalog import get_process_config, adapt_config_for_s4

    o2c = get_process_config("O2C")
    s4_o2c = adapt_config_for_s4(o2c)      # VBUK/VBUP removed
    get_activity_from_tcode(" va01 ")       # "Create Sales Order"
"""

from .processes import A2R, H2R, M2S, O2C, P2M, P2P, PROCESS_CONFIGS, R2R
from .registry import (
    adapt_config_for_s4,
    get_activity_from_tcode,
    get_all_process_ids,
    get_process_config,
    get_tables_for_process,
    is_s4hana,
)
from .tables import TABLE_TYPES, TableType

__all__ = [
    # Configs
    "PROCESS_CONFIGS",
    "O2C",
    "P2P",
    "R2R",
    "A2R",
    "H2R",
    "P2M",
    "M2S",
    # Tables
    "TableType",
    "TABLE_TYPES",
    # Registry
    "adapt_config_for_s4",
    "get_activity_from_tcode",
    "get_all_process_ids",
    "get_process_config",
    "get_tables_for_process",
    "is_s4hana",
]
