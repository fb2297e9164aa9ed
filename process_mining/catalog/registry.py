"""
Process catalog lookup and ECC to S/4HANA adaptation.

S/4HANA removed the sales status tables (VBUK/VBUP) and folded the classic
GL line-item tables into the universal journal (ACDOCA). ``adapt_config_for_s4``
applies those changes to a process config so extractors only ask for tables
that exist on the target system.
"""

import copy
import logging
import re
from typing import Any, Dict, List, Optional

from ..errors import InvalidInputError, NotFoundError
from .processes import PROCESS_CONFIGS

logger = logging.getLogger(__name__)

S4_FIRST_RELEASE = 1709
S4_COMPONENT_PATTERN = re.compile(r"S4CORE|SAP_S4", re.IGNORECASE)


def get_process_config(process_id: str) -> Dict[str, Any]:
    """
    Look up a process configuration by id (case-insensitive).

    Raises:
        NotFoundError: If the process id is unknown
    """
    key = (process_id or "").strip().upper()
    config = PROCESS_CONFIGS.get(key)
    if config is None:
        raise NotFoundError(
            f"Unknown process: {process_id}. Valid: {', '.join(PROCESS_CONFIGS)}"
        )
    return config


def get_all_process_ids() -> List[str]:
    return list(PROCESS_CONFIGS)


def get_tables_for_process(process_id: str, s4: bool = False) -> List[str]:
    config = get_process_config(process_id)
    if s4:
        config = adapt_config_for_s4(config)
    return list(config["tables"])


def get_activity_from_tcode(tcode: str, process_id: Optional[str] = None) -> Optional[str]:
    """
    Map an SAP transaction code to an activity name.

    Lookup is whitespace-trimmed and case-insensitive. Without a process id,
    processes are scanned in catalog order and the first match wins.
    """
    if not tcode:
        return None
    code = tcode.strip().upper()

    if process_id:
        return get_process_config(process_id).get("tcodeMap", {}).get(code)

    for config in PROCESS_CONFIGS.values():
        activity = config.get("tcodeMap", {}).get(code)
        if activity:
            return activity
    return None


def _release_number(value: Any) -> Optional[int]:
    if value is None:
        return None
    match = re.search(r"\d+", str(value))
    return int(match.group()) if match else None


def is_s4hana(system_info: Optional[Dict[str, Any]]) -> bool:
    """
    Decide whether a system descriptor describes an S/4HANA system.

    Args:
        system_info: Dict with any of ``component``/``COMPONENT``,
            ``release``/``RELEASE``, ``sapProduct``, ``components`` or
            ``installedComponents`` (lists of ``{component}``/``{COMPONENT}``
            dicts or strings), and ``tables`` or ``tableExists`` (table
            name -> exists flag)
    """
    if not system_info:
        return False

    component = str(system_info.get("component") or system_info.get("COMPONENT") or "").upper()
    if "S/4" in component or "S4CORE" in component:
        return True

    release = _release_number(system_info.get("release") or system_info.get("RELEASE"))
    if release is not None and release >= S4_FIRST_RELEASE:
        return True

    if "S/4" in str(system_info.get("sapProduct") or "").upper():
        return True

    installed = list(system_info.get("components") or []) + list(system_info.get("installedComponents") or [])
    for entry in installed:
        if isinstance(entry, dict):
            code = entry.get("component") or entry.get("COMPONENT") or ""
        else:
            code = entry
        if S4_COMPONENT_PATTERN.search(str(code)):
            return True

    tables = system_info.get("tables") or {}
    if tables.get("ACDOCA"):
        return True
    # ACDOCA alone can be a Simple Finance add-on; VBUK is gone on S/4
    exists = system_info.get("tableExists") or {}
    return bool(exists.get("ACDOCA")) and not exists.get("VBUK")


def adapt_config_for_s4(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return an S/4HANA version of a process config; the input is not modified.

    - Tables flagged ``ecc_only`` or mapped to None in
      ``s4hana.tableReplacements`` are removed.
    - Tables mapped to another name are renamed, unless the target already
      exists, in which case the source table is kept as it is.
    - ``s4hana.fieldMigrations`` (``"SRC.FIELD" -> "TGT.FIELD"``) add the
      field to the target table's field list, without duplicates.

    Raises:
        InvalidInputError: If the config has no ``tables`` mapping
    """
    if not isinstance(config, dict) or not isinstance(config.get("tables"), dict):
        raise InvalidInputError("adapt_config_for_s4 expects a process config with tables")

    adapted = copy.deepcopy(config)
    s4 = adapted.get("s4hana") or {}
    replacements = s4.get("tableReplacements") or {}
    tables = adapted["tables"]

    for name in list(tables):
        definition = tables[name]
        if definition.get("ecc_only") or (name in replacements and replacements[name] is None):
            del tables[name]
            continue
        target = replacements.get(name)
        if target and target not in tables:
            moved = tables.pop(name)
            moved["description"] = f"{moved.get('description', '')} (S/4: replaces {name})"
            tables[target] = moved

    for source, target in (s4.get("fieldMigrations") or {}).items():
        target_table, _, target_field = target.partition(".")
        if target_table in tables and target_field:
            fields = tables[target_table].setdefault("fields", [])
            if target_field not in fields:
                fields.append(target_field)

    adapted["_s4adapted"] = True
    logger.debug(f"Adapted {adapted.get('id')} for S/4HANA: {len(tables)} tables")
    return adapted
