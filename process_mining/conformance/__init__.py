"""
Conformance Checking Module.

Token-based replay of event logs on reference models, reporting fitness,
precision and per-case deviations. Curated SAP best-practice models are
available through ``get_reference_model``.

Example Usage:
    from process_mining.catalog import get_process_config
    from process_mining.conformance import ConformanceChecker, ReferenceModel

    o2c = get_process_config("O2C")
    model = ReferenceModel.from_sequence(o2c["name"], o2c["referenceActivities"])
    result = ConformanceChecker(model).check_log(log)

    print(f"Fitness: {result.fitness}")
    for case in result.get_non_conformant_cases():
        print(case.case_id, [d.type.value for d in case.deviations])
"""

from .checker import (
    CaseConformanceResult,
    ConformanceChecker,
    ConformanceResult,
    Deviation,
    DeviationType,
    calculate_fitness,
)
from .reference_model import EDGE_TYPES, ReferenceModel
from .sap_models import REFERENCE_MODELS, get_all_reference_model_ids, get_reference_model

__all__ = [
    "ConformanceChecker",
    "ConformanceResult",
    "CaseConformanceResult",
    "Deviation",
    "DeviationType",
    "EDGE_TYPES",
    "ReferenceModel",
    "REFERENCE_MODELS",
    "calculate_fitness",
    "get_reference_model",
    "get_all_reference_model_ids",
]
