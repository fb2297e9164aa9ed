"""
Performance Analysis Module.

Example Usage:
    from process_mining.performance import PerformanceAnalyzer

    result = PerformanceAnalyzer().analyze(log, {
        "__case_duration__": {"target": 5, "unit": "hours", "severity": "critical"},
    })
    print(result.sla_compliance[0]["status"])
"""

from .analyzer import (
    CASE_DURATION_LABEL,
    CASE_DURATION_SLA,
    PerformanceAnalyzer,
    PerformanceResult,
    sla_status,
    transition_key,
)

__all__ = [
    "PerformanceAnalyzer",
    "PerformanceResult",
    "CASE_DURATION_SLA",
    "CASE_DURATION_LABEL",
    "sla_status",
    "transition_key",
]
