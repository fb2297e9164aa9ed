"""
KPI Engine Module.

Example Usage:
    from process_mining.kpi import KPIEngine

    report = KPIEngine().calculate(log, process_config=get_process_config("P2P"))
    print(report.quality["reworkRate"]["value"])
"""

from .engine import KPIEngine, KPIReport, is_automated_resource

__all__ = [
    "KPIEngine",
    "KPIReport",
    "is_automated_resource",
]
