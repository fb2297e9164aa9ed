"""
Variant Analysis Module.

Example Usage:
    from process_mining.variants import VariantAnalyzer

    result = VariantAnalyzer().analyze(log)
    print(result.get_summary())
    for deviation in result.deviations["deviations"]:
        print(deviation["type"], deviation["skippedActivities"])
"""

from .analyzer import Variant, VariantAnalysisResult, VariantAnalyzer
from .edit_distance import edit_distance, normalized_edit_distance

__all__ = [
    "VariantAnalyzer",
    "VariantAnalysisResult",
    "Variant",
    "edit_distance",
    "normalized_edit_distance",
]
