"""
SAP Process Mining Core

Event log model, process discovery, variant, performance, organizational,
conformance and KPI analysis for event logs extracted from SAP systems.
"""

__version__ = "0.1.0"
__author__ = "SAP Workflow Mining Team"

# Default configuration
DEFAULT_CONFIG = {
    # Heuristic miner
    "dependency_threshold": 0.5,
    "and_threshold": 0.1,
    "loop_length_one_threshold": 0.5,
    "loop_length_two_threshold": 0.5,
    "relative_to_best_threshold": 0.05,
    "min_frequency": 1,
    # Variant analyzer
    "max_variants": 100,
    "cluster_threshold": 0.3,
    # KPI engine
    "confidence_level": 0.95,
    # Performance analyzer
    "trend_threshold_ratio": 0.05,
    "retain_raw": False,
    # Synthetic data
    "random_seed": 42,
}

from .cancellation import CancellationToken
from .errors import (
    InvalidInputError,
    NotFoundError,
    OperationCancelledError,
    PreconditionFailedError,
    ProcessMiningError,
)
from .eventlog import Event, EventLog, Trace

__all__ = [
    "__version__",
    "DEFAULT_CONFIG",
    "CancellationToken",
    "Event",
    "EventLog",
    "Trace",
    "ProcessMiningError",
    "InvalidInputError",
    "NotFoundError",
    "PreconditionFailedError",
    "OperationCancelledError",
]
