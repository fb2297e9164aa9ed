"""
Process Discovery Module.

Heuristic miner producing an immutable dependency net (ProcessModel) with
loops and classified split/join gateways.

Example Usage:
    from process_mining.discovery import HeuristicMiner

    model = HeuristicMiner({"dependencyThreshold": 0.5}).analyze(log)
    print(model.to_text())
    model.get_xor_splits()
"""

from .heuristic_miner import (
    Edge,
    Gateway,
    HeuristicMiner,
    HeuristicMinerConfig,
    LengthOneLoop,
    LengthTwoLoop,
    ProcessModel,
)

__all__ = [
    "HeuristicMiner",
    "HeuristicMinerConfig",
    "ProcessModel",
    "Edge",
    "Gateway",
    "LengthOneLoop",
    "LengthTwoLoop",
]
