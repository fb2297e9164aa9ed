"""
Synthetic Event Log Module.

Example Usage:
    from process_mining.synthetic import SyntheticLogGenerator

    log = SyntheticLogGenerator(seed=42).generate("O2C", num_cases=200)
    log.to_xes()
"""

from .generator import GeneratorConfig, SyntheticLogGenerator

__all__ = [
    "GeneratorConfig",
    "SyntheticLogGenerator",
]
