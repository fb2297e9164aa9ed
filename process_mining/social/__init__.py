"""
Social Network / Organizational Mining Module.

Example Usage:
    from process_mining.social import SocialNetworkMiner, SoDRule

    result = SocialNetworkMiner().analyze(log, sod_rules=[
        SoDRule("Create/Approve PO", ("Create PO", "Approve PO")),
    ])
    for rule in result.sod_violations["rules"]:
        print(rule["rule"], rule["status"])
"""

from .network_miner import DEFAULT_SOD_RULES, SocialNetworkMiner, SocialNetworkResult, SoDRule

__all__ = [
    "SocialNetworkMiner",
    "SocialNetworkResult",
    "SoDRule",
    "DEFAULT_SOD_RULES",
]
