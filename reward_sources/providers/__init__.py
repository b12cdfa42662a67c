"""
Providers package - Reward source implementations.
"""

from reward_sources.providers.appchain import AppchainRewardSource
from reward_sources.providers.settlement import SettlementRewardSource


__all__ = [
    "AppchainRewardSource",
    "SettlementRewardSource",
]
