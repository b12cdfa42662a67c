"""
Reward Sources Package - settlement and appchain reward datasets.

Features:
- Single-attempt GraphQL retrieval per source
- Explicit aggregation policies (Sum vs LastWriteWins)
- Exact amount normalization (hex, decimal, native, absent)
- Canonical 256-bit participant identities
- Non-fatal source failures (empty ledger + incident)

Quick Start:
    from reward_sources import (
        AppchainRewardSource,
        SettlementRewardSource,
    )

    async def load_ledgers():
        async with SettlementRewardSource(settlement_url) as settlement, \\
                AppchainRewardSource(appchain_url) as appchain:
            settlement_result = await settlement.fetch()
            appchain_result = await appchain.fetch()

        # Never raises - a failed source carries an incident and empty ledger
        if not settlement_result.ok:
            print(settlement_result.incident.error_message)
"""

from reward_sources.aggregation import (
    AggregationStrategy,
    LastWriteWins,
    Sum,
    strategy_for,
)
from reward_sources.base import BaseRewardSource
from reward_sources.exceptions import (
    FetchError,
    IdentityOutOfRangeError,
    InvalidIdentityError,
    MalformedSourceDataError,
    NotANumberError,
    RewardSourceError,
)
from reward_sources.models import (
    AggregationPolicy,
    SourceFetchResult,
    SourceIncident,
    SourceLayer,
    SourceLedger,
)
from reward_sources.normalizers import (
    canonicalize_identity,
    format_amount,
    parse_amount,
    parse_exported_amount,
    parse_identity,
)
from reward_sources.providers import AppchainRewardSource, SettlementRewardSource


__all__ = [
    # Base
    "BaseRewardSource",

    # Models
    "AggregationPolicy",
    "SourceFetchResult",
    "SourceIncident",
    "SourceLayer",
    "SourceLedger",

    # Aggregation
    "AggregationStrategy",
    "LastWriteWins",
    "Sum",
    "strategy_for",

    # Normalizers
    "canonicalize_identity",
    "format_amount",
    "parse_amount",
    "parse_exported_amount",
    "parse_identity",

    # Exceptions
    "RewardSourceError",
    "FetchError",
    "MalformedSourceDataError",
    "NotANumberError",
    "InvalidIdentityError",
    "IdentityOutOfRangeError",

    # Providers
    "AppchainRewardSource",
    "SettlementRewardSource",
]
