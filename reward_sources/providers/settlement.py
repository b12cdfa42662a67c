"""
Settlement Layer Reward Source - on-chain claim events.

Each claim edge carries a nested token amount; one participant may claim
many times, so amounts accumulate.
"""

import logging
from typing import Any

from reward_sources.base import BaseRewardSource
from reward_sources.models import AggregationPolicy, SourceLayer


logger = logging.getLogger(__name__)


class SettlementRewardSource(BaseRewardSource):
    """Claims indexed from the settlement layer (``numsClaimsModels``)."""

    DEFAULT_ENDPOINT = "https://api.cartridge.gg/x/nums-starknet/torii/graphql"

    QUERY_TEMPLATE = """
{
  numsClaimsModels(limit: %d) {
    totalCount
    edges {
      node {
        player
        ty {
          TOKEN {
            amount
          }
        }
      }
    }
  }
}
"""

    @property
    def layer(self) -> SourceLayer:
        return SourceLayer.SETTLEMENT

    @property
    def collection_name(self) -> str:
        return "numsClaimsModels"

    @property
    def policy(self) -> AggregationPolicy:
        return AggregationPolicy.SUM

    def build_query(self) -> str:
        return self.QUERY_TEMPLATE % self._query_limit

    def edge_amount(self, node: dict[str, Any]) -> Any:
        """Read ``ty.TOKEN.amount``; claims of other types carry no amount."""
        claim_type = node.get("ty")
        if not isinstance(claim_type, dict):
            return None
        token = claim_type.get("TOKEN")
        if not isinstance(token, dict):
            logger.debug(f"[{self.name}] Non-token claim for {node.get(self.IDENTITY_FIELD)}")
            return None

        amount = token.get("amount")
        if amount in (None, "", 0):
            return None
        return amount
