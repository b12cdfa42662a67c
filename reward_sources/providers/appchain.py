"""
Appchain Layer Reward Source - cumulative per-participant totals.

The appchain reports one authoritative running total per participant; a
later row for the same participant replaces the earlier one.
"""

from typing import Any

from reward_sources.base import BaseRewardSource
from reward_sources.models import AggregationPolicy, SourceLayer


class AppchainRewardSource(BaseRewardSource):
    """Totals indexed from the appchain (``numsTotalsModels``)."""

    DEFAULT_ENDPOINT = "http://localhost:8080/graphql"

    QUERY_TEMPLATE = """
{
  numsTotalsModels (limit: %d) {
    totalCount
    edges {
      node {
        player
        rewards_earned
      }
    }
  }
}
"""

    @property
    def layer(self) -> SourceLayer:
        return SourceLayer.APPCHAIN

    @property
    def collection_name(self) -> str:
        return "numsTotalsModels"

    @property
    def policy(self) -> AggregationPolicy:
        return AggregationPolicy.LAST_WRITE_WINS

    def build_query(self) -> str:
        return self.QUERY_TEMPLATE % self._query_limit

    def edge_amount(self, node: dict[str, Any]) -> Any:
        return node.get("rewards_earned")
