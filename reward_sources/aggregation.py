"""
Aggregation strategies applied per source.

Settlement claims accumulate (``Sum``); appchain totals are authoritative
snapshots where the later entry replaces the earlier one
(``LastWriteWins``). An amount that failed to parse is passed in as the
``NotANumberError`` it raised.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Union

from reward_sources.exceptions import NotANumberError
from reward_sources.models import AggregationPolicy, SourceLedger
from reward_sources.normalizers import add_amounts


logger = logging.getLogger(__name__)


AmountOrError = Union[Decimal, NotANumberError]


class AggregationStrategy(ABC):
    """Folds one parsed edge into a ledger."""

    @property
    @abstractmethod
    def policy(self) -> AggregationPolicy:
        pass

    @abstractmethod
    def apply(self, ledger: SourceLedger, identity: int, amount: AmountOrError) -> None:
        pass

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(policy={self.policy.value})>"


class Sum(AggregationStrategy):
    """Add every entry into a running total; a parse failure is sticky."""

    @property
    def policy(self) -> AggregationPolicy:
        return AggregationPolicy.SUM

    def apply(self, ledger: SourceLedger, identity: int, amount: AmountOrError) -> None:
        if identity in ledger.rejected:
            return

        if isinstance(amount, NotANumberError):
            ledger.amounts.pop(identity, None)
            ledger.rejected[identity] = amount.message
            return

        current = ledger.amounts.get(identity)
        ledger.amounts[identity] = amount if current is None else add_amounts(current, amount)


class LastWriteWins(AggregationStrategy):
    """Replace any earlier entry; a later valid entry clears a parse failure."""

    @property
    def policy(self) -> AggregationPolicy:
        return AggregationPolicy.LAST_WRITE_WINS

    def apply(self, ledger: SourceLedger, identity: int, amount: AmountOrError) -> None:
        if isinstance(amount, NotANumberError):
            ledger.amounts.pop(identity, None)
            ledger.rejected[identity] = amount.message
            return

        if ledger.rejected.pop(identity, None) is not None:
            logger.debug(f"[{ledger.source_name}] Later entry replaced rejected amount for {identity:#x}")
        ledger.amounts[identity] = amount


_STRATEGIES: dict[AggregationPolicy, type[AggregationStrategy]] = {
    AggregationPolicy.SUM: Sum,
    AggregationPolicy.LAST_WRITE_WINS: LastWriteWins,
}


def strategy_for(policy: AggregationPolicy) -> AggregationStrategy:
    """Get the strategy instance implementing ``policy``."""
    return _STRATEGIES[policy]()
