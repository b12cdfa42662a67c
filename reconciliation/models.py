"""
Reconciliation Models - combined per-participant records and run summary.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Optional

from reward_sources.normalizers import format_amount


class RejectionReason(Enum):
    """Why a participant could not be emitted."""
    INVALID_AMOUNT = "invalid_amount"
    IDENTITY_OUT_OF_RANGE = "identity_out_of_range"


@dataclass(frozen=True)
class CombinedRecord:
    """
    One participant across both ledgers.

    Invariants:
        total_rewards  == settlement_rewards + appchain_rewards
        airdrop_amount == appchain_rewards - settlement_rewards
    """
    identity: str
    settlement_rewards: Decimal
    appchain_rewards: Decimal
    total_rewards: Decimal
    airdrop_amount: Decimal

    @property
    def is_eligible(self) -> bool:
        """Strictly positive delta; zero or negative is owed nothing."""
        return self.airdrop_amount > 0

    def to_full_row(self) -> list[str]:
        """Row for the full view: identity, settlement, appchain, total."""
        return [
            self.identity,
            format_amount(self.settlement_rewards),
            format_amount(self.appchain_rewards),
            format_amount(self.total_rewards),
        ]

    def to_eligible_row(self) -> list[str]:
        """Row for the airdrop-eligible view: identity, airdrop amount."""
        return [self.identity, format_amount(self.airdrop_amount)]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "identity": self.identity,
            "settlement_rewards": format_amount(self.settlement_rewards),
            "appchain_rewards": format_amount(self.appchain_rewards),
            "total_rewards": format_amount(self.total_rewards),
            "airdrop_amount": format_amount(self.airdrop_amount),
        }


@dataclass(frozen=True)
class RejectedParticipant:
    """A participant excluded from the combined set, with the reason."""
    identity: int
    reason: RejectionReason
    detail: str
    source_name: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity": hex(self.identity),
            "reason": self.reason.value,
            "detail": self.detail,
            "source_name": self.source_name,
        }


@dataclass
class CombinedRecordSet:
    """
    All combined records for one run, in insertion order.

    Settlement-seeded records come first, then appchain-only records.
    """
    records: list[CombinedRecord] = field(default_factory=list)
    rejected: list[RejectedParticipant] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[CombinedRecord]:
        return iter(self.records)

    def is_empty(self) -> bool:
        return not self.records

    def count_rejected(self, reason: RejectionReason) -> int:
        return sum(1 for r in self.rejected if r.reason == reason)


@dataclass
class ExportViews:
    """The two output projections of one CombinedRecordSet."""
    full: list[CombinedRecord] = field(default_factory=list)
    eligible: list[CombinedRecord] = field(default_factory=list)

    @property
    def no_records(self) -> bool:
        return not self.full


@dataclass
class RunSummary:
    """Counts reported at the end of every non-fatal run."""
    settlement_participants: int = 0
    appchain_participants: int = 0
    combined_participants: int = 0
    eligible_participants: int = 0
    rejected_participants: int = 0
    out_of_range_identities: int = 0
    unavailable_sources: list[str] = field(default_factory=list)
    total_airdrop: Decimal = Decimal(0)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "settlement_participants": self.settlement_participants,
            "appchain_participants": self.appchain_participants,
            "combined_participants": self.combined_participants,
            "eligible_participants": self.eligible_participants,
            "rejected_participants": self.rejected_participants,
            "out_of_range_identities": self.out_of_range_identities,
            "unavailable_sources": list(self.unavailable_sources),
            "total_airdrop": format_amount(self.total_airdrop),
        }

    def lines(self) -> list[str]:
        """Human-readable summary lines."""
        lines = [
            f"- Settlement players: {self.settlement_participants}",
            f"- Appchain players: {self.appchain_participants}",
            f"- Total unique players: {self.combined_participants}",
            f"- Players eligible for airdrop: {self.eligible_participants}",
            f"- Total airdrop amount: {format_amount(self.total_airdrop)}",
        ]
        if self.rejected_participants:
            lines.append(f"- Players rejected (invalid amount): {self.rejected_participants}")
        if self.out_of_range_identities:
            lines.append(f"- Players rejected (identity out of range): {self.out_of_range_identities}")
        if self.unavailable_sources:
            lines.append(f"- Unavailable sources: {', '.join(self.unavailable_sources)}")
        return lines
