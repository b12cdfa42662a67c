"""
Command Batch Models - invoke entries and verification reports.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class InvokeEntry:
    """One ``reward <identity> <amount>`` call, as written in a batch."""
    identity: str
    amount: str

    @property
    def amount_value(self) -> int:
        return int(self.amount)

    def to_row(self) -> list[str]:
        return [self.identity, self.amount]

    def to_dict(self) -> dict[str, Any]:
        return {"identity": self.identity, "amount": self.amount}


@dataclass(frozen=True)
class AmountMismatch:
    identity: str
    expected: str
    actual: str


@dataclass
class VerificationReport:
    """
    Field-by-field comparison of a parsed batch against the eligible export.

    A batch round-trips when nothing is missing, unexpected or mismatched
    and both sides list the identities in the same order.
    """
    expected_count: int = 0
    parsed_count: int = 0
    matched: int = 0
    missing: list[str] = field(default_factory=list)
    unexpected: list[str] = field(default_factory=list)
    mismatched: list[AmountMismatch] = field(default_factory=list)
    order_matches: bool = True

    @property
    def is_clean(self) -> bool:
        return (
            not self.missing
            and not self.unexpected
            and not self.mismatched
            and self.order_matches
            and self.expected_count == self.parsed_count
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "expected_count": self.expected_count,
            "parsed_count": self.parsed_count,
            "matched": self.matched,
            "missing": list(self.missing),
            "unexpected": list(self.unexpected),
            "mismatched": [
                {"identity": m.identity, "expected": m.expected, "actual": m.actual}
                for m in self.mismatched
            ],
            "order_matches": self.order_matches,
            "is_clean": self.is_clean,
        }
