"""
Reward Source Models - per-source ledgers and fetch outcomes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional


class SourceLayer(Enum):
    """Ledger a reward dataset is read from."""
    SETTLEMENT = "settlement"
    APPCHAIN = "appchain"


class AggregationPolicy(Enum):
    """How repeated entries for one participant combine within a source."""
    SUM = "sum"
    LAST_WRITE_WINS = "last_write_wins"


@dataclass
class SourceLedger:
    """
    Aggregated rewards for one source, keyed by integer participant identity.

    Participants whose amount failed to parse are held in ``rejected``
    (identity -> reason) and never appear in ``amounts`` at the same time.
    """
    source_name: str
    policy: AggregationPolicy
    amounts: dict[int, Decimal] = field(default_factory=dict)
    rejected: dict[int, str] = field(default_factory=dict)

    # Edge accounting
    edges_seen: int = 0
    edges_skipped: int = 0
    reported_total: Optional[int] = None

    def __len__(self) -> int:
        return len(self.amounts)

    def __contains__(self, identity: int) -> bool:
        return identity in self.amounts

    def get(self, identity: int) -> Optional[Decimal]:
        return self.amounts.get(identity)

    def items(self):
        return self.amounts.items()

    def is_empty(self) -> bool:
        return not self.amounts and not self.rejected

    def is_truncated(self) -> bool:
        """True if the endpoint reported more rows than it returned."""
        if self.reported_total is None:
            return False
        return self.reported_total > self.edges_seen

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "source_name": self.source_name,
            "policy": self.policy.value,
            "participants": len(self.amounts),
            "rejected": len(self.rejected),
            "edges_seen": self.edges_seen,
            "edges_skipped": self.edges_skipped,
            "reported_total": self.reported_total,
        }

    @classmethod
    def empty(cls, source_name: str, policy: AggregationPolicy) -> "SourceLedger":
        return cls(source_name=source_name, policy=policy)


@dataclass
class SourceIncident:
    """Record of a source that could not contribute data to a run."""
    source_name: str
    incident_type: str
    timestamp: datetime
    error_message: str
    endpoint: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "source_name": self.source_name,
            "incident_type": self.incident_type,
            "timestamp": self.timestamp.isoformat(),
            "error_message": self.error_message,
            "endpoint": self.endpoint,
        }


@dataclass
class SourceFetchResult:
    """
    Outcome of one fetch attempt.

    ``ledger`` is always populated; it is empty when ``incident`` is set.
    """
    ledger: SourceLedger
    incident: Optional[SourceIncident] = None
    latency_ms: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.incident is None

    @property
    def source_name(self) -> str:
        return self.ledger.source_name
