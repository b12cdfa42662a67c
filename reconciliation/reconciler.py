"""
Reconciler - merges the settlement and appchain ledgers.

============================================================
ALGORITHM
============================================================
1. Seed one entry per settlement participant:
   settlement = v, appchain = 0, total = v, airdrop = -v
2. For each appchain participant:
   - existing entry: appchain = v, total += v, airdrop += v
   - otherwise:      settlement = 0, appchain = v, total = v, airdrop = v
3. Canonicalize identities only when emitting records.

Ledgers are keyed by integer identity, so two encodings of one address
already share a merge key by the time they get here.

Participants with an unparsable amount in either ledger, and identities
that do not fit 256 bits, are excluded and reported as rejected.
============================================================
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from reconciliation.models import (
    CombinedRecord,
    CombinedRecordSet,
    RejectedParticipant,
    RejectionReason,
)
from reward_sources.exceptions import IdentityOutOfRangeError
from reward_sources.models import SourceLedger
from reward_sources.normalizers import (
    ZERO,
    add_amounts,
    canonicalize_identity,
    subtract_amounts,
)


logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    settlement_rewards: Decimal
    appchain_rewards: Decimal
    total_rewards: Decimal
    airdrop_amount: Decimal


class Reconciler:
    """
    Combines two per-source ledgers into one CombinedRecordSet.

    Usage:
        record_set = Reconciler().reconcile(settlement_ledger, appchain_ledger)
    """

    def reconcile(
        self,
        settlement: Optional[SourceLedger],
        appchain: Optional[SourceLedger],
    ) -> CombinedRecordSet:
        """
        Merge both ledgers; an absent ledger contributes nothing.

        Result order is insertion order: settlement-seeded entries first,
        then appchain-only entries, each in source iteration order.
        """
        record_set = CombinedRecordSet()
        excluded = self._collect_rejected(record_set, settlement, appchain)

        combined: dict[int, _Entry] = {}

        if settlement is not None:
            for identity, value in settlement.items():
                if identity in excluded:
                    continue
                combined[identity] = _Entry(
                    settlement_rewards=value,
                    appchain_rewards=ZERO,
                    total_rewards=value,
                    airdrop_amount=subtract_amounts(ZERO, value),
                )

        if appchain is not None:
            for identity, value in appchain.items():
                if identity in excluded:
                    continue
                entry = combined.get(identity)
                if entry is not None:
                    entry.appchain_rewards = value
                    entry.total_rewards = add_amounts(entry.total_rewards, value)
                    entry.airdrop_amount = add_amounts(entry.airdrop_amount, value)
                else:
                    combined[identity] = _Entry(
                        settlement_rewards=ZERO,
                        appchain_rewards=value,
                        total_rewards=value,
                        airdrop_amount=value,
                    )

        for identity, entry in combined.items():
            try:
                canonical = canonicalize_identity(identity)
            except IdentityOutOfRangeError as e:
                logger.warning(f"Excluding participant {identity:#x}: {e.message}")
                record_set.rejected.append(RejectedParticipant(
                    identity=identity,
                    reason=RejectionReason.IDENTITY_OUT_OF_RANGE,
                    detail=e.message,
                ))
                continue

            record_set.records.append(CombinedRecord(
                identity=canonical,
                settlement_rewards=entry.settlement_rewards,
                appchain_rewards=entry.appchain_rewards,
                total_rewards=entry.total_rewards,
                airdrop_amount=entry.airdrop_amount,
            ))

        logger.info(
            f"Reconciled {len(record_set)} participants "
            f"({len(record_set.rejected)} rejected)"
        )
        return record_set

    def _collect_rejected(
        self,
        record_set: CombinedRecordSet,
        *ledgers: Optional[SourceLedger],
    ) -> set[int]:
        """Record every participant a ledger rejected; first source wins."""
        excluded: set[int] = set()
        for ledger in ledgers:
            if ledger is None:
                continue
            for identity, reason in ledger.rejected.items():
                if identity in excluded:
                    continue
                excluded.add(identity)
                logger.warning(
                    f"[{ledger.source_name}] Excluding participant {identity:#x}: {reason}"
                )
                record_set.rejected.append(RejectedParticipant(
                    identity=identity,
                    reason=RejectionReason.INVALID_AMOUNT,
                    detail=reason,
                    source_name=ledger.source_name,
                ))
        return excluded


def reconcile(
    settlement: Optional[SourceLedger],
    appchain: Optional[SourceLedger],
) -> CombinedRecordSet:
    """Convenience wrapper around Reconciler().reconcile()."""
    return Reconciler().reconcile(settlement, appchain)
