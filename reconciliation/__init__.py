"""
Reconciliation Package - merge two reward ledgers into airdrop amounts.

Usage:
    from reconciliation import ExportProjector, Reconciler

    record_set = Reconciler().reconcile(settlement_ledger, appchain_ledger)
    views = ExportProjector().project(record_set)

    for record in views.eligible:
        print(record.identity, record.airdrop_amount)
"""

from reconciliation.exceptions import (
    BothSourcesUnreachableError,
    NoRecordsError,
    ReconciliationError,
)
from reconciliation.models import (
    CombinedRecord,
    CombinedRecordSet,
    ExportViews,
    RejectedParticipant,
    RejectionReason,
    RunSummary,
)
from reconciliation.projector import ExportProjector
from reconciliation.reconciler import Reconciler, reconcile


__all__ = [
    # Models
    "CombinedRecord",
    "CombinedRecordSet",
    "ExportViews",
    "RejectedParticipant",
    "RejectionReason",
    "RunSummary",

    # Engine
    "Reconciler",
    "ExportProjector",
    "reconcile",

    # Exceptions
    "ReconciliationError",
    "NoRecordsError",
    "BothSourcesUnreachableError",
]
