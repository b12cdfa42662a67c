"""
Export Projector - the full and airdrop-eligible views.

Full view: every record, insertion order.
Eligible view: airdrop_amount > 0 only, sorted by canonical identity
using plain string (codepoint) order on the fixed-width hex form.
"""

import logging

from reconciliation.exceptions import NoRecordsError
from reconciliation.models import CombinedRecord, CombinedRecordSet, ExportViews


logger = logging.getLogger(__name__)


class ExportProjector:
    """
    Shapes a CombinedRecordSet into its output views.

    An empty record set yields two empty views. With ``strict=True`` it
    raises NoRecordsError instead.
    """

    def __init__(self, strict: bool = False) -> None:
        self._strict = strict

    def project(self, record_set: CombinedRecordSet) -> ExportViews:
        if record_set.is_empty():
            if self._strict:
                raise NoRecordsError(
                    "No combined records to export",
                    context={"rejected": len(record_set.rejected)},
                )
            logger.warning("No records to export")
            return ExportViews()

        views = ExportViews(
            full=self.full_view(record_set),
            eligible=self.eligible_view(record_set),
        )
        logger.info(
            f"Projected {len(views.full)} records, "
            f"{len(views.eligible)} eligible for airdrop"
        )
        return views

    @staticmethod
    def full_view(record_set: CombinedRecordSet) -> list[CombinedRecord]:
        return list(record_set.records)

    @staticmethod
    def eligible_view(record_set: CombinedRecordSet) -> list[CombinedRecord]:
        eligible = [record for record in record_set if record.is_eligible]
        return sorted(eligible, key=lambda record: record.identity)
