"""
Command Batch Verifier - reads a batch back into structured entries.

Parsing a generated batch and comparing it with the eligible export
proves the batch encodes exactly what was exported.
"""

import logging
from typing import Iterable, Optional

from command_batch.models import AmountMismatch, InvokeEntry, VerificationReport
from command_batch.schema import BatchSchema


logger = logging.getLogger(__name__)


class CommandBatchVerifier:
    """
    Parses batch text with the schema's pattern.

    Occurrences that do not match all three fields are skipped silently.
    """

    def __init__(self, schema: Optional[BatchSchema] = None) -> None:
        self._schema = schema or BatchSchema()
        self._pattern = self._schema.pattern()

    def parse(self, text: str) -> list[InvokeEntry]:
        """Extract every call, sorted by identity as written."""
        entries = [
            InvokeEntry(identity=match.group(1), amount=match.group(2))
            for match in self._pattern.finditer(text)
        ]
        logger.info(f"Extracted {len(entries)} player records from command batch")
        return sorted(entries, key=lambda entry: entry.identity)

    def verify(
        self,
        parsed: Iterable[InvokeEntry],
        expected: Iterable[InvokeEntry],
    ) -> VerificationReport:
        """Compare parsed entries against the expected ones, field by field."""
        parsed = list(parsed)
        expected = list(expected)

        report = VerificationReport(
            expected_count=len(expected),
            parsed_count=len(parsed),
        )

        parsed_by_id = {entry.identity.lower(): entry for entry in parsed}
        expected_by_id = {entry.identity.lower(): entry for entry in expected}

        for identity, want in expected_by_id.items():
            got = parsed_by_id.get(identity)
            if got is None:
                report.missing.append(want.identity)
            elif got.amount_value != want.amount_value:
                report.mismatched.append(AmountMismatch(
                    identity=want.identity,
                    expected=want.amount,
                    actual=got.amount,
                ))
            else:
                report.matched += 1

        report.unexpected = [
            entry.identity for identity, entry in parsed_by_id.items()
            if identity not in expected_by_id
        ]
        report.order_matches = (
            [e.identity.lower() for e in parsed] == [e.identity.lower() for e in expected]
        )

        if report.is_clean:
            logger.info(f"Command batch verified: {report.matched} entries round-trip")
        else:
            logger.warning(
                f"Command batch mismatch: {len(report.missing)} missing, "
                f"{len(report.unexpected)} unexpected, "
                f"{len(report.mismatched)} amount mismatches, "
                f"order_matches={report.order_matches}"
            )
        return report
