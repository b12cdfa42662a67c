"""
Command Batch Generator - encodes the airdrop-eligible view as one
``starkli invoke`` multicall.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from command_batch.exceptions import CommandBatchError
from command_batch.models import InvokeEntry
from command_batch.schema import BatchSchema
from reconciliation.models import CombinedRecord
from reward_sources.exceptions import InvalidIdentityError, NotANumberError
from reward_sources.normalizers import (
    canonicalize_identity,
    is_integral,
    parse_exported_amount,
)


logger = logging.getLogger(__name__)


class CommandBatchGenerator:
    """
    Builds batch text from eligible records.

    Only whole, positive token amounts are encodable.
    """

    def __init__(self, schema: Optional[BatchSchema] = None) -> None:
        self._schema = schema or BatchSchema()

    @property
    def schema(self) -> BatchSchema:
        return self._schema

    def entries_from_records(self, records: Iterable[CombinedRecord]) -> list[InvokeEntry]:
        return [self._entry(r.identity, r.airdrop_amount) for r in records]

    def entries_from_rows(self, rows: Iterable[tuple[str, str]]) -> list[InvokeEntry]:
        """Entries from (identity, amount) text pairs read back from an export."""
        entries = []
        for identity, amount_text in rows:
            try:
                amount = parse_exported_amount(amount_text)
            except NotANumberError as e:
                raise CommandBatchError(
                    f"Unreadable amount {amount_text!r}",
                    identity=identity,
                    original_error=e,
                )
            entries.append(self._entry(identity, amount))
        return entries

    def generate(self, entries: Iterable[InvokeEntry]) -> str:
        """
        Encode entries as batch text.

        Raises:
            CommandBatchError: if there is nothing to encode
        """
        calls = [self._schema.encode_call(e.identity, e.amount) for e in entries]
        if not calls:
            raise CommandBatchError("No entries to encode into a command batch")

        logger.info(f"Generated invoke command with {len(calls)} calls")
        return self._schema.join(calls)

    def generate_from_records(self, records: Iterable[CombinedRecord]) -> str:
        return self.generate(self.entries_from_records(records))

    def _entry(self, identity: str, amount: Decimal) -> InvokeEntry:
        try:
            canonical = canonicalize_identity(identity)
        except InvalidIdentityError as e:
            raise CommandBatchError(
                f"Cannot encode identity: {e.message}",
                identity=str(identity),
                original_error=e,
            )

        if amount <= 0 or not is_integral(amount):
            raise CommandBatchError(
                f"Amount {amount} is not a positive whole token count",
                identity=canonical,
            )
        return InvokeEntry(identity=canonical, amount=str(int(amount)))
