"""
Tabular Export - CSV files for the reconciliation views.

============================================================
FILES
============================================================
combined_rewards.csv  Player, Settlement Rewards, Appchain Rewards,
                      Total Combined Rewards
airdrop.csv           Player, Airdrop Amount
airdrop_inverse.csv   player, airdropAmount  (parsed back from the batch)
invoke.txt            command batch text
starknet_rewards.csv  Player, Total Rewards  (settlement ledger)
appchain_rewards.csv  Player, Total Rewards  (appchain ledger)
============================================================
"""

import csv
import hashlib
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence, Union

from command_batch.models import InvokeEntry
from reconciliation.models import CombinedRecord
from reward_sources.exceptions import IdentityOutOfRangeError
from reward_sources.models import SourceLedger
from reward_sources.normalizers import canonicalize_identity, format_amount


logger = logging.getLogger(__name__)


PathLike = Union[str, Path]

FULL_VIEW_HEADER = ["Player", "Settlement Rewards", "Appchain Rewards", "Total Combined Rewards"]
ELIGIBLE_VIEW_HEADER = ["Player", "Airdrop Amount"]
INVERSE_VIEW_HEADER = ["player", "airdropAmount"]
SOURCE_VIEW_HEADER = ["Player", "Total Rewards"]


@dataclass
class ExportResult:
    """A file written by this module."""
    path: Path
    record_count: int
    checksum: str
    size_bytes: int


def format_csv(header: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    """Render a header and rows as CSV text."""
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return output.getvalue()


def _write(path: PathLike, content: str, record_count: int) -> ExportResult:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")

    data = content.encode("utf-8")
    result = ExportResult(
        path=path,
        record_count=record_count,
        checksum=hashlib.sha256(data).hexdigest(),
        size_bytes=len(data),
    )
    logger.info(f"Wrote {record_count} records to {path} (sha256={result.checksum[:12]})")
    return result


def write_full_view(path: PathLike, records: Sequence[CombinedRecord]) -> ExportResult:
    content = format_csv(FULL_VIEW_HEADER, (r.to_full_row() for r in records))
    return _write(path, content, len(records))


def write_eligible_view(path: PathLike, records: Sequence[CombinedRecord]) -> ExportResult:
    content = format_csv(ELIGIBLE_VIEW_HEADER, (r.to_eligible_row() for r in records))
    return _write(path, content, len(records))


def write_inverse_view(path: PathLike, entries: Sequence[InvokeEntry]) -> ExportResult:
    content = format_csv(INVERSE_VIEW_HEADER, (e.to_row() for e in entries))
    return _write(path, content, len(entries))


def read_eligible_view(path: PathLike) -> list[tuple[str, str]]:
    """
    Read (identity, amount) pairs from an airdrop CSV.

    Columns are located by header name: the first containing "player",
    and the first containing "airdrop" or "amount".

    Raises:
        ValueError: if either column cannot be found
    """
    with open(path, "r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        fieldnames = reader.fieldnames or []

        player_key = next((k for k in fieldnames if "player" in k.lower()), None)
        amount_key = next(
            (k for k in fieldnames if "airdrop" in k.lower() or "amount" in k.lower()),
            None,
        )
        if player_key is None or amount_key is None:
            raise ValueError(f"Could not find player or amount columns in {fieldnames}")

        rows = [
            (row[player_key].strip(), row[amount_key].strip())
            for row in reader
            if row.get(player_key)
        ]

    logger.info(f"Read {len(rows)} rows from {path}")
    return rows


def write_batch(path: PathLike, text: str, call_count: int) -> ExportResult:
    return _write(path, text, call_count)


def read_batch(path: PathLike) -> str:
    return Path(path).read_text(encoding="utf-8")


def write_source_view(path: PathLike, ledger: SourceLedger) -> ExportResult:
    """
    Write one source's aggregated ledger, in ledger order.

    Identities wider than 256 bits have no canonical form and are left out.
    """
    rows = []
    for identity, amount in ledger.items():
        try:
            rows.append([canonicalize_identity(identity), format_amount(amount)])
        except IdentityOutOfRangeError as e:
            logger.warning(f"[{ledger.source_name}] Not exporting {identity:#x}: {e.message}")

    content = format_csv(SOURCE_VIEW_HEADER, rows)
    return _write(path, content, len(rows))
