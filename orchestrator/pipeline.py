"""
Orchestrator - Reconciliation Pipeline.

============================================================
RESPONSIBILITY
============================================================
Runs one stateless batch: two snapshots in, derived artifacts out.

- Fetch both sources concurrently (a failed source contributes nothing)
- Reconcile into a combined record set
- Project the full and airdrop-eligible views
- Write per-source, combined and eligible CSVs and the command batch
- Parse the batch back and verify it against the eligible view

============================================================
FAILURE POLICY
============================================================
- One source down      : continue with the other
- Both sources down    : BothSourcesUnreachableError, nothing written
- No combined records  : empty views, exports skipped
                         (NoRecordsError when allow_empty_export is off)
- Unencodable amount   : CSVs written, batch skipped, RunResult.batch_error set

============================================================
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from command_batch.exceptions import CommandBatchError
from command_batch.generator import CommandBatchGenerator
from command_batch.models import VerificationReport
from command_batch.schema import BatchSchema
from command_batch.verifier import CommandBatchVerifier
from exports.tabular import (
    ExportResult,
    read_batch,
    read_eligible_view,
    write_batch,
    write_eligible_view,
    write_full_view,
    write_inverse_view,
    write_source_view,
)
from reconciliation.exceptions import BothSourcesUnreachableError
from reconciliation.models import (
    CombinedRecordSet,
    ExportViews,
    RejectionReason,
    RunSummary,
)
from reconciliation.projector import ExportProjector
from reconciliation.reconciler import Reconciler
from reward_sources.base import BaseRewardSource
from reward_sources.models import SourceFetchResult
from reward_sources.normalizers import ZERO, add_amounts
from reward_sources.providers.appchain import AppchainRewardSource
from reward_sources.providers.settlement import SettlementRewardSource

from .models import AirdropConfig, RunResult


logger = logging.getLogger(__name__)


SnapshotPath = Optional[Union[str, Path]]


# ============================================================
# PIPELINE
# ============================================================

class AirdropPipeline:
    """
    One reconciliation run.

    Sources may be injected; otherwise they are built from the config and
    closed when the run ends.
    """

    def __init__(
        self,
        config: AirdropConfig,
        settlement_source: Optional[BaseRewardSource] = None,
        appchain_source: Optional[BaseRewardSource] = None,
    ) -> None:
        self._config = config
        self._settlement = settlement_source or SettlementRewardSource(
            endpoint=config.settlement_endpoint,
            query_limit=config.query_limit,
            timeout=config.request_timeout_seconds,
        )
        self._appchain = appchain_source or AppchainRewardSource(
            endpoint=config.appchain_endpoint,
            query_limit=config.query_limit,
            timeout=config.request_timeout_seconds,
        )
        self._owned_sources = [
            source for source, injected in (
                (self._settlement, settlement_source),
                (self._appchain, appchain_source),
            )
            if injected is None
        ]

        self._reconciler = Reconciler()
        self._projector = ExportProjector(strict=not config.allow_empty_export)
        self._schema = BatchSchema(target_address=config.batch_target_address)

    async def run(
        self,
        settlement_snapshot: SnapshotPath = None,
        appchain_snapshot: SnapshotPath = None,
    ) -> RunResult:
        """
        Execute the run.

        Raises:
            BothSourcesUnreachableError: neither source produced data
            NoRecordsError: empty result with allow_empty_export off
        """
        try:
            settlement_result, appchain_result = await asyncio.gather(
                self._retrieve(self._settlement, settlement_snapshot),
                self._retrieve(self._appchain, appchain_snapshot),
            )
        finally:
            for source in self._owned_sources:
                await source.close()

        incidents = [r.incident for r in (settlement_result, appchain_result) if r.incident]
        if len(incidents) == 2:
            raise BothSourcesUnreachableError(
                "Failed to fetch data from both sources",
                incidents=incidents,
            )

        logger.info("Processing data...")
        record_set = self._reconciler.reconcile(settlement_result.ledger, appchain_result.ledger)
        views = self._projector.project(record_set)

        result = RunResult(
            summary=self._summarize(settlement_result, appchain_result, record_set, views),
            record_set=record_set,
            views=views,
            incidents=incidents,
        )

        if views.no_records:
            logger.warning("No records to write to CSV, skipping export")
        else:
            self._export(result, settlement_result, appchain_result)

        for line in result.summary.lines():
            logger.info(line)
        return result

    async def _retrieve(
        self,
        source: BaseRewardSource,
        snapshot: SnapshotPath,
    ) -> SourceFetchResult:
        if snapshot is not None:
            return source.load(snapshot)
        logger.info(f"Fetching data from {source.name} GraphQL endpoint {source.endpoint}")
        return await source.fetch()

    def _export(
        self,
        result: RunResult,
        settlement_result: SourceFetchResult,
        appchain_result: SourceFetchResult,
    ) -> None:
        paths = self._config.output_paths
        views = result.views

        for fetched, path in (
            (settlement_result, paths.settlement_csv),
            (appchain_result, paths.appchain_csv),
        ):
            if len(fetched.ledger):
                result.exports.append(write_source_view(path, fetched.ledger))
            else:
                logger.warning(f"[{fetched.source_name}] No records, {path} not written")

        result.exports.append(write_full_view(paths.combined_csv, views.full))
        result.exports.append(write_eligible_view(paths.airdrop_csv, views.eligible))

        if not self._config.generate_batch:
            return
        if not views.eligible:
            logger.warning("No eligible players, command batch not generated")
            self._discard_stale_batch()
            return

        generator = CommandBatchGenerator(self._schema)
        try:
            expected = generator.entries_from_records(views.eligible)
            batch_text = generator.generate(expected)
        except CommandBatchError as e:
            logger.error(f"Command batch not generated: {e}")
            result.batch_error = str(e)
            self._discard_stale_batch()
            return

        result.batch_text = batch_text
        result.exports.append(write_batch(paths.invoke_batch, batch_text, len(expected)))

        verifier = CommandBatchVerifier(self._schema)
        parsed = verifier.parse(result.batch_text)
        result.exports.append(write_inverse_view(paths.inverse_csv, parsed))
        result.verification = verifier.verify(parsed, expected)

    def _discard_stale_batch(self) -> None:
        """Remove batch files left by an earlier run."""
        paths = self._config.output_paths
        for path in (paths.invoke_batch, paths.inverse_csv):
            if path.exists():
                path.unlink()
                logger.info(f"Removed stale {path}")

    def _summarize(
        self,
        settlement_result: SourceFetchResult,
        appchain_result: SourceFetchResult,
        record_set: CombinedRecordSet,
        views: ExportViews,
    ) -> RunSummary:
        total_airdrop = ZERO
        for record in views.eligible:
            total_airdrop = add_amounts(total_airdrop, record.airdrop_amount)

        return RunSummary(
            settlement_participants=len(settlement_result.ledger),
            appchain_participants=len(appchain_result.ledger),
            combined_participants=len(record_set),
            eligible_participants=len(views.eligible),
            rejected_participants=record_set.count_rejected(RejectionReason.INVALID_AMOUNT),
            out_of_range_identities=record_set.count_rejected(RejectionReason.IDENTITY_OUT_OF_RANGE),
            unavailable_sources=[
                r.source_name for r in (settlement_result, appchain_result) if not r.ok
            ],
            total_airdrop=total_airdrop,
        )


# ============================================================
# FILE-BASED STEPS
# ============================================================

def generate_batch_from_csv(config: AirdropConfig) -> ExportResult:
    """
    Read the airdrop CSV and write the command batch.

    Raises:
        CommandBatchError: if the CSV has no encodable rows
    """
    paths = config.output_paths
    rows = read_eligible_view(paths.airdrop_csv)

    generator = CommandBatchGenerator(BatchSchema(target_address=config.batch_target_address))
    entries = generator.entries_from_rows(rows)
    text = generator.generate(entries)
    return write_batch(paths.invoke_batch, text, len(entries))


def verify_batch_files(config: AirdropConfig) -> VerificationReport:
    """
    Parse the command batch, write the inverse CSV and compare it with
    the airdrop CSV.
    """
    paths = config.output_paths
    schema = BatchSchema(target_address=config.batch_target_address)

    verifier = CommandBatchVerifier(schema)
    parsed = verifier.parse(read_batch(paths.invoke_batch))
    write_inverse_view(paths.inverse_csv, parsed)

    expected = CommandBatchGenerator(schema).entries_from_rows(read_eligible_view(paths.airdrop_csv))
    return verifier.verify(parsed, expected)


async def run_pipeline(
    config: AirdropConfig,
    settlement_snapshot: SnapshotPath = None,
    appchain_snapshot: SnapshotPath = None,
) -> RunResult:
    """Convenience wrapper: build an AirdropPipeline and run it."""
    return await AirdropPipeline(config).run(settlement_snapshot, appchain_snapshot)
