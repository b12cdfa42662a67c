"""
Airdrop Pipeline Tests.

Tests cover:
- End-to-end run from snapshots to files
- Single-source degradation
- Both sources unreachable
- Empty result handling, lenient and strict
- File-based batch generation and verification
"""

import json

import pytest
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from command_batch.exceptions import CommandBatchError
from orchestrator.models import AirdropConfig, OutputPaths
from orchestrator.pipeline import (
    AirdropPipeline,
    generate_batch_from_csv,
    run_pipeline,
    verify_batch_files,
)
from reconciliation.exceptions import BothSourcesUnreachableError, NoRecordsError
from reward_sources.models import (
    AggregationPolicy,
    SourceFetchResult,
    SourceIncident,
    SourceLedger,
)
from reward_sources.normalizers import canonicalize_identity


# ============================================================
# FIXTURES
# ============================================================

SETTLEMENT_SNAPSHOT = {
    "data": {
        "numsClaimsModels": {
            "totalCount": 3,
            "edges": [
                {"node": {"player": "0x1", "ty": {"TOKEN": {"amount": "0x3"}}}},
                {"node": {"player": "1", "ty": {"TOKEN": {"amount": "5"}}}},
                {"node": {"player": "0x3", "ty": {"TOKEN": {"amount": 100}}}},
            ],
        }
    }
}

APPCHAIN_SNAPSHOT = {
    "data": {
        "numsTotalsModels": {
            "totalCount": 3,
            "edges": [
                {"node": {"player": "0x1", "rewards_earned": 10}},
                {"node": {"player": "0x2", "rewards_earned": "50"}},
                {"node": {"player": "0x01", "rewards_earned": "0x14"}},
            ],
        }
    }
}


@pytest.fixture
def config(tmp_path):
    return AirdropConfig(output_paths=OutputPaths.in_directory(tmp_path / "out"))


@pytest.fixture
def snapshots(tmp_path):
    settlement = tmp_path / "claims.json"
    appchain = tmp_path / "totals.json"
    settlement.write_text(json.dumps(SETTLEMENT_SNAPSHOT))
    appchain.write_text(json.dumps(APPCHAIN_SNAPSHOT))
    return settlement, appchain


def mock_source(name, policy, amounts=None, incident=False):
    ledger = SourceLedger(
        source_name=name,
        policy=policy,
        amounts={k: Decimal(v) for k, v in (amounts or {}).items()},
    )
    result = SourceFetchResult(ledger=ledger)
    if incident:
        result.incident = SourceIncident(
            source_name=name,
            incident_type="FetchError",
            timestamp=MagicMock(),
            error_message="FetchError: HTTP 503",
        )

    source = MagicMock()
    source.name = name
    source.endpoint = f"http://{name}.test/graphql"
    source.fetch = AsyncMock(return_value=result)
    source.close = AsyncMock()
    return source


# ============================================================
# END TO END
# ============================================================

class TestPipelineRun:
    """Tests for AirdropPipeline.run with snapshots."""

    @pytest.mark.asyncio
    async def test_full_run(self, config, snapshots):
        settlement, appchain = snapshots

        result = await AirdropPipeline(config).run(settlement, appchain)

        records = {r.identity: r for r in result.record_set}
        assert records[canonicalize_identity(1)].settlement_rewards == Decimal(8)
        assert records[canonicalize_identity(1)].appchain_rewards == Decimal(20)
        assert records[canonicalize_identity(1)].airdrop_amount == Decimal(12)
        assert records[canonicalize_identity(3)].airdrop_amount == Decimal(-100)

        assert [r.identity for r in result.views.eligible] == [
            canonicalize_identity(1),
            canonicalize_identity(2),
        ]
        assert result.success
        assert result.verification.matched == 2

        paths = config.output_paths
        assert paths.combined_csv.read_text().count("\n") == 4
        assert paths.airdrop_csv.read_text() == (
            "Player,Airdrop Amount\n"
            f"{canonicalize_identity(1)},12\n"
            f"{canonicalize_identity(2)},50\n"
        )
        assert paths.invoke_batch.read_text().startswith("starkli invoke ")
        assert paths.inverse_csv.read_text().splitlines()[0] == "player,airdropAmount"
        assert paths.settlement_csv.read_text().splitlines() == [
            "Player,Total Rewards",
            f"{canonicalize_identity(1)},8",
            f"{canonicalize_identity(3)},100",
        ]
        assert paths.appchain_csv.read_text().splitlines()[1:] == [
            f"{canonicalize_identity(1)},20",
            f"{canonicalize_identity(2)},50",
        ]

    @pytest.mark.asyncio
    async def test_summary(self, config, snapshots):
        result = await run_pipeline(config, *snapshots)
        summary = result.summary
        assert summary.settlement_participants == 2
        assert summary.appchain_participants == 2
        assert summary.combined_participants == 3
        assert summary.eligible_participants == 2
        assert summary.total_airdrop == Decimal(62)
        assert summary.unavailable_sources == []

    @pytest.mark.asyncio
    async def test_no_batch(self, config, snapshots):
        config.generate_batch = False
        result = await AirdropPipeline(config).run(*snapshots)
        assert result.batch_text is None
        assert not config.output_paths.invoke_batch.exists()
        assert config.output_paths.airdrop_csv.exists()


# ============================================================
# DEGRADATION
# ============================================================

class TestPipelineDegradation:
    """Tests for source failures and empty results."""

    @pytest.mark.asyncio
    async def test_single_source(self, config, snapshots, tmp_path):
        _, appchain = snapshots

        result = await AirdropPipeline(config).run(tmp_path / "missing.json", appchain)

        assert len(result.record_set) == 2
        assert all(r.settlement_rewards == 0 for r in result.record_set)
        assert result.summary.unavailable_sources == ["settlement"]
        assert len(result.incidents) == 1

    @pytest.mark.asyncio
    async def test_both_unreachable(self, config):
        pipeline = AirdropPipeline(
            config,
            settlement_source=mock_source("settlement", AggregationPolicy.SUM, incident=True),
            appchain_source=mock_source("appchain", AggregationPolicy.LAST_WRITE_WINS, incident=True),
        )

        with pytest.raises(BothSourcesUnreachableError) as exc_info:
            await pipeline.run()

        assert len(exc_info.value.incidents) == 2
        assert not config.output_paths.combined_csv.exists()

    @pytest.mark.asyncio
    async def test_injected_sources_not_closed(self, config):
        settlement = mock_source("settlement", AggregationPolicy.SUM, {1: 5})
        appchain = mock_source("appchain", AggregationPolicy.LAST_WRITE_WINS, {1: 9})

        result = await AirdropPipeline(config, settlement, appchain).run()

        assert result.views.eligible[0].airdrop_amount == Decimal(4)
        settlement.fetch.assert_awaited_once()
        settlement.close.assert_not_awaited()
        appchain.close.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_result_skips_export(self, config):
        pipeline = AirdropPipeline(
            config,
            settlement_source=mock_source("settlement", AggregationPolicy.SUM),
            appchain_source=mock_source("appchain", AggregationPolicy.LAST_WRITE_WINS),
        )

        result = await pipeline.run()

        assert result.views.no_records
        assert result.exports == []
        assert not config.output_paths.airdrop_csv.exists()

    @pytest.mark.asyncio
    async def test_empty_result_strict(self, config):
        config.allow_empty_export = False
        pipeline = AirdropPipeline(
            config,
            settlement_source=mock_source("settlement", AggregationPolicy.SUM),
            appchain_source=mock_source("appchain", AggregationPolicy.LAST_WRITE_WINS),
        )

        with pytest.raises(NoRecordsError):
            await pipeline.run()

    @pytest.mark.asyncio
    async def test_no_eligible_players(self, config):
        pipeline = AirdropPipeline(
            config,
            settlement_source=mock_source("settlement", AggregationPolicy.SUM, {1: 9}),
            appchain_source=mock_source("appchain", AggregationPolicy.LAST_WRITE_WINS, {1: 9}),
        )

        result = await pipeline.run()

        assert result.batch_text is None
        assert config.output_paths.airdrop_csv.read_text() == "Player,Airdrop Amount\n"


# ============================================================
# BATCH FAILURES
# ============================================================

class TestPipelineBatchFailure:
    """Tests for eligible amounts that cannot be batch-encoded."""

    @pytest.mark.asyncio
    async def test_fractional_amount_skips_batch(self, config):
        paths = config.output_paths
        paths.invoke_batch.parent.mkdir(parents=True)
        paths.invoke_batch.write_text("starkli invoke 0x1 reward 0x9 1")
        paths.inverse_csv.write_text("player,airdropAmount\n0x9,1\n")

        pipeline = AirdropPipeline(
            config,
            settlement_source=mock_source("settlement", AggregationPolicy.SUM),
            appchain_source=mock_source(
                "appchain", AggregationPolicy.LAST_WRITE_WINS, {1: "2.5", 2: "7"}
            ),
        )

        result = await pipeline.run()

        assert "2.5" in result.batch_error
        assert not result.success
        assert result.batch_text is None
        assert result.summary.eligible_participants == 2
        assert paths.airdrop_csv.exists()
        assert paths.combined_csv.exists()
        assert paths.appchain_csv.exists()
        assert not paths.settlement_csv.exists()
        assert not paths.invoke_batch.exists()
        assert not paths.inverse_csv.exists()

    @pytest.mark.asyncio
    async def test_no_eligible_removes_stale_batch(self, config):
        paths = config.output_paths
        paths.invoke_batch.parent.mkdir(parents=True)
        paths.invoke_batch.write_text("starkli invoke 0x1 reward 0x9 1")

        pipeline = AirdropPipeline(
            config,
            settlement_source=mock_source("settlement", AggregationPolicy.SUM, {1: 9}),
            appchain_source=mock_source("appchain", AggregationPolicy.LAST_WRITE_WINS, {1: 3}),
        )

        result = await pipeline.run()

        assert result.batch_error is None
        assert not paths.invoke_batch.exists()


# ============================================================
# FILE-BASED STEPS
# ============================================================

class TestFileSteps:
    """Tests for generate_batch_from_csv and verify_batch_files."""

    def write_airdrop(self, config, text):
        path = config.output_paths.airdrop_csv
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)

    def test_generate_then_verify(self, config):
        self.write_airdrop(config, "Player,Airdrop Amount\n0x1,5\n0x2,7\n")

        export = generate_batch_from_csv(config)
        report = verify_batch_files(config)

        assert export.record_count == 2
        assert report.is_clean
        assert config.output_paths.inverse_csv.read_text().count("\n") == 3

    def test_verify_detects_tampering(self, config):
        self.write_airdrop(config, "Player,Airdrop Amount\n0x1,5\n")
        generate_batch_from_csv(config)
        batch = config.output_paths.invoke_batch
        batch.write_text(batch.read_text().replace(" 5", " 6"))

        report = verify_batch_files(config)

        assert not report.is_clean
        assert len(report.mismatched) == 1

    def test_generate_from_empty_csv(self, config):
        self.write_airdrop(config, "Player,Airdrop Amount\n")
        with pytest.raises(CommandBatchError):
            generate_batch_from_csv(config)
