"""
Orchestrator - Models.

============================================================
RESPONSIBILITY
============================================================
Configuration and run results for one airdrop reconciliation run.

- AirdropConfig: endpoints, output paths, batch target, tolerances
- OutputPaths: where each artifact is written
- RunResult: everything one run produced

============================================================
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List, Optional
from urllib.parse import urlparse

from command_batch.models import VerificationReport
from command_batch.schema import DEFAULT_TARGET_ADDRESS
from exports.tabular import ExportResult
from reconciliation.models import CombinedRecordSet, ExportViews, RunSummary
from reward_sources.models import SourceIncident
from reward_sources.providers.appchain import AppchainRewardSource
from reward_sources.providers.settlement import SettlementRewardSource

from .exceptions import ConfigurationError


_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{1,64}$")


def _env_number(key: str, default: str, cast: Callable[[str], Any]) -> Any:
    raw = os.getenv(key, default)
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid value {raw!r}", config_key=key, original_error=e)


_TRUE_VALUES = ("true", "1", "yes", "on")
_FALSE_VALUES = ("false", "0", "no", "off")


def _env_flag(key: str, default: str) -> bool:
    raw = os.getenv(key, default)
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"Invalid boolean {raw!r}", config_key=key)


# ============================================================
# OUTPUT PATHS
# ============================================================

@dataclass
class OutputPaths:
    """Artifact locations for one run."""

    combined_csv: Path = Path("combined_rewards.csv")
    """Full view: every participant."""

    airdrop_csv: Path = Path("airdrop.csv")
    """Eligible view: positive airdrop amounts only."""

    invoke_batch: Path = Path("invoke.txt")
    """Command batch text."""

    inverse_csv: Path = Path("airdrop_inverse.csv")
    """Eligible view parsed back from the command batch."""

    settlement_csv: Path = Path("starknet_rewards.csv")
    """Settlement ledger on its own."""

    appchain_csv: Path = Path("appchain_rewards.csv")
    """Appchain ledger on its own."""

    @classmethod
    def in_directory(cls, directory: Path) -> "OutputPaths":
        """Default file names under ``directory``."""
        directory = Path(directory)
        return cls(
            combined_csv=directory / "combined_rewards.csv",
            airdrop_csv=directory / "airdrop.csv",
            invoke_batch=directory / "invoke.txt",
            inverse_csv=directory / "airdrop_inverse.csv",
            settlement_csv=directory / "starknet_rewards.csv",
            appchain_csv=directory / "appchain_rewards.csv",
        )


# ============================================================
# AIRDROP CONFIGURATION
# ============================================================

@dataclass
class AirdropConfig:
    """Configuration passed to every component of a run."""

    settlement_endpoint: str = SettlementRewardSource.DEFAULT_ENDPOINT
    """GraphQL endpoint indexing settlement-layer claims."""

    appchain_endpoint: str = AppchainRewardSource.DEFAULT_ENDPOINT
    """GraphQL endpoint indexing appchain totals."""

    output_paths: OutputPaths = field(default_factory=OutputPaths)
    """Where artifacts are written."""

    batch_target_address: str = DEFAULT_TARGET_ADDRESS
    """Contract address every batched reward call targets."""

    query_limit: int = 200
    """Row limit sent with each GraphQL query."""

    request_timeout_seconds: float = 30.0
    """Total timeout for each source request."""

    allow_empty_export: bool = True
    """Complete with empty outputs when no records combine."""

    generate_batch: bool = True
    """Write the command batch after the CSV exports."""

    log_level: str = "INFO"
    """Logging level."""

    @classmethod
    def from_env(cls) -> "AirdropConfig":
        """Load configuration from environment variables."""
        output_dir = os.getenv("OUTPUT_DIR")
        return cls(
            settlement_endpoint=os.getenv(
                "SETTLEMENT_GRAPHQL_ENDPOINT", SettlementRewardSource.DEFAULT_ENDPOINT
            ),
            appchain_endpoint=os.getenv(
                "APPCHAIN_GRAPHQL_ENDPOINT", AppchainRewardSource.DEFAULT_ENDPOINT
            ),
            output_paths=OutputPaths.in_directory(Path(output_dir)) if output_dir else OutputPaths(),
            batch_target_address=os.getenv("BATCH_TARGET_ADDRESS", DEFAULT_TARGET_ADDRESS),
            query_limit=_env_number("QUERY_LIMIT", "200", int),
            request_timeout_seconds=_env_number("REQUEST_TIMEOUT_SECONDS", "30", float),
            allow_empty_export=_env_flag("ALLOW_EMPTY_EXPORT", "true"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    def validate(self) -> List[str]:
        """Validate configuration, return list of errors."""
        errors = []

        for name, url in (
            ("settlement_endpoint", self.settlement_endpoint),
            ("appchain_endpoint", self.appchain_endpoint),
        ):
            parsed = urlparse(url)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                errors.append(f"{name} must be an http(s) URL, got {url!r}")

        if not _ADDRESS_RE.match(self.batch_target_address):
            errors.append("batch_target_address must be a 0x-prefixed hex address")

        if self.query_limit < 1:
            errors.append("query_limit must be at least 1")

        if self.request_timeout_seconds <= 0:
            errors.append("request_timeout_seconds must be positive")

        return errors


# ============================================================
# RUN RESULT
# ============================================================

@dataclass
class RunResult:
    """Everything one reconciliation run produced."""

    summary: RunSummary
    record_set: CombinedRecordSet
    views: ExportViews
    incidents: List[SourceIncident] = field(default_factory=list)
    exports: List[ExportResult] = field(default_factory=list)
    batch_text: Optional[str] = None
    verification: Optional[VerificationReport] = None
    batch_error: Optional[str] = None
    """Why the command batch was not generated, if it failed."""

    @property
    def success(self) -> bool:
        if self.batch_error is not None:
            return False
        return self.verification is None or self.verification.is_clean
