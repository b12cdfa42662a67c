"""
Orchestrator Package - Run Coordination Layer.

============================================================
PACKAGE OVERVIEW
============================================================
Wires the reward sources, the reconciler, the export projector and the
command batch tooling into one stateless run, and exposes it on the
command line.

============================================================
ARCHITECTURE
============================================================

    settlement GraphQL --+
                         +--> Reconciler --> ExportProjector --+--> combined_rewards.csv
    appchain GraphQL ----+                                     +--> airdrop.csv
                                                               +--> invoke.txt
                                                                      |
                                           airdrop_inverse.csv <-- Verifier

============================================================
USAGE
============================================================
    from orchestrator import AirdropConfig, AirdropPipeline

    config = AirdropConfig.from_env()
    result = await AirdropPipeline(config).run()
    print(result.summary.lines())

============================================================
"""

from .exceptions import ConfigurationError
from .models import AirdropConfig, OutputPaths, RunResult
from .pipeline import (
    AirdropPipeline,
    generate_batch_from_csv,
    run_pipeline,
    verify_batch_files,
)


__all__ = [
    # Configuration
    "AirdropConfig",
    "OutputPaths",
    "ConfigurationError",

    # Pipeline
    "AirdropPipeline",
    "RunResult",
    "run_pipeline",
    "generate_batch_from_csv",
    "verify_batch_files",
]
