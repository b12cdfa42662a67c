"""
Command Batch Package - generate and verify ``starkli invoke`` batches.

Usage:
    from command_batch import BatchSchema, CommandBatchGenerator, CommandBatchVerifier

    schema = BatchSchema(target_address=contract)
    text = CommandBatchGenerator(schema).generate_from_records(views.eligible)

    verifier = CommandBatchVerifier(schema)
    report = verifier.verify(
        verifier.parse(text),
        CommandBatchGenerator(schema).entries_from_records(views.eligible),
    )
    assert report.is_clean
"""

from command_batch.exceptions import CommandBatchError
from command_batch.generator import CommandBatchGenerator
from command_batch.models import AmountMismatch, InvokeEntry, VerificationReport
from command_batch.schema import DEFAULT_TARGET_ADDRESS, BatchSchema
from command_batch.verifier import CommandBatchVerifier


__all__ = [
    "AmountMismatch",
    "BatchSchema",
    "CommandBatchError",
    "CommandBatchGenerator",
    "CommandBatchVerifier",
    "DEFAULT_TARGET_ADDRESS",
    "InvokeEntry",
    "VerificationReport",
]
