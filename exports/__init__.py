"""
Exports Package - CSV and command batch files.
"""

from exports.tabular import (
    ELIGIBLE_VIEW_HEADER,
    FULL_VIEW_HEADER,
    INVERSE_VIEW_HEADER,
    SOURCE_VIEW_HEADER,
    ExportResult,
    format_csv,
    read_batch,
    read_eligible_view,
    write_batch,
    write_eligible_view,
    write_full_view,
    write_inverse_view,
    write_source_view,
)


__all__ = [
    "ELIGIBLE_VIEW_HEADER",
    "FULL_VIEW_HEADER",
    "INVERSE_VIEW_HEADER",
    "SOURCE_VIEW_HEADER",
    "ExportResult",
    "format_csv",
    "read_batch",
    "read_eligible_view",
    "write_batch",
    "write_eligible_view",
    "write_full_view",
    "write_inverse_view",
    "write_source_view",
]
