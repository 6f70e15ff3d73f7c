"""Import reconciliation and export of dashboard data."""

from flame.transfer.exporter import ExportArtifact, ExportService
from flame.transfer.importer import ImportService
from flame.transfer.records import EntityKind, ImportOptions, ImportResult, TransferFormat

__all__ = [
    "EntityKind",
    "ExportArtifact",
    "ExportService",
    "ImportOptions",
    "ImportResult",
    "ImportService",
    "TransferFormat",
]
