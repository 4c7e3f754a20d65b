"""Bulk import of KBO open-data extracts into the record store."""

from registry_hub.domain.bulk_import.activity_stream import (
    ActivityAccumulator,
    ActivityStream,
)
from registry_hub.domain.bulk_import.builder import BuilderRecord
from registry_hub.domain.bulk_import.joiner import MultiPassJoiner
from registry_hub.domain.bulk_import.observability import (
    ImportObserver,
    ImportStats,
    LoggingImportObserver,
)
from registry_hub.domain.bulk_import.service import (
    BulkImportService,
    ImportResult,
    ImportSources,
)

__all__ = [
    "ActivityAccumulator",
    "ActivityStream",
    "BuilderRecord",
    "BulkImportService",
    "ImportObserver",
    "ImportResult",
    "ImportSources",
    "ImportStats",
    "LoggingImportObserver",
    "MultiPassJoiner",
]
