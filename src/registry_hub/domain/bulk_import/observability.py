"""
Import statistics and progress callbacks.

The joiner and activity stream only mutate ``ImportStats`` and call an
``ImportObserver`` at pass and batch boundaries; all logging lives in
``LoggingImportObserver``.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from registry_hub.domain.protocols import WriteOutcome
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PassStats:
    rows_read: int = 0
    rows_accepted: int = 0
    rows_filtered: int = 0
    unknown_keys: int = 0


@dataclass
class ImportStats:
    """Counters accumulated over one import run."""

    passes: Dict[str, PassStats] = field(default_factory=dict)
    invalid_keys: int = 0
    checksum_mismatches: int = 0
    records_built: int = 0
    imported: int = 0
    skipped_no_name: int = 0
    contacts: int = 0
    branches: int = 0
    activity_rows: int = 0
    activity_codes: int = 0
    activity_keys_updated: int = 0
    main_codes: int = 0
    failed_batches: List[Dict[str, Any]] = field(default_factory=list)

    def for_pass(self, name: str) -> PassStats:
        return self.passes.setdefault(name, PassStats())

    def record_failure(self, stage: str, outcome: WriteOutcome) -> None:
        self.failed_batches.append(
            {
                "stage": stage,
                "batch_index": outcome.batch_index,
                "attempted": outcome.attempted,
                "error": outcome.error,
            }
        )

    @property
    def has_failures(self) -> bool:
        return bool(self.failed_batches)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class ImportObserver:
    """No-op progress callbacks; subclass to observe an import run."""

    def on_pass_started(self, pass_name: str) -> None:
        pass

    def on_pass_completed(self, pass_name: str, stats: PassStats) -> None:
        pass

    def on_chunk_flushed(
        self, outcome: WriteOutcome, chunk_number: int, total_chunks: int
    ) -> None:
        pass

    def on_activity_flushed(self, outcome: WriteOutcome, rows_read: int) -> None:
        pass


class LoggingImportObserver(ImportObserver):
    """Logs pass completion and upsert progress every ``every_chunks`` chunks."""

    def __init__(self, every_chunks: int = 10):
        self.every_chunks = every_chunks
        self._imported = 0

    def on_pass_started(self, pass_name: str) -> None:
        logger.info("bulk_import.pass_started", pass_name=pass_name)

    def on_pass_completed(self, pass_name: str, stats: PassStats) -> None:
        logger.info("bulk_import.pass_completed", pass_name=pass_name, **asdict(stats))

    def on_chunk_flushed(
        self, outcome: WriteOutcome, chunk_number: int, total_chunks: int
    ) -> None:
        self._imported += outcome.written
        if outcome.failed:
            logger.error(
                "bulk_import.chunk_failed",
                batch_index=outcome.batch_index,
                attempted=outcome.attempted,
                error=outcome.error,
            )
        if chunk_number % self.every_chunks == 0 or chunk_number == total_chunks:
            pct = round(chunk_number / total_chunks * 100, 1) if total_chunks else 100.0
            logger.info(
                "bulk_import.upsert_progress",
                chunk=chunk_number,
                total_chunks=total_chunks,
                pct=pct,
                imported=self._imported,
            )

    def on_activity_flushed(self, outcome: WriteOutcome, rows_read: int) -> None:
        if outcome.failed:
            logger.error(
                "bulk_import.activity_batch_failed",
                batch_index=outcome.batch_index,
                attempted=outcome.attempted,
                error=outcome.error,
            )
        elif outcome.batch_index % self.every_chunks == 0:
            logger.info(
                "bulk_import.activity_progress",
                batch_index=outcome.batch_index,
                rows_read=rows_read,
                updated=outcome.written,
            )
