"""
Bulk import orchestration: runs the seven passes in order.

Passes 1-5 build the in-memory entity index, pass 6 flushes finalized records
to the store in fixed-size chunks, pass 7 streams activity codes as targeted
updates. Store writes go through an injected ``ImportWriter``; with
``dry_run`` every pass still reads and counts but nothing is written.
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional

from registry_hub.domain.bulk_import.activity_stream import (
    ACTIVITY_COLUMNS,
    ActivityAccumulator,
    ActivityStream,
)
from registry_hub.domain.bulk_import.joiner import (
    ADDRESS_COLUMNS,
    BRANCH_COLUMNS,
    CONTACT_COLUMNS,
    IDENTITY_COLUMNS,
    NAME_COLUMNS,
    MultiPassJoiner,
)
from registry_hub.domain.bulk_import.observability import ImportObserver, ImportStats
from registry_hub.domain.protocols import ImportWriter, WriteOutcome
from registry_hub.domain.registry.models import CompanyRecord
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)

PASS_UPSERT = "upsert"

RowReader = Callable[[Path, List[str]], Iterable[Dict[str, str]]]


@dataclass
class ImportSources:
    """Paths of the six extracts; contacts and establishments are optional."""

    enterprise: Path
    denomination: Path
    address: Path
    activity: Path
    contact: Optional[Path] = None
    establishment: Optional[Path] = None

    def missing(self) -> List[Path]:
        paths = [self.enterprise, self.denomination, self.address, self.activity]
        paths += [p for p in (self.contact, self.establishment) if p is not None]
        return [Path(p) for p in paths if not Path(p).is_file()]


@dataclass
class ImportResult:
    imported: int = 0
    skipped: int = 0
    nace_codes: int = 0
    contacts: int = 0
    dry_run: bool = False
    stats: ImportStats = field(default_factory=ImportStats)

    @property
    def success(self) -> bool:
        return not self.stats.has_failures

    def to_dict(self) -> Dict[str, Any]:
        return {
            "imported": self.imported,
            "skipped": self.skipped,
            "nace_codes": self.nace_codes,
            "contacts": self.contacts,
            "dry_run": self.dry_run,
            "failed_batches": len(self.stats.failed_batches),
        }


def _chunks(records: List[CompanyRecord], size: int) -> Iterator[List[CompanyRecord]]:
    for start in range(0, len(records), size):
        yield records[start : start + size]


class BulkImportService:
    """Runs one import of the registry extracts into the record store."""

    def __init__(
        self,
        read_rows: RowReader,
        writer: Optional[ImportWriter] = None,
        observer: Optional[ImportObserver] = None,
    ):
        self.read_rows = read_rows
        self.writer = writer
        self.observer = observer or ImportObserver()

    def run(
        self,
        sources: ImportSources,
        batch_size: int = 1000,
        activity_batch_size: Optional[int] = None,
        active_only: bool = True,
        dry_run: bool = False,
    ) -> ImportResult:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if not dry_run and self.writer is None:
            raise ValueError("A writer is required unless dry_run is set")

        missing = sources.missing()
        if missing:
            raise FileNotFoundError(
                "Missing import sources: " + ", ".join(str(p) for p in missing)
            )

        stats = ImportStats()
        result = ImportResult(dry_run=dry_run, stats=stats)
        logger.info(
            "bulk_import.started",
            batch_size=batch_size,
            active_only=active_only,
            dry_run=dry_run,
        )

        joiner = MultiPassJoiner(
            active_only=active_only, observer=self.observer, stats=stats
        )
        joiner.load_identities(self.read_rows(sources.enterprise, IDENTITY_COLUMNS))
        joiner.merge_names(self.read_rows(sources.denomination, NAME_COLUMNS))
        joiner.merge_addresses(self.read_rows(sources.address, ADDRESS_COLUMNS))
        if sources.contact is not None:
            joiner.merge_contacts(self.read_rows(sources.contact, CONTACT_COLUMNS))
        if sources.establishment is not None:
            joiner.count_branches(
                self.read_rows(sources.establishment, BRANCH_COLUMNS)
            )

        records = list(joiner.iter_records())
        result.contacts = stats.contacts
        joiner.release()

        result.imported = self._flush_records(records, batch_size, dry_run, stats)
        result.skipped = stats.skipped_no_name
        del records

        stream = ActivityStream(
            batch_size=activity_batch_size or batch_size,
            flush=self._activity_flush(dry_run),
            observer=self.observer,
            stats=stats,
        )
        stream.consume(self.read_rows(sources.activity, ACTIVITY_COLUMNS))
        result.nace_codes = stats.activity_keys_updated

        logger.info("bulk_import.completed", **result.to_dict())
        return result

    def _flush_records(
        self,
        records: List[CompanyRecord],
        batch_size: int,
        dry_run: bool,
        stats: ImportStats,
    ) -> int:
        pass_stats = stats.for_pass(PASS_UPSERT)
        self.observer.on_pass_started(PASS_UPSERT)
        total_chunks = math.ceil(len(records) / batch_size)
        imported = 0

        for index, chunk in enumerate(_chunks(records, batch_size), start=1):
            rows = [record.to_row() for record in chunk]
            pass_stats.rows_read += len(rows)
            if dry_run:
                outcome = WriteOutcome(
                    batch_index=index, attempted=len(rows), written=len(rows)
                )
            else:
                outcome = self.writer.write_chunk(index, rows)
                if outcome.failed:
                    stats.record_failure(PASS_UPSERT, outcome)
            imported += outcome.written
            pass_stats.rows_accepted += outcome.written
            self.observer.on_chunk_flushed(outcome, index, total_chunks)

        stats.imported = imported
        self.observer.on_pass_completed(PASS_UPSERT, pass_stats)
        return imported

    def _activity_flush(
        self, dry_run: bool
    ) -> Callable[[int, Dict[str, ActivityAccumulator]], WriteOutcome]:
        if dry_run:
            return lambda index, batch: WriteOutcome(
                batch_index=index,
                attempted=len(batch),
                written=len(batch),
                main_codes=sum(1 for acc in batch.values() if acc.main),
            )
        return self.writer.write_activity_batch
