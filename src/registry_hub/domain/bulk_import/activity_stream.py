"""
Streaming pass over the activity extract (activity.csv).

The activity file is by far the largest input, so it is never joined against
the in-memory entity index. Codes are accumulated into a batch keyed by
enterprise number; once the batch holds ``batch_size`` keys it is handed to
the flush callback and cleared. A key may therefore appear in several batches;
the store-side update unions codes and only sets the main code while unset.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, Optional

from registry_hub.domain.bulk_import.observability import ImportObserver, ImportStats
from registry_hub.domain.protocols import WriteOutcome
from registry_hub.domain.registry import mappings
from registry_hub.domain.registry.enterprise_number import (
    ChecksumMismatchError,
    InvalidKeyFormatError,
    validate_enterprise_number,
)

PASS_ACTIVITIES = "activities"

ACTIVITY_COLUMNS = [
    "EntityNumber",
    "ActivityGroup",
    "NaceVersion",
    "NaceCode",
    "Classification",
]

FlushCallback = Callable[[int, Dict[str, "ActivityAccumulator"]], WriteOutcome]


@dataclass
class ActivityAccumulator:
    codes: List[str] = field(default_factory=list)
    main: Optional[str] = None

    def add(self, code: str, is_main: bool) -> bool:
        added = False
        if code not in self.codes:
            self.codes.append(code)
            added = True
        if is_main and self.main is None:
            self.main = code
        return added


class ActivityStream:
    """Batches activity rows and flushes them through ``flush``."""

    def __init__(
        self,
        batch_size: int,
        flush: FlushCallback,
        observer: Optional[ImportObserver] = None,
        stats: Optional[ImportStats] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.batch_size = batch_size
        self.flush = flush
        self.observer = observer or ImportObserver()
        self.stats = stats or ImportStats()
        self._batch: Dict[str, ActivityAccumulator] = {}
        self._batches_flushed = 0

    def _flush(self, rows_read: int) -> None:
        if not self._batch:
            return
        self._batches_flushed += 1
        outcome = self.flush(self._batches_flushed, self._batch)
        self.stats.activity_keys_updated += outcome.written
        self.stats.main_codes += outcome.main_codes
        if outcome.failed:
            self.stats.record_failure(PASS_ACTIVITIES, outcome)
        self.observer.on_activity_flushed(outcome, rows_read)
        self._batch = {}

    def consume(self, rows: Iterable[Mapping[str, str]]) -> None:
        pass_stats = self.stats.for_pass(PASS_ACTIVITIES)
        self.observer.on_pass_started(PASS_ACTIVITIES)

        for row in rows:
            pass_stats.rows_read += 1
            self.stats.activity_rows += 1

            version = (row.get("NaceVersion") or "").strip()
            code = (row.get("NaceCode") or "").strip()
            if version not in mappings.ACCEPTED_NACE_VERSIONS or not code:
                pass_stats.rows_filtered += 1
                continue
            try:
                key = validate_enterprise_number(row.get("EntityNumber") or "")
            except ChecksumMismatchError:
                self.stats.checksum_mismatches += 1
                pass_stats.unknown_keys += 1
                continue
            except InvalidKeyFormatError:
                self.stats.invalid_keys += 1
                pass_stats.unknown_keys += 1
                continue

            is_main = (
                (row.get("Classification") or "").strip()
                == mappings.MAIN_CLASSIFICATION
            )
            accumulator = self._batch.setdefault(key, ActivityAccumulator())
            if accumulator.add(code, is_main):
                pass_stats.rows_accepted += 1
                self.stats.activity_codes += 1

            if len(self._batch) >= self.batch_size:
                self._flush(pass_stats.rows_read)

        self._flush(pass_stats.rows_read)
        self.observer.on_pass_completed(PASS_ACTIVITIES, pass_stats)
