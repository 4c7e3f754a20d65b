"""
Batch upsert writer for the bulk import.

Chunks of finalized rows go to the store as a single upsert each. Activity
batches fan out into per-key updates on a bounded thread pool; every update
of a batch is awaited before the call returns, so no write is left in flight
across batch boundaries. Failures never raise out of the writer: they are
returned on the ``WriteOutcome`` and the import carries on with the next
batch.
"""

from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Dict, List, Mapping, Sequence

from registry_hub.domain.bulk_import.activity_stream import ActivityAccumulator
from registry_hub.domain.protocols import CompanyStore, StoreWriteError, WriteOutcome
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)

MAX_REPORTED_ERRORS = 5


class BatchUpsertWriter:
    def __init__(self, store: CompanyStore, concurrency: int = 100):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.store = store
        self.concurrency = concurrency
        self._executor = ThreadPoolExecutor(
            max_workers=concurrency, thread_name_prefix="registry-writer"
        )

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> "BatchUpsertWriter":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def write_chunk(
        self, batch_index: int, rows: Sequence[Dict[str, Any]]
    ) -> WriteOutcome:
        outcome = WriteOutcome(batch_index=batch_index, attempted=len(rows))
        try:
            outcome.written = self.store.upsert_companies(rows)
        except StoreWriteError as e:
            logger.error(
                "batch_writer.chunk_failed",
                batch_index=batch_index,
                rows=len(rows),
                error=str(e),
            )
            outcome.error = str(e)
        return outcome

    def write_activity_batch(
        self, batch_index: int, batch: Mapping[str, ActivityAccumulator]
    ) -> WriteOutcome:
        outcome = WriteOutcome(batch_index=batch_index, attempted=len(batch))
        errors: List[str] = []
        futures = {
            self._executor.submit(
                self.store.update_activity_codes, key, acc.codes, acc.main
            ): (key, acc)
            for key, acc in batch.items()
        }
        done, _ = wait(futures)

        for future in done:
            key, acc = futures[future]
            try:
                matched = future.result()
            except (StoreWriteError, ValueError) as e:
                errors.append(f"{key}: {e}")
                continue
            if matched:
                outcome.written += 1
                if acc.main is not None:
                    outcome.main_codes += 1

        if errors:
            outcome.error = (
                f"{len(errors)} of {len(batch)} activity updates failed: "
                + "; ".join(errors[:MAX_REPORTED_ERRORS])
            )
            logger.error(
                "batch_writer.activity_batch_failed",
                batch_index=batch_index,
                failed=len(errors),
                attempted=len(batch),
            )
        return outcome
