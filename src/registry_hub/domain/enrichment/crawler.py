"""
Enrichment crawler: a bounded asyncio worker pool over a task queue.

Each worker owns one task at a time and drives it through the state machine:

- ``Queued -> Fetching``: jittered politeness delay, then a slot from the
  shared rate limiter, then the portal fetch
- ``Fetching -> Extracting``: page loaded
- ``Extracting -> NoData``: page text carries a known 'no data' phrase
- ``Extracting -> Success``: strategy returned a partial record, written
  through the result writer (which stamps the source timestamp)
- ``Extracting -> ExtractionFailed``: strategy returned nothing usable
- transient fetch failure: requeued after exponential backoff while the retry
  budget lasts, ``Failed`` afterwards
"""

import asyncio
import random
from typing import Awaitable, Callable, Iterable, Mapping, Optional

from registry_hub.domain.enrichment.models import (
    EnrichmentSource,
    EnrichmentTask,
    TaskState,
    TransientFetchError,
)
from registry_hub.domain.enrichment.observability import CrawlObserver, CrawlStats
from registry_hub.domain.enrichment.rate_limiter import SlidingWindowRateLimiter
from registry_hub.domain.protocols import (
    EnrichmentResultWriter,
    ExtractionStrategy,
    PageFetcher,
    StoreWriteError,
)
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)


class EnrichmentCrawler:
    def __init__(
        self,
        fetcher: PageFetcher,
        strategies: Mapping[EnrichmentSource, ExtractionStrategy],
        writer: EnrichmentResultWriter,
        rate_limiter: SlidingWindowRateLimiter,
        max_concurrency: int = 1,
        max_retries: int = 3,
        jitter_seconds: tuple = (2.0, 4.0),
        backoff_base_seconds: float = 2.0,
        task_timeout_seconds: float = 60.0,
        observer: Optional[CrawlObserver] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.fetcher = fetcher
        self.strategies = strategies
        self.writer = writer
        self.rate_limiter = rate_limiter
        self.max_concurrency = max_concurrency
        self.max_retries = max_retries
        self.jitter_seconds = jitter_seconds
        self.backoff_base_seconds = backoff_base_seconds
        self.task_timeout_seconds = task_timeout_seconds
        self.observer = observer or CrawlObserver()
        self._sleep = sleep
        self._rng = rng or random.Random()

    async def run(self, tasks: Iterable[EnrichmentTask]) -> CrawlStats:
        stats = CrawlStats()
        queue: asyncio.Queue = asyncio.Queue()
        for task in tasks:
            if task.source not in self.strategies:
                raise ValueError(f"No extraction strategy for source {task.source}")
            queue.put_nowait(task)
            stats.total += 1

        if stats.total == 0:
            return stats

        logger.info(
            "enrichment.crawl_started",
            tasks=stats.total,
            max_concurrency=self.max_concurrency,
            max_retries=self.max_retries,
        )
        workers = [
            asyncio.create_task(self._worker(queue, stats))
            for _ in range(min(self.max_concurrency, stats.total))
        ]
        try:
            await queue.join()
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

        logger.info("enrichment.crawl_completed", **stats.to_dict())
        return stats

    async def _worker(self, queue: asyncio.Queue, stats: CrawlStats) -> None:
        while True:
            task: EnrichmentTask = await queue.get()
            try:
                requeue = await self._process(task)
                if requeue:
                    stats.retries += 1
                    queue.put_nowait(task)
                else:
                    stats.record(task)
                    self.observer.on_task_finished(task)
            except Exception as e:
                # Unexpected failure: retire the task so the queue still drains
                logger.exception(
                    "enrichment.worker_error",
                    enterprise_number=task.enterprise_number,
                    source=task.source.value,
                )
                task.state = TaskState.FAILED
                task.error = f"{type(e).__name__}: {e}"
                stats.record(task)
                self.observer.on_task_finished(task)
            finally:
                queue.task_done()

    async def _process(self, task: EnrichmentTask) -> bool:
        """Advance ``task`` to a terminal state; True when it must be requeued."""
        task.transition(TaskState.FETCHING)
        await self._sleep(self._rng.uniform(*self.jitter_seconds))
        await self.rate_limiter.acquire()

        try:
            page = await asyncio.wait_for(
                self.fetcher.fetch(task), timeout=self.task_timeout_seconds
            )
        except asyncio.TimeoutError:
            return await self._handle_transient(
                task, f"Fetch exceeded {self.task_timeout_seconds}s"
            )
        except TransientFetchError as e:
            return await self._handle_transient(task, str(e))

        task.transition(TaskState.EXTRACTING)
        strategy = self.strategies[task.source]

        if strategy.detect_no_data(page.text):
            task.transition(TaskState.NO_DATA)
            return False

        result = strategy.extract(task.enterprise_number, page)
        if result is None:
            task.snapshot = page.snapshot()
            task.transition(TaskState.EXTRACTION_FAILED)
            return False

        try:
            matched = await asyncio.to_thread(
                self.writer.write, task.enterprise_number, task.source, result
            )
        except StoreWriteError as e:
            task.error = str(e)
            task.transition(TaskState.FAILED)
            return False

        if not matched:
            task.error = "Enterprise number not present in the record store"
            task.transition(TaskState.FAILED)
            return False

        task.transition(TaskState.SUCCESS)
        return False

    async def _handle_transient(self, task: EnrichmentTask, error: str) -> bool:
        if task.retry_count >= self.max_retries:
            task.error = error
            task.transition(TaskState.FAILED)
            return False

        delay = (
            self.backoff_base_seconds
            * (2**task.retry_count)
            * (0.8 + 0.4 * self._rng.random())
        )
        task.requeue(error)
        self.observer.on_task_requeued(task, delay)
        await self._sleep(delay)
        return True
