"""Unit tests for the enrichment crawler state machine and worker pool."""

import random
from unittest.mock import MagicMock

import pytest

from registry_hub.domain.enrichment.crawler import EnrichmentCrawler
from registry_hub.domain.enrichment.models import (
    EnrichmentSource,
    EnrichmentTask,
    FetchedPage,
    TaskState,
    TransientFetchError,
)
from registry_hub.domain.enrichment.observability import CrawlObserver
from registry_hub.domain.enrichment.rate_limiter import SlidingWindowRateLimiter
from registry_hub.infrastructure.extraction import (
    FinancialFilingExtractor,
    RegistryDetailExtractor,
)
from registry_hub.io.loader.enrichment_writer import EnrichmentWriter

ACME = "0417497106"
RAIL = "0203201340"

FILING_TEXT = "Jaarrekening\nYear-end date: 31/12/2023\nNeerlegging"
FILING_CSV = '"70","1.200,00"\n"9904","100,00"\n"10/15","5000"\n"9087","3,4"\n'


class ScriptedFetcher:
    """Returns or raises the next scripted response for each enterprise number."""

    def __init__(self, script):
        self.script = {key: list(responses) for key, responses in script.items()}
        self.calls = []

    async def fetch(self, task):
        self.calls.append(task.enterprise_number)
        response = self.script[task.enterprise_number].pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def filing_page():
    return FetchedPage(url="https://nbb.test", text=FILING_TEXT, exports={"csv": FILING_CSV})


@pytest.fixture
def store(in_memory_store):
    in_memory_store.rows = {ACME: {"enterprise_number": ACME}, RAIL: {"enterprise_number": RAIL}}
    return in_memory_store


def make_crawler(fetcher, store, sleep, **kwargs):
    strategies = {
        EnrichmentSource.FINANCIAL: FinancialFilingExtractor(
            {"nl": ["geen jaarrekeningen"], "fr": ["aucun compte annuel"]}
        ),
        EnrichmentSource.REGISTRY: RegistryDetailExtractor({"en": ["no results"]}),
    }
    return EnrichmentCrawler(
        fetcher=fetcher,
        strategies=strategies,
        writer=EnrichmentWriter(store),
        rate_limiter=SlidingWindowRateLimiter(100, sleep=sleep),
        sleep=sleep,
        rng=random.Random(7),
        **kwargs,
    )


def task(key=ACME, source=EnrichmentSource.FINANCIAL):
    return EnrichmentTask(key, source)


@pytest.mark.unit
class TestEnrichmentCrawler:
    @pytest.mark.asyncio
    async def test_success_writes_result_and_stamps(self, store):
        sleep = RecordingSleep()
        crawler = make_crawler(ScriptedFetcher({ACME: [filing_page()]}), store, sleep)
        t = task()

        stats = await crawler.run([t])

        assert t.state is TaskState.SUCCESS
        assert stats.count(TaskState.SUCCESS) == 1
        summary = store.rows[ACME]["financial_summary"]
        assert summary["year"] == 2023
        assert summary["turnover"] == 1200.0
        assert summary["employees"] == 3
        assert summary["net_margin"] == 8.33
        assert store.rows[ACME][EnrichmentSource.FINANCIAL.stamp_column] is not None
        # one politeness delay inside the configured jitter window
        assert len(sleep.delays) == 1 and 2.0 <= sleep.delays[0] <= 4.0

    @pytest.mark.asyncio
    async def test_no_data_phrase_in_any_locale(self, store):
        page = FetchedPage(url="https://nbb.test", text="Aucun  compte annuel disponible")
        crawler = make_crawler(ScriptedFetcher({ACME: [page]}), store, RecordingSleep())
        t = task()

        await crawler.run([t])

        assert t.state is TaskState.NO_DATA
        assert "financial_summary" not in store.rows[ACME]

    @pytest.mark.asyncio
    async def test_nothing_extracted_keeps_snapshot(self, store):
        page = FetchedPage(url="https://nbb.test", text="Unexpected layout " * 200)
        crawler = make_crawler(ScriptedFetcher({ACME: [page]}), store, RecordingSleep())
        t = task()

        stats = await crawler.run([t])

        assert t.state is TaskState.EXTRACTION_FAILED
        assert t.snapshot == page.text[:1000]
        assert [o.state for o in stats.problem_outcomes()] == ["extraction_failed"]

    @pytest.mark.asyncio
    async def test_transient_errors_exhaust_retry_budget(self, store):
        errors = [TransientFetchError("timeout", url="https://nbb.test") for _ in range(4)]
        fetcher = ScriptedFetcher({ACME: errors})
        sleep = RecordingSleep()
        crawler = make_crawler(fetcher, store, sleep, max_retries=3, backoff_base_seconds=2.0)
        t = task()

        stats = await crawler.run([t])

        assert t.state is TaskState.FAILED
        assert t.retry_count == 3
        assert len(fetcher.calls) == 4
        assert stats.retries == 3
        # four politeness delays plus three backoffs, the last one 2 * 2**2 * jitter
        assert len(sleep.delays) == 7
        assert 6.4 <= max(sleep.delays) <= 9.6

    @pytest.mark.asyncio
    async def test_retry_then_success(self, store):
        fetcher = ScriptedFetcher({ACME: [TransientFetchError("reset"), filing_page()]})
        crawler = make_crawler(fetcher, store, RecordingSleep())
        t = task()

        await crawler.run([t])

        assert t.state is TaskState.SUCCESS
        assert t.retry_count == 1

    @pytest.mark.asyncio
    async def test_unknown_key_fails_without_retry(self, store):
        del store.rows[ACME]
        crawler = make_crawler(ScriptedFetcher({ACME: [filing_page()]}), store, RecordingSleep())
        t = task()

        await crawler.run([t])

        assert t.state is TaskState.FAILED
        assert t.retry_count == 0

    @pytest.mark.asyncio
    async def test_every_task_reaches_a_terminal_state(self, store):
        fetcher = ScriptedFetcher(
            {
                ACME: [filing_page()],
                RAIL: [FetchedPage(url="https://kbo.test", text="No results found")],
            }
        )
        crawler = make_crawler(fetcher, store, RecordingSleep(), max_concurrency=2)
        tasks = [task(ACME), task(RAIL, EnrichmentSource.REGISTRY)]

        stats = await crawler.run(tasks)

        assert all(t.is_terminal for t in tasks)
        assert stats.total == 2
        assert stats.to_dict()["success"] == 1
        assert stats.to_dict()["no_data"] == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_retires_task(self, store):
        fetcher = ScriptedFetcher({ACME: [RuntimeError("browser crashed")]})
        crawler = make_crawler(fetcher, store, RecordingSleep())
        t = task()

        stats = await crawler.run([t])

        assert t.state is TaskState.FAILED
        assert "browser crashed" in t.error
        assert stats.count(TaskState.FAILED) == 1

    @pytest.mark.asyncio
    async def test_unexpected_error_reaches_the_observer(self, store):
        observer = MagicMock(spec=CrawlObserver)
        fetcher = ScriptedFetcher({ACME: [KeyError("page")]})
        crawler = make_crawler(fetcher, store, RecordingSleep(), observer=observer)
        t = task()

        await crawler.run([t])

        observer.on_task_finished.assert_called_once_with(t)
        assert t.state is TaskState.FAILED

    @pytest.mark.asyncio
    async def test_empty_task_list(self, store):
        crawler = make_crawler(ScriptedFetcher({}), store, RecordingSleep())
        stats = await crawler.run([])
        assert stats.total == 0

    def test_rejects_zero_concurrency(self, store):
        with pytest.raises(ValueError):
            make_crawler(ScriptedFetcher({}), store, RecordingSleep(), max_concurrency=0)
