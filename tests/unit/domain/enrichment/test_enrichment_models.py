"""Unit tests for the enrichment task state machine."""

import pytest

from registry_hub.domain.enrichment.models import (
    EnrichmentSource,
    EnrichmentTask,
    FetchedPage,
    InvalidTransitionError,
    TaskState,
)


@pytest.mark.unit
class TestEnrichmentTask:
    def test_happy_path(self):
        task = EnrichmentTask("0417497106", EnrichmentSource.FINANCIAL)
        task.transition(TaskState.FETCHING)
        task.transition(TaskState.EXTRACTING)
        task.transition(TaskState.SUCCESS)
        assert task.is_terminal
        assert task.state is TaskState.SUCCESS

    def test_requeue_increments_retry_count(self):
        task = EnrichmentTask("0417497106", EnrichmentSource.REGISTRY)
        task.transition(TaskState.FETCHING)
        task.requeue("timeout")
        assert task.state is TaskState.QUEUED
        assert task.retry_count == 1
        assert task.error == "timeout"

    @pytest.mark.parametrize(
        "path",
        [
            [TaskState.EXTRACTING],
            [TaskState.FETCHING, TaskState.SUCCESS],
            [TaskState.FETCHING, TaskState.EXTRACTING, TaskState.NO_DATA, TaskState.QUEUED],
        ],
    )
    def test_illegal_transitions(self, path):
        task = EnrichmentTask("0417497106", EnrichmentSource.FINANCIAL)
        with pytest.raises(InvalidTransitionError):
            for state in path:
                task.transition(state)

    def test_stamp_columns(self):
        assert EnrichmentSource.FINANCIAL.stamp_column == "last_financial_enriched_at"
        assert EnrichmentSource.REGISTRY.stamp_column == "last_registry_enriched_at"


@pytest.mark.unit
def test_page_snapshot_is_truncated():
    page = FetchedPage(url="https://example.test", text="x" * 5000)
    assert len(page.snapshot()) == 1000
