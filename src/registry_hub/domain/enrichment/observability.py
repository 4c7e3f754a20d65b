"""
Crawl statistics and per-task outcome reporting.

``CrawlStats`` aggregates terminal states over a run; ``CrawlObserver``
receives every finished task and is the only place that logs outcomes.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from registry_hub.domain.enrichment.models import EnrichmentTask, TaskState
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class TaskOutcome:
    enterprise_number: str
    source: str
    state: str
    retry_count: int
    error: Optional[str] = None
    snapshot: Optional[str] = None

    @classmethod
    def from_task(cls, task: EnrichmentTask) -> "TaskOutcome":
        return cls(
            enterprise_number=task.enterprise_number,
            source=task.source.value,
            state=task.state.value,
            retry_count=task.retry_count,
            error=task.error,
            snapshot=task.snapshot,
        )

    @staticmethod
    def csv_headers() -> List[str]:
        return [
            "enterprise_number",
            "source",
            "state",
            "retry_count",
            "error",
            "snapshot",
        ]

    def to_csv_row(self) -> List[str]:
        return [
            self.enterprise_number,
            self.source,
            self.state,
            str(self.retry_count),
            self.error or "",
            (self.snapshot or "").replace("\n", " "),
        ]


@dataclass
class CrawlStats:
    total: int = 0
    retries: int = 0
    states: Counter = field(default_factory=Counter)
    outcomes: List[TaskOutcome] = field(default_factory=list)

    def record(self, task: EnrichmentTask) -> None:
        self.states[task.state.value] += 1
        self.outcomes.append(TaskOutcome.from_task(task))

    def count(self, state: TaskState) -> int:
        return self.states.get(state.value, 0)

    def problem_outcomes(self) -> List[TaskOutcome]:
        """Outcomes worth a manual look: extraction failures and failures."""
        return [
            o
            for o in self.outcomes
            if o.state in (TaskState.EXTRACTION_FAILED.value, TaskState.FAILED.value)
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "retries": self.retries,
            "success": self.count(TaskState.SUCCESS),
            "no_data": self.count(TaskState.NO_DATA),
            "extraction_failed": self.count(TaskState.EXTRACTION_FAILED),
            "failed": self.count(TaskState.FAILED),
        }


class CrawlObserver:
    """Logs task transitions of interest."""

    def on_task_requeued(self, task: EnrichmentTask, delay_seconds: float) -> None:
        logger.warning(
            "enrichment.task_requeued",
            enterprise_number=task.enterprise_number,
            source=task.source.value,
            retry_count=task.retry_count,
            delay_seconds=round(delay_seconds, 2),
            error=task.error,
        )

    def on_task_finished(self, task: EnrichmentTask) -> None:
        fields = {
            "enterprise_number": task.enterprise_number,
            "source": task.source.value,
            "state": task.state.value,
            "retry_count": task.retry_count,
        }
        if task.state == TaskState.EXTRACTION_FAILED:
            logger.warning("enrichment.extraction_failed", snapshot=task.snapshot, **fields)
        elif task.state == TaskState.FAILED:
            logger.error("enrichment.task_failed", error=task.error, **fields)
        else:
            logger.info("enrichment.task_finished", **fields)
