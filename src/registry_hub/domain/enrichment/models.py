"""
Enrichment task model and its state machine.

``Queued -> Fetching -> Extracting -> {Success, NoData, ExtractionFailed,
Failed}``. A transient fetch failure sends the task back to ``Queued`` with
an incremented retry count until the retry budget is spent, then ``Failed``.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, FrozenSet, List, Optional

SNAPSHOT_LENGTH = 1000


class EnrichmentSource(str, Enum):
    FINANCIAL = "financial"
    REGISTRY = "registry"

    @property
    def stamp_column(self) -> str:
        return _STAMP_COLUMNS[self]


_STAMP_COLUMNS = {
    EnrichmentSource.FINANCIAL: "last_financial_enriched_at",
    EnrichmentSource.REGISTRY: "last_registry_enriched_at",
}


class TaskState(str, Enum):
    QUEUED = "queued"
    FETCHING = "fetching"
    EXTRACTING = "extracting"
    SUCCESS = "success"
    NO_DATA = "no_data"
    EXTRACTION_FAILED = "extraction_failed"
    FAILED = "failed"


TERMINAL_STATES: FrozenSet[TaskState] = frozenset(
    {
        TaskState.SUCCESS,
        TaskState.NO_DATA,
        TaskState.EXTRACTION_FAILED,
        TaskState.FAILED,
    }
)

_TRANSITIONS: Dict[TaskState, FrozenSet[TaskState]] = {
    TaskState.QUEUED: frozenset({TaskState.FETCHING}),
    TaskState.FETCHING: frozenset(
        {TaskState.EXTRACTING, TaskState.QUEUED, TaskState.FAILED}
    ),
    TaskState.EXTRACTING: frozenset(
        {
            TaskState.SUCCESS,
            TaskState.NO_DATA,
            TaskState.EXTRACTION_FAILED,
            TaskState.QUEUED,
            TaskState.FAILED,
        }
    ),
}


class InvalidTransitionError(RuntimeError):
    pass


class TransientFetchError(Exception):
    """Navigation or network failure worth retrying."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


@dataclass
class FetchedPage:
    """Rendered portal page handed to an extraction strategy."""

    url: str
    text: str
    tables: List[List[List[str]]] = field(default_factory=list)
    exports: Dict[str, str] = field(default_factory=dict)

    def snapshot(self) -> str:
        return self.text[:SNAPSHOT_LENGTH]


@dataclass
class EnrichmentTask:
    enterprise_number: str
    source: EnrichmentSource
    retry_count: int = 0
    state: TaskState = TaskState.QUEUED
    error: Optional[str] = None
    snapshot: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, new_state: TaskState) -> None:
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed:
            raise InvalidTransitionError(
                f"{self.enterprise_number}/{self.source.value}: "
                f"{self.state.value} -> {new_state.value} is not allowed"
            )
        self.state = new_state

    def requeue(self, error: str) -> None:
        self.transition(TaskState.QUEUED)
        self.retry_count += 1
        self.error = error
