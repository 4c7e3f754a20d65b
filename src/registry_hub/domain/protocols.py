"""
Protocol definitions for the record store, import writers and the
enrichment collaborators (page fetcher, extraction strategy, result writer).

Domain services depend on these protocols only; ``io`` and
``infrastructure`` provide the implementations and the tests provide fakes.
"""

from dataclasses import dataclass
from typing import (
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    runtime_checkable,
)

from pydantic import BaseModel

from registry_hub.domain.enrichment.models import (
    EnrichmentSource,
    EnrichmentTask,
    FetchedPage,
)


class StoreWriteError(Exception):
    """Raised when a write against the record store fails."""

    def __init__(self, message: str, enterprise_number: Optional[str] = None):
        super().__init__(message)
        self.enterprise_number = enterprise_number


@dataclass
class WriteOutcome:
    """Result of writing one chunk or activity batch to the store."""

    batch_index: int
    attempted: int
    written: int = 0
    main_codes: int = 0
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@runtime_checkable
class CompanyStore(Protocol):
    """Write contract and staleness query of the record store."""

    def upsert_companies(self, rows: Sequence[Dict[str, Any]]) -> int:
        """Insert or fully replace import-owned columns keyed by enterprise number."""
        ...

    def update_activity_codes(
        self,
        enterprise_number: str,
        codes: Sequence[str],
        main_code: Optional[str],
    ) -> bool:
        """Union ``codes`` into the stored set; set main only while unset."""
        ...

    def select_stale(
        self, stamp_column: str, older_than_days: int, limit: int
    ) -> List[str]:
        """Keys whose ``stamp_column`` is null or older than the threshold."""
        ...

    def apply_enrichment(
        self, enterprise_number: str, fields: Mapping[str, Any], stamp_column: str
    ) -> bool:
        """Set ``fields`` and stamp ``stamp_column`` with the current time."""
        ...


@runtime_checkable
class ImportWriter(Protocol):
    """Chunked writer used by the bulk import passes 6 and 7."""

    def write_chunk(
        self, batch_index: int, rows: Sequence[Dict[str, Any]]
    ) -> WriteOutcome: ...

    def write_activity_batch(
        self, batch_index: int, batch: Mapping[str, Any]
    ) -> WriteOutcome: ...


class PageFetcher(Protocol):
    async def fetch(self, task: EnrichmentTask) -> FetchedPage:
        """Load the portal page for ``task``; raise TransientFetchError on failure."""
        ...


class ExtractionStrategy(Protocol):
    source: EnrichmentSource

    def detect_no_data(self, text: str) -> Optional[str]:
        """Return the matched 'no data' phrase, if any."""
        ...

    def extract(self, enterprise_number: str, page: FetchedPage) -> Optional[BaseModel]:
        """Return a partial record, or None when nothing usable was found."""
        ...


class EnrichmentResultWriter(Protocol):
    def write(
        self, enterprise_number: str, source: EnrichmentSource, result: BaseModel
    ) -> bool:
        """Merge ``result`` and stamp the source timestamp; False if key unknown."""
        ...
