"""
Base class for per-source extraction strategies.

Strategies turn a fetched portal page into a partial record. Markup drift is
contained here: ``extract`` returns None when nothing usable is found and
never raises on missing fields.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional, Sequence

from pydantic import BaseModel

from registry_hub.domain.enrichment.models import EnrichmentSource, FetchedPage
from registry_hub.infrastructure.extraction.no_data import find_no_data_phrase


class BaseExtractionStrategy(ABC):
    source: EnrichmentSource

    def __init__(self, no_data_phrases: Optional[Mapping[str, Sequence[str]]] = None):
        self.no_data_phrases: Dict[str, List[str]] = {
            locale: list(phrases) for locale, phrases in (no_data_phrases or {}).items()
        }

    def detect_no_data(self, text: str) -> Optional[str]:
        return find_no_data_phrase(text, self.no_data_phrases)

    @abstractmethod
    def extract(self, enterprise_number: str, page: FetchedPage) -> Optional[BaseModel]:
        ...
