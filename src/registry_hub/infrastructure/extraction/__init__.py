"""Per-source extraction strategies for fetched portal pages."""

from typing import Dict

from registry_hub.config.portal_schema import PortalsConfig
from registry_hub.domain.enrichment.models import EnrichmentSource
from registry_hub.infrastructure.extraction.base import BaseExtractionStrategy
from registry_hub.infrastructure.extraction.financial import FinancialFilingExtractor
from registry_hub.infrastructure.extraction.registry_detail import (
    RegistryDetailExtractor,
)


def build_strategies(
    portals: PortalsConfig,
) -> Dict[EnrichmentSource, BaseExtractionStrategy]:
    """One strategy per source, wired with that portal's 'no data' phrases."""
    return {
        EnrichmentSource.FINANCIAL: FinancialFilingExtractor(
            portals.for_source(EnrichmentSource.FINANCIAL.value).no_data_phrases
        ),
        EnrichmentSource.REGISTRY: RegistryDetailExtractor(
            portals.for_source(EnrichmentSource.REGISTRY.value).no_data_phrases
        ),
    }


__all__ = [
    "BaseExtractionStrategy",
    "FinancialFilingExtractor",
    "RegistryDetailExtractor",
    "build_strategies",
]
