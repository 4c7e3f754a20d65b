from registry_hub.io.loader.batch_writer import BatchUpsertWriter
from registry_hub.io.loader.company_store import (
    PostgresCompanyStore,
    create_store_engine,
)
from registry_hub.io.loader.enrichment_writer import EnrichmentWriter
from registry_hub.io.loader.tables import companies_table

__all__ = [
    "BatchUpsertWriter",
    "EnrichmentWriter",
    "PostgresCompanyStore",
    "companies_table",
    "create_store_engine",
]
