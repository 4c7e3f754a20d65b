"""
SQLAlchemy Core definition of the consolidated ``companies`` table.

Composite attributes are JSONB documents; activity codes are a ``TEXT[]``.
Import-owned columns are replaced on every bulk import, enrichment-owned
columns are only touched by the enrichment writer.
"""

from functools import lru_cache

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

from registry_hub.domain.enrichment.models import EnrichmentSource

IMPORT_COLUMNS = (
    "name",
    "slug",
    "names",
    "legal_form",
    "legal_form_code",
    "status",
    "juridical_situation",
    "start_date",
    "address",
    "contact",
    "establishment_count",
    "nace_codes",
    "nace_main",
)

FINANCIAL_STAMP = EnrichmentSource.FINANCIAL.stamp_column
REGISTRY_STAMP = EnrichmentSource.REGISTRY.stamp_column

ENRICHMENT_COLUMNS = (
    "financial_summary",
    "functions",
    "capital",
    "fiscal_year_end",
    "annual_meeting_month",
    "juridical_situation_date",
    "entity_links",
    "qualifications",
    "nace_history",
    "exceptional_fiscal_periods",
)

STAMP_COLUMNS = (FINANCIAL_STAMP, REGISTRY_STAMP)


@lru_cache(maxsize=None)
def companies_table(schema: str = "public", name: str = "companies") -> Table:
    metadata = MetaData(schema=schema or None)
    return Table(
        name,
        metadata,
        Column("enterprise_number", String(10), primary_key=True),
        Column("name", Text, nullable=False),
        Column("slug", Text, nullable=False),
        Column("names", JSONB),
        Column("legal_form", Text),
        Column("legal_form_code", String(3)),
        Column("status", String(16), nullable=False, server_default="active"),
        Column(
            "juridical_situation", String(40), nullable=False, server_default="other"
        ),
        Column("start_date", Date),
        Column("address", JSONB),
        Column("contact", JSONB),
        Column(
            "nace_codes",
            ARRAY(Text),
            nullable=False,
            server_default=text("'{}'::text[]"),
        ),
        Column("nace_main", Text),
        Column("establishment_count", Integer, nullable=False, server_default="0"),
        Column("financial_summary", JSONB),
        Column(FINANCIAL_STAMP, DateTime(timezone=True)),
        Column("functions", JSONB),
        Column("capital", Numeric(18, 2)),
        Column("fiscal_year_end", Text),
        Column("annual_meeting_month", Text),
        Column("juridical_situation_date", Date),
        Column("entity_links", JSONB),
        Column("qualifications", JSONB),
        Column("nace_history", JSONB),
        Column("exceptional_fiscal_periods", JSONB),
        Column(REGISTRY_STAMP, DateTime(timezone=True)),
        Column(
            "created_at", DateTime(timezone=True), nullable=False, server_default=func.now()
        ),
        Column(
            "updated_at", DateTime(timezone=True), nullable=False, server_default=func.now()
        ),
    )
