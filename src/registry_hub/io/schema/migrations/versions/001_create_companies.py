"""Create the consolidated companies table.

Revision ID: 001_create_companies
Revises:
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import context, op
from sqlalchemy.dialects.postgresql import ARRAY, JSONB

revision = "001_create_companies"
down_revision = None
branch_labels = None
depends_on = None


def _target() -> tuple[str, str]:
    cfg = context.config
    return (
        cfg.get_main_option("registry_schema") or "public",
        cfg.get_main_option("registry_table") or "companies",
    )


def upgrade() -> None:
    schema, table = _target()
    op.execute(sa.text(f'CREATE SCHEMA IF NOT EXISTS "{schema}"'))
    op.create_table(
        table,
        sa.Column("enterprise_number", sa.String(10), primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("slug", sa.Text, nullable=False),
        sa.Column("names", JSONB),
        sa.Column("legal_form", sa.Text),
        sa.Column("legal_form_code", sa.String(3)),
        sa.Column("status", sa.String(16), nullable=False, server_default="active"),
        sa.Column(
            "juridical_situation", sa.String(40), nullable=False, server_default="other"
        ),
        sa.Column("start_date", sa.Date),
        sa.Column("address", JSONB),
        sa.Column("contact", JSONB),
        sa.Column(
            "nace_codes",
            ARRAY(sa.Text),
            nullable=False,
            server_default=sa.text("'{}'::text[]"),
        ),
        sa.Column("nace_main", sa.Text),
        sa.Column("establishment_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("financial_summary", JSONB),
        sa.Column("last_financial_enriched_at", sa.DateTime(timezone=True)),
        sa.Column("functions", JSONB),
        sa.Column("capital", sa.Numeric(18, 2)),
        sa.Column("fiscal_year_end", sa.Text),
        sa.Column("annual_meeting_month", sa.Text),
        sa.Column("juridical_situation_date", sa.Date),
        sa.Column("entity_links", JSONB),
        sa.Column("qualifications", JSONB),
        sa.Column("nace_history", JSONB),
        sa.Column("exceptional_fiscal_periods", JSONB),
        sa.Column("last_registry_enriched_at", sa.DateTime(timezone=True)),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.CheckConstraint(
            "enterprise_number ~ '^[01][0-9]{9}$'", name=f"ck_{table}_enterprise_number"
        ),
        sa.CheckConstraint(
            "nace_main IS NULL OR nace_main = ANY(nace_codes)",
            name=f"ck_{table}_nace_main_member",
        ),
        sa.CheckConstraint(
            "financial_summary IS NULL OR financial_summary ? 'year'",
            name=f"ck_{table}_financial_year",
        ),
        schema=schema,
    )
    op.create_index(f"ix_{table}_slug", table, ["slug"], schema=schema)
    op.create_index(
        f"ix_{table}_financial_stale",
        table,
        ["last_financial_enriched_at"],
        schema=schema,
    )
    op.create_index(
        f"ix_{table}_registry_stale",
        table,
        ["last_registry_enriched_at"],
        schema=schema,
    )
    op.create_index(
        f"ix_{table}_nace_codes",
        table,
        ["nace_codes"],
        schema=schema,
        postgresql_using="gin",
    )


def downgrade() -> None:
    schema, table = _target()
    op.drop_table(table, schema=schema)
