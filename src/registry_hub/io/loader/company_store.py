"""
PostgreSQL implementation of the record store contract.

- ``upsert_companies``: one ``INSERT ... ON CONFLICT (enterprise_number) DO
  UPDATE`` per chunk, replacing every import-owned column
- ``update_activity_codes``: per-key union of activity codes, main code kept
  once set
- ``select_stale``: keys never enriched by a source or enriched too long ago
- ``apply_enrichment``: targeted update of enrichment columns plus stamp
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy import bindparam, create_engine, func, select, text, update
from sqlalchemy.dialects.postgresql import ARRAY, insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.types import Text

from registry_hub.domain.protocols import StoreWriteError
from registry_hub.io.loader.tables import (
    ENRICHMENT_COLUMNS,
    IMPORT_COLUMNS,
    STAMP_COLUMNS,
    companies_table,
)
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)

_ACTIVITY_UPDATE = """
UPDATE {table}
SET nace_codes = COALESCE(nace_codes, '{{}}'::text[]) || ARRAY(
        SELECT t.code
        FROM unnest(:codes) WITH ORDINALITY AS t(code, ord)
        WHERE NOT (t.code = ANY(COALESCE(nace_codes, '{{}}'::text[])))
        ORDER BY t.ord
    ),
    nace_main = COALESCE(nace_main, :main_code),
    updated_at = NOW()
WHERE enterprise_number = :enterprise_number
"""


def create_store_engine(
    database_uri: str, pool_size: int = 10, write_concurrency: int = 1
) -> Engine:
    """Engine whose pool can serve every in-flight per-key write of a batch."""
    return create_engine(
        database_uri,
        pool_size=pool_size,
        max_overflow=max(0, write_concurrency - pool_size),
        pool_pre_ping=True,
    )


class PostgresCompanyStore:
    """
    Record store backed by one PostgreSQL table.

    Examples:
        >>> engine = create_engine(settings.require_database_uri())
        >>> store = PostgresCompanyStore(engine, schema="public")
        >>> store.upsert_companies([record.to_row()])
    """

    def __init__(self, engine: Engine, schema: str = "public", table: str = "companies"):
        self.engine = engine
        self.table = companies_table(schema, table)
        qualified = engine.dialect.identifier_preparer.format_table(self.table)
        self._activity_update = text(_ACTIVITY_UPDATE.format(table=qualified)).bindparams(
            bindparam("codes", type_=ARRAY(Text))
        )

    def upsert_companies(self, rows: Sequence[Dict[str, Any]]) -> int:
        if not rows:
            return 0

        stmt = insert(self.table).values(list(rows))
        set_ = {column: stmt.excluded[column] for column in IMPORT_COLUMNS}
        set_["updated_at"] = func.now()
        stmt = stmt.on_conflict_do_update(
            index_elements=[self.table.c.enterprise_number], set_=set_
        )

        try:
            with self.engine.begin() as conn:
                conn.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreWriteError(f"Upsert of {len(rows)} companies failed: {e}") from e
        logger.debug("company_store.upserted", rows=len(rows))
        return len(rows)

    def update_activity_codes(
        self,
        enterprise_number: str,
        codes: Sequence[str],
        main_code: Optional[str],
    ) -> bool:
        if main_code is not None and main_code not in codes:
            raise ValueError(f"Main code {main_code} is not among the codes")
        params = {
            "codes": list(codes),
            "main_code": main_code,
            "enterprise_number": enterprise_number,
        }
        try:
            with self.engine.begin() as conn:
                result = conn.execute(self._activity_update, params)
        except SQLAlchemyError as e:
            raise StoreWriteError(
                f"Activity update failed for {enterprise_number}: {e}",
                enterprise_number=enterprise_number,
            ) from e
        return result.rowcount > 0

    def select_stale(
        self, stamp_column: str, older_than_days: int, limit: int
    ) -> List[str]:
        if stamp_column not in STAMP_COLUMNS:
            raise ValueError(f"Unknown enrichment stamp column: {stamp_column}")

        stamp = self.table.c[stamp_column]
        cutoff = func.now() - func.make_interval(0, 0, 0, older_than_days)
        query = (
            select(self.table.c.enterprise_number)
            .where(stamp.is_(None) | (stamp < cutoff))
            .order_by(stamp.asc().nulls_first(), self.table.c.enterprise_number)
            .limit(limit)
        )
        with self.engine.connect() as conn:
            keys = [row[0] for row in conn.execute(query)]
        logger.info(
            "company_store.stale_selected",
            stamp_column=stamp_column,
            older_than_days=older_than_days,
            limit=limit,
            selected=len(keys),
        )
        return keys

    def apply_enrichment(
        self, enterprise_number: str, fields: Mapping[str, Any], stamp_column: str
    ) -> bool:
        if stamp_column not in STAMP_COLUMNS:
            raise ValueError(f"Unknown enrichment stamp column: {stamp_column}")
        unknown = set(fields) - set(ENRICHMENT_COLUMNS)
        if unknown:
            raise ValueError(f"Not enrichment columns: {sorted(unknown)}")

        values = dict(fields)
        values[stamp_column] = func.now()
        values["updated_at"] = func.now()
        stmt = (
            update(self.table)
            .where(self.table.c.enterprise_number == enterprise_number)
            .values(**values)
        )
        try:
            with self.engine.begin() as conn:
                result = conn.execute(stmt)
        except SQLAlchemyError as e:
            raise StoreWriteError(
                f"Enrichment update failed for {enterprise_number}: {e}",
                enterprise_number=enterprise_number,
            ) from e
        return result.rowcount > 0
