"""In-memory record store honouring the CompanyStore write contract."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from registry_hub.domain.protocols import StoreWriteError


class InMemoryCompanyStore:
    def __init__(self, fail_on: Optional[set] = None):
        self.rows: Dict[str, Dict[str, Any]] = {}
        self.fail_on = fail_on or set()
        self.upsert_calls = 0

    def _check(self, key: str) -> None:
        if key in self.fail_on:
            raise StoreWriteError(f"simulated failure for {key}", enterprise_number=key)

    def upsert_companies(self, rows: Sequence[Dict[str, Any]]) -> int:
        self.upsert_calls += 1
        for row in rows:
            self._check(row["enterprise_number"])
        for row in rows:
            stored = self.rows.setdefault(row["enterprise_number"], {})
            stored.update(row)
        return len(rows)

    def update_activity_codes(
        self, enterprise_number: str, codes: Sequence[str], main_code: Optional[str]
    ) -> bool:
        self._check(enterprise_number)
        row = self.rows.get(enterprise_number)
        if row is None:
            return False
        existing = list(row.get("nace_codes") or [])
        existing.extend(code for code in codes if code not in existing)
        row["nace_codes"] = existing
        if row.get("nace_main") is None:
            row["nace_main"] = main_code
        return True

    def select_stale(
        self, stamp_column: str, older_than_days: int, limit: int
    ) -> List[str]:
        cutoff = datetime.now(timezone.utc) - timedelta(days=older_than_days)
        never = [k for k, r in self.rows.items() if r.get(stamp_column) is None]
        stale = sorted(
            (r[stamp_column], k)
            for k, r in self.rows.items()
            if r.get(stamp_column) is not None and r[stamp_column] < cutoff
        )
        return (never + [k for _, k in stale])[:limit]

    def apply_enrichment(
        self, enterprise_number: str, fields: Mapping[str, Any], stamp_column: str
    ) -> bool:
        self._check(enterprise_number)
        row = self.rows.get(enterprise_number)
        if row is None:
            return False
        row.update(fields)
        row[stamp_column] = datetime.now(timezone.utc)
        return True
