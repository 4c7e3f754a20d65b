"""
Enrichment writer: merges extraction results into the record store.

A financial result replaces the stored snapshot. A registry-detail result
always replaces the officer list; every other field is only written when the
extraction found it, so a sparse page never erases earlier data. Both stamp
the per-source timestamp in the same statement.
"""

from typing import Any, Dict

from pydantic import BaseModel

from registry_hub.domain.enrichment.models import EnrichmentSource
from registry_hub.domain.protocols import CompanyStore
from registry_hub.domain.registry.models import FinancialSummary, RegistryDetail


def financial_fields(summary: FinancialSummary) -> Dict[str, Any]:
    return {"financial_summary": summary.to_document()}


def registry_fields(detail: RegistryDetail) -> Dict[str, Any]:
    fields: Dict[str, Any] = {
        "functions": [officer.to_document() for officer in detail.functions]
    }
    for name in (
        "capital",
        "fiscal_year_end",
        "annual_meeting_month",
        "juridical_situation_date",
    ):
        value = getattr(detail, name)
        if value is not None:
            fields[name] = value
    if detail.entity_links:
        fields["entity_links"] = [link.to_document() for link in detail.entity_links]
    if detail.qualifications:
        fields["qualifications"] = [q.to_document() for q in detail.qualifications]
    if detail.nace_history:
        fields["nace_history"] = {
            version: [entry.to_document() for entry in entries]
            for version, entries in detail.nace_history.items()
        }
    if detail.exceptional_fiscal_periods:
        fields["exceptional_fiscal_periods"] = [
            period.to_document() for period in detail.exceptional_fiscal_periods
        ]
    return fields


class EnrichmentWriter:
    def __init__(self, store: CompanyStore):
        self.store = store

    def write(
        self, enterprise_number: str, source: EnrichmentSource, result: BaseModel
    ) -> bool:
        if source == EnrichmentSource.FINANCIAL:
            if not isinstance(result, FinancialSummary):
                raise TypeError(f"Expected FinancialSummary, got {type(result).__name__}")
            fields = financial_fields(result)
        else:
            if not isinstance(result, RegistryDetail):
                raise TypeError(f"Expected RegistryDetail, got {type(result).__name__}")
            fields = registry_fields(result)

        return self.store.apply_enrichment(enterprise_number, fields, source.stamp_column)
