"""
Pydantic v2 data models for the consolidated company record store.

Defines the persisted ``CompanyRecord`` row and the composite documents stored
alongside it (names, address, contact, financial snapshot, registry details).
Enrichment results are partial: every field is optional except where a
snapshot is meaningless without it (a financial snapshot always has a year).
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CompanyStatus(str, Enum):
    ACTIVE = "active"
    STOPPED = "stopped"


class JuridicalSituation(str, Enum):
    """Closed set of juridical situations; ``OTHER`` absorbs unmapped codes."""

    NORMAL = "normal"
    LEGAL_CREATION = "legal_creation"
    EXTENSION = "extension"
    NUMBER_REPLACEMENT = "number_replacement"
    STOPPED_NUMBER_REPLACEMENT = "stopped_number_replacement"
    DISSOLUTION = "dissolution"
    FOREIGN_CEASED = "foreign_ceased"
    OPENING_BANKRUPTCY = "opening_bankruptcy"
    CLOSING_BANKRUPTCY = "closing_bankruptcy"
    VOLUNTARY_DISSOLUTION = "voluntary_dissolution"
    JUDICIAL_DISSOLUTION = "judicial_dissolution"
    JUDICIAL_DISSOLUTION_CLOSED = "judicial_dissolution_closed"
    ANNULMENT = "annulment"
    MERGER_ACQUISITION = "merger_acquisition"
    DIVISION = "division"
    TRANSFER_REGISTERED_OFFICE = "transfer_registered_office"
    BANKRUPTCY = "bankruptcy"
    BANKRUPTCY_CLOSED = "bankruptcy_closed"
    LIQUIDATION = "liquidation"
    OTHER = "other"


class _Document(BaseModel):
    """Base for JSONB documents: stripped strings, unset fields omitted on dump."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class CompanyNames(_Document):
    fr: Optional[str] = None
    nl: Optional[str] = None
    de: Optional[str] = None
    en: Optional[str] = None
    abbreviation: Optional[str] = None
    commercial: Optional[str] = None

    def display_name(self) -> Optional[str]:
        """First non-empty of official fr, nl, de, en, then commercial, abbreviation."""
        for value in (
            self.fr,
            self.nl,
            self.de,
            self.en,
            self.commercial,
            self.abbreviation,
        ):
            if value:
                return value
        return None


class Address(_Document):
    street_fr: Optional[str] = None
    street_nl: Optional[str] = None
    number: Optional[str] = None
    box: Optional[str] = None
    postal_code: Optional[str] = None
    city_fr: Optional[str] = None
    city_nl: Optional[str] = None
    country: Optional[str] = None

    def is_complete(self) -> bool:
        """A usable address has a street and a city in at least one language."""
        return bool(self.street_fr or self.street_nl) and bool(
            self.city_fr or self.city_nl
        )


class Contact(_Document):
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    fax: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.phone or self.email or self.website or self.fax)


class FinancialSummary(_Document):
    """Latest filed annual accounts, reduced to headline metrics."""

    year: int = Field(..., ge=1900, le=2100, description="Fiscal year of the filing")
    turnover: Optional[float] = None
    profit_loss: Optional[float] = None
    equity: Optional[float] = None
    employees: Optional[int] = Field(None, ge=0)
    net_margin: Optional[float] = Field(
        None, description="profit_loss / turnover * 100, rounded to 2 decimals"
    )

    @model_validator(mode="after")
    def compute_net_margin(self) -> "FinancialSummary":
        if self.net_margin is None and self.turnover and self.profit_loss is not None:
            self.net_margin = round(self.profit_loss / self.turnover * 100, 2)
        return self

    def has_metrics(self) -> bool:
        return any(
            value is not None
            for value in (self.turnover, self.profit_loss, self.equity, self.employees)
        )


class CompanyFunction(_Document):
    """Officer or director listed on the registry detail page."""

    first_name: Optional[str] = None
    last_name: str
    role: str
    role_code: Literal[
        "manager", "ceo", "director", "president", "secretary", "other"
    ] = "other"
    start_date: Optional[str] = None


class EntityLink(_Document):
    enterprise_number: str
    link_type: str = "unknown"
    name: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class Qualification(_Document):
    qualification_type: Literal["rsz_employer", "vat_subject", "registration_obligated"]
    label: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class NaceEntry(_Document):
    code: str
    description: Optional[str] = None


class FiscalPeriod(_Document):
    start_date: str
    end_date: str


class RegistryDetail(_Document):
    """Fields scraped from the registry detail page; all optional."""

    functions: List[CompanyFunction] = Field(default_factory=list)
    capital: Optional[float] = None
    fiscal_year_end: Optional[str] = None
    annual_meeting_month: Optional[str] = None
    juridical_situation_date: Optional[str] = None
    entity_links: List[EntityLink] = Field(default_factory=list)
    qualifications: List[Qualification] = Field(default_factory=list)
    nace_history: Dict[str, List[NaceEntry]] = Field(default_factory=dict)
    exceptional_fiscal_periods: List[FiscalPeriod] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not any(
            (
                self.functions,
                self.capital is not None,
                self.fiscal_year_end,
                self.annual_meeting_month,
                self.juridical_situation_date,
                self.entity_links,
                self.qualifications,
                self.nace_history,
                self.exceptional_fiscal_periods,
            )
        )


class CompanyRecord(BaseModel):
    """
    One consolidated row of the record store, as written by the bulk import.

    Enrichment columns (financial summary, registry details and their
    timestamps) are owned by the enrichment pipeline and never appear here.
    """

    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")

    enterprise_number: str = Field(..., pattern=r"^[01]\d{9}$")
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1)
    names: CompanyNames = Field(default_factory=CompanyNames)
    legal_form: Optional[str] = None
    legal_form_code: Optional[str] = None
    status: CompanyStatus = CompanyStatus.ACTIVE
    juridical_situation: JuridicalSituation = JuridicalSituation.OTHER
    start_date: Optional[str] = None
    address: Optional[Address] = None
    contact: Optional[Contact] = None
    establishment_count: int = Field(default=0, ge=0)

    def to_row(self) -> Dict[str, Any]:
        """Column -> value mapping for the upsert statement."""
        return {
            "enterprise_number": self.enterprise_number,
            "name": self.name,
            "slug": self.slug,
            "names": self.names.to_document() or None,
            "legal_form": self.legal_form,
            "legal_form_code": self.legal_form_code,
            "status": self.status.value,
            "juridical_situation": self.juridical_situation.value,
            "start_date": self.start_date,
            "address": self.address.to_document() if self.address else None,
            "contact": (
                self.contact.to_document()
                if self.contact and not self.contact.is_empty()
                else None
            ),
            "establishment_count": self.establishment_count,
            # Activity codes are re-applied by the streaming pass
            "nace_codes": [],
            "nace_main": None,
        }

