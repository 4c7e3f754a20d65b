"""
Registry detail extraction (KBO/BCE public search enterprise page).

The page is rendered in Dutch, French or English depending on the session, so
every label is matched in all three languages. Officers are read from the
rendered text first (``Role  Last, First  Since <date>``) and from the
page tables when the text pattern finds nothing. This is a best-effort
heuristic: officers whose markup does not follow either form are missed.
"""

import re
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from registry_hub.domain.enrichment.models import EnrichmentSource, FetchedPage
from registry_hub.domain.registry.enterprise_number import (
    InvalidKeyFormatError,
    normalize_enterprise_number,
)
from registry_hub.domain.registry.models import (
    CompanyFunction,
    EntityLink,
    FiscalPeriod,
    NaceEntry,
    Qualification,
    RegistryDetail,
)
from registry_hub.infrastructure.extraction.base import BaseExtractionStrategy
from registry_hub.infrastructure.extraction.financial import parse_amount
from registry_hub.utils.date_parser import MONTHS, find_dates, parse_date
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)

# Longest labels first so "Gedelegeerd bestuurder" wins over "Bestuurder"
ROLE_LABELS: Tuple[str, ...] = (
    "Gedelegeerd bestuurder",
    "Administrateur délégué",
    "Managing director",
    "Permanent vertegenwoordiger",
    "Représentant permanent",
    "Bestuurder",
    "Zaakvoerder",
    "Voorzitter",
    "Secretaris",
    "Oprichter",
    "Vennoot",
    "Administrateur",
    "Gérant",
    "Président",
    "Secrétaire",
    "Fondateur",
    "Associé",
    "Director",
    "Manager",
    "President",
    "Secretary",
    "CEO",
)

_DATE = r"\d{1,2}(?:er)?\s+[^\W\d_]+\.?\s+\d{4}|\d{1,2}/\d{1,2}/\d{4}"
_SINCE = r"(?:sinds|depuis|since)"

_OFFICER = re.compile(
    r"(?P<role>(?i:" + "|".join(re.escape(label) for label in ROLE_LABELS) + r"))"
    r"\s+(?P<last>[^\W\d_][^,\n]{0,80}?)\s*,\s*(?P<first>[^\W\d_][^\n]{0,80}?)"
    r"\s+(?i:" + _SINCE + r")\s+(?P<date>" + _DATE + r")"
)
_NAME_PAIR = re.compile(r"^\s*(?P<last>[^\W\d_][^,]*?)\s*,\s*(?P<first>[^\W\d_].*?)\s*$")

_CAPITAL = re.compile(
    r"(?:Kapitaal|Capital)\s*:?\s*(?P<amount>\d[\d.,\s]*?)\s*(?:EUR|€)", re.IGNORECASE
)
_FISCAL_YEAR_END = re.compile(
    r"(?:Einddatum boekjaar|Afsluiting boekjaar|Fin de l'exercice comptable|"
    r"Clôture (?:de l'|d')?exercice|Fiscal year end|End date exercise)\s*:?\s*"
    r"(?P<value>\d{1,2}\s+[^\W\d_]+|\d{1,2}/\d{1,2})",
    re.IGNORECASE,
)
_ANNUAL_MEETING = re.compile(
    r"(?:Jaarvergadering|Jaarlijkse algemene vergadering|"
    r"Assemblée générale(?: annuelle)?|Annual (?:general )?meeting)\s*:?\s*"
    r"(?P<month>[^\W\d_]+)",
    re.IGNORECASE,
)
_JURIDICAL_SITUATION_DATE = re.compile(
    r"(?:Rechtstoestand|Situation juridique|Legal situation)"
    r"[^()]{0,80}?\(?\s*" + _SINCE + r"\s+(?P<date>" + _DATE + r")",
    re.IGNORECASE,
)
_QUALIFICATION_TAIL = r"\s*:?\s*\(?\s*" + _SINCE + r"\s+(?P<date>" + _DATE + r")"
_QUALIFICATIONS: Tuple[Tuple[str, str, "re.Pattern[str]"], ...] = (
    (
        "rsz_employer",
        "RSZ Employer",
        re.compile(
            r"(?:Werkgever (?:bij de )?RSZ|Employeur (?:à l')?ONSS|Employer NSSO)"
            + _QUALIFICATION_TAIL,
            re.IGNORECASE,
        ),
    ),
    (
        "vat_subject",
        "VAT Subject",
        re.compile(
            r"(?:Onderworpen aan (?:de )?btw|Assujetti à la TVA|Subject to VAT|VAT subject)"
            + _QUALIFICATION_TAIL,
            re.IGNORECASE,
        ),
    ),
    (
        "registration_obligated",
        "Registration Obligated",
        re.compile(
            r"(?:Inschrijvingsplichtige onderneming|Entreprise soumise à inscription|"
            r"Enterprise subject to registration)"
            + _QUALIFICATION_TAIL,
            re.IGNORECASE,
        ),
    ),
)
_ENTITY_LINK = re.compile(
    r"(?P<number>[01]\d{3}\.\d{3}\.\d{3})[^()\n]{0,120}?\(?\s*"
    + _SINCE
    + r"\s+(?P<date>"
    + _DATE
    + r")",
    re.IGNORECASE,
)
_NACE_VERSION = re.compile(
    r"(?:Nacebelcode|Code Nacebel|NACE-BEL(?: code)?|Nace-Bel)[^\n\d]{0,20}(?P<version>\d{4})",
    re.IGNORECASE,
)
_NACE_CODE = re.compile(r"(?P<code>\d{2}\.\d{3})\s*-\s*(?P<description>[^\n\t]+)")
_EXCEPTIONAL_PERIOD = re.compile(
    r"(?:Uitzonderlijk boekjaar|Exercice exceptionnel|Exceptional financial year)"
    r"\s*:?\s*(?:van|du|from)?\s*(?P<start>" + _DATE + r")\s*(?:-|–|tot|au|to)\s*"
    r"(?P<end>" + _DATE + r")",
    re.IGNORECASE,
)


def map_role_code(role: str) -> str:
    lowered = role.lower()
    if "zaakvoerder" in lowered or "gérant" in lowered or lowered == "manager":
        return "manager"
    if (
        "gedelegeerd" in lowered
        or "délégué" in lowered
        or "managing director" in lowered
        or lowered == "ceo"
    ):
        return "ceo"
    if "bestuurder" in lowered or "administrateur" in lowered or "director" in lowered:
        return "director"
    if "voorzitter" in lowered or "président" in lowered or "president" in lowered:
        return "president"
    if "secretaris" in lowered or "secrétaire" in lowered or "secretary" in lowered:
        return "secretary"
    return "other"


def _clean(value: str) -> str:
    return " ".join(value.split())


def _officer(
    role: str, last: str, first: Optional[str], start_date: Optional[str]
) -> CompanyFunction:
    role = _clean(role)
    return CompanyFunction(
        first_name=_clean(first) if first else None,
        last_name=_clean(last),
        role=role,
        role_code=map_role_code(role),
        start_date=start_date,
    )


def extract_officers_from_text(text: str) -> List[CompanyFunction]:
    return [
        _officer(
            match.group("role"),
            match.group("last"),
            match.group("first"),
            parse_date(match.group("date")),
        )
        for match in _OFFICER.finditer(text)
    ]


def extract_officers_from_tables(tables: Sequence[Sequence[Sequence[str]]]) -> List[CompanyFunction]:
    officers = []
    for table in tables:
        for cells in table:
            if len(cells) < 2:
                continue
            name_match = _NAME_PAIR.match(cells[1] or "")
            if not name_match or not _clean(cells[0] or ""):
                continue
            dates = find_dates(" ".join(cells[2:])) if len(cells) > 2 else []
            officers.append(
                _officer(
                    cells[0],
                    name_match.group("last"),
                    name_match.group("first"),
                    dates[0] if dates else None,
                )
            )
    return officers


def _dedupe_officers(officers: List[CompanyFunction]) -> List[CompanyFunction]:
    seen = set()
    unique = []
    for officer in officers:
        identity = (officer.last_name.lower(), (officer.first_name or "").lower(), officer.role.lower())
        if identity not in seen:
            seen.add(identity)
            unique.append(officer)
    return unique


def extract_nace_history(text: str) -> Dict[str, List[NaceEntry]]:
    """Activity codes grouped by the classification version heading above them."""
    history: Dict[str, List[NaceEntry]] = {}
    version = "current"
    for line in text.splitlines():
        version_match = _NACE_VERSION.search(line)
        if version_match:
            version = version_match.group("version")
        for match in _NACE_CODE.finditer(line):
            entries = history.setdefault(version, [])
            code = match.group("code")
            if any(entry.code == code for entry in entries):
                continue
            entries.append(
                NaceEntry(code=code, description=_clean(match.group("description")))
            )
    return history


def extract_entity_links(text: str, enterprise_number: str) -> List[EntityLink]:
    links = []
    seen = set()
    for match in _ENTITY_LINK.finditer(text):
        try:
            linked = normalize_enterprise_number(match.group("number"))
        except InvalidKeyFormatError:
            continue
        if linked == enterprise_number or linked in seen:
            continue
        seen.add(linked)
        links.append(
            EntityLink(enterprise_number=linked, start_date=parse_date(match.group("date")))
        )
    return links


def extract_qualifications(text: str) -> List[Qualification]:
    """Every dated qualification line, once per (type, start date)."""
    qualifications = []
    seen = set()
    for qualification_type, label, pattern in _QUALIFICATIONS:
        for match in pattern.finditer(text):
            start_date = parse_date(match.group("date"))
            if start_date is None or (qualification_type, start_date) in seen:
                continue
            seen.add((qualification_type, start_date))
            qualifications.append(
                Qualification(
                    qualification_type=qualification_type,
                    label=label,
                    start_date=start_date,
                )
            )
    return qualifications


def extract_exceptional_periods(text: str) -> List[FiscalPeriod]:
    periods = []
    for match in _EXCEPTIONAL_PERIOD.finditer(text):
        start, end = parse_date(match.group("start")), parse_date(match.group("end"))
        if start and end:
            periods.append(FiscalPeriod(start_date=start, end_date=end))
    return periods


def extract_annual_meeting_month(text: str) -> Optional[str]:
    for match in _ANNUAL_MEETING.finditer(text):
        month = match.group("month")
        if month.lower() in MONTHS:
            return month.lower()
    return None


def _search_group(pattern: "re.Pattern[str]", text: str, group: str) -> Optional[str]:
    match = pattern.search(text)
    return _clean(match.group(group)) if match else None


class RegistryDetailExtractor(BaseExtractionStrategy):
    source = EnrichmentSource.REGISTRY

    def extract(self, enterprise_number: str, page: FetchedPage) -> Optional[RegistryDetail]:
        text = page.text or ""
        officers = extract_officers_from_text(text)
        if not officers:
            officers = extract_officers_from_tables(page.tables)

        capital_raw = _search_group(_CAPITAL, text, "amount")
        juridical_date = _search_group(_JURIDICAL_SITUATION_DATE, text, "date")

        try:
            detail = RegistryDetail(
                functions=_dedupe_officers(officers),
                capital=parse_amount(capital_raw),
                fiscal_year_end=_search_group(_FISCAL_YEAR_END, text, "value"),
                annual_meeting_month=extract_annual_meeting_month(text),
                juridical_situation_date=parse_date(juridical_date),
                entity_links=extract_entity_links(text, enterprise_number),
                qualifications=extract_qualifications(text),
                nace_history=extract_nace_history(text),
                exceptional_fiscal_periods=extract_exceptional_periods(text),
            )
        except ValidationError as e:
            logger.warning(
                "registry_extractor.invalid_detail",
                enterprise_number=enterprise_number,
                error=str(e),
            )
            return None

        if detail.is_empty():
            return None

        logger.info(
            "registry_extractor.extracted",
            enterprise_number=enterprise_number,
            functions=len(detail.functions),
            capital=detail.capital,
            qualifications=len(detail.qualifications),
            entity_links=len(detail.entity_links),
        )
        return detail
