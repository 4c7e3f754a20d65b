"""
Financial filing extraction (NBB Central Balance Sheet Office).

The filing page links a CSV export of the latest annual accounts, one
``"rubric code","value"`` pair per line. Each headline metric is resolved by
trying its known rubric codes in order and taking the first one present.
"""

import csv
import io
import re
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from registry_hub.domain.enrichment.models import EnrichmentSource, FetchedPage
from registry_hub.domain.registry.models import FinancialSummary
from registry_hub.infrastructure.extraction.base import BaseExtractionStrategy
from registry_hub.utils.logging import get_logger

logger = get_logger(__name__)

EXPORT_KEY = "csv"

RUBRIC_CODES: Mapping[str, Tuple[str, ...]] = MappingProxyType(
    {
        "turnover": ("70", "70/74", "9903"),
        "profit_loss": ("9904", "9905", "70/67"),
        "equity": ("10/15", "10/49"),
        # Full-time equivalents; micro companies often omit them
        "employees": ("9087", "9097"),
    }
)

_YEAR_END = re.compile(
    r"(?:Year-end date|Datum einde boekjaar|Einddatum boekjaar|"
    r"Date de fin d'exercice|Date de clôture)\s*:?\s*\d{1,2}/\d{1,2}/(\d{4})",
    re.IGNORECASE,
)

# 18.600 or 1.500.000: dots group thousands when no decimal comma is present
_THOUSANDS_DOTS = re.compile(r"-?\d{1,3}(?:\.\d{3})+")


def parse_amount(raw: Optional[str]) -> Optional[float]:
    """
    Parse a filing amount written either plainly or in Belgian notation.

    Example:
        >>> parse_amount("1.500.000,50")
        1500000.5
        >>> parse_amount("125000")
        125000.0
        >>> parse_amount("18.600")
        18600.0
    """
    if raw is None:
        return None
    cleaned = raw.strip().replace("\u00a0", "").replace(" ", "")
    if not cleaned:
        return None
    if "," in cleaned:
        cleaned = cleaned.replace(".", "").replace(",", ".")
    elif _THOUSANDS_DOTS.fullmatch(cleaned):
        cleaned = cleaned.replace(".", "")
    try:
        return float(cleaned)
    except ValueError:
        return None


def _detect_delimiter(line: str) -> str:
    """Semicolon when one appears outside quotes, else comma."""
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == ";" and not in_quotes:
            return ";"
    return ","


def parse_rubric_csv(content: str) -> Dict[str, float]:
    """Map rubric code to amount; the first occurrence of a code wins."""
    lines = [line for line in content.splitlines() if line.strip()]
    if not lines:
        return {}
    delimiter = _detect_delimiter(lines[0])

    data: Dict[str, float] = {}
    for row in csv.reader(io.StringIO("\n".join(lines)), delimiter=delimiter):
        if len(row) < 2:
            continue
        code = row[0].strip()
        value = parse_amount(row[1])
        if code and value is not None:
            data.setdefault(code, value)
    return data


def resolve_metric(data: Mapping[str, float], codes: Sequence[str]) -> Optional[float]:
    for code in codes:
        if code in data:
            return data[code]
    return None


def find_filing_year(text: str) -> Optional[int]:
    match = _YEAR_END.search(text or "")
    return int(match.group(1)) if match else None


class FinancialFilingExtractor(BaseExtractionStrategy):
    source = EnrichmentSource.FINANCIAL

    def extract(
        self, enterprise_number: str, page: FetchedPage
    ) -> Optional[FinancialSummary]:
        year = find_filing_year(page.text)
        if year is None:
            logger.warning(
                "financial_extractor.no_filing_year", enterprise_number=enterprise_number
            )
            return None

        export = page.exports.get(EXPORT_KEY)
        if not export:
            logger.warning(
                "financial_extractor.no_export", enterprise_number=enterprise_number
            )
            return None

        data = parse_rubric_csv(export)
        metrics = {name: resolve_metric(data, codes) for name, codes in RUBRIC_CODES.items()}
        if metrics["employees"] is not None:
            metrics["employees"] = int(round(metrics["employees"]))

        try:
            summary = FinancialSummary(year=year, **metrics)
        except ValidationError as e:
            logger.warning(
                "financial_extractor.invalid_metrics",
                enterprise_number=enterprise_number,
                error=str(e),
            )
            return None
        if not summary.has_metrics():
            return None

        logger.info(
            "financial_extractor.extracted",
            enterprise_number=enterprise_number,
            year=year,
            rubrics=len(data),
        )
        return summary
