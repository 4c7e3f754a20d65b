"""
Date parsing utilities for registry source data and portal pages.

Belgian registry extracts use ``DD-MM-YYYY``; the portals render dates either
as ``dd/mm/yyyy`` or with localized month names in Dutch, French or English
(``9 april 2024``, ``9 avril 2024``). Every parser returns ISO ``YYYY-MM-DD``
strings, or ``None`` when the value cannot be understood.
"""

import logging
import re
from datetime import date
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

MONTHS = {
    # nl
    "januari": 1, "februari": 2, "maart": 3, "april": 4, "mei": 5, "juni": 6,
    "juli": 7, "augustus": 8, "september": 9, "oktober": 10, "november": 11,
    "december": 12,
    # en
    "january": 1, "february": 2, "march": 3, "may": 5, "june": 6, "july": 7,
    "august": 8, "october": 10,
    # fr
    "janvier": 1, "février": 2, "fevrier": 2, "mars": 3, "avril": 4, "mai": 5,
    "juin": 6, "juillet": 7, "août": 8, "aout": 8, "septembre": 9,
    "octobre": 10, "novembre": 11, "décembre": 12, "decembre": 12,
}

DateParser = Callable[[re.Match[str]], date]


def _parse_numeric_dmy(match: re.Match[str]) -> date:
    return date(int(match.group(3)), int(match.group(2)), int(match.group(1)))


def _parse_named_month(match: re.Match[str]) -> date:
    month = MONTHS.get(match.group(2).lower())
    if month is None:
        raise ValueError(f"Unknown month name '{match.group(2)}'")
    return date(int(match.group(3)), month, int(match.group(1)))


def _parse_iso(match: re.Match[str]) -> date:
    return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))


_DATE_PATTERNS: List[Tuple[re.Pattern[str], DateParser]] = [
    # 2024-04-09
    (re.compile(r"^(\d{4})-(\d{2})-(\d{2})$"), _parse_iso),
    # 09-04-2024 / 09/04/2024 / 9.4.2024
    (re.compile(r"^(\d{1,2})[-/.](\d{1,2})[-/.](\d{4})$"), _parse_numeric_dmy),
    # 9 april 2024 / 1er avril 2024
    (
        re.compile(r"^(\d{1,2})(?:er)?\s+([^\W\d_]+)\.?\s+(\d{4})$", re.UNICODE),
        _parse_named_month,
    ),
]


def parse_date(value: Optional[str]) -> Optional[str]:
    """
    Normalize a registry or portal date string into ISO form.

    Example:
        >>> parse_date("09-04-2024")
        '2024-04-09'
        >>> parse_date("9 avril 2024")
        '2024-04-09'
        >>> parse_date("not a date") is None
        True
    """
    if value is None:
        return None
    raw = " ".join(str(value).split())
    if not raw:
        return None

    for pattern, parser in _DATE_PATTERNS:
        match = pattern.match(raw)
        if not match:
            continue
        try:
            return parser(match).isoformat()
        except ValueError:
            logger.debug("Unable to parse date value %r", value)
            return None

    return None


def parse_day_month_year(value: Optional[str]) -> Optional[str]:
    """Parse the registry extract format ``DD-MM-YYYY`` only."""
    if not value:
        return None
    match = _DATE_PATTERNS[1][0].match(value.strip())
    if not match or "-" not in value:
        return None
    try:
        return _parse_numeric_dmy(match).isoformat()
    except ValueError:
        return None


def find_dates(text: str) -> List[str]:
    """Return every date found in free text, normalized, in order of appearance."""
    results: List[str] = []
    for match in DATE_IN_TEXT.finditer(text):
        parsed = parse_date(match.group(0))
        if parsed:
            results.append(parsed)
    return results


# Searches (not anchored) for either supported textual form inside page text
DATE_IN_TEXT = re.compile(
    r"\d{1,2}/\d{1,2}/\d{4}|\d{1,2}(?:er)?\s+[^\W\d_]+\.?\s+\d{4}", re.UNICODE
)
