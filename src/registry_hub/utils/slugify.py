"""
URL slug generation for Belgian company names.

French and Dutch diacritics, ligatures and the Dutch ``ij`` digraph are
transliterated through an explicit character map; any remaining non-ASCII
letter is decomposed with NFKD and stripped of combining marks.
"""

import re
import unicodedata
from types import MappingProxyType

DEFAULT_MAX_LENGTH = 100
SEPARATOR = "-"

CHAR_MAP = MappingProxyType(
    {
        "œ": "oe",
        "Œ": "oe",
        "æ": "ae",
        "Æ": "ae",
        "ß": "ss",
        "ĳ": "ij",
        "Ĳ": "ij",
        "&": "and",
        "@": "at",
        "ø": "o",
        "Ø": "o",
    }
)

_APOSTROPHES = re.compile(r"['’‘`´]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def _transliterate(value: str) -> str:
    mapped = "".join(CHAR_MAP.get(char, char) for char in value)
    decomposed = unicodedata.normalize("NFKD", mapped)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def slugify(value: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """
    Convert a company name into a URL-safe slug.

    Example:
        >>> slugify("Boulangerie André & Fils")
        'boulangerie-andre-and-fils'
        >>> slugify("Société d'Électricité")
        'societe-d-electricite'
    """
    if not value:
        return ""

    result = _transliterate(value.strip()).lower()
    result = _APOSTROPHES.sub(SEPARATOR, result)
    result = _NON_ALNUM.sub(SEPARATOR, result).strip(SEPARATOR)

    if len(result) > max_length:
        result = result[:max_length]
        last_sep = result.rfind(SEPARATOR)
        if last_sep > max_length * 0.7:
            result = result[:last_sep]
        result = result.rstrip(SEPARATOR)

    return result
