"""Detection of 'no data' pages across every supported portal locale."""

from typing import Mapping, Optional, Sequence


def _normalize(text: str) -> str:
    return " ".join(text.split()).casefold()


def find_no_data_phrase(
    text: str, phrases_by_locale: Mapping[str, Sequence[str]]
) -> Optional[str]:
    """
    Return the first configured phrase contained in ``text``, whatever the
    page locale, or None.

    Example:
        >>> find_no_data_phrase("Geen  jaarrekeningen", {"nl": ["geen jaarrekeningen"]})
        'geen jaarrekeningen'
    """
    if not text:
        return None
    haystack = _normalize(text)
    for phrases in phrases_by_locale.values():
        for phrase in phrases:
            if phrase and _normalize(phrase) in haystack:
                return phrase
    return None
