"""
Belgian enterprise number (KBO/BCE) normalization and checksum validation.

An enterprise number is ten digits, the first being 0 or 1. The last two
digits are a mod-97 check over the first eight:
``97 - (int(first_eight) % 97) == int(last_two)``.

Accepted input forms: ``BE 0417.497.106``, ``BE0417497106``, ``0417 497 106``.
Canonical storage form: ``0417497106``.
Display form: ``BE 0417.497.106``.
"""

import re

COUNTRY_PREFIX = "BE"
_DIGITS_ONLY = re.compile(r"^[01]\d{9}$")
_PREFIX = re.compile(r"^BE\s*")
_PUNCTUATION = re.compile(r"[\s.\-]")


class EnterpriseNumberError(ValueError):
    """Base error for unusable enterprise numbers."""

    def __init__(self, message: str, value: str):
        super().__init__(message)
        self.value = value


class InvalidKeyFormatError(EnterpriseNumberError):
    """The value does not reduce to ten digits starting with 0 or 1."""


class ChecksumMismatchError(EnterpriseNumberError):
    """The mod-97 check digits disagree with the first eight digits."""

    def __init__(self, value: str, expected: str, actual: str):
        super().__init__(
            f"Checksum mismatch for enterprise number {value}: "
            f"expected {expected}, got {actual}",
            value,
        )
        self.expected = expected
        self.actual = actual


def compute_checksum(base: str) -> str:
    """Return the two check digits for an eight-digit base, zero-padded."""
    return f"{97 - (int(base) % 97):02d}"


def normalize_enterprise_number(value: str) -> str:
    """
    Strip the country prefix and punctuation and check the digit layout.

    Raises:
        InvalidKeyFormatError: If the residue is not ten digits starting
            with 0 or 1
    """
    if value is None:
        raise InvalidKeyFormatError("Enterprise number is empty", "")

    cleaned = _PREFIX.sub("", str(value).strip().upper())
    cleaned = _PUNCTUATION.sub("", cleaned)
    if not _DIGITS_ONLY.match(cleaned):
        raise InvalidKeyFormatError(
            f"Invalid enterprise number format: {value!r} "
            "(expected BE 0123.456.789)",
            str(value),
        )
    return cleaned


def validate_enterprise_number(value: str) -> str:
    """
    Normalize and verify the check digits.

    Returns:
        The canonical ten-digit form

    Raises:
        InvalidKeyFormatError: On a malformed value
        ChecksumMismatchError: When the check digits are wrong
    """
    normalized = normalize_enterprise_number(value)
    expected = compute_checksum(normalized[:8])
    actual = normalized[8:]
    if expected != actual:
        raise ChecksumMismatchError(normalized, expected, actual)
    return normalized


def group_digits(value: str) -> str:
    """``0417497106`` -> ``0417.497.106``"""
    normalized = normalize_enterprise_number(value)
    return f"{normalized[:4]}.{normalized[4:7]}.{normalized[7:]}"


def format_enterprise_number(value: str) -> str:
    """Canonical digits -> ``BE 0417.497.106``."""
    return f"{COUNTRY_PREFIX} {group_digits(value)}"
