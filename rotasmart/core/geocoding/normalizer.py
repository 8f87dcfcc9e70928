"""Text normalization for address comparison.

The normalized form is only used to compare addresses with each other and
with provider answers. It is never shown to the user.
"""

import re
import unicodedata

from rotasmart.core.geocoding.constants import STREET_ABBREVIATIONS

# "s/n" (sem numero) marker and its variants
_NO_NUMBER = re.compile(r"\bs(?:\s*[/.]\s*|)n\b\.?")
_DISALLOWED_CHARS = re.compile(r"[^a-z0-9\s\-,.]")
_WHITESPACE = re.compile(r"\s+")

_ABBREVIATION_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(r"\b(?:" + "|".join(abbrevs) + r")\b\.?"), full + " ")
    for abbrevs, full in STREET_ABBREVIATIONS
)


def strip_diacritics(text: str) -> str:
    """Remove accents, keeping the base characters."""
    return "".join(
        c for c in unicodedata.normalize("NFKD", text) if not unicodedata.combining(c)
    )


def expand_abbreviations(text: str) -> str:
    """Expand street-type abbreviations in already lowercased text."""
    for pattern, replacement in _ABBREVIATION_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def normalize_text(text: str | None) -> str:
    """Return the canonical comparison form of a free-text address.

    Applying it to its own output returns the same string.

    Args:
        text: Free-text address or address component

    Returns:
        Lowercase ASCII text with expanded abbreviations and single spaces
    """
    if not text:
        return ""

    normalized = strip_diacritics(str(text)).lower()
    normalized = _NO_NUMBER.sub(" ", normalized)
    normalized = _DISALLOWED_CHARS.sub("", normalized)
    # Stripping may join "s#n" into a marker again
    normalized = _NO_NUMBER.sub(" ", normalized)
    normalized = expand_abbreviations(normalized)
    return _WHITESPACE.sub(" ", normalized).strip()
