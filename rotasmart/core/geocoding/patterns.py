"""Detection of addresses that must be placed by hand."""

import re

from rotasmart.core.geocoding.normalizer import normalize_text

# Block + lot shorthand ("qd 12 lt 34", "q.12 l.34", "quadra 12 e lote 34").
# Runs on normalized text, where "q"/"qd" already became "quadra" and "lt" "lote".
QUADRA_LOTE_PATTERN = re.compile(
    r"\b(?:q|qd|quadra)\b[\s.\-]*\d+[\s,.\-]*(?:\be\b[\s.\-]*)?\b(?:l|lt|lote)\b[\s.\-]*\d+"
)


def is_quadra_lote(address: str | None) -> bool:
    """Check whether an address uses the block-and-lot shorthand.

    Public geocoders cannot resolve these lot references to a position, so
    such rows skip provider calls and go straight to manual review.
    """
    if not address:
        return False
    return QUADRA_LOTE_PATTERN.search(normalize_text(address)) is not None
