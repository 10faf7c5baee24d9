"""
Text utilities for identifier and name handling.

Used for scan matching and report naming.
"""

import re
from typing import Optional


def normalize_item_id(raw_id: Optional[str]) -> str:
    """
    Normalize an item identifier for comparison.

    The same key is used for expected items and for unexpected scans:
    - "  pc-d7-4822 " → "PC-D7-4822"
    - "Sku 12" → "SKU 12"

    Args:
        raw_id: Identifier as typed, pasted or scanned

    Returns:
        Trimmed, upper-cased identifier ("" for None)
    """
    if not raw_id:
        return ""
    return raw_id.strip().upper()


def clean_report_name(name: Optional[str], fallback: str = "UNSPECIFIED_USER") -> str:
    """
    Make an operator name safe for use inside a report id / filename.

    - "Jo Smith" → "JO_SMITH"
    - "ann-marie o'neil" → "ANN_MARIE_ONEIL"
    - "   " → fallback

    Args:
        name: Sign-off name (may be empty)
        fallback: Value used when the name is blank

    Returns:
        Upper-case name with only A-Z, 0-9 and underscores
    """
    raw = (name or "").strip() or fallback
    upper = raw.upper()

    # Drop anything that is not alphanumeric, whitespace, hyphen or underscore
    kept = re.sub(r"[^A-Z0-9\s\-_]", "", upper)

    return re.sub(r"[\s\-]", "_", kept)
