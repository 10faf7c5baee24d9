"""
Header detection and column-role suggestion for pasted stock lists.

Pasted data is comma- or tab-delimited with the header on the first
non-blank line. No quoting is supported.
"""

from typing import Optional

import structlog

from models.stock import FieldMapping

logger = structlog.get_logger(__name__)

# Most specific keyword first; matched as substrings of lower-cased headers
UNIQUE_ID_KEYWORDS = ["asset id", "stock code", "sku", "id", "barcode", "code", "product id", "model"]
QUANTITY_KEYWORDS = ["expected quantity", "expected qty", "qty", "quantity", "count", "stock"]
PRICE_KEYWORDS = ["unit price", "price", "cost", "value", "rate", "retail"]


def split_lines(raw_text: Optional[str]) -> list[str]:
    """Return the non-blank lines of the text, in order."""
    if not raw_text:
        return []
    return [line for line in raw_text.strip().splitlines() if line.strip()]


def detect_delimiter(header_line: str) -> str:
    """Tab if the header line contains one, otherwise comma."""
    return "\t" if "\t" in header_line else ","


def split_header_line(header_line: str, delimiter: str) -> list[str]:
    """Split and trim header cells, dropping empty ones."""
    return [part.strip() for part in header_line.split(delimiter) if part.strip()]


def detect_headers(raw_text: Optional[str]) -> list[str]:
    """
    Detect column headers from raw pasted text.

    Args:
        raw_text: Pasted stock data

    Returns:
        Header names from the first non-blank line ([] if there is none)
    """
    lines = split_lines(raw_text)
    if not lines:
        return []

    first_line = lines[0]
    return split_header_line(first_line, detect_delimiter(first_line))


def find_header(headers: list[str], keywords: list[str]) -> str:
    """
    First header containing a keyword, trying keywords in order.

    Returns:
        The original header text, or "" when no keyword matches
    """
    lowered = [h.strip().lower() for h in headers]
    for keyword in keywords:
        for index, header in enumerate(lowered):
            if keyword in header:
                return headers[index]
    return ""


def suggest_mapping(headers: list[str]) -> FieldMapping:
    """
    Suggest column roles from header names.

    The unique id falls back to the first header, so a suggestion always
    names one when any header exists. Quantity and price stay "" when
    nothing matches.
    """
    unique_id = find_header(headers, UNIQUE_ID_KEYWORDS)
    if not unique_id and headers:
        unique_id = headers[0]

    suggestion = FieldMapping(
        unique_id_header=unique_id,
        quantity_header=find_header(headers, QUANTITY_KEYWORDS),
        price_header=find_header(headers, PRICE_KEYWORDS),
    )

    logger.debug(
        "mapping_suggested",
        header_count=len(headers),
        unique_id_header=suggestion.unique_id_header,
        quantity_header=suggestion.quantity_header,
        price_header=suggestion.price_header,
    )

    return suggestion


def count_suggested(suggestion: FieldMapping) -> int:
    """Number of roles a suggestion actually names."""
    return sum(
        1 for value in (
            suggestion.unique_id_header,
            suggestion.quantity_header,
            suggestion.price_header,
        ) if value
    )


def find_column_index(headers: list[str], header_name: Optional[str]) -> int:
    """
    Index of a header by case-insensitive exact match.

    Returns:
        Column index, or -1 when the name is blank or not present
    """
    if not header_name or not header_name.strip():
        return -1

    wanted = header_name.strip().lower()
    for index, header in enumerate(headers):
        if header.strip().lower() == wanted:
            return index
    return -1
