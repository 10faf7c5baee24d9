"""
Stock list parser for pasted expected-inventory data.

Turns comma- or tab-delimited text plus a FieldMapping into unique
StockItem records.

Row policy:
- Rows with fewer cells than headers are skipped
- Rows with a blank unique id are skipped
- Duplicate ids (after normalization) are skipped: first occurrence wins
Skipped rows are logged and returned as RowIssue entries; they never
fail the load. Only a missing unique-id column does.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

import structlog

from exceptions import MissingColumnError
from models.stock import FieldMapping, StockItem
from parsers.header_mapper import (
    detect_delimiter,
    find_column_index,
    split_header_line,
    split_lines,
)
from parsers.value_parser import CurrencyContext, parse_price, parse_quantity
from utils.text_utils import normalize_item_id

logger = structlog.get_logger(__name__)

TOO_FEW_LINES_MESSAGE = "Stock list needs a header line and at least one data row."
NO_VALID_ROWS_MESSAGE = "No valid stock items found. Check your pasted data and unique ID header name."


@dataclass
class RowIssue:
    """Non-fatal problem with one data row."""
    row: int
    reason: str
    message: str
    value: Optional[str] = None


@dataclass
class StockListParseResult:
    """Complete result of parsing a pasted stock list."""
    items: list[StockItem] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)
    currency: CurrencyContext = field(default_factory=CurrencyContext)
    issues: list[RowIssue] = field(default_factory=list)
    data_rows: int = 0
    message: str = ""

    @property
    def has_data(self) -> bool:
        """True if at least one item survived parsing."""
        return len(self.items) > 0

    @property
    def total_expected_quantity(self) -> int:
        return sum(item.expected_quantity for item in self.items)

    def to_dict(self) -> dict:
        """Convert to dictionary for logging / API response."""
        return {
            "item_count": len(self.items),
            "total_expected_quantity": self.total_expected_quantity,
            "headers": self.headers,
            "currency_symbol": self.currency.symbol,
            "data_rows": self.data_rows,
            "message": self.message,
            "issues": [
                {
                    "row": i.row,
                    "reason": i.reason,
                    "message": i.message,
                    "value": i.value,
                }
                for i in self.issues
            ],
        }


def _skip_row(result: StockListParseResult, row: int, reason: str, message: str, value: Optional[str] = None) -> None:
    """Record and log a skipped data row."""
    result.issues.append(RowIssue(row=row, reason=reason, message=message, value=value))
    logger.warning("stock_row_skipped", row=row, reason=reason, value=value)


def build_final_headers(headers: list[str], mapping: FieldMapping) -> list[str]:
    """
    Detected headers plus any named quantity/price column that is missing.

    Keeps a display column for every mapped role even when the pasted
    data lacks it.
    """
    final_headers = list(headers)
    for name in (mapping.quantity_header.strip(), mapping.price_header.strip()):
        if name and name.lower() not in [h.lower() for h in final_headers]:
            final_headers.append(name)
    return final_headers


def parse_stock_list(raw_text: Optional[str], mapping: FieldMapping) -> StockListParseResult:
    """
    Parse pasted stock data into unique stock items.

    Args:
        raw_text: Delimited text, header on the first non-blank line
        mapping: Column roles; unique_id_header must be set

    Returns:
        StockListParseResult. Empty items (with a message) when there are
        fewer than two lines or no row survives.

    Raises:
        MissingColumnError: If the unique id header is not a detected header
    """
    result = StockListParseResult()
    lines = split_lines(raw_text)

    if len(lines) < 2:
        result.message = TOO_FEW_LINES_MESSAGE
        logger.info("stock_list_too_short", line_count=len(lines))
        return result

    delimiter = detect_delimiter(lines[0])
    headers = split_header_line(lines[0], delimiter)

    unique_id_index = find_column_index(headers, mapping.unique_id_header)
    quantity_index = find_column_index(headers, mapping.quantity_header)
    price_index = find_column_index(headers, mapping.price_header)

    if unique_id_index == -1:
        logger.warning(
            "unique_id_column_missing",
            header=mapping.unique_id_header,
            detected_headers=headers,
        )
        raise MissingColumnError(mapping.unique_id_header, headers)

    logger.info(
        "parsing_stock_list",
        delimiter="tab" if delimiter == "\t" else "comma",
        header_count=len(headers),
        data_rows=len(lines) - 1,
        quantity_mapped=quantity_index != -1,
        price_mapped=price_index != -1,
    )

    seen_ids: set[str] = set()
    currency_frozen = False

    for row_number, line in enumerate(lines[1:], start=1):
        result.data_rows += 1
        parts = line.split(delimiter)

        if len(parts) < len(headers):
            _skip_row(result, row_number, "insufficient_columns",
                      f"Row {row_number} has {len(parts)} of {len(headers)} columns", line)
            continue

        raw_id = parts[unique_id_index].strip()
        if not raw_id:
            _skip_row(result, row_number, "empty_unique_id",
                      f"Row {row_number} has an empty unique ID", line)
            continue

        item_id = normalize_item_id(raw_id)
        if item_id in seen_ids:
            _skip_row(result, row_number, "duplicate_id",
                      f"Row {row_number} repeats ID {raw_id}; only the first instance is used", raw_id)
            continue
        seen_ids.add(item_id)

        expected_quantity = parse_quantity(parts[quantity_index]) if quantity_index != -1 else 1

        unit_price = Decimal("0")
        if price_index != -1:
            raw_price = parts[price_index].strip()
            unit_price = parse_price(raw_price)

            if not currency_frozen and unit_price > 0:
                result.currency = CurrencyContext.from_raw_price(raw_price)
                currency_frozen = True

            if unit_price < 0:
                result.issues.append(RowIssue(
                    row=row_number,
                    reason="negative_price",
                    message=f"Row {row_number} has a negative price; using 0",
                    value=raw_price,
                ))
                logger.warning("negative_price_clamped", row=row_number, value=raw_price)
                unit_price = Decimal("0")

        attributes = {
            header: (parts[i].strip() if i < len(parts) else "")
            for i, header in enumerate(headers)
        }

        result.items.append(StockItem(
            id=item_id,
            raw_id=raw_id,
            expected_quantity=expected_quantity,
            unit_price=unit_price,
            attributes=attributes,
        ))

    result.headers = build_final_headers(headers, mapping)

    if not result.items:
        result.message = NO_VALID_ROWS_MESSAGE

    logger.info(
        "stock_list_parsed",
        item_count=len(result.items),
        skipped=len([i for i in result.issues if i.reason != "negative_price"]),
        currency=result.currency.symbol,
    )

    return result
