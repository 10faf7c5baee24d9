"""
Stock list parsers module.

Value parsing, header detection and delimited stock list ingestion.
"""

from parsers.value_parser import (
    CurrencyContext,
    parse_quantity,
    parse_price,
    detect_currency_symbol,
    format_value,
)
from parsers.header_mapper import (
    detect_headers,
    suggest_mapping,
)
from parsers.stock_list_parser import (
    parse_stock_list,
    StockListParseResult,
    RowIssue,
)

__all__ = [
    "CurrencyContext",
    "parse_quantity",
    "parse_price",
    "detect_currency_symbol",
    "format_value",
    "detect_headers",
    "suggest_mapping",
    "parse_stock_list",
    "StockListParseResult",
    "RowIssue",
]
