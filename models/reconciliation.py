"""
Stock check schemas for validation and serialization.

Request/response models for the stock check API, the discrepancy report
and the saved session snapshot.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field

from models.base import BaseSchema
from models.stock import FieldMapping, ItemStatus


# ===================
# ENUMS
# ===================

class NetDirection(str, Enum):
    """Overall direction of the value discrepancy."""
    LOSS = "LOSS"
    GAIN = "GAIN"
    BALANCED = "BALANCED"


# ===================
# REQUEST SCHEMAS
# ===================

class HeaderDetectRequest(BaseSchema):
    """Pasted text plus whatever mapping the operator already typed."""

    raw_text: str = Field(..., description="Pasted stock data")
    mapping: FieldMapping = Field(default_factory=FieldMapping)


class LoadRequest(BaseSchema):
    """Load a new stock list into the session."""

    raw_text: str = Field(..., description="Pasted comma- or tab-delimited stock data")
    mapping: FieldMapping = Field(..., description="Column roles")


class ScanRequest(BaseSchema):
    """One scanner token."""

    raw_id: str = Field(..., max_length=500, description="Scanned identifier")


class SignOffRequest(BaseSchema):
    """Operator signing off the stock check."""

    colleague_name: str = Field("", max_length=200, description="Name shown on reports")


# ===================
# RESPONSE SCHEMAS
# ===================

class HeaderDetectResponse(BaseSchema):
    """Detected headers and suggested column roles."""

    headers: list[str]
    suggestion: FieldMapping
    mapping: FieldMapping = Field(..., description="Supplied mapping with unset roles filled")
    detected_count: int = Field(..., description="Roles named by the suggestion")
    message: str


class RowIssueResponse(BaseSchema):
    """Skipped or adjusted data row."""

    row: int
    reason: str
    message: str
    value: Optional[str] = None


class LoadResponse(BaseSchema):
    """Outcome of a stock list load."""

    item_count: int
    total_expected_quantity: int
    column_count: int
    headers: list[str]
    currency_symbol: str
    issues: list[RowIssueResponse] = Field(default_factory=list)
    message: str


class StockItemView(BaseSchema):
    """One expected item as displayed in the live table."""

    id: str
    raw_id: str
    expected_quantity: int
    scanned_count: int
    remaining: int = Field(..., ge=0, description="Remaining to scan, never below 0")
    status: ItemStatus
    unit_price: Decimal
    attributes: dict[str, str]


class ItemListResponse(BaseSchema):
    """Live item table."""

    data: list[StockItemView]
    total: int
    headers: list[str]
    unique_id_header: str


class UnexpectedScanView(BaseSchema):
    """Scanned identifier that is not on the list."""

    id: str
    raw_id: str
    count: int


class ScanResponse(BaseSchema):
    """Outcome of one scan."""

    matched: bool
    raw_id: str
    item_id: str
    message: str
    alert: bool = Field(False, description="Over-scan or unexpected item")
    remaining: Optional[int] = None
    scanned_count: Optional[int] = None
    expected_quantity: Optional[int] = None
    status: Optional[ItemStatus] = None
    count: Optional[int] = Field(None, description="Times an unexpected id has been scanned")


class FinancialSummary(BaseSchema):
    """
    Value totals over expected items.

    Unexpected scans carry no value: there is no price for ids outside
    the stock list.
    """

    expected_value: Decimal = Decimal("0")
    scanned_value: Decimal = Decimal("0")
    missing_value: Decimal = Decimal("0")
    over_value: Decimal = Decimal("0")
    net_discrepancy: Decimal = Decimal("0")

    @property
    def net_direction(self) -> NetDirection:
        if self.net_discrepancy < 0:
            return NetDirection.LOSS
        if self.net_discrepancy > 0:
            return NetDirection.GAIN
        return NetDirection.BALANCED


class DiscrepancyRow(BaseSchema):
    """Missing or over-scanned expected item."""

    id: str
    raw_id: str
    attributes: dict[str, str]
    expected_quantity: int
    scanned_count: int
    discrepancy: int = Field(..., description="Expected minus scanned; positive = missing")
    status: str = Field(..., description="MISSING or OVER-SCANNED")
    unit_price: Decimal
    value_discrepancy: Decimal = Field(..., description="Discrepancy times unit price")
    formatted_unit_price: str
    formatted_value_discrepancy: str


class DiscrepancyReport(BaseSchema):
    """End-of-check report."""

    report_id: str
    generated_at: datetime
    signed_off_by: str
    headers: list[str]
    price_header: str
    quantity_header: str
    currency_symbol: str
    missing: list[DiscrepancyRow]
    over_scanned: list[DiscrepancyRow]
    unexpected: list[UnexpectedScanView]
    financial_summary: Optional[FinancialSummary] = Field(
        None, description="Only when a price column is mapped"
    )
    formatted_summary: Optional[dict[str, str]] = None
    net_direction: Optional[NetDirection] = None


class SessionStateResponse(BaseSchema):
    """Session overview."""

    item_count: int
    total_expected_quantity: int
    unexpected_count: int
    headers: list[str]
    mapping: FieldMapping
    currency_symbol: str
    is_demo_data: bool
    last_scanned_id: str
    colleague_name: str


# ===================
# SNAPSHOT SCHEMAS
# ===================

class StockItemState(BaseSchema):
    """Saved form of one expected item."""

    id: str
    raw_id: str
    expected_quantity: int = Field(..., ge=1)
    scanned_count: int = Field(0, ge=0)
    unit_price: Decimal = Field(Decimal("0"), ge=0)
    attributes: dict[str, str] = Field(default_factory=dict)


class UnexpectedScanState(BaseSchema):
    """Saved form of one unexpected scan record."""

    raw_id: str
    count: int = Field(..., ge=1)


class SessionSnapshot(BaseSchema):
    """
    Everything needed to resume a stock check.

    Unexpected scans are kept as (normalized id, record) pairs.
    """

    items: list[StockItemState] = Field(default_factory=list)
    unexpected_scans: list[tuple[str, UnexpectedScanState]] = Field(default_factory=list)
    detected_headers: list[str] = Field(default_factory=list)
    currency_symbol: str = ""
    mapping: FieldMapping = Field(default_factory=FieldMapping)
    is_demo_data: bool = False
    last_scanned_id: str = "N/A"
    colleague_name: str = ""
