"""
Stock list domain models.

- StockItem: one expected inventory line, mutated only by the ledger
- UnexpectedScanRecord: a scanned identifier that is not on the list
- ItemStatus: live status derived from expected vs scanned counts
- FieldMapping: caller-declared column roles for a pasted stock list
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from pydantic import Field

from models.base import BaseSchema


# ===================
# ENUMS
# ===================

class ItemStatus(str, Enum):
    """Scan progress of a single expected item."""
    PENDING = "PENDING"        # Nothing scanned yet
    PARTIAL = "PARTIAL"        # Some scanned, some remaining
    COMPLETE = "COMPLETE"      # Scanned exactly the expected quantity
    OVER_SCAN = "OVER_SCAN"    # Scanned more than expected


# ===================
# DOMAIN RECORDS
# ===================

@dataclass
class StockItem:
    """
    Expected inventory line.

    `id` is the normalized key and never changes after ingestion.
    `attributes` keeps every original column (header -> raw cell text)
    in source order for display and export.
    """
    id: str
    raw_id: str
    expected_quantity: int = 1
    scanned_count: int = 0
    unit_price: Decimal = field(default_factory=lambda: Decimal("0"))
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def remaining(self) -> int:
        """Expected minus scanned; negative means over-scanned."""
        return self.expected_quantity - self.scanned_count

    @property
    def expected_value(self) -> Decimal:
        return self.expected_quantity * self.unit_price

    @property
    def scanned_value(self) -> Decimal:
        return self.scanned_count * self.unit_price


@dataclass
class UnexpectedScanRecord:
    """Scanned identifier with no expected item; keeps the first-seen text."""
    raw_id: str
    count: int = 1


# ===================
# MAPPING
# ===================

class FieldMapping(BaseSchema):
    """
    Column roles for a stock list.

    Header names are matched case-insensitively against the detected
    headers. Only the unique id header is needed to load.
    """

    unique_id_header: str = Field(
        default="",
        description="Column holding the unique item identifier"
    )
    quantity_header: str = Field(
        default="",
        description="Column holding the expected quantity (optional)"
    )
    price_header: str = Field(
        default="",
        description="Column holding the unit price (optional)"
    )

    @property
    def is_empty(self) -> bool:
        """True when no role has been named."""
        return not (self.unique_id_header or self.quantity_header or self.price_header)

    def merged_with(self, suggestion: "FieldMapping") -> "FieldMapping":
        """Fill unset roles from a suggestion; supplied roles are kept."""
        return FieldMapping(
            unique_id_header=self.unique_id_header or suggestion.unique_id_header,
            quantity_header=self.quantity_header or suggestion.quantity_header,
            price_header=self.price_header or suggestion.price_header,
        )
