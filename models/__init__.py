"""
Models for validation and serialization.
"""

from models.base import BaseSchema
from models.stock import (
    ItemStatus,
    StockItem,
    UnexpectedScanRecord,
    FieldMapping,
)
from models.reconciliation import (
    NetDirection,
    HeaderDetectRequest,
    HeaderDetectResponse,
    LoadRequest,
    LoadResponse,
    RowIssueResponse,
    ScanRequest,
    ScanResponse,
    SignOffRequest,
    StockItemView,
    ItemListResponse,
    UnexpectedScanView,
    FinancialSummary,
    DiscrepancyRow,
    DiscrepancyReport,
    SessionStateResponse,
    StockItemState,
    UnexpectedScanState,
    SessionSnapshot,
)

__all__ = [
    # Base
    "BaseSchema",

    # Stock
    "ItemStatus",
    "StockItem",
    "UnexpectedScanRecord",
    "FieldMapping",

    # Reconciliation
    "NetDirection",
    "HeaderDetectRequest",
    "HeaderDetectResponse",
    "LoadRequest",
    "LoadResponse",
    "RowIssueResponse",
    "ScanRequest",
    "ScanResponse",
    "SignOffRequest",
    "StockItemView",
    "ItemListResponse",
    "UnexpectedScanView",
    "FinancialSummary",
    "DiscrepancyRow",
    "DiscrepancyReport",
    "SessionStateResponse",

    # Snapshot
    "StockItemState",
    "UnexpectedScanState",
    "SessionSnapshot",
]
