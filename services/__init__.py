"""
Business logic services.

Each service handles one domain area.
"""

from services.stock_ledger_service import StockLedger, ScanOutcome, derive_status
from services.reconciliation_service import (
    ReconciliationReporter,
    DiscrepancyClassification,
    generate_report_id,
)
from services.state_store_service import StateStore, get_state_store
from services.session_service import ReconciliationSession, get_session, open_session
from services.export_service import ExportService, get_export_service

__all__ = [
    "StockLedger",
    "ScanOutcome",
    "derive_status",
    "ReconciliationReporter",
    "DiscrepancyClassification",
    "generate_report_id",
    "StateStore",
    "get_state_store",
    "ReconciliationSession",
    "get_session",
    "open_session",
    "ExportService",
    "get_export_service",
]
