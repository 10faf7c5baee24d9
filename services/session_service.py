"""
Reconciliation session - one operator's stock check.

Owns the stock ledger, the currency of the current list, the active
column mapping and the sign-off name. All loads, scans and reports go
through a session; it is the boundary that rejects empty scans and
scans before any list is loaded.

Single operator, single scanner: every call runs to completion before
the next one starts, so there is no locking.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

import structlog

from config import settings
from exceptions import (
    EmptyInputError,
    EmptyScanError,
    MappingRequiredError,
    StateStoreError,
    StockItemNotFoundError,
    StockListNotLoadedError,
)
from models.reconciliation import (
    DiscrepancyReport,
    HeaderDetectResponse,
    ScanResponse,
    SessionSnapshot,
    SessionStateResponse,
    StockItemState,
    StockItemView,
    UnexpectedScanState,
)
from models.stock import FieldMapping, StockItem, UnexpectedScanRecord
from parsers.header_mapper import count_suggested, detect_headers, suggest_mapping
from parsers.stock_list_parser import StockListParseResult, parse_stock_list
from parsers.value_parser import CurrencyContext
from services.reconciliation_service import ReconciliationReporter
from services.state_store_service import StateStore, get_state_store
from services.stock_ledger_service import ScanOutcome, StockLedger, derive_status

logger = structlog.get_logger(__name__)

NO_SCAN_YET = "N/A"

# ===================
# DEMO DATA
# ===================

DEMO_HEADERS = ["Category", "Description", "Asset ID", "Expected Quantity", "Unit Price"]
DEMO_MAPPING = FieldMapping(
    unique_id_header="Asset ID",
    quantity_header="Expected Quantity",
    price_header="Unit Price",
)
DEMO_CURRENCY = "£"
DEMO_ROWS = [
    ("Hardware", "Desktop PC - Model 7", "PC-D7-4822", 5, "£1200.00", "1200.00"),
    ("Software", "Enterprise License Pack", "SOFT-ENT-L9", 15, "€150.00", "150.00"),
    ("Consumable", "A4 Paper Pack - White", "CON-PAP-A4", 50, "2.50", "2.50"),
    ("Tool", "Digital Multimeter", "TOOL-DMM-01", 2, "99.99", "99.99"),
    ("Furniture", "Ergonomic Desk Chair", "FURN-CHR-ERGO", 3, "£0.00", "0.00"),
]


def build_demo_items() -> list[StockItem]:
    """Fresh copies of the demo stock list."""
    return [
        StockItem(
            id=asset_id,
            raw_id=asset_id,
            expected_quantity=quantity,
            unit_price=Decimal(price),
            attributes={
                "Category": category,
                "Description": description,
                "Asset ID": asset_id,
                "Expected Quantity": str(quantity),
                "Unit Price": raw_price,
            },
        )
        for category, description, asset_id, quantity, raw_price, price in DEMO_ROWS
    ]


class ReconciliationSession:
    """
    Stock check session.

    Core methods:
    - suggest_mapping: Detect headers and propose column roles
    - load_stock_list: Parse pasted data and replace the ledger
    - scan: Apply one scanner token
    - reset_scans: Clear all scans, keep the list
    - item_views / report: Read-side views for display and sign-off
    - snapshot / restore: Persistence contract
    """

    def __init__(self, store: Optional[StateStore] = None, autosave: bool = False):
        self.ledger = StockLedger()
        self.currency = CurrencyContext()
        self.mapping = FieldMapping()
        self.headers: list[str] = []
        self.is_demo_data = False
        self.last_scanned_id = NO_SCAN_YET
        self.colleague_name = ""
        self.store = store
        self.autosave = autosave and store is not None

    # ===================
    # LOADING
    # ===================

    def suggest_mapping(self, raw_text: str, mapping: Optional[FieldMapping] = None) -> HeaderDetectResponse:
        """
        Detect headers and suggest column roles.

        Roles already present in `mapping` are never overwritten.
        """
        mapping = mapping or FieldMapping()
        headers = detect_headers(raw_text)
        suggestion = suggest_mapping(headers)
        detected_count = count_suggested(suggestion)

        if detected_count > 0:
            message = f"Auto-detected {detected_count} header(s). Please review the fields and load the data."
        else:
            message = "No headers auto-detected. Please enter the column header names manually."

        return HeaderDetectResponse(
            headers=headers,
            suggestion=suggestion,
            mapping=mapping.merged_with(suggestion),
            detected_count=detected_count,
            message=message,
        )

    def load_stock_list(self, raw_text: str, mapping: FieldMapping) -> StockListParseResult:
        """
        Replace the current stock list with pasted data.

        Nothing changes unless the load succeeds.

        Raises:
            MappingRequiredError: If no unique id header is named
            EmptyInputError: If there is no text or no valid row
            MissingColumnError: If the unique id header is not in the data
        """
        if not mapping.unique_id_header.strip():
            raise MappingRequiredError()

        if not raw_text or not raw_text.strip():
            raise EmptyInputError("Please paste stock data first.")

        result = parse_stock_list(raw_text, mapping)

        if not result.has_data:
            logger.warning("stock_list_empty", message=result.message, issues=len(result.issues))
            raise EmptyInputError(
                result.message,
                details={"data_rows": result.data_rows, "skipped_rows": len(result.issues)},
            )

        self.ledger.load(result.items)
        self.currency = result.currency
        self.headers = result.headers
        self.mapping = mapping
        self.is_demo_data = False
        self.last_scanned_id = NO_SCAN_YET

        logger.info(
            "stock_list_loaded",
            item_count=len(result.items),
            total_expected=result.total_expected_quantity,
            columns=len(result.headers),
            currency=self.currency.symbol,
        )

        self._persist()
        return result

    def load_message(self, result: StockListParseResult) -> str:
        """Operator-facing summary of a successful load."""
        message = (
            f"Successfully loaded {len(result.items)} unique items "
            f"({result.total_expected_quantity} total quantity) with {len(result.headers)} columns."
        )
        if self.mapping.price_header and self.currency.symbol:
            message += f" Detected currency: {self.currency.symbol}."
        elif self.mapping.price_header:
            message += " Price column loaded, but no currency symbol detected; showing raw numbers."
        return message + " Ready to scan!"

    def load_demo(self) -> None:
        """Start over with the built-in demo list."""
        self.ledger.load(build_demo_items())
        self.currency = CurrencyContext(symbol=DEMO_CURRENCY)
        self.headers = list(DEMO_HEADERS)
        self.mapping = DEMO_MAPPING.model_copy()
        self.is_demo_data = True
        self.last_scanned_id = NO_SCAN_YET

        logger.info("demo_data_loaded", item_count=len(DEMO_ROWS))

    # ===================
    # SCANNING
    # ===================

    def scan(self, raw_id: str) -> ScanResponse:
        """
        Apply one scanner token.

        Raises:
            StockListNotLoadedError: If no list is loaded
            EmptyScanError: If the token is blank
        """
        if not self.ledger.is_loaded:
            raise StockListNotLoadedError("scan")

        token = (raw_id or "").strip()
        if not token:
            raise EmptyScanError()

        outcome = self.ledger.apply_scan(token)
        self.last_scanned_id = token

        response = self._scan_response(token, outcome)
        self._persist()
        return response

    def _scan_response(self, token: str, outcome: ScanOutcome) -> ScanResponse:
        if not outcome.matched:
            return ScanResponse(
                matched=False,
                raw_id=outcome.raw_id,
                item_id=outcome.item_id,
                message=f"UNEXPECTED ITEM: ID {token} not on list. Scanned {outcome.count} time(s).",
                alert=True,
                count=outcome.count,
            )

        item = outcome.item
        remaining = outcome.remaining
        if remaining >= 0:
            message = f"SUCCESS: Item {token} checked in. {remaining} remaining."
        elif remaining == -1:
            message = (
                f"OVER-SCAN ALERT: Item {token} is now over its expected quantity "
                f"of {item.expected_quantity}."
            )
        else:
            message = (
                f"OVER-SCAN ALERT: Item {token} scanned again. Count is now "
                f"{item.scanned_count} (Expected {item.expected_quantity})."
            )

        return ScanResponse(
            matched=True,
            raw_id=token,
            item_id=outcome.item_id,
            message=message,
            alert=remaining < 0,
            remaining=remaining,
            scanned_count=item.scanned_count,
            expected_quantity=item.expected_quantity,
            status=outcome.status,
        )

    def reset_scans(self) -> None:
        """Clear every scan; the loaded list, prices and mapping stay."""
        self.ledger.reset_scans()
        self.last_scanned_id = NO_SCAN_YET
        self._persist()

    def sign_off(self, colleague_name: str) -> None:
        self.colleague_name = (colleague_name or "").strip()
        self._persist()

    # ===================
    # VIEWS
    # ===================

    @property
    def reporter(self) -> ReconciliationReporter:
        return ReconciliationReporter(self.ledger, self.currency)

    def item_view(self, item: StockItem) -> StockItemView:
        return StockItemView(
            id=item.id,
            raw_id=item.raw_id,
            expected_quantity=item.expected_quantity,
            scanned_count=item.scanned_count,
            remaining=max(item.remaining, 0),
            status=derive_status(item.expected_quantity, item.scanned_count),
            unit_price=item.unit_price,
            attributes=item.attributes,
        )

    def item_views(self, filter_text: Optional[str] = None) -> list[StockItemView]:
        """
        Live item rows, optionally filtered.

        The filter is a case-insensitive substring match over the id, the
        counts, the price and every original column value.
        """
        needle = (filter_text or "").strip().upper()
        views = []
        for item in self.ledger.items:
            if needle and needle not in _search_text(item):
                continue
            views.append(self.item_view(item))
        return views

    def get_item_view(self, raw_id: str) -> StockItemView:
        item = self.ledger.get_item(raw_id)
        if item is None:
            raise StockItemNotFoundError(raw_id)
        return self.item_view(item)

    def report(self, now: Optional[datetime] = None) -> DiscrepancyReport:
        """
        End-of-check discrepancy report.

        Raises:
            StockListNotLoadedError: If no list is loaded
        """
        if not self.ledger.is_loaded:
            raise StockListNotLoadedError("report")
        return self.reporter.build_report(
            mapping=self.mapping,
            headers=self.headers,
            colleague_name=self.colleague_name,
            now=now,
        )

    def state(self) -> SessionStateResponse:
        return SessionStateResponse(
            item_count=len(self.ledger.items),
            total_expected_quantity=self.ledger.total_expected_quantity,
            unexpected_count=len(self.ledger.unexpected_scans),
            headers=self.headers,
            mapping=self.mapping,
            currency_symbol=self.currency.symbol,
            is_demo_data=self.is_demo_data,
            last_scanned_id=self.last_scanned_id,
            colleague_name=self.colleague_name,
        )

    # ===================
    # PERSISTENCE
    # ===================

    def snapshot(self) -> SessionSnapshot:
        """Serializable copy of the whole session."""
        return SessionSnapshot(
            items=[
                StockItemState(
                    id=item.id,
                    raw_id=item.raw_id,
                    expected_quantity=item.expected_quantity,
                    scanned_count=item.scanned_count,
                    unit_price=item.unit_price,
                    attributes=dict(item.attributes),
                )
                for item in self.ledger.items
            ],
            unexpected_scans=[
                (key, UnexpectedScanState(raw_id=record.raw_id, count=record.count))
                for key, record in self.ledger.unexpected_scans
            ],
            detected_headers=list(self.headers),
            currency_symbol=self.currency.symbol,
            mapping=self.mapping,
            is_demo_data=self.is_demo_data,
            last_scanned_id=self.last_scanned_id,
            colleague_name=self.colleague_name,
        )

    def restore(self, snapshot: SessionSnapshot) -> None:
        """Replace the whole session with a saved snapshot."""
        self.ledger.restore(
            items=[
                StockItem(
                    id=state.id,
                    raw_id=state.raw_id,
                    expected_quantity=state.expected_quantity,
                    scanned_count=state.scanned_count,
                    unit_price=state.unit_price,
                    attributes=dict(state.attributes),
                )
                for state in snapshot.items
            ],
            unexpected=[
                (key, UnexpectedScanRecord(raw_id=state.raw_id, count=state.count))
                for key, state in snapshot.unexpected_scans
            ],
        )
        self.currency = CurrencyContext(symbol=snapshot.currency_symbol)
        self.headers = list(snapshot.detected_headers)
        self.mapping = snapshot.mapping
        self.is_demo_data = snapshot.is_demo_data
        self.last_scanned_id = snapshot.last_scanned_id
        self.colleague_name = snapshot.colleague_name

    def reset_app(self) -> None:
        """Forget everything (saved state included) and start from the demo list."""
        if self.store is not None:
            self.store.clear()
        self.colleague_name = ""
        self.load_demo()
        self._persist()
        logger.info("session_reset")

    def _persist(self) -> None:
        if self.autosave:
            self.store.save(self.snapshot())


def _search_text(item: StockItem) -> str:
    values = [
        item.id,
        item.raw_id,
        str(item.expected_quantity),
        str(item.scanned_count),
        str(item.unit_price),
        *item.attributes.values(),
    ]
    return " ".join(values).upper()


def open_session(store: Optional[StateStore] = None) -> ReconciliationSession:
    """
    Build a session from saved state.

    Falls back to the demo list (when enabled) if nothing was saved. An
    unreadable state file is discarded so the session still starts.
    """
    store = store or get_state_store()
    session = ReconciliationSession(store=store, autosave=settings.autosave_state)

    try:
        snapshot = store.load()
    except StateStoreError as e:
        logger.error("state_restore_failed", path=str(store.path), error=e.message)
        store.clear()
        snapshot = None

    if snapshot is not None:
        session.restore(snapshot)
        logger.info("session_restored", item_count=len(snapshot.items))
    elif settings.load_demo_on_start:
        session.load_demo()
        session._persist()

    return session


# Singleton instance
_session: Optional[ReconciliationSession] = None


def get_session() -> ReconciliationSession:
    """Get or create the application's ReconciliationSession."""
    global _session
    if _session is None:
        _session = open_session()
    return _session
