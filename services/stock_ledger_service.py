"""
Stock Ledger Service - live expected vs scanned counts.

Owns the expected items of the current stock list, an id index for
constant-time scan matching, and the registry of scans that matched no
expected item. Scans only ever bump a scanned count or grow the
registry; they never add or remove expected items.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from exceptions import EmptyInputError
from models.stock import ItemStatus, StockItem, UnexpectedScanRecord
from utils.text_utils import normalize_item_id

logger = structlog.get_logger(__name__)


def derive_status(expected_quantity: int, scanned_count: int) -> ItemStatus:
    """
    Status of an item from its expected and scanned counts.

    remaining == expected -> PENDING
    0 < remaining < expected -> PARTIAL
    remaining == 0 -> COMPLETE
    remaining < 0 -> OVER_SCAN
    """
    remaining = expected_quantity - scanned_count
    if remaining == expected_quantity:
        return ItemStatus.PENDING
    if remaining > 0:
        return ItemStatus.PARTIAL
    if remaining == 0:
        return ItemStatus.COMPLETE
    return ItemStatus.OVER_SCAN


@dataclass
class ScanOutcome:
    """Result of applying one scan to the ledger."""
    matched: bool
    raw_id: str
    item_id: str
    item: Optional[StockItem] = None
    remaining: Optional[int] = None
    count: Optional[int] = None  # Unexpected scans only

    @property
    def status(self) -> Optional[ItemStatus]:
        if self.item is None:
            return None
        return derive_status(self.item.expected_quantity, self.item.scanned_count)


class StockLedger:
    """
    Expected stock and scan state for one session.

    Core methods:
    - load: Replace the stock list and clear unexpected scans
    - apply_scan: Count one scan against an item or the unexpected registry
    - reset_scans: Zero every scanned count and clear unexpected scans
    - restore: Rebuild from a saved snapshot
    """

    def __init__(self):
        self._items: list[StockItem] = []
        self._index: dict[str, int] = {}
        self._unexpected: dict[str, UnexpectedScanRecord] = {}

    # ===================
    # STATE CHANGES
    # ===================

    def load(self, items: list[StockItem]) -> None:
        """
        Replace the expected stock.

        Raises:
            EmptyInputError: If items is empty (the ledger is left unchanged)
        """
        if not items:
            raise EmptyInputError("Cannot load an empty stock list.")

        self._items = list(items)
        self._rebuild_index()
        self._unexpected.clear()

        logger.info(
            "ledger_loaded",
            item_count=len(self._items),
            total_expected=self.total_expected_quantity,
        )

    def restore(
        self,
        items: list[StockItem],
        unexpected: list[tuple[str, UnexpectedScanRecord]],
    ) -> None:
        """Restore items and unexpected scans exactly as saved."""
        self._items = list(items)
        self._rebuild_index()
        self._unexpected = {normalize_item_id(key): record for key, record in unexpected}

        logger.info(
            "ledger_restored",
            item_count=len(self._items),
            unexpected_count=len(self._unexpected),
        )

    def apply_scan(self, raw_id: str) -> ScanOutcome:
        """
        Apply one scan.

        A matching item has its scanned count incremented, with no upper
        limit. Anything else is counted in the unexpected registry under
        its normalized id, keeping the first raw text seen.

        Args:
            raw_id: Scanned token (the caller rejects empty tokens)

        Returns:
            ScanOutcome describing the match or the unexpected count
        """
        item_id = normalize_item_id(raw_id)
        position = self._index.get(item_id)

        if position is not None:
            item = self._items[position]
            item.scanned_count += 1

            logger.debug(
                "scan_matched",
                item_id=item_id,
                scanned=item.scanned_count,
                remaining=item.remaining,
            )
            return ScanOutcome(
                matched=True,
                raw_id=raw_id,
                item_id=item_id,
                item=item,
                remaining=item.remaining,
            )

        record = self._unexpected.get(item_id)
        if record is None:
            record = UnexpectedScanRecord(raw_id=raw_id, count=1)
            self._unexpected[item_id] = record
        else:
            record.count += 1

        logger.info("scan_unexpected", item_id=item_id, count=record.count)
        return ScanOutcome(
            matched=False,
            raw_id=record.raw_id,
            item_id=item_id,
            count=record.count,
        )

    def reset_scans(self) -> None:
        """Zero scanned counts and clear unexpected scans; the list is kept."""
        for item in self._items:
            item.scanned_count = 0
        self._unexpected.clear()

        logger.info("ledger_scans_reset", item_count=len(self._items))

    def _rebuild_index(self) -> None:
        self._index = {item.id: position for position, item in enumerate(self._items)}

    # ===================
    # QUERIES
    # ===================

    @property
    def items(self) -> list[StockItem]:
        """Expected items in list order."""
        return list(self._items)

    @property
    def unexpected_scans(self) -> list[tuple[str, UnexpectedScanRecord]]:
        """(normalized id, record) pairs in first-scan order."""
        return list(self._unexpected.items())

    @property
    def is_loaded(self) -> bool:
        return bool(self._items)

    @property
    def total_expected_quantity(self) -> int:
        return sum(item.expected_quantity for item in self._items)

    def get_item(self, raw_id: str) -> Optional[StockItem]:
        """Look up an expected item by any spelling of its id."""
        position = self._index.get(normalize_item_id(raw_id))
        if position is None:
            return None
        return self._items[position]

    def status_of(self, item: StockItem) -> ItemStatus:
        return derive_status(item.expected_quantity, item.scanned_count)
