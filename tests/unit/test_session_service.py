"""
Unit tests for the reconciliation session - load, scan and view flow.
"""

from datetime import datetime
from unittest.mock import patch

import pytest

from exceptions import (
    EmptyInputError,
    EmptyScanError,
    MappingRequiredError,
    MissingColumnError,
    StockItemNotFoundError,
    StockListNotLoadedError,
)
from models.stock import FieldMapping, ItemStatus
from services.session_service import (
    DEMO_HEADERS,
    ReconciliationSession,
    build_demo_items,
    open_session,
)


# ===================
# MAPPING SUGGESTION TESTS
# ===================

class TestSuggestMapping:
    """Tests for header detection through the session."""

    def test_fills_empty_mapping(self, session, sample_stock_csv):
        response = session.suggest_mapping(sample_stock_csv)

        assert response.headers == ["Category", "Description", "SKU", "Qty", "Unit Price"]
        assert response.mapping.unique_id_header == "SKU"
        assert response.detected_count == 3
        assert response.message.startswith("Auto-detected 3 header(s)")

    def test_keeps_supplied_roles(self, session, sample_stock_csv):
        response = session.suggest_mapping(sample_stock_csv, FieldMapping(unique_id_header="Description"))

        assert response.mapping.unique_id_header == "Description"
        assert response.mapping.quantity_header == "Qty"
        assert response.suggestion.unique_id_header == "SKU"

    def test_nothing_detected(self, session):
        response = session.suggest_mapping("")

        assert response.headers == []
        assert response.detected_count == 0
        assert response.message.startswith("No headers auto-detected")


# ===================
# LOAD TESTS
# ===================

class TestLoadStockList:
    """Tests for replacing the stock list."""

    def test_load(self, session, sample_stock_csv, sample_mapping):
        result = session.load_stock_list(sample_stock_csv, sample_mapping)

        assert len(result.items) == 3
        assert session.currency.symbol == "£"
        assert session.mapping == sample_mapping
        assert session.last_scanned_id == "N/A"
        assert not session.is_demo_data

    def test_load_message(self, session, sample_stock_csv, sample_mapping):
        result = session.load_stock_list(sample_stock_csv, sample_mapping)

        message = session.load_message(result)

        assert message.startswith("Successfully loaded 3 unique items (15 total quantity) with 5 columns.")
        assert "Detected currency: £." in message

    def test_load_message_without_symbol(self, session, sample_stock_tsv, tsv_mapping):
        result = session.load_stock_list(sample_stock_tsv, tsv_mapping)
        assert "no currency symbol detected" in session.load_message(result)

    def test_unique_id_header_required(self, session, sample_stock_csv):
        with pytest.raises(MappingRequiredError):
            session.load_stock_list(sample_stock_csv, FieldMapping(quantity_header="Qty"))

    def test_empty_text_rejected(self, session, sample_mapping):
        with pytest.raises(EmptyInputError):
            session.load_stock_list("   ", sample_mapping)

    def test_no_valid_rows_keeps_previous_list(self, loaded_session, sample_mapping):
        with pytest.raises(EmptyInputError) as exc_info:
            loaded_session.load_stock_list("Category,Description,SKU,Qty,Unit Price\n,,,,", sample_mapping)

        assert "No valid stock items" in exc_info.value.message
        assert len(loaded_session.ledger.items) == 3

    def test_missing_column_keeps_previous_list(self, loaded_session):
        loaded_session.scan("LT-100")

        with pytest.raises(MissingColumnError):
            loaded_session.load_stock_list("Barcode\n123", FieldMapping(unique_id_header="SKU"))

        assert loaded_session.ledger.get_item("LT-100").scanned_count == 1

    def test_reload_clears_scans(self, loaded_session, sample_stock_csv, sample_mapping):
        loaded_session.scan("LT-100")
        loaded_session.scan("NOPE")

        loaded_session.load_stock_list(sample_stock_csv, sample_mapping)

        assert loaded_session.ledger.get_item("LT-100").scanned_count == 0
        assert loaded_session.ledger.unexpected_scans == []


# ===================
# SCAN TESTS
# ===================

class TestScan:
    """Tests for scan feedback."""

    def test_scan_before_load(self, session):
        with pytest.raises(StockListNotLoadedError) as exc_info:
            session.scan("LT-100")

        assert exc_info.value.status_code == 409

    @pytest.mark.parametrize("token", ["", "   ", None])
    def test_empty_scan_rejected(self, loaded_session, token):
        with pytest.raises(EmptyScanError):
            loaded_session.scan(token)

        assert loaded_session.ledger.unexpected_scans == []

    def test_success_message(self, loaded_session):
        response = loaded_session.scan(" dk-200 ")

        assert response.matched
        assert response.raw_id == "dk-200"
        assert response.item_id == "DK-200"
        assert response.remaining == 1
        assert response.status == ItemStatus.PARTIAL
        assert not response.alert
        assert response.message == "SUCCESS: Item dk-200 checked in. 1 remaining."
        assert loaded_session.last_scanned_id == "dk-200"

    def test_first_over_scan_message(self, loaded_session):
        loaded_session.scan("DK-200")
        loaded_session.scan("DK-200")
        response = loaded_session.scan("DK-200")

        assert response.alert
        assert response.remaining == -1
        assert response.message == "OVER-SCAN ALERT: Item DK-200 is now over its expected quantity of 2."

    def test_repeat_over_scan_message(self, loaded_session):
        for _ in range(3):
            loaded_session.scan("DK-200")
        response = loaded_session.scan("DK-200")

        assert response.status == ItemStatus.OVER_SCAN
        assert response.message == "OVER-SCAN ALERT: Item DK-200 scanned again. Count is now 4 (Expected 2)."

    def test_unexpected_message(self, loaded_session):
        loaded_session.scan("mystery")
        response = loaded_session.scan("MYSTERY")

        assert not response.matched
        assert response.alert
        assert response.count == 2
        assert response.raw_id == "mystery"
        assert response.message == "UNEXPECTED ITEM: ID MYSTERY not on list. Scanned 2 time(s)."

    def test_reset_scans(self, loaded_session):
        loaded_session.scan("LT-100")
        loaded_session.scan("mystery")

        loaded_session.reset_scans()

        assert loaded_session.last_scanned_id == "N/A"
        assert loaded_session.ledger.get_item("LT-100").scanned_count == 0
        assert loaded_session.ledger.unexpected_scans == []
        assert len(loaded_session.ledger.items) == 3

    def test_reset_scans_clears_discrepancies(self, loaded_session):
        for token in ["DK-200"] * 3 + ["LT-100", "mystery"]:
            loaded_session.scan(token)

        loaded_session.reset_scans()
        result = loaded_session.reporter.classify()

        assert result.over_scanned == []
        assert result.unexpected == []
        assert [item.id for item in result.missing] == ["LT-100", "DK-200", "TN-300"]
        assert all(view.status == ItemStatus.PENDING for view in loaded_session.item_views())


# ===================
# VIEW TESTS
# ===================

class TestViews:
    """Tests for item views, report and state."""

    def test_item_views_clamp_remaining(self, loaded_session):
        for _ in range(3):
            loaded_session.scan("DK-200")

        view = loaded_session.get_item_view("dk-200")

        assert view.remaining == 0
        assert view.scanned_count == 3
        assert view.status == ItemStatus.OVER_SCAN

    def test_filter_matches_any_column(self, loaded_session):
        assert [v.id for v in loaded_session.item_views("toner")] == ["TN-300"]
        assert [v.id for v in loaded_session.item_views("HARDWARE")] == ["LT-100", "DK-200"]
        assert len(loaded_session.item_views("")) == 3
        assert loaded_session.item_views("no such thing") == []

    def test_unknown_item(self, loaded_session):
        with pytest.raises(StockItemNotFoundError):
            loaded_session.get_item_view("NOPE")

    def test_report_before_load(self, session):
        with pytest.raises(StockListNotLoadedError):
            session.report()

    def test_report_uses_sign_off(self, loaded_session):
        loaded_session.sign_off("  Jo Smith ")

        report = loaded_session.report(now=datetime(2026, 1, 19, 14, 30, 5))

        assert report.signed_off_by == "Jo Smith"
        assert report.report_id == "INVENTORY_REPORT_20260119_143005_JO_SMITH"
        assert report.formatted_summary["expected_value"] == "£3141.00"

    def test_state(self, loaded_session):
        loaded_session.scan("mystery")

        state = loaded_session.state()

        assert state.item_count == 3
        assert state.total_expected_quantity == 15
        assert state.unexpected_count == 1
        assert state.last_scanned_id == "mystery"
        assert state.currency_symbol == "£"


# ===================
# DEMO / PERSISTENCE TESTS
# ===================

class TestDemoAndSnapshot:
    """Tests for demo data and snapshot round trip."""

    def test_demo_data(self, session):
        session.load_demo()

        assert session.is_demo_data
        assert session.headers == DEMO_HEADERS
        assert session.currency.symbol == "£"
        assert session.mapping.unique_id_header == "Asset ID"
        assert session.ledger.total_expected_quantity == 75
        assert session.ledger.get_item("pc-d7-4822").expected_quantity == 5

    def test_demo_items_are_fresh_copies(self):
        first = build_demo_items()
        first[0].scanned_count = 9

        assert build_demo_items()[0].scanned_count == 0

    def test_snapshot_restore(self, loaded_session):
        loaded_session.scan("LT-100")
        loaded_session.scan("mystery")
        loaded_session.sign_off("Jo")

        restored = ReconciliationSession()
        restored.restore(loaded_session.snapshot())

        assert restored.ledger.get_item("LT-100").scanned_count == 1
        assert restored.ledger.unexpected_scans[0][0] == "MYSTERY"
        assert restored.currency.symbol == "£"
        assert restored.mapping == loaded_session.mapping
        assert restored.colleague_name == "Jo"
        assert restored.scan("MYSTERY").count == 2

    def test_autosave_writes_snapshot(self, stored_session, state_store):
        stored_session.scan("PC-D7-4822")

        saved = state_store.load()

        assert saved is not None
        assert saved.last_scanned_id == "PC-D7-4822"

    def test_reset_app_returns_to_demo(self, stored_session, sample_stock_csv, sample_mapping):
        stored_session.load_stock_list(sample_stock_csv, sample_mapping)
        stored_session.sign_off("Jo")

        stored_session.reset_app()

        assert stored_session.is_demo_data
        assert stored_session.colleague_name == ""
        assert stored_session.ledger.get_item("LT-100") is None

    def test_open_session_restores_saved_state(self, stored_session, state_store):
        stored_session.scan("TOOL-DMM-01")

        reopened = open_session(store=state_store)

        assert reopened.ledger.get_item("TOOL-DMM-01").scanned_count == 1

    def test_open_session_without_state_uses_demo(self, state_store):
        with patch("services.session_service.settings") as mock_settings:
            mock_settings.autosave_state = False
            mock_settings.load_demo_on_start = True
            session = open_session(store=state_store)

        assert session.is_demo_data
        assert state_store.load() is None

    def test_open_session_discards_unreadable_state(self, state_store):
        state_store.path.parent.mkdir(parents=True, exist_ok=True)
        state_store.path.write_text("{bad", encoding="utf-8")

        with patch("services.session_service.settings") as mock_settings:
            mock_settings.autosave_state = False
            mock_settings.load_demo_on_start = True
            session = open_session(store=state_store)

        assert session.is_demo_data
        assert not state_store.path.exists()
