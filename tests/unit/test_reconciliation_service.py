"""
Unit tests for discrepancy classification and value totals.
"""

from datetime import datetime
from decimal import Decimal

import pytest

from models.reconciliation import NetDirection
from models.stock import FieldMapping
from parsers.value_parser import CurrencyContext
from services.reconciliation_service import ReconciliationReporter, generate_report_id
from services.stock_ledger_service import StockLedger
from tests.factories import StockItemFactory
from utils.text_utils import clean_report_name


PRICED_MAPPING = FieldMapping(unique_id_header="SKU", quantity_header="Qty", price_header="Price")


def make_ledger(*items) -> StockLedger:
    ledger = StockLedger()
    ledger.load(list(items))
    return ledger


def scan(ledger: StockLedger, token: str, times: int = 1) -> None:
    for _ in range(times):
        ledger.apply_scan(token)


@pytest.fixture
def two_item_ledger() -> StockLedger:
    """A(expected 5, 2.00) scanned 3 times; B(expected 1, 10.00) never; X scanned twice."""
    ledger = make_ledger(
        StockItemFactory.create(raw_id="A", expected_quantity=5, unit_price="2.00"),
        StockItemFactory.create(raw_id="B", expected_quantity=1, unit_price="10.00"),
    )
    scan(ledger, "A", 3)
    scan(ledger, "X", 2)
    return ledger


# ===================
# REPORT ID TESTS
# ===================

class TestReportId:
    """Tests for report id and name cleaning."""

    def test_format(self):
        now = datetime(2026, 1, 19, 14, 30, 5)
        assert generate_report_id("Jo Smith", now) == "INVENTORY_REPORT_20260119_143005_JO_SMITH"

    def test_blank_name(self):
        now = datetime(2026, 1, 19, 9, 5, 0)
        assert generate_report_id("  ", now) == "INVENTORY_REPORT_20260119_090500_UNSPECIFIED_USER"

    @pytest.mark.parametrize("name,expected", [
        ("ann-marie o'neil", "ANN_MARIE_ONEIL"),
        ("Jo_Smith", "JO_SMITH"),
        ("Zoë #2", "ZO_2"),
        (None, "UNSPECIFIED_USER"),
    ])
    def test_clean_report_name(self, name, expected):
        assert clean_report_name(name) == expected


# ===================
# CLASSIFICATION TESTS
# ===================

class TestClassify:
    """Tests for missing / over-scanned / unexpected lists."""

    def test_two_item_example(self, two_item_ledger):
        result = ReconciliationReporter(two_item_ledger).classify()

        assert [item.id for item in result.missing] == ["A", "B"]
        assert result.missing[0].remaining == 2
        assert result.missing[1].remaining == 1
        assert result.over_scanned == []
        assert [(key, record.count) for key, record in result.unexpected] == [("X", 2)]
        assert not result.is_clean

    def test_complete_items_are_not_discrepancies(self):
        ledger = make_ledger(StockItemFactory.create(raw_id="C", expected_quantity=2))
        scan(ledger, "C", 2)

        result = ReconciliationReporter(ledger).classify()

        assert result.missing == []
        assert result.over_scanned == []
        assert result.is_clean

    def test_over_scanned(self):
        ledger = make_ledger(StockItemFactory.create(raw_id="O", expected_quantity=1))
        scan(ledger, "O", 3)

        result = ReconciliationReporter(ledger).classify()

        assert [item.id for item in result.over_scanned] == ["O"]
        assert result.over_scanned[0].remaining == -2

    def test_classification_is_read_only(self, two_item_ledger):
        reporter = ReconciliationReporter(two_item_ledger)
        reporter.classify()
        reporter.financial_summary()

        assert two_item_ledger.get_item("A").scanned_count == 3
        assert two_item_ledger.unexpected_scans[0][1].count == 2


# ===================
# FINANCIAL SUMMARY TESTS
# ===================

class TestFinancialSummary:
    """Tests for value totals."""

    def test_two_item_example(self, two_item_ledger):
        summary = ReconciliationReporter(two_item_ledger).financial_summary()

        assert summary.expected_value == Decimal("20.00")
        assert summary.scanned_value == Decimal("6.00")
        assert summary.missing_value == Decimal("14.00")
        assert summary.over_value == Decimal("0")
        assert summary.net_discrepancy == Decimal("-14.00")
        assert summary.net_direction == NetDirection.LOSS

    def test_net_equals_over_minus_missing(self):
        ledger = make_ledger(
            StockItemFactory.create(raw_id="M", expected_quantity=4, unit_price="3.00"),
            StockItemFactory.create(raw_id="O", expected_quantity=1, unit_price="7.50"),
        )
        scan(ledger, "M", 1)
        scan(ledger, "O", 4)

        summary = ReconciliationReporter(ledger).financial_summary()

        assert summary.missing_value == Decimal("9.00")
        assert summary.over_value == Decimal("22.50")
        assert summary.net_discrepancy == summary.over_value - summary.missing_value
        assert summary.net_discrepancy == summary.scanned_value - summary.expected_value
        assert summary.net_direction == NetDirection.GAIN

    def test_unexpected_scans_carry_no_value(self):
        ledger = make_ledger(StockItemFactory.create(raw_id="A", expected_quantity=1, unit_price="5.00"))
        scan(ledger, "A")
        scan(ledger, "GHOST", 10)

        summary = ReconciliationReporter(ledger).financial_summary()

        assert summary.over_value == Decimal("0")
        assert summary.net_direction == NetDirection.BALANCED

    def test_format_summary(self, two_item_ledger):
        reporter = ReconciliationReporter(two_item_ledger, CurrencyContext("£"))
        formatted = reporter.format_summary(reporter.financial_summary())

        assert formatted["expected_value"] == "£20.00"
        assert formatted["missing_value"] == "£14.00"
        assert formatted["net_discrepancy"] == "£14.00"
        assert formatted["net_label"] == "LOSS of £14.00"


# ===================
# REPORT TESTS
# ===================

class TestBuildReport:
    """Tests for the end-of-check report."""

    def test_discrepancy_rows(self, two_item_ledger):
        reporter = ReconciliationReporter(two_item_ledger, CurrencyContext("£"))
        report = reporter.build_report(PRICED_MAPPING, ["SKU"], "Jo Smith", now=datetime(2026, 1, 19, 14, 30, 5))

        row_a, row_b = report.missing
        assert row_a.discrepancy == 2
        assert row_a.status == "MISSING"
        assert row_a.value_discrepancy == Decimal("4.00")
        assert row_a.formatted_value_discrepancy == "£4.00"
        assert row_b.value_discrepancy == Decimal("10.00")
        assert report.unexpected[0].raw_id == "X"
        assert report.report_id == "INVENTORY_REPORT_20260119_143005_JO_SMITH"
        assert report.signed_off_by == "Jo Smith"
        assert report.net_direction == NetDirection.LOSS

    def test_over_scanned_row_is_negative(self):
        ledger = make_ledger(StockItemFactory.create(raw_id="O", expected_quantity=1, unit_price="6.00"))
        scan(ledger, "O", 2)

        report = ReconciliationReporter(ledger, CurrencyContext("£")).build_report(PRICED_MAPPING, ["SKU"])
        row = report.over_scanned[0]

        assert row.discrepancy == -1
        assert row.status == "OVER-SCANNED"
        assert row.formatted_value_discrepancy == "£-6.00"

    def test_no_price_column_no_summary(self, two_item_ledger):
        report = ReconciliationReporter(two_item_ledger).build_report(
            FieldMapping(unique_id_header="SKU"), ["SKU"]
        )

        assert report.financial_summary is None
        assert report.formatted_summary is None
        assert report.net_direction is None
        assert len(report.missing) == 2
