"""
Reconciliation service - discrepancy classification and value totals.

Read-only over the stock ledger: nothing here changes scanned counts
or the unexpected registry.

Classification:
- missing: remaining > 0
- over_scanned: remaining < 0
- unexpected: every unexpected scan record
Completed items (remaining == 0) are not discrepancies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

import structlog

from models.reconciliation import (
    DiscrepancyReport,
    DiscrepancyRow,
    FinancialSummary,
    UnexpectedScanView,
)
from models.stock import FieldMapping, StockItem, UnexpectedScanRecord
from parsers.value_parser import CurrencyContext
from services.stock_ledger_service import StockLedger
from utils.text_utils import clean_report_name

logger = structlog.get_logger(__name__)


def generate_report_id(colleague_name: Optional[str], now: Optional[datetime] = None) -> str:
    """
    Filename-friendly report id from time and operator name.

    Example: INVENTORY_REPORT_20260119_143005_JO_SMITH
    """
    now = now or datetime.now()
    return (
        f"INVENTORY_REPORT_{now.strftime('%Y%m%d')}_{now.strftime('%H%M%S')}"
        f"_{clean_report_name(colleague_name)}"
    )


@dataclass
class DiscrepancyClassification:
    """Expected items that are off, plus scans not on the list."""
    missing: list[StockItem] = field(default_factory=list)
    over_scanned: list[StockItem] = field(default_factory=list)
    unexpected: list[tuple[str, UnexpectedScanRecord]] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        """True when every item is complete and nothing unexpected was scanned."""
        return not (self.missing or self.over_scanned or self.unexpected)


class ReconciliationReporter:
    """
    Discrepancy reporting over one ledger.

    Core methods:
    - classify: missing / over-scanned / unexpected lists
    - financial_summary: expected, scanned, missing, over and net value
    - build_report: full end-of-check report with formatted amounts
    """

    def __init__(self, ledger: StockLedger, currency: Optional[CurrencyContext] = None):
        self.ledger = ledger
        self.currency = currency or CurrencyContext()

    def classify(self) -> DiscrepancyClassification:
        """Split expected items by remaining count and list unexpected scans."""
        result = DiscrepancyClassification(unexpected=self.ledger.unexpected_scans)

        for item in self.ledger.items:
            if item.remaining > 0:
                result.missing.append(item)
            elif item.remaining < 0:
                result.over_scanned.append(item)

        return result

    def financial_summary(self) -> FinancialSummary:
        """
        Value totals over expected items.

        Per item, scanned value minus expected value goes to missing value
        when negative and to over value when positive. Net discrepancy is
        scanned minus expected, so it always equals over minus missing.
        """
        expected_value = Decimal("0")
        scanned_value = Decimal("0")
        missing_value = Decimal("0")
        over_value = Decimal("0")

        for item in self.ledger.items:
            item_expected = item.expected_value
            item_scanned = item.scanned_value

            expected_value += item_expected
            scanned_value += item_scanned

            discrepancy = item_scanned - item_expected
            if discrepancy < 0:
                missing_value += -discrepancy
            elif discrepancy > 0:
                over_value += discrepancy

        return FinancialSummary(
            expected_value=expected_value,
            scanned_value=scanned_value,
            missing_value=missing_value,
            over_value=over_value,
            net_discrepancy=scanned_value - expected_value,
        )

    def format_summary(self, summary: FinancialSummary) -> dict[str, str]:
        """Currency-formatted amounts; net is shown unsigned next to its direction."""
        def money(amount: Decimal) -> str:
            return self.currency.format(amount, as_currency=True)

        return {
            "expected_value": money(summary.expected_value),
            "scanned_value": money(summary.scanned_value),
            "missing_value": money(summary.missing_value),
            "over_value": money(summary.over_value),
            "net_discrepancy": money(abs(summary.net_discrepancy)),
            "net_label": f"{summary.net_direction.value} of {money(abs(summary.net_discrepancy))}",
        }

    def discrepancy_row(self, item: StockItem) -> DiscrepancyRow:
        """Report row for a missing or over-scanned item."""
        discrepancy = item.remaining
        value_discrepancy = discrepancy * item.unit_price
        return DiscrepancyRow(
            id=item.id,
            raw_id=item.raw_id,
            attributes=item.attributes,
            expected_quantity=item.expected_quantity,
            scanned_count=item.scanned_count,
            discrepancy=discrepancy,
            status="MISSING" if discrepancy > 0 else "OVER-SCANNED",
            unit_price=item.unit_price,
            value_discrepancy=value_discrepancy,
            formatted_unit_price=self.currency.format(item.unit_price, as_currency=True),
            formatted_value_discrepancy=self.currency.format(value_discrepancy, as_currency=True),
        )

    def build_report(
        self,
        mapping: FieldMapping,
        headers: list[str],
        colleague_name: str = "",
        now: Optional[datetime] = None,
    ) -> DiscrepancyReport:
        """
        Build the end-of-check report.

        The financial summary is included only when a price column is
        mapped; without one every unit price is 0 and the totals say nothing.
        """
        now = now or datetime.now()
        classification = self.classify()

        summary: Optional[FinancialSummary] = None
        formatted: Optional[dict[str, str]] = None
        if mapping.price_header:
            summary = self.financial_summary()
            formatted = self.format_summary(summary)

        report = DiscrepancyReport(
            report_id=generate_report_id(colleague_name, now),
            generated_at=now,
            signed_off_by=colleague_name,
            headers=headers,
            price_header=mapping.price_header,
            quantity_header=mapping.quantity_header,
            currency_symbol=self.currency.symbol,
            missing=[self.discrepancy_row(item) for item in classification.missing],
            over_scanned=[self.discrepancy_row(item) for item in classification.over_scanned],
            unexpected=[
                UnexpectedScanView(id=key, raw_id=record.raw_id, count=record.count)
                for key, record in classification.unexpected
            ],
            financial_summary=summary,
            formatted_summary=formatted,
            net_direction=summary.net_direction if summary else None,
        )

        logger.info(
            "reconciliation_report_generated",
            report_id=report.report_id,
            missing=len(report.missing),
            over_scanned=len(report.over_scanned),
            unexpected=len(report.unexpected),
            net_discrepancy=str(summary.net_discrepancy) if summary else None,
        )

        return report
