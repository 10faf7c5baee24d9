"""
Export service - stock check downloads.

- Full list CSV: every original column plus expected / scanned / remaining
- Unexpected items CSV: raw id and scan count
- Full JSON: expected stock plus unexpected (id, record) pairs
- Discrepancy workbook (Excel): summary, missing, over-scanned, unexpected

Every CSV field is double-quoted.
"""

import csv
import json
from datetime import date
from io import BytesIO
from typing import Optional

import pandas as pd
import structlog
from openpyxl import Workbook
from openpyxl.styles import Border, Font, PatternFill, Side

from models.reconciliation import DiscrepancyReport, DiscrepancyRow
from services.session_service import ReconciliationSession

logger = structlog.get_logger(__name__)

EXPECTED_QUANTITY_COLUMN = "Expected Quantity"
SCANNED_QUANTITY_COLUMN = "Scanned Quantity"
REMAINING_QUANTITY_COLUMN = "Remaining Quantity"
UNEXPECTED_COLUMNS = ["Unique ID (Raw)", "Count (Unexpected)"]


def export_filename(kind: str, extension: str, today: Optional[date] = None) -> str:
    """
    Date-stamped download name.

    'full', 'csv' -> 'Stock_Check_Full_Report_2026-01-19.csv'
    'unexpected', 'csv' -> 'Stock_Check_Unexpected_Items_2026-01-19.csv'
    """
    today = today or date.today()
    label = "Unexpected_Items" if kind == "unexpected" else "Full_Report"
    return f"Stock_Check_{label}_{today.isoformat()}.{extension}"


def _to_quoted_csv(rows: list[list[str]], columns: list[str]) -> str:
    df = pd.DataFrame(rows, columns=columns, dtype=str)
    return df.to_csv(index=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


class ExportService:
    """Service for generating stock check downloads."""

    def full_list_columns(self, session: ReconciliationSession) -> list[str]:
        """Detected headers followed by the three count columns (no repeats)."""
        columns = list(session.headers)
        for name in (EXPECTED_QUANTITY_COLUMN, SCANNED_QUANTITY_COLUMN, REMAINING_QUANTITY_COLUMN):
            if name.lower() not in [c.lower() for c in columns]:
                columns.append(name)
        return columns

    def full_list_csv(self, session: ReconciliationSession) -> str:
        """
        Every expected item with its live counts.

        Remaining Quantity never goes below 0; over-scans show as 0.
        """
        columns = self.full_list_columns(session)
        rows = []

        for item in session.ledger.items:
            counts = {
                EXPECTED_QUANTITY_COLUMN.lower(): str(item.expected_quantity),
                SCANNED_QUANTITY_COLUMN.lower(): str(item.scanned_count),
                REMAINING_QUANTITY_COLUMN.lower(): str(max(item.remaining, 0)),
            }
            rows.append([
                counts.get(column.lower(), item.attributes.get(column, ""))
                for column in columns
            ])

        logger.info("full_list_csv_exported", rows=len(rows), columns=len(columns))
        return _to_quoted_csv(rows, columns)

    def unexpected_csv(self, session: ReconciliationSession) -> str:
        """Unexpected scans in first-scan order."""
        rows = [
            [record.raw_id, str(record.count)]
            for _, record in session.ledger.unexpected_scans
        ]

        logger.info("unexpected_csv_exported", rows=len(rows))
        return _to_quoted_csv(rows, UNEXPECTED_COLUMNS)

    def full_json(self, session: ReconciliationSession) -> str:
        """Expected stock and unexpected scans as indented JSON."""
        snapshot = session.snapshot().model_dump(mode="json")
        payload = {
            "expected_stock": snapshot["items"],
            "unexpected_scans": snapshot["unexpected_scans"],
        }
        return json.dumps(payload, indent=2, ensure_ascii=False)

    def generate_report_excel(self, report: DiscrepancyReport) -> BytesIO:
        """
        Generate the discrepancy workbook.

        Creates:
        - Summary sheet with counts and (when priced) value totals
        - Missing, Over-Scanned and Unexpected sheets

        Returns:
            BytesIO containing the Excel file
        """
        logger.info(
            "generating_report_excel",
            report_id=report.report_id,
            missing=len(report.missing),
            over_scanned=len(report.over_scanned),
            unexpected=len(report.unexpected),
        )

        wb = Workbook()

        # Styles
        title_font = Font(bold=True, size=14)
        header_font = Font(bold=True, size=11)
        bold_font = Font(bold=True)
        thin_border = Border(
            bottom=Side(style="thin", color="000000")
        )
        header_fill = PatternFill(start_color="E0E8FF", end_color="E0E8FF", fill_type="solid")
        loss_fill = PatternFill(start_color="FFE0E0", end_color="FFE0E0", fill_type="solid")
        gain_fill = PatternFill(start_color="FFF0E0", end_color="FFF0E0", fill_type="solid")
        success_fill = PatternFill(start_color="E0FFE0", end_color="E0FFE0", fill_type="solid")

        # ===== SUMMARY SHEET =====
        ws = wb.active
        ws.title = "Summary"
        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 45

        row = 1
        ws[f"A{row}"] = "STOCK CHECK DISCREPANCY REPORT"
        ws[f"A{row}"].font = title_font
        row += 2

        ws[f"A{row}"] = "Report ID:"
        ws[f"B{row}"] = report.report_id
        row += 1
        ws[f"A{row}"] = "Generated:"
        ws[f"B{row}"] = report.generated_at.strftime("%Y-%m-%d %H:%M:%S")
        row += 1
        ws[f"A{row}"] = "Signed off by:"
        ws[f"B{row}"] = report.signed_off_by or "Not signed off"
        row += 2

        ws[f"A{row}"] = "DISCREPANCIES"
        ws[f"A{row}"].font = header_font
        ws[f"A{row}"].fill = header_fill
        ws[f"B{row}"].fill = header_fill
        row += 1
        ws[f"A{row}"] = "Missing items:"
        ws[f"B{row}"] = len(report.missing)
        row += 1
        ws[f"A{row}"] = "Over-scanned items:"
        ws[f"B{row}"] = len(report.over_scanned)
        row += 1
        ws[f"A{row}"] = "Unexpected items:"
        ws[f"B{row}"] = len(report.unexpected)
        row += 2

        if report.formatted_summary is not None:
            formatted = report.formatted_summary
            ws[f"A{row}"] = "FINANCIAL SUMMARY"
            ws[f"A{row}"].font = header_font
            ws[f"A{row}"].fill = header_fill
            ws[f"B{row}"].fill = header_fill
            row += 1

            for label, key in (
                ("Expected value:", "expected_value"),
                ("Scanned value:", "scanned_value"),
                ("Missing value:", "missing_value"),
                ("Over-scan value:", "over_value"),
            ):
                ws[f"A{row}"] = label
                ws[f"B{row}"] = formatted[key]
                row += 1

            ws[f"A{row}"] = "Net discrepancy:"
            ws[f"A{row}"].font = bold_font
            ws[f"B{row}"] = formatted["net_label"]
            ws[f"B{row}"].font = bold_font
            ws[f"B{row}"].fill = {
                "LOSS": loss_fill,
                "GAIN": gain_fill,
            }.get(report.net_direction.value, success_fill)
        else:
            ws[f"A{row}"] = "No price column mapped; values not calculated."

        # ===== DISCREPANCY SHEETS =====
        self._write_item_sheet(wb, "Missing", report.missing, report, header_fill, thin_border)
        self._write_item_sheet(wb, "Over-Scanned", report.over_scanned, report, header_fill, thin_border)

        ws = wb.create_sheet(title="Unexpected")
        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 20
        for col, title in zip(("A", "B"), UNEXPECTED_COLUMNS):
            ws[f"{col}1"] = title
            ws[f"{col}1"].font = bold_font
            ws[f"{col}1"].fill = header_fill
            ws[f"{col}1"].border = thin_border
        for row, scan in enumerate(report.unexpected, start=2):
            ws[f"A{row}"] = scan.raw_id
            ws[f"B{row}"] = scan.count

        # Save to BytesIO
        output = BytesIO()
        wb.save(output)
        output.seek(0)

        return output

    def _write_item_sheet(
        self,
        wb: Workbook,
        title: str,
        rows: list[DiscrepancyRow],
        report: DiscrepancyReport,
        header_fill: PatternFill,
        thin_border: Border,
    ) -> None:
        ws = wb.create_sheet(title=title)
        priced = bool(report.price_header)

        columns = ["Unique ID", "Expected", "Scanned", "Discrepancy"]
        if priced:
            columns += ["Unit Price", "Value Discrepancy"]
        mapped = {report.price_header.strip().lower(), report.quantity_header.strip().lower()}
        extra_headers = [h for h in report.headers if h.lower() not in mapped]
        columns += extra_headers

        for col_idx, name in enumerate(columns, start=1):
            cell = ws.cell(row=1, column=col_idx, value=name)
            cell.font = Font(bold=True)
            cell.fill = header_fill
            cell.border = thin_border
            ws.column_dimensions[cell.column_letter].width = max(12, len(name) + 4)

        for row_idx, item in enumerate(rows, start=2):
            values = [item.raw_id, item.expected_quantity, item.scanned_count, item.discrepancy]
            if priced:
                values += [item.formatted_unit_price, item.formatted_value_discrepancy]
            values += [item.attributes.get(h, "") for h in extra_headers]
            for col_idx, value in enumerate(values, start=1):
                ws.cell(row=row_idx, column=col_idx, value=value)


# Singleton instance
_export_service: Optional[ExportService] = None


def get_export_service() -> ExportService:
    """Get or create ExportService instance."""
    global _export_service
    if _export_service is None:
        _export_service = ExportService()
    return _export_service
