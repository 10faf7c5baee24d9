"""
Offline stock check - reconcile a scan file against a stock list.

Replays one scan per line (blank lines ignored) against a comma- or
tab-delimited stock list, then prints the discrepancy summary.

Usage:
    python scripts/reconcile_scans.py stock.csv scans.txt

    # Explicit columns, signed off, with the Excel report
    python scripts/reconcile_scans.py stock.tsv scans.txt \
        --id-header "Asset ID" --quantity-header Qty --price-header "Unit Price" \
        --name "Jo Smith" --excel out/report.xlsx

Column roles left out are auto-detected from the header line.
"""

import argparse
import os
import sys
from pathlib import Path

# Allow imports from the project root when running as a script
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from exceptions import AppError
from models.stock import FieldMapping
from services.export_service import get_export_service
from services.session_service import ReconciliationSession


def print_header(title: str):
    """Print formatted header."""
    print("\n" + "=" * 70)
    print(title)
    print("=" * 70)


def read_scans(path: Path) -> list[str]:
    """Non-blank scan tokens in file order."""
    return [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def run(args: argparse.Namespace) -> int:
    raw_text = Path(args.stock_file).read_text(encoding="utf-8")
    session = ReconciliationSession()

    requested = FieldMapping(
        unique_id_header=args.id_header,
        quantity_header=args.quantity_header,
        price_header=args.price_header,
    )
    mapping = session.suggest_mapping(raw_text, requested).mapping

    result = session.load_stock_list(raw_text, mapping)
    print_header("STOCK LIST")
    print(session.load_message(result))
    for issue in result.issues:
        print(f"  [SKIPPED] {issue.message}" if issue.reason != "negative_price" else f"  [ADJUSTED] {issue.message}")

    scans = read_scans(Path(args.scans_file))
    alerts = 0
    for token in scans:
        outcome = session.scan(token)
        if outcome.alert:
            alerts += 1
            if args.verbose:
                print(f"  {outcome.message}")

    if args.name:
        session.sign_off(args.name)

    report = session.report()

    print_header(f"REPORT {report.report_id}")
    print(f"Scans replayed:     {len(scans)} ({alerts} alerts)")
    print(f"Missing items:      {len(report.missing)}")
    for row in report.missing:
        print(f"  {row.raw_id:<30} expected {row.expected_quantity:>4}  scanned {row.scanned_count:>4}  missing {row.discrepancy}")
    print(f"Over-scanned items: {len(report.over_scanned)}")
    for row in report.over_scanned:
        print(f"  {row.raw_id:<30} expected {row.expected_quantity:>4}  scanned {row.scanned_count:>4}  over {-row.discrepancy}")
    print(f"Unexpected items:   {len(report.unexpected)}")
    for scan in report.unexpected:
        print(f"  {scan.raw_id:<30} scanned {scan.count}")

    if report.formatted_summary:
        summary = report.formatted_summary
        print_header("FINANCIAL SUMMARY")
        print(f"Expected value:  {summary['expected_value']}")
        print(f"Scanned value:   {summary['scanned_value']}")
        print(f"Missing value:   {summary['missing_value']}")
        print(f"Over-scan value: {summary['over_value']}")
        print(f"Net:             {summary['net_label']}")

    if args.excel:
        output_path = Path(args.excel)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(get_export_service().generate_report_excel(report).getvalue())
        print(f"\n[OK] Excel report written to {output_path}")

    clean = not (report.missing or report.over_scanned or report.unexpected)
    return 0 if clean else 2


def main():
    parser = argparse.ArgumentParser(
        description="Reconcile a scan file against a pasted stock list."
    )
    parser.add_argument("stock_file", help="Comma- or tab-delimited stock list with a header line")
    parser.add_argument("scans_file", help="One scanned identifier per line")
    parser.add_argument("--id-header", default="", help="Unique id column (auto-detected if omitted)")
    parser.add_argument("--quantity-header", default="", help="Expected quantity column")
    parser.add_argument("--price-header", default="", help="Unit price column")
    parser.add_argument("--name", default="", help="Colleague signing off the check")
    parser.add_argument("--excel", default="", help="Write the discrepancy workbook to this path")
    parser.add_argument("--verbose", action="store_true", help="Print every over-scan and unexpected alert")

    args = parser.parse_args()

    for path in (args.stock_file, args.scans_file):
        if not os.path.exists(path):
            print(f"ERROR: File not found: {path}")
            sys.exit(1)

    try:
        sys.exit(run(args))
    except AppError as e:
        print(f"ERROR: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
