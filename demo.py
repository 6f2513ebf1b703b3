"""
Demo script for the Payment Matching Engine.

Run this script to see the matcher in action on a small coupon schedule and
a set of payments as they would be read off a bank transfer order. No API
key is needed: the vision extraction step is replaced by a fixed payload.

Usage:
    python demo.py
"""

import logging
import sys
from decimal import Decimal
from pathlib import Path

# Ensure the project root is in the Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from payment_matcher.batch import BatchAnalyzer
from payment_matcher.engine.models import ExpectedPayment
from payment_matcher.parsers.extraction_parser import ExtractionParser
from payment_matcher.reports.excel_report import ExcelReportGenerator

SAMPLE_EXTRACTION = {
    "emetteur": "Solaire Invest SAS",
    "date_virement": "05-09-2025",
    "paiements": [
        {"beneficiaire": "M. Jean Dupont", "montant": "1 000,00", "date": "05-09-2025", "reference": "COUPON T1"},
        {"beneficiaire": "Mme Hélène Lefèvre", "montant": 487.5, "date": "05-09-2025", "reference": "COUPON T1"},
        {"beneficiaire": "ACME SARL", "montant": 2100, "date": "05-09-2025", "reference": None},
        {"beneficiaire": "Paul Martin", "montant": 90, "date": "05-09-2025", "reference": "COUPON T1"},
    ],
}

SAMPLE_EXPECTED = [
    ExpectedPayment("Jean Dupont", Decimal("1000.00"), "SUB-001", "INV-001"),
    ExpectedPayment("Helene Lefevre", Decimal("500.00"), "SUB-002", "INV-002"),
    ExpectedPayment("ACME", Decimal("2000.00"), "SUB-003", "INV-003"),
    ExpectedPayment("Claire Bernard", Decimal("750.00"), "SUB-004", "INV-004"),
]


def main():
    """Run the payment matching demo."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    output_file = project_root / "demo_output" / "payment_matching_report.xlsx"

    print("=" * 60)
    print("  PAYMENT MATCHING ENGINE - DEMO")
    print("=" * 60)

    # Step 1: Read the extraction payload
    print("\n  [1/3] Reading extracted payments")
    extraction = ExtractionParser().parse_payload(SAMPLE_EXTRACTION)
    print(f"        Issuer: {extraction.issuer} | transfer date: {extraction.transfer_date}")
    for payment in extraction.payments:
        print(f"        - {payment.date} | {payment.amount:>10} | {payment.beneficiary[:40]}")

    # Step 2: Match
    print(f"\n  [2/3] Matching against {len(SAMPLE_EXPECTED)} expected payments...")
    report = BatchAnalyzer().match_extracted(extraction, SAMPLE_EXPECTED)
    summary = report.summary

    # Step 3: Generate report
    print(f"\n  [3/3] Generating Excel report: {output_file.name}")
    output_path = ExcelReportGenerator().generate(
        report.results, summary, output_file, issuer=extraction.issuer,
    )

    print("\n" + "=" * 60)
    print("  MATCHING SUMMARY")
    print("=" * 60)
    print(f"  Payments Read:        {summary.total_payments}")
    print(f"  Match Rate:           {summary.match_rate:.1f}%")
    print(f"    +-- Matched:        {summary.total_matched}")
    print(f"    +-- Partial:        {summary.total_partial}")
    print(f"    +-- Unmatched:      {summary.total_unmatched}")
    print(f"  Total Paid:           {summary.total_amount:>12,.2f}")
    print(f"  Matched Amount:       {summary.matched_amount:>12,.2f}")
    print("=" * 60)

    print("\n  DETAILED RESULTS:")
    print("-" * 60)
    for r in report.results:
        investor = r.matched_expected.investor_name[:25] if r.matched_expected else "N/A"
        status = r.status.value.upper()
        print(
            f"  [{status:>21}] {r.payment.beneficiary[:22]:<22} -> {investor:<20} "
            f"({r.confidence}%)"
        )

    print(f"\n  Report saved to: {output_path.absolute()}\n")


if __name__ == "__main__":
    main()
