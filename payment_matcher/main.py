"""CLI entry point for payment matching."""

import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from payment_matcher.batch import BatchAnalyzer, BatchReport
from payment_matcher.config import load_settings
from payment_matcher.extraction.vision import ExtractionError, VisionExtractor
from payment_matcher.parsers.csv_parser import CSVParser
from payment_matcher.parsers.extraction_parser import ExtractionParser
from payment_matcher.reports.excel_report import ExcelReportGenerator

logger = logging.getLogger(__name__)


def validate_max_tokens(ctx, param, value):
    """Validate the reply token limit is positive."""
    if value is not None and value <= 0:
        raise click.BadParameter("Max tokens must be positive.")
    return value


def expected_options(func):
    """Options shared by commands that load an expected payments file."""
    options = [
        click.option(
            "--expected", "-e",
            required=True,
            type=click.Path(exists=True),
            help="Path to the expected payments file (CSV or Excel).",
        ),
        click.option(
            "--output", "-o",
            required=True,
            type=click.Path(),
            help="Path for the output Excel report.",
        ),
        click.option(
            "--json-output", "-j",
            type=click.Path(),
            default=None,
            help="Optional path for the JSON result.",
        ),
        click.option(
            "--name-col",
            default="investor_name",
            help="Investor name column in the expected payments file.",
        ),
        click.option(
            "--amount-col",
            default="expected_amount",
            help="Expected amount column in the expected payments file.",
        ),
        click.option(
            "--subscription-col",
            default="subscription_id",
            help="Subscription id column in the expected payments file.",
        ),
        click.option(
            "--investor-col",
            default="investor_id",
            help="Investor id column in the expected payments file.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def load_expected(expected: str, name_col: str, amount_col: str, subscription_col: str, investor_col: str):
    """Parse the expected payments file with the given column names."""
    click.echo(f"\n  Parsing expected payments: {expected}...")
    parser = CSVParser(column_mapping={
        "investor_name": name_col,
        "expected_amount": amount_col,
        "subscription_id": subscription_col,
        "investor_id": investor_col,
    })
    expected_payments = parser.parse(Path(expected))
    click.echo(f"   Found {len(expected_payments)} expected payments")
    return expected_payments


def write_outputs(report: BatchReport, output: str, json_output: Optional[str]) -> None:
    """Write the Excel report (and JSON result), then print the summary."""
    click.echo(f"\n  Generating report: {output}...")
    output_path = ExcelReportGenerator().generate(
        report.results, report.summary, output, issuer=report.extraction.issuer,
    )

    if json_output:
        json_path = Path(json_output)
        json_path.parent.mkdir(parents=True, exist_ok=True)
        json_path.write_text(
            json.dumps(report.to_dict(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    summary = report.summary
    click.echo("\n" + "=" * 60)
    click.echo("  MATCHING SUMMARY")
    click.echo("=" * 60)
    click.echo(f"  Match Rate:           {summary.match_rate:.1f}%")
    click.echo(f"  Payments Read:        {summary.total_payments}")
    click.echo(f"    +-- Matched:        {summary.total_matched}")
    click.echo(f"    +-- Partial:        {summary.total_partial}")
    click.echo(f"    +-- Unmatched:      {summary.total_unmatched}")
    click.echo(f"  To Review:            {summary.review_count}")
    click.echo(f"  Matched Amount:       {summary.matched_amount:,.2f}")
    click.echo("=" * 60)
    click.echo(f"\n  Report saved to: {output_path.absolute()}")
    if json_output:
        click.echo(f"  JSON saved to:   {Path(json_output).absolute()}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def main(verbose: bool) -> None:
    """
    Payment Matching Tool

    Matches payments read off coupon payment proofs against the payments
    expected for a bond tranche and generates an Excel report for review.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


@main.command()
@click.option(
    "--extracted", "-x",
    required=True,
    type=click.Path(exists=True),
    help="Path to the extracted payments JSON (vision extraction output).",
)
@expected_options
def match(
    extracted: str,
    expected: str,
    output: str,
    json_output: Optional[str],
    name_col: str,
    amount_col: str,
    subscription_col: str,
    investor_col: str,
) -> None:
    """
    Match already extracted payments against expected payments.

    Example:
        payment-matcher match -x extracted.json -e coupons.csv -o report.xlsx
    """
    click.echo("=" * 60)
    click.echo("  PAYMENT MATCHING ENGINE")
    click.echo("=" * 60)

    try:
        click.echo(f"\n  Parsing extracted payments: {extracted}...")
        extraction = ExtractionParser().parse(Path(extracted))
        click.echo(f"   Found {len(extraction.payments)} payments")

        expected_payments = load_expected(expected, name_col, amount_col, subscription_col, investor_col)

        click.echo("\n  Matching...")
        report = BatchAnalyzer().match_extracted(extraction, expected_payments)

        write_outputs(report, output, json_output)

    except (FileNotFoundError, ValueError) as e:
        click.echo(f"\n  ERROR: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error during matching")
        click.echo(f"\n  UNEXPECTED ERROR: {e}", err=True)
        sys.exit(2)


@main.command()
@click.option(
    "--document", "-d",
    required=True,
    multiple=True,
    help="URL or path of a payment proof page (repeatable).",
)
@click.option(
    "--model", "-m",
    default=None,
    help="Vision model name (default: PAYMENT_MATCHER_VISION_MODEL or gpt-4o).",
)
@click.option(
    "--max-tokens",
    default=None,
    type=int,
    callback=validate_max_tokens,
    help="Reply token limit for the vision model.",
)
@expected_options
def analyze(
    document: tuple,
    model: Optional[str],
    max_tokens: Optional[int],
    expected: str,
    output: str,
    json_output: Optional[str],
    name_col: str,
    amount_col: str,
    subscription_col: str,
    investor_col: str,
) -> None:
    """
    Read payment proofs with a vision model, then match the payments found.

    Example:
        payment-matcher analyze -d page1.png -d page2.png -e coupons.csv -o report.xlsx
    """
    click.echo("=" * 60)
    click.echo("  PAYMENT PROOF ANALYSIS")
    click.echo("=" * 60)

    try:
        expected_payments = load_expected(expected, name_col, amount_col, subscription_col, investor_col)

        settings = load_settings()
        overrides = {}
        if model:
            overrides["vision_model"] = model
        if max_tokens:
            overrides["max_tokens"] = max_tokens
        if overrides:
            settings = replace(settings, **overrides)

        click.echo(f"\n  Reading {len(document)} document(s) with {settings.vision_model}...")
        analyzer = BatchAnalyzer(extractor=VisionExtractor(settings=settings))
        report = analyzer.analyze(list(document), expected_payments)
        click.echo(f"   Found {len(report.extraction.payments)} payments")

        write_outputs(report, output, json_output)

    except (FileNotFoundError, ValueError, ExtractionError) as e:
        click.echo(f"\n  ERROR: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logger.exception("Unexpected error during analysis")
        click.echo(f"\n  UNEXPECTED ERROR: {e}", err=True)
        sys.exit(2)


if __name__ == "__main__":
    main()
