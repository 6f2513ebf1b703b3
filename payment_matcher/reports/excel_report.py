"""Excel report generator for payment matching results."""

from datetime import datetime
from pathlib import Path
from typing import List

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from payment_matcher.engine.models import BatchSummary, MatchResult, MatchStatus


class ExcelReportGenerator:
    """Generate Excel reports for operators to review a batch of payments."""

    # Style constants
    HEADER_FILL = PatternFill(start_color="1F4E79", end_color="1F4E79", fill_type="solid")
    HEADER_FONT = Font(name="Calibri", size=11, bold=True, color="FFFFFF")
    MATCHED_FILL = PatternFill(start_color="C6EFCE", end_color="C6EFCE", fill_type="solid")
    PARTIAL_FILL = PatternFill(start_color="FFEB9C", end_color="FFEB9C", fill_type="solid")
    UNMATCHED_FILL = PatternFill(start_color="FFC7CE", end_color="FFC7CE", fill_type="solid")
    TITLE_FONT = Font(name="Calibri", size=16, bold=True, color="1F4E79")
    SUBTITLE_FONT = Font(name="Calibri", size=12, bold=True, color="1F4E79")
    KPI_FONT = Font(name="Calibri", size=14, bold=True)
    THIN_BORDER = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )

    # Leading characters Excel reads as the start of a formula.
    FORMULA_PREFIXES = ("=", "+", "-", "@")

    RESULT_HEADERS = [
        "Beneficiary", "Paid Amount", "Payment Date", "Reference",
        "Investor", "Expected Amount", "Subscription", "Status",
        "Confidence", "Name Score", "Amount Diff", "Amount Diff %",
    ]

    def generate(
        self,
        results: List[MatchResult],
        summary: BatchSummary,
        output_path: str | Path,
        issuer: str | None = None,
    ) -> Path:
        """
        Generate Excel report with 4 tabs.

        Args:
            results: List of match results from the matching engine.
            summary: Summary statistics.
            output_path: Path for the output Excel file.
            issuer: Issuer read off the documents, shown on the summary tab.

        Returns:
            Path to the generated report.
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        wb = Workbook()

        # Tab 1: Summary
        self._create_summary_tab(wb, summary, issuer)

        # Tabs 2-4: one per status
        self._create_results_tab(
            wb, "Matched", "00B050",
            [r for r in results if r.status == MatchStatus.MATCHED],
            self.MATCHED_FILL,
        )
        self._create_results_tab(
            wb, "Partial", "FFC000",
            [r for r in results if r.status == MatchStatus.PARTIAL],
            self.PARTIAL_FILL,
        )
        self._create_results_tab(
            wb, "Unmatched", "FF0000",
            [r for r in results if r.status == MatchStatus.UNMATCHED],
            self.UNMATCHED_FILL,
        )

        wb.save(str(output_path))
        return output_path

    def _create_summary_tab(self, wb: Workbook, summary: BatchSummary, issuer: str | None) -> None:
        """Create the Summary dashboard tab."""
        ws = wb.active
        ws.title = "Summary"
        ws.sheet_properties.tabColor = "1F4E79"

        # Title
        ws.merge_cells("A1:F1")
        ws["A1"] = "Payment Matching Report"
        ws["A1"].font = self.TITLE_FONT
        ws["A1"].alignment = Alignment(horizontal="center")

        ws.merge_cells("A2:F2")
        generated = f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}"
        if issuer:
            generated += f" | Issuer: {issuer}"
        ws["A2"] = self._safe_text(generated)
        ws["A2"].alignment = Alignment(horizontal="center")

        kpis = [
            ("Match Rate", f"{summary.match_rate:.1f}%"),
            ("Payments Read", str(summary.total_payments)),
            ("Expected Payments", str(summary.total_expected)),
            ("Matched", str(summary.total_matched)),
            ("Partial", str(summary.total_partial)),
            ("Unmatched", str(summary.total_unmatched)),
            ("To Review", str(summary.review_count)),
        ]

        ws["A4"] = "Key Performance Indicators"
        ws["A4"].font = self.SUBTITLE_FONT

        for i, (label, value) in enumerate(kpis, start=5):
            ws[f"A{i}"] = label
            ws[f"A{i}"].font = Font(bold=True)
            ws[f"B{i}"] = value
            ws[f"B{i}"].font = self.KPI_FONT

            # Color coding
            if label in ("Unmatched", "To Review") and int(value) > 0:
                ws[f"B{i}"].fill = self.UNMATCHED_FILL
            elif label == "Partial" and int(value) > 0:
                ws[f"B{i}"].fill = self.PARTIAL_FILL
            elif label == "Match Rate":
                rate = float(value.replace("%", ""))
                ws[f"B{i}"].fill = self.MATCHED_FILL if rate >= 95 else self.UNMATCHED_FILL

        row = len(kpis) + 7
        ws[f"A{row}"] = "Amount Summary"
        ws[f"A{row}"].font = self.SUBTITLE_FONT
        row += 1

        amounts = [
            ("Total Paid Amount", summary.total_amount),
            ("Matched Amount", summary.matched_amount),
            ("Amount To Review", summary.total_amount - summary.matched_amount),
        ]

        for label, amount in amounts:
            ws[f"A{row}"] = label
            ws[f"A{row}"].font = Font(bold=True)
            ws[f"B{row}"] = float(amount)
            ws[f"B{row}"].number_format = '#,##0.00'
            row += 1

        ws.column_dimensions["A"].width = 25
        ws.column_dimensions["B"].width = 20

    def _create_results_tab(
        self,
        wb: Workbook,
        title: str,
        tab_color: str,
        results: List[MatchResult],
        fill: PatternFill,
    ) -> None:
        """Create a tab listing results of one status."""
        ws = wb.create_sheet(title)
        ws.sheet_properties.tabColor = tab_color

        headers = self.RESULT_HEADERS
        self._write_headers(ws, headers)

        for i, result in enumerate(results, start=2):
            payment = result.payment
            expected = result.matched_expected

            ws[f"A{i}"] = self._safe_text(payment.beneficiary[:50])
            ws[f"B{i}"] = float(payment.amount)
            ws[f"B{i}"].number_format = '#,##0.00'
            ws[f"C{i}"] = self._safe_text(payment.date)
            ws[f"D{i}"] = self._safe_text(payment.reference or "")
            ws[f"E{i}"] = self._safe_text(expected.investor_name[:50]) if expected else ""
            if expected:
                ws[f"F{i}"] = float(expected.expected_amount)
                ws[f"F{i}"].number_format = '#,##0.00'
            ws[f"G{i}"] = (
                self._safe_text(str(expected.subscription_id))
                if expected and expected.subscription_id is not None else ""
            )
            ws[f"H{i}"] = result.status.value
            ws[f"I{i}"] = result.confidence
            ws[f"J{i}"] = round(result.name_score, 2)
            ws[f"K{i}"] = float(result.amount_delta_absolute)
            ws[f"K{i}"].number_format = '#,##0.00'
            ws[f"L{i}"] = round(result.amount_delta_percent, 2)

            for col in range(1, len(headers) + 1):
                ws.cell(row=i, column=col).fill = fill

        self._auto_width(ws, headers)

    def _safe_text(self, value: str) -> str:
        """Drop characters worksheets reject and keep text from being read as a formula."""
        value = ILLEGAL_CHARACTERS_RE.sub("", value)
        if value.startswith(self.FORMULA_PREFIXES):
            return "'" + value
        return value

    def _write_headers(self, ws, headers: List[str]) -> None:
        """Write styled header row."""
        for col_idx, header in enumerate(headers, start=1):
            cell = ws.cell(row=1, column=col_idx, value=header)
            cell.font = self.HEADER_FONT
            cell.fill = self.HEADER_FILL
            cell.alignment = Alignment(horizontal="center")
            cell.border = self.THIN_BORDER

        # Freeze top row
        ws.freeze_panes = "A2"

        ws.auto_filter.ref = f"A1:{get_column_letter(len(headers))}1"

    def _auto_width(self, ws, headers: List[str]) -> None:
        """Auto-adjust column widths."""
        for col_idx, header in enumerate(headers, start=1):
            col_letter = get_column_letter(col_idx)
            max_len = len(header) + 4
            ws.column_dimensions[col_letter].width = min(max_len, 35)
