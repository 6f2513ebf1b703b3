"""CSV/Excel expected payments parser."""

import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from payment_matcher.engine.models import ExpectedPayment
from payment_matcher.parsers.amounts import parse_amount

logger = logging.getLogger(__name__)


class CSVParser:
    """Parse CSV/Excel coupon schedules into ExpectedPayment objects."""

    # Default column mapping
    DEFAULT_MAPPING: Dict[str, str] = {
        "investor_name": "investor_name",
        "expected_amount": "expected_amount",
        "subscription_id": "subscription_id",
        "investor_id": "investor_id",
    }

    REQUIRED_FIELDS = ["investor_name", "expected_amount"]

    def __init__(self, column_mapping: Optional[Dict[str, str]] = None):
        """
        Initialize parser with optional custom column mapping.

        Args:
            column_mapping: Dict mapping our field names to file column names.
                          Example: {"investor_name": "Investisseur", "expected_amount": "Montant"}
                          Fields left out keep their default column name.
        """
        self.column_mapping = {**self.DEFAULT_MAPPING, **(column_mapping or {})}

    def parse(self, file_path: str | Path, **kwargs) -> List[ExpectedPayment]:
        """
        Parse a CSV or Excel file into ExpectedPayment objects.

        Args:
            file_path: Path to the CSV/Excel file.
            **kwargs: Additional arguments passed to pandas read function.

        Returns:
            List of ExpectedPayment objects, in file order.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If required columns are missing.
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        df = self._read_file(file_path, **kwargs)
        self._validate_columns(df)
        return self._convert_dataframe(df)

    def _read_file(self, file_path: Path, **kwargs) -> pd.DataFrame:
        """Read file based on extension."""
        suffix = file_path.suffix.lower()

        # Ids must survive as text ("00042" stays "00042").
        kwargs.setdefault("dtype", str)

        if suffix == ".csv":
            return pd.read_csv(file_path, **kwargs)
        elif suffix in (".xlsx", ".xls"):
            return pd.read_excel(file_path, **kwargs)
        else:
            raise ValueError(f"Unsupported file format: {suffix}. Use .csv, .xlsx, or .xls")

    def _validate_columns(self, df: pd.DataFrame) -> None:
        """
        Validate that required columns exist in the dataframe.

        Raises:
            ValueError: If required columns are missing.
        """
        missing = []

        for field in self.REQUIRED_FIELDS:
            col_name = self.column_mapping[field]
            if col_name not in df.columns:
                missing.append(f"{field} (expected column: '{col_name}')")

        if missing:
            available = ", ".join(str(c) for c in df.columns)
            raise ValueError(
                f"Missing required columns: {', '.join(missing)}. "
                f"Available columns: {available}. "
                f"Use column_mapping parameter to map your columns."
            )

    def _convert_dataframe(self, df: pd.DataFrame) -> List[ExpectedPayment]:
        """Convert a DataFrame to list of ExpectedPayment objects."""
        payments: List[ExpectedPayment] = []

        for idx, row in df.iterrows():
            try:
                payments.append(self._convert_row(row, idx))
            except (ValueError, InvalidOperation) as e:
                logger.warning("Skipping row %s: %s", idx, e)

        return payments

    def _convert_row(self, row: pd.Series, idx: int) -> ExpectedPayment:
        """Convert a single row to an ExpectedPayment object."""
        name = self._cell(row, "investor_name")
        if not name:
            raise ValueError("empty investor name")

        raw_amount = self._cell(row, "expected_amount")
        if not raw_amount:
            raise ValueError("empty expected amount")
        amount = parse_amount(raw_amount)
        if amount <= Decimal("0"):
            raise ValueError(f"expected amount must be positive, got {amount}")

        return ExpectedPayment(
            investor_name=name,
            expected_amount=amount,
            subscription_id=self._cell(row, "subscription_id") or f"SUB-{idx + 1:06d}",
            investor_id=self._cell(row, "investor_id") or f"INV-{idx + 1:06d}",
        )

    def _cell(self, row: pd.Series, field: str) -> str:
        """Return a stripped cell value, or an empty string for missing cells."""
        col_name = self.column_mapping[field]
        if col_name not in row.index or pd.isna(row[col_name]):
            return ""
        return str(row[col_name]).strip()
