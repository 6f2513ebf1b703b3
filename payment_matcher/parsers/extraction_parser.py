"""Parser for payment proof extraction payloads."""

import json
import logging
from decimal import InvalidOperation
from pathlib import Path
from typing import Any, Dict, List

from payment_matcher.engine.models import ExtractedPayment, ExtractionResult
from payment_matcher.parsers.amounts import parse_amount

logger = logging.getLogger(__name__)


class ExtractionParser:
    """
    Turn the JSON read off payment proofs into ExtractionResult objects.

    Expected payload:
        {
            "emetteur": "issuer company",
            "date_virement": "JJ-MM-AAAA",
            "paiements": [
                {"beneficiaire": "...", "montant": 1000.5, "date": "JJ-MM-AAAA", "reference": "..."}
            ]
        }
    """

    def parse(self, file_path: str | Path) -> ExtractionResult:
        """
        Parse a JSON file holding an extraction payload.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ValueError: If the file isn't valid JSON or has no payment list.
        """
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        try:
            data = json.loads(file_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {file_path}: {e}") from e

        return self.parse_payload(data)

    def parse_payload(self, data: Any) -> ExtractionResult:
        """
        Convert an already decoded payload.

        Payment lines without a beneficiary or with an unreadable amount are
        skipped with a warning.

        Raises:
            ValueError: If the payload has no "paiements" list.
        """
        if not isinstance(data, dict) or not isinstance(data.get("paiements"), list):
            raise ValueError("Extraction payload must be an object with a 'paiements' list")

        payments: List[ExtractedPayment] = []
        for idx, line in enumerate(data["paiements"]):
            try:
                payments.append(self._convert_line(line))
            except (ValueError, InvalidOperation) as e:
                logger.warning("Skipping payment line %s: %s", idx, e)

        return ExtractionResult(
            issuer=self._optional_text(data.get("emetteur")),
            transfer_date=self._optional_text(data.get("date_virement")),
            payments=payments,
        )

    def _convert_line(self, line: Dict[str, Any]) -> ExtractedPayment:
        if not isinstance(line, dict):
            raise ValueError(f"payment line is not an object: {line!r}")

        beneficiary = self._optional_text(line.get("beneficiaire"))
        if not beneficiary:
            raise ValueError("missing beneficiary")

        if line.get("montant") is None:
            raise ValueError("missing amount")
        amount = parse_amount(line["montant"])

        return ExtractedPayment(
            beneficiary=beneficiary,
            amount=amount,
            date=self._optional_text(line.get("date")) or "",
            reference=self._optional_text(line.get("reference")),
        )

    @staticmethod
    def _optional_text(value: Any):
        if value is None:
            return None
        text = str(value).strip()
        return text or None
