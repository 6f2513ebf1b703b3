"""Data models for the payment matching engine."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional


class MatchStatus(Enum):
    """Classification of a payment against its best candidate."""
    MATCHED = "correspondance"
    PARTIAL = "partielle"
    UNMATCHED = "pas-de-correspondance"


# Payment proofs are French documents: day first.
DATE_FORMATS = [
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%Y-%m-%d",
]


def parse_document_date(value: Optional[str]) -> Optional[datetime]:
    """Parse a document-local date string, returning None when it can't be read."""
    if not value:
        return None

    str_value = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(str_value, fmt)
        except ValueError:
            continue
    return None


@dataclass(frozen=True)
class ExtractedPayment:
    """A payment line read off a scanned payment proof."""
    beneficiary: str
    amount: Decimal
    date: str = ""
    reference: Optional[str] = None

    @property
    def parsed_date(self) -> Optional[datetime]:
        """Return the payment date as a datetime, if readable."""
        return parse_document_date(self.date)

    def to_dict(self) -> dict:
        return {
            "beneficiaire": self.beneficiary,
            "montant": float(self.amount),
            "date": self.date,
            "reference": self.reference,
        }

    def __repr__(self) -> str:
        return (
            f"ExtractedPayment(beneficiary={self.beneficiary[:30]!r}, "
            f"amount={self.amount}, date={self.date!r})"
        )


@dataclass(frozen=True)
class ExpectedPayment:
    """A coupon payment the issuer owes to one investor of a tranche."""
    investor_name: str
    expected_amount: Decimal
    subscription_id: Any = None
    investor_id: Any = None

    def to_dict(self) -> dict:
        return {
            "investorName": self.investor_name,
            "expectedAmount": float(self.expected_amount),
            "subscriptionId": self.subscription_id,
            "investorId": self.investor_id,
        }


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching one extracted payment against the expected payments."""
    payment: ExtractedPayment
    matched_expected: Optional[ExpectedPayment]
    status: MatchStatus
    confidence: int = 0
    name_score: float = 0.0
    amount_delta_absolute: Decimal = Decimal("0")
    amount_delta_percent: float = 0.0

    @property
    def is_matched(self) -> bool:
        """Check if the payment was fully matched."""
        return self.status == MatchStatus.MATCHED

    @property
    def needs_review(self) -> bool:
        """Partial and unmatched rows must be checked by an operator."""
        return self.status != MatchStatus.MATCHED


@dataclass
class ExtractionResult:
    """Structured content read from one batch of payment proof documents."""
    issuer: Optional[str] = None
    transfer_date: Optional[str] = None
    payments: List[ExtractedPayment] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "emetteur": self.issuer,
            "date_virement": self.transfer_date,
            "paiements": [p.to_dict() for p in self.payments],
        }


@dataclass
class BatchSummary:
    """Summary statistics for one batch analysis."""
    total_payments: int = 0
    total_expected: int = 0
    total_matched: int = 0
    total_partial: int = 0
    total_unmatched: int = 0
    total_amount: Decimal = Decimal("0")
    matched_amount: Decimal = Decimal("0")

    @property
    def match_rate(self) -> float:
        """Calculate match rate as percentage."""
        if self.total_payments == 0:
            return 0.0
        return (self.total_matched / self.total_payments) * 100

    @property
    def review_count(self) -> int:
        return self.total_partial + self.total_unmatched
