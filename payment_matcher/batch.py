"""Batch analysis: extract payments from documents, then match them."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from payment_matcher.engine.matcher import PaymentMatchingEngine
from payment_matcher.engine.models import (
    BatchSummary,
    ExpectedPayment,
    ExtractionResult,
    MatchResult,
)
from payment_matcher.extraction.vision import VisionExtractor

logger = logging.getLogger(__name__)


def result_details(result: MatchResult) -> Dict[str, str]:
    """Formatted deltas shown to the operator next to a match."""
    if result.matched_expected is None:
        return {}
    return {
        "ecartMontant": f"{result.amount_delta_absolute:.2f}",
        "ecartMontantPourcent": f"{result.amount_delta_percent:.2f}",
        "nameScore": f"{result.name_score * 100:.0f}",
    }


def error_envelope(error: Exception) -> Dict[str, Any]:
    """Response body for a failed batch analysis."""
    return {"succes": False, "erreur": str(error)}


@dataclass
class BatchReport:
    """Everything a batch analysis produced, ready for operator review."""
    extraction: ExtractionResult
    results: List[MatchResult]
    summary: BatchSummary
    processing_time: float = 0.0
    documents: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Response body for a successful batch analysis."""
        return {
            "succes": True,
            "donneesExtraites": self.extraction.to_dict(),
            "correspondances": [
                {
                    "paiement": r.payment.to_dict(),
                    "attendu": r.matched_expected.to_dict() if r.matched_expected else None,
                    "statut": r.status.value,
                    "confiance": r.confidence,
                    "details": result_details(r),
                }
                for r in self.results
            ],
        }


class BatchAnalyzer:
    """Runs one batch: document extraction, then matching of every payment line."""

    def __init__(
        self,
        extractor: Optional[VisionExtractor] = None,
        engine: Optional[PaymentMatchingEngine] = None,
    ):
        self.extractor = extractor
        self.engine = engine or PaymentMatchingEngine()

    def analyze(
        self,
        documents: Sequence[str],
        expected_payments: Sequence[ExpectedPayment],
    ) -> BatchReport:
        """
        Extract payments from the documents and match them.

        Args:
            documents: URLs or local paths of the payment proof pages.
            expected_payments: Coupons expected for the tranche.

        Raises:
            ValueError: If no document is given or no extractor is configured.
            ExtractionError: If the documents could not be read.
        """
        if self.extractor is None:
            raise ValueError("No extractor configured for document analysis")

        documents = [d for d in documents if d and d.strip()]
        if not documents:
            raise ValueError("No document provided")

        start_time = time.time()
        logger.info("Analyzing batch of %d document(s)", len(documents))

        extraction = self.extractor.extract(documents)
        report = self.match_extracted(extraction, expected_payments)

        report.documents = list(documents)
        report.processing_time = time.time() - start_time
        logger.info("Batch analyzed in %.2fs", report.processing_time)
        return report

    def match_extracted(
        self,
        extraction: ExtractionResult,
        expected_payments: Sequence[ExpectedPayment],
    ) -> BatchReport:
        """Match already extracted payments against the expected payments."""
        if not expected_payments:
            logger.warning("No expected payments: every payment will be unmatched")

        start_time = time.time()
        results, summary = self.engine.match_all(extraction.payments, expected_payments)

        return BatchReport(
            extraction=extraction,
            results=results,
            summary=summary,
            processing_time=time.time() - start_time,
        )
