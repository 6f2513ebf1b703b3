"""Core payment matching engine."""

import logging
import math
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from payment_matcher.engine.fuzzy import fuzzy_match
from payment_matcher.engine.models import (
    BatchSummary,
    ExpectedPayment,
    ExtractedPayment,
    MatchResult,
    MatchStatus,
)

logger = logging.getLogger(__name__)

# Combined score weights (out of 100).
NAME_WEIGHT = 70
AMOUNT_CLOSE_BONUS = 30
AMOUNT_NEAR_BONUS = 15

# Amount delta thresholds, in percent of the expected amount.
AMOUNT_CLOSE_PERCENT = 5
AMOUNT_NEAR_PERCENT = 10

# Name score thresholds for status classification.
MATCHED_NAME_SCORE = 0.8
PARTIAL_NAME_SCORE = 0.6


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up."""
    return int(math.floor(value + 0.5))


def amount_bonus(delta_percent: float) -> int:
    """Points awarded for how close the paid amount is to the expected one."""
    if delta_percent < AMOUNT_CLOSE_PERCENT:
        return AMOUNT_CLOSE_BONUS
    if delta_percent < AMOUNT_NEAR_PERCENT:
        return AMOUNT_NEAR_BONUS
    return 0


def classify(name_score: float, delta_percent: float) -> MatchStatus:
    """Classify a candidate from its name score and amount delta."""
    if name_score > MATCHED_NAME_SCORE and delta_percent < AMOUNT_CLOSE_PERCENT:
        return MatchStatus.MATCHED
    if name_score > PARTIAL_NAME_SCORE or delta_percent < AMOUNT_NEAR_PERCENT:
        return MatchStatus.PARTIAL
    return MatchStatus.UNMATCHED


class PaymentMatchingEngine:
    """
    Matches payments read off payment proofs against the coupons an issuer owes.

    Matching Strategy:
    1. Score every expected payment: name similarity weighs 70 points, an
       amount within 5% adds 30 points, within 10% adds 15 points.
    2. Keep the best scoring candidate (first one wins on ties).
    3. Classify: matched when the name score is above 0.8 and the amount
       within 5%; partial when the name score is above 0.6 or the amount
       within 10%; unmatched otherwise.

    The engine holds no state between calls: the same inputs always give the
    same results.
    """

    def match_payment(
        self,
        payment: ExtractedPayment,
        expected_payments: Sequence[ExpectedPayment],
    ) -> MatchResult:
        """
        Find the best expected payment for one extracted payment.

        Args:
            payment: Payment read off a document.
            expected_payments: Candidates, in the order they should be preferred on ties.

        Returns:
            The classified MatchResult. A payment without any scoring candidate
            is unmatched with confidence 0.
        """
        best: Optional[Tuple[ExpectedPayment, float, Decimal, Decimal]] = None
        best_score = 0.0

        for expected in expected_payments:
            # is_finite first: ordering a NaN Decimal raises.
            if not expected.expected_amount.is_finite() or expected.expected_amount <= 0:
                logger.warning(
                    "Ignoring expected payment for %r: invalid amount %s",
                    expected.investor_name,
                    expected.expected_amount,
                )
                continue

            name_score = fuzzy_match(payment.beneficiary, expected.investor_name)
            delta = abs(payment.amount - expected.expected_amount)
            delta_percent = delta / expected.expected_amount * 100

            score = name_score * NAME_WEIGHT + amount_bonus(float(delta_percent))

            if score > best_score:
                best_score = score
                best = (expected, name_score, delta, delta_percent)

        if best is None:
            return MatchResult(
                payment=payment,
                matched_expected=None,
                status=MatchStatus.UNMATCHED,
                confidence=0,
            )

        expected, name_score, delta, delta_percent = best
        return MatchResult(
            payment=payment,
            matched_expected=expected,
            status=classify(name_score, float(delta_percent)),
            confidence=round_half_up(best_score),
            name_score=name_score,
            amount_delta_absolute=delta,
            amount_delta_percent=float(delta_percent),
        )

    def match_all(
        self,
        payments: Sequence[ExtractedPayment],
        expected_payments: Sequence[ExpectedPayment],
    ) -> Tuple[List[MatchResult], BatchSummary]:
        """
        Match every extracted payment independently.

        Args:
            payments: Payments read off the documents of one batch.
            expected_payments: Coupons expected for the tranche.

        Returns:
            Tuple of (one result per payment in input order, summary statistics).
        """
        results = [self.match_payment(p, expected_payments) for p in payments]
        summary = self._generate_summary(results, expected_payments)

        logger.info(
            "Matched %d payment(s) against %d expected: %d matched, %d partial, %d unmatched",
            summary.total_payments,
            summary.total_expected,
            summary.total_matched,
            summary.total_partial,
            summary.total_unmatched,
        )
        return results, summary

    def _generate_summary(
        self,
        results: List[MatchResult],
        expected_payments: Sequence[ExpectedPayment],
    ) -> BatchSummary:
        """Generate batch summary statistics."""
        summary = BatchSummary(
            total_payments=len(results),
            total_expected=len(expected_payments),
        )

        for result in results:
            summary.total_amount += result.payment.amount
            if result.status == MatchStatus.MATCHED:
                summary.total_matched += 1
                summary.matched_amount += result.payment.amount
            elif result.status == MatchStatus.PARTIAL:
                summary.total_partial += 1
            else:
                summary.total_unmatched += 1

        return summary
