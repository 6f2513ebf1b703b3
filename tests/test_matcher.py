"""Tests for the payment matching engine."""

from decimal import Decimal

import pytest

from payment_matcher.engine.matcher import (
    PaymentMatchingEngine,
    amount_bonus,
    classify,
    round_half_up,
)
from payment_matcher.engine.models import (
    ExpectedPayment,
    ExtractedPayment,
    MatchStatus,
)


def make_payment(beneficiary: str, amount: str, date: str = "05-09-2025", ref: str = None) -> ExtractedPayment:
    """Helper to create extracted payments."""
    return ExtractedPayment(
        beneficiary=beneficiary,
        amount=Decimal(amount),
        date=date,
        reference=ref,
    )


def make_expected(name: str, amount: str, sub: str = "SUB-1", inv: str = "INV-1") -> ExpectedPayment:
    """Helper to create expected payments."""
    return ExpectedPayment(
        investor_name=name,
        expected_amount=Decimal(amount),
        subscription_id=sub,
        investor_id=inv,
    )


class TestScoringRules:
    """Test the scoring and classification policy."""

    @pytest.mark.parametrize("delta_percent,bonus", [
        (0.0, 30), (4.99, 30), (5.0, 15), (9.99, 15), (10.0, 0), (250.0, 0),
    ])
    def test_amount_bonus(self, delta_percent, bonus):
        assert amount_bonus(delta_percent) == bonus

    def test_classify_matched(self):
        assert classify(0.81, 4.9) == MatchStatus.MATCHED

    def test_classify_name_score_boundary(self):
        # strictly above 0.8 is required
        assert classify(0.8, 0.0) == MatchStatus.PARTIAL

    def test_classify_partial_on_amount(self):
        assert classify(0.0, 9.9) == MatchStatus.PARTIAL

    def test_classify_unmatched(self):
        assert classify(0.6, 10.0) == MatchStatus.UNMATCHED

    def test_round_half_up(self):
        assert round_half_up(66.5) == 67
        assert round_half_up(84.5) == 85
        assert round_half_up(84.49) == 84
        assert round_half_up(0.4) == 0


class TestMatchPayment:
    """Test matching one payment against candidates."""

    def test_exact_match(self):
        engine = PaymentMatchingEngine()
        result = engine.match_payment(
            make_payment("Jean Dupont", "1000"),
            [make_expected("Jean Dupont", "1000")],
        )

        assert result.status == MatchStatus.MATCHED
        assert result.is_matched
        assert result.confidence == 100
        assert result.name_score == 1.0
        assert result.amount_delta_percent == 0.0
        assert result.amount_delta_absolute == Decimal("0")
        assert result.matched_expected.subscription_id == "SUB-1"

    def test_five_percent_delta_is_partial(self):
        engine = PaymentMatchingEngine()
        result = engine.match_payment(
            make_payment("Jean Dupont", "1050"),
            [make_expected("Jean Dupont", "1000")],
        )

        assert result.amount_delta_absolute == Decimal("50")
        assert result.amount_delta_percent == 5.0
        assert result.confidence == 85
        assert result.status == MatchStatus.PARTIAL

    def test_near_amount_bonus(self):
        engine = PaymentMatchingEngine()
        result = engine.match_payment(
            make_payment("M. Jean Dupont", "1080"),
            [make_expected("Jean Dupont", "1000")],
        )

        assert result.confidence == 85
        assert result.status == MatchStatus.PARTIAL

    def test_empty_expected_payments(self):
        engine = PaymentMatchingEngine()
        result = engine.match_payment(make_payment("Jean Dupont", "1000"), [])

        assert result.status == MatchStatus.UNMATCHED
        assert result.confidence == 0
        assert result.matched_expected is None

    def test_best_candidate_selected(self):
        engine = PaymentMatchingEngine()
        expected = [
            make_expected("Jean Dupont", "500", sub="SUB-1"),
            make_expected("Marie Curie", "500", sub="SUB-2"),
        ]
        result = engine.match_payment(make_payment("Mme Marie Curie", "500"), expected)

        assert result.matched_expected.subscription_id == "SUB-2"
        assert result.status == MatchStatus.MATCHED

    def test_first_candidate_wins_ties(self):
        engine = PaymentMatchingEngine()
        expected = [
            make_expected("Jean Dupont", "1000", sub="SUB-1"),
            make_expected("Jean Dupont", "1000", sub="SUB-2"),
        ]
        result = engine.match_payment(make_payment("Jean Dupont", "1000"), expected)

        assert result.matched_expected.subscription_id == "SUB-1"

    def test_amount_only_match_is_partial(self):
        engine = PaymentMatchingEngine()
        result = engine.match_payment(
            make_payment("Xavier Niel", "1000"),
            [make_expected("Jean Dupont", "1000")],
        )

        assert result.name_score == 0.0
        assert result.confidence == 30
        assert result.status == MatchStatus.PARTIAL

    def test_zero_score_candidate_not_retained(self):
        engine = PaymentMatchingEngine()
        result = engine.match_payment(
            make_payment("Xavier Niel", "5000"),
            [make_expected("Jean Dupont", "1000")],
        )

        assert result.matched_expected is None
        assert result.status == MatchStatus.UNMATCHED
        assert result.confidence == 0

    def test_weak_candidate_kept_but_unmatched(self):
        engine = PaymentMatchingEngine()
        result = engine.match_payment(
            make_payment("Jean Xavier", "5000"),
            [make_expected("Jean Dupont", "1000")],
        )

        assert result.matched_expected is not None
        assert result.status == MatchStatus.UNMATCHED
        assert result.confidence == 35
        assert result.amount_delta_percent == 400.0

    def test_confidence_rounds_half_up(self):
        # substring name (0.95 * 70 = 66.5), amount far off
        engine = PaymentMatchingEngine()
        result = engine.match_payment(
            make_payment("Dupont", "5000"),
            [make_expected("Jean Dupont", "1000")],
        )

        assert result.confidence == 67
        assert result.status == MatchStatus.PARTIAL

    def test_non_positive_expected_amounts_ignored(self):
        engine = PaymentMatchingEngine()
        expected = [
            make_expected("Jean Dupont", "0", sub="SUB-0"),
            make_expected("Jean Dupont", "-10", sub="SUB-NEG"),
        ]
        result = engine.match_payment(make_payment("Jean Dupont", "1000"), expected)

        assert result.matched_expected is None
        assert result.status == MatchStatus.UNMATCHED
        assert result.confidence == 0

    def test_non_positive_candidate_skipped_for_valid_one(self):
        engine = PaymentMatchingEngine()
        expected = [
            make_expected("Jean Dupont", "0", sub="SUB-0"),
            make_expected("Jean Dupont", "1000", sub="SUB-1"),
        ]
        result = engine.match_payment(make_payment("Jean Dupont", "1000"), expected)

        assert result.matched_expected.subscription_id == "SUB-1"

    def test_non_finite_expected_amounts_ignored(self):
        engine = PaymentMatchingEngine()
        expected = [
            make_expected("Jean Dupont", "Infinity", sub="SUB-INF"),
            make_expected("Jean Dupont", "NaN", sub="SUB-NAN"),
            make_expected("Jean Dupont", "1000", sub="SUB-1"),
        ]
        result = engine.match_payment(make_payment("Jean Dupont", "1000"), expected)

        assert result.matched_expected.subscription_id == "SUB-1"
        assert result.confidence == 100


class TestMatchAll:
    """Test matching a whole batch."""

    @pytest.fixture
    def expected(self):
        return [
            make_expected("Jean Dupont", "1000.00", sub="SUB-1"),
            make_expected("Helene Lefevre", "500.00", sub="SUB-2"),
            make_expected("ACME", "2000.00", sub="SUB-3"),
        ]

    @pytest.fixture
    def payments(self):
        return [
            make_payment("M. Jean Dupont", "1000.00"),
            make_payment("Mme Hélène Lefèvre", "530.00"),
            make_payment("Inconnu Total", "99999.00"),
        ]

    def test_one_result_per_payment_in_order(self, payments, expected):
        engine = PaymentMatchingEngine()
        results, _ = engine.match_all(payments, expected)

        assert len(results) == 3
        assert [r.payment for r in results] == payments
        assert results[0].status == MatchStatus.MATCHED
        assert results[1].status == MatchStatus.PARTIAL
        assert results[2].status == MatchStatus.UNMATCHED

    def test_summary(self, payments, expected):
        engine = PaymentMatchingEngine()
        _, summary = engine.match_all(payments, expected)

        assert summary.total_payments == 3
        assert summary.total_expected == 3
        assert summary.total_matched == 1
        assert summary.total_partial == 1
        assert summary.total_unmatched == 1
        assert summary.review_count == 2
        assert summary.total_amount == Decimal("101529.00")
        assert summary.matched_amount == Decimal("1000.00")
        assert summary.match_rate == pytest.approx(100 / 3)

    def test_idempotent(self, payments, expected):
        engine = PaymentMatchingEngine()
        first, _ = engine.match_all(payments, expected)
        second, _ = engine.match_all(payments, expected)

        assert first == second

    def test_empty_batch(self):
        engine = PaymentMatchingEngine()
        results, summary = engine.match_all([], [])

        assert results == []
        assert summary.match_rate == 0.0
        assert summary.review_count == 0
