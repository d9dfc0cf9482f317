"""
Tests for the churn-risk heuristic and ranking.
"""

import pytest

from ledger import normalize_ledger
from risk import (
    FEW_PAYMENTS_REASON,
    LOW_LTV_REASON,
    MODERATE_FAILURE_REASON,
    SINGLE_PAYMENT_REASON,
    classify_risk,
    score_churn_risk,
    score_customer,
)
from tests.conftest import days_ago


def _rank(records, reference_date):
    return score_churn_risk(normalize_ledger(records).customers, reference_date)


class TestRuleTable:

    @pytest.mark.parametrize("days, points, reason", [
        (35, 0, None),
        (36, 20, "billing cycle possibly delayed"),
        (45, 20, "billing cycle possibly delayed"),
        (46, 30, "no payment in 45+ days"),
        (60, 30, "no payment in 45+ days"),
        (61, 40, "no payment in 60+ days"),
        (400, 40, "no payment in 60+ days"),
    ])
    def test_recency_bands(self, days, points, reason):
        score, reasons = score_customer(days, payment_count=5, failed_count=0, total_paid=500)
        assert score == points
        assert reasons == ([reason] if reason else [])

    def test_high_failure_ratio_reports_percentage(self):
        score, reasons = score_customer(0, payment_count=4, failed_count=6, total_paid=500)
        assert score == 30
        assert reasons == ["60% of charges failed"]

    def test_failure_percentage_rounds_half_up(self):
        _, reasons = score_customer(0, payment_count=5, failed_count=3, total_paid=500)
        assert reasons == ["38% of charges failed"]

    def test_moderate_failure_ratio(self):
        score, reasons = score_customer(0, payment_count=4, failed_count=1, total_paid=500)
        assert score == 15
        assert reasons == [MODERATE_FAILURE_REASON]

    def test_failure_ratio_boundaries(self):
        # exactly 0.30 is moderate, exactly 0.15 is nothing
        assert score_customer(0, payment_count=7, failed_count=3, total_paid=500)[0] == 15
        assert score_customer(0, payment_count=17, failed_count=3, total_paid=500)[0] == 0

    def test_engagement_bands(self):
        assert score_customer(0, 0, 0, 500) == (20, [SINGLE_PAYMENT_REASON])
        assert score_customer(0, 1, 0, 500) == (20, [SINGLE_PAYMENT_REASON])
        assert score_customer(0, 2, 0, 500) == (10, [FEW_PAYMENTS_REASON])
        assert score_customer(0, 3, 0, 500) == (0, [])

    def test_low_ltv(self):
        assert score_customer(0, 5, 0, 99.99) == (10, [LOW_LTV_REASON])
        assert score_customer(0, 5, 0, 100) == (0, [])

    def test_score_capped_and_ordered(self):
        score, reasons = score_customer(90, payment_count=0, failed_count=9, total_paid=0)
        assert score == 100
        assert reasons == [
            "no payment in 60+ days", "100% of charges failed",
            SINGLE_PAYMENT_REASON, LOW_LTV_REASON,
        ]


class TestClassification:

    @pytest.mark.parametrize("score, level", [
        (0, "low"), (14, "low"), (15, "medium"), (34, "medium"),
        (35, "high"), (59, "high"), (60, "critical"), (100, "critical"),
    ])
    def test_thresholds(self, score, level):
        assert classify_risk(score) == level

    def test_monotonic(self):
        order = ["low", "medium", "high", "critical"]
        ranks = [order.index(classify_risk(s)) for s in range(101)]
        assert ranks == sorted(ranks)


class TestRanking:

    def test_lapsed_single_small_payment(self, tx, reference_date):
        profiles = _rank([tx(amount=40, created_at=days_ago(70))], reference_date)
        profile = profiles[0]

        assert profile.risk_score == 70
        assert profile.risk_level == "critical"
        assert profile.reasons == [
            "no payment in 60+ days", SINGLE_PAYMENT_REASON, LOW_LTV_REASON,
        ]
        assert profile.days_since_payment == 70
        assert profile.ltv == profile.total_paid == 40

    def test_profile_fields(self, tx, reference_date):
        profile = _rank([
            tx(amount=150, created_at=days_ago(40), plan="Starter"),
            tx(amount=150, created_at=days_ago(10), plan="Pro"),
            tx(amount=150, paid=False, status="failed", created_at=days_ago(5), plan="Pro"),
        ], reference_date)[0]

        assert profile.customer_id == "cus_1"
        assert profile.email == "cus_1@example.com"
        assert profile.plan == "Pro"
        assert profile.last_payment == days_ago(5)
        assert profile.total_paid == 300
        # 1 failed of 3 attempts (> 0.30), two payments
        assert profile.risk_score == 40
        assert profile.reasons == ["33% of charges failed", FEW_PAYMENTS_REASON]

    def test_sorted_descending_and_stable(self, tx, reference_date):
        healthy = dict(amount=200)
        records = [
            tx(customer_id="first", created_at=days_ago(20), **healthy),
            tx(customer_id="first", created_at=days_ago(10), **healthy),
            tx(customer_id="first", created_at=days_ago(5), **healthy),
            tx(customer_id="risky", amount=20, created_at=days_ago(90)),
            tx(customer_id="second", created_at=days_ago(12), **healthy),
            tx(customer_id="second", created_at=days_ago(8), **healthy),
            tx(customer_id="second", created_at=days_ago(3), **healthy),
            tx(customer_id="third", created_at=days_ago(2), **healthy),
            tx(customer_id="third", created_at=days_ago(1), **healthy),
            tx(customer_id="third", created_at=days_ago(1), **healthy),
        ]
        profiles = _rank(records, reference_date)

        assert [p.customer_id for p in profiles] == ["risky", "first", "second", "third"]
        assert [p.risk_score for p in profiles] == [70, 0, 0, 0]

    def test_scores_within_bounds(self, tx, reference_date):
        records = [
            tx(customer_id=f"c{i}", amount=i * 7, paid=i % 3 != 0, status="failed",
               created_at=days_ago(i * 4))
            for i in range(30)
        ]
        for profile in _rank(records, reference_date):
            assert 0 <= profile.risk_score <= 100
            assert profile.risk_level == classify_risk(profile.risk_score)

    def test_empty(self, reference_date):
        assert _rank([], reference_date) == []
