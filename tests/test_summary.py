"""
Tests for the KPI summary.
"""

import pandas as pd
import pytest

from records import ChurnRiskProfile, ForecastPoint, MonthlyCohort
from summary import mrr_growth_pct, revenue_at_risk, round_half_up, summarize


def _cohort(month, mrr):
    return MonthlyCohort(month=month, mrr=mrr, new_mrr=0.0, churned_mrr=0.0, net_new=0.0)


def _profile(customer_id, ltv, level):
    score = {"critical": 70, "high": 40, "medium": 20, "low": 0}[level]
    return ChurnRiskProfile(
        customer_id=customer_id, email="-", name="-", plan="-",
        risk_score=score, risk_level=level, reasons=[],
        last_payment=pd.Timestamp("2026-10-01"), total_paid=ltv, ltv=ltv,
    )


class TestGrowth:

    def test_percent_change(self):
        assert mrr_growth_pct(110, 100) == 10
        assert mrr_growth_pct(50, 200) == -75

    def test_no_prior_revenue(self):
        assert mrr_growth_pct(500, 0) == 0

    def test_rounds_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert mrr_growth_pct(105, 200) == -47


class TestRevenueAtRisk:

    def test_amortised_over_average_mrr(self):
        at_risk = [_profile("a", 250, "critical"), _profile("b", 40, "high")]
        # avg MRR per customer = 300 / 3 = 100 → 250 over 3 months, 40 over 1
        assert revenue_at_risk(at_risk, current_mrr=300, total_customers=3) == pytest.approx(123.33)

    def test_zero_current_mrr_falls_back(self):
        at_risk = [_profile("a", 5, "critical")]
        assert revenue_at_risk(at_risk, current_mrr=0, total_customers=4) == pytest.approx(1.0)

    def test_no_customers(self):
        assert revenue_at_risk([], current_mrr=0, total_customers=0) == 0

    def test_negative_current_mrr_keeps_full_ltv(self):
        at_risk = [_profile("a", 250, "critical")]
        assert revenue_at_risk(at_risk, current_mrr=-50, total_customers=1) == pytest.approx(250.0)

    def test_half_cent_rounds_up(self):
        at_risk = [_profile("a", 0.125, "critical")]
        assert revenue_at_risk(at_risk, current_mrr=100, total_customers=1) == 0.13


class TestSummarize:

    def test_kpis(self):
        trend = [_cohort("2026-09", 200.0), _cohort("2026-10", 300.0)]
        forecast = [ForecastPoint("2026-11", 320.0, 384.0, 256.0)]
        risks = [
            _profile("a", 250, "critical"),
            _profile("b", 40, "high"),
            _profile("c", 900, "low"),
        ]
        summary = summarize(trend, forecast, risks, active_subscribers=2)

        assert summary.current_mrr == 300
        assert summary.mrr_growth_pct == 50
        assert summary.total_customers == 3
        assert summary.at_risk_customers == 2
        assert summary.avg_ltv == pytest.approx(396.67)
        assert summary.revenue_at_risk == pytest.approx(123.33)
        assert summary.projected_next_month == 320
        assert summary.active_subscribers == 2

    def test_medium_is_not_at_risk(self):
        summary = summarize([_cohort("2026-10", 10.0)], [], [_profile("a", 10, "medium")])
        assert summary.at_risk_customers == 0
        assert summary.revenue_at_risk == 0

    def test_empty_inputs(self):
        summary = summarize([], [], [])
        assert summary.current_mrr == 0
        assert summary.mrr_growth_pct == 0
        assert summary.avg_ltv == 0
        assert summary.projected_next_month == 0
