"""
summary.py
----------
Top-line KPIs derived from the trend, forecast and risk ranking.
"""

from __future__ import annotations

import math
from typing import Sequence

import config
from records import AnalyticsSummary, ChurnRiskProfile, ForecastPoint, MonthlyCohort, round_money


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def mrr_growth_pct(current: float, previous: float) -> int:
    """Whole-percent change versus the prior month; 0 when it had no revenue."""
    if previous <= 0:
        return 0
    return round_half_up(100 * (current - previous) / previous)


def revenue_at_risk(
    at_risk:         Sequence[ChurnRiskProfile],
    current_mrr:     float,
    total_customers: int,
) -> float:
    """
    Rough monthly revenue carried by at-risk customers.

    Each customer's LTV is spread over ``ceil(ltv / avg_mrr)`` months, where
    ``avg_mrr`` is current MRR per customer.  This is an amortisation proxy,
    not a billing-period lookup.
    """
    avg_mrr = current_mrr / total_customers if total_customers else 0.0
    if avg_mrr == 0:
        avg_mrr = 1.0
    total = 0.0
    for profile in at_risk:
        months = max(1, math.ceil(profile.ltv / avg_mrr))
        total += profile.ltv / months
    return round_money(total)


def summarize(
    trend:    Sequence[MonthlyCohort],
    forecast: Sequence[ForecastPoint],
    risks:    Sequence[ChurnRiskProfile],
    active_subscribers: int = 0,
) -> AnalyticsSummary:
    """
    Combine the three passes into ``AnalyticsSummary``.

    *risks* must be the full ranking, not the capped response list, so
    customer counts and LTV averages cover everyone.
    """
    current  = trend[-1].mrr if len(trend) >= 1 else 0.0
    previous = trend[-2].mrr if len(trend) >= 2 else 0.0

    total_customers = len(risks)
    at_risk = [p for p in risks if p.risk_level in config.AT_RISK_LEVELS]
    avg_ltv = (
        round_money(sum(p.ltv for p in risks) / total_customers) if total_customers else 0.0
    )

    return AnalyticsSummary(
        current_mrr=current,
        mrr_growth_pct=mrr_growth_pct(current, previous),
        total_customers=total_customers,
        at_risk_customers=len(at_risk),
        avg_ltv=avg_ltv,
        revenue_at_risk=revenue_at_risk(at_risk, current, total_customers),
        projected_next_month=forecast[0].projected if forecast else 0.0,
        active_subscribers=active_subscribers,
    )
