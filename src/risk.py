"""
risk.py
-------
Transparent churn-risk heuristic.

Each customer starts at 0 and collects points from four independent signals:

  Recency      days since last payment   > 60 → 40 | > 45 → 30 | > 35 → 20
  Failures     failed / (failed + paid)  > 0.30 → 30 | > 0.15 → 15
  Engagement   settled payments          ≤ 1 → 20 | == 2 → 10
  Value        lifetime value            < 100 → 10

Within a signal only the highest matching band fires.  The total is capped
at 100 and mapped to a level (critical ≥ 60, high ≥ 35, medium ≥ 15, low).
Reason strings are rendered verbatim downstream; keep them stable.
"""

from __future__ import annotations

import logging
import math

import pandas as pd

import config
from records import ChurnRiskProfile, round_money

logger = logging.getLogger(__name__)

RECENCY_REASONS = {
    40: "no payment in 60+ days",
    30: "no payment in 45+ days",
    20: "billing cycle possibly delayed",
}
MODERATE_FAILURE_REASON = "moderate failure rate"
SINGLE_PAYMENT_REASON   = "only 1 payment on record"
FEW_PAYMENTS_REASON     = "few payments on record"
LOW_LTV_REASON          = "LTV below threshold"


def classify_risk(score: int) -> str:
    """Map a final risk score to its level."""
    for floor, level in config.RISK_LEVELS:
        if score >= floor:
            return level
    return config.DEFAULT_RISK_LEVEL


def days_since(last_payment: pd.Timestamp, reference_date: pd.Timestamp) -> int:
    """Whole days elapsed, rounded down."""
    return (pd.Timestamp(reference_date) - pd.Timestamp(last_payment)).days


def score_customer(
    days:          int,
    payment_count: int,
    failed_count:  int,
    total_paid:    float,
) -> tuple[int, list[str]]:
    """
    Apply the rule table to one customer.

    Returns
    -------
    (score, reasons)
        Score capped at 100; reasons ordered recency, failures, engagement, value.
    """
    score = 0
    reasons: list[str] = []

    for threshold, points in config.RECENCY_BANDS:
        if days > threshold:
            score += points
            reasons.append(RECENCY_REASONS[points])
            break

    attempts = payment_count + failed_count
    if attempts > 0:
        ratio = failed_count / attempts
        high_floor, high_points = config.FAILURE_BANDS[0]
        mid_floor,  mid_points  = config.FAILURE_BANDS[1]
        if ratio > high_floor:
            score += high_points
            reasons.append(f"{math.floor(ratio * 100 + 0.5)}% of charges failed")
        elif ratio > mid_floor:
            score += mid_points
            reasons.append(MODERATE_FAILURE_REASON)

    if payment_count <= 1:
        score += config.SINGLE_PAYMENT_POINTS
        reasons.append(SINGLE_PAYMENT_REASON)
    elif payment_count == 2:
        score += config.FEW_PAYMENTS_POINTS
        reasons.append(FEW_PAYMENTS_REASON)

    if total_paid < config.LOW_LTV_THRESHOLD:
        score += config.LOW_LTV_POINTS
        reasons.append(LOW_LTV_REASON)

    return min(config.MAX_RISK_SCORE, score), reasons


def score_churn_risk(
    customers:      pd.DataFrame,
    reference_date: pd.Timestamp,
) -> list[ChurnRiskProfile]:
    """
    Score every customer and rank them, riskiest first.

    Parameters
    ----------
    customers : pd.DataFrame
        ``NormalizedLedger.customers`` (ledger-encounter order).
    reference_date : pd.Timestamp
        "Today" for the recency signal.

    Returns
    -------
    list[ChurnRiskProfile]
        Sorted by ``risk_score`` descending.  The sort is stable, so equal
        scores keep ledger-encounter order.
    """
    profiles = []
    for customer_id, row in customers.iterrows():
        days = days_since(row["last_payment"], reference_date)
        score, reasons = score_customer(
            days, int(row["payment_count"]), int(row["failed_count"]), float(row["total_paid"]),
        )
        total_paid = round_money(float(row["total_paid"]))
        profiles.append(ChurnRiskProfile(
            customer_id=str(customer_id),
            email=row["email"],
            name=row["name"],
            plan=row["plan"],
            risk_score=score,
            risk_level=classify_risk(score),
            reasons=reasons,
            last_payment=row["last_payment"],
            total_paid=total_paid,
            ltv=total_paid,
            days_since_payment=days,
        ))

    ranked = sorted(profiles, key=lambda p: p.risk_score, reverse=True)
    if ranked:
        logger.info("Scored %d customer(s); top risk %d (%s)",
                    len(ranked), ranked[0].risk_score, ranked[0].customer_id)
    return ranked
