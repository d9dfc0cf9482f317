"""
cohorts.py
----------
Monthly recurring revenue with a new / churned / retained decomposition.

For each calendar month M of the trailing window:

  mrr(M)          settled revenue dated inside M
  customers(M)    distinct customers with settled revenue in M
  new             customers(M)   − customers(M−1), valued at their M revenue
  churned         customers(M−1) − customers(M),   valued at their M−1 revenue
  net_new         new_mrr − churned_mrr

Churn is valued by what was lost in the prior month, not by the zero it
leaves behind.  ``mrr`` is the raw monthly total and is not reconciled
against ``mrr(M−1) + net_new``; amount drift of retained customers is
absorbed in the total.
"""

from __future__ import annotations

import logging

import pandas as pd

import config
from records import MonthlyCohort, round_money

logger = logging.getLogger(__name__)

_NO_REVENUE = pd.Series(dtype=float)


def month_key(period: pd.Period) -> str:
    """``YYYY-MM`` label used throughout the response."""
    return period.strftime("%Y-%m")


def revenue_by_month(transactions: pd.DataFrame) -> dict[pd.Period, pd.Series]:
    """
    Settled revenue per customer, bucketed by calendar month.

    Returns
    -------
    dict[pd.Period, pd.Series]
        Maps month → Series of settled amount indexed by ``customer_id``.
    """
    settled = transactions[transactions["paid"]]
    if settled.empty:
        return {}
    per_customer = (
        settled.assign(month=settled["created_at"].dt.to_period("M"))
        .groupby(["month", "customer_id"], sort=False)["amount"].sum()
    )
    return {
        month: grp.droplevel("month")
        for month, grp in per_customer.groupby(level="month", sort=False)
    }


def compute_mrr_trend(
    transactions:   pd.DataFrame,
    reference_date: pd.Timestamp,
    months:         int = config.TREND_MONTHS,
) -> list[MonthlyCohort]:
    """
    Build the trailing MRR trend, oldest month first.

    The first month of the window is compared against the month before the
    window when the ledger reaches that far back; otherwise all of its
    customers count as new.

    Parameters
    ----------
    transactions : pd.DataFrame
        ``NormalizedLedger.transactions``.
    reference_date : pd.Timestamp
        "Today"; its calendar month closes the window.
    months : int
        Window length (default 12).

    Returns
    -------
    list[MonthlyCohort]
    """
    current = pd.Timestamp(reference_date).to_period("M")
    revenue = revenue_by_month(transactions)

    trend = []
    for period in pd.period_range(end=current, periods=months, freq="M"):
        this_month = revenue.get(period, _NO_REVENUE)
        last_month = revenue.get(period - 1, _NO_REVENUE)

        is_new     = ~this_month.index.isin(last_month.index)
        is_churned = ~last_month.index.isin(this_month.index)

        new_mrr     = round_money(float(this_month[is_new].sum()))
        churned_mrr = round_money(float(last_month[is_churned].sum()))

        trend.append(MonthlyCohort(
            month=month_key(period),
            mrr=round_money(float(this_month.sum())),
            new_mrr=new_mrr,
            churned_mrr=churned_mrr,
            net_new=round_money(new_mrr - churned_mrr),
            new_customers=int(is_new.sum()),
            churned_customers=int(is_churned.sum()),
            retained_customers=int((~is_new).sum()),
        ))

    logger.info("MRR trend %s → %s: current MRR %.2f",
                trend[0].month if trend else "-", trend[-1].month if trend else "-",
                trend[-1].mrr if trend else 0.0)
    return trend
