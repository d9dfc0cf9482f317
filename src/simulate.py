"""
simulate.py
-----------
Synthetic ledger for demos and smoke runs.

Customers sign up over the simulated months, pay a plan price once a month,
occasionally fail a charge and eventually churn.  Everything is driven by a
seeded generator, so the same parameters always give the same ledger.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
import pandas as pd

import config
from records import SubscriptionRecord, TransactionRecord

PLANS = {
    "Starter": 49.0,
    "Pro":     149.0,
    "Agency":  399.0,
}


@dataclass
class SimParams:
    n_customers:  int   = 120
    months:       int   = 14
    end:          str   = "2026-10-15"
    monthly_churn: float = 0.06     # probability a paying customer stops after any month
    failure_rate:  float = 0.08     # probability a monthly charge fails
    retry_rate:    float = 0.6      # probability a failed charge is retried and settles
    seed:          int   = config.RANDOM_STATE


def simulate_ledger(
    p: SimParams | None = None,
) -> tuple[list[TransactionRecord], list[SubscriptionRecord]]:
    """
    Generate a ledger ending at ``p.end``.

    Returns
    -------
    (transactions, subscriptions)
        Transactions sorted ascending by ``created_at``.
    """
    p = p or SimParams()
    rng = np.random.default_rng(p.seed)
    end = pd.Timestamp(p.end)
    first_month = end.to_period("M") - (p.months - 1)

    # signups skew towards recent months (mild growth)
    weights = np.linspace(1.0, 1.8, p.months)
    signup_offsets = rng.choice(p.months, size=p.n_customers, p=weights / weights.sum())
    plan_names = list(PLANS)

    rows = []
    subscriptions = []
    for i, offset in enumerate(signup_offsets):
        cid  = f"cus_{i + 1:04d}"
        plan = plan_names[rng.integers(len(plan_names))]
        day  = int(rng.integers(1, 29))
        status = "active"

        for month in range(int(offset), p.months):
            charged_at = (first_month + month).to_timestamp() + pd.Timedelta(days=day - 1)
            if charged_at > end:
                break
            if rng.random() < p.failure_rate:
                rows.append(_charge(cid, plan, charged_at, paid=False, status="failed"))
                if rng.random() >= p.retry_rate:
                    status = "suspended"
                    break
                charged_at = charged_at + pd.Timedelta(days=3)
                if charged_at > end:
                    break
            rows.append(_charge(cid, plan, charged_at, paid=True, status="paid"))
            if rng.random() < p.monthly_churn:
                status = "cancelled"
                break

        subscriptions.append(SubscriptionRecord(user_id=cid, plan=plan, status=status))

    rows.sort(key=lambda t: t.created_at)
    return rows, subscriptions


def _charge(cid: str, plan: str, at: pd.Timestamp, paid: bool, status: str) -> TransactionRecord:
    return TransactionRecord(
        customer_id=cid,
        amount=PLANS[plan],
        paid=paid,
        status=status,
        created_at=at,
        customer_email=f"{cid}@example.com",
        customer_name=f"Customer {cid[-4:]}",
        plan_name=plan,
    )
