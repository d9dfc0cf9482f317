"""
records.py
----------
Input records consumed from the ledger and the derived entities the engine
returns.  Every derived value is rebuilt on each run; nothing here is
persisted back to the ledger.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol, Sequence

import pandas as pd


def round_money(value: float) -> float:
    """Round to cents with halves rounded up (10.125 → 10.13)."""
    return math.floor(value * 100 + 0.5) / 100


@dataclass(frozen=True)
class TransactionRecord:
    customer_id: str | None
    amount:      Any
    paid:        Any
    status:      str | None
    created_at:  Any
    customer_email: str | None = None
    customer_name:  str | None = None
    plan_name:      str | None = None


@dataclass(frozen=True)
class SubscriptionRecord:
    user_id: str | None
    plan:    str | None
    status:  str | None


class LedgerSource(Protocol):
    """Anything that can hand over a full ledger snapshot."""

    def fetch_transactions(self) -> Sequence[TransactionRecord]: ...

    def fetch_subscriptions(self) -> Sequence[SubscriptionRecord]: ...


@dataclass
class MonthlyCohort:
    month:       str
    mrr:         float
    new_mrr:     float
    churned_mrr: float
    net_new:     float
    new_customers:      int = 0
    churned_customers:  int = 0
    retained_customers: int = 0


@dataclass
class ForecastPoint:
    month:        str
    projected:    float
    optimistic:   float
    conservative: float


@dataclass
class ChurnRiskProfile:
    customer_id: str
    email:       str
    name:        str
    plan:        str
    risk_score:  int
    risk_level:  str
    reasons:     list[str]
    last_payment: pd.Timestamp
    total_paid:  float
    ltv:         float
    days_since_payment: int = 0

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["last_payment"] = self.last_payment.isoformat()
        return out


@dataclass
class AnalyticsSummary:
    current_mrr:          float = 0.0
    mrr_growth_pct:       int   = 0
    total_customers:      int   = 0
    at_risk_customers:    int   = 0
    avg_ltv:              float = 0.0
    revenue_at_risk:      float = 0.0
    projected_next_month: float = 0.0
    active_subscribers:   int   = 0


@dataclass
class AnalyticsReport:
    mrr_trend:   list[MonthlyCohort]
    forecast:    list[ForecastPoint]
    churn_risks: list[ChurnRiskProfile]
    summary:     AnalyticsSummary
    reference_date:    pd.Timestamp | None = None
    malformed_records: int = 0
    notes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready response: the four contractual sections plus run metadata."""
        return {
            "mrr_trend":   [asdict(c) for c in self.mrr_trend],
            "forecast":    [asdict(f) for f in self.forecast],
            "churn_risks": [p.to_dict() for p in self.churn_risks],
            "summary":     asdict(self.summary),
            "meta": {
                "reference_date": (
                    self.reference_date.isoformat() if self.reference_date is not None else None
                ),
                "malformed_records": self.malformed_records,
                "notes": list(self.notes),
            },
        }
