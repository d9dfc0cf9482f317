"""
engine.py
---------
One analytics run, end to end.

  authorize → fetch ledger → normalise → { MRR trend → forecast }
                                       → { churn-risk ranking }
                                       → summary

``build_report`` is the pure core: it takes records plus an explicit
reference date and never reads the clock.  ``run_analytics`` is the entry
point for callers holding a ``LedgerSource``; it checks the requester's roles
and defaults the reference date to now.

A forecast that cannot be fitted does not fail the run: the forecast section
is left empty and everything else is returned.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Iterable, Sequence

import numpy as np
import pandas as pd

import config
from cohorts import compute_mrr_trend
from errors import AuthorizationError, InsufficientDataError
from forecast import forecast_mrr, trailing_mrr
from ledger import normalize_ledger
from records import AnalyticsReport, LedgerSource, SubscriptionRecord, TransactionRecord
from risk import score_churn_risk
from summary import summarize

logger = logging.getLogger(__name__)


def authorize(roles: Iterable[str]) -> None:
    """
    Request-boundary check: the caller must hold an administrative role.

    Raises
    ------
    AuthorizationError
    """
    held = {str(r).strip().lower() for r in roles or ()}
    if not held & config.ADMIN_ROLES:
        raise AuthorizationError(
            f"Revenue analytics requires one of {sorted(config.ADMIN_ROLES)} roles"
        )


def as_reference_date(value=None) -> pd.Timestamp:
    """Normalise a date-like value (default: now) to a naive UTC timestamp."""
    ts = pd.Timestamp.now(tz="UTC") if value is None else pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC").tz_localize(None)
    return ts


def build_report(
    transactions:   Sequence[TransactionRecord],
    subscriptions:  Sequence[SubscriptionRecord],
    reference_date: pd.Timestamp,
) -> AnalyticsReport:
    """
    Compute trend, forecast, risk ranking and summary from a ledger snapshot.

    Parameters
    ----------
    transactions, subscriptions
        Full snapshot from the ledger source.
    reference_date : pd.Timestamp
        "Today".  Closes the trend window and anchors recency.

    Returns
    -------
    AnalyticsReport
        ``churn_risks`` capped at ``config.MAX_CHURN_RISKS``; ``summary``
        computed over every customer.
    """
    reference_date = as_reference_date(reference_date)
    ledger = normalize_ledger(transactions, subscriptions)

    trend = compute_mrr_trend(ledger.transactions, reference_date)

    notes: list[str] = []
    try:
        values = trailing_mrr(trend, ledger.history_start)
        forecast = forecast_mrr(values, reference_date.to_period("M"))
    except InsufficientDataError as exc:
        logger.warning("Forecast skipped: %s", exc)
        notes.append(f"forecast unavailable: {exc}")
        forecast = []

    risks = score_churn_risk(ledger.customers, reference_date)
    summary = summarize(trend, forecast, risks, ledger.active_subscribers)

    return AnalyticsReport(
        mrr_trend=trend,
        forecast=forecast,
        churn_risks=risks[:config.MAX_CHURN_RISKS],
        summary=summary,
        reference_date=reference_date,
        malformed_records=ledger.malformed_records,
        notes=notes,
    )


def run_analytics(
    source:         LedgerSource,
    roles:          Iterable[str],
    reference_date=None,
) -> AnalyticsReport:
    """
    Authorise, fetch a ledger snapshot from *source* and build the report.

    Raises
    ------
    AuthorizationError
        Requester is not an admin/owner.  Nothing is fetched.
    LedgerUnavailableError
        Propagated from *source*; no partial computation is attempted.
    """
    authorize(roles)
    transactions  = source.fetch_transactions()
    subscriptions = source.fetch_subscriptions()
    return build_report(transactions, subscriptions, as_reference_date(reference_date))


_RISK_EXPORT_COLUMNS = [
    "customer_id", "email", "name", "plan", "risk_score", "risk_level",
    "reasons", "last_payment", "days_since_payment", "total_paid", "ltv",
]


class _NpEncoder(json.JSONEncoder):
    """Serialize numpy scalars, arrays and pandas timestamps to plain Python types."""
    def default(self, obj):
        if isinstance(obj, np.integer): return int(obj)
        if isinstance(obj, np.floating): return float(obj)
        if isinstance(obj, np.ndarray):  return obj.tolist()
        if isinstance(obj, pd.Timestamp): return obj.isoformat()
        return super().default(obj)


def save_report(report: AnalyticsReport, output_dir: str = config.OUTPUT_DIR) -> dict[str, str]:
    """
    Persist the response JSON and a flat churn-risk CSV.

    Outputs
    -------
    <output_dir>/revenue_analytics.json
    <output_dir>/churn_risks.csv

    Returns
    -------
    dict[str, str]
        ``{"report": path, "churn_risks": path}``
    """
    os.makedirs(output_dir, exist_ok=True)

    report_path = os.path.join(output_dir, config.REPORT_FILE)
    with open(report_path, "w") as f:
        json.dump(report.to_dict(), f, indent=2, cls=_NpEncoder)
    logger.info("Saved %s", report_path)

    risk_rows = [p.to_dict() for p in report.churn_risks]
    for row in risk_rows:
        row["reasons"] = "; ".join(row["reasons"])
    risk_path = os.path.join(output_dir, config.RISK_EXPORT_FILE)
    pd.DataFrame(risk_rows, columns=_RISK_EXPORT_COLUMNS).to_csv(risk_path, index=False)
    logger.info("Saved %s", risk_path)

    return {"report": report_path, "churn_risks": risk_path}
