"""
ledger.py
---------
Ledger normalisation: reshape raw transaction and subscription records into
uniform frames that every downstream pass reads from.

``normalize_ledger`` returns a ``NormalizedLedger`` holding

  transactions — one row per usable ledger entry, ledger order preserved
                 (customer_id | amount | paid | status | created_at | ...)
  customers    — one row per customer in ledger-encounter order
                 (email | name | plan | last_payment | total_paid |
                  payment_count | failed_count)

Rows without a ``customer_id`` or with an unreadable ``created_at`` cannot be
attributed and are dropped; rows with an unreadable ``amount`` are kept at
zero.  Both are counted and reported with a single ``MalformedRecordWarning``.
"""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import asdict, dataclass, fields
from typing import Any, Sequence

import pandas as pd

import config
from errors import MalformedRecordWarning
from records import SubscriptionRecord, TransactionRecord

logger = logging.getLogger(__name__)

_TX_COLUMNS  = [f.name for f in fields(TransactionRecord)]
_SUB_COLUMNS = [f.name for f in fields(SubscriptionRecord)]

_CUSTOMER_COLUMNS = [
    "email", "name", "plan", "last_payment",
    "total_paid", "payment_count", "failed_count",
]


@dataclass
class NormalizedLedger:
    transactions:       pd.DataFrame
    customers:          pd.DataFrame
    active_subscribers: int = 0
    malformed_records:  int = 0

    @property
    def history_start(self) -> pd.Period | None:
        """Calendar month of the first settled transaction, if any."""
        settled = self.transactions.loc[self.transactions["paid"], "created_at"]
        if settled.empty:
            return None
        return settled.min().to_period("M")


def normalize_ledger(
    transactions:  Sequence[TransactionRecord],
    subscriptions: Sequence[SubscriptionRecord] = (),
) -> NormalizedLedger:
    """
    Build the per-customer aggregate the cohort and risk passes share.

    Parameters
    ----------
    transactions : Sequence[TransactionRecord]
        Full ledger, ascending by ``created_at``.
    subscriptions : Sequence[SubscriptionRecord]
        Current subscription states (only the active count is used).

    Returns
    -------
    NormalizedLedger
    """
    tx, malformed = _clean_transactions(transactions)
    customers = _aggregate_customers(tx)
    active = _count_active(subscriptions)

    if malformed:
        warnings.warn(
            f"{malformed} malformed ledger record(s) skipped or zeroed during normalisation",
            MalformedRecordWarning,
            stacklevel=2,
        )
    logger.info(
        "Normalised %d transaction(s) for %d customer(s); %d active subscriber(s)",
        len(tx), len(customers), active,
    )
    return NormalizedLedger(
        transactions=tx,
        customers=customers,
        active_subscribers=active,
        malformed_records=malformed,
    )


def _clean_transactions(records: Sequence[TransactionRecord]) -> tuple[pd.DataFrame, int]:
    tx = pd.DataFrame([asdict(r) for r in records], columns=_TX_COLUMNS)

    for col in ["customer_id", "customer_email", "customer_name", "plan_name"]:
        tx[col] = tx[col].map(_clean_text).astype(object)

    created = pd.to_datetime(tx["created_at"], errors="coerce", utc=True, format="mixed")
    tx["created_at"] = created.dt.tz_convert(None)

    amounts = tx["amount"].map(_parse_amount).astype(float)
    bad_amount = amounts.isna()
    tx["amount"] = amounts.fillna(0.0)

    tx["paid"]   = tx["paid"].map(_parse_bool).astype(bool)
    tx["status"] = tx["status"].map(lambda s: (_clean_text(s) or "").lower())

    unattributable = tx["customer_id"].isna() | tx["created_at"].isna()
    malformed = int((unattributable | bad_amount).sum())

    tx = tx[~unattributable].reset_index(drop=True)
    return tx, malformed


def _aggregate_customers(tx: pd.DataFrame) -> pd.DataFrame:
    if tx.empty:
        empty = pd.DataFrame(columns=_CUSTOMER_COLUMNS)
        empty.index.name = "customer_id"
        return empty

    failed = ~tx["paid"] & ~tx["status"].isin(config.PENDING_STATUSES)
    work = tx.assign(
        settled_amount=tx["amount"].where(tx["paid"], 0.0),
        is_settled=tx["paid"].astype(int),
        is_failed=failed.astype(int),
    )

    # sort=False keeps customers in ledger-encounter order
    customers = work.groupby("customer_id", sort=False).agg(
        email         = ("customer_email", "first"),
        name          = ("customer_name",  "first"),
        last_payment  = ("created_at",     "max"),
        total_paid    = ("settled_amount", "sum"),
        payment_count = ("is_settled",     "sum"),
        failed_count  = ("is_failed",      "sum"),
    )

    # Most recent plan wins; equal timestamps keep ledger order so the last seen wins.
    latest_plan = (
        work.sort_values("created_at", kind="stable")
        .groupby("customer_id", sort=False)["plan_name"].last()
    )
    customers["plan"] = latest_plan.reindex(customers.index)

    for col in ["email", "name", "plan"]:
        customers[col] = customers[col].astype(object).where(customers[col].notna(), config.MISSING_LABEL)

    customers["payment_count"] = customers["payment_count"].astype(int)
    customers["failed_count"]  = customers["failed_count"].astype(int)
    return customers[_CUSTOMER_COLUMNS]


def _count_active(records: Sequence[SubscriptionRecord]) -> int:
    subs = pd.DataFrame([asdict(r) for r in records], columns=_SUB_COLUMNS)
    if subs.empty:
        return 0
    status = subs["status"].map(lambda s: (_clean_text(s) or "").lower())
    users = subs.loc[status == config.ACTIVE_STATUS, "user_id"].map(_clean_text).dropna()
    return int(users.nunique())


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


def _parse_amount(value: Any) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(amount):
        return None
    return amount


def _parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in config.TRUE_STRINGS
    if value is None:
        return False
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)
