"""
Shared fixtures for the revenue analytics test-suite.

Puts ``src/`` (and the repo root, for ``main.py``) on ``sys.path`` and offers
small builders for ledger records.
"""

import sys
from pathlib import Path

import matplotlib
import pandas as pd
import pytest

matplotlib.use("Agg")

repo_root = Path(__file__).resolve().parent.parent
src_path = repo_root / "src"
for path in (src_path, repo_root):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from records import SubscriptionRecord, TransactionRecord  # noqa: E402


REFERENCE_DATE = pd.Timestamp("2026-10-18")


def make_tx(
    customer_id="cus_1",
    amount=100,
    paid=True,
    status="paid",
    created_at="2026-10-05",
    email=None,
    name=None,
    plan="Pro",
) -> TransactionRecord:
    return TransactionRecord(
        customer_id=customer_id,
        amount=amount,
        paid=paid,
        status=status,
        created_at=created_at,
        customer_email=email if email is not None else f"{customer_id}@example.com",
        customer_name=name if name is not None else f"Name {customer_id}",
        plan_name=plan,
    )


def days_ago(days: int) -> pd.Timestamp:
    return REFERENCE_DATE - pd.Timedelta(days=days)


@pytest.fixture
def reference_date():
    return REFERENCE_DATE


@pytest.fixture
def tx():
    """Transaction builder with sensible defaults."""
    return make_tx


@pytest.fixture
def subscriptions():
    return [
        SubscriptionRecord(user_id="cus_1", plan="Pro", status="active"),
        SubscriptionRecord(user_id="cus_2", plan="Starter", status="Active"),
        SubscriptionRecord(user_id="cus_3", plan="Pro", status="cancelled"),
        SubscriptionRecord(user_id="cus_1", plan="Pro", status="active"),
    ]
