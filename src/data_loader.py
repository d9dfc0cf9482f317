"""
data_loader.py
--------------
CSV-backed ledger source plus a quick data-quality audit.

``CsvLedger`` reads the two ledger exports from one folder and hands them
over as records, which is the contract every ledger source honours:

    fetch_transactions()  → list[TransactionRecord]   (ascending created_at)
    fetch_subscriptions() → list[SubscriptionRecord]

Typical usage
-------------
    from data_loader import CsvLedger, audit_ledger
    ledger = CsvLedger("data/")
    audit_ledger(ledger.load_frame("transactions"))
"""

import os
from dataclasses import asdict

import pandas as pd

import config
from errors import LedgerUnavailableError
from records import SubscriptionRecord, TransactionRecord

_CSV_FILES = {
    "transactions":  config.TRANSACTIONS_FILE,
    "subscriptions": config.SUBSCRIPTIONS_FILE,
}

# Columns each export must carry
_REQUIRED_COLUMNS = {
    "transactions":  ["customer_id", "amount", "paid", "status", "created_at"],
    "subscriptions": ["user_id", "plan", "status"],
}

_OPTIONAL_COLUMNS = {
    "transactions":  ["customer_email", "customer_name", "plan_name"],
    "subscriptions": [],
}


class CsvLedger:
    """
    Ledger source over ``transactions.csv`` and ``subscriptions.csv``.

    Parameters
    ----------
    data_dir : str
        Folder containing both exports.  Defaults to ``config.DATA_DIR``.
    """

    def __init__(self, data_dir: str = config.DATA_DIR):
        self.data_dir = data_dir

    def load_frame(self, table: str) -> pd.DataFrame:
        """
        Read one export as strings, exactly as stored.

        Raises
        ------
        LedgerUnavailableError
            File missing, unreadable, or without its required columns.
        """
        path = os.path.join(self.data_dir, _CSV_FILES[table])
        if not os.path.exists(path):
            raise LedgerUnavailableError(
                f"Missing file: {path}\n"
                f"Set DATA_DIR in config.py or pass --data-dir to the folder containing the ledger exports."
            )
        try:
            df = pd.read_csv(path, dtype=str, keep_default_na=False)
        except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise LedgerUnavailableError(f"Could not read {path}: {exc}") from exc

        missing = [c for c in _REQUIRED_COLUMNS[table] if c not in df.columns]
        if missing:
            raise LedgerUnavailableError(
                f"{path} is missing {len(missing)} required column(s): {missing}"
            )
        for col in _OPTIONAL_COLUMNS[table]:
            if col not in df.columns:
                df[col] = ""
        return df

    def fetch_transactions(self) -> list[TransactionRecord]:
        df = self.load_frame("transactions")
        cols = _REQUIRED_COLUMNS["transactions"] + _OPTIONAL_COLUMNS["transactions"]
        return [TransactionRecord(**row) for row in df[cols].to_dict("records")]

    def fetch_subscriptions(self) -> list[SubscriptionRecord]:
        df = self.load_frame("subscriptions")
        return [SubscriptionRecord(**row) for row in df[_REQUIRED_COLUMNS["subscriptions"]].to_dict("records")]


def write_ledger(
    transactions:  list[TransactionRecord],
    subscriptions: list[SubscriptionRecord],
    data_dir:      str,
) -> None:
    """Write records out in the layout ``CsvLedger`` reads."""
    os.makedirs(data_dir, exist_ok=True)
    pd.DataFrame([asdict(t) for t in transactions]).to_csv(
        os.path.join(data_dir, config.TRANSACTIONS_FILE), index=False)
    pd.DataFrame([asdict(s) for s in subscriptions]).to_csv(
        os.path.join(data_dir, config.SUBSCRIPTIONS_FILE), index=False)


def audit_ledger(transactions: pd.DataFrame) -> None:
    """
    Print a blank-value report and the settled / failed split.

    Blank ``customer_id`` rows are dropped by normalisation; blank
    ``customer_email`` / ``plan_name`` only affect labels.
    """
    print("\n=== LEDGER AUDIT ===")
    print(f"  Rows: {len(transactions):,}")
    for col in transactions.columns:
        blanks = (transactions[col].astype(str).str.strip() == "").sum()
        if blanks:
            print(f"  {col:<20} {blanks:>6} blank ({blanks / len(transactions):.1%})")

    if transactions.empty:
        return
    paid   = transactions["paid"].str.strip().str.lower().isin(config.TRUE_STRINGS)
    status = transactions["status"].str.strip().str.lower()
    failed = ~paid & ~status.isin(config.PENDING_STATUSES)
    print(f"  Settled : {paid.sum():>6}  ({paid.mean():.1%})")
    print(f"  Failed  : {failed.sum():>6}  ({failed.mean():.1%})")
    print(f"  Customers: {transactions['customer_id'].str.strip().replace('', pd.NA).nunique():,}")
