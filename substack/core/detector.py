# substack/core/detector.py
from typing import IO, List, Union

import pandas as pd

from substack.core.categories import BillingCycle, classify_merchant
from substack.core.models import DetectedSubscriptionCandidate, Transaction
from substack.utils.logger import get_logger

logger = get_logger(__name__)

STATEMENT_COLUMNS = ["date", "description", "amount", "merchant"]


class TransactionPatternDetector:
    """
    Finds merchants charged on a monthly rhythm.

    A merchant qualifies when it has at least `min_transactions` charges and
    every gap between consecutive charge dates is within
    [`min_gap_days`, `max_gap_days`]. One gap outside the window rejects the
    merchant. Weekly and yearly rhythms are not detected.
    """

    def __init__(self, min_transactions: int = 2, min_gap_days: int = 25, max_gap_days: int = 35):
        self.min_transactions = min_transactions
        self.min_gap_days = min_gap_days
        self.max_gap_days = max_gap_days

    def detect(self, transactions: List[Transaction]) -> List[DetectedSubscriptionCandidate]:
        if not transactions:
            return []

        df = pd.DataFrame(
            [(t.date, t.amount, t.merchant) for t in transactions],
            columns=["date", "amount", "merchant"],
        )
        df["date"] = pd.to_datetime(df["date"])

        candidates = []
        # sort=False keeps merchants in order of first appearance
        for merchant, group in df.groupby("merchant", sort=False):
            if len(group) < self.min_transactions:
                continue

            dates = group["date"].sort_values()
            gaps = dates.diff().dropna().dt.days
            if not gaps.between(self.min_gap_days, self.max_gap_days).all():
                logger.debug(f"'{merchant}' has an irregular cadence: {gaps.tolist()}")
                continue

            candidates.append(DetectedSubscriptionCandidate(
                merchant_name=merchant,
                amount=int(group["amount"].iloc[0]),  # first charge in input order
                frequency=BillingCycle.MONTHLY,
                last_charge_date=dates.iloc[-1].date(),
                category=classify_merchant(merchant),
            ))

        logger.info(f"Detected {len(candidates)} monthly subscriptions in {len(transactions)} transactions")
        return candidates


def load_transactions_csv(source: Union[str, IO]) -> List[Transaction]:
    """
    Reads a card statement CSV with a `date,description,amount,merchant` header.

    Rows whose date or amount cannot be parsed are dropped with a warning.
    """
    df = pd.read_csv(source, dtype=str, skipinitialspace=True)
    df.columns = [c.strip().lower() for c in df.columns]
    missing = [c for c in STATEMENT_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Statement is missing columns: {', '.join(missing)}")

    df["parsed_date"] = pd.to_datetime(df["date"], errors="coerce")
    df["parsed_amount"] = pd.to_numeric(
        df["amount"].str.replace(",", "", regex=False), errors="coerce"
    )
    bad = df["parsed_date"].isna() | df["parsed_amount"].isna() | df["merchant"].isna()
    if bad.any():
        logger.warning(f"Dropping {int(bad.sum())} unreadable statement rows")
    df = df[~bad]

    return [
        Transaction(
            date=row.parsed_date.date(),
            description=(row.description if isinstance(row.description, str) else "").strip(),
            amount=int(row.parsed_amount),
            merchant=row.merchant.strip(),
        )
        for row in df.itertuples(index=False)
    ]
