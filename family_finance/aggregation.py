"""Month-scoped aggregations over a family's transaction list.

The functions in this module are pure: they take the transaction list as
loaded from the ledger (``Transaction`` objects or the raw stored dicts) and
never touch storage.  Internally the list is normalised into a pandas
DataFrame once; records whose date, amount or type cannot be understood are
kept out of every date-bounded query and described in
``DataFrame.attrs['quality_issues']`` so the UI can show a warning.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .models import EXPENSE, INCOME, TRANSACTION_TYPES, MonthlySummary, PeriodSummary, Transaction
from .periods import Period, iter_periods, parse_date

TransactionLike = Union[Transaction, Dict[str, Any]]

FRAME_COLUMNS = ['position', 'id', 'amount', 'type', 'category', 'date', 'year', 'month']


def _as_transaction(record: TransactionLike) -> Transaction:
    if isinstance(record, Transaction):
        return record
    return Transaction.from_dict(record)


def _parse_amount(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if np.isnan(number) or np.isinf(number):
        return None
    return number


def build_frame(transactions: Iterable[TransactionLike]) -> pd.DataFrame:
    """Normalise ``transactions`` into a frame of valid rows.

    The returned frame only holds rows with a parsed date, a finite
    non-negative amount and a known type.  Everything else is counted in
    ``attrs['quality_issues']`` and ``attrs['excluded_ids']``.
    """
    rows: List[Dict[str, Any]] = []
    issues: List[str] = []
    excluded: List[str] = []

    for position, record in enumerate(transactions or []):
        txn = _as_transaction(record)
        problems: List[str] = []
        parsed_date = parse_date(txn.date)
        if parsed_date is None:
            problems.append(f"unparseable date {txn.date!r}")
        amount = _parse_amount(txn.amount)
        if amount is None:
            problems.append(f"unparseable amount {txn.amount!r}")
        elif amount < 0:
            problems.append(f"negative amount {txn.amount!r}")
        if txn.type not in TRANSACTION_TYPES:
            problems.append(f"unknown type {txn.type!r}")
        if problems:
            excluded.append(txn.id)
            issues.append(f"Transaction {txn.id or '#' + str(position + 1)} ignored: " + ", ".join(problems) + ".")
            continue
        rows.append({
            'position': position,
            'id': txn.id,
            'amount': amount,
            'type': txn.type,
            'category': txn.category or 'Diversos',
            'date': parsed_date,
            'year': parsed_date.year,
            'month': parsed_date.month,
        })

    frame = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    frame['amount'] = frame['amount'].astype(float)
    frame.attrs['quality_issues'] = issues
    frame.attrs['excluded_ids'] = excluded
    return frame


def quality_issues(transactions: Iterable[TransactionLike]) -> List[str]:
    """Describe stored records that aggregation had to leave out."""
    return list(build_frame(transactions).attrs['quality_issues'])


def _period_rows(frame: pd.DataFrame, year: int, month: int) -> pd.DataFrame:
    return frame[(frame['year'] == year) & (frame['month'] == month)]


def _summarize(rows: pd.DataFrame) -> Tuple[float, float]:
    if rows.empty:
        return 0.0, 0.0
    income = float(np.where(rows['type'] == INCOME, rows['amount'], 0.0).sum())
    expense = float(np.where(rows['type'] == EXPENSE, rows['amount'], 0.0).sum())
    return round(income, 2), round(expense, 2)


class LedgerAnalytics:
    """Aggregations over one transaction list, parsed once."""

    def __init__(self, transactions: Iterable[TransactionLike]):
        self.transactions: List[Transaction] = [_as_transaction(t) for t in (transactions or [])]
        self.data = build_frame(self.transactions)

    @property
    def quality_issues(self) -> List[str]:
        return list(self.data.attrs.get('quality_issues', []))

    def period_summary(self, year: int, month: int) -> PeriodSummary:
        income, expense = _summarize(_period_rows(self.data, year, month))
        return PeriodSummary(income=income, expense=expense, balance=income - expense)

    def category_breakdown(
        self,
        year: int,
        month: int,
        txn_type: str = EXPENSE,
        top_k: Optional[int] = 8,
    ) -> List[Tuple[str, float]]:
        """Per-category totals for one period, largest first.

        Ties are ordered by category name so repeated calls give the same
        sequence.  ``top_k=None`` keeps every category.
        """
        if top_k is not None and top_k < 0:
            raise ValueError("top_k must be zero or positive.")
        rows = _period_rows(self.data, year, month)
        rows = rows[rows['type'] == txn_type]
        if rows.empty:
            return []
        totals = rows.groupby('category', sort=True)['amount'].sum()
        totals = totals.sort_values(ascending=False, kind='mergesort')
        if top_k is not None:
            totals = totals.head(top_k)
        return [(str(category), round(float(amount), 2)) for category, amount in totals.items()]

    def rolling_projection(self, start: Period, count: int) -> List[MonthlySummary]:
        """Summaries for ``count`` consecutive months beginning at ``start``."""
        projection: List[MonthlySummary] = []
        for period in iter_periods(Period(*start), count):
            summary = self.period_summary(period.year, period.month)
            projection.append(MonthlySummary(
                month=period.label,
                income=summary.income,
                expense=summary.expense,
                balance=summary.balance,
            ))
        return projection

    def upcoming_items(self, as_of: Any, limit: Optional[int] = 5) -> List[Transaction]:
        """Transactions dated on or after ``as_of`` (day granularity), soonest first."""
        cutoff = parse_date(as_of)
        if cutoff is None:
            raise ValueError(f"Unable to parse reference date '{as_of}'.")
        rows = self.data[self.data['date'] >= cutoff] if not self.data.empty else self.data
        if rows.empty:
            return []
        rows = rows.sort_values(['date', 'position'], kind='mergesort')
        if limit is not None:
            rows = rows.head(max(limit, 0))
        return [self.transactions[int(position)] for position in rows['position']]

    def month_transactions(self, year: int, month: int) -> List[Transaction]:
        """The statement view of one period: newest date first."""
        rows = _period_rows(self.data, year, month)
        if rows.empty:
            return []
        rows = rows.sort_values(['date', 'position'], ascending=[False, True], kind='mergesort')
        return [self.transactions[int(position)] for position in rows['position']]

    def totals(self) -> PeriodSummary:
        """Unfiltered income/expense totals over every valid record."""
        income, expense = _summarize(self.data)
        return PeriodSummary(income=income, expense=expense, balance=income - expense)


# ---------------------------------------------------------------------------
# Functional wrappers
# ---------------------------------------------------------------------------


def period_summary(transactions: Sequence[TransactionLike], year: int, month: int) -> PeriodSummary:
    return LedgerAnalytics(transactions).period_summary(year, month)


def category_breakdown(
    transactions: Sequence[TransactionLike],
    year: int,
    month: int,
    txn_type: str = EXPENSE,
    top_k: Optional[int] = 8,
) -> List[Tuple[str, float]]:
    return LedgerAnalytics(transactions).category_breakdown(year, month, txn_type, top_k)


def rolling_projection(transactions: Sequence[TransactionLike], start: Period, count: int) -> List[MonthlySummary]:
    return LedgerAnalytics(transactions).rolling_projection(start, count)


def upcoming_items(transactions: Sequence[TransactionLike], as_of: Any, limit: Optional[int] = 5) -> List[Transaction]:
    return LedgerAnalytics(transactions).upcoming_items(as_of, limit)


def month_transactions(transactions: Sequence[TransactionLike], year: int, month: int) -> List[Transaction]:
    return LedgerAnalytics(transactions).month_transactions(year, month)