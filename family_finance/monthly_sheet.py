"""Monthly sheet: one amount per category for a whole month.

The sheet is prefilled with what the month already holds per category and
saving creates one new transaction for each category with a positive amount.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .aggregation import LedgerAnalytics, TransactionLike
from .formatting import format_decimal_comma, parse_localized_amount
from .ids import IdProvider, now_millis, uuid_ids
from .models import TRANSACTION_TYPES, FamilyContext, Transaction, categories_for
from .periods import Period


def sheet_values(
    transactions: Iterable[TransactionLike],
    year: int,
    month: int,
    txn_type: str,
    categories: Optional[Sequence[str]] = None,
) -> Dict[str, str]:
    categories = list(categories) if categories is not None else categories_for(txn_type)
    totals = dict(LedgerAnalytics(transactions).category_breakdown(year, month, txn_type, top_k=None))
    values: Dict[str, str] = {}
    for category in categories:
        total = totals.get(category, 0.0)
        values[category] = format_decimal_comma(total) if total > 0 else ''
    return values


def sheet_transactions(
    values: Mapping[str, str],
    year: int,
    month: int,
    txn_type: str,
    *,
    context: Optional[FamilyContext] = None,
    id_provider: IdProvider = uuid_ids,
    created_at: Optional[int] = None,
) -> List[Transaction]:
    if txn_type not in TRANSACTION_TYPES:
        raise ValueError(f"Unknown transaction type '{txn_type}'.")
    period = Period.checked(year, month)
    stamp = now_millis() if created_at is None else created_at
    records: List[Transaction] = []
    for category, raw in values.items():
        amount = parse_localized_amount(raw)
        if amount is None or amount <= 0:
            continue
        records.append(Transaction(
            id=id_provider(),
            amount=amount,
            type=txn_type,
            category=category,
            description=f"Lançamento Mensal: {category}",
            date=period.first_day().isoformat(),
            created_at=stamp,
            user_id=context.user_id if context else None,
            user_name=context.user_name if context else None,
        ))
    return records
