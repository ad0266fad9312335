"""Expansion of a single entry request into dated transaction records."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional

from .ids import IdProvider, now_millis, uuid_ids
from .models import TRANSACTION_TYPES, FamilyContext, Transaction
from .periods import add_months, parse_date


@dataclass
class TransactionRequest:
    amount: float
    type: str
    category: str
    description: str
    date: Any
    installments: int = 1


def expand_installments(
    request: TransactionRequest,
    *,
    context: Optional[FamilyContext] = None,
    id_provider: IdProvider = uuid_ids,
    created_at: Optional[int] = None,
) -> List[Transaction]:
    """Turn ``request`` into one record, or one record per installment.

    With ``installments > 1`` record *i* is dated ``i`` calendar months after
    the request date, carries the full amount and gets ``" (i+1/N)"`` appended
    to its description.  Nothing is persisted here.
    """
    start = _validate(request)
    stamp = now_millis() if created_at is None else created_at
    user_id = context.user_id if context else None
    user_name = context.user_name if context else None
    amount = float(request.amount)
    total = int(request.installments or 1)

    if total <= 1:
        return [
            Transaction(
                id=id_provider(),
                amount=amount,
                type=request.type,
                category=request.category,
                description=request.description,
                date=start.isoformat(),
                created_at=stamp,
                user_id=user_id,
                user_name=user_name,
            )
        ]

    records: List[Transaction] = []
    for index in range(total):
        records.append(
            Transaction(
                id=id_provider(),
                amount=amount,
                type=request.type,
                category=request.category,
                description=f"{request.description} ({index + 1}/{total})",
                date=add_months(start, index).isoformat(),
                created_at=stamp,
                installment_current=index + 1,
                installment_total=total,
                user_id=user_id,
                user_name=user_name,
            )
        )
    return records


def _validate(request: TransactionRequest) -> date:
    if request.type not in TRANSACTION_TYPES:
        raise ValueError(f"Unknown transaction type '{request.type}'.")
    try:
        amount = float(request.amount)
    except (TypeError, ValueError):
        raise ValueError(f"Amount '{request.amount}' is not a number.") from None
    if amount != amount or amount < 0:
        raise ValueError("Amount must be a non-negative number.")
    start = parse_date(request.date)
    if start is None:
        raise ValueError(f"Unable to parse date '{request.date}'.")
    return start
