"""Validation for the manual entry form.

Missing required fields reject the submission silently (an empty list comes
back and nothing is stored), matching how the UI treats an incomplete form.
A category that does not belong to the chosen type is rejected the same way.
"""

from __future__ import annotations

from typing import Any, List, Optional

from .config import MAX_INSTALLMENTS
from .formatting import parse_localized_amount
from .ids import IdProvider, uuid_ids
from .installments import TransactionRequest, expand_installments
from .models import FamilyContext, Transaction, categories_for
from .periods import parse_date


def build_request(
    amount: Any,
    description: str,
    category: str,
    txn_type: str,
    date: Any,
    installments: Optional[int] = None,
) -> Optional[TransactionRequest]:
    value = parse_localized_amount(amount)
    if value is None or value < 0:
        return None
    if not (description or '').strip() or not (category or '').strip():
        return None
    if category.strip() not in categories_for(txn_type):
        return None
    if parse_date(date) is None:
        return None
    count = int(installments or 1)
    count = max(1, min(count, MAX_INSTALLMENTS))
    return TransactionRequest(
        amount=value,
        type=txn_type,
        category=category.strip(),
        description=description.strip(),
        date=date,
        installments=count,
    )


def submit_transaction_form(
    amount: Any,
    description: str,
    category: str,
    txn_type: str,
    date: Any,
    installments: Optional[int] = None,
    *,
    context: Optional[FamilyContext] = None,
    id_provider: IdProvider = uuid_ids,
) -> List[Transaction]:
    request = build_request(amount, description, category, txn_type, date, installments)
    if request is None:
        return []
    return expand_installments(request, context=context, id_provider=id_provider)
