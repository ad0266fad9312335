"""Debt records: creation, status changes and the outstanding total."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any, Dict, FrozenSet, Iterable, Optional

from .formatting import parse_localized_amount
from .ids import IdProvider, now_millis, uuid_ids
from .models import DEBT_STATUSES, NEGOTIATING, PAID, PENDING, Debt, FamilyContext

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    PENDING: frozenset({NEGOTIATING, PAID}),
    NEGOTIATING: frozenset({PAID}),
    PAID: frozenset(),
}


class InvalidStatusTransition(ValueError):
    pass


def create_debt(
    creditor: str,
    current_value: Any,
    original_value: Any = None,
    status: str = PENDING,
    description: Optional[str] = None,
    due_date: Optional[str] = None,
    *,
    context: Optional[FamilyContext] = None,
    id_provider: IdProvider = uuid_ids,
    created_at: Optional[int] = None,
) -> Optional[Debt]:
    """Build a debt from form input.

    Returns ``None`` when the creditor or current value is missing or not a
    valid amount.  The original value falls back to the current value and the
    due date to today.
    """
    if not (creditor or '').strip():
        return None
    current = parse_localized_amount(current_value)
    if current is None or current < 0:
        return None
    original = parse_localized_amount(original_value)
    if original is None or original < 0:
        original = current
    if status not in DEBT_STATUSES:
        raise ValueError(f"Unknown debt status '{status}'.")
    return Debt(
        id=id_provider(),
        creditor=creditor.strip(),
        original_value=original,
        current_value=current,
        status=status,
        created_at=now_millis() if created_at is None else created_at,
        description=(description or '').strip() or None,
        due_date=due_date or date.today().isoformat(),
        user_id=context.user_id if context else None,
    )


def change_status(debt: Debt, status: str) -> Debt:
    if status not in DEBT_STATUSES:
        raise ValueError(f"Unknown debt status '{status}'.")
    if status == debt.status:
        return debt
    if status not in ALLOWED_TRANSITIONS.get(debt.status, frozenset()):
        raise InvalidStatusTransition(f"Cannot move a debt from {debt.status} to {status}.")
    return replace(debt, status=status)


def edit_values(debt: Debt, original_value: Any = None, current_value: Any = None) -> Debt:
    """Explicit edit of the value fields; ``None`` leaves a field unchanged."""
    changes: Dict[str, float] = {}
    for field_name, raw in (('original_value', original_value), ('current_value', current_value)):
        if raw is None:
            continue
        value = parse_localized_amount(raw)
        if value is None or value < 0:
            raise ValueError(f"Invalid value for {field_name}: {raw!r}")
        changes[field_name] = value
    return replace(debt, **changes) if changes else debt


def outstanding_total(debts: Iterable[Debt]) -> float:
    total = 0.0
    for debt in debts:
        if debt.status == PAID:
            continue
        value = parse_localized_amount(debt.current_value)
        if value is not None:
            total += value
    return round(total, 2)
