"""Family-scoped persistence for transactions, debts and the active session.

Each family owns two JSON slots, ``transactions:<familyId>`` and
``debts:<familyId>``, holding their records most-recent-first.  Every call
takes an explicit :class:`~family_finance.models.FamilyContext`; nothing here
looks up a global "current user".
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .db import KeyValueStore
from .models import Debt, FamilyContext, Transaction, User

SESSION_KEY = 'session'


class LedgerCorruptionError(RuntimeError):
    """A slot holds data that is not a JSON list of records."""


def transactions_key(family_id: str) -> str:
    return f"transactions:{family_id}"


def debts_key(family_id: str) -> str:
    return f"debts:{family_id}"


def _decode_list(raw: Optional[str], key: str) -> List[Dict[str, Any]]:
    if raw is None or raw == '':
        return []
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise LedgerCorruptionError(f"Slot '{key}' does not contain valid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise LedgerCorruptionError(f"Slot '{key}' does not contain a list.")
    return [item for item in data if isinstance(item, dict)]


def _encode_list(records: List[Dict[str, Any]]) -> str:
    return json.dumps(records, ensure_ascii=False)


class LedgerStore:
    """Transactions and debts of every family, plus the session slot."""

    def __init__(self, store: Optional[Union[KeyValueStore, str, Path]] = None) -> None:
        if isinstance(store, KeyValueStore):
            self.kv = store
        else:
            self.kv = KeyValueStore(store)

    # Internal ----------------------------------------------------------------

    def _read(self, key: str) -> List[Dict[str, Any]]:
        try:
            return _decode_list(self.kv.get(key), key)
        except LedgerCorruptionError as exc:
            print(f"Failed to parse ledger slot: {exc}")
            return []

    def _mutate(self, key: str, change: Callable[[List[Dict[str, Any]]], List[Dict[str, Any]]]) -> None:
        def transform(raw: Optional[str]) -> str:
            return _encode_list(change(_decode_list(raw, key)))

        self.kv.update(key, transform)

    # Transactions -------------------------------------------------------------

    def list_transactions(self, ctx: FamilyContext) -> List[Transaction]:
        return [Transaction.from_dict(item) for item in self._read(transactions_key(ctx.family_id))]

    def append_transaction(self, ctx: FamilyContext, transaction: Transaction) -> None:
        self.append_transactions(ctx, [transaction])

    def append_transactions(self, ctx: FamilyContext, transactions: Iterable[Transaction]) -> None:
        """Prepend ``transactions`` in one write, keeping newest-first order."""
        new_items = [t.to_dict() for t in transactions]
        if not new_items:
            return
        # Each record is prepended in turn, so the last one given ends up first.
        self._mutate(transactions_key(ctx.family_id), lambda current: list(reversed(new_items)) + current)

    def remove_transaction(self, ctx: FamilyContext, transaction_id: str) -> None:
        self._mutate(
            transactions_key(ctx.family_id),
            lambda current: [item for item in current if str(item.get('id')) != transaction_id],
        )

    # Debts --------------------------------------------------------------------

    def list_debts(self, ctx: FamilyContext) -> List[Debt]:
        return [Debt.from_dict(item) for item in self._read(debts_key(ctx.family_id))]

    def append_debt(self, ctx: FamilyContext, debt: Debt) -> None:
        item = debt.to_dict()
        self._mutate(debts_key(ctx.family_id), lambda current: [item] + current)

    def update_debt(self, ctx: FamilyContext, debt: Debt) -> None:
        item = debt.to_dict()
        self._mutate(
            debts_key(ctx.family_id),
            lambda current: [item if str(d.get('id')) == debt.id else d for d in current],
        )

    def remove_debt(self, ctx: FamilyContext, debt_id: str) -> None:
        self._mutate(
            debts_key(ctx.family_id),
            lambda current: [d for d in current if str(d.get('id')) != debt_id],
        )

    # Session ------------------------------------------------------------------

    def save_session(self, user: User) -> None:
        self.kv.set(SESSION_KEY, json.dumps(user.to_dict(), ensure_ascii=False))

    def load_session(self) -> Optional[User]:
        raw = self.kv.get(SESSION_KEY)
        if not raw:
            return None
        try:
            return User.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError):
            return None

    def clear_session(self) -> None:
        self.kv.delete(SESSION_KEY)
