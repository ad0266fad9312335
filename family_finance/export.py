"""CSV export of a family's transactions in the localized spreadsheet layout."""

from __future__ import annotations

import csv
from typing import Iterable, List

import pandas as pd

from .formatting import format_decimal_comma, format_local_date
from .models import TYPE_LABELS, Transaction

CSV_HEADERS = ["Data", "Descrição", "Categoria", "Tipo", "Valor", "Usuário", "Parcela"]


def transaction_row(txn: Transaction) -> List[str]:
    try:
        amount = format_decimal_comma(float(txn.amount))
    except (TypeError, ValueError):
        amount = '' if txn.amount is None else str(txn.amount)
    return [
        format_local_date(txn.date),
        txn.description or '',
        txn.category or '',
        TYPE_LABELS.get(txn.type, "Despesa"),
        amount,
        txn.user_name or "N/A",
        txn.installment_label,
    ]


def export_to_csv(transactions: Iterable[Transaction]) -> str:
    """Render ``transactions`` (in the given order) as CSV text.

    The header line is bare; every data field is quoted, so descriptions and
    decimal-comma amounts survive the comma delimiter.
    """
    frame = pd.DataFrame([transaction_row(txn) for txn in transactions], columns=CSV_HEADERS)
    body = frame.to_csv(index=False, header=False, quoting=csv.QUOTE_ALL, lineterminator="\n")
    return ",".join(CSV_HEADERS) + "\n" + body


def export_filename(family_name: str) -> str:
    safe = ''.join(ch if ch.isalnum() or ch in '-_' else '_' for ch in family_name.strip())
    return f"minhas_financas_{safe or 'familia'}.csv"
