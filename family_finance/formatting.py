"""Formatting utilities for Brazilian currency, numbers and dates."""

from __future__ import annotations

from typing import Any, Optional, Union

from .periods import parse_date


def format_decimal_comma(amount: Union[float, int]) -> str:
    """Format an amount with two decimals and a comma separator.

    Example:
        >>> format_decimal_comma(1234.5)
        '1234,50'
    """
    return f"{amount:.2f}".replace('.', ',')


def format_money(amount: Union[float, int]) -> str:
    """Format an amount as Brazilian reais.

    Example:
        >>> format_money(1234.56)
        'R$ 1.234,56'
        >>> format_money(-80)
        '-R$ 80,00'
    """
    sign = '-' if amount < 0 else ''
    formatted = f"{abs(amount):,.2f}".replace(',', '_').replace('.', ',').replace('_', '.')
    return f"{sign}R$ {formatted}"


def format_local_date(value: Any) -> str:
    """``dd/mm/yyyy`` for a parseable date, the raw value otherwise."""
    parsed = parse_date(value)
    if parsed is None:
        return '' if value is None else str(value)
    return parsed.strftime('%d/%m/%Y')


def parse_localized_amount(text: Any) -> Optional[float]:
    """Parse user-typed amounts such as ``"1200,50"``, ``"1.200,50"`` or ``"1200.50"``.

    Returns ``None`` when the text is empty or not a number.
    """
    if text is None:
        return None
    if isinstance(text, (int, float)):
        return float(text)
    cleaned = str(text).strip().replace('R$', '').replace(' ', '')
    if not cleaned:
        return None
    if ',' in cleaned:
        cleaned = cleaned.replace('.', '').replace(',', '.')
    try:
        value = float(cleaned)
    except ValueError:
        return None
    if value != value or value in (float('inf'), float('-inf')):
        return None
    return value
