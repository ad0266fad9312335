"""Calendar helpers shared by the installment expander and the aggregations.

Dates are compared at day granularity everywhere; time of day and time zone
suffixes on stored ISO strings are dropped when a value is parsed.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any, Iterator, NamedTuple, Optional

import pandas as pd

PT_BR_MONTHS = [
    'janeiro', 'fevereiro', 'março', 'abril', 'maio', 'junho',
    'julho', 'agosto', 'setembro', 'outubro', 'novembro', 'dezembro',
]

# ``YYYY-MM-DD`` optionally followed by a time part.
ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}(?:[T ].+)?$")


def parse_date(value: Any) -> Optional[date]:
    """Return the calendar date of ``value`` or ``None`` when it cannot be parsed.

    Accepts ``date``/``datetime`` objects, pandas timestamps and ISO strings
    (``YYYY-MM-DD`` or full ISO 8601 timestamps).  Anything else, such as a
    day-first ``15/03/2024`` or a bare year, is rejected rather than guessed,
    and is never replaced by the current date.
    """
    if value is None:
        return None
    if isinstance(value, float) and pd.isna(value):
        return None
    if hasattr(value, 'to_pydatetime'):
        if pd.isna(value):
            return None
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if not ISO_DATE_RE.match(text):
        return None
    if len(text) == 10:
        try:
            return date.fromisoformat(text)
        except ValueError:
            return None
    return _parse_timestamp(text)


def _parse_timestamp(text: str) -> Optional[date]:
    try:
        ts = pd.to_datetime(text, format='ISO8601', errors='coerce')
    except (ValueError, TypeError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    return ts.date()


def add_months(start: date, months: int) -> date:
    """Move ``start`` by whole calendar months keeping the day of month.

    Days that do not exist in the target month roll over into the following
    month (2024-01-31 + 1 month is 2024-03-02), the same arithmetic as a
    calendar ``setMonth`` call.  No clamping to the end of the month.
    """
    index = start.year * 12 + (start.month - 1) + months
    year, month = divmod(index, 12)
    first = date(year, month + 1, 1)
    return first + timedelta(days=start.day - 1)


class Period(NamedTuple):
    """A calendar month."""

    year: int
    month: int

    @classmethod
    def of(cls, value: date) -> 'Period':
        return cls(value.year, value.month)

    @classmethod
    def parse(cls, label: str) -> 'Period':
        year, month = label.split('-', 1)
        return cls.checked(int(year), int(month))

    @classmethod
    def checked(cls, year: int, month: int) -> 'Period':
        if not 1 <= month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {month}.")
        return cls(year, month)

    def shift(self, months: int) -> 'Period':
        year, month = divmod(self.year * 12 + (self.month - 1) + months, 12)
        return Period(year, month + 1)

    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    def contains(self, value: Optional[date]) -> bool:
        return value is not None and value.year == self.year and value.month == self.month

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def display_name(self) -> str:
        return f"{PT_BR_MONTHS[self.month - 1]} de {self.year}"

    @property
    def short_name(self) -> str:
        return f"{PT_BR_MONTHS[self.month - 1][:3]}/{self.year % 100:02d}"


def iter_periods(start: Period, count: int) -> Iterator[Period]:
    for offset in range(max(count, 0)):
        yield start.shift(offset)
