from datetime import date

import pytest

from family_finance.aggregation import (
    LedgerAnalytics,
    build_frame,
    category_breakdown,
    month_transactions,
    period_summary,
    quality_issues,
    rolling_projection,
    upcoming_items,
)
from family_finance.models import EXPENSE, INCOME, Transaction
from family_finance.periods import Period, parse_date


def txn(id, amount, type, date, category='Diversos', created_at=0):
    return Transaction(id=id, amount=amount, type=type, category=category, description=id, date=date, created_at=created_at)


def sample_transactions():
    return [
        txn('salary', 5000, INCOME, '2024-03-05', 'Salário Mensal'),
        txn('market', 1200, EXPENSE, '2024-03-10', 'Mercado'),
        txn('rent', 1500, EXPENSE, '2024-04-01', 'Aluguel'),
        txn('fuel', 300, EXPENSE, '2024-03-20', 'Combustível'),
        txn('bonus', 800, INCOME, '2024-02-28', 'Renda Extra'),
        txn('pharmacy', 50.5, EXPENSE, '2024-03-18', 'Farmácia'),
    ]


def test_period_summary_matches_example():
    ledger = [txn('a', 5000, INCOME, '2024-03-05'), txn('b', 1200, EXPENSE, '2024-03-10')]
    summary = period_summary(ledger, 2024, 3)
    assert summary.income == 5000
    assert summary.expense == 1200
    assert summary.balance == 3800


def test_period_summary_balance_is_income_minus_expense():
    summary = period_summary(sample_transactions(), 2024, 3)
    assert summary.income == pytest.approx(5000)
    assert summary.expense == pytest.approx(1550.5)
    assert summary.balance == summary.income - summary.expense


def test_period_summary_of_empty_month_is_zero():
    summary = period_summary(sample_transactions(), 2023, 1)
    assert (summary.income, summary.expense, summary.balance) == (0.0, 0.0, 0.0)


def test_period_summaries_add_up_to_totals():
    analytics = LedgerAnalytics(sample_transactions())
    periods = sorted({Period.of(parse_date(t.date)) for t in sample_transactions()})
    assert periods == [Period(2024, 2), Period(2024, 3), Period(2024, 4)]
    totals = analytics.totals()
    assert sum(analytics.period_summary(*p).income for p in periods) == pytest.approx(totals.income)
    assert sum(analytics.period_summary(*p).expense for p in periods) == pytest.approx(totals.expense)


def test_category_breakdown_is_sorted_and_truncated():
    breakdown = category_breakdown(sample_transactions(), 2024, 3, EXPENSE, top_k=2)
    assert breakdown == [('Mercado', 1200.0), ('Combustível', 300.0)]


def test_category_breakdown_groups_and_breaks_ties_by_name():
    ledger = [
        txn('1', 100, EXPENSE, '2024-03-01', 'Mercado'),
        txn('2', 50, EXPENSE, '2024-03-02', 'Mercado'),
        txn('3', 150, EXPENSE, '2024-03-03', 'Academia'),
        txn('4', 150, EXPENSE, '2024-03-04', 'Luz/Energia'),
        txn('5', 999, INCOME, '2024-03-04', 'Mercado'),
    ]
    first = category_breakdown(ledger, 2024, 3, EXPENSE, top_k=None)
    assert first == [('Academia', 150.0), ('Luz/Energia', 150.0), ('Mercado', 150.0)]
    assert category_breakdown(ledger, 2024, 3, EXPENSE, top_k=None) == first


def test_category_breakdown_edges():
    assert category_breakdown(sample_transactions(), 2024, 3, EXPENSE, top_k=0) == []
    assert category_breakdown([], 2024, 3) == []
    with pytest.raises(ValueError):
        category_breakdown(sample_transactions(), 2024, 3, EXPENSE, top_k=-1)


def test_rolling_projection_covers_consecutive_months():
    projection = rolling_projection(sample_transactions(), Period(2024, 2), 4)
    assert [item.month for item in projection] == ['2024-02', '2024-03', '2024-04', '2024-05']
    assert projection[0].income == 800
    assert projection[2].expense == 1500
    assert projection[3].balance == 0
    assert rolling_projection(sample_transactions(), Period(2024, 2), 0) == []


def test_upcoming_items_from_reference_date():
    items = upcoming_items(sample_transactions(), date(2024, 3, 15), limit=5)
    assert [t.id for t in items] == ['pharmacy', 'fuel', 'rent']


def test_upcoming_items_includes_same_day_and_respects_limit():
    ledger = [txn(str(i), 10, EXPENSE, f'2024-03-{15 + i:02d}') for i in range(8)]
    items = upcoming_items(ledger, '2024-03-15', limit=5)
    assert [t.id for t in items] == ['0', '1', '2', '3', '4']


def test_upcoming_items_rejects_bad_reference():
    with pytest.raises(ValueError):
        upcoming_items(sample_transactions(), 'soon')


def test_month_transactions_newest_first():
    items = month_transactions(sample_transactions(), 2024, 3)
    assert [t.id for t in items] == ['fuel', 'pharmacy', 'market', 'salary']


def test_malformed_records_are_excluded_and_reported():
    raw = [
        {'id': 'ok', 'amount': 100, 'type': EXPENSE, 'category': 'Mercado', 'date': '2024-03-01'},
        {'id': 'bad-date', 'amount': 100, 'type': EXPENSE, 'category': 'Mercado', 'date': 'ontem'},
        {'id': 'bad-amount', 'amount': 'cem', 'type': EXPENSE, 'category': 'Mercado', 'date': '2024-03-01'},
        {'id': 'bad-type', 'amount': 10, 'type': 'TRANSFER', 'category': 'Mercado', 'date': '2024-03-01'},
    ]
    analytics = LedgerAnalytics(raw)
    assert analytics.period_summary(2024, 3).expense == 100
    assert len(analytics.quality_issues) == 3
    assert build_frame(raw).attrs['excluded_ids'] == ['bad-date', 'bad-amount', 'bad-type']
    assert any('bad-amount' in issue for issue in quality_issues(raw))


def test_negative_amounts_are_excluded_and_reported():
    ledger = [
        txn('groceries', 10, EXPENSE, '2024-03-02'),
        txn('refund', -50, EXPENSE, '2024-03-03'),
        txn('salary', 40.1, INCOME, '2024-03-05'),
    ]
    analytics = LedgerAnalytics(ledger)
    summary = analytics.period_summary(2024, 3)
    assert summary.expense == 10
    assert summary.balance == pytest.approx(30.1)
    assert analytics.quality_issues == ["Transaction refund ignored: negative amount -50."]
    assert [t.id for t in analytics.upcoming_items('2024-03-01')] == ['groceries', 'salary']


def test_empty_ledger():
    analytics = LedgerAnalytics([])
    assert analytics.quality_issues == []
    assert analytics.upcoming_items(date(2024, 1, 1)) == []
    assert analytics.month_transactions(2024, 1) == []
    assert analytics.totals().balance == 0


def test_non_iso_dates_are_never_guessed():
    ledger = [
        txn('iso', 10, EXPENSE, '2024-03-20'),
        txn('day-first', 10, EXPENSE, '15/03/2024 10:00'),
        txn('year-only', 10, EXPENSE, '2024'),
    ]
    analytics = LedgerAnalytics(ledger)
    assert [t.id for t in analytics.upcoming_items('2024-01-01')] == ['iso']
    assert analytics.period_summary(2024, 1).expense == 0
    assert len(analytics.quality_issues) == 2
