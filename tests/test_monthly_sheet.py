import pytest

from family_finance.ids import CounterIds
from family_finance.models import EXPENSE, EXPENSE_CATEGORIES, INCOME, FamilyContext, Transaction
from family_finance.monthly_sheet import sheet_transactions, sheet_values

CTX = FamilyContext(family_id='silva', user_id='u1', user_name='Ana')


def ledger():
    return [
        Transaction(id='1', amount=100, type=EXPENSE, category='Mercado', description='a', date='2024-03-02', created_at=1),
        Transaction(id='2', amount=50.25, type=EXPENSE, category='Mercado', description='b', date='2024-03-20', created_at=1),
        Transaction(id='3', amount=70, type=EXPENSE, category='Mercado', description='c', date='2024-04-01', created_at=1),
        Transaction(id='4', amount=3000, type=INCOME, category='Salário Mensal', description='d', date='2024-03-05', created_at=1),
    ]


def test_sheet_values_prefill_month_totals():
    values = sheet_values(ledger(), 2024, 3, EXPENSE)
    assert list(values) == EXPENSE_CATEGORIES
    assert values['Mercado'] == '150,25'
    assert values['Aluguel'] == ''


def test_sheet_values_for_income():
    values = sheet_values(ledger(), 2024, 3, INCOME)
    assert values['Salário Mensal'] == '3000,00'


def test_sheet_transactions_only_for_positive_amounts():
    records = sheet_transactions(
        {'Mercado': '150,25', 'Aluguel': '', 'Água': '0', 'Luz/Energia': 'abc', 'IPTU': '1.200,00'},
        2024, 3, EXPENSE, context=CTX, id_provider=CounterIds(), created_at=9,
    )
    assert [(t.category, t.amount) for t in records] == [('Mercado', 150.25), ('IPTU', 1200.0)]
    assert all(t.date == '2024-03-01' for t in records)
    assert records[0].description == 'Lançamento Mensal: Mercado'
    assert all(t.user_name == 'Ana' and t.created_at == 9 for t in records)


def test_sheet_transactions_validates_inputs():
    with pytest.raises(ValueError):
        sheet_transactions({'Mercado': '10'}, 2024, 3, 'TRANSFER')
    with pytest.raises(ValueError):
        sheet_transactions({'Mercado': '10'}, 2024, 13, EXPENSE)
