import pytest

from family_finance.debts import InvalidStatusTransition, change_status, create_debt, edit_values, outstanding_total
from family_finance.ids import CounterIds
from family_finance.models import NEGOTIATING, PAID, PENDING, FamilyContext

CTX = FamilyContext(family_id='silva', user_id='u1', user_name='Ana')


def debt(**overrides):
    args = dict(creditor='Banco X', current_value='1.250,00', original_value='1000', context=CTX, id_provider=CounterIds('d-'), created_at=5)
    args.update(overrides)
    return create_debt(**args)


def test_create_debt_parses_localized_values():
    record = debt()
    assert record.id == 'd-1'
    assert record.current_value == 1250.0
    assert record.original_value == 1000.0
    assert record.status == PENDING
    assert record.user_id == 'u1'
    assert record.due_date


def test_original_value_defaults_to_current():
    assert debt(original_value=None).original_value == 1250.0


def test_missing_fields_reject_silently():
    assert debt(creditor='  ') is None
    assert debt(current_value='') is None
    assert debt(current_value='abc') is None


def test_unknown_status_raises():
    with pytest.raises(ValueError):
        debt(status='LOST')


def test_status_transitions():
    record = debt()
    negotiating = change_status(record, NEGOTIATING)
    assert negotiating.status == NEGOTIATING
    assert record.status == PENDING
    paid = change_status(negotiating, PAID)
    assert paid.status == PAID
    assert change_status(paid, PAID) is paid
    with pytest.raises(InvalidStatusTransition):
        change_status(paid, PENDING)
    with pytest.raises(InvalidStatusTransition):
        change_status(negotiating, PENDING)


def test_status_change_keeps_values():
    paid = change_status(debt(), PAID)
    assert (paid.original_value, paid.current_value) == (1000.0, 1250.0)


def test_edit_values():
    record = debt()
    edited = edit_values(record, current_value='1300,10')
    assert edited.current_value == pytest.approx(1300.1)
    assert edited.original_value == 1000.0
    assert edit_values(record) is record
    with pytest.raises(ValueError):
        edit_values(record, original_value='-3')


def test_outstanding_total_skips_paid():
    first = debt()
    second = debt(current_value='200,50', id_provider=CounterIds('e-'))
    third = change_status(debt(current_value='999', id_provider=CounterIds('f-')), PAID)
    assert outstanding_total([first, second, third]) == pytest.approx(1450.5)
    assert outstanding_total([]) == 0
