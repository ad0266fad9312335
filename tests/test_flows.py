import types
from datetime import date

from family_finance.assistant import UNAVAILABLE_FORECAST, AdapterError
from family_finance.flows import (
    ERROR_MESSAGE,
    NOT_UNDERSTOOD_MESSAGE,
    SAVED_MESSAGE,
    WELCOME_MESSAGE,
    ChatSession,
    ForecastPanel,
    InFlightGuard,
)
from family_finance.ids import CounterIds
from family_finance.ledger import LedgerStore
from family_finance.models import EXPENSE, FamilyContext, Forecast

CTX = FamilyContext(family_id='silva', user_id='u1', user_name='Ana')


class FakeAssistant:
    def __init__(self, parsed=None, error=None, forecast=None):
        self.parsed = parsed
        self.error = error
        self.forecast_result = forecast
        self.calls = 0

    def parse_transaction(self, text, today=None):
        self.calls += 1
        if self.error:
            raise self.error
        return self.parsed

    def forecast(self, transactions):
        self.calls += 1
        if self.error:
            raise self.error
        return self.forecast_result


def chat(tmp_path, assistant):
    ledger = LedgerStore(tmp_path / 'ledger.db')
    session = ChatSession(ledger, CTX, assistant, id_provider=CounterIds(), clock=lambda: date(2024, 3, 15))
    return session, ledger


def test_guard_refuses_reentry():
    guard = InFlightGuard()
    with guard.claim() as first:
        assert first and guard.busy
        with guard.claim() as second:
            assert second is False
        assert guard.busy
    assert not guard.busy


def test_chat_starts_with_welcome(tmp_path):
    session, _ = chat(tmp_path, FakeAssistant())
    assert [m.content for m in session.messages] == [WELCOME_MESSAGE]
    assert not session.is_processing


def test_chat_saves_parsed_transaction(tmp_path):
    parsed = {'amount': 30.0, 'type': EXPENSE, 'category': 'Alimentação', 'description': 'Padaria', 'date': '2024-03-15'}
    session, ledger = chat(tmp_path, FakeAssistant(parsed=parsed))
    reply = session.send('Gastei 30 na padaria')
    assert reply.content == SAVED_MESSAGE
    stored = ledger.list_transactions(CTX)
    assert len(stored) == 1
    assert stored[0].description == 'Padaria'
    assert stored[0].user_name == 'Ana'
    assert reply.related_transaction == stored[0]
    assert [m.role for m in session.messages] == ['assistant', 'user', 'assistant']


def test_chat_not_understood(tmp_path):
    session, ledger = chat(tmp_path, FakeAssistant(parsed=None))
    assert session.send('Oi').content == NOT_UNDERSTOOD_MESSAGE
    assert ledger.list_transactions(CTX) == []


def test_chat_adapter_error_becomes_message(tmp_path, capsys):
    session, ledger = chat(tmp_path, FakeAssistant(error=AdapterError('boom')))
    assert session.send('Gastei 30').content == ERROR_MESSAGE
    assert ledger.list_transactions(CTX) == []
    assert not session.is_processing
    assert 'boom' in capsys.readouterr().out


def test_chat_ignores_blank_and_busy_sends(tmp_path):
    assistant = FakeAssistant(parsed=None)
    session, _ = chat(tmp_path, assistant)
    assert session.send('   ') is None
    session.guard.busy = True
    assert session.send('Gastei 30') is None
    assert assistant.calls == 0
    assert len(session.messages) == 1


def test_forecast_panel_refresh_and_failure():
    expected = Forecast(projected_income=1, projected_expense=2, advice='ok', confidence='Alta')
    panel = ForecastPanel(FakeAssistant(forecast=expected))
    assert panel.refresh([]) == expected
    assert panel.error is None

    failing = ForecastPanel(FakeAssistant(error=AdapterError('quota')))
    assert failing.refresh([]) == UNAVAILABLE_FORECAST
    assert failing.error == 'quota'
    assert not failing.is_processing


def test_forecast_panel_refuses_concurrent_refresh():
    assistant = FakeAssistant(forecast=types.SimpleNamespace())
    panel = ForecastPanel(assistant)
    panel.guard.busy = True
    assert panel.refresh([]) is None
    assert assistant.calls == 0
