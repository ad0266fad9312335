"""Chat and forecast flows that sit between the UI and the remote assistant.

Each flow owns a processing flag.  While a remote call is outstanding the
flow reports ``is_processing`` and refuses a second submission of the same
action.  There is no cancellation: a response that arrives late is still
written to the ledger.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Callable, Iterator, List, Optional

from .assistant import UNAVAILABLE_FORECAST, AdapterError, GeminiAssistant
from .ids import IdProvider, now_millis, uuid_ids
from .ledger import LedgerStore
from .models import ChatMessage, FamilyContext, Forecast, Transaction

WELCOME_MESSAGE = 'Olá! Sou seu assistente financeiro. Estou pronto para ajudar você e sua família.'
SAVED_MESSAGE = 'Entendido! Registrei a transação.'
NOT_UNDERSTOOD_MESSAGE = (
    'Desculpe, não identifiquei uma transação financeira clara. '
    'Tente dizer algo como "Gastei 30 na padaria".'
)
ERROR_MESSAGE = 'Ocorreu um erro ao processar sua mensagem. Tente novamente.'


class InFlightGuard:
    """Tracks one outstanding call; a second ``claim`` while busy is refused."""

    def __init__(self) -> None:
        self.busy = False

    @contextmanager
    def claim(self) -> Iterator[bool]:
        if self.busy:
            yield False
            return
        self.busy = True
        try:
            yield True
        finally:
            self.busy = False


class ChatSession:
    """Conversation that turns free text into stored transactions."""

    def __init__(
        self,
        ledger: LedgerStore,
        context: FamilyContext,
        assistant: GeminiAssistant,
        id_provider: IdProvider = uuid_ids,
        clock: Callable[[], date] = date.today,
    ) -> None:
        self.ledger = ledger
        self.context = context
        self.assistant = assistant
        self.id_provider = id_provider
        self.clock = clock
        self.guard = InFlightGuard()
        self.messages: List[ChatMessage] = [
            ChatMessage(id='welcome', role='assistant', content=WELCOME_MESSAGE)
        ]

    @property
    def is_processing(self) -> bool:
        return self.guard.busy

    def _reply(self, content: str, transaction: Optional[Transaction] = None) -> ChatMessage:
        message = ChatMessage(id=self.id_provider(), role='assistant', content=content, related_transaction=transaction)
        self.messages.append(message)
        return message

    def send(self, text: str) -> Optional[ChatMessage]:
        """Handle one user message and return the assistant reply.

        Blank text, or text sent while a previous message is still being
        processed, is ignored and ``None`` is returned.
        """
        if not (text or '').strip():
            return None
        with self.guard.claim() as claimed:
            if not claimed:
                return None
            self.messages.append(ChatMessage(id=self.id_provider(), role='user', content=text))
            try:
                parsed = self.assistant.parse_transaction(text, today=self.clock())
            except AdapterError as exc:
                print(f"Assistant parse error: {exc}")
                return self._reply(ERROR_MESSAGE)

            if parsed is None:
                return self._reply(NOT_UNDERSTOOD_MESSAGE)

            transaction = Transaction(
                id=self.id_provider(),
                amount=parsed['amount'],
                type=parsed['type'],
                category=parsed['category'],
                description=parsed['description'],
                date=parsed['date'],
                created_at=now_millis(),
                user_id=self.context.user_id,
                user_name=self.context.user_name,
            )
            self.ledger.append_transaction(self.context, transaction)
            return self._reply(SAVED_MESSAGE, transaction)


class ForecastPanel:
    """Holds the latest forecast and refreshes it on demand."""

    def __init__(self, assistant: GeminiAssistant) -> None:
        self.assistant = assistant
        self.guard = InFlightGuard()
        self.forecast: Optional[Forecast] = None
        self.error: Optional[str] = None

    @property
    def is_processing(self) -> bool:
        return self.guard.busy

    def refresh(self, transactions: List[Transaction]) -> Optional[Forecast]:
        """Ask for a new forecast; returns ``None`` if a refresh is already running."""
        with self.guard.claim() as claimed:
            if not claimed:
                return None
            try:
                self.forecast = self.assistant.forecast(transactions)
                self.error = None
            except AdapterError as exc:
                print(f"Assistant forecast error: {exc}")
                self.forecast = UNAVAILABLE_FORECAST
                self.error = str(exc)
            return self.forecast
