"""Gemini-backed parsing of free text and next-month forecasting.

The model is treated as a black box with a fixed JSON contract.  Anything
that goes wrong on the remote side (missing key, network or API error,
response that does not match the schema) surfaces as :class:`AdapterError`;
the flows in :mod:`family_finance.flows` turn that into a friendly message.
"""

from __future__ import annotations

import json
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from google import genai
from google.genai import types

from .config import FORECAST_HISTORY_LIMIT, MODEL_ID, get_api_key
from .models import EXPENSE, INCOME, Forecast, Transaction
from .periods import parse_date

CONFIDENCE_LEVELS = ("Alta", "Média", "Baixa")

EMPTY_HISTORY_FORECAST = Forecast(
    projected_income=0.0,
    projected_expense=0.0,
    advice="Adicione transações para receber uma análise.",
    confidence="Baixa",
)

UNAVAILABLE_FORECAST = Forecast(
    projected_income=0.0,
    projected_expense=0.0,
    advice="Não foi possível gerar previsão no momento.",
    confidence="Nula",
)

PARSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        'isValid': types.Schema(type=types.Type.BOOLEAN, description="True se for uma transação financeira válida"),
        'amount': types.Schema(type=types.Type.NUMBER, description="Valor monetário absoluto"),
        'type': types.Schema(type=types.Type.STRING, enum=[INCOME, EXPENSE], description="Tipo da transação"),
        'category': types.Schema(type=types.Type.STRING, description="Categoria curta (ex: Alimentação, Transporte, Salário)"),
        'description': types.Schema(type=types.Type.STRING, description="Descrição curta e clara"),
        'date': types.Schema(type=types.Type.STRING, description="Data da transação em formato ISO 8601 (YYYY-MM-DD)"),
    },
    required=['isValid'],
)

FORECAST_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        'projectedIncome': types.Schema(type=types.Type.NUMBER),
        'projectedExpense': types.Schema(type=types.Type.NUMBER),
        'advice': types.Schema(type=types.Type.STRING),
        'confidence': types.Schema(type=types.Type.STRING, enum=list(CONFIDENCE_LEVELS)),
    },
    required=['projectedIncome', 'projectedExpense', 'advice', 'confidence'],
)


class AdapterError(RuntimeError):
    """The remote assistant could not produce a usable answer."""


def recent_transactions(transactions: Iterable[Transaction], limit: int = FORECAST_HISTORY_LIMIT) -> List[Transaction]:
    """The ``limit`` most recently created transactions, newest first."""
    ordered = sorted(transactions, key=lambda t: t.created_at or 0, reverse=True)
    return ordered[:max(limit, 0)]


class GeminiAssistant:
    """Transaction parser and forecaster on top of ``google-genai``."""

    def __init__(self, client: Any = None, api_key: Optional[str] = None, model: str = MODEL_ID) -> None:
        self._client = client
        self._api_key = api_key
        self.model = model

    @property
    def client(self) -> Any:
        if self._client is None:
            key = self._api_key or get_api_key()
            if not key:
                raise AdapterError("API Key not found")
            self._client = genai.Client(api_key=key)
        return self._client

    def _generate(self, prompt: str, schema: types.Schema) -> Dict[str, Any]:
        client = self.client
        try:
            response = client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=schema,
                ),
            )
        except Exception as exc:
            raise AdapterError(f"Gemini request failed: {exc}") from exc
        text = getattr(response, 'text', None) or "{}"
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise AdapterError(f"Gemini returned invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise AdapterError("Gemini returned a non-object response.")
        return payload

    # Parsing ------------------------------------------------------------------

    def parse_transaction(self, text: str, today: Optional[date] = None) -> Optional[Dict[str, Any]]:
        """Extract transaction fields from ``text``.

        Returns ``None`` when the model says the text is not a financial
        statement.  Otherwise returns ``amount``, ``type``, ``category``,
        ``description`` and ``date`` (ISO ``YYYY-MM-DD``).
        """
        reference = today or date.today()
        prompt = (
            f"Hoje é {reference.isoformat()}.\n"
            "Analise o seguinte texto do usuário e extraia os dados financeiros.\n"
            "Se o texto não contiver uma transação financeira clara, retorne um objeto com valores nulos ou vazios.\n"
            f'Texto: "{text}"'
        )
        result = self._generate(prompt, PARSE_SCHEMA)
        if not result.get('isValid'):
            return None

        amount = result.get('amount')
        if isinstance(amount, bool) or not isinstance(amount, (int, float)):
            raise AdapterError(f"Gemini returned an invalid amount: {amount!r}")
        parsed_date = parse_date(result.get('date')) if result.get('date') else reference
        if parsed_date is None:
            raise AdapterError(f"Gemini returned an invalid date: {result.get('date')!r}")
        return {
            'amount': abs(float(amount)),
            'type': INCOME if result.get('type') == INCOME else EXPENSE,
            'category': result.get('category') or 'Geral',
            'description': result.get('description') or 'Sem descrição',
            'date': parsed_date.isoformat(),
        }

    # Forecast -----------------------------------------------------------------

    def forecast(self, transactions: Iterable[Transaction], limit: int = FORECAST_HISTORY_LIMIT) -> Forecast:
        """Project next month's income and expense from recent history."""
        recent = recent_transactions(transactions, limit)
        if not recent:
            return EMPTY_HISTORY_FORECAST

        history = json.dumps(
            [{'date': t.date, 'amount': t.amount, 'type': t.type, 'category': t.category} for t in recent],
            ensure_ascii=False,
        )
        prompt = (
            "Atue como um consultor financeiro pessoal. Analise o histórico JSON de transações abaixo.\n"
            "Forneça uma previsão para o próximo mês e um conselho curto e prático.\n\n"
            f"Histórico: {history}"
        )
        result = self._generate(prompt, FORECAST_SCHEMA)
        try:
            return Forecast(
                projected_income=float(result['projectedIncome']),
                projected_expense=float(result['projectedExpense']),
                advice=str(result['advice']),
                confidence=str(result['confidence']),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise AdapterError(f"Gemini forecast did not match the schema: {exc}") from exc
