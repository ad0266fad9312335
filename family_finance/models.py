"""Record types shared by the ledger, the aggregation engine and the UI.

Records are persisted as JSON objects with camelCase keys so that a family's
ledger keeps the same layout regardless of which view wrote it.  Loading is
lenient: a stored record with a broken amount or date is still returned, and
the aggregation engine reports it as a data-quality issue instead of failing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

INCOME = 'INCOME'
EXPENSE = 'EXPENSE'
TRANSACTION_TYPES = (INCOME, EXPENSE)
TYPE_LABELS = {INCOME: 'Receita', EXPENSE: 'Despesa'}

PENDING = 'PENDING'
NEGOTIATING = 'NEGOTIATING'
PAID = 'PAID'
DEBT_STATUSES = (PENDING, NEGOTIATING, PAID)
STATUS_LABELS = {PENDING: 'Pendente', NEGOTIATING: 'Negociando', PAID: 'Quitado'}

PRIMARY = 'PRIMARY'
SECONDARY = 'SECONDARY'
USER_ROLES = (PRIMARY, SECONDARY)

EXPENSE_CATEGORIES = [
    "Aluguel", "Água", "Luz/Energia", "Fatura Cartão de Crédito", "Financiamento Casa",
    "Financiamento Carro", "Despesas Carro", "Condomínio", "IPTU", "IPVA",
    "Telefone/Internet", "Netflix/Streaming", "Mercado", "Refeições fora",
    "Plano de Saúde", "Academia", "Diarista", "Escola/Cursos", "Roupas",
    "Combustível", "Seguro Auto", "Seguro Vida", "Reserva Viagem",
    "Reserva Emergência", "Petshop", "Despesas Bancárias", "Beleza/Barbeiro",
    "Saúde/Exames", "Farmácia", "Água Mineral", "Diversos",
]

INCOME_CATEGORIES = [
    "Salário Mensal", "Adiantamento/Vale", "Renda Extra",
    "Aluguel Recebido", "Investimentos", "Reembolsos", "Outros",
]


def categories_for(txn_type: str) -> List[str]:
    return list(INCOME_CATEGORIES if txn_type == INCOME else EXPENSE_CATEGORIES)


def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass
class Transaction:
    id: str
    amount: Any
    type: str
    category: str
    description: str
    date: str
    created_at: int
    installment_current: Optional[int] = None
    installment_total: Optional[int] = None
    user_id: Optional[str] = None
    user_name: Optional[str] = None

    @property
    def is_installment(self) -> bool:
        return self.installment_total is not None

    @property
    def installment_label(self) -> str:
        if self.installment_total is None:
            return ''
        return f"{self.installment_current}/{self.installment_total}"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'amount': self.amount,
            'type': self.type,
            'category': self.category,
            'description': self.description,
            'date': self.date,
            'createdAt': self.created_at,
        }
        if self.installment_total is not None:
            data['installmentCurrent'] = self.installment_current
            data['installmentTotal'] = self.installment_total
        if self.user_id is not None:
            data['userId'] = self.user_id
        if self.user_name is not None:
            data['userName'] = self.user_name
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=str(data.get('id', '')),
            amount=data.get('amount'),
            type=str(data.get('type') or ''),
            category=str(data.get('category') or ''),
            description=str(data.get('description') or ''),
            date=data.get('date') or '',
            created_at=_optional_int(data.get('createdAt')) or 0,
            installment_current=_optional_int(data.get('installmentCurrent')),
            installment_total=_optional_int(data.get('installmentTotal')),
            user_id=data.get('userId'),
            user_name=data.get('userName'),
        )


@dataclass
class Debt:
    id: str
    creditor: str
    original_value: float
    current_value: float
    status: str
    created_at: int
    description: Optional[str] = None
    due_date: Optional[str] = None
    user_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'creditor': self.creditor,
            'originalValue': self.original_value,
            'currentValue': self.current_value,
            'status': self.status,
            'createdAt': self.created_at,
        }
        if self.description is not None:
            data['description'] = self.description
        if self.due_date is not None:
            data['dueDate'] = self.due_date
        if self.user_id is not None:
            data['userId'] = self.user_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Debt':
        return cls(
            id=str(data.get('id', '')),
            creditor=str(data.get('creditor') or ''),
            original_value=data.get('originalValue') or 0.0,
            current_value=data.get('currentValue') or 0.0,
            status=data.get('status') or PENDING,
            created_at=_optional_int(data.get('createdAt')) or 0,
            description=data.get('description'),
            due_date=data.get('dueDate'),
            user_id=data.get('userId'),
        )


@dataclass
class User:
    id: str
    name: str
    family_id: str
    family_name: str
    role: str = PRIMARY

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'familyId': self.family_id,
            'familyName': self.family_name,
            'role': self.role,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        return cls(
            id=str(data['id']),
            name=str(data['name']),
            family_id=str(data['familyId']),
            family_name=str(data.get('familyName') or data['familyId']),
            role=data.get('role') or PRIMARY,
        )


@dataclass(frozen=True)
class FamilyContext:
    """Explicit scope for ledger calls: which family, and who is acting."""

    family_id: str
    user_id: Optional[str] = None
    user_name: Optional[str] = None


@dataclass
class PeriodSummary:
    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0


@dataclass
class MonthlySummary:
    month: str  # "YYYY-MM"
    income: float = 0.0
    expense: float = 0.0
    balance: float = 0.0


@dataclass
class Forecast:
    projected_income: float
    projected_expense: float
    advice: str
    confidence: str


@dataclass
class ChatMessage:
    id: str
    role: str  # 'user' or 'assistant'
    content: str
    related_transaction: Optional[Transaction] = None
