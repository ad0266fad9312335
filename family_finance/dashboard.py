"""Streamlit app for the family finance tracker.

The app is a thin layer over the pure modules: every number on screen comes
from :mod:`family_finance.aggregation`, every write goes through
:class:`family_finance.ledger.LedgerStore` with the logged-in family's
context, and the chat/forecast panels delegate to :mod:`family_finance.flows`.

To run the dashboard from the command line::

    streamlit run family_finance/dashboard.py
"""

from __future__ import annotations

import os
import sys
from datetime import date
from typing import Any, Dict, MutableMapping, Optional

import pandas as pd
import streamlit as st

if __package__:
    from . import config
    from . import visualization as viz
    from .aggregation import LedgerAnalytics
    from .assistant import GeminiAssistant
    from .debts import InvalidStatusTransition, change_status, create_debt, edit_values, outstanding_total
    from .export import export_filename, export_to_csv
    from .flows import ChatSession, ForecastPanel
    from .formatting import format_local_date, format_money, parse_localized_amount
    from .forms import submit_transaction_form
    from .ledger import LedgerStore
    from .models import (
        DEBT_STATUSES, EXPENSE, INCOME, NEGOTIATING, PAID, PRIMARY, SECONDARY, STATUS_LABELS,
        TYPE_LABELS, ChatMessage, Debt, FamilyContext, Forecast, User, categories_for,
    )
    from .monthly_sheet import sheet_transactions, sheet_values
    from .periods import Period
    from .session import context_for, login
else:
    # Allow ``streamlit run family_finance/dashboard.py`` without installing
    # the package by putting the project root on ``sys.path``.
    CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))
    PARENT_DIR = os.path.dirname(CURRENT_DIR)
    if PARENT_DIR not in sys.path:
        sys.path.insert(0, PARENT_DIR)
    from family_finance import config  # type: ignore
    from family_finance import visualization as viz  # type: ignore
    from family_finance.aggregation import LedgerAnalytics  # type: ignore
    from family_finance.assistant import GeminiAssistant  # type: ignore
    from family_finance.debts import (  # type: ignore
        InvalidStatusTransition, change_status, create_debt, edit_values, outstanding_total,
    )
    from family_finance.export import export_filename, export_to_csv  # type: ignore
    from family_finance.flows import ChatSession, ForecastPanel  # type: ignore
    from family_finance.formatting import format_local_date, format_money, parse_localized_amount  # type: ignore
    from family_finance.forms import submit_transaction_form  # type: ignore
    from family_finance.ledger import LedgerStore  # type: ignore
    from family_finance.models import (  # type: ignore
        DEBT_STATUSES, EXPENSE, INCOME, NEGOTIATING, PAID, PRIMARY, SECONDARY, STATUS_LABELS,
        TYPE_LABELS, ChatMessage, Debt, FamilyContext, Forecast, User, categories_for,
    )
    from family_finance.monthly_sheet import sheet_transactions, sheet_values  # type: ignore
    from family_finance.periods import Period  # type: ignore
    from family_finance.session import context_for, login  # type: ignore

VIEWS = ["Dashboard", "Planilha Mensal", "Chat IA", "Extrato", "Dívidas"]
TYPE_CHOICES = {"Despesa": EXPENSE, "Receita": INCOME}
CHAT_INPUT_KEY = 'chat_input'


# ---------------------------------------------------------------------------
# Session state helpers
# ---------------------------------------------------------------------------


def _ensure_state(state: MutableMapping[str, Any], ledger: Optional[LedgerStore] = None) -> None:
    """Initialise the keys every view relies on."""
    if 'ledger' not in state:
        state['ledger'] = ledger or LedgerStore()
    if 'user' not in state:
        state['user'] = state['ledger'].load_session()
    if 'period' not in state:
        state['period'] = Period.of(date.today())
    if 'assistant' not in state:
        state['assistant'] = GeminiAssistant()
    state.setdefault('chat_sessions', {})
    state.setdefault('forecast_panel', ForecastPanel(state['assistant']))
    state.setdefault('chat_pending', None)
    state.setdefault('forecast_pending', False)


def _shift_period(state: MutableMapping[str, Any], months: int) -> Period:
    state['period'] = Period(*state['period']).shift(months)
    return state['period']


def _context(state: MutableMapping[str, Any]) -> Optional[FamilyContext]:
    user: Optional[User] = state.get('user')
    return context_for(user) if user else None


def _chat_session(state: MutableMapping[str, Any], ctx: FamilyContext) -> ChatSession:
    sessions: Dict[str, ChatSession] = state['chat_sessions']
    key = f"{ctx.family_id}:{ctx.user_id}"
    if key not in sessions:
        sessions[key] = ChatSession(state['ledger'], ctx, state['assistant'])
    return sessions[key]


def _logout(state: MutableMapping[str, Any]) -> None:
    state['ledger'].clear_session()
    state['user'] = None
    state['chat_sessions'] = {}
    state['forecast_panel'] = ForecastPanel(state['assistant'])
    state['chat_pending'] = None
    state['forecast_pending'] = False


# Remote calls run on the rerun after the click, with the trigger widget
# already disabled; the callbacks only park the request in session state.


def _queue_chat_message(state: MutableMapping[str, Any]) -> None:
    """``on_submit`` callback of the chat input."""
    text = (state.get(CHAT_INPUT_KEY) or '').strip()
    if text and state.get('chat_pending') is None:
        state['chat_pending'] = text


def _run_pending_chat(state: MutableMapping[str, Any], chat: ChatSession) -> Optional[ChatMessage]:
    text = state.get('chat_pending')
    if text is None:
        return None
    try:
        return chat.send(text)
    finally:
        state['chat_pending'] = None


def _request_forecast(state: MutableMapping[str, Any]) -> None:
    """``on_click`` callback of the forecast button."""
    state['forecast_pending'] = True


def _run_pending_forecast(state: MutableMapping[str, Any], transactions) -> Optional[Forecast]:
    if not state.get('forecast_pending'):
        return None
    try:
        return state['forecast_panel'].refresh(transactions)
    finally:
        state['forecast_pending'] = False


def _apply_debt_edit(
    ledger: LedgerStore,
    ctx: FamilyContext,
    debt: Debt,
    original_value: str,
    current_value: str,
) -> Optional[str]:
    """Store edited debt values; returns an error message when they are invalid."""
    try:
        edited = edit_values(debt, original_value or None, current_value or None)
    except ValueError as exc:
        return str(exc)
    if edited is not debt:
        ledger.update_debt(ctx, edited)
    return None


def _amount_label(value: Any) -> str:
    """Money label for a stored value, or the raw value when it is not a number."""
    amount = parse_localized_amount(value)
    if amount is None:
        return '' if value is None else str(value)
    return format_money(amount)


def _transactions_frame(transactions) -> pd.DataFrame:
    rows = [{
        'Data': format_local_date(t.date),
        'Descrição': t.description,
        'Categoria': t.category,
        'Tipo': TYPE_LABELS.get(t.type, t.type),
        'Valor': _amount_label(t.amount),
        'Usuário': t.user_name or 'N/A',
        'Parcela': t.installment_label,
    } for t in transactions]
    return pd.DataFrame(rows, columns=['Data', 'Descrição', 'Categoria', 'Tipo', 'Valor', 'Usuário', 'Parcela'])


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


def render_login() -> None:
    st.title("Finanças em Família")
    st.caption("Gerencie finanças em conjunto")
    with st.form("login_form"):
        family_name = st.text_input("Nome da Família", placeholder="Ex: Família Silva")
        user_name = st.text_input("Seu Nome", placeholder="Ex: Ricardo")
        role_label = st.radio("Perfil", ["Gestor Principal", "Gestor Secundário"], horizontal=True)
        submitted = st.form_submit_button("Acessar Sistema")
    st.info(
        "Para visualizar os mesmos dados, todos devem digitar exatamente o mesmo "
        "Nome da Família neste dispositivo."
    )
    if submitted:
        role = PRIMARY if role_label == "Gestor Principal" else SECONDARY
        user = login(user_name, family_name, role)
        if user is None:
            return
        st.session_state['ledger'].save_session(user)
        st.session_state['user'] = user
        st.rerun()


def render_sidebar(user: User, ctx: FamilyContext) -> str:
    st.sidebar.subheader(f"👤 {user.name}")
    st.sidebar.caption(f"Família {user.family_name}")
    view = st.sidebar.radio("Navegação", VIEWS)

    st.sidebar.subheader("📅 Período")
    col1, col2 = st.sidebar.columns(2)
    with col1:
        if st.button("◀", key="prev_month"):
            _shift_period(st.session_state, -1)
    with col2:
        if st.button("▶", key="next_month"):
            _shift_period(st.session_state, 1)
    st.sidebar.write(Period(*st.session_state['period']).display_name.capitalize())

    transactions = st.session_state['ledger'].list_transactions(ctx)
    st.sidebar.download_button(
        "⬇️ Exportar CSV",
        data=export_to_csv(transactions).encode('utf-8'),
        file_name=export_filename(user.family_name),
        mime="text/csv",
    )
    if st.sidebar.button("Sair"):
        _logout(st.session_state)
        st.rerun()
    return view


def render_transaction_form(ctx: FamilyContext) -> None:
    with st.expander("➕ Lançar transação"):
        # Outside the form so the category list follows the chosen type.
        type_label = st.radio("Tipo", list(TYPE_CHOICES), horizontal=True, key="txn_type")
        txn_type = TYPE_CHOICES[type_label]
        with st.form("transaction_form", clear_on_submit=True):
            amount = st.text_input("Valor", placeholder="0,00")
            description = st.text_input("Descrição", placeholder="Ex: Freelance Design, Compra TV...")
            category = st.selectbox("Categoria", categories_for(txn_type), key=f"txn_category_{txn_type}")
            when = st.date_input("Data", value=date.today())
            is_installment = st.checkbox("Lançamento Parcelado / Recorrente")
            installments = st.number_input(
                "Parcelas", min_value=2, max_value=config.MAX_INSTALLMENTS, value=2, step=1
            )
            submitted = st.form_submit_button("Salvar Lançamento")
        if submitted:
            records = submit_transaction_form(
                amount,
                description,
                category,
                txn_type,
                when,
                int(installments) if is_installment else 1,
                context=ctx,
            )
            if records:
                st.session_state['ledger'].append_transactions(ctx, records)
                st.success(f"{len(records)} lançamento(s) salvo(s).")


def render_dashboard(ctx: FamilyContext) -> None:
    period = Period(*st.session_state['period'])
    transactions = st.session_state['ledger'].list_transactions(ctx)
    analytics = LedgerAnalytics(transactions)
    for issue in analytics.quality_issues:
        st.warning(issue)

    st.header(f"Visão de {period.display_name}")
    summary = analytics.period_summary(period.year, period.month)
    col1, col2, col3 = st.columns(3)
    col1.metric("Receitas", format_money(summary.income))
    col2.metric("Despesas", format_money(summary.expense))
    col3.metric("Saldo", format_money(summary.balance))
    st.caption(f"Saldo acumulado de todos os meses: {format_money(analytics.totals().balance)}")

    projection = analytics.rolling_projection(Period.of(date.today()), config.PROJECTION_MONTHS)
    st.plotly_chart(viz.create_cash_flow_chart(projection), use_container_width=True)

    expense_col, income_col = st.columns(2)
    with expense_col:
        breakdown = analytics.category_breakdown(period.year, period.month, EXPENSE, config.TOP_CATEGORIES)
        st.plotly_chart(viz.create_category_bar_chart(breakdown), use_container_width=True)
    with income_col:
        income_breakdown = analytics.category_breakdown(period.year, period.month, INCOME, config.TOP_CATEGORIES)
        st.plotly_chart(
            viz.create_category_pie_chart(income_breakdown, title="Receitas por categoria"),
            use_container_width=True,
        )

    left, right = st.columns(2)
    with left:
        st.subheader("Próximos lançamentos")
        upcoming = analytics.upcoming_items(date.today(), config.UPCOMING_LIMIT)
        if not upcoming:
            st.info("Nenhum lançamento futuro.")
        for txn in upcoming:
            st.write(f"{format_local_date(txn.date)} · {txn.description} · {_amount_label(txn.amount)}")
    with right:
        render_forecast(transactions)


def render_forecast(transactions) -> None:
    st.subheader("Previsão IA")
    panel: ForecastPanel = st.session_state['forecast_panel']
    pending = bool(st.session_state.get('forecast_pending'))
    st.button(
        "🔄 Atualizar previsão",
        disabled=pending or panel.is_processing,
        on_click=_request_forecast,
        args=(st.session_state,),
    )
    if pending:
        with st.spinner("Analisando histórico..."):
            _run_pending_forecast(st.session_state, transactions)
        st.rerun()
    forecast = panel.forecast
    if forecast is None:
        st.caption("Clique em atualizar para gerar uma previsão.")
        return
    if panel.error:
        st.error("Não foi possível gerar previsão no momento. Tente novamente.")
    st.metric("Receita prevista", format_money(forecast.projected_income))
    st.metric("Despesa prevista", format_money(forecast.projected_expense))
    st.write(forecast.advice)
    st.caption(f"Confiança: {forecast.confidence}")


def render_monthly_sheet(ctx: FamilyContext) -> None:
    period = Period(*st.session_state['period'])
    st.header("Planilha de Lançamentos")
    st.caption(f"Contas fixas e recebimentos para {period.display_name}")
    tab_label = st.radio("Aba", ["Despesas", "Entradas de Dinheiro"], horizontal=True)
    txn_type = EXPENSE if tab_label == "Despesas" else INCOME

    transactions = st.session_state['ledger'].list_transactions(ctx)
    current = sheet_values(transactions, period.year, period.month, txn_type)
    with st.form(f"sheet_{txn_type}_{period.label}"):
        entered = {
            category: st.text_input(category, value=value, placeholder="0,00", key=f"sheet_{txn_type}_{category}")
            for category, value in current.items()
        }
        submitted = st.form_submit_button(f"Salvar {tab_label}")
    if submitted:
        records = sheet_transactions(entered, period.year, period.month, txn_type, context=ctx)
        if records:
            st.session_state['ledger'].append_transactions(ctx, records)
            st.success(f"{tab_label} lançadas com sucesso!")


def render_chat(ctx: FamilyContext) -> None:
    st.header("Chat IA")
    chat = _chat_session(st.session_state, ctx)
    for message in chat.messages:
        with st.chat_message(message.role):
            st.write(message.content)
            txn = message.related_transaction
            if txn is not None:
                st.caption(
                    f"{TYPE_LABELS.get(txn.type, txn.type)} · {txn.category} · "
                    f"{_amount_label(txn.amount)} · {format_local_date(txn.date)}"
                )
    pending = st.session_state.get('chat_pending')
    if pending is not None:
        with st.chat_message('user'):
            st.write(pending)
    st.chat_input(
        "Digite sua transação...",
        key=CHAT_INPUT_KEY,
        disabled=pending is not None or chat.is_processing,
        on_submit=_queue_chat_message,
        args=(st.session_state,),
    )
    if pending is not None:
        with st.spinner("Processando..."):
            _run_pending_chat(st.session_state, chat)
        st.rerun()


def render_statement(ctx: FamilyContext) -> None:
    period = Period(*st.session_state['period'])
    st.header(f"Extrato de {period.display_name}")
    ledger: LedgerStore = st.session_state['ledger']
    transactions = LedgerAnalytics(ledger.list_transactions(ctx)).month_transactions(period.year, period.month)
    if not transactions:
        st.info("Nenhuma transação neste mês.")
        return
    st.dataframe(_transactions_frame(transactions), use_container_width=True, hide_index=True)

    options = {f"{format_local_date(t.date)} · {t.description} · {_amount_label(t.amount)}": t.id for t in transactions}
    choice = st.selectbox("Excluir transação", ["Selecione..."] + list(options))
    if choice != "Selecione..." and st.button("🗑️ Excluir"):
        ledger.remove_transaction(ctx, options[choice])
        st.rerun()


def render_debts(ctx: FamilyContext) -> None:
    st.header("Dívidas e Protestos")
    ledger: LedgerStore = st.session_state['ledger']
    debts = ledger.list_debts(ctx)
    st.metric("Total em aberto", format_money(outstanding_total(debts)))

    with st.expander("➕ Nova dívida"):
        with st.form("debt_form", clear_on_submit=True):
            creditor = st.text_input("Credor", placeholder="Ex: Banco X, Cartão Y")
            status = st.selectbox("Situação", DEBT_STATUSES, format_func=lambda s: STATUS_LABELS[s])
            original_value = st.text_input("Valor original", placeholder="0,00")
            current_value = st.text_input("Valor atual (com juros)", placeholder="0,00")
            description = st.text_input("Observação", placeholder="Ex: Parcela 3/12 atrasada...")
            submitted = st.form_submit_button("Salvar Registro")
        if submitted:
            debt = create_debt(creditor, current_value, original_value or None, status, description, context=ctx)
            if debt is not None:
                ledger.append_debt(ctx, debt)
                st.rerun()

    if not debts:
        st.info("Nenhuma dívida registrada.")
    for debt in debts:
        with st.container(border=True):
            st.write(f"**{debt.creditor}** · {STATUS_LABELS.get(debt.status, debt.status)}")
            st.write(f"{_amount_label(debt.current_value)} (original {_amount_label(debt.original_value)})")
            if debt.description:
                st.caption(debt.description)
            with st.expander("Editar valores"):
                with st.form(f"edit_{debt.id}"):
                    new_original = st.text_input("Valor original", placeholder=str(debt.original_value))
                    new_current = st.text_input("Valor atual (com juros)", placeholder=str(debt.current_value))
                    save_edit = st.form_submit_button("Atualizar")
                if save_edit:
                    error = _apply_debt_edit(ledger, ctx, debt, new_original, new_current)
                    if error:
                        st.error(error)
                    else:
                        st.rerun()
            cols = st.columns(3)
            if debt.status != PAID:
                if cols[0].button("Negociando", key=f"neg_{debt.id}", disabled=debt.status == NEGOTIATING):
                    _update_debt_status(ledger, ctx, debt, NEGOTIATING)
                if cols[1].button("Quitado", key=f"paid_{debt.id}"):
                    _update_debt_status(ledger, ctx, debt, PAID)
            if cols[2].button("Excluir", key=f"del_{debt.id}"):
                ledger.remove_debt(ctx, debt.id)
                st.rerun()


def _update_debt_status(ledger: LedgerStore, ctx: FamilyContext, debt, status: str) -> None:
    try:
        ledger.update_debt(ctx, change_status(debt, status))
    except InvalidStatusTransition as exc:
        st.error(str(exc))
        return
    st.rerun()


def main() -> None:
    """Entry point for the Streamlit app."""
    st.set_page_config(page_title="Finanças em Família", layout="wide", initial_sidebar_state="expanded")
    _ensure_state(st.session_state)

    user: Optional[User] = st.session_state.get('user')
    if user is None:
        render_login()
        return
    ctx = context_for(user)

    view = render_sidebar(user, ctx)
    render_transaction_form(ctx)
    if view == "Dashboard":
        render_dashboard(ctx)
    elif view == "Planilha Mensal":
        render_monthly_sheet(ctx)
    elif view == "Chat IA":
        render_chat(ctx)
    elif view == "Extrato":
        render_statement(ctx)
    else:
        render_debts(ctx)


if __name__ == "__main__":  # pragma: no cover
    main()
