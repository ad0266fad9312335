"""Plotly visualisation helpers for the family finance dashboard.

Each function accepts the plain results returned by
:mod:`family_finance.aggregation` and produces an interactive Plotly figure
that Streamlit renders via ``st.plotly_chart``.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from .models import MonthlySummary
from .periods import Period

INCOME_COLOR = "#10b981"
EXPENSE_COLOR = "#f43f5e"
BALANCE_COLOR = "#3b82f6"


def _empty_figure(title: str = "Sem dados para este mês.") -> go.Figure:
    fig = go.Figure()
    fig.update_layout(title=title)
    return fig


def create_cash_flow_chart(projection: Sequence[MonthlySummary], title: str | None = None) -> go.Figure:
    """Grouped income/expense bars with the balance as a line.

    Parameters
    ----------
    projection : sequence of MonthlySummary
        Output of :func:`family_finance.aggregation.rolling_projection`.
    title : str, optional
        Chart title.

    Returns
    -------
    plotly.graph_objects.Figure
        Combined bar and line chart.
    """
    if not projection:
        return _empty_figure("Sem dados para projetar.")
    labels = [Period.parse(item.month).short_name for item in projection]
    fig = go.Figure()
    fig.add_bar(x=labels, y=[item.income for item in projection], name="Receitas", marker_color=INCOME_COLOR)
    fig.add_bar(x=labels, y=[item.expense for item in projection], name="Despesas", marker_color=EXPENSE_COLOR)
    fig.add_scatter(
        x=labels,
        y=[item.balance for item in projection],
        name="Saldo",
        mode="lines+markers",
        line=dict(color=BALANCE_COLOR, width=3),
    )
    fig.update_layout(
        title=title or "Fluxo de caixa futuro",
        barmode="group",
        xaxis_title="Mês",
        yaxis_title="R$",
    )
    return fig


def create_category_bar_chart(breakdown: List[Tuple[str, float]], title: str | None = None) -> go.Figure:
    """Horizontal bars for a category breakdown, largest on top."""
    if not breakdown:
        return _empty_figure()
    df = pd.DataFrame(breakdown, columns=["Categoria", "Valor"])
    fig = px.bar(df, x="Valor", y="Categoria", orientation="h", color_discrete_sequence=[EXPENSE_COLOR])
    fig.update_layout(
        title=title or "Despesas por categoria",
        yaxis=dict(autorange="reversed"),
        xaxis_title="R$",
        yaxis_title="",
    )
    return fig


def create_category_pie_chart(breakdown: List[Tuple[str, float]], title: str | None = None) -> go.Figure:
    if not breakdown:
        return _empty_figure()
    df = pd.DataFrame(breakdown, columns=["Categoria", "Valor"])
    fig = px.pie(df, names="Categoria", values="Valor")
    fig.update_layout(title=title or "Distribuição por categoria")
    return fig
