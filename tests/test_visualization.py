from family_finance.models import MonthlySummary
from family_finance.visualization import (
    create_cash_flow_chart,
    create_category_bar_chart,
    create_category_pie_chart,
)


def test_cash_flow_chart_has_bars_and_balance_line():
    projection = [
        MonthlySummary(month='2024-03', income=5000, expense=1200, balance=3800),
        MonthlySummary(month='2024-04', income=0, expense=1500, balance=-1500),
    ]
    fig = create_cash_flow_chart(projection)
    assert [trace.name for trace in fig.data] == ['Receitas', 'Despesas', 'Saldo']
    assert list(fig.data[0].x) == ['mar/24', 'abr/24']
    assert list(fig.data[2].y) == [3800, -1500]


def test_empty_inputs_give_empty_figures():
    assert len(create_cash_flow_chart([]).data) == 0
    assert len(create_category_bar_chart([]).data) == 0
    assert len(create_category_pie_chart([]).data) == 0


def test_category_charts():
    breakdown = [('Mercado', 1200.0), ('Combustível', 300.0)]
    assert len(create_category_bar_chart(breakdown).data) == 1
    assert list(create_category_pie_chart(breakdown).data[0].labels) == ['Mercado', 'Combustível']
