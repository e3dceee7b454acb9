"""Result builders for the calculator page. Pure functions of engine results."""

from dash import html, dcc
import plotly.graph_objects as go

from realty_finance.engine.amortization import yearly_summary
from realty_finance.engine.comparison import extra_payment_savings
from realty_finance.engine.validation import ValidationError, build_loan_spec
from realty_finance.models.results import AmortizationResult, ExtraPaymentSavings


def simulate(principal, rate, term, frequency, rate_type, extra_period=None, extra_amount=None):
    """Validate inputs and render results, or the field errors."""
    extras = []
    if extra_period is not None or extra_amount is not None:
        extras.append({"period_index": extra_period, "amount": extra_amount})
    try:
        spec = build_loan_spec(
            principal=principal,
            annual_rate_percent=rate,
            term_months=term,
            payment_frequency=frequency,
            rate_type=rate_type,
            extra_payments=extras,
        )
    except ValidationError as e:
        return _build_errors(e)
    return _build_results(extra_payment_savings(spec))


def _build_errors(error: ValidationError):
    return html.Div([
        html.P(f"{e.field}: {e.message}", style={"margin": "0.25rem 0"}) for e in error.errors
    ], style={
        "backgroundColor": "#fdecea", "padding": "0.75rem 1rem",
        "borderRadius": "8px", "border": "1px solid #e94560",
    })


def schedule_figure(result: AmortizationResult) -> go.Figure:
    periods = [i.period_index for i in result.installments]
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=periods,
        y=[float(i.principal_portion + i.extra_portion) for i in result.installments],
        name="Principal",
        marker_color="#1a1a2e",
    ))
    fig.add_trace(go.Bar(
        x=periods,
        y=[float(i.interest_portion) for i in result.installments],
        name="Interest",
        marker_color="#e94560",
    ))
    fig.add_trace(go.Scatter(
        x=periods,
        y=[float(i.remaining_balance) for i in result.installments],
        mode="lines",
        name="Balance",
        yaxis="y2",
        line=dict(color="#16213e", width=2, dash="dash"),
    ))
    fig.update_layout(
        title="Installment Breakdown",
        barmode="stack",
        xaxis_title="Period",
        yaxis_title="Installment",
        yaxis2=dict(title="Balance", overlaying="y", side="right"),
        hovermode="x unified",
    )
    return fig


def yearly_table(result: AmortizationResult):
    header = html.Tr([
        html.Th("Year"), html.Th("Payments"), html.Th("Principal"),
        html.Th("Extra"), html.Th("Interest"), html.Th("Ending Balance"),
    ])
    rows = [
        html.Tr([
            html.Td(y.year),
            html.Td(f"{float(y.payments):,.2f}"),
            html.Td(f"{float(y.principal):,.2f}"),
            html.Td(f"{float(y.extra):,.2f}"),
            html.Td(f"{float(y.interest):,.2f}"),
            html.Td(f"{float(y.ending_balance):,.2f}"),
        ])
        for y in yearly_summary(result)
    ]
    return html.Table(
        [html.Thead(header), html.Tbody(rows)],
        style={"width": "100%", "borderCollapse": "collapse", "fontSize": "0.9rem"},
    )


def _build_results(savings: ExtraPaymentSavings):
    result = savings.accelerated
    last = result.installments[-1]
    eff = result.effective_annual_rate

    summary = html.Div([
        _metric_card("First Installment", f"{float(result.installment_amount):,.2f}"),
        _metric_card("Last Installment", f"{float(last.payment_amount):,.2f}"),
        _metric_card("Total Interest", f"{float(result.total_interest_paid):,.2f}"),
        _metric_card("Total Paid", f"{float(result.total_paid):,.2f}"),
        _metric_card("Effective Rate", f"{float(eff):.2f}%" if eff is not None else "n/a"),
    ], style={"display": "flex", "gap": "1rem", "marginBottom": "2rem", "flexWrap": "wrap"})

    children = [summary]
    if savings.interest_saved > 0 or savings.periods_saved > 0:
        children.append(html.Div([
            html.P(
                f"Extra payments save {float(savings.interest_saved):,.2f} in interest"
                f" and {savings.periods_saved} installments",
                style={"fontWeight": "bold"},
            ),
        ], style={
            "backgroundColor": "#e8f8f0", "padding": "0.75rem 1rem",
            "borderRadius": "8px", "marginBottom": "1.5rem", "border": "1px solid #2ecc71",
        }))

    children.extend([
        dcc.Graph(figure=schedule_figure(result)),
        html.H3("By Year", style={"marginTop": "2rem"}),
        yearly_table(result),
    ])
    return html.Div(children)


def _metric_card(label, value):
    return html.Div([
        html.Div(value, style={"fontSize": "1.5rem", "fontWeight": "bold"}),
        html.Div(label, style={"fontSize": "0.85rem", "color": "#666"}),
    ], style={
        "backgroundColor": "white",
        "border": "1px solid #ddd",
        "borderRadius": "8px",
        "padding": "1rem 1.5rem",
        "minWidth": "150px",
        "textAlign": "center",
    })
