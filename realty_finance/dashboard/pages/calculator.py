"""Loan calculator page: schedule chart, yearly table and prepayment savings."""

import dash
from dash import html, dcc, callback, Input, Output, State

from realty_finance.dashboard.components import simulate

dash.register_page(__name__, path="/", name="Calculator")

BTN_STYLE = {
    "padding": "0.75rem 2rem",
    "fontSize": "1rem",
    "backgroundColor": "#1a1a2e",
    "color": "white",
    "border": "none",
    "cursor": "pointer",
}

FIELD_STYLE = {"width": "100%", "padding": "0.5rem", "fontSize": "0.95rem"}

# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


def _field(label, component):
    return html.Div([
        html.Label(label, style={"fontSize": "0.85rem", "marginBottom": "0.25rem", "display": "block"}),
        component,
    ], style={"flex": "1", "minWidth": "140px"})


layout = html.Div([
    html.H2("Financing Simulator"),

    html.Div([
        _field("Amount Financed", dcc.Input(id="calc-principal", type="number", value=300000, style=FIELD_STYLE)),
        _field("Annual Rate (%)", dcc.Input(id="calc-rate", type="number", value=10.5, step=0.05, style=FIELD_STYLE)),
        _field("Term (months)", dcc.Input(id="calc-term", type="number", value=360, style=FIELD_STYLE)),
    ], style={"display": "flex", "gap": "1rem", "marginBottom": "0.75rem"}),
    html.Div([
        _field("Payment Frequency", dcc.Dropdown(
            id="calc-frequency",
            options=[
                {"label": "Monthly", "value": "monthly"},
                {"label": "Biweekly", "value": "biweekly"},
                {"label": "Weekly", "value": "weekly"},
            ],
            value="monthly",
            clearable=False,
        )),
        _field("Amortization", dcc.Dropdown(
            id="calc-rate-type",
            options=[
                {"label": "Price table", "value": "price_table"},
                {"label": "SAC (constant amortization)", "value": "sac"},
                {"label": "Fixed installment", "value": "fixed"},
            ],
            value="price_table",
            clearable=False,
        )),
        _field("Extra Payment at Period", dcc.Input(id="calc-extra-period", type="number", style=FIELD_STYLE)),
        _field("Extra Payment Amount", dcc.Input(id="calc-extra-amount", type="number", style=FIELD_STYLE)),
        html.Div([
            html.Label(" ", style={"fontSize": "0.85rem", "display": "block"}),
            html.Button("Simulate", id="calc-btn", n_clicks=0, style=BTN_STYLE),
        ], style={"flex": "0 0 auto"}),
    ], style={"display": "flex", "gap": "1rem", "alignItems": "end", "marginBottom": "2rem"}),

    dcc.Loading(html.Div(id="calc-results")),
])


@callback(
    Output("calc-results", "children"),
    Input("calc-btn", "n_clicks"),
    State("calc-principal", "value"),
    State("calc-rate", "value"),
    State("calc-term", "value"),
    State("calc-frequency", "value"),
    State("calc-rate-type", "value"),
    State("calc-extra-period", "value"),
    State("calc-extra-amount", "value"),
    prevent_initial_call=True,
)
def run_simulation(n_clicks, principal, rate, term, frequency, rate_type, extra_period, extra_amount):
    return simulate(principal, rate, term, frequency, rate_type, extra_period, extra_amount)
