"""Dash entry point for the financing calculator.

Run with ``python -m realty_finance.dashboard.app``.
"""

from dash import Dash, dcc, html, page_container

HEADER_STYLE = {
    "backgroundColor": "#1a1a2e",
    "color": "white",
    "padding": "1rem 2rem",
    "marginBottom": "2rem",
    "display": "flex",
    "alignItems": "baseline",
    "gap": "1.5rem",
}

app = Dash(__name__, use_pages=True, suppress_callback_exceptions=True, title="Realty Finance")

app.layout = html.Div([
    html.Header([
        dcc.Link("Realty Finance", href="/", style={"color": "white", "fontSize": "1.5rem", "textDecoration": "none"}),
        html.Span("Price, fixed and SAC amortization schedules", style={"opacity": "0.7"}),
    ], style=HEADER_STYLE),
    html.Main(page_container, style={"maxWidth": "1200px", "margin": "0 auto", "padding": "0 1rem"}),
])


if __name__ == "__main__":
    app.run(debug=True, port=8050)
