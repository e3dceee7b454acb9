"""Effective annual rate from an installment cash-flow vector, using scipy.

Pure functions. No I/O.
"""

from decimal import Decimal, ROUND_HALF_UP

from scipy.optimize import brentq

FOUR_PLACES = Decimal("0.0001")


def compute_period_irr(cash_flows: list[Decimal]) -> float | None:
    """Compute the per-period IRR of a loan from the lender's point of view.

    cash_flows[0] should be negative (amount disbursed).
    cash_flows[1:] are the amounts received each period.

    Uses Brent's method on the NPV function. Returns None when no root lies
    in the search range.
    """
    if not cash_flows or len(cash_flows) < 2:
        return None

    # Convert to float for scipy
    cf_float = [float(cf) for cf in cash_flows]

    def npv(rate: float) -> float:
        return sum(cf * (1 + rate) ** -t for t, cf in enumerate(cf_float))

    # Search between 0% and 1000% per period
    try:
        return brentq(npv, 0.0, 10.0, xtol=1e-12, maxiter=1000)
    except ValueError:
        return None


def effective_annual_rate(cash_flows: list[Decimal], periods_per_year: int) -> Decimal | None:
    """Annualized IRR in percent: ((1 + i) ** ppy - 1) * 100."""
    if sum(cash_flows) == 0:
        # Nothing charged beyond principal
        return Decimal("0.0000")
    irr = compute_period_irr(cash_flows)
    if irr is None:
        return None
    annual = ((1 + irr) ** periods_per_year - 1) * 100
    return Decimal(str(annual)).quantize(FOUR_PLACES, ROUND_HALF_UP)
