"""Per-period rate derivation.

Pure functions. Decimal in, Decimal out.
"""

from decimal import Decimal, ROUND_HALF_UP

from realty_finance.models.loan import PaymentFrequency

PERIODS_PER_YEAR = {
    PaymentFrequency.MONTHLY: 12,
    PaymentFrequency.BIWEEKLY: 26,
    PaymentFrequency.WEEKLY: 52,
}


def periods_per_year(frequency: PaymentFrequency) -> int:
    return PERIODS_PER_YEAR[frequency]


def period_rate(annual_rate_percent: Decimal, frequency: PaymentFrequency) -> Decimal:
    """Convert a nominal annual rate (in percent) to the equivalent per-period rate.

    Uses compound conversion, so 12 periods at the monthly rate of 12%/year
    grow exactly like one year at 12%:

        r = (1 + pct/100) ** (1/ppy) - 1
    """
    if annual_rate_percent == 0:
        return Decimal("0")
    ppy = Decimal(periods_per_year(frequency))
    return (1 + annual_rate_percent / 100) ** (1 / ppy) - 1


def total_periods(term_months: int, frequency: PaymentFrequency) -> int:
    """Number of installments covering ``term_months`` at the given frequency.

    Exactly ``term_months`` for monthly loans; biweekly and weekly terms are
    rounded half-up to whole periods, never below one.
    """
    ppy = periods_per_year(frequency)
    if ppy == 12:
        return term_months
    periods = (Decimal(term_months) * ppy / 12).quantize(Decimal("1"), ROUND_HALF_UP)
    return max(1, int(periods))
