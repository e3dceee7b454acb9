"""Amortization schedule computation.

Pure functions: LoanSpec in, dataclass out. No I/O.

All money moves through the schedule loop as integer cents; interest is
rounded half-up to the cent each period and the final installment absorbs
the residual so the closing balance is exactly zero. The level installment is
rounded down, so that residual is never negative.
"""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import assert_never

from realty_finance.engine.irr import effective_annual_rate
from realty_finance.engine.rates import period_rate, periods_per_year, total_periods
from realty_finance.engine.validation import ValidationError, validate_loan_spec
from realty_finance.models.loan import LoanSpec, RateType
from realty_finance.models.results import AmortizationResult, Installment, YearSummary

TWO_PLACES = Decimal("0.01")
WHOLE = Decimal("1")


def to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(WHOLE, ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) / 100).quantize(TWO_PLACES)


def _round_cents(value: Decimal) -> int:
    return int(value.quantize(WHOLE, ROUND_HALF_UP))


def annuity_payment(balance_cents: int, rate: Decimal, n_periods: int) -> int:
    """Level installment (in cents) that retires ``balance_cents`` over ``n_periods``.

    A = P * r / (1 - (1 + r) ** -n), or P / n when the rate is zero, truncated
    to the cent.
    """
    if rate == 0:
        return balance_cents // n_periods
    level = Decimal(balance_cents) * rate / (1 - (1 + rate) ** -n_periods)
    return int(level.quantize(WHOLE, ROUND_DOWN))


def _sac_principal(balance_cents: int, periods_remaining: int) -> int:
    # Ceiling division front-loads the remainder cents, keeping payments non-increasing
    return -(-balance_cents // periods_remaining)


def compute_schedule(spec: LoanSpec) -> AmortizationResult:
    """Generate the full installment schedule for ``spec``.

    Raises:
        ValidationError: if any input constraint is violated. No partial
            schedule is produced.
    """
    errors = validate_loan_spec(spec)
    if errors:
        raise ValidationError(errors)

    rate = period_rate(spec.annual_rate_percent, spec.payment_frequency)
    ppy = periods_per_year(spec.payment_frequency)
    n_periods = total_periods(spec.term_months, spec.payment_frequency)
    extras = {e.period_index: to_cents(e.amount) for e in spec.extra_payments}

    balance = to_cents(spec.principal)
    level_payment = annuity_payment(balance, rate, n_periods)
    first_payment: int | None = None
    prepaid = 0

    rows: list[tuple[int, int, int, int, int]] = []
    for period in range(1, n_periods + 1):
        interest = _round_cents(Decimal(balance) * rate)

        match spec.rate_type:
            case RateType.FIXED | RateType.PRICE_TABLE:
                principal = max(level_payment - interest, 0)
            case RateType.SAC:
                principal = _sac_principal(balance, n_periods - period + 1)
            case _:
                assert_never(spec.rate_type)

        # Final period (or overshoot) retires whatever is left
        if period == n_periods or principal > balance:
            principal = balance
        balance -= principal

        extra = min(extras.get(period, 0), balance)
        balance -= extra
        prepaid += extra

        if first_payment is None:
            first_payment = principal + interest
        rows.append((period, principal, interest, extra, balance))

        # Only a prepayment ends the schedule early
        if balance == 0 and prepaid:
            break
        if extra and spec.rate_type is RateType.PRICE_TABLE:
            level_payment = annuity_payment(balance, rate, n_periods - period)

    return _build_result(spec, rows, rate, ppy, n_periods, first_payment or 0)


def _build_result(
    spec: LoanSpec,
    rows: list[tuple[int, int, int, int, int]],
    rate: Decimal,
    ppy: int,
    n_periods: int,
    first_payment: int,
) -> AmortizationResult:
    installments = [
        Installment(
            period_index=period,
            payment_amount=from_cents(principal + interest),
            principal_portion=from_cents(principal),
            interest_portion=from_cents(interest),
            extra_portion=from_cents(extra),
            remaining_balance=from_cents(balance),
        )
        for period, principal, interest, extra, balance in rows
    ]

    total_interest = sum(r[2] for r in rows)
    total_principal = sum(r[1] for r in rows)
    total_extra = sum(r[3] for r in rows)

    cash_flows = [-from_cents(to_cents(spec.principal))]
    cash_flows.extend(from_cents(p + i + x) for _, p, i, x, _ in rows)

    return AmortizationResult(
        installments=installments,
        period_rate=rate,
        periods_per_year=ppy,
        scheduled_periods=n_periods,
        installment_amount=from_cents(first_payment),
        total_interest_paid=from_cents(total_interest),
        total_principal_paid=from_cents(total_principal),
        total_extra_paid=from_cents(total_extra),
        total_paid=from_cents(total_principal + total_interest + total_extra),
        effective_annual_rate=effective_annual_rate(cash_flows, ppy),
    )


def yearly_summary(result: AmortizationResult) -> list[YearSummary]:
    """Aggregate an amortization schedule by loan year.

    A year spans ``periods_per_year`` installments; the last year may be
    partial when the loan is paid off early.
    """
    ppy = result.periods_per_year
    yearly: list[YearSummary] = []
    year_principal = Decimal("0")
    year_interest = Decimal("0")
    year_extra = Decimal("0")
    year_payments = Decimal("0")

    for inst in result.installments:
        year_principal += inst.principal_portion
        year_interest += inst.interest_portion
        year_extra += inst.extra_portion
        year_payments += inst.payment_amount + inst.extra_portion

        if inst.period_index % ppy == 0 or inst is result.installments[-1]:
            yearly.append(YearSummary(
                year=(inst.period_index - 1) // ppy + 1,
                principal=year_principal,
                interest=year_interest,
                extra=year_extra,
                payments=year_payments,
                ending_balance=inst.remaining_balance,
            ))
            year_principal = Decimal("0")
            year_interest = Decimal("0")
            year_extra = Decimal("0")
            year_payments = Decimal("0")

    return yearly
