"""Loan spec validation and the checked factory that builds specs from raw input.

Every violation is collected so callers can report the full field-error list
in one response.
"""

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from realty_finance.engine.rates import total_periods
from realty_finance.models.loan import ExtraPayment, LoanSpec, PaymentFrequency, RateType

CENT = Decimal("0.01")
# Largest amount the simulations table stores (Numeric(14, 2))
MAX_AMOUNT = Decimal("999999999999.99")
MAX_ANNUAL_RATE_PERCENT = Decimal("1000")


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class ValidationError(ValueError):
    """Loan parameters violate one or more constraints. Always caller-fixable."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        summary = "; ".join(f"{e.field}: {e.message}" for e in self.errors)
        super().__init__(summary or "invalid loan parameters")


def validate_loan_spec(spec: LoanSpec) -> list[FieldError]:
    """Return every constraint violation in ``spec`` (empty list when valid)."""
    errors: list[FieldError] = []

    if not isinstance(spec.principal, Decimal) or not spec.principal.is_finite():
        errors.append(FieldError("principal", "must be a finite decimal amount"))
    else:
        errors.extend(_check_amount(spec.principal, "principal"))

    if not isinstance(spec.annual_rate_percent, Decimal) or not spec.annual_rate_percent.is_finite():
        errors.append(FieldError("annual_rate_percent", "must be a finite decimal"))
    elif spec.annual_rate_percent < 0:
        errors.append(FieldError("annual_rate_percent", "must not be negative"))
    elif spec.annual_rate_percent > MAX_ANNUAL_RATE_PERCENT:
        errors.append(FieldError("annual_rate_percent", f"must not exceed {MAX_ANNUAL_RATE_PERCENT}"))

    term_ok = isinstance(spec.term_months, int) and not isinstance(spec.term_months, bool)
    if not term_ok:
        errors.append(FieldError("term_months", "must be an integer"))
    elif spec.term_months < 1:
        errors.append(FieldError("term_months", "must be at least 1"))
        term_ok = False

    frequency_ok = isinstance(spec.payment_frequency, PaymentFrequency)
    if not frequency_ok:
        errors.append(FieldError("payment_frequency", "unrecognized payment frequency"))
    if not isinstance(spec.rate_type, RateType):
        errors.append(FieldError("rate_type", "unrecognized rate type"))

    n_periods = total_periods(spec.term_months, spec.payment_frequency) if term_ok and frequency_ok else None
    errors.extend(_validate_extra_payments(spec.extra_payments, n_periods))
    return errors


def _check_amount(amount: Decimal, name: str) -> list[FieldError]:
    # Bounds first: quantizing an out-of-range value overflows the context
    if amount > MAX_AMOUNT:
        return [FieldError(name, f"must not exceed {MAX_AMOUNT}")]
    if amount <= 0 or _to_cent(amount) <= 0:
        return [FieldError(name, "must be greater than zero")]
    return []


def _to_cent(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, ROUND_HALF_UP)


def _validate_extra_payments(extras: Iterable[ExtraPayment], n_periods: int | None) -> list[FieldError]:
    errors: list[FieldError] = []
    seen: set[int] = set()
    for i, extra in enumerate(extras):
        prefix = f"extra_payments[{i}]"
        if not isinstance(extra.amount, Decimal) or not extra.amount.is_finite():
            errors.append(FieldError(f"{prefix}.amount", "must be a finite decimal amount"))
        else:
            errors.extend(_check_amount(extra.amount, f"{prefix}.amount"))

        index = extra.period_index
        if not isinstance(index, int) or isinstance(index, bool):
            errors.append(FieldError(f"{prefix}.period_index", "must be an integer"))
            continue
        if index < 1 or (n_periods is not None and index > n_periods):
            upper = n_periods if n_periods is not None else "total periods"
            errors.append(FieldError(f"{prefix}.period_index", f"must be between 1 and {upper}"))
        if index in seen:
            errors.append(FieldError(f"{prefix}.period_index", f"duplicate period {index}"))
        seen.add(index)
    return errors


def _coerce_decimal(value: Any, name: str, errors: list[FieldError]) -> Decimal | None:
    if isinstance(value, bool) or value is None:
        errors.append(FieldError(name, "must be a number"))
        return None
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        errors.append(FieldError(name, "must be a number"))
        return None
    if not result.is_finite():
        errors.append(FieldError(name, "must be a finite number"))
        return None
    return result


def _coerce_int(value: Any, name: str, errors: list[FieldError]) -> int | None:
    if isinstance(value, bool) or value is None:
        errors.append(FieldError(name, "must be an integer"))
        return None
    if isinstance(value, int):
        return value
    number = _coerce_decimal(value, name, errors)
    if number is None:
        return None
    if number != number.to_integral_value():
        errors.append(FieldError(name, "must be an integer"))
        return None
    return int(number)


def _coerce_enum(enum_cls, value: Any, name: str, errors: list[FieldError]):
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        key = value.strip()
        for member in enum_cls:
            if key.lower() == member.value or key.upper() == member.name:
                return member
    errors.append(FieldError(name, f"must be one of {', '.join(m.value for m in enum_cls)}"))
    return None


def build_loan_spec(
    principal: Any,
    annual_rate_percent: Any,
    term_months: Any,
    payment_frequency: Any = PaymentFrequency.MONTHLY,
    rate_type: Any = RateType.PRICE_TABLE,
    extra_payments: Iterable[Any] = (),
) -> LoanSpec:
    """Build a fully validated LoanSpec from loosely typed input.

    Extra payments may be ``ExtraPayment`` instances, mappings with
    ``period_index``/``amount`` keys, or ``(period_index, amount)`` pairs.

    Raises:
        ValidationError: with every coercion and constraint problem found.
    """
    errors: list[FieldError] = []

    p = _coerce_decimal(principal, "principal", errors)
    rate = _coerce_decimal(annual_rate_percent, "annual_rate_percent", errors)
    term = _coerce_int(term_months, "term_months", errors)
    freq = _coerce_enum(PaymentFrequency, payment_frequency, "payment_frequency", errors)
    kind = _coerce_enum(RateType, rate_type, "rate_type", errors)

    extras: list[ExtraPayment] = []
    for i, raw in enumerate(extra_payments or ()):
        prefix = f"extra_payments[{i}]"
        if isinstance(raw, ExtraPayment):
            extras.append(raw)
            continue
        if isinstance(raw, dict):
            raw_index, raw_amount = raw.get("period_index"), raw.get("amount")
        elif isinstance(raw, (tuple, list)) and len(raw) == 2:
            raw_index, raw_amount = raw
        else:
            errors.append(FieldError(prefix, "must provide period_index and amount"))
            continue
        index = _coerce_int(raw_index, f"{prefix}.period_index", errors)
        amount = _coerce_decimal(raw_amount, f"{prefix}.amount", errors)
        if index is not None and amount is not None:
            extras.append(ExtraPayment(period_index=index, amount=amount))

    if errors:
        raise ValidationError(errors)

    spec = LoanSpec(
        principal=p,
        annual_rate_percent=rate,
        term_months=term,
        payment_frequency=freq,
        rate_type=kind,
        extra_payments=tuple(extras),
    )
    # Field paths refer to input order
    problems = validate_loan_spec(spec)
    if problems:
        raise ValidationError(problems)
    return replace(
        spec,
        principal=_to_cent(p),
        extra_payments=tuple(
            replace(e, amount=_to_cent(e.amount)) for e in sorted(extras, key=lambda e: e.period_index)
        ),
    )
