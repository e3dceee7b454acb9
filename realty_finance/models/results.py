from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class Installment:
    period_index: int
    payment_amount: Decimal  # principal_portion + interest_portion
    principal_portion: Decimal
    interest_portion: Decimal
    extra_portion: Decimal  # Prepayment applied after the scheduled principal
    remaining_balance: Decimal


@dataclass(frozen=True)
class AmortizationResult:
    installments: list[Installment] = field(default_factory=list)

    # Rate derivation
    period_rate: Decimal = Decimal("0")
    periods_per_year: int = 12
    scheduled_periods: int = 0
    installment_amount: Decimal = Decimal("0")  # First scheduled payment

    # Totals
    total_interest_paid: Decimal = Decimal("0")
    total_principal_paid: Decimal = Decimal("0")  # Scheduled portions only
    total_extra_paid: Decimal = Decimal("0")
    total_paid: Decimal = Decimal("0")  # Payments + extra payments

    # Display metric, percent
    effective_annual_rate: Decimal | None = None

    @property
    def periods_saved(self) -> int:
        return self.scheduled_periods - len(self.installments)


@dataclass(frozen=True)
class YearSummary:
    year: int
    principal: Decimal
    interest: Decimal
    extra: Decimal
    payments: Decimal
    ending_balance: Decimal


@dataclass(frozen=True)
class LoanComparisonRow:
    """One spec in a side-by-side comparison."""

    label: str
    result: AmortizationResult
    is_lowest_cost: bool = False


@dataclass(frozen=True)
class ExtraPaymentSavings:
    baseline: AmortizationResult
    accelerated: AmortizationResult
    interest_saved: Decimal = Decimal("0")
    periods_saved: int = 0
