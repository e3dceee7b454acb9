from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class PaymentFrequency(Enum):
    MONTHLY = "monthly"
    BIWEEKLY = "biweekly"
    WEEKLY = "weekly"


class RateType(Enum):
    FIXED = "fixed"  # Equal installments; extra payments shorten the term
    PRICE_TABLE = "price_table"  # Annuity re-based on the remaining term after extras
    SAC = "sac"  # Constant amortization, decreasing installments


@dataclass(frozen=True)
class ExtraPayment:
    period_index: int  # 1-based
    amount: Decimal


@dataclass(frozen=True)
class LoanSpec:
    principal: Decimal
    annual_rate_percent: Decimal  # e.g. Decimal("9.5") for 9.5%/year
    term_months: int
    payment_frequency: PaymentFrequency = PaymentFrequency.MONTHLY
    rate_type: RateType = RateType.PRICE_TABLE
    extra_payments: tuple[ExtraPayment, ...] = field(default_factory=tuple)

    def without_extra_payments(self) -> "LoanSpec":
        return LoanSpec(
            principal=self.principal,
            annual_rate_percent=self.annual_rate_percent,
            term_months=self.term_months,
            payment_frequency=self.payment_frequency,
            rate_type=self.rate_type,
        )
