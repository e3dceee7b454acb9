"""Canonical test fixtures used across the test suite.

Fixture loan: 100,000.00 at 12%/year over 12 monthly installments.
The compound monthly rate is 1.12 ** (1/12) - 1 ~= 0.94888%.
"""

import pytest
from decimal import Decimal

from realty_finance.models.loan import ExtraPayment, LoanSpec, PaymentFrequency, RateType


def _spec(rate_type: RateType = RateType.FIXED, **overrides) -> LoanSpec:
    params = dict(
        principal=Decimal("100000"),
        annual_rate_percent=Decimal("12"),
        term_months=12,
        payment_frequency=PaymentFrequency.MONTHLY,
        rate_type=rate_type,
    )
    params.update(overrides)
    return LoanSpec(**params)


@pytest.fixture
def make_spec():
    """Factory for variations of the fixture loan."""
    return _spec


@pytest.fixture
def fixed_loan() -> LoanSpec:
    return _spec(RateType.FIXED)


@pytest.fixture
def price_loan() -> LoanSpec:
    return _spec(RateType.PRICE_TABLE)


@pytest.fixture
def sac_loan() -> LoanSpec:
    return _spec(RateType.SAC)


@pytest.fixture
def prepayment() -> tuple[ExtraPayment, ...]:
    """20,000.00 prepaid together with the 6th installment."""
    return (ExtraPayment(period_index=6, amount=Decimal("20000")),)


@pytest.fixture
def mortgage() -> LoanSpec:
    """300K, 10.5%/year, 30 years, Price table."""
    return LoanSpec(
        principal=Decimal("300000"),
        annual_rate_percent=Decimal("10.5"),
        term_months=360,
        rate_type=RateType.PRICE_TABLE,
    )
