"""Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from realty_finance.config import settings


# ---- Request schemas ----

class ExtraPaymentRequest(BaseModel):
    period_index: int = Field(..., description="1-based installment the prepayment is applied at")
    amount: Decimal


class SimulationRequest(BaseModel):
    # Range checks are done by the engine, which reports every violation at once
    principal: Decimal = Field(..., description="Amount financed, major currency units")
    annual_rate_percent: Decimal = Field(..., description="Nominal annual rate, e.g. 9.5 for 9.5%")
    term_months: int = Field(..., le=settings.max_term_months)
    payment_frequency: str = Field("monthly", description="monthly, biweekly or weekly")
    rate_type: str = Field("price_table", description="fixed, price_table or sac")
    extra_payments: list[ExtraPaymentRequest] = []
    label: str = Field("", max_length=100)


class CompareRequest(BaseModel):
    options: list[SimulationRequest] = Field(..., min_length=2, max_length=settings.max_compare_options)


# ---- Response schemas ----

class InstallmentResponse(BaseModel):
    period_index: int
    payment_amount: Decimal
    principal_portion: Decimal
    interest_portion: Decimal
    extra_portion: Decimal
    remaining_balance: Decimal


class YearSummaryResponse(BaseModel):
    year: int
    principal: Decimal
    interest: Decimal
    extra: Decimal
    payments: Decimal
    ending_balance: Decimal


class LoanSpecResponse(BaseModel):
    principal: Decimal
    annual_rate_percent: Decimal
    term_months: int
    payment_frequency: str
    rate_type: str
    extra_payments: list[ExtraPaymentRequest] = []


class ScheduleSummaryResponse(BaseModel):
    period_rate: Decimal
    periods_per_year: int
    scheduled_periods: int
    installment_count: int
    periods_saved: int
    installment_amount: Decimal
    final_installment_amount: Decimal
    total_interest_paid: Decimal
    total_principal_paid: Decimal
    total_extra_paid: Decimal
    total_paid: Decimal
    effective_annual_rate: Decimal | None = None


class SimulationResponse(BaseModel):
    id: UUID
    label: str = ""
    created_at: datetime
    spec: LoanSpecResponse
    summary: ScheduleSummaryResponse
    installments: list[InstallmentResponse]
    yearly: list[YearSummaryResponse] = []
    narrative: str | None = None


class SimulationListItemResponse(BaseModel):
    id: UUID
    label: str = ""
    created_at: datetime
    spec: LoanSpecResponse
    summary: ScheduleSummaryResponse


class ComparisonOptionResponse(BaseModel):
    label: str
    is_lowest_cost: bool
    spec: LoanSpecResponse
    summary: ScheduleSummaryResponse


class ComparisonResponse(BaseModel):
    options: list[ComparisonOptionResponse]


class NarrativeResponse(BaseModel):
    simulation_id: UUID
    narrative: str
