"""Financing routes: amortization simulations, comparisons and narratives."""

import logging
from datetime import datetime, timezone
from uuid import UUID, uuid4

from fastapi import APIRouter, Depends, Query, status

from realty_finance.api.deps import get_current_user_id, get_simulation_store
from realty_finance.api.errors import NarrativeUnavailable, SimulationNotFound, UsageLimitExceeded
from realty_finance.api.schemas import (
    CompareRequest,
    ComparisonOptionResponse,
    ComparisonResponse,
    ExtraPaymentRequest,
    InstallmentResponse,
    LoanSpecResponse,
    NarrativeResponse,
    ScheduleSummaryResponse,
    SimulationListItemResponse,
    SimulationRequest,
    SimulationResponse,
    YearSummaryResponse,
)
from realty_finance.config import settings
from realty_finance.data.narrative import generate_financing_narrative
from realty_finance.data.simulation_store import SimulationStore
from realty_finance.engine.amortization import compute_schedule, yearly_summary
from realty_finance.engine.comparison import compare_loans
from realty_finance.engine.validation import FieldError, ValidationError, build_loan_spec
from realty_finance.models.loan import LoanSpec
from realty_finance.models.results import AmortizationResult
from realty_finance.models.simulation import StoredSimulation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/financing", tags=["financing"])


def _spec_from_request(req: SimulationRequest) -> LoanSpec:
    return build_loan_spec(
        principal=req.principal,
        annual_rate_percent=req.annual_rate_percent,
        term_months=req.term_months,
        payment_frequency=req.payment_frequency,
        rate_type=req.rate_type,
        extra_payments=[(e.period_index, e.amount) for e in req.extra_payments],
    )


def _spec_response(spec: LoanSpec) -> LoanSpecResponse:
    return LoanSpecResponse(
        principal=spec.principal,
        annual_rate_percent=spec.annual_rate_percent,
        term_months=spec.term_months,
        payment_frequency=spec.payment_frequency.value,
        rate_type=spec.rate_type.value,
        extra_payments=[
            ExtraPaymentRequest(period_index=e.period_index, amount=e.amount) for e in spec.extra_payments
        ],
    )


def _summary_response(result: AmortizationResult) -> ScheduleSummaryResponse:
    last = result.installments[-1] if result.installments else None
    return ScheduleSummaryResponse(
        period_rate=result.period_rate,
        periods_per_year=result.periods_per_year,
        scheduled_periods=result.scheduled_periods,
        installment_count=len(result.installments),
        periods_saved=result.periods_saved,
        installment_amount=result.installment_amount,
        final_installment_amount=last.payment_amount if last else result.installment_amount,
        total_interest_paid=result.total_interest_paid,
        total_principal_paid=result.total_principal_paid,
        total_extra_paid=result.total_extra_paid,
        total_paid=result.total_paid,
        effective_annual_rate=result.effective_annual_rate,
    )


def _simulation_response(sim: StoredSimulation) -> SimulationResponse:
    """Convert a stored simulation to the API response."""
    return SimulationResponse(
        id=sim.id,
        label=sim.label,
        created_at=sim.created_at,
        spec=_spec_response(sim.spec),
        summary=_summary_response(sim.result),
        installments=[
            InstallmentResponse(
                period_index=i.period_index,
                payment_amount=i.payment_amount,
                principal_portion=i.principal_portion,
                interest_portion=i.interest_portion,
                extra_portion=i.extra_portion,
                remaining_balance=i.remaining_balance,
            )
            for i in sim.result.installments
        ],
        yearly=[
            YearSummaryResponse(
                year=y.year,
                principal=y.principal,
                interest=y.interest,
                extra=y.extra,
                payments=y.payments,
                ending_balance=y.ending_balance,
            )
            for y in yearly_summary(sim.result)
        ],
        narrative=sim.narrative,
    )


def _month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


async def _enforce_usage_limit(store: SimulationStore, user_id: UUID) -> None:
    limit = settings.monthly_simulation_limit
    if limit <= 0:
        return
    used = await store.count_for_user_since(user_id, _month_start(datetime.now(timezone.utc)))
    if used >= limit:
        raise UsageLimitExceeded(f"Monthly limit of {limit} simulations reached")


@router.post("/simulations", response_model=SimulationResponse, status_code=status.HTTP_201_CREATED)
async def create_simulation(
    req: SimulationRequest,
    user_id: UUID = Depends(get_current_user_id),
    store: SimulationStore = Depends(get_simulation_store),
):
    """Primary endpoint: loan parameters → full amortization schedule, persisted for the user."""
    await _enforce_usage_limit(store, user_id)

    spec = _spec_from_request(req)
    result = compute_schedule(spec)

    simulation = StoredSimulation(
        id=uuid4(),
        user_id=user_id,
        created_at=datetime.now(timezone.utc),
        spec=spec,
        result=result,
        label=req.label,
    )
    await store.save(simulation)
    logger.info(
        "Simulation %s: %s %s x%d, %d installments",
        simulation.id, spec.rate_type.value, spec.principal, spec.term_months, len(result.installments),
    )
    return _simulation_response(simulation)


@router.get("/simulations", response_model=list[SimulationListItemResponse])
async def list_simulations(
    limit: int = Query(20, ge=1, le=100),
    user_id: UUID = Depends(get_current_user_id),
    store: SimulationStore = Depends(get_simulation_store),
):
    """The caller's saved simulations, newest first (summaries only)."""
    simulations = await store.list_for_user(user_id, limit=limit)
    return [
        SimulationListItemResponse(
            id=s.id,
            label=s.label,
            created_at=s.created_at,
            spec=_spec_response(s.spec),
            summary=_summary_response(s.result),
        )
        for s in simulations
    ]


@router.get("/simulations/{simulation_id}", response_model=SimulationResponse)
async def get_simulation(
    simulation_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    store: SimulationStore = Depends(get_simulation_store),
):
    simulation = await store.get(user_id, simulation_id)
    if simulation is None:
        raise SimulationNotFound(f"Simulation {simulation_id} not found")
    return _simulation_response(simulation)


@router.post("/compare", response_model=ComparisonResponse)
async def compare(
    req: CompareRequest,
    user_id: UUID = Depends(get_current_user_id),
):
    """Side-by-side schedules for several loan options. Nothing is persisted."""
    specs: list[LoanSpec] = []
    errors: list[FieldError] = []
    for i, option in enumerate(req.options):
        try:
            specs.append(_spec_from_request(option))
        except ValidationError as e:
            errors.extend(FieldError(f"options[{i}].{err.field}", err.message) for err in e.errors)
    if errors:
        raise ValidationError(errors)

    labels = [option.label or f"Option {i + 1}" for i, option in enumerate(req.options)]
    rows = compare_loans(specs, labels)
    return ComparisonResponse(
        options=[
            ComparisonOptionResponse(
                label=row.label,
                is_lowest_cost=row.is_lowest_cost,
                spec=_spec_response(spec),
                summary=_summary_response(row.result),
            )
            for spec, row in zip(specs, rows)
        ]
    )


@router.post("/simulations/{simulation_id}/narrative", response_model=NarrativeResponse)
async def create_narrative(
    simulation_id: UUID,
    user_id: UUID = Depends(get_current_user_id),
    store: SimulationStore = Depends(get_simulation_store),
):
    """Plain-language explanation of a saved simulation, generated once and stored."""
    simulation = await store.get(user_id, simulation_id)
    if simulation is None:
        raise SimulationNotFound(f"Simulation {simulation_id} not found")
    if simulation.narrative:
        return NarrativeResponse(simulation_id=simulation.id, narrative=simulation.narrative)

    narrative = await generate_financing_narrative(simulation.spec, simulation.result)
    if narrative is None:
        raise NarrativeUnavailable("Narrative service is unavailable, try again later")

    await store.set_narrative(user_id, simulation.id, narrative)
    return NarrativeResponse(simulation_id=simulation.id, narrative=narrative)
