"""Persistence for computed simulations.

``SimulationStore`` is the interface the API depends on; the SQL
implementation backs production and the in-memory one backs tests and local
runs without a database.
"""

import logging
import uuid
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Protocol, runtime_checkable

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from realty_finance.engine.rates import period_rate, periods_per_year, total_periods
from realty_finance.models.db import SimulationRecord
from realty_finance.models.loan import ExtraPayment, LoanSpec, PaymentFrequency, RateType
from realty_finance.models.results import AmortizationResult, Installment
from realty_finance.models.simulation import StoredSimulation

logger = logging.getLogger(__name__)


@runtime_checkable
class SimulationStore(Protocol):
    async def save(self, simulation: StoredSimulation) -> None:
        """Persist a new simulation."""
        ...

    async def get(self, user_id: uuid.UUID, simulation_id: uuid.UUID) -> StoredSimulation | None:
        """Fetch one of the user's simulations."""
        ...

    async def list_for_user(self, user_id: uuid.UUID, limit: int = 50) -> list[StoredSimulation]:
        """Newest first."""
        ...

    async def count_for_user_since(self, user_id: uuid.UUID, since: datetime) -> int:
        """Number of simulations the user created at or after ``since``."""
        ...

    async def set_narrative(self, user_id: uuid.UUID, simulation_id: uuid.UUID, narrative: str) -> None:
        ...


# ---- Serialization ----

def spec_to_dict(spec: LoanSpec) -> dict:
    return {
        "principal": str(spec.principal),
        "annual_rate_percent": str(spec.annual_rate_percent),
        "term_months": spec.term_months,
        "payment_frequency": spec.payment_frequency.value,
        "rate_type": spec.rate_type.value,
        "extra_payments": [
            {"period_index": e.period_index, "amount": str(e.amount)} for e in spec.extra_payments
        ],
    }


def spec_from_dict(data: dict) -> LoanSpec:
    return LoanSpec(
        principal=Decimal(data["principal"]),
        annual_rate_percent=Decimal(data["annual_rate_percent"]),
        term_months=int(data["term_months"]),
        payment_frequency=PaymentFrequency(data["payment_frequency"]),
        rate_type=RateType(data["rate_type"]),
        extra_payments=tuple(
            ExtraPayment(period_index=int(e["period_index"]), amount=Decimal(e["amount"]))
            for e in data.get("extra_payments", [])
        ),
    )


def installments_to_list(installments: list[Installment]) -> list[dict]:
    return [
        {
            "period_index": i.period_index,
            "payment_amount": str(i.payment_amount),
            "principal_portion": str(i.principal_portion),
            "interest_portion": str(i.interest_portion),
            "extra_portion": str(i.extra_portion),
            "remaining_balance": str(i.remaining_balance),
        }
        for i in installments
    ]


def installments_from_list(rows: list[dict]) -> list[Installment]:
    return [
        Installment(
            period_index=int(r["period_index"]),
            payment_amount=Decimal(r["payment_amount"]),
            principal_portion=Decimal(r["principal_portion"]),
            interest_portion=Decimal(r["interest_portion"]),
            extra_portion=Decimal(r["extra_portion"]),
            remaining_balance=Decimal(r["remaining_balance"]),
        )
        for r in rows
    ]


def _record_to_simulation(record: SimulationRecord) -> StoredSimulation:
    spec = spec_from_dict(record.spec)
    installments = installments_from_list(record.installments)
    principal_paid = sum((i.principal_portion for i in installments), Decimal("0"))
    extra_paid = sum((i.extra_portion for i in installments), Decimal("0"))
    eff = record.effective_annual_rate
    result = AmortizationResult(
        installments=installments,
        period_rate=period_rate(spec.annual_rate_percent, spec.payment_frequency),
        periods_per_year=periods_per_year(spec.payment_frequency),
        scheduled_periods=total_periods(spec.term_months, spec.payment_frequency),
        installment_amount=Decimal(record.installment_amount).quantize(Decimal("0.01")),
        total_interest_paid=Decimal(record.total_interest_paid).quantize(Decimal("0.01")),
        total_principal_paid=principal_paid,
        total_extra_paid=extra_paid,
        total_paid=Decimal(record.total_paid).quantize(Decimal("0.01")),
        effective_annual_rate=Decimal(eff).quantize(Decimal("0.0001")) if eff is not None else None,
    )
    return StoredSimulation(
        id=record.id,
        user_id=record.user_id,
        created_at=record.created_at,
        spec=spec,
        result=result,
        label=record.label or "",
        narrative=record.narrative,
    )


# ---- Implementations ----

class SqlSimulationStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def save(self, simulation: StoredSimulation) -> None:
        result = simulation.result
        record = SimulationRecord(
            id=simulation.id,
            user_id=simulation.user_id,
            created_at=simulation.created_at,
            label=simulation.label,
            spec=spec_to_dict(simulation.spec),
            rate_type=simulation.spec.rate_type.value,
            payment_frequency=simulation.spec.payment_frequency.value,
            principal=simulation.spec.principal,
            installment_amount=result.installment_amount,
            installment_count=len(result.installments),
            total_interest_paid=result.total_interest_paid,
            total_paid=result.total_paid,
            effective_annual_rate=result.effective_annual_rate,
            installments=installments_to_list(result.installments),
            narrative=simulation.narrative,
        )
        self.session.add(record)
        await self.session.commit()
        logger.info("Saved simulation %s for user %s", simulation.id, simulation.user_id)

    async def get(self, user_id: uuid.UUID, simulation_id: uuid.UUID) -> StoredSimulation | None:
        stmt = select(SimulationRecord).where(
            SimulationRecord.id == simulation_id,
            SimulationRecord.user_id == user_id,
        )
        record = (await self.session.execute(stmt)).scalar_one_or_none()
        return _record_to_simulation(record) if record is not None else None

    async def list_for_user(self, user_id: uuid.UUID, limit: int = 50) -> list[StoredSimulation]:
        stmt = (
            select(SimulationRecord)
            .where(SimulationRecord.user_id == user_id)
            .order_by(SimulationRecord.created_at.desc())
            .limit(limit)
        )
        records = (await self.session.execute(stmt)).scalars().all()
        return [_record_to_simulation(r) for r in records]

    async def count_for_user_since(self, user_id: uuid.UUID, since: datetime) -> int:
        stmt = select(func.count()).select_from(SimulationRecord).where(
            SimulationRecord.user_id == user_id,
            SimulationRecord.created_at >= since,
        )
        return int((await self.session.execute(stmt)).scalar_one())

    async def set_narrative(self, user_id: uuid.UUID, simulation_id: uuid.UUID, narrative: str) -> None:
        stmt = (
            update(SimulationRecord)
            .where(SimulationRecord.id == simulation_id, SimulationRecord.user_id == user_id)
            .values(narrative=narrative)
        )
        await self.session.execute(stmt)
        await self.session.commit()


class InMemorySimulationStore:
    def __init__(self) -> None:
        self._simulations: dict[uuid.UUID, StoredSimulation] = {}

    async def save(self, simulation: StoredSimulation) -> None:
        self._simulations[simulation.id] = simulation

    async def get(self, user_id: uuid.UUID, simulation_id: uuid.UUID) -> StoredSimulation | None:
        sim = self._simulations.get(simulation_id)
        if sim is None or sim.user_id != user_id:
            return None
        return sim

    async def list_for_user(self, user_id: uuid.UUID, limit: int = 50) -> list[StoredSimulation]:
        owned = [s for s in self._simulations.values() if s.user_id == user_id]
        owned.sort(key=lambda s: s.created_at, reverse=True)
        return owned[:limit]

    async def count_for_user_since(self, user_id: uuid.UUID, since: datetime) -> int:
        return sum(1 for s in self._simulations.values() if s.user_id == user_id and s.created_at >= since)

    async def set_narrative(self, user_id: uuid.UUID, simulation_id: uuid.UUID, narrative: str) -> None:
        sim = await self.get(user_id, simulation_id)
        if sim is not None:
            self._simulations[simulation_id] = replace(sim, narrative=narrative)
