"""SQLAlchemy ORM models for PostgreSQL persistence."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Integer, JSON, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class SimulationRecord(Base):
    __tablename__ = "simulations"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    label: Mapped[str] = mapped_column(String(100), default="")

    # Loan spec snapshot (JSON for flexibility)
    spec: Mapped[dict] = mapped_column(JSON)
    rate_type: Mapped[str] = mapped_column(String(20))
    payment_frequency: Mapped[str] = mapped_column(String(20))

    # Summary results; totals get headroom for interest on the largest principal
    principal: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    installment_amount: Mapped[Decimal] = mapped_column(Numeric(20, 2))
    installment_count: Mapped[int] = mapped_column(Integer)
    total_interest_paid: Mapped[Decimal] = mapped_column(Numeric(20, 2))
    total_paid: Mapped[Decimal] = mapped_column(Numeric(20, 2))
    effective_annual_rate: Mapped[Decimal | None] = mapped_column(Numeric(10, 4), nullable=True)

    # Full schedule (JSON)
    installments: Mapped[list] = mapped_column(JSON)

    narrative: Mapped[str | None] = mapped_column(Text, nullable=True)
