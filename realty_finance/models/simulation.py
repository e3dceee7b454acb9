import uuid
from dataclasses import dataclass
from datetime import datetime

from realty_finance.models.loan import LoanSpec
from realty_finance.models.results import AmortizationResult


@dataclass(frozen=True)
class StoredSimulation:
    """A computed schedule as persisted for one user."""

    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    spec: LoanSpec
    result: AmortizationResult
    label: str = ""
    narrative: str | None = None
