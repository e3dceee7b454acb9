"""FastAPI dependency injection."""

from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from realty_finance.api.errors import Unauthenticated
from realty_finance.config import settings
from realty_finance.data.simulation_store import SimulationStore, SqlSimulationStore

engine = create_async_engine(settings.database_url, echo=settings.debug)
async_session = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncSession:
    async with async_session() as session:
        yield session


def get_simulation_store(session: AsyncSession = Depends(get_db)) -> SimulationStore:
    return SqlSimulationStore(session)


def get_current_user_id(x_user_id: str | None = Header(None)) -> UUID:
    """Identify the caller. The auth gateway in front of the API sets ``X-User-Id``."""
    if not x_user_id:
        raise Unauthenticated("Missing X-User-Id header")
    try:
        return UUID(x_user_id)
    except ValueError:
        raise Unauthenticated("X-User-Id must be a UUID")
