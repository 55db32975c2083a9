"""Async engine and session handling for the lab database."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from src.water_lab.infrastructure.database.models import Base
from src.water_lab.infrastructure.logging import get_logger

logger = get_logger(__name__)

# Plain URLs as found in hosting dashboards, mapped to the async drivers
ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "postgres://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def normalize_database_url(database_url: str) -> str:
    """Map plain driver URLs to their async drivers."""
    for prefix, async_prefix in ASYNC_DRIVERS.items():
        if database_url.startswith(prefix):
            return async_prefix + database_url[len(prefix):]
    return database_url


class DatabaseManager:
    """Owns the async engine and hands out unit-of-work sessions.

    ``get_session`` commits when the block exits cleanly and rolls back
    when it raises.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self._database_url = normalize_database_url(database_url)
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker | None = None

    @property
    def database_url(self) -> str:
        return self._database_url

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._engine

    async def connect(self) -> None:
        """Create the engine and session factory."""
        self._engine = create_async_engine(self._database_url, echo=self._echo, pool_pre_ping=True)
        self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)

    async def disconnect(self) -> None:
        """Dispose of the engine's connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
        self._engine = None
        self._session_factory = None

    async def ping(self) -> bool:
        """Check that the database answers a trivial query."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning("Database ping failed", extra={"error": str(e)})
            return False
        return True

    async def create_tables(self) -> None:
        """Create every table that does not exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session that commits on success and rolls back on error."""
        if self._session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
