"""Shared fixtures for water lab tests."""

from datetime import datetime
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from src.water_lab.domain.entities.report import Report, ReportStatus
from src.water_lab.domain.value_objects.water_parameters import WaterParameters
from src.water_lab.infrastructure.database.models import Base

CLEAN_WATER = dict(
    bacteria_count=50,
    ph_level=7.2,
    turbidity=1,
    chlorine=0.3,
    heavy_metals=False,
    e_coli_present=False,
    total_dissolved_solids=120
)

CONTAMINATED_WATER = dict(
    bacteria_count=1500,
    ph_level=7.0,
    turbidity=2,
    chlorine=0.3,
    heavy_metals=False,
    e_coli_present=True,
    total_dissolved_solids=100
)

ALKALINE_WATER = dict(
    bacteria_count=150,
    ph_level=9.0,
    turbidity=1,
    chlorine=0.3,
    heavy_metals=False,
    e_coli_present=False,
    total_dissolved_solids=100
)


@pytest.fixture
def clean_params() -> WaterParameters:
    """Sample scoring 100 / safe."""
    return WaterParameters(**CLEAN_WATER)


@pytest.fixture
def contaminated_params() -> WaterParameters:
    """Sample scoring 35 / danger."""
    return WaterParameters(**CONTAMINATED_WATER)


@pytest.fixture
def alkaline_params() -> WaterParameters:
    """Sample scoring 65 / warning."""
    return WaterParameters(**ALKALINE_WATER)


@pytest.fixture
def make_report():
    """Factory for reports with sensible defaults."""

    def factory(
        kecamatan: str = "Cibeunying",
        lokasi: str = "Desa Sukamaju, RT 01",
        status: ReportStatus = ReportStatus.PENDING,
        created_at: datetime = datetime(2026, 10, 10, 9, 0),
        updated_at: datetime = None
    ) -> Report:
        return Report(
            user_id=uuid4(),
            kecamatan=kecamatan,
            lokasi=lokasi,
            puskesmas_id=uuid4(),
            status=status,
            created_at=created_at,
            updated_at=updated_at
        )

    return factory


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with every table created."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    """Database session bound to the in-memory engine."""
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
