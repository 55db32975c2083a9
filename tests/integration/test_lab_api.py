"""Integration tests for the lab analysis API against a SQLite database."""

import httpx
import pytest
import pytest_asyncio
from datetime import datetime, timedelta
from uuid import uuid4
from httpx import AsyncClient

from src.water_lab.infrastructure.repositories.sql_repositories import SQLAlchemyReportRepository
from src.water_lab.infrastructure.services import ServiceFactory, get_service_factory
from src.water_lab.presentation.api.main import create_app


@pytest_asyncio.fixture
async def factory(tmp_path):
    """Service factory backed by a throwaway SQLite file."""
    factory = ServiceFactory(f"sqlite+aiosqlite:///{tmp_path / 'water_lab.db'}")
    await factory.initialize(create_tables=True)
    yield factory
    await factory.shutdown()


@pytest_asyncio.fixture
async def client(factory):
    """HTTP client for the app wired to the test factory."""
    app = create_app()
    app.dependency_overrides[get_service_factory] = lambda: factory
    transport = httpx.ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def report(factory, make_report):
    """A pending report stored in the test database."""
    report = make_report(created_at=datetime.utcnow() - timedelta(days=1))
    async with factory.database_manager.get_session() as session:
        await SQLAlchemyReportRepository(session).save(report)
    return report


def submission(parameters, **extra):
    body = {
        "parameters": parameters,
        "officer_id": str(uuid4()),
        "puskesmas_id": str(uuid4()),
        "notes": "sampel sumur"
    }
    body.update(extra)
    return body


class TestLabAnalysisAPI:
    """Integration tests for lab analysis endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        """Test the health endpoint."""
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["database"] == "up"

    @pytest.mark.asyncio
    async def test_health_without_database(self, tmp_path):
        """Test health answers 503 while the database is not connected."""
        app = create_app()
        app.dependency_overrides[get_service_factory] = lambda: ServiceFactory(f"sqlite:///{tmp_path / 'idle.db'}")
        async with AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"
        assert response.json()["database"] == "down"

    @pytest.mark.asyncio
    async def test_preview(self, client, alkaline_params):
        """Test scoring without saving."""
        response = await client.post("/api/v1/lab-analyses/preview", json=alkaline_params.to_dict())

        assert response.status_code == 200
        data = response.json()
        assert data["score"] == 65
        assert data["safety_level"] == "warning"
        assert data["issues"] == ["bacteria above safe limit", "abnormal pH"]
        assert "X-Correlation-ID" in response.headers

    @pytest.mark.asyncio
    async def test_preview_invalid_parameter(self, client):
        """Test out-of-range parameters answer 400 naming the field."""
        response = await client.post("/api/v1/lab-analyses/preview", json={"ph_level": 15})

        assert response.status_code == 400
        assert response.json()["field"] == "ph_level"

    @pytest.mark.asyncio
    async def test_submit_and_read_back(self, client, report, contaminated_params):
        """Test a stored analysis can be read back."""
        response = await client.put(
            f"/api/v1/reports/{report.id}/lab-analysis",
            json=submission(contaminated_params.to_dict())
        )

        assert response.status_code == 200
        outcome = response.json()
        assert outcome["status"] == "success"
        assert outcome["revision"] == 1
        assert outcome["report_status"] == "selesai"
        assert outcome["verdict"]["score"] == 35
        assert "BAHAYA" in outcome["notification"]["title"]
        assert outcome["notification"]["type"] == "urgent"

        response = await client.get(f"/api/v1/reports/{report.id}/lab-analysis")

        assert response.status_code == 200
        analysis = response.json()
        assert analysis["verdict"]["score"] == 35
        assert analysis["verdict"]["safety_level"] == "danger"
        assert analysis["parameters"]["bacteria_count"] == 1500
        assert analysis["missing_parameters"] == []
        assert analysis["notes"] == "sampel sumur"

    @pytest.mark.asyncio
    async def test_resubmission_overwrites(self, client, report, clean_params, contaminated_params):
        """Test the second analysis fully replaces the first."""
        await client.put(f"/api/v1/reports/{report.id}/lab-analysis", json=submission(contaminated_params.to_dict()))
        response = await client.put(
            f"/api/v1/reports/{report.id}/lab-analysis",
            json=submission(clean_params.to_dict(), expected_revision=1)
        )

        assert response.status_code == 200
        assert response.json()["revision"] == 2

        analysis = (await client.get(f"/api/v1/reports/{report.id}/lab-analysis")).json()
        assert analysis["verdict"]["score"] == 100
        assert analysis["verdict"]["issues"] == []

    @pytest.mark.asyncio
    async def test_stale_revision_conflict(self, client, report, clean_params, contaminated_params):
        """Test a stale expected_revision answers 409."""
        await client.put(f"/api/v1/reports/{report.id}/lab-analysis", json=submission(clean_params.to_dict()))
        response = await client.put(
            f"/api/v1/reports/{report.id}/lab-analysis",
            json=submission(contaminated_params.to_dict(), expected_revision=0)
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["status"] == "failed"
        assert detail["error_stage"] == "revision_check"
        assert detail["retryable"] is True

    @pytest.mark.asyncio
    async def test_submit_unknown_report(self, client, clean_params):
        """Test submitting against a missing report answers 404."""
        response = await client.put(f"/api/v1/reports/{uuid4()}/lab-analysis", json=submission(clean_params.to_dict()))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_get_missing_analysis(self, client, report):
        """Test reading a report that was never analysed."""
        response = await client.get(f"/api/v1/reports/{report.id}/lab-analysis")

        assert response.status_code == 404


class TestStatisticsAPI:
    """Integration tests for statistics endpoints."""

    @pytest.mark.asyncio
    async def test_dashboard(self, client, report, alkaline_params):
        """Test kecamatan statistics after one analysis."""
        await client.put(f"/api/v1/reports/{report.id}/lab-analysis", json=submission(alkaline_params.to_dict()))

        response = await client.get("/api/v1/statistics/cibeunying", params={"time_range": "week"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"]["total"] == 1
        assert data["status"]["selesai"] == 1
        assert data["total_lab_tests"] == 1
        assert data["water_quality"]["warning_pct"] == 100
        assert data["water_quality"]["poor_pct"] == 100
        assert len(data["trend"]) == 7
        assert data["problem_areas"][0]["area"] == "Desa Sukamaju"

    @pytest.mark.asyncio
    async def test_unknown_time_range(self, client):
        """Test unsupported ranges are rejected by request validation."""
        response = await client.get("/api/v1/statistics/Cibeunying", params={"time_range": "decade"})

        assert response.status_code == 422
