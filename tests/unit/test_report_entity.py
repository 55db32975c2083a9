"""Unit tests for the report entity."""

import pytest
from datetime import datetime
from uuid import uuid4

from src.water_lab.domain.entities.report import Report, ReportStatus


class TestReport:
    """Test cases for Report entity."""

    def test_create_report_defaults(self):
        """Test a new report is pending with matching timestamps."""
        report = Report(user_id=uuid4(), kecamatan="  Coblong ")

        assert report.status == ReportStatus.PENDING
        assert report.kecamatan == "Coblong"
        assert report.lokasi is None
        assert report.updated_at == report.created_at

    def test_user_id_must_be_uuid(self):
        """Test invalid user IDs are rejected."""
        with pytest.raises(ValueError, match="User ID"):
            Report(user_id="citizen-1", kecamatan="Coblong")

    def test_status_must_be_enum(self):
        """Test raw status strings are rejected."""
        with pytest.raises(ValueError, match="ReportStatus"):
            Report(user_id=uuid4(), kecamatan="Coblong", status="pending")

    def test_resolve_from_pending(self):
        """Test resolving sets selesai and the update time."""
        now = datetime(2026, 10, 2, 10, 0)
        report = Report(user_id=uuid4(), kecamatan="Coblong", created_at=datetime(2026, 10, 1))

        report.resolve(now)

        assert report.status == ReportStatus.SELESAI
        assert report.updated_at == now

    def test_resolve_again_keeps_selesai(self):
        """Test re-analysis of a resolved report."""
        report = Report(user_id=uuid4(), kecamatan="Coblong", status=ReportStatus.SELESAI)

        report.resolve()

        assert report.status == ReportStatus.SELESAI

    def test_rejected_report_cannot_be_resolved(self):
        """Test ditolak is terminal for the engine."""
        report = Report(user_id=uuid4(), kecamatan="Coblong", status=ReportStatus.DITOLAK)

        assert report.is_analysable() is False
        with pytest.raises(ValueError, match="rejected"):
            report.resolve()

    def test_in_area_is_case_insensitive(self):
        """Test kecamatan matching."""
        report = Report(user_id=uuid4(), kecamatan="Coblong")

        assert report.in_area("coblong")
        assert report.in_area(" COBLONG ")
        assert not report.in_area("Sukajadi")

    def test_equality_by_id(self):
        """Test reports compare by ID."""
        report_id = uuid4()
        first = Report(user_id=uuid4(), kecamatan="A", report_id=report_id)
        second = Report(user_id=uuid4(), kecamatan="B", report_id=report_id)

        assert first == second
        assert hash(first) == hash(second)
