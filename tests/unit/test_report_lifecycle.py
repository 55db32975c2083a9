"""Unit tests for report lifecycle finalization."""

import pytest
from datetime import datetime
from uuid import uuid4

from src.water_lab.application.services.report_lifecycle import ReportLifecycle, UNKNOWN_LOCATION
from src.water_lab.domain.entities.report import ReportStatus
from src.water_lab.domain.value_objects.notification import NotificationType
from src.water_lab.domain.value_objects.safety_verdict import SafetyLevel, SafetyVerdict

NOW = datetime(2026, 10, 15, 11, 0)


class TestReportLifecycle:
    """Test cases for ReportLifecycle."""

    def setup_method(self):
        """Set up test fixtures."""
        self.lifecycle = ReportLifecycle()

    @pytest.mark.parametrize("level,score,title_word,notification_type", [
        (SafetyLevel.SAFE, 100, "AMAN", NotificationType.INFO),
        (SafetyLevel.WARNING, 65, "WASPADA", NotificationType.WARNING),
        (SafetyLevel.DANGER, 35, "BAHAYA", NotificationType.URGENT),
    ])
    def test_finalize_resolves_and_notifies(self, make_report, level, score, title_word, notification_type):
        """Test every verdict resolves the report with a matching notification."""
        report = make_report(lokasi="Desa Sukamaju, RT 01")
        verdict = SafetyVerdict(safety_level=level, score=score)

        transition = self.lifecycle.finalize(report, verdict, now=NOW)

        assert transition.previous_status == ReportStatus.PENDING
        assert transition.new_status == ReportStatus.SELESAI
        assert report.status == ReportStatus.SELESAI
        assert report.updated_at == NOW

        notification = transition.notification
        assert notification.user_id == report.user_id
        assert title_word in notification.title
        assert notification.type == notification_type
        assert "Desa Sukamaju, RT 01" in notification.message
        assert notification.is_read is False
        assert notification.created_at == NOW

    def test_finalize_from_diproses(self, make_report):
        """Test processing reports are resolved too."""
        report = make_report(status=ReportStatus.DIPROSES)

        transition = self.lifecycle.finalize(report, SafetyVerdict(SafetyLevel.SAFE, 90), now=NOW)

        assert transition.previous_status == ReportStatus.DIPROSES
        assert transition.new_status == ReportStatus.SELESAI

    def test_missing_location_uses_fallback(self, make_report):
        """Test the message falls back when lokasi is empty."""
        report = make_report(lokasi=None)

        transition = self.lifecycle.finalize(report, SafetyVerdict(SafetyLevel.DANGER, 10), now=NOW)

        assert UNKNOWN_LOCATION in transition.notification.message

    def test_puskesmas_defaults_to_report(self, make_report):
        """Test the clinic ID falls back to the report's clinic."""
        report = make_report()
        explicit = uuid4()

        assert self.lifecycle.finalize(report, SafetyVerdict(SafetyLevel.SAFE, 100), now=NOW) \
            .notification.puskesmas_id == report.puskesmas_id
        assert self.lifecycle.finalize(report, SafetyVerdict(SafetyLevel.SAFE, 100), explicit, NOW) \
            .notification.puskesmas_id == explicit

    def test_rejected_report_raises(self, make_report):
        """Test rejected reports cannot be finalized."""
        report = make_report(status=ReportStatus.DITOLAK)

        with pytest.raises(ValueError, match="rejected"):
            self.lifecycle.finalize(report, SafetyVerdict(SafetyLevel.SAFE, 100), now=NOW)

        assert report.status == ReportStatus.DITOLAK
