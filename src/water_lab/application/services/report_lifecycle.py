"""Report lifecycle transitions driven by a completed lab analysis."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from src.water_lab.domain.entities.report import Report, ReportStatus
from src.water_lab.domain.value_objects.notification import Notification, NotificationType
from src.water_lab.domain.value_objects.safety_verdict import SafetyLevel, SafetyVerdict

UNKNOWN_LOCATION = "lokasi tidak diketahui"

NOTIFICATION_TITLES = {
    SafetyLevel.SAFE: "Hasil Analisis: Air AMAN",
    SafetyLevel.WARNING: "Hasil Analisis: Air WASPADA",
    SafetyLevel.DANGER: "Hasil Analisis: Air BAHAYA",
}

NOTIFICATION_MESSAGES = {
    SafetyLevel.SAFE: (
        "Hasil analisis laboratorium untuk laporan air di {location} menunjukkan kondisi AMAN "
        "untuk dikonsumsi. Namun tetap jaga kebersihan sumber air Anda."
    ),
    SafetyLevel.WARNING: (
        "Hasil analisis laboratorium untuk laporan air di {location} menunjukkan kondisi WASPADA. "
        "Beberapa parameter tidak memenuhi standar. Harap berhati-hati dan pertimbangkan "
        "pengolahan tambahan."
    ),
    SafetyLevel.DANGER: (
        "Hasil analisis laboratorium untuk laporan air di {location} menunjukkan kondisi BAHAYA! "
        "Air tidak aman untuk dikonsumsi. Segera hentikan penggunaan dan hubungi puskesmas "
        "untuk penanganan lebih lanjut."
    ),
}

NOTIFICATION_TYPES = {
    SafetyLevel.SAFE: NotificationType.INFO,
    SafetyLevel.WARNING: NotificationType.WARNING,
    SafetyLevel.DANGER: NotificationType.URGENT,
}


@dataclass(frozen=True)
class LifecycleTransition:
    """Result of finalizing a report after analysis."""
    report_id: UUID
    previous_status: ReportStatus
    new_status: ReportStatus
    notification: Notification


class ReportLifecycle:
    """Moves an analysed report to ``selesai`` and drafts the citizen notification.

    Every verdict resolves the report, including ``danger``: resolved means
    a lab analysis exists, not that the problem is fixed.
    """

    def finalize(
        self,
        report: Report,
        verdict: SafetyVerdict,
        puskesmas_id: Optional[UUID] = None,
        now: Optional[datetime] = None
    ) -> LifecycleTransition:
        """Resolve the report in place and build its notification.

        Raises:
            ValueError: If the report was rejected
        """
        timestamp = now or datetime.utcnow()
        previous_status = report.status
        report.resolve(timestamp)

        return LifecycleTransition(
            report_id=report.id,
            previous_status=previous_status,
            new_status=report.status,
            notification=self.build_notification(
                report,
                verdict,
                puskesmas_id or report.puskesmas_id,
                timestamp
            )
        )

    @staticmethod
    def build_notification(
        report: Report,
        verdict: SafetyVerdict,
        puskesmas_id: Optional[UUID],
        created_at: datetime
    ) -> Notification:
        """Build the notification addressed to the report's submitter."""
        level = verdict.safety_level
        return Notification(
            user_id=report.user_id,
            puskesmas_id=puskesmas_id,
            title=NOTIFICATION_TITLES[level],
            message=NOTIFICATION_MESSAGES[level].format(location=report.lokasi or UNKNOWN_LOCATION),
            type=NOTIFICATION_TYPES[level],
            created_at=created_at,
            is_read=False
        )
