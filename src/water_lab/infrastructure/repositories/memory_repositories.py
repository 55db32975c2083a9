"""In-memory repository implementations for testing and development."""

import copy
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from src.water_lab.application.ports.repositories import LabResultRepository, NotificationRepository, ReportRepository
from src.water_lab.domain.entities.report import Report, ReportStatus
from src.water_lab.domain.exceptions import ConcurrentReplaceError
from src.water_lab.domain.value_objects.notification import Notification
from src.water_lab.domain.value_objects.parameter_row import ParameterRow
from src.water_lab.infrastructure.repositories.sql_repositories import check_batch


class InMemoryLabResultRepository(LabResultRepository):
    """In-memory implementation of the lab result store.

    A batch is swapped with a single dict assignment, so readers never see
    a half-replaced batch.
    """

    def __init__(self):
        self._batches: Dict[UUID, List[ParameterRow]] = {}
        self._revisions: Dict[UUID, int] = {}

    async def replace(
        self,
        report_id: UUID,
        rows: List[ParameterRow],
        expected_revision: Optional[int] = None
    ) -> int:
        """Replace every row of a report with a new batch."""
        check_batch(report_id, rows)

        current_revision = self._revisions.get(report_id, 0)
        if expected_revision is not None and expected_revision != current_revision:
            raise ConcurrentReplaceError(report_id, expected_revision, current_revision)

        self._batches[report_id] = list(rows)
        self._revisions[report_id] = current_revision + 1
        return self._revisions[report_id]

    async def find_by_report(self, report_id: UUID) -> List[ParameterRow]:
        """Find the live batch of a report."""
        return list(self._batches.get(report_id, []))

    async def find_grouped(self, report_ids: Iterable[UUID]) -> Dict[UUID, List[ParameterRow]]:
        """Find rows for the given reports grouped by report ID."""
        return {
            report_id: list(self._batches[report_id])
            for report_id in report_ids
            if report_id in self._batches
        }

    async def get_revision(self, report_id: UUID) -> Optional[int]:
        """Get the current batch revision of a report."""
        return self._revisions.get(report_id)

    async def delete_for_report(self, report_id: UUID) -> int:
        """Delete the batch of a report."""
        self._revisions.pop(report_id, None)
        return len(self._batches.pop(report_id, []))

    def row_count(self, report_id: UUID) -> int:
        """Get the number of stored rows for a report."""
        return len(self._batches.get(report_id, []))


class InMemoryReportRepository(ReportRepository):
    """In-memory implementation of report repository.

    Reports are handed out as copies so that entity changes only persist
    through ``save`` or ``update_status``.
    """

    def __init__(self, reports: Optional[Iterable[Report]] = None):
        self._reports: Dict[UUID, Report] = {}
        for report in reports or []:
            self._reports[report.id] = copy.copy(report)

    async def save(self, report: Report) -> Report:
        """Save a report."""
        self._reports[report.id] = copy.copy(report)
        return report

    async def find_by_id(self, report_id: UUID) -> Optional[Report]:
        """Find report by ID."""
        report = self._reports.get(report_id)
        return copy.copy(report) if report else None

    async def find_by_area(self, kecamatan: str) -> List[Report]:
        """Find all reports in a kecamatan."""
        matches = [copy.copy(report) for report in self._reports.values() if report.in_area(kecamatan)]
        return sorted(matches, key=lambda report: report.created_at, reverse=True)

    async def update_status(self, report_id: UUID, status: ReportStatus, updated_at: datetime) -> bool:
        """Update report status."""
        report = self._reports.get(report_id)
        if not report:
            return False

        self._reports[report_id] = Report(
            report_id=report.id,
            user_id=report.user_id,
            kecamatan=report.kecamatan,
            lokasi=report.lokasi,
            puskesmas_id=report.puskesmas_id,
            status=status,
            created_at=report.created_at,
            updated_at=updated_at
        )
        return True


class InMemoryNotificationRepository(NotificationRepository):
    """In-memory implementation of notification repository."""

    def __init__(self):
        self._notifications: List[Notification] = []

    async def save(self, notification: Notification) -> Notification:
        """Persist a notification for delivery."""
        self._notifications.append(notification)
        return notification

    def find_by_user(self, user_id: UUID) -> List[Notification]:
        """Get the notifications addressed to a user."""
        return [notification for notification in self._notifications if notification.user_id == user_id]
