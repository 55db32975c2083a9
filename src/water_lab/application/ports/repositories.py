"""Port interfaces for repositories (Dependency Inversion Principle)."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional, TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from src.water_lab.domain.entities.report import Report, ReportStatus
    from src.water_lab.domain.value_objects.notification import Notification
    from src.water_lab.domain.value_objects.parameter_row import ParameterRow


class LabResultRepository(ABC):
    """Port interface for the lab result store.

    A report has at most one live batch of parameter rows. ``replace``
    swaps the whole batch in one unit of work and bumps the batch revision.
    """

    @abstractmethod
    async def replace(
        self,
        report_id: UUID,
        rows: List["ParameterRow"],
        expected_revision: Optional[int] = None
    ) -> int:
        """Replace every row of a report with a new batch and return the new revision."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_report(self, report_id: UUID) -> List["ParameterRow"]:
        """Find the live batch of a report (unordered)."""
        raise NotImplementedError

    @abstractmethod
    async def find_grouped(self, report_ids: Iterable[UUID]) -> Dict[UUID, List["ParameterRow"]]:
        """Find rows for the given reports grouped by report ID."""
        raise NotImplementedError

    @abstractmethod
    async def get_revision(self, report_id: UUID) -> Optional[int]:
        """Get the current batch revision of a report, or None if never analysed."""
        raise NotImplementedError

    @abstractmethod
    async def delete_for_report(self, report_id: UUID) -> int:
        """Delete the batch of a report and return the number of rows removed."""
        raise NotImplementedError


class ReportRepository(ABC):
    """Port interface for the citizen report repository."""

    @abstractmethod
    async def save(self, report: "Report") -> "Report":
        """Save a report."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(self, report_id: UUID) -> Optional["Report"]:
        """Find report by ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_area(self, kecamatan: str) -> List["Report"]:
        """Find all reports in a kecamatan (ordered by created_at DESC)."""
        raise NotImplementedError

    @abstractmethod
    async def update_status(self, report_id: UUID, status: "ReportStatus", updated_at: datetime) -> bool:
        """Update report status."""
        raise NotImplementedError


class NotificationRepository(ABC):
    """Port interface for notification persistence."""

    @abstractmethod
    async def save(self, notification: "Notification") -> "Notification":
        """Persist a notification for delivery."""
        raise NotImplementedError
