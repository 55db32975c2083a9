"""Report entity for citizen water-quality reports."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


class ReportStatus(Enum):
    """Report status enumeration."""
    PENDING = "pending"
    DIPROSES = "diproses"
    SELESAI = "selesai"
    DITOLAK = "ditolak"


class Report:
    """Report entity representing a citizen observation awaiting lab follow-up."""

    def __init__(
        self,
        user_id: UUID,
        kecamatan: str,
        lokasi: Optional[str] = None,
        puskesmas_id: Optional[UUID] = None,
        report_id: Optional[UUID] = None,
        status: ReportStatus = ReportStatus.PENDING,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None
    ):
        if not isinstance(user_id, UUID):
            raise ValueError("User ID must be a UUID")
        if not isinstance(status, ReportStatus):
            raise ValueError("Status must be a ReportStatus enum")

        self._id = report_id or uuid4()
        self._user_id = user_id
        self._kecamatan = (kecamatan or "").strip()
        self._lokasi = lokasi.strip() if lokasi else None
        self._puskesmas_id = puskesmas_id
        self._status = status
        self._created_at = created_at or datetime.utcnow()
        self._updated_at = updated_at or self._created_at

    @property
    def id(self) -> UUID:
        """Get report ID."""
        return self._id

    @property
    def user_id(self) -> UUID:
        """Get ID of the citizen who submitted the report."""
        return self._user_id

    @property
    def kecamatan(self) -> str:
        """Get the administrative area of the report."""
        return self._kecamatan

    @property
    def lokasi(self) -> Optional[str]:
        """Get the free-text location."""
        return self._lokasi

    @property
    def puskesmas_id(self) -> Optional[UUID]:
        """Get the responsible clinic ID."""
        return self._puskesmas_id

    @property
    def status(self) -> ReportStatus:
        """Get report status."""
        return self._status

    @property
    def created_at(self) -> datetime:
        """Get creation timestamp."""
        return self._created_at

    @property
    def updated_at(self) -> datetime:
        """Get last update timestamp."""
        return self._updated_at

    def resolve(self, now: Optional[datetime] = None) -> None:
        """Mark the report as analysed.

        Resolution means a lab analysis exists, not that the water is safe.
        Re-analysing a resolved report keeps it resolved.
        """
        if self._status == ReportStatus.DITOLAK:
            raise ValueError("Cannot resolve a rejected report")
        self._status = ReportStatus.SELESAI
        self._updated_at = now or datetime.utcnow()

    def is_analysable(self) -> bool:
        """Check if a lab analysis may be recorded for this report."""
        return self._status != ReportStatus.DITOLAK

    def in_area(self, kecamatan: str) -> bool:
        """Check if the report belongs to the given kecamatan."""
        return self._kecamatan.casefold() == (kecamatan or "").strip().casefold()

    def __eq__(self, other: object) -> bool:
        """Check equality based on report ID."""
        if not isinstance(other, Report):
            return False
        return self._id == other._id

    def __hash__(self) -> int:
        """Hash based on report ID."""
        return hash(self._id)

    def __str__(self) -> str:
        """String representation."""
        return f"Report({self._id}, {self._kecamatan}, {self._status.value})"
