"""SQLAlchemy repository implementations."""

from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import select, delete, update, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError

from src.water_lab.infrastructure.logging import (
    get_logger,
    log_database_operation
)

from src.water_lab.application.ports.repositories import LabResultRepository, ReportRepository, NotificationRepository
from src.water_lab.domain.entities.report import Report, ReportStatus
from src.water_lab.domain.exceptions import ConcurrentReplaceError, PersistenceError
from src.water_lab.domain.value_objects.notification import Notification
from src.water_lab.domain.value_objects.parameter_row import ParameterRow
from src.water_lab.domain.value_objects.parameter_types import ParameterType
from src.water_lab.domain.value_objects.safety_verdict import RowStatus
from src.water_lab.infrastructure.database.models import LabBatchModel, LabResultModel, NotificationModel, ReportModel

SCHEMA_VERSION = 1


def check_batch(report_id: UUID, rows: List[ParameterRow]) -> None:
    """Reject batches that would break the one-overall-row rule or mix reports.

    Raises:
        ValueError: If the batch is malformed
    """
    foreign = {row.report_id for row in rows if row.report_id != report_id}
    if foreign:
        raise ValueError(f"Batch for report {report_id} contains rows of other reports")
    overall_rows = sum(1 for row in rows if row.is_overall)
    if overall_rows != 1:
        raise ValueError(f"Batch must contain exactly one overall_safety row, got {overall_rows}")


class SQLAlchemyLabResultRepository(LabResultRepository):
    """SQLAlchemy implementation of the lab result store.

    ``replace`` runs inside the caller's session transaction: the delete,
    the insert and the header bump either all become visible on commit or
    are rolled back together.
    """

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def replace(
        self,
        report_id: UUID,
        rows: List[ParameterRow],
        expected_revision: Optional[int] = None
    ) -> int:
        """Replace every row of a report with a new batch and return the new revision.

        Raises:
            ValueError: If the batch is malformed
            ConcurrentReplaceError: If ``expected_revision`` is stale
            PersistenceError: If the delete or insert fails
        """
        check_batch(report_id, rows)

        header = await self._load_header(report_id)
        current_revision = header.revision if header else 0
        if expected_revision is not None and expected_revision != current_revision:
            self._logger.warning(
                "Lab batch revision conflict",
                extra={
                    "report_id": str(report_id),
                    "expected_revision": expected_revision,
                    "actual_revision": current_revision
                }
            )
            raise ConcurrentReplaceError(report_id, expected_revision, current_revision)

        try:
            deleted = await self._delete_rows(report_id)
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError(
                f"Failed to delete previous lab rows for report {report_id}: {e}",
                report_id=report_id,
                stage="delete",
                retryable=True
            ) from e

        new_revision = current_revision + 1
        try:
            await self._insert_rows(rows)
            if header is None:
                self._session.add(LabBatchModel(
                    report_id=report_id,
                    schema_version=SCHEMA_VERSION,
                    revision=new_revision,
                    updated_at=datetime.utcnow()
                ))
            else:
                header.schema_version = SCHEMA_VERSION
                header.revision = new_revision
                header.updated_at = datetime.utcnow()
            await self._session.flush()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError(
                f"Failed to insert lab rows for report {report_id}: {e}",
                report_id=report_id,
                stage="insert",
                retryable=True
            ) from e

        self._logger.info(
            "Lab batch replaced",
            extra={
                "report_id": str(report_id),
                "rows_deleted": deleted,
                "rows_inserted": len(rows),
                "revision": new_revision
            }
        )
        return new_revision

    async def find_by_report(self, report_id: UUID) -> List[ParameterRow]:
        """Find the live batch of a report."""
        grouped = await self.find_grouped([report_id])
        return grouped.get(report_id, [])

    async def find_grouped(self, report_ids: Iterable[UUID]) -> Dict[UUID, List[ParameterRow]]:
        """Find rows for the given reports grouped by report ID."""
        report_ids = list(dict.fromkeys(report_ids))
        if not report_ids:
            return {}

        log_database_operation(
            self._logger,
            "SELECT",
            "lab_results",
            report_count=len(report_ids)
        )

        stmt = select(LabResultModel).where(LabResultModel.report_id.in_(report_ids))
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read lab rows: {e}", stage="read", retryable=True) from e

        grouped: Dict[UUID, List[ParameterRow]] = defaultdict(list)
        for model in result.scalars().all():
            row = self._model_to_row(model)
            if row is not None:
                grouped[row.report_id].append(row)
        return dict(grouped)

    async def get_revision(self, report_id: UUID) -> Optional[int]:
        """Get the current batch revision of a report."""
        header = await self._load_header(report_id, lock=False)
        return header.revision if header else None

    async def delete_for_report(self, report_id: UUID) -> int:
        """Delete the batch of a report and its header."""
        try:
            deleted = await self._delete_rows(report_id)
            await self._session.execute(delete(LabBatchModel).where(LabBatchModel.report_id == report_id))
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError(
                f"Failed to delete lab rows for report {report_id}: {e}",
                report_id=report_id,
                stage="delete",
                retryable=True
            ) from e
        return deleted

    async def _load_header(self, report_id: UUID, lock: bool = True) -> Optional[LabBatchModel]:
        stmt = select(LabBatchModel).where(LabBatchModel.report_id == report_id)
        if lock:
            stmt = stmt.with_for_update()
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Failed to read lab batch header for report {report_id}: {e}",
                report_id=report_id,
                stage="read",
                retryable=True
            ) from e
        return result.scalar_one_or_none()

    async def _delete_rows(self, report_id: UUID) -> int:
        log_database_operation(
            self._logger,
            "DELETE",
            "lab_results",
            report_id=str(report_id)
        )
        result = await self._session.execute(
            delete(LabResultModel).where(LabResultModel.report_id == report_id)
        )
        return result.rowcount or 0

    async def _insert_rows(self, rows: List[ParameterRow]) -> None:
        log_database_operation(
            self._logger,
            "INSERT",
            "lab_results",
            row_count=len(rows)
        )
        self._session.add_all([self._row_to_model(row) for row in rows])
        await self._session.flush()

    def _row_to_model(self, row: ParameterRow) -> LabResultModel:
        """Convert parameter row to database model."""
        return LabResultModel(
            report_id=row.report_id,
            parameter=row.parameter.value,
            value=row.value,
            unit=row.unit,
            status=row.status.value,
            tested_at=row.tested_at,
            lab_officer=row.lab_officer,
            notes=row.notes,
            puskesmas_id=row.puskesmas_id
        )

    def _model_to_row(self, model: LabResultModel) -> Optional[ParameterRow]:
        """Convert database model to parameter row, skipping rows it cannot read.

        Older rows spell statuses ``safe`` / ``danger``; those are accepted.
        """
        try:
            return ParameterRow(
                report_id=model.report_id,
                parameter=ParameterType(model.parameter),
                value=model.value or "",
                unit=model.unit or "",
                status=RowStatus.parse(model.status),
                tested_at=model.tested_at,
                lab_officer=model.lab_officer,
                puskesmas_id=model.puskesmas_id,
                notes=model.notes or ""
            )
        except ValueError as e:
            self._logger.warning(
                "Skipping unreadable lab row",
                extra={"report_id": str(model.report_id), "parameter": model.parameter, "error": str(e)}
            )
            return None


class SQLAlchemyReportRepository(ReportRepository):
    """SQLAlchemy implementation of report repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, report: Report) -> Report:
        """Save a report to the database."""
        stmt = select(ReportModel).where(ReportModel.id == report.id)
        result = await self._session.execute(stmt)
        existing_report = result.scalar_one_or_none()

        if existing_report:
            existing_report.kecamatan = report.kecamatan
            existing_report.lokasi = report.lokasi
            existing_report.puskesmas_id = report.puskesmas_id
            existing_report.status = report.status
            existing_report.updated_at = report.updated_at
        else:
            self._session.add(ReportModel(
                id=report.id,
                user_id=report.user_id,
                puskesmas_id=report.puskesmas_id,
                kecamatan=report.kecamatan,
                lokasi=report.lokasi,
                status=report.status,
                created_at=report.created_at,
                updated_at=report.updated_at
            ))

        await self._session.flush()
        return report

    async def find_by_id(self, report_id: UUID) -> Optional[Report]:
        """Find report by ID."""
        stmt = select(ReportModel).where(ReportModel.id == report_id)
        result = await self._session.execute(stmt)
        report_model = result.scalar_one_or_none()

        if not report_model:
            return None

        return self._model_to_entity(report_model)

    async def find_by_area(self, kecamatan: str) -> List[Report]:
        """Find all reports in a kecamatan."""
        log_database_operation(
            self._logger,
            "SELECT",
            "reports",
            kecamatan=kecamatan
        )

        stmt = select(ReportModel).where(
            func.lower(ReportModel.kecamatan) == kecamatan.strip().lower()
        ).order_by(ReportModel.created_at.desc())

        result = await self._session.execute(stmt)
        return [self._model_to_entity(model) for model in result.scalars().all()]

    async def update_status(self, report_id: UUID, status: ReportStatus, updated_at: datetime) -> bool:
        """Update report status."""
        log_database_operation(
            self._logger,
            "UPDATE",
            "reports",
            report_id=str(report_id),
            status=status.value
        )

        stmt = update(ReportModel).where(ReportModel.id == report_id).values(
            status=status,
            updated_at=updated_at
        )
        try:
            result = await self._session.execute(stmt)
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError(
                f"Failed to update status of report {report_id}: {e}",
                report_id=report_id,
                stage="status_update",
                retryable=True
            ) from e
        return result.rowcount > 0

    def _model_to_entity(self, model: ReportModel) -> Report:
        """Convert database model to domain entity."""
        return Report(
            report_id=model.id,
            user_id=model.user_id,
            kecamatan=model.kecamatan,
            lokasi=model.lokasi,
            puskesmas_id=model.puskesmas_id,
            status=model.status,
            created_at=model.created_at,
            updated_at=model.updated_at
        )


class SQLAlchemyNotificationRepository(NotificationRepository):
    """SQLAlchemy implementation of notification repository."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._logger = get_logger(__name__)

    async def save(self, notification: Notification) -> Notification:
        """Persist a notification for delivery."""
        log_database_operation(
            self._logger,
            "INSERT",
            "notifications",
            user_id=str(notification.user_id),
            type=notification.type.value
        )

        self._session.add(NotificationModel(
            user_id=notification.user_id,
            puskesmas_id=notification.puskesmas_id,
            title=notification.title,
            message=notification.message,
            type=notification.type,
            is_read=notification.is_read,
            created_at=notification.created_at
        ))
        try:
            await self._session.flush()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise PersistenceError(
                f"Failed to save notification for user {notification.user_id}: {e}",
                stage="notification",
                retryable=True
            ) from e
        return notification
