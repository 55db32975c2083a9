"""SQLAlchemy database models."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Text, Uuid, Enum as SQLEnum
from sqlalchemy.orm import declarative_base

from src.water_lab.domain.entities.report import ReportStatus
from src.water_lab.domain.value_objects.notification import NotificationType

Base = declarative_base()


class ReportModel(Base):
    """SQLAlchemy model for citizen reports."""

    __tablename__ = "reports"

    # Primary key
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    # Submitter and routing
    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    puskesmas_id = Column(Uuid(as_uuid=True), nullable=True, index=True)

    # Location
    kecamatan = Column(String(100), nullable=False, index=True)
    lokasi = Column(Text, nullable=True)

    status = Column(SQLEnum(ReportStatus, values_callable=lambda obj: [e.value for e in obj]), nullable=False, default=ReportStatus.PENDING)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<ReportModel(id={self.id}, kecamatan='{self.kecamatan}', status='{self.status}')>"


class LabResultModel(Base):
    """SQLAlchemy model for lab parameter rows.

    Columns keep the string-encoded shape read by exports and dashboards:
    ``parameter``, ``status`` and ``value`` are plain strings.
    """

    __tablename__ = "lab_results"

    # Primary key
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    report_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    parameter = Column(String(50), nullable=False)
    value = Column(String(50), nullable=False)
    unit = Column(String(20), nullable=False, default="")
    status = Column(String(20), nullable=False)
    tested_at = Column(DateTime, nullable=False)
    lab_officer = Column(Uuid(as_uuid=True), nullable=False)
    notes = Column(Text, nullable=False, default="")
    puskesmas_id = Column(Uuid(as_uuid=True), nullable=False)

    def __repr__(self) -> str:
        return f"<LabResultModel(report_id={self.report_id}, parameter='{self.parameter}', value='{self.value}')>"


class LabBatchModel(Base):
    """SQLAlchemy model for the per-report batch header.

    One row per analysed report; ``revision`` increases on every replace.
    """

    __tablename__ = "lab_batches"

    report_id = Column(Uuid(as_uuid=True), primary_key=True)
    schema_version = Column(Integer, nullable=False, default=1)
    revision = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<LabBatchModel(report_id={self.report_id}, revision={self.revision})>"


class NotificationModel(Base):
    """SQLAlchemy model for citizen notifications."""

    __tablename__ = "notifications"

    # Primary key
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)

    user_id = Column(Uuid(as_uuid=True), nullable=False, index=True)
    puskesmas_id = Column(Uuid(as_uuid=True), nullable=True)

    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(SQLEnum(NotificationType, values_callable=lambda obj: [e.value for e in obj]), nullable=False, default=NotificationType.INFO)
    is_read = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def __repr__(self) -> str:
        return f"<NotificationModel(id={self.id}, user_id={self.user_id}, type='{self.type}')>"
