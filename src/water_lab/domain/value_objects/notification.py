"""Notification value object."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID


class NotificationType(Enum):
    """Notification tone enumeration."""
    INFO = "info"
    WARNING = "warning"
    URGENT = "urgent"


@dataclass(frozen=True)
class Notification:
    """Immutable notification addressed to the citizen who filed a report."""

    user_id: UUID
    puskesmas_id: Optional[UUID]
    title: str
    message: str
    type: NotificationType
    created_at: datetime
    is_read: bool = False

    def __post_init__(self) -> None:
        """Validate notification data."""
        if not self.title or not self.title.strip():
            raise ValueError("Notification title cannot be empty")
        if not self.message or not self.message.strip():
            raise ValueError("Notification message cannot be empty")
        if not isinstance(self.type, NotificationType):
            raise ValueError("type must be a NotificationType enum")

    def to_payload(self) -> dict:
        """Convert to the payload accepted by the notification transport."""
        return {
            "user_id": str(self.user_id),
            "puskesmas_id": str(self.puskesmas_id) if self.puskesmas_id else None,
            "title": self.title,
            "message": self.message,
            "type": self.type.value,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat(),
        }
