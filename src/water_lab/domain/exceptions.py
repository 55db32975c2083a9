"""Domain and persistence error types."""

from typing import Optional
from uuid import UUID


class ParameterValidationError(ValueError):
    """Raised when a raw lab parameter is outside its accepted range."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field
        self.message = message


class ReportNotFoundError(LookupError):
    """Raised when a referenced report does not exist."""

    def __init__(self, report_id: UUID):
        super().__init__(f"Report with ID {report_id} not found")
        self.report_id = report_id


class PersistenceError(RuntimeError):
    """Raised when the lab result store fails to read or write a batch.

    ``stage`` names the step that failed (``delete``, ``insert``, ``read``)
    and ``retryable`` tells the caller whether repeating the call is safe.
    """

    def __init__(
        self,
        message: str,
        report_id: Optional[UUID] = None,
        stage: str = "unknown",
        retryable: bool = True
    ):
        super().__init__(message)
        self.report_id = report_id
        self.stage = stage
        self.retryable = retryable


class ConcurrentReplaceError(PersistenceError):
    """Raised when a batch was replaced by someone else since it was read."""

    STAGE = "revision_check"

    def __init__(self, report_id: UUID, expected_revision: int, actual_revision: Optional[int]):
        super().__init__(
            f"Lab batch for report {report_id} is at revision {actual_revision}, "
            f"expected {expected_revision}",
            report_id=report_id,
            stage=self.STAGE,
            retryable=True
        )
        self.expected_revision = expected_revision
        self.actual_revision = actual_revision
