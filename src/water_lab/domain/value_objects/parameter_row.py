"""Parameter row value object."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from .parameter_types import ParameterType
from .safety_verdict import RowStatus


@dataclass(frozen=True)
class ParameterRow:
    """One persisted (parameter, value) fact belonging to an analysis batch.

    Field names match the ``lab_results`` table consumed by exports and
    dashboards and must not be renamed.
    """

    report_id: UUID
    parameter: ParameterType
    value: str
    unit: str
    status: RowStatus
    tested_at: datetime
    lab_officer: UUID
    puskesmas_id: UUID
    notes: str = ""

    def __post_init__(self) -> None:
        """Validate row data."""
        if not isinstance(self.parameter, ParameterType):
            raise ValueError("parameter must be a ParameterType enum")
        if not isinstance(self.status, RowStatus):
            raise ValueError("status must be a RowStatus enum")
        if not isinstance(self.value, str):
            raise ValueError("value must be string-encoded")

    @property
    def is_overall(self) -> bool:
        """Check if this is the synthetic overall_safety row."""
        return self.parameter is ParameterType.OVERALL_SAFETY
