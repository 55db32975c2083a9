"""Decoded lab analysis value object."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from .safety_verdict import SafetyVerdict
from .water_parameters import WaterParameters


@dataclass(frozen=True)
class LabAnalysis:
    """One report's analysis batch reconstructed from its parameter rows."""

    report_id: UUID
    parameters: WaterParameters
    verdict: SafetyVerdict
    tested_at: datetime
    lab_officer: UUID
    puskesmas_id: UUID
    notes: str = ""

    @property
    def safety_level(self):
        """Shortcut to the verdict's safety level."""
        return self.verdict.safety_level

    @property
    def score(self) -> int:
        """Shortcut to the verdict's score."""
        return self.verdict.score
