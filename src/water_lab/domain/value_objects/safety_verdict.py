"""Safety verdict value object."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Tuple


class SafetyLevel(Enum):
    """Three-way water safety classification."""
    SAFE = "safe"
    WARNING = "warning"
    DANGER = "danger"

    @classmethod
    def from_score(cls, score: int) -> "SafetyLevel":
        """Classify a numeric score."""
        if score >= 80:
            return cls.SAFE
        elif score >= 60:
            return cls.WARNING
        else:
            return cls.DANGER

    def to_row_status(self) -> "RowStatus":
        """Translate to the status vocabulary used by stored rows."""
        return {
            SafetyLevel.SAFE: RowStatus.AMAN,
            SafetyLevel.WARNING: RowStatus.WARNING,
            SafetyLevel.DANGER: RowStatus.BAHAYA,
        }[self]


class RowStatus(Enum):
    """Status vocabulary persisted on parameter rows."""
    AMAN = "aman"
    WARNING = "warning"
    BAHAYA = "bahaya"

    def to_safety_level(self) -> SafetyLevel:
        """Inverse of ``SafetyLevel.to_row_status``."""
        return {
            RowStatus.AMAN: SafetyLevel.SAFE,
            RowStatus.WARNING: SafetyLevel.WARNING,
            RowStatus.BAHAYA: SafetyLevel.DANGER,
        }[self]

    @classmethod
    def parse(cls, raw: str) -> "RowStatus":
        """Parse a stored status, accepting the older English and numeric (1-3) spellings.

        Raises:
            ValueError: If the status is not recognised
        """
        normalized = (raw or "").strip().lower()
        aliases = {
            "aman": cls.AMAN,
            "safe": cls.AMAN,
            "1": cls.AMAN,
            "warning": cls.WARNING,
            "2": cls.WARNING,
            "bahaya": cls.BAHAYA,
            "danger": cls.BAHAYA,
            "3": cls.BAHAYA,
        }
        if normalized not in aliases:
            raise ValueError(f"Unknown row status: {raw!r}")
        return aliases[normalized]


@dataclass(frozen=True)
class SafetyVerdict:
    """Immutable value object representing the outcome of one analysis."""

    safety_level: SafetyLevel
    score: int
    issues: Tuple[str, ...] = ()
    computed_at: datetime = field(default_factory=datetime.utcnow, compare=False)

    def __post_init__(self) -> None:
        """Validate verdict data."""
        if not isinstance(self.safety_level, SafetyLevel):
            raise ValueError("safety_level must be a SafetyLevel enum")
        if not isinstance(self.score, int):
            raise ValueError("Score must be an integer")
        if not (0 <= self.score <= 100):
            raise ValueError("Score must be between 0 and 100 inclusive")

    @property
    def row_status(self) -> RowStatus:
        """Get the status stored on the overall_safety row."""
        return self.safety_level.to_row_status()
