"""Raw water parameters value object."""

from dataclasses import dataclass, fields, replace
from typing import Optional


@dataclass(frozen=True)
class WaterParameters:
    """Immutable value object holding the raw measurements of one sample.

    Every field is optional. ``None`` means the parameter was not measured;
    scoring resolves it to the baseline value in ``BASELINE_PARAMETERS``.
    """

    bacteria_count: Optional[float] = None
    ph_level: Optional[float] = None
    turbidity: Optional[float] = None
    chlorine: Optional[float] = None
    heavy_metals: Optional[bool] = None
    e_coli_present: Optional[bool] = None
    total_dissolved_solids: Optional[float] = None

    def resolved(self) -> "WaterParameters":
        """Return a copy with every missing field replaced by its baseline."""
        return replace(
            self,
            **{
                name: getattr(BASELINE_PARAMETERS, name)
                for name in self.missing_parameters()
            }
        )

    def missing_parameters(self) -> list[str]:
        """Get names of parameters that were not measured."""
        return [field.name for field in fields(self) if getattr(self, field.name) is None]

    def to_dict(self) -> dict:
        """Convert to a plain dictionary keyed by parameter name."""
        return {field.name: getattr(self, field.name) for field in fields(self)}


# Typical clean-water reading used for anything not measured
BASELINE_PARAMETERS = WaterParameters(
    bacteria_count=0,
    ph_level=7.0,
    turbidity=0,
    chlorine=0.2,
    heavy_metals=False,
    e_coli_present=False,
    total_dissolved_solids=150,
)
