"""Lab parameter types enumeration."""

from enum import Enum


class ParameterType(Enum):
    """Enumeration of persisted lab parameter names."""

    BACTERIA_COUNT = "bacteria_count"
    PH_LEVEL = "ph_level"
    TURBIDITY = "turbidity"
    CHLORINE = "chlorine"
    TOTAL_DISSOLVED_SOLIDS = "total_dissolved_solids"
    HEAVY_METALS = "heavy_metals"
    E_COLI_PRESENT = "e_coli_present"
    OVERALL_SAFETY = "overall_safety"

    @property
    def unit(self) -> str:
        """Get the unit stored alongside this parameter."""
        units = {
            ParameterType.BACTERIA_COUNT: "CFU/mL",
            ParameterType.PH_LEVEL: "pH",
            ParameterType.TURBIDITY: "NTU",
            ParameterType.CHLORINE: "mg/L",
            ParameterType.TOTAL_DISSOLVED_SOLIDS: "mg/L",
            ParameterType.HEAVY_METALS: "boolean",
            ParameterType.E_COLI_PRESENT: "boolean",
            ParameterType.OVERALL_SAFETY: "score",
        }
        return units[self]

    @property
    def is_boolean(self) -> bool:
        """Check if the parameter is stored as a '1'/'0' flag."""
        return self in (ParameterType.HEAVY_METALS, ParameterType.E_COLI_PRESENT)

    @classmethod
    def measured(cls) -> list["ParameterType"]:
        """Get the seven measured parameters in persistence order."""
        return [parameter for parameter in cls if parameter is not cls.OVERALL_SAFETY]
