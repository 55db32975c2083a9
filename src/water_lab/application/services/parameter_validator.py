"""Boundary validation for raw lab parameters."""

import math

from src.water_lab.domain.exceptions import ParameterValidationError
from src.water_lab.domain.value_objects.water_parameters import WaterParameters

NON_NEGATIVE_FIELDS = ("bacteria_count", "turbidity", "chlorine", "total_dissolved_solids")
BOOLEAN_FIELDS = ("heavy_metals", "e_coli_present")

PH_SCALE_MIN = 0.0
PH_SCALE_MAX = 14.0


class ParameterValidator:
    """Rejects out-of-contract parameters before they reach the scorer.

    The scorer itself never validates; anything that slips through is
    scored as given, so every entry point must call ``validate`` first.
    Missing (None) fields are allowed.
    """

    @staticmethod
    def validate(params: WaterParameters) -> WaterParameters:
        """Validate parameters and return them unchanged.

        Raises:
            ParameterValidationError: Naming the first offending field
        """
        if params.ph_level is not None:
            ParameterValidator._require_number("ph_level", params.ph_level)
            if not (PH_SCALE_MIN <= params.ph_level <= PH_SCALE_MAX):
                raise ParameterValidationError("ph_level", "must be between 0 and 14")

        for name in NON_NEGATIVE_FIELDS:
            value = getattr(params, name)
            if value is None:
                continue
            ParameterValidator._require_number(name, value)
            if value < 0:
                raise ParameterValidationError(name, "cannot be negative")

        for name in BOOLEAN_FIELDS:
            value = getattr(params, name)
            if value is not None and not isinstance(value, bool):
                raise ParameterValidationError(name, "must be true or false")

        return params

    @staticmethod
    def _require_number(name: str, value) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ParameterValidationError(name, "must be a number")
        if not math.isfinite(value):
            raise ParameterValidationError(name, "must be a finite number")
