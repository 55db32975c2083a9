"""Deterministic water safety scoring."""

from datetime import datetime
from typing import List, Optional

from ..value_objects.safety_verdict import SafetyLevel, SafetyVerdict
from ..value_objects.water_parameters import WaterParameters

MAX_SCORE = 100

# Bacteria colony count (CFU/mL)
BACTERIA_SAFE_LIMIT = 100
BACTERIA_DANGER_LIMIT = 1000

# pH acceptable band
PH_MIN = 6.5
PH_MAX = 8.5

# Turbidity (NTU)
TURBIDITY_LIMIT = 5

# Residual chlorine band (mg/L)
CHLORINE_MIN = 0.2
CHLORINE_MAX = 0.5

# Total dissolved solids (mg/L)
TDS_LIMIT = 500

ISSUE_BACTERIA_VERY_HIGH = "bacteria very high"
ISSUE_BACTERIA_ABOVE_LIMIT = "bacteria above safe limit"
ISSUE_ABNORMAL_PH = "abnormal pH"
ISSUE_TOO_TURBID = "too turbid"
ISSUE_LOW_CHLORINE = "insufficient disinfectant"
ISSUE_HIGH_CHLORINE = "excess disinfectant"
ISSUE_HEAVY_METALS = "heavy metals detected"
ISSUE_E_COLI = "fecal contamination (E. coli)"
ISSUE_HIGH_TDS = "dissolved solids too high"


class SafetyScorer:
    """Turns raw lab parameters into a safety verdict.

    Scoring starts at 100 and subtracts a fixed deduction for every rule
    that fires. Bacteria and chlorine each trigger at most one of their two
    bands; every other rule is independent. Issues are reported in rule
    order so identical inputs always produce identical verdicts.
    """

    def score(self, params: WaterParameters, computed_at: Optional[datetime] = None) -> SafetyVerdict:
        """Score a sample. Missing parameters are scored at their baseline."""
        values = params.resolved()
        issues: List[str] = []
        total = MAX_SCORE

        if values.bacteria_count > BACTERIA_DANGER_LIMIT:
            issues.append(ISSUE_BACTERIA_VERY_HIGH)
            total -= 40
        elif values.bacteria_count > BACTERIA_SAFE_LIMIT:
            issues.append(ISSUE_BACTERIA_ABOVE_LIMIT)
            total -= 20

        if values.ph_level < PH_MIN or values.ph_level > PH_MAX:
            issues.append(ISSUE_ABNORMAL_PH)
            total -= 15

        if values.turbidity > TURBIDITY_LIMIT:
            issues.append(ISSUE_TOO_TURBID)
            total -= 10

        if values.chlorine < CHLORINE_MIN:
            issues.append(ISSUE_LOW_CHLORINE)
            total -= 10
        elif values.chlorine > CHLORINE_MAX:
            issues.append(ISSUE_HIGH_CHLORINE)
            total -= 5

        if values.heavy_metals:
            issues.append(ISSUE_HEAVY_METALS)
            total -= 30

        if values.e_coli_present:
            issues.append(ISSUE_E_COLI)
            total -= 25

        if values.total_dissolved_solids > TDS_LIMIT:
            issues.append(ISSUE_HIGH_TDS)
            total -= 10

        total = max(0, min(MAX_SCORE, total))

        return SafetyVerdict(
            safety_level=SafetyLevel.from_score(total),
            score=total,
            issues=tuple(issues),
            computed_at=computed_at or datetime.utcnow()
        )

    @staticmethod
    def classify(score: int) -> SafetyLevel:
        """Classify a numeric score into a safety level."""
        return SafetyLevel.from_score(score)
