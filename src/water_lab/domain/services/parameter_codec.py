"""Conversion between lab analyses and narrow parameter rows."""

import logging
import math
from datetime import datetime
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from ..value_objects.lab_analysis import LabAnalysis
from ..value_objects.parameter_row import ParameterRow
from ..value_objects.parameter_types import ParameterType
from ..value_objects.safety_verdict import RowStatus, SafetyVerdict
from ..value_objects.water_parameters import WaterParameters
from .safety_scorer import (
    BACTERIA_DANGER_LIMIT,
    BACTERIA_SAFE_LIMIT,
    CHLORINE_MAX,
    CHLORINE_MIN,
    PH_MAX,
    PH_MIN,
    TDS_LIMIT,
    TURBIDITY_LIMIT,
    SafetyScorer,
)

logger = logging.getLogger(__name__)

# Marks a parameter row whose value is the baseline, not a measurement
NOT_MEASURED_NOTE = "not measured"

ROWS_PER_BATCH = len(ParameterType)

# Whole numbers up to 15 digits are written out in full
PLAIN_INTEGER_LIMIT = 10 ** 15


def format_value(value: float) -> str:
    """Format a measurement at full precision, without a trailing '.0' for whole numbers.

    Whole numbers beyond ``PLAIN_INTEGER_LIMIT`` keep float notation
    (``1e+60``) so the text always fits the value column.
    """
    number = float(value)
    if number.is_integer() and abs(number) < PLAIN_INTEGER_LIMIT:
        return str(int(number))
    return repr(number)


class ParameterRowCodec:
    """Encodes an analysis into eight parameter rows and decodes it back.

    Rows are the storage and wire format shared with exports and
    dashboards. Each measured parameter gets its own row with a row-local
    informational status, followed by one ``overall_safety`` row that
    carries the score, the aggregate status and the technician notes.
    """

    def __init__(self, scorer: Optional[SafetyScorer] = None):
        self._scorer = scorer or SafetyScorer()

    def encode(
        self,
        report_id: UUID,
        params: WaterParameters,
        verdict: SafetyVerdict,
        officer_id: UUID,
        puskesmas_id: UUID,
        notes: str = "",
        now: Optional[datetime] = None
    ) -> List[ParameterRow]:
        """Encode one analysis as a batch of rows sharing ``tested_at``."""
        tested_at = now or datetime.utcnow()
        values = params.resolved()
        missing = set(params.missing_parameters())

        rows = []
        for parameter in ParameterType.measured():
            value = getattr(values, parameter.value)
            rows.append(
                ParameterRow(
                    report_id=report_id,
                    parameter=parameter,
                    value=self._encode_value(parameter, value),
                    unit=parameter.unit,
                    status=self.row_status(parameter, value),
                    tested_at=tested_at,
                    lab_officer=officer_id,
                    puskesmas_id=puskesmas_id,
                    notes=NOT_MEASURED_NOTE if parameter.value in missing else ""
                )
            )

        rows.append(
            ParameterRow(
                report_id=report_id,
                parameter=ParameterType.OVERALL_SAFETY,
                value=str(verdict.score),
                unit=ParameterType.OVERALL_SAFETY.unit,
                status=verdict.row_status,
                tested_at=tested_at,
                lab_officer=officer_id,
                puskesmas_id=puskesmas_id,
                notes=(notes or "").strip()
            )
        )
        return rows

    def decode(self, rows: Iterable[ParameterRow]) -> Optional[LabAnalysis]:
        """Rebuild an analysis from one report's rows.

        Returns None when the batch has no ``overall_safety`` row; a verdict
        is never synthesized from partial rows.

        Raises:
            ValueError: If the rows belong to more than one report
        """
        rows = list(rows)
        if not rows:
            return None

        report_ids = {row.report_id for row in rows}
        if len(report_ids) > 1:
            raise ValueError("Cannot decode rows belonging to more than one report")

        overall: Optional[ParameterRow] = None
        by_parameter: Dict[ParameterType, ParameterRow] = {}
        for row in rows:
            if row.is_overall:
                if overall is not None and overall.tested_at >= row.tested_at:
                    continue
                overall = row
            else:
                by_parameter[row.parameter] = row

        if overall is None:
            return None

        params = WaterParameters(
            **{
                parameter.value: self._decode_value(by_parameter.get(parameter))
                for parameter in ParameterType.measured()
            }
        )
        recomputed = self._scorer.score(params, computed_at=overall.tested_at)

        score = self._decode_score(overall.value)
        if score is None:
            # Older batches stored the level name instead of the score
            score = recomputed.score

        verdict = SafetyVerdict(
            safety_level=overall.status.to_safety_level(),
            score=score,
            issues=recomputed.issues,
            computed_at=overall.tested_at
        )

        return LabAnalysis(
            report_id=overall.report_id,
            parameters=params,
            verdict=verdict,
            tested_at=overall.tested_at,
            lab_officer=overall.lab_officer,
            puskesmas_id=overall.puskesmas_id,
            notes=overall.notes
        )

    @staticmethod
    def row_status(parameter: ParameterType, value) -> RowStatus:
        """Row-local informational status for a single measured value."""
        if parameter is ParameterType.BACTERIA_COUNT:
            if value > BACTERIA_DANGER_LIMIT:
                return RowStatus.BAHAYA
            if value > BACTERIA_SAFE_LIMIT:
                return RowStatus.WARNING
            return RowStatus.AMAN
        if parameter is ParameterType.PH_LEVEL:
            return RowStatus.WARNING if value < PH_MIN or value > PH_MAX else RowStatus.AMAN
        if parameter is ParameterType.TURBIDITY:
            return RowStatus.WARNING if value > TURBIDITY_LIMIT else RowStatus.AMAN
        if parameter is ParameterType.CHLORINE:
            return RowStatus.WARNING if value < CHLORINE_MIN or value > CHLORINE_MAX else RowStatus.AMAN
        if parameter is ParameterType.TOTAL_DISSOLVED_SOLIDS:
            return RowStatus.WARNING if value > TDS_LIMIT else RowStatus.AMAN
        if parameter.is_boolean:
            return RowStatus.BAHAYA if value else RowStatus.AMAN
        raise ValueError(f"No row status rule for parameter {parameter.value}")

    @staticmethod
    def _encode_value(parameter: ParameterType, value) -> str:
        if parameter.is_boolean:
            return "1" if value else "0"
        return format_value(value)

    @staticmethod
    def _decode_value(row: Optional[ParameterRow]):
        if row is None or row.notes == NOT_MEASURED_NOTE:
            return None

        raw = row.value.strip().lower()
        if row.parameter.is_boolean:
            if raw in ("1", "true"):
                return True
            if raw in ("0", "false"):
                return False
            logger.debug(
                "Unreadable boolean lab value",
                extra={"report_id": str(row.report_id), "parameter": row.parameter.value, "value": row.value}
            )
            return None

        try:
            number = float(raw)
        except ValueError:
            logger.debug(
                "Unreadable numeric lab value",
                extra={"report_id": str(row.report_id), "parameter": row.parameter.value, "value": row.value}
            )
            return None
        return number if math.isfinite(number) else None

    @staticmethod
    def _decode_score(raw: str) -> Optional[int]:
        try:
            number = float(raw)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(number):
            return None
        return max(0, min(100, int(round(number))))
