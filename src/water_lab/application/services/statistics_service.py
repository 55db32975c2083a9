"""Area-wide water quality statistics built from decoded lab batches."""

import calendar
import logging
import math
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, TYPE_CHECKING
from uuid import UUID

from src.water_lab.domain.entities.report import Report, ReportStatus
from src.water_lab.domain.exceptions import PersistenceError
from src.water_lab.domain.services.parameter_codec import ParameterRowCodec
from src.water_lab.domain.value_objects.parameter_row import ParameterRow
from src.water_lab.domain.value_objects.safety_verdict import SafetyLevel
from src.water_lab.infrastructure.logging import get_logger, log_with_extra

if TYPE_CHECKING:
    from src.water_lab.application.ports.repositories import LabResultRepository, ReportRepository

UNKNOWN_AREA = "Lokasi tidak diketahui"
TREND_DAYS = 7
PROBLEM_AREA_LIMIT = 5

# Short weekday labels indexed by date.weekday()
WEEKDAY_LABELS = ("Sen", "Sel", "Rab", "Kam", "Jum", "Sab", "Min")


def percentage(count: int, total: int) -> int:
    """Whole-number percentage rounded half up (12.5 -> 13)."""
    if total <= 0:
        return 0
    return (count * 200 + total) // (2 * total)


def _subtract_months(moment: datetime, months: int) -> datetime:
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class TimeRange(Enum):
    """Dashboard time range selector."""
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


@dataclass(frozen=True)
class TimeWindow:
    """Inclusive creation-time window for reports."""
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        """Validate window bounds."""
        if self.start > self.end:
            raise ValueError("Window start must not be after its end")

    def contains(self, moment: Optional[datetime]) -> bool:
        """Check if a timestamp falls inside the window."""
        return moment is not None and self.start <= moment <= self.end

    @classmethod
    def for_range(cls, time_range: TimeRange, now: datetime) -> "TimeWindow":
        """Build the trailing window ending at ``now``."""
        if time_range == TimeRange.WEEK:
            start = now - timedelta(days=7)
        elif time_range == TimeRange.MONTH:
            start = _subtract_months(now, 1)
        elif time_range == TimeRange.QUARTER:
            start = _subtract_months(now, 3)
        elif time_range == TimeRange.YEAR:
            start = _subtract_months(now, 12)
        else:
            raise ValueError(f"Unsupported time range: {time_range}")
        return cls(start=start, end=now)


@dataclass(frozen=True)
class WaterQualityStats:
    """Share of decodable analyses per safety level."""
    good_pct: int = 0
    warning_pct: int = 0
    danger_pct: int = 0
    total: int = 0

    @property
    def poor_pct(self) -> int:
        """Warning and danger shares combined."""
        return self.warning_pct + self.danger_pct


@dataclass(frozen=True)
class TrendPoint:
    """Number of reports created on one calendar day."""
    day: date
    label: str
    count: int


@dataclass(frozen=True)
class ProblemArea:
    """Location prefix with its report count."""
    area: str
    reports: int
    kecamatan: str


@dataclass(frozen=True)
class StatusBreakdown:
    """Report counts per lifecycle status."""
    total: int = 0
    pending: int = 0
    diproses: int = 0
    selesai: int = 0
    ditolak: int = 0


@dataclass(frozen=True)
class DashboardStatistics:
    """Everything the kecamatan statistics dashboard shows."""
    kecamatan: str
    window: TimeWindow
    status: StatusBreakdown
    average_response_days: float
    water_quality: WaterQualityStats
    trend: List[TrendPoint]
    problem_areas: List[ProblemArea]
    warnings: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def total_lab_tests(self) -> int:
        """Number of reports with a decodable analysis."""
        return self.water_quality.total


class StatisticsAggregator:
    """Pure rollups over reports and their grouped parameter rows."""

    def __init__(self, codec: Optional[ParameterRowCodec] = None):
        self._codec = codec or ParameterRowCodec()
        self._logger = get_logger(__name__)

    def aggregate(
        self,
        reports: Iterable[Report],
        rows_by_report: Mapping[UUID, Sequence[ParameterRow]],
        window: TimeWindow,
        area: str
    ) -> WaterQualityStats:
        """Percentages of safe / warning / danger analyses in an area and window.

        Reports without a decodable analysis are left out of the
        denominator. Each bucket is rounded on its own, so the three
        percentages need not sum to 100.
        """
        counts = {level: 0 for level in SafetyLevel}

        for report in reports:
            if not report.in_area(area) or not window.contains(report.created_at):
                continue
            level = self._decoded_level(report.id, rows_by_report.get(report.id))
            if level is not None:
                counts[level] += 1

        total = sum(counts.values())
        return WaterQualityStats(
            good_pct=percentage(counts[SafetyLevel.SAFE], total),
            warning_pct=percentage(counts[SafetyLevel.WARNING], total),
            danger_pct=percentage(counts[SafetyLevel.DANGER], total),
            total=total
        )

    @staticmethod
    def report_trend(reports: Iterable[Report], today: date, days: int = TREND_DAYS) -> List[TrendPoint]:
        """Daily report counts over the trailing ``days`` days, oldest first."""
        reports = list(reports)
        trend = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            start_of_day = datetime.combine(day, time.min)
            end_of_day = datetime.combine(day, time.max)
            count = sum(
                1 for report in reports
                if report.created_at is not None and start_of_day <= report.created_at <= end_of_day
            )
            trend.append(TrendPoint(day=day, label=WEEKDAY_LABELS[day.weekday()], count=count))
        return trend

    @staticmethod
    def problem_areas(reports: Iterable[Report], limit: int = PROBLEM_AREA_LIMIT) -> List[ProblemArea]:
        """Most reported location prefixes (text before the first comma).

        Ties keep the order in which the areas were first seen.
        """
        counts: Dict[str, int] = {}
        kecamatan_by_area: Dict[str, str] = {}

        for report in reports:
            if not report.lokasi:
                continue
            area = report.lokasi.split(",", 1)[0].strip() or UNKNOWN_AREA
            if area not in counts:
                counts[area] = 0
                kecamatan_by_area[area] = report.kecamatan
            counts[area] += 1

        ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
        return [
            ProblemArea(area=area, reports=count, kecamatan=kecamatan_by_area[area])
            for area, count in ranked[:limit]
        ]

    @staticmethod
    def status_breakdown(reports: Iterable[Report]) -> StatusBreakdown:
        """Count reports per status."""
        reports = list(reports)
        by_status = {status: 0 for status in ReportStatus}
        for report in reports:
            by_status[report.status] += 1
        return StatusBreakdown(
            total=len(reports),
            pending=by_status[ReportStatus.PENDING],
            diproses=by_status[ReportStatus.DIPROSES],
            selesai=by_status[ReportStatus.SELESAI],
            ditolak=by_status[ReportStatus.DITOLAK]
        )

    @staticmethod
    def average_response_days(reports: Iterable[Report]) -> float:
        """Mean days from creation to last update of resolved reports, one decimal."""
        durations = [
            (report.updated_at - report.created_at).total_seconds() / 86400
            for report in reports
            if report.status == ReportStatus.SELESAI and report.created_at and report.updated_at
        ]
        if not durations:
            return 0.0
        mean = sum(durations) / len(durations)
        return math.floor(mean * 10 + 0.5) / 10

    def build_dashboard(
        self,
        reports: Iterable[Report],
        rows_by_report: Mapping[UUID, Sequence[ParameterRow]],
        kecamatan: str,
        window: TimeWindow,
        today: date,
        warnings: Tuple[str, ...] = ()
    ) -> DashboardStatistics:
        """Compose every dashboard figure for one kecamatan.

        The trend always covers the trailing week; the other figures use
        reports created inside ``window``.
        """
        in_area = [report for report in reports if report.in_area(kecamatan)]
        in_window = [report for report in in_area if window.contains(report.created_at)]

        return DashboardStatistics(
            kecamatan=kecamatan,
            window=window,
            status=self.status_breakdown(in_window),
            average_response_days=self.average_response_days(in_window),
            water_quality=self.aggregate(in_window, rows_by_report, window, kecamatan),
            trend=self.report_trend(in_area, today),
            problem_areas=self.problem_areas(in_window),
            warnings=warnings
        )

    def _decoded_level(self, report_id: UUID, rows: Optional[Sequence[ParameterRow]]) -> Optional[SafetyLevel]:
        if not rows:
            return None
        try:
            analysis = self._codec.decode(rows)
        except ValueError as e:
            self._logger.debug(
                "Skipping undecodable lab batch",
                extra={"report_id": str(report_id), "error": str(e)}
            )
            return None
        if analysis is None:
            self._logger.debug(
                "Skipping lab batch without overall_safety row",
                extra={"report_id": str(report_id), "row_count": len(rows)}
            )
            return None
        return analysis.safety_level


class StatisticsService:
    """Service that loads a kecamatan's reports and lab rows for the dashboard."""

    def __init__(
        self,
        report_repository: "ReportRepository",
        lab_result_repository: "LabResultRepository",
        aggregator: Optional[StatisticsAggregator] = None,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        self._report_repository = report_repository
        self._lab_result_repository = lab_result_repository
        self._aggregator = aggregator or StatisticsAggregator()
        self._clock = clock
        self._logger = get_logger(__name__)

    async def get_dashboard(self, kecamatan: str, time_range: TimeRange = TimeRange.MONTH) -> DashboardStatistics:
        """Build dashboard statistics for a kecamatan.

        A failure to read lab rows is not fatal: the dashboard is built
        without water quality figures and carries a warning.

        Raises:
            ValueError: If kecamatan is empty
        """
        if not kecamatan or not kecamatan.strip():
            raise ValueError("Kecamatan cannot be empty")

        now = self._clock()
        window = TimeWindow.for_range(time_range, now)
        reports = await self._report_repository.find_by_area(kecamatan.strip())

        report_ids = [report.id for report in reports if window.contains(report.created_at)]
        rows_by_report: Dict[UUID, List[ParameterRow]] = {}
        warnings = []
        if report_ids:
            try:
                rows_by_report = await self._lab_result_repository.find_grouped(report_ids)
            except PersistenceError as e:
                self._logger.warning(
                    f"Lab results unavailable for {kecamatan}, continuing without them",
                    extra={"kecamatan": kecamatan, "error": str(e)}
                )
                warnings.append("Lab results could not be loaded")

        dashboard = self._aggregator.build_dashboard(
            reports,
            rows_by_report,
            kecamatan.strip(),
            window,
            now.date(),
            tuple(warnings)
        )

        log_with_extra(
            self._logger,
            logging.INFO,
            f"Statistics calculated for {kecamatan}",
            kecamatan=kecamatan,
            time_range=time_range.value,
            report_count=dashboard.status.total,
            lab_tests=dashboard.total_lab_tests
        )
        return dashboard
