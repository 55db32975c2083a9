"""Pydantic schemas for lab analysis and statistics API requests and responses."""

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from src.water_lab.application.services.lab_analysis_service import AnalysisOutcome
from src.water_lab.application.services.statistics_service import DashboardStatistics
from src.water_lab.domain.value_objects.lab_analysis import LabAnalysis
from src.water_lab.domain.value_objects.notification import Notification
from src.water_lab.domain.value_objects.safety_verdict import SafetyVerdict
from src.water_lab.domain.value_objects.water_parameters import WaterParameters


class WaterParametersSchema(BaseModel):
    """Raw measurements; omitted or null fields were not measured."""
    bacteria_count: Optional[float] = Field(None, description="Bacteria colony count (CFU/mL)")
    ph_level: Optional[float] = Field(None, description="pH, 0-14")
    turbidity: Optional[float] = Field(None, description="Turbidity (NTU)")
    chlorine: Optional[float] = Field(None, description="Residual chlorine (mg/L)")
    heavy_metals: Optional[bool] = Field(None, description="Heavy metals detected")
    e_coli_present: Optional[bool] = Field(None, description="E. coli detected")
    total_dissolved_solids: Optional[float] = Field(None, description="Total dissolved solids (mg/L)")

    def to_domain(self) -> WaterParameters:
        """Convert to the domain value object."""
        return WaterParameters(**self.model_dump())

    @classmethod
    def from_domain(cls, params: WaterParameters) -> "WaterParametersSchema":
        return cls(**params.to_dict())


class SubmitAnalysisRequest(BaseModel):
    """Request model for recording a lab analysis."""
    parameters: WaterParametersSchema
    officer_id: UUID = Field(..., description="Lab officer recording the analysis")
    puskesmas_id: UUID = Field(..., description="Clinic performing the analysis")
    notes: str = Field("", max_length=1000, description="Technician notes")
    expected_revision: Optional[int] = Field(None, ge=0, description="Batch revision last seen by the caller")


class VerdictResponse(BaseModel):
    """Response model for a safety verdict."""
    safety_level: str
    score: int
    issues: List[str]
    computed_at: datetime

    @classmethod
    def from_domain(cls, verdict: SafetyVerdict) -> "VerdictResponse":
        return cls(
            safety_level=verdict.safety_level.value,
            score=verdict.score,
            issues=list(verdict.issues),
            computed_at=verdict.computed_at
        )


class NotificationResponse(BaseModel):
    """Response model for the citizen notification."""
    user_id: UUID
    puskesmas_id: Optional[UUID]
    title: str
    message: str
    type: str
    is_read: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, notification: Notification) -> "NotificationResponse":
        return cls(**notification.to_payload())


class AnalysisOutcomeResponse(BaseModel):
    """Response model for a submitted analysis."""
    status: str
    report_id: UUID
    verdict: VerdictResponse
    revision: Optional[int] = None
    report_status: Optional[str] = None
    notification: Optional[NotificationResponse] = None
    warnings: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    error_stage: Optional[str] = None
    retryable: bool = False

    @classmethod
    def from_domain(cls, outcome: AnalysisOutcome) -> "AnalysisOutcomeResponse":
        return cls(
            status=outcome.status.value,
            report_id=outcome.report_id,
            verdict=VerdictResponse.from_domain(outcome.verdict),
            revision=outcome.revision,
            report_status=outcome.report_status.value if outcome.report_status else None,
            notification=NotificationResponse.from_domain(outcome.notification) if outcome.notification else None,
            warnings=list(outcome.warnings),
            error=outcome.error,
            error_stage=outcome.error_stage,
            retryable=outcome.retryable
        )


class LabAnalysisResponse(BaseModel):
    """Response model for a stored analysis."""
    report_id: UUID
    parameters: WaterParametersSchema
    missing_parameters: List[str]
    verdict: VerdictResponse
    tested_at: datetime
    lab_officer: UUID
    puskesmas_id: UUID
    notes: str

    @classmethod
    def from_domain(cls, analysis: LabAnalysis) -> "LabAnalysisResponse":
        return cls(
            report_id=analysis.report_id,
            parameters=WaterParametersSchema.from_domain(analysis.parameters),
            missing_parameters=analysis.parameters.missing_parameters(),
            verdict=VerdictResponse.from_domain(analysis.verdict),
            tested_at=analysis.tested_at,
            lab_officer=analysis.lab_officer,
            puskesmas_id=analysis.puskesmas_id,
            notes=analysis.notes
        )


class WaterQualityResponse(BaseModel):
    """Response model for safety level shares."""
    good_pct: int
    warning_pct: int
    danger_pct: int
    poor_pct: int
    total: int


class StatusBreakdownResponse(BaseModel):
    """Response model for report counts per status."""
    total: int
    pending: int
    diproses: int
    selesai: int
    ditolak: int


class TrendPointResponse(BaseModel):
    """Response model for one day of the report trend."""
    day: date
    label: str
    count: int


class ProblemAreaResponse(BaseModel):
    """Response model for a frequently reported area."""
    area: str
    reports: int
    kecamatan: str


class DashboardResponse(BaseModel):
    """Response model for kecamatan statistics."""
    kecamatan: str
    window_start: datetime
    window_end: datetime
    status: StatusBreakdownResponse
    average_response_days: float
    total_lab_tests: int
    water_quality: WaterQualityResponse
    trend: List[TrendPointResponse]
    problem_areas: List[ProblemAreaResponse]
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, dashboard: DashboardStatistics) -> "DashboardResponse":
        quality = dashboard.water_quality
        status = dashboard.status
        return cls(
            kecamatan=dashboard.kecamatan,
            window_start=dashboard.window.start,
            window_end=dashboard.window.end,
            status=StatusBreakdownResponse(
                total=status.total,
                pending=status.pending,
                diproses=status.diproses,
                selesai=status.selesai,
                ditolak=status.ditolak
            ),
            average_response_days=dashboard.average_response_days,
            total_lab_tests=dashboard.total_lab_tests,
            water_quality=WaterQualityResponse(
                good_pct=quality.good_pct,
                warning_pct=quality.warning_pct,
                danger_pct=quality.danger_pct,
                poor_pct=quality.poor_pct,
                total=quality.total
            ),
            trend=[
                TrendPointResponse(day=point.day, label=point.label, count=point.count)
                for point in dashboard.trend
            ],
            problem_areas=[
                ProblemAreaResponse(area=area.area, reports=area.reports, kecamatan=area.kecamatan)
                for area in dashboard.problem_areas
            ],
            warnings=list(dashboard.warnings)
        )
