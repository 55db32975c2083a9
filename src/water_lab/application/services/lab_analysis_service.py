"""Lab analysis service implementing the submit-analysis workflow."""

import asyncio
import logging
import weakref
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Awaitable, Callable, Optional, Tuple, TYPE_CHECKING
from uuid import UUID

from src.water_lab.application.services.parameter_validator import ParameterValidator
from src.water_lab.application.services.report_lifecycle import ReportLifecycle
from src.water_lab.domain.entities.report import ReportStatus
from src.water_lab.domain.exceptions import PersistenceError, ReportNotFoundError
from src.water_lab.domain.services.parameter_codec import ParameterRowCodec
from src.water_lab.domain.services.safety_scorer import SafetyScorer
from src.water_lab.domain.value_objects.lab_analysis import LabAnalysis
from src.water_lab.domain.value_objects.notification import Notification
from src.water_lab.domain.value_objects.safety_verdict import SafetyVerdict
from src.water_lab.domain.value_objects.water_parameters import WaterParameters
from src.water_lab.infrastructure.logging import (
    get_logger,
    log_business_rule_violation,
    log_side_effect_failure,
    log_with_extra
)

if TYPE_CHECKING:
    from src.water_lab.application.ports.repositories import (
        LabResultRepository,
        NotificationRepository,
        ReportRepository
    )


class OutcomeStatus(Enum):
    """Overall result of a submitted analysis."""
    SUCCESS = "success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"


@dataclass(frozen=True)
class AnalysisOutcome:
    """Structured result of ``LabAnalysisService.submit_analysis``.

    ``partial_success`` means the rows and the report status were saved but
    a best-effort side effect (the notification) failed; ``warnings`` says
    which. ``failed`` means nothing was committed; ``retryable`` and
    ``error_stage`` tell the caller whether and why to retry.
    """
    status: OutcomeStatus
    report_id: UUID
    verdict: SafetyVerdict
    revision: Optional[int] = None
    report_status: Optional[ReportStatus] = None
    notification: Optional[Notification] = None
    warnings: Tuple[str, ...] = field(default_factory=tuple)
    error: Optional[str] = None
    error_stage: Optional[str] = None
    retryable: bool = False

    @property
    def succeeded(self) -> bool:
        """Check if the analysis was persisted."""
        return self.status != OutcomeStatus.FAILED


class ReportLockRegistry:
    """Hands out one asyncio lock per report ID.

    Serialises delete-then-insert replaces for the same report inside one
    process. Locks are dropped once nothing references them.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[UUID, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, report_id: UUID) -> asyncio.Lock:
        """Get the lock guarding a report's batch."""
        lock = self._locks.get(report_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[report_id] = lock
        return lock


class LabAnalysisService:
    """Service for recording lab analyses against citizen reports."""

    def __init__(
        self,
        lab_result_repository: "LabResultRepository",
        report_repository: "ReportRepository",
        notification_repository: "NotificationRepository",
        scorer: Optional[SafetyScorer] = None,
        codec: Optional[ParameterRowCodec] = None,
        lifecycle: Optional[ReportLifecycle] = None,
        lock_registry: Optional[ReportLockRegistry] = None,
        commit: Optional[Callable[[], Awaitable[None]]] = None,
        rollback: Optional[Callable[[], Awaitable[None]]] = None,
        clock: Callable[[], datetime] = datetime.utcnow
    ):
        """Initialize lab analysis service with repository dependencies.

        Args:
            commit: Commits the rows and status change as one unit of work
                before the notification is attempted. None when the
                repositories persist immediately (in-memory).
            rollback: Discards everything written since the last commit when
                a stage fails, so a failed outcome leaves no rows behind.
        """
        self._lab_result_repository = lab_result_repository
        self._report_repository = report_repository
        self._notification_repository = notification_repository
        self._scorer = scorer or SafetyScorer()
        self._codec = codec or ParameterRowCodec(self._scorer)
        self._lifecycle = lifecycle or ReportLifecycle()
        self._locks = lock_registry or ReportLockRegistry()
        self._commit = commit
        self._rollback = rollback
        self._clock = clock
        self._logger = get_logger(__name__)

    def preview(self, params: WaterParameters) -> SafetyVerdict:
        """Score parameters without saving anything.

        Raises:
            ParameterValidationError: If a parameter is out of range
        """
        ParameterValidator.validate(params)
        return self._scorer.score(params, computed_at=self._clock())

    async def submit_analysis(
        self,
        report_id: UUID,
        params: WaterParameters,
        officer_id: UUID,
        puskesmas_id: UUID,
        notes: str = "",
        expected_revision: Optional[int] = None
    ) -> AnalysisOutcome:
        """Score, persist and finalize a lab analysis for a report.

        Args:
            report_id: ID of the analysed report
            params: Raw measurements (None fields were not measured)
            officer_id: ID of the lab officer recording the analysis
            puskesmas_id: ID of the clinic performing the analysis
            notes: Free-text technician notes
            expected_revision: Batch revision the caller last saw, if any

        Returns:
            Structured outcome; persistence failures are reported here,
            not raised

        Raises:
            ParameterValidationError: If a parameter is out of range
            ReportNotFoundError: If the report does not exist
            ValueError: If the report was rejected
        """
        self._logger.info(f"Submitting lab analysis for report {report_id}")

        ParameterValidator.validate(params)

        report = await self._report_repository.find_by_id(report_id)
        if not report:
            self._logger.error(f"Report {report_id} not found for lab analysis")
            raise ReportNotFoundError(report_id)

        if not report.is_analysable():
            log_business_rule_violation(
                self._logger,
                "analyse_rejected_report",
                f"Attempted to record lab analysis for rejected report {report_id}",
                report_id=str(report_id)
            )
            raise ValueError("Cannot record a lab analysis for a rejected report")

        now = self._clock()
        verdict = self._scorer.score(params, computed_at=now)
        rows = self._codec.encode(report_id, params, verdict, officer_id, puskesmas_id, notes, now)

        async with self._locks.lock_for(report_id):
            try:
                revision = await self._lab_result_repository.replace(report_id, rows, expected_revision)
                transition = self._lifecycle.finalize(report, verdict, puskesmas_id, now)
                updated = await self._report_repository.update_status(report_id, transition.new_status, now)
                if not updated:
                    raise PersistenceError(
                        f"Report {report_id} disappeared before its status could be updated",
                        report_id=report_id,
                        stage="status_update",
                        retryable=False
                    )
                if self._commit is not None:
                    await self._commit()
            except PersistenceError as e:
                if self._rollback is not None:
                    await self._rollback()
                log_with_extra(
                    self._logger,
                    logging.ERROR,
                    f"Lab analysis for report {report_id} was not saved: {e}",
                    report_id=str(report_id),
                    stage=e.stage,
                    retryable=e.retryable
                )
                return AnalysisOutcome(
                    status=OutcomeStatus.FAILED,
                    report_id=report_id,
                    verdict=verdict,
                    error=str(e),
                    error_stage=e.stage,
                    retryable=e.retryable
                )

        warnings = []
        try:
            await self._notification_repository.save(transition.notification)
        except Exception as e:
            log_side_effect_failure(self._logger, "notification", e, report_id=str(report_id))
            warnings.append(f"Notification to the reporter was not saved: {e}")

        log_with_extra(
            self._logger,
            logging.INFO,
            f"Lab analysis for report {report_id} saved",
            report_id=str(report_id),
            safety_level=verdict.safety_level.value,
            score=verdict.score,
            issue_count=len(verdict.issues),
            revision=revision,
            previous_status=transition.previous_status.value,
            officer_id=str(officer_id)
        )

        return AnalysisOutcome(
            status=OutcomeStatus.PARTIAL_SUCCESS if warnings else OutcomeStatus.SUCCESS,
            report_id=report_id,
            verdict=verdict,
            revision=revision,
            report_status=transition.new_status,
            notification=transition.notification,
            warnings=tuple(warnings)
        )

    async def get_analysis(self, report_id: UUID) -> Optional[LabAnalysis]:
        """Get the decoded analysis of a report, or None if none exists."""
        rows = await self._lab_result_repository.find_by_report(report_id)
        return self._codec.decode(rows)
