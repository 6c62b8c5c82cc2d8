"""
Analysis submission service.

Accepts an analysis request and returns immediately:
validate -> fingerprint -> dedup window lookup -> store pending job ->
dispatch. Identical submissions inside the dedup window reuse the existing
job (in flight) or its result (completed).

Dependencies: cvtailor.application.services, cvtailor.core, cvtailor.workers
System role: Job queue entry point
"""

import logging
import re
from typing import TYPE_CHECKING

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from cvtailor.application.services.job_service import JobService
from cvtailor.boundary.db.models.job_model import JobStatus
from cvtailor.configs.pipeline import PipelineSettings
from cvtailor.core.exceptions import InvalidSubmissionError
from cvtailor.core.fingerprint import fingerprint
from cvtailor.models.analysis import AnalysisRequest, AnalysisResult, SubmissionResponse
from cvtailor.observability.log_utils import log_exception_with_context, short_key

if TYPE_CHECKING:
    from cvtailor.workers.dispatcher import JobDispatcher

logger = logging.getLogger(__name__)

LANGUAGE_PATTERN = re.compile(r"^[a-z]{2}$")

PENDING_MESSAGE = "Analysis started. Poll the status endpoint for the result."
IN_FLIGHT_MESSAGE = "An identical analysis is already in progress."


class AnalysisSubmissionService:
    """
    Submission orchestrator.

    Usage:
        service = AnalysisSubmissionService(db, dispatcher, settings.pipeline)
        response = await service.submit(request)
    """

    def __init__(
        self,
        db: AsyncSession,
        dispatcher: "JobDispatcher",
        settings: PipelineSettings,
    ) -> None:
        """
        Initialize submission service.

        Args:
            db: AsyncSession for the dedup lookup and job insert
            dispatcher: Handoff to the background processor
            settings: Dedup window and input limits
        """
        self.jobs = JobService(db)
        self.dispatcher = dispatcher
        self.settings = settings

    def validate(self, request: AnalysisRequest) -> None:
        """
        Check input lengths and language format.

        Raises:
            InvalidSubmissionError: First failing field
        """
        limit = self.settings.max_input_length
        checks = (
            ("cv_text", request.cv_text, self.settings.min_cv_length, "CV text"),
            (
                "job_description_text",
                request.job_description_text,
                self.settings.min_job_description_length,
                "Job description",
            ),
        )
        for field, value, minimum, label in checks:
            length = len(value.strip())
            if length < minimum:
                raise InvalidSubmissionError(
                    f"{label} is too short (minimum {minimum} characters)",
                    field=field,
                    details={"length": length},
                )
            if len(value) > limit:
                raise InvalidSubmissionError(
                    f"{label} is too long (maximum {limit} characters)",
                    field=field,
                    details={"length": len(value)},
                )

        if not LANGUAGE_PATTERN.match(request.language):
            raise InvalidSubmissionError(
                "Language must be a two-letter lowercase code",
                field="language",
            )

    async def submit(self, request: AnalysisRequest) -> SubmissionResponse:
        """
        Submit an analysis.

        Args:
            request: CV text, job description and language

        Returns:
            SubmissionResponse: completed with cached result, the in-flight
            duplicate, or a new pending job

        Raises:
            InvalidSubmissionError: Input rejected; no job created
            JobPersistenceError: Job store unavailable
        """
        self.validate(request)

        key = fingerprint(request.cv_text, request.job_description_text, request.language)

        existing = await self.jobs.find_recent_duplicate(key, self.settings.dedup_window_seconds)
        if existing is not None:
            if existing.status == JobStatus.COMPLETED and existing.result:
                try:
                    result = AnalysisResult.model_validate(existing.result)
                except ValidationError:
                    logger.warning(
                        f"{__name__}:submit - Duplicate {existing.id} has an unreadable result"
                    )
                else:
                    logger.info(
                        f"{__name__}:submit - Returning completed duplicate {existing.id} "
                        f"for {short_key(key)}"
                    )
                    return SubmissionResponse(
                        job_id=str(existing.id),
                        status=JobStatus.COMPLETED.value,
                        result=result,
                        cached=True,
                    )
            elif not existing.status.is_terminal:
                logger.info(
                    f"{__name__}:submit - Reusing in-flight job {existing.id} for {short_key(key)}"
                )
                return SubmissionResponse(
                    job_id=str(existing.id),
                    status=existing.status.value,
                    message=IN_FLIGHT_MESSAGE,
                )

        job = await self.jobs.create_job(
            input_fingerprint=key,
            language=request.language,
            payload={
                "cv_text": request.cv_text,
                "job_description_text": request.job_description_text,
            },
        )
        logger.info(f"{__name__}:submit - Created job {job.id} for {short_key(key)}")

        # A failed handoff leaves the job pending for the sweeper
        try:
            await self.dispatcher.dispatch(job.id)
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:submit - ALARM: dispatch failed for job {job.id}",
                e,
                job_id=str(job.id),
            )

        return SubmissionResponse(
            job_id=str(job.id),
            status=JobStatus.PENDING.value,
            message=PENDING_MESSAGE,
        )
