"""
Job status reader.

Projects a stored job onto the status view clients poll. Views of terminal
jobs contain only stored values, so repeated polls return identical bodies.

Dependencies: pydantic, cvtailor.application.services.job_service
System role: Polling endpoint backend
"""

import logging

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from cvtailor.application.services.job_service import JobService
from cvtailor.boundary.db.models.job_model import AnalysisJobModel, JobStatus
from cvtailor.configs.pipeline import PipelineSettings
from cvtailor.core.clock import as_utc, utcnow
from cvtailor.core.exceptions import JobNotFoundError
from cvtailor.models.analysis import AnalysisResult, JobStatusResponse

logger = logging.getLogger(__name__)

UNREADABLE_RESULT_MESSAGE = "Result could not be read; please submit the analysis again"


class JobStatusService:
    """Read-only status projection of analysis jobs."""

    def __init__(self, db: AsyncSession, settings: PipelineSettings) -> None:
        """
        Initialize status service.

        Args:
            db: AsyncSession for database operations
            settings: Pipeline policy (estimated processing time)
        """
        self.jobs = JobService(db)
        self.settings = settings

    async def get_status(self, job_id: str) -> JobStatusResponse:
        """
        Current status of a job.

        Args:
            job_id: Client-supplied job id

        Returns:
            JobStatusResponse: Fields depend on the status

        Raises:
            JobNotFoundError: Unknown or malformed id
        """
        job = await self.jobs.get_job(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return self.to_view(job)

    def to_view(self, job: AnalysisJobModel) -> JobStatusResponse:
        """Project a job row onto its status view."""
        base = {
            "job_id": str(job.id),
            "created_at": as_utc(job.created_at),
        }

        if job.status == JobStatus.PENDING:
            return JobStatusResponse(status=job.status.value, **base)

        if job.status == JobStatus.PROCESSING:
            started_at = as_utc(job.started_at)
            elapsed = int((utcnow() - started_at).total_seconds()) if started_at else 0
            return JobStatusResponse(
                status=job.status.value,
                started_at=started_at,
                elapsed_seconds=max(0, elapsed),
                estimated_total_seconds=self.settings.estimated_total_seconds,
                **base,
            )

        terminal = {
            **base,
            "started_at": as_utc(job.started_at),
            "completed_at": as_utc(job.completed_at),
            "processing_time_ms": job.processing_time_ms,
        }

        if job.status == JobStatus.COMPLETED:
            try:
                result = AnalysisResult.model_validate(job.result)
            except ValidationError as e:
                logger.error(f"{__name__}:to_view - Job {job.id} has an unreadable result: {e}")
                return JobStatusResponse(
                    status=JobStatus.FAILED.value,
                    error_message=UNREADABLE_RESULT_MESSAGE,
                    **terminal,
                )
            return JobStatusResponse(status=job.status.value, result=result, **terminal)

        return JobStatusResponse(
            status=job.status.value,
            error_message=job.error_message or "Analysis failed",
            **terminal,
        )
