"""
Job service orchestrator.

Owns the transaction boundaries of the job store: every method commits its
own unit of work, and persistence failures on the submission path surface
as JobPersistenceError. Wraps JobCRUD for job lifecycle management.

Dependencies: cvtailor.boundary.db.CRUD, cvtailor.boundary.db.models
System role: Job store facade for submitter, processor, reader and sweeper
"""

import logging
from datetime import timedelta
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cvtailor.boundary.db.CRUD.job_crud import job_crud
from cvtailor.boundary.db.models.job_model import AnalysisJobModel, JobStatus
from cvtailor.core.clock import elapsed_ms, utcnow
from cvtailor.core.exceptions import JobPersistenceError

logger = logging.getLogger(__name__)


def parse_job_id(job_id: str | UUID) -> UUID | None:
    """Parse a client-supplied job id; None when malformed."""
    if isinstance(job_id, UUID):
        return job_id
    try:
        return UUID(str(job_id))
    except ValueError:
        return None


class JobService:
    """
    Job service orchestrator.

    Manages the analysis job lifecycle with state-machine guarded
    transitions. Transition methods return None when the job was not in
    the expected state.
    """

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize job service.

        Args:
            db: AsyncSession for database operations
        """
        self.db = db

    async def create_job(
        self,
        input_fingerprint: str,
        language: str,
        payload: dict[str, Any],
    ) -> AnalysisJobModel:
        """
        Durably record a new pending job.

        Args:
            input_fingerprint: Content fingerprint
            language: Output language
            payload: Original input texts

        Returns:
            AnalysisJobModel: Committed job

        Raises:
            JobPersistenceError: Job could not be stored
        """
        try:
            job = await job_crud.create_pending(
                self.db,
                input_fingerprint=input_fingerprint,
                language=language,
                payload=payload,
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"{__name__}:create_job - Failed to store job: {e}")
            raise JobPersistenceError(
                "Could not store analysis job",
                details={"error_type": type(e).__name__},
            ) from e
        return job

    async def get_job(self, job_id: str | UUID) -> AnalysisJobModel | None:
        """
        Get a job by id.

        Args:
            job_id: Job UUID or its string form

        Returns:
            AnalysisJobModel, or None for unknown or malformed ids
        """
        parsed = parse_job_id(job_id)
        if parsed is None:
            return None
        return await job_crud.get_by_id(self.db, parsed)

    async def find_recent_duplicate(
        self,
        input_fingerprint: str,
        window_seconds: int,
    ) -> AnalysisJobModel | None:
        """
        Newest job with the same fingerprint inside the dedup window.

        Raises:
            JobPersistenceError: Lookup failed
        """
        created_after = utcnow() - timedelta(seconds=window_seconds)
        try:
            return await job_crud.find_recent_by_fingerprint(
                self.db, input_fingerprint, created_after
            )
        except SQLAlchemyError as e:
            logger.error(f"{__name__}:find_recent_duplicate - Lookup failed: {e}")
            raise JobPersistenceError(
                "Could not query analysis jobs",
                details={"error_type": type(e).__name__},
            ) from e

    async def claim(self, job_id: UUID) -> AnalysisJobModel | None:
        """
        Move a pending job to processing.

        Returns:
            Claimed job, or None when it is not pending
        """
        job = await job_crud.mark_processing(self.db, job_id, started_at=utcnow())
        await self.db.commit()
        return job

    async def complete(self, job_id: UUID, result_data: dict) -> AnalysisJobModel | None:
        """
        Record a result and move a processing job to completed.

        Args:
            job_id: Job UUID
            result_data: Serialized AnalysisResult

        Returns:
            Updated job, or None when it is no longer processing
        """
        current = await job_crud.get_by_id(self.db, job_id)
        started_at = current.started_at if current else None
        now = utcnow()
        job = await job_crud.mark_completed(
            self.db,
            job_id,
            result_data=result_data,
            completed_at=now,
            processing_time_ms=elapsed_ms(started_at, now),
        )
        await self.db.commit()
        return job

    async def fail(self, job_id: UUID, error_message: str) -> AnalysisJobModel | None:
        """
        Move a processing job to failed.

        Args:
            job_id: Job UUID
            error_message: Reason shown to the client

        Returns:
            Updated job, or None when it is no longer processing
        """
        current = await job_crud.get_by_id(self.db, job_id)
        started_at = current.started_at if current else None
        now = utcnow()
        job = await job_crud.mark_failed(
            self.db,
            job_id,
            error_message=error_message,
            completed_at=now,
            processing_time_ms=elapsed_ms(started_at, now),
        )
        await self.db.commit()
        return job

    async def record_dispatch(self, job_id: UUID) -> int | None:
        """
        Count a handoff to the background processor.

        Returns:
            New attempt count, or None when the job is no longer pending
        """
        attempts = await job_crud.record_dispatch(self.db, job_id)
        await self.db.commit()
        return attempts

    async def get_stale_jobs(
        self,
        status: JobStatus,
        older_than_seconds: int,
        limit: int | None = None,
    ) -> Sequence[AnalysisJobModel]:
        """
        Jobs stuck in a non-terminal status for longer than a threshold.

        Args:
            status: PENDING or PROCESSING
            older_than_seconds: Age threshold
            limit: Maximum number of jobs

        Returns:
            Sequence of stale jobs, oldest first
        """
        cutoff = utcnow() - timedelta(seconds=older_than_seconds)
        return await job_crud.get_stale(self.db, status, cutoff, limit)
