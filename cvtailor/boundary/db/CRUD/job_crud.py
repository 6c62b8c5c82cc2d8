"""
Analysis job CRUD operations.

Extends BaseCRUD with the job store operations: dedup lookup by
fingerprint, state-machine guarded status transitions, and the stale-job
queries used by the sweeper.

Every transition is a single-row conditional UPDATE; a transition whose
source state no longer matches (raced processor, terminal job, unknown id)
updates nothing and returns None.

Dependencies: sqlalchemy, cvtailor.boundary.db.models
System role: Job persistence operations for async analysis tracking
"""

from datetime import datetime
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cvtailor.boundary.db.CRUD.base_crud import BaseCRUD
from cvtailor.boundary.db.models.job_model import (
    ALLOWED_TRANSITIONS,
    AnalysisJobModel,
    JobStatus,
)
from cvtailor.core.exceptions import InvalidTransitionError


def source_states(target: JobStatus) -> list[JobStatus]:
    """States from which the state machine allows reaching target."""
    return [state for state, targets in ALLOWED_TRANSITIONS.items() if target in targets]


class JobCRUD(BaseCRUD[AnalysisJobModel]):
    """
    CRUD operations for AnalysisJobModel.

    Extends BaseCRUD with fingerprint lookups, guarded status transitions
    and sweeper queries.
    """

    def __init__(self) -> None:
        """Initialize JobCRUD with AnalysisJobModel."""
        super().__init__(AnalysisJobModel)

    async def create_pending(
        self,
        session: AsyncSession,
        input_fingerprint: str,
        language: str,
        payload: dict[str, Any],
    ) -> AnalysisJobModel:
        """
        Insert a new job in PENDING state.

        Args:
            session: Async database session
            input_fingerprint: Content fingerprint of the inputs
            language: Output language
            payload: Original input texts

        Returns:
            AnalysisJobModel: Created job with generated id and timestamps
        """
        return await self.create(
            session,
            status=JobStatus.PENDING,
            input_fingerprint=input_fingerprint,
            language=language,
            payload=payload,
            dispatch_attempts=0,
        )

    async def find_recent_by_fingerprint(
        self,
        session: AsyncSession,
        input_fingerprint: str,
        created_after: datetime,
    ) -> AnalysisJobModel | None:
        """
        Retrieve the newest job with a fingerprint created after a cutoff.

        Args:
            session: Async database session
            input_fingerprint: Content fingerprint
            created_after: Start of the dedup window

        Returns:
            AnalysisJobModel if a job exists in the window, None otherwise
        """
        stmt = (
            select(AnalysisJobModel)
            .where(
                AnalysisJobModel.input_fingerprint == input_fingerprint,
                AnalysisJobModel.created_at >= created_after,
            )
            .order_by(AnalysisJobModel.created_at.desc())
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def update_status(
        self,
        session: AsyncSession,
        id: UUID,
        status: JobStatus,
        expected_status: JobStatus | None = None,
        **fields: Any,
    ) -> AnalysisJobModel | None:
        """
        Move a job to a new status if the state machine allows it.

        The UPDATE is conditioned on the current status: ``expected_status``
        when given, otherwise any state allowed to reach ``status``.

        Args:
            session: Async database session
            id: Job UUID
            status: Target status
            expected_status: Status the job must currently have
            **fields: Additional columns to set in the same UPDATE

        Returns:
            Updated AnalysisJobModel, or None when the job is unknown or its
            current status does not match

        Raises:
            InvalidTransitionError: The state machine forbids the transition
        """
        if expected_status is not None:
            if not expected_status.can_transition_to(status):
                raise InvalidTransitionError(expected_status.value, status.value)
            sources = [expected_status]
        else:
            sources = source_states(status)
            if not sources:
                raise InvalidTransitionError("*", status.value)

        stmt = (
            update(AnalysisJobModel)
            .where(AnalysisJobModel.id == id, AnalysisJobModel.status.in_(sources))
            .values(status=status, **fields)
            .returning(AnalysisJobModel)
            .execution_options(populate_existing=True, synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def mark_processing(
        self,
        session: AsyncSession,
        id: UUID,
        started_at: datetime,
    ) -> AnalysisJobModel | None:
        """
        Claim a pending job for processing.

        Args:
            session: Async database session
            id: Job UUID
            started_at: Claim time

        Returns:
            Claimed job, or None when another processor got there first
        """
        return await self.update_status(
            session, id, JobStatus.PROCESSING, started_at=started_at
        )

    async def mark_completed(
        self,
        session: AsyncSession,
        id: UUID,
        result_data: dict,
        completed_at: datetime,
        processing_time_ms: int | None,
    ) -> AnalysisJobModel | None:
        """
        Mark a processing job as completed with its result.

        Args:
            session: Async database session
            id: Job UUID
            result_data: Serialized analysis result
            completed_at: Completion time
            processing_time_ms: Claim-to-completion duration

        Returns:
            Updated job, or None when the job was not processing
        """
        return await self.update_status(
            session,
            id,
            JobStatus.COMPLETED,
            result=result_data,
            completed_at=completed_at,
            processing_time_ms=processing_time_ms,
        )

    async def mark_failed(
        self,
        session: AsyncSession,
        id: UUID,
        error_message: str,
        completed_at: datetime,
        processing_time_ms: int | None,
    ) -> AnalysisJobModel | None:
        """
        Mark a processing job as failed.

        Args:
            session: Async database session
            id: Job UUID
            error_message: Failure reason shown to the client
            completed_at: Failure time
            processing_time_ms: Claim-to-failure duration

        Returns:
            Updated job, or None when the job was not processing
        """
        return await self.update_status(
            session,
            id,
            JobStatus.FAILED,
            error_message=error_message,
            completed_at=completed_at,
            processing_time_ms=processing_time_ms,
        )

    async def record_dispatch(self, session: AsyncSession, id: UUID) -> int | None:
        """
        Increment the dispatch counter of a pending job.

        Args:
            session: Async database session
            id: Job UUID

        Returns:
            New attempt count, or None when the job is no longer pending
        """
        stmt = (
            update(AnalysisJobModel)
            .where(AnalysisJobModel.id == id, AnalysisJobModel.status == JobStatus.PENDING)
            .values(dispatch_attempts=AnalysisJobModel.dispatch_attempts + 1)
            .returning(AnalysisJobModel.dispatch_attempts)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_stale(
        self,
        session: AsyncSession,
        status: JobStatus,
        older_than: datetime,
        limit: int | None = None,
    ) -> Sequence[AnalysisJobModel]:
        """
        Retrieve non-terminal jobs that have not progressed since a cutoff.

        Processing jobs are aged by ``started_at`` (claim time); pending jobs
        by ``updated_at``, which every dispatch refreshes.

        Args:
            session: Async database session
            status: PENDING or PROCESSING
            older_than: Age cutoff
            limit: Maximum number of jobs to return

        Returns:
            Sequence of jobs, oldest first

        Raises:
            ValueError: If status is terminal
        """
        if status == JobStatus.PROCESSING:
            age_column = AnalysisJobModel.started_at
        elif status == JobStatus.PENDING:
            age_column = AnalysisJobModel.updated_at
        else:
            raise ValueError(f"Terminal jobs are never stale: {status.value}")

        stmt = (
            select(AnalysisJobModel)
            .where(AnalysisJobModel.status == status, age_column < older_than)
            .order_by(age_column)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()


job_crud = JobCRUD()
