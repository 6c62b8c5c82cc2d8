"""
Job dispatchers.

Hand a stored job to the background processor without blocking the
caller. Every handoff is counted on the job (dispatch_attempts) so the
sweeper can bound re-dispatches.

Implementations:
    CeleryJobDispatcher: publishes the processing task to the broker
    InProcessJobDispatcher: schedules the processor on the running event
        loop (development and single-process deployments)

Dependencies: celery, fastapi, cvtailor.application.services
System role: Explicit queue handoff between submission and processing
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from uuid import UUID

from celery import Celery
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cvtailor.application.services.job_service import JobService
from cvtailor.application.services.processing_service import AnalysisJobProcessor
from cvtailor.core.exceptions import DispatchError

logger = logging.getLogger(__name__)

PROCESS_TASK_NAME = "cvtailor.process_analysis_job"


class JobDispatcher(ABC):
    """Hands jobs to the processor and records each attempt."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def dispatch(self, job_id: UUID) -> None:
        """
        Hand a pending job to the processor.

        Args:
            job_id: Job UUID

        Raises:
            DispatchError: Handoff failed; the job stays pending
        """
        async with self._session_factory() as session:
            attempts = await JobService(session).record_dispatch(job_id)
        if attempts is None:
            logger.info(f"{__name__}:dispatch - Job {job_id} no longer pending, not dispatched")
            return
        await self._handoff(job_id)
        logger.info(f"{__name__}:dispatch - Dispatched job {job_id} (attempt {attempts})")

    @abstractmethod
    async def _handoff(self, job_id: UUID) -> None:
        """Deliver the job to the processor."""


class CeleryJobDispatcher(JobDispatcher):
    """Publishes cvtailor.process_analysis_job to the Celery broker."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        celery_app: Celery,
        queue: str,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            session_factory: Factory for the attempt-counting session
            celery_app: Configured Celery application
            queue: Queue the processing task is routed to
        """
        super().__init__(session_factory)
        self._celery_app = celery_app
        self._queue = queue

    async def _handoff(self, job_id: UUID) -> None:
        try:
            # Broker publish is blocking
            await run_in_threadpool(
                self._celery_app.send_task,
                PROCESS_TASK_NAME,
                args=[str(job_id)],
                queue=self._queue,
            )
        except Exception as e:
            raise DispatchError(
                "Could not publish analysis job to the broker",
                job_id=str(job_id),
                details={"error_type": type(e).__name__, "error": str(e)},
            ) from e


class InProcessJobDispatcher(JobDispatcher):
    """
    Runs the processor as a tracked asyncio task on the current loop.

    Tasks are kept referenced until they finish; drain() awaits the
    outstanding ones at shutdown.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        processor: AnalysisJobProcessor,
    ) -> None:
        super().__init__(session_factory)
        self._processor = processor
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def _handoff(self, job_id: UUID) -> None:
        try:
            task = asyncio.create_task(
                self._processor.process(job_id), name=f"analysis-{job_id}"
            )
        except RuntimeError as e:
            raise DispatchError(
                "No running event loop for in-process processing",
                job_id=str(job_id),
            ) from e
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for every scheduled job to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
