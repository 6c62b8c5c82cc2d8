"""
Dependency injection container.

Factory functions for FastAPI dependencies. Long-lived collaborators
(result cache, model client, processor, dispatcher, sweeper) are built
lazily once per process; request-scoped services get the request session.

Dependencies: cvtailor.configs, cvtailor.application, cvtailor.boundary, cvtailor.workers
System role: DI container for service injection
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from cvtailor.application.services import (
    AnalysisJobProcessor,
    AnalysisSubmissionService,
    JobStatusService,
    JobSweeper,
    ResultCache,
)
from cvtailor.boundary.db import get_async_db, get_async_session_factory
from cvtailor.configs import Settings, get_settings
from cvtailor.workers.dispatcher import JobDispatcher


class ServiceCache:
    """Container for cached service instances."""

    def __init__(self):
        self._session_factory = None
        self._result_cache = None
        self._text_generator = None
        self._processor = None
        self._dispatcher = None
        self._sweeper = None

    @property
    def settings(self) -> Settings:
        return get_settings()

    @property
    def session_factory(self):
        """Get session factory bound to the process-wide engine."""
        if self._session_factory is None:
            self._session_factory = get_async_session_factory()
        return self._session_factory

    @property
    def result_cache(self) -> ResultCache:
        """Get cached result cache."""
        if self._result_cache is None:
            self._result_cache = ResultCache(
                self.session_factory,
                ttl_days=self.settings.pipeline.cache_ttl_days,
            )
        return self._result_cache

    @property
    def text_generator(self):
        """Get cached Gemini client."""
        if self._text_generator is None:
            from cvtailor.boundary.llm.gemini_client import GeminiTextClient

            self._text_generator = GeminiTextClient(self.settings.llm)
        return self._text_generator

    @property
    def processor(self) -> AnalysisJobProcessor:
        """Get cached in-process job processor."""
        if self._processor is None:
            self._processor = AnalysisJobProcessor(
                self.session_factory,
                self.result_cache,
                self.text_generator,
                self.settings.pipeline,
            )
        return self._processor

    @property
    def dispatcher(self) -> JobDispatcher:
        """Get cached dispatcher for the configured backend."""
        if self._dispatcher is None:
            if self.settings.pipeline.dispatcher_backend == "inprocess":
                from cvtailor.workers.dispatcher import InProcessJobDispatcher

                self._dispatcher = InProcessJobDispatcher(self.session_factory, self.processor)
            else:
                from cvtailor.workers import celery_app
                from cvtailor.workers.dispatcher import CeleryJobDispatcher

                self._dispatcher = CeleryJobDispatcher(
                    self.session_factory,
                    celery_app,
                    self.settings.celery.queue_name,
                )
        return self._dispatcher

    @property
    def sweeper(self) -> JobSweeper:
        """Get cached stuck-job sweeper."""
        if self._sweeper is None:
            self._sweeper = JobSweeper(
                self.session_factory,
                self.dispatcher,
                self.result_cache,
                self.settings.pipeline,
            )
        return self._sweeper

    def clear(self) -> None:
        """Clear all cached instances."""
        self._session_factory = None
        self._result_cache = None
        self._text_generator = None
        self._processor = None
        self._dispatcher = None
        self._sweeper = None


# Global service cache
_service_cache = ServiceCache()


def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_result_cache() -> ResultCache:
    """Get the process-wide result cache."""
    return get_service_cache().result_cache


def get_job_dispatcher() -> JobDispatcher:
    """Get the process-wide job dispatcher."""
    return get_service_cache().dispatcher


def get_submission_service(
    db: AsyncSession = Depends(get_async_db),
    dispatcher: JobDispatcher = Depends(get_job_dispatcher),
    settings: Settings = Depends(get_settings_dependency),
) -> AnalysisSubmissionService:
    """
    Get submission service instance.

    Args:
        db: Async database session (injected via Depends)
        dispatcher: Job dispatcher (injected via Depends)
        settings: Application settings

    Returns:
        AnalysisSubmissionService: Submission service instance
    """
    return AnalysisSubmissionService(db=db, dispatcher=dispatcher, settings=settings.pipeline)


def get_status_service(
    db: AsyncSession = Depends(get_async_db),
    settings: Settings = Depends(get_settings_dependency),
) -> JobStatusService:
    """
    Get status service instance.

    Args:
        db: Async database session (injected via Depends)
        settings: Application settings

    Returns:
        JobStatusService: Status service instance
    """
    return JobStatusService(db=db, settings=settings.pipeline)
