"""
Analysis Celery tasks.

Async tasks:
    process_analysis_job(job_id): claim -> cache/model -> extract -> complete
    sweep_analysis_jobs(): fail stale jobs, re-dispatch lost ones, purge cache

Each task runs its coroutine in a fresh event loop with its own engine,
disposed when the task finishes.

Dependencies: celery, sqlalchemy, cvtailor.application, cvtailor.boundary
System role: Background job execution
"""

import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from cvtailor.application.services.job_sweeper import JobSweeper
from cvtailor.application.services.processing_service import AnalysisJobProcessor
from cvtailor.application.services.result_cache import ResultCache
from cvtailor.boundary.db.connection import build_async_engine, make_session_factory
from cvtailor.boundary.llm.gemini_client import GeminiTextClient
from cvtailor.configs import get_settings
from cvtailor.observability.correlation import clear_correlation_id, set_correlation_id
from cvtailor.workers import celery_app
from cvtailor.workers.dispatcher import PROCESS_TASK_NAME, CeleryJobDispatcher

logger = logging.getLogger(__name__)

SWEEP_TASK_NAME = "cvtailor.sweep_analysis_jobs"

_celery_settings = get_settings().celery


async def _process(job_id: str) -> None:
    settings = get_settings()
    engine = build_async_engine()
    try:
        session_factory = make_session_factory(engine)
        processor = AnalysisJobProcessor(
            session_factory,
            ResultCache(session_factory, ttl_days=settings.pipeline.cache_ttl_days),
            GeminiTextClient(settings.llm),
            settings.pipeline,
        )
        await processor.process(job_id)
    finally:
        await engine.dispose()


async def _sweep() -> dict:
    settings = get_settings()
    engine = build_async_engine()
    try:
        session_factory = make_session_factory(engine)
        sweeper = JobSweeper(
            session_factory,
            CeleryJobDispatcher(session_factory, celery_app, settings.celery.queue_name),
            ResultCache(session_factory, ttl_days=settings.pipeline.cache_ttl_days),
            settings.pipeline,
        )
        report = await sweeper.sweep()
        return report.as_dict()
    finally:
        await engine.dispose()


@celery_app.task(
    name=PROCESS_TASK_NAME,
    bind=True,
    max_retries=_celery_settings.task_max_retries,
    autoretry_for=(SQLAlchemyError, OSError),
    retry_backoff=_celery_settings.task_retry_backoff,
    retry_backoff_max=_celery_settings.task_retry_backoff_max,
)
def process_analysis_job(self, job_id: str) -> None:
    """
    Process one analysis job.

    Model and extraction failures are recorded on the job; only store
    connectivity errors before the claim reach Celery's retry policy,
    and the conditional claim makes those retries safe.

    Args:
        job_id: Job UUID as string
    """
    set_correlation_id(job_id)
    try:
        logger.info(f"{__name__}:process_analysis_job - Processing job {job_id}")
        asyncio.run(_process(job_id))
    finally:
        clear_correlation_id()


@celery_app.task(name=SWEEP_TASK_NAME)
def sweep_analysis_jobs() -> dict:
    """
    Run the stuck-job sweep once (scheduled by Celery beat).

    Returns:
        dict: Counts from the SweepReport
    """
    return asyncio.run(_sweep())
