"""
Stuck-job sweeper.

Periodic recovery for jobs a crashed worker or a lost broker message left
behind:
    - processing jobs older than the stale timeout are failed
    - pending jobs not dispatched recently are dispatched again, up to a
      bounded number of attempts; beyond that an ERROR alarm is logged on
      every sweep so the job is never silently dropped
    - expired cache entries are purged

Dependencies: cvtailor.application.services, cvtailor.workers.dispatcher
System role: Liveness guarantee for the job queue
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cvtailor.application.services.job_service import JobService
from cvtailor.application.services.result_cache import ResultCache
from cvtailor.boundary.db.models.job_model import JobStatus
from cvtailor.configs.pipeline import PipelineSettings
from cvtailor.observability.log_utils import log_exception_with_context

if TYPE_CHECKING:
    from cvtailor.workers.dispatcher import JobDispatcher

logger = logging.getLogger(__name__)


def stale_timeout_message(timeout_seconds: int) -> str:
    return f"Analysis timed out after {timeout_seconds} seconds; please try again"


@dataclass
class SweepReport:
    """Outcome of one sweep."""

    failed_stale: list[str] = field(default_factory=list)
    redispatched: list[str] = field(default_factory=list)
    exhausted: list[str] = field(default_factory=list)
    purged_cache_entries: int = 0

    def as_dict(self) -> dict:
        return {
            "failed_stale": len(self.failed_stale),
            "redispatched": len(self.redispatched),
            "exhausted": len(self.exhausted),
            "purged_cache_entries": self.purged_cache_entries,
        }


class JobSweeper:
    """
    Recovers jobs stuck in a non-terminal state.

    Usage:
        sweeper = JobSweeper(session_factory, dispatcher, result_cache, settings.pipeline)
        report = await sweeper.sweep()
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: "JobDispatcher",
        result_cache: ResultCache,
        settings: PipelineSettings,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._cache = result_cache
        self._settings = settings

    async def fail_stale_processing(self, report: SweepReport | None = None) -> SweepReport:
        """
        Fail processing jobs claimed longer ago than the stale timeout.

        Args:
            report: Report to add to (new one when omitted)

        Returns:
            SweepReport: Report with failed_stale filled in
        """
        report = report or SweepReport()
        timeout = self._settings.stale_job_timeout_seconds

        async with self._session_factory() as session:
            stale = await JobService(session).get_stale_jobs(
                JobStatus.PROCESSING, timeout, self._settings.sweep_batch_size
            )
        for job in stale:
            async with self._session_factory() as session:
                failed = await JobService(session).fail(job.id, stale_timeout_message(timeout))
            if failed is not None:
                report.failed_stale.append(str(job.id))
                logger.warning(
                    f"{__name__}:fail_stale_processing - Job {job.id} timed out after {timeout}s"
                )
        return report

    async def redispatch_pending(self, report: SweepReport | None = None) -> SweepReport:
        """
        Dispatch pending jobs again that no processor picked up.

        Args:
            report: Report to add to (new one when omitted)

        Returns:
            SweepReport: Report with redispatched and exhausted filled in
        """
        report = report or SweepReport()
        max_attempts = self._settings.max_dispatch_attempts

        async with self._session_factory() as session:
            waiting = await JobService(session).get_stale_jobs(
                JobStatus.PENDING,
                self._settings.pending_redispatch_after_seconds,
                self._settings.sweep_batch_size,
            )
        for job in waiting:
            if job.dispatch_attempts >= max_attempts:
                report.exhausted.append(str(job.id))
                logger.error(
                    f"{__name__}:redispatch_pending - ALARM: job {job.id} still pending after "
                    f"{job.dispatch_attempts} dispatch attempts"
                )
                continue
            try:
                await self._dispatcher.dispatch(job.id)
            except Exception as e:
                log_exception_with_context(
                    logger,
                    f"{__name__}:redispatch_pending - ALARM: re-dispatch failed for job {job.id}",
                    e,
                    job_id=str(job.id),
                )
                continue
            report.redispatched.append(str(job.id))
        return report

    async def sweep(self) -> SweepReport:
        """
        Run every recovery step once.

        Returns:
            SweepReport: Combined outcome
        """
        report = SweepReport()
        await self.fail_stale_processing(report)
        await self.redispatch_pending(report)
        report.purged_cache_entries = await self._cache.purge_expired()
        logger.info(f"{__name__}:sweep - Sweep finished: {report.as_dict()}")
        return report

    async def run_forever(self, interval_seconds: int) -> None:
        """
        Sweep on a fixed interval until cancelled (in-process deployments).

        A failing sweep is logged and retried on the next tick.
        """
        logger.info(f"{__name__}:run_forever - Sweeping every {interval_seconds}s")
        while True:
            try:
                await self.sweep()
            except Exception as e:
                log_exception_with_context(logger, f"{__name__}:run_forever - Sweep failed", e)
            await asyncio.sleep(interval_seconds)
