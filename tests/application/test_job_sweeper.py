"""
Test suite for JobSweeper.

Tests stale processing timeouts, pending re-dispatch with bounded attempts
and expired cache purging.

System role: Verification of stuck-job recovery
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import update

from cvtailor.application.services.job_service import JobService
from cvtailor.application.services.job_sweeper import JobSweeper, stale_timeout_message
from cvtailor.application.services.result_cache import ResultCache
from cvtailor.boundary.db.models.job_model import AnalysisJobModel, JobStatus
from cvtailor.core.clock import utcnow
from cvtailor.core.exceptions import DispatchError


@pytest.fixture
def sweeper(session_factory, mock_dispatcher, result_cache, pipeline_settings) -> JobSweeper:
    return JobSweeper(session_factory, mock_dispatcher, result_cache, pipeline_settings)


@pytest.fixture
def new_job(session_factory):
    async def _create():
        async with session_factory() as session:
            return await JobService(session).create_job(
                input_fingerprint="f" * 64,
                language="en",
                payload={"cv_text": "cv", "job_description_text": "job"},
            )

    return _create


async def age_job(session_factory, job_id, **values) -> None:
    async with session_factory() as session:
        await session.execute(
            update(AnalysisJobModel).where(AnalysisJobModel.id == job_id).values(**values)
        )
        await session.commit()


async def load_job(session_factory, job_id) -> AnalysisJobModel:
    async with session_factory() as session:
        return await JobService(session).get_job(job_id)


class TestFailStaleProcessing:
    """Processing jobs beyond the timeout are failed."""

    async def test_stale_processing_job_should_be_failed(
        self, sweeper, new_job, session_factory
    ) -> None:
        # Arrange
        job = await new_job()
        async with session_factory() as session:
            await JobService(session).claim(job.id)
        await age_job(session_factory, job.id, started_at=utcnow() - timedelta(hours=1))

        # Act
        report = await sweeper.fail_stale_processing()

        # Assert
        stored = await load_job(session_factory, job.id)
        assert report.failed_stale == [str(job.id)]
        assert stored.status == JobStatus.FAILED
        assert stored.error_message == stale_timeout_message(900)

    async def test_recent_processing_job_should_be_left_alone(
        self, sweeper, new_job, session_factory
    ) -> None:
        # Arrange
        job = await new_job()
        async with session_factory() as session:
            await JobService(session).claim(job.id)

        # Act
        report = await sweeper.fail_stale_processing()

        # Assert
        assert report.failed_stale == []
        assert (await load_job(session_factory, job.id)).status == JobStatus.PROCESSING


class TestRedispatchPending:
    """Pending jobs are handed over again, a bounded number of times."""

    async def test_waiting_pending_job_should_be_redispatched(
        self, sweeper, new_job, session_factory, mock_dispatcher
    ) -> None:
        # Arrange
        job = await new_job()
        await age_job(session_factory, job.id, updated_at=utcnow() - timedelta(minutes=5))

        # Act
        report = await sweeper.redispatch_pending()

        # Assert
        assert report.redispatched == [str(job.id)]
        mock_dispatcher.dispatch.assert_awaited_once_with(job.id)

    async def test_fresh_pending_job_should_not_be_redispatched(
        self, sweeper, new_job, mock_dispatcher
    ) -> None:
        # Arrange
        await new_job()

        # Act
        report = await sweeper.redispatch_pending()

        # Assert
        assert report.redispatched == []
        mock_dispatcher.dispatch.assert_not_called()

    async def test_exhausted_job_should_alarm_without_dispatch(
        self, sweeper, new_job, session_factory, mock_dispatcher, caplog
    ) -> None:
        # Arrange
        job = await new_job()
        await age_job(
            session_factory,
            job.id,
            dispatch_attempts=3,
            updated_at=utcnow() - timedelta(minutes=5),
        )

        # Act
        report = await sweeper.redispatch_pending()

        # Assert
        assert report.exhausted == [str(job.id)]
        mock_dispatcher.dispatch.assert_not_called()
        assert any("ALARM" in record.getMessage() for record in caplog.records)
        assert (await load_job(session_factory, job.id)).status == JobStatus.PENDING

    async def test_dispatch_error_should_not_stop_sweep(
        self, sweeper, new_job, session_factory, mock_dispatcher
    ) -> None:
        # Arrange
        job = await new_job()
        await age_job(session_factory, job.id, updated_at=utcnow() - timedelta(minutes=5))
        mock_dispatcher.dispatch = AsyncMock(side_effect=DispatchError("broker down"))

        # Act
        report = await sweeper.redispatch_pending()

        # Assert
        assert report.redispatched == []
        assert report.exhausted == []


class TestSweep:
    """Full sweep."""

    async def test_sweep_should_purge_expired_cache_entries(
        self, sweeper, session_factory
    ) -> None:
        # Arrange
        await ResultCache(session_factory, ttl_days=0).store(
            "old",
            {
                "improved_text": "a",
                "cover_letter_text": "b",
                "tips_text": "c",
                "changes_overview_text": "d",
            },
            cv_text="cv",
            job_description_text="job",
            language="en",
        )

        # Act
        report = await sweeper.sweep()

        # Assert
        assert report.as_dict() == {
            "failed_stale": 0,
            "redispatched": 0,
            "exhausted": 0,
            "purged_cache_entries": 1,
        }
