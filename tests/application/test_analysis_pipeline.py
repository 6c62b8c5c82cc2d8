"""
End-to-end tests for the analysis pipeline.

Submission, in-process dispatch, processing, polling and caching wired
together over one SQLite database, with a gated text generator so the
intermediate states can be observed.

System role: Verification of the complete job lifecycle
"""

import asyncio

import pytest

from cvtailor.application.services.processing_service import AnalysisJobProcessor
from cvtailor.application.services.status_service import JobStatusService
from cvtailor.application.services.submission_service import AnalysisSubmissionService
from cvtailor.models.analysis import AnalysisRequest
from cvtailor.workers.dispatcher import InProcessJobDispatcher


@pytest.fixture
def gate() -> asyncio.Event:
    return asyncio.Event()


@pytest.fixture
def generator(make_generator, gate):
    return make_generator(gate=gate)


@pytest.fixture
def dispatcher(session_factory, result_cache, generator, pipeline_settings):
    processor = AnalysisJobProcessor(session_factory, result_cache, generator, pipeline_settings)
    return InProcessJobDispatcher(session_factory, processor)


@pytest.fixture
def analysis_request(cv_text, job_description_text) -> AnalysisRequest:
    return AnalysisRequest(cv_text=cv_text, job_description_text=job_description_text)


@pytest.fixture
def submit(session_factory, dispatcher, pipeline_settings):
    async def _submit(request, settings=None):
        async with session_factory() as session:
            service = AnalysisSubmissionService(
                session, dispatcher, settings or pipeline_settings
            )
            return await service.submit(request)

    return _submit


@pytest.fixture
def poll(session_factory, pipeline_settings):
    async def _poll(job_id):
        async with session_factory() as session:
            return await JobStatusService(session, pipeline_settings).get_status(job_id)

    return _poll


class TestAnalysisLifecycle:
    """A job moves pending -> processing -> completed."""

    async def test_job_should_progress_to_completed(
        self, submit, poll, dispatcher, generator, gate, analysis_request
    ) -> None:
        # Act: submit returns before the model answers
        submitted = await submit(analysis_request)
        await asyncio.wait_for(generator.started.wait(), timeout=5)
        during = await poll(submitted.job_id)
        gate.set()
        await asyncio.wait_for(dispatcher.drain(), timeout=5)
        after = await poll(submitted.job_id)

        # Assert
        assert submitted.status == "pending"
        assert during.status == "processing"
        assert during.estimated_total_seconds == 35
        assert after.status == "completed"
        assert after.result.metadata.cached is False
        assert generator.calls == 1

    async def test_resubmission_should_return_cached_result(
        self, submit, dispatcher, generator, gate, analysis_request
    ) -> None:
        # Arrange
        gate.set()
        first = await submit(analysis_request)
        await asyncio.wait_for(dispatcher.drain(), timeout=5)

        # Act
        second = await submit(analysis_request)

        # Assert
        assert second.job_id == first.job_id
        assert second.status == "completed"
        assert second.cached is True
        assert generator.calls == 1

    async def test_new_job_should_be_served_from_cache(
        self, submit, poll, dispatcher, generator, gate, pipeline_settings, analysis_request
    ) -> None:
        # Arrange
        no_window = pipeline_settings.model_copy(update={"dedup_window_seconds": 0})
        gate.set()
        first = await submit(analysis_request, no_window)
        await asyncio.wait_for(dispatcher.drain(), timeout=5)

        # Act
        second = await submit(analysis_request, no_window)
        await asyncio.wait_for(dispatcher.drain(), timeout=5)
        view = await poll(second.job_id)

        # Assert
        assert second.job_id != first.job_id
        assert view.status == "completed"
        assert view.result.metadata.cached is True
        assert view.result.metadata.hit_count == 1
        assert generator.calls == 1
