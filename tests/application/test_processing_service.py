"""
Test suite for AnalysisJobProcessor.

Tests the miss path (model call, extraction, cache store), the hit path
(no model call, stored fallback state), failure recording and single-claim semantics. Uses an
SQLite store and a scripted text generator.

System role: Verification of the background analysis worker body
"""

import pytest

from cvtailor.application.services.job_service import JobService
from cvtailor.application.services.processing_service import AnalysisJobProcessor
from cvtailor.application.services.result_cache import ResultCache
from cvtailor.boundary.db.models.job_model import JobStatus
from cvtailor.core.exceptions import UpstreamModelError
from cvtailor.core.fingerprint import fingerprint
from cvtailor.models.analysis import AnalysisResult


@pytest.fixture
def create_job(session_factory, cv_text: str, job_description_text: str):
    """Store a pending job for the sample inputs."""

    async def _create(language: str = "en"):
        async with session_factory() as session:
            return await JobService(session).create_job(
                input_fingerprint=fingerprint(cv_text, job_description_text, language),
                language=language,
                payload={"cv_text": cv_text, "job_description_text": job_description_text},
            )

    return _create


@pytest.fixture
def make_processor(session_factory, result_cache: ResultCache, pipeline_settings):
    def _make(generator) -> AnalysisJobProcessor:
        return AnalysisJobProcessor(session_factory, result_cache, generator, pipeline_settings)

    return _make


async def load_job(session_factory, job_id):
    async with session_factory() as session:
        return await JobService(session).get_job(job_id)


class TestProcessCacheMiss:
    """Test suite for jobs without a cached result."""

    async def test_process_should_complete_job_from_model_output(
        self, create_job, make_processor, fake_generator, session_factory, result_cache
    ) -> None:
        # Arrange
        job = await create_job()

        # Act
        await make_processor(fake_generator).process(job.id)

        # Assert
        stored = await load_job(session_factory, job.id)
        assert stored.status == JobStatus.COMPLETED
        assert stored.processing_time_ms is not None
        result = AnalysisResult.model_validate(stored.result)
        assert result.improved_text.startswith("Jane Doe")
        assert result.metadata.cached is False
        assert result.metadata.output_format == "sectioned"
        assert result.metadata.fallback_sections == []
        assert fake_generator.calls == 1
        assert (await result_cache.lookup(job.input_fingerprint)) is not None

    async def test_process_should_prompt_in_requested_language(
        self, create_job, make_processor, fake_generator, cv_text
    ) -> None:
        # Arrange
        job = await create_job(language="nl")

        # Act
        await make_processor(fake_generator).process(str(job.id))

        # Assert
        assert cv_text in fake_generator.prompts[0]
        assert "Nederlands" in fake_generator.prompts[0]

    async def test_unstructured_output_should_complete_with_fallbacks(
        self, create_job, make_processor, make_generator, session_factory
    ) -> None:
        # Arrange
        job = await create_job()
        generator = make_generator(output="The model ignored every instruction.")

        # Act
        await make_processor(generator).process(job.id)

        # Assert
        stored = await load_job(session_factory, job.id)
        result = AnalysisResult.model_validate(stored.result)
        assert stored.status == JobStatus.COMPLETED
        assert len(result.metadata.fallback_sections) == 4

    async def test_unstructured_output_should_not_be_cached(
        self, create_job, make_processor, make_generator, session_factory, result_cache
    ) -> None:
        # Arrange
        generator = make_generator(output="The model ignored every instruction.")
        first = await create_job()
        await make_processor(generator).process(first.id)
        second = await create_job()

        # Act
        await make_processor(generator).process(second.id)

        # Assert
        stored = await load_job(session_factory, second.id)
        result = AnalysisResult.model_validate(stored.result)
        assert generator.calls == 2
        assert result.metadata.cached is False
        assert (await result_cache.lookup(second.input_fingerprint)) is None


class TestProcessCacheHit:
    """Test suite for jobs answered from the cache."""

    async def test_cached_result_should_skip_model_call(
        self, create_job, make_processor, make_generator, fake_generator, session_factory
    ) -> None:
        # Arrange
        first = await create_job()
        await make_processor(fake_generator).process(first.id)
        second = await create_job()
        untouched = make_generator()

        # Act
        await make_processor(untouched).process(second.id)

        # Assert
        stored = await load_job(session_factory, second.id)
        result = AnalysisResult.model_validate(stored.result)
        assert untouched.calls == 0
        assert stored.status == JobStatus.COMPLETED
        assert result.metadata.cached is True
        assert result.metadata.hit_count == 1
        assert result.metadata.cached_at is not None

    async def test_cache_hit_should_report_stored_fallback_sections(
        self, create_job, make_processor, make_generator, sectioned_output, session_factory
    ) -> None:
        # Arrange
        partial = sectioned_output.split("---CHANGES_OVERVIEW_START---")[0]
        first = await create_job()
        await make_processor(make_generator(output=partial)).process(first.id)
        second = await create_job()
        untouched = make_generator()

        # Act
        await make_processor(untouched).process(second.id)

        # Assert
        stored = await load_job(session_factory, second.id)
        result = AnalysisResult.model_validate(stored.result)
        assert untouched.calls == 0
        assert result.metadata.cached is True
        assert result.metadata.output_format == "sectioned"
        assert result.metadata.fallback_sections == ["changes_overview_text"]
        assert result.changes_overview_text == "Could not generate changes overview."


class TestProcessFailures:
    """Test suite for failure recording."""

    async def test_upstream_error_should_fail_job_with_message(
        self, create_job, make_processor, make_generator, session_factory
    ) -> None:
        # Arrange
        job = await create_job()
        generator = make_generator(error=UpstreamModelError("AI service unavailable: quota"))

        # Act
        await make_processor(generator).process(job.id)

        # Assert
        stored = await load_job(session_factory, job.id)
        assert stored.status == JobStatus.FAILED
        assert stored.error_message == "AI service unavailable: quota"
        assert stored.completed_at is not None

    async def test_unexpected_error_should_fail_job(
        self, create_job, make_processor, make_generator, session_factory
    ) -> None:
        # Arrange
        job = await create_job()

        # Act
        await make_processor(make_generator(error=RuntimeError("boom"))).process(job.id)

        # Assert
        stored = await load_job(session_factory, job.id)
        assert stored.status == JobStatus.FAILED
        assert stored.error_message == "boom"


class TestProcessClaim:
    """Only one invocation per job does any work."""

    async def test_second_process_should_be_noop(
        self, create_job, make_processor, fake_generator, session_factory
    ) -> None:
        # Arrange
        job = await create_job()
        processor = make_processor(fake_generator)

        # Act
        await processor.process(job.id)
        first_result = (await load_job(session_factory, job.id)).result
        await processor.process(job.id)

        # Assert
        assert fake_generator.calls == 1
        assert (await load_job(session_factory, job.id)).result == first_result

    @pytest.mark.parametrize("job_id", ["not-a-uuid", "00000000-0000-0000-0000-000000000000"])
    async def test_unknown_job_should_be_ignored(
        self, make_processor, fake_generator, job_id
    ) -> None:
        await make_processor(fake_generator).process(job_id)
        assert fake_generator.calls == 0
