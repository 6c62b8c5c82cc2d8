"""
Analysis job processor.

Runs one job to a terminal state, detached from any request:
claim -> cache lookup -> (hit: complete from cache) or
(miss: prompt -> model -> extract sections -> cache store -> complete).
Output with no usable section is returned but never cached.
Any failure after the claim moves the job to FAILED with a message.

Database sessions are opened per step from the injected factory; no
connection is held while the model call is in flight.

Dependencies: cvtailor.application.services, cvtailor.boundary.llm, cvtailor.core
System role: Background worker body for CV analysis
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cvtailor.application.services.job_service import JobService, parse_job_id
from cvtailor.application.services.result_cache import CachedResult, ResultCache
from cvtailor.boundary.db.models.job_model import AnalysisJobModel
from cvtailor.boundary.llm.base import TextGenerator
from cvtailor.configs.pipeline import PipelineSettings
from cvtailor.core.analysis_sections import RESULT_SECTIONS, extract_analysis
from cvtailor.core.clock import utcnow
from cvtailor.core.exceptions import CVTailorException
from cvtailor.core.prompts import build_analysis_prompt
from cvtailor.models.analysis import AnalysisMetadata, AnalysisResult
from cvtailor.observability.log_utils import log_exception_with_context, short_key

logger = logging.getLogger(__name__)


class AnalysisJobProcessor:
    """
    Drives a claimed job through the analysis pipeline.

    Safe to invoke more than once for the same job: only the invocation
    whose claim succeeds does any work.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        result_cache: ResultCache,
        text_generator: TextGenerator,
        settings: PipelineSettings,
    ) -> None:
        """
        Initialize the processor.

        Args:
            session_factory: Factory for per-step sessions
            result_cache: Fail-open result cache
            text_generator: Model client
            settings: Pipeline policy (minimum section length)
        """
        self._session_factory = session_factory
        self._cache = result_cache
        self._generator = text_generator
        self._settings = settings

    async def process(self, job_id: str | UUID) -> None:
        """
        Process one job.

        Returns without work when the job can not be claimed (unknown,
        already claimed, or terminal). Never raises for pipeline failures;
        those are recorded on the job.

        Args:
            job_id: Job UUID or its string form
        """
        parsed = parse_job_id(job_id)
        if parsed is None:
            logger.warning(f"{__name__}:process - Ignoring malformed job id {job_id!r}")
            return

        async with self._session_factory() as session:
            job = await JobService(session).claim(parsed)
        if job is None:
            logger.info(f"{__name__}:process - Job {parsed} not claimable, skipping")
            return

        logger.info(f"{__name__}:process - Claimed job {parsed}")
        try:
            result = await self._analyze(job)
            async with self._session_factory() as session:
                completed = await JobService(session).complete(
                    parsed, result.model_dump(mode="json")
                )
            if completed is None:
                logger.warning(f"{__name__}:process - Job {parsed} left processing before completion")
                return
            logger.info(
                f"{__name__}:process - Job {parsed} completed in {completed.processing_time_ms}ms"
            )
        except Exception as e:
            log_exception_with_context(
                logger, f"{__name__}:process - Job {parsed} failed", e, job_id=str(parsed)
            )
            await self._record_failure(parsed, e)

    async def _analyze(self, job: AnalysisJobModel) -> AnalysisResult:
        cv_text = job.payload["cv_text"]
        job_description_text = job.payload["job_description_text"]
        language = job.language
        key = job.input_fingerprint

        cached = await self._cache.lookup(key)
        if cached is not None:
            logger.info(f"{__name__}:_analyze - Serving job {job.id} from cache {short_key(key)}")
            return self._result_from_cache(cached, language)

        prompt = build_analysis_prompt(cv_text, job_description_text, language)
        raw_output = await self._generator.generate(prompt)

        extraction = extract_analysis(raw_output, language, self._settings.min_section_length)
        if extraction.fallback_sections:
            logger.warning(
                f"{__name__}:_analyze - Job {job.id} used fallback text for "
                f"{', '.join(extraction.fallback_sections)}"
            )

        fields = {name: extraction.content(name) for name in RESULT_SECTIONS}
        if extraction.has_content:
            await self._cache.store(
                key,
                fields,
                cv_text=cv_text,
                job_description_text=job_description_text,
                language=language,
                output_format=extraction.output_format.value,
                fallback_sections=extraction.fallback_sections,
            )
        else:
            logger.warning(
                f"{__name__}:_analyze - Job {job.id} produced no usable section, "
                f"not caching {short_key(key)}"
            )

        return AnalysisResult(
            **fields,
            metadata=AnalysisMetadata(
                language=language,
                generated_at=utcnow(),
                output_format=extraction.output_format.value,
                cached=False,
                fallback_sections=extraction.fallback_sections,
                score=extraction.score,
                score_explanation=extraction.score_explanation,
            ),
        )

    @staticmethod
    def _result_from_cache(cached: CachedResult, language: str) -> AnalysisResult:
        return AnalysisResult(
            **cached.fields(),
            metadata=AnalysisMetadata(
                language=language,
                generated_at=utcnow(),
                output_format=cached.output_format,
                cached=True,
                fallback_sections=list(cached.fallback_sections),
                hit_count=cached.hit_count,
                cached_at=cached.created_at,
                expires_at=cached.expires_at,
            ),
        )

    async def _record_failure(self, job_id: UUID, error: Exception) -> None:
        message = error.message if isinstance(error, CVTailorException) else str(error)
        message = message or type(error).__name__
        try:
            async with self._session_factory() as session:
                failed = await JobService(session).fail(job_id, message)
            if failed is None:
                logger.warning(f"{__name__}:_record_failure - Job {job_id} no longer processing")
        except Exception as e:
            # Sweeper times the job out
            log_exception_with_context(
                logger,
                f"{__name__}:_record_failure - Could not mark job {job_id} failed",
                e,
                job_id=str(job_id),
            )
