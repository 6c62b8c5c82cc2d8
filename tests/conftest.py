"""
Shared test fixtures and configuration for entire test suite.

Provides: SQLite async engines and sessions, pipeline settings, a scripted
text generator, and service mocks.
Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import asyncio
import uuid
from unittest.mock import AsyncMock

import pytest

SECTIONED_OUTPUT = """---IMPROVED_CV_START---
Jane Doe
Senior Python engineer with six years of backend experience.
---IMPROVED_CV_END---
---COVER_LETTER_START---
Dear hiring manager, I am excited to apply for the backend role.
---COVER_LETTER_END---
---RECRUITER_TIPS_START---
- Ask about the on-call rotation
- Mention the API migration project
---RECRUITER_TIPS_END---
---CHANGES_OVERVIEW_START---
Reordered experience and highlighted Python and PostgreSQL.
---CHANGES_OVERVIEW_END---"""

CV_TEXT = (
    "Jane Doe\nSoftware engineer with six years of Python, FastAPI and "
    "PostgreSQL experience building internal APIs."
)
JOB_DESCRIPTION_TEXT = "Backend engineer to build and operate public REST APIs in Python."


class FakeTextGenerator:
    """
    Scripted TextGenerator.

    Returns ``output`` (or raises ``error``) and counts calls. When ``gate``
    is set, each call waits for it before answering.
    """

    model_name = "fake-model"

    def __init__(
        self,
        output: str = SECTIONED_OUTPUT,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.output = output
        self.error = error
        self.gate = gate
        self.calls = 0
        self.prompts: list[str] = []
        self.started = asyncio.Event()

    async def generate(self, prompt: str) -> str:
        self.calls += 1
        self.prompts.append(prompt)
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.output


@pytest.fixture
async def test_engine(tmp_path):
    """
    Create a file-backed SQLite async engine with all tables.

    A file database gives every session its own connection, so concurrent
    sessions (request vs. background processor) behave as on PostgreSQL.

    Yields:
        AsyncEngine: Engine disposed after the test
    """
    from sqlalchemy.ext.asyncio import create_async_engine

    from cvtailor.boundary.db import models  # noqa: F401
    from cvtailor.boundary.db.base import Base

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cvtailor_test.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    """Session factory bound to the test engine."""
    from cvtailor.boundary.db.connection import make_session_factory

    return make_session_factory(test_engine)


@pytest.fixture
async def test_async_db(session_factory):
    """
    Create a database session for testing.

    Yields:
        AsyncSession: Test database session with cleanup
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def pipeline_settings():
    """Pipeline settings with defaults, independent of the environment."""
    from cvtailor.configs.pipeline import PipelineSettings

    return PipelineSettings(_env_file=None, dispatcher_backend="inprocess")


@pytest.fixture
def result_cache(session_factory):
    """Result cache over the test database."""
    from cvtailor.application.services.result_cache import ResultCache

    return ResultCache(session_factory, ttl_days=30)


@pytest.fixture
def fake_generator() -> FakeTextGenerator:
    """Text generator answering with a well-formed sectioned response."""
    return FakeTextGenerator()


@pytest.fixture
def mock_dispatcher():
    """
    Create mock JobDispatcher for testing.

    Returns:
        AsyncMock: Dispatcher whose dispatch() succeeds
    """
    dispatcher = AsyncMock()
    dispatcher.dispatch = AsyncMock(return_value=None)
    return dispatcher


@pytest.fixture
def mock_submission_service():
    """
    Create mock AnalysisSubmissionService for testing.

    Returns:
        AsyncMock: Mocked service with async submit()
    """
    service = AsyncMock()
    service.submit = AsyncMock()
    return service


@pytest.fixture
def mock_status_service():
    """
    Create mock JobStatusService for testing.

    Returns:
        AsyncMock: Mocked service with async get_status()
    """
    service = AsyncMock()
    service.get_status = AsyncMock()
    return service


@pytest.fixture
def job_id():
    """Generate a test job ID."""
    return uuid.uuid4()


@pytest.fixture
def sectioned_output() -> str:
    """Well-formed four-section model output."""
    return SECTIONED_OUTPUT


@pytest.fixture
def cv_text() -> str:
    """CV text long enough to pass validation."""
    return CV_TEXT


@pytest.fixture
def job_description_text() -> str:
    """Job description long enough to pass validation."""
    return JOB_DESCRIPTION_TEXT


@pytest.fixture
def make_generator():
    """Factory for FakeTextGenerator with custom output, error or gate."""
    return FakeTextGenerator
