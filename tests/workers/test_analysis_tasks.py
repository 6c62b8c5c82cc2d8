"""
Test suite for the analysis Celery tasks.

Tasks are executed eagerly with their coroutines mocked; no broker is
needed.

System role: Verification of background task wiring
"""

from unittest.mock import AsyncMock

from cvtailor.observability.correlation import get_correlation_id
from cvtailor.workers import celery_app
from cvtailor.workers.dispatcher import PROCESS_TASK_NAME
from cvtailor.workers.tasks import analysis as analysis_tasks


def test_tasks_should_be_registered_under_stable_names() -> None:
    assert PROCESS_TASK_NAME in celery_app.tasks
    assert analysis_tasks.SWEEP_TASK_NAME in celery_app.tasks


def test_sweep_should_be_scheduled_by_beat() -> None:
    entry = celery_app.conf.beat_schedule["sweep-analysis-jobs"]
    assert entry["task"] == analysis_tasks.SWEEP_TASK_NAME
    assert entry["schedule"] > 0


def test_process_task_should_run_processor(monkeypatch) -> None:
    # Arrange
    process = AsyncMock()
    monkeypatch.setattr(analysis_tasks, "_process", process)

    # Act
    result = analysis_tasks.process_analysis_job.apply(args=["job-1"])

    # Assert
    assert result.successful()
    process.assert_awaited_once_with("job-1")
    assert get_correlation_id() == ""


def test_sweep_task_should_return_report(monkeypatch) -> None:
    # Arrange
    report = {"failed_stale": 1, "redispatched": 0, "exhausted": 0, "purged_cache_entries": 2}
    monkeypatch.setattr(analysis_tasks, "_sweep", AsyncMock(return_value=report))

    # Act
    result = analysis_tasks.sweep_analysis_jobs.apply()

    # Assert
    assert result.get() == report
