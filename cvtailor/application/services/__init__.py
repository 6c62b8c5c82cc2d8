"""Service orchestrators."""

from .job_service import JobService
from .job_sweeper import JobSweeper, SweepReport
from .processing_service import AnalysisJobProcessor
from .result_cache import CachedResult, CacheStats, CacheStoreOutcome, ResultCache
from .status_service import JobStatusService
from .submission_service import AnalysisSubmissionService

__all__ = [
    "AnalysisJobProcessor",
    "AnalysisSubmissionService",
    "CachedResult",
    "CacheStats",
    "CacheStoreOutcome",
    "JobService",
    "JobStatusService",
    "JobSweeper",
    "ResultCache",
    "SweepReport",
]
