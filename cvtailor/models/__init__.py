"""API contracts shared by routers and services."""

from cvtailor.models.analysis import (
    AnalysisMetadata,
    AnalysisRequest,
    AnalysisResult,
    CacheRecommendation,
    CacheStatsResponse,
    JobStatusResponse,
    SubmissionResponse,
)

__all__ = [
    "AnalysisMetadata",
    "AnalysisRequest",
    "AnalysisResult",
    "CacheRecommendation",
    "CacheStatsResponse",
    "JobStatusResponse",
    "SubmissionResponse",
]
