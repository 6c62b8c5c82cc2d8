"""
Analysis domain models and schemas.

Request/response schemas for submitting analyses, polling job status and
reading cache statistics. JSON uses camelCase keys; Python code uses the
snake_case field names, which is also the shape stored in the job result.

Dependencies: pydantic
System role: Analysis API contracts
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisRequest(CamelModel):
    """
    Request schema for submitting a CV analysis.

    Lengths and language format are checked by the submission service so
    that every invalid input maps to a 400 response.
    """

    cv_text: str = Field("", description="Plain-text CV")
    job_description_text: str = Field("", description="Plain-text job posting")
    language: str = Field("en", description="Two-letter output language code")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "cvText": "Jane Doe\nSoftware engineer with 6 years of Python experience...",
                "jobDescriptionText": "We are hiring a backend engineer to build APIs...",
                "language": "en",
            }
        }
    )


class AnalysisMetadata(CamelModel):
    """Provenance of an analysis result."""

    language: str
    generated_at: datetime
    output_format: str
    cached: bool = False
    hit_count: int | None = None
    cached_at: datetime | None = None
    expires_at: datetime | None = None
    fallback_sections: list[str] = Field(default_factory=list)
    score: int | None = Field(None, ge=0, le=100)
    score_explanation: str | None = None


class AnalysisResult(CamelModel):
    """The four generated texts plus metadata."""

    improved_text: str
    cover_letter_text: str
    tips_text: str
    changes_overview_text: str
    metadata: AnalysisMetadata


class SubmissionResponse(CamelModel):
    """
    Response schema for POST /analyses.

    ``result`` and ``cached`` are only present when a recent identical
    submission already completed.
    """

    job_id: str
    status: str
    message: str | None = None
    result: AnalysisResult | None = None
    cached: bool | None = None


class JobStatusResponse(CamelModel):
    """Response schema for GET /analyses/{job_id}; fields depend on status."""

    job_id: str
    status: str
    created_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
    elapsed_seconds: int | None = None
    estimated_total_seconds: int | None = None
    result: AnalysisResult | None = None
    processing_time_ms: int | None = None
    error_message: str | None = None


class CacheRecommendation(CamelModel):
    """Operational hint derived from cache usage."""

    type: str = Field(description="warning | success | info")
    message: str
    action: str


class CacheStatsResponse(CamelModel):
    """Response schema for GET /cache/stats."""

    total_entries: int
    reused_entries: int
    total_hits: int
    avg_hit_count: float
    max_hit_count: int
    expired_entries: int
    hit_rate: float = Field(description="Percentage of entries served at least once")
    recommendations: list[CacheRecommendation] = Field(default_factory=list)
