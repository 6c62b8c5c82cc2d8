"""
Analysis pipeline configuration settings.

Policy constants for deduplication, caching, extraction, stuck-job recovery
and input validation. None of these are invariants; all can be tuned per
deployment.

Dependencies: pydantic, pydantic_settings
System role: Job pipeline policy configuration
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PipelineSettings(BaseSettings):
    """Job queue, cache and extraction policy."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PIPELINE_",
        case_sensitive=False,
        extra="ignore",
    )

    dispatcher_backend: Literal["celery", "inprocess"] = Field(
        default="celery",
        description="Job handoff mechanism: Celery broker or in-process asyncio tasks",
    )

    # Deduplication and caching
    dedup_window_seconds: int = Field(
        default=600,
        description="Window in which identical submissions reuse an existing job",
    )
    cache_ttl_days: int = Field(
        default=30,
        description="Cache entry lifetime; each hit extends it by the same amount",
    )

    # Extraction
    min_section_length: int = Field(
        default=5,
        description="Minimum characters for an extracted section to count as success",
    )

    # Status reporting
    estimated_total_seconds: int = Field(
        default=35,
        description="Typical end-to-end processing time reported while processing",
    )

    # Stuck-job recovery
    stale_job_timeout_seconds: int = Field(
        default=900,
        description="Processing jobs older than this are failed by the sweeper",
    )
    pending_redispatch_after_seconds: int = Field(
        default=60,
        description="Pending jobs older than this are dispatched again",
    )
    max_dispatch_attempts: int = Field(
        default=3,
        description="Dispatch attempts before a pending job only raises alarms",
    )
    sweep_interval_seconds: int = Field(
        default=60,
        description="Interval between sweeper runs",
    )
    sweep_batch_size: int = Field(default=100, description="Jobs handled per sweep step")

    # Input validation
    min_cv_length: int = Field(default=50, description="Minimum CV text length")
    min_job_description_length: int = Field(
        default=20,
        description="Minimum job description length",
    )
    max_input_length: int = Field(
        default=100_000,
        description="Maximum length of each input text",
    )
