"""
Analysis job ORM model.

Durable record of a submitted CV analysis: identity, status, timestamps,
payload, result and error. Clients poll it through the status endpoint
while a background processor drives it through its lifecycle.

Dependencies: sqlalchemy, cvtailor.boundary.db.base
System role: Async job tracking for CV analysis
"""

import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cvtailor.boundary.db.base import Base, TimestampMixin, UUIDMixin


class JobStatus(str, enum.Enum):
    """
    Analysis job execution states.

    PENDING: Job stored, waiting for a processor to claim it
    PROCESSING: A processor claimed the job and is calling the model
    COMPLETED: Result available in the result field
    FAILED: Processing stopped; error_message explains why
    """

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

    def can_transition_to(self, target: "JobStatus") -> bool:
        """Whether the state machine allows moving from this state to target."""
        return target in ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.PENDING: frozenset({JobStatus.PROCESSING}),
    JobStatus.PROCESSING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


class AnalysisJobModel(Base, UUIDMixin, TimestampMixin):
    """
    Analysis job ORM model.

    Attributes:
        id: UUID primary key, the opaque job token returned to clients
        status: Current lifecycle state
        input_fingerprint: Hash of (CV text, job text, language); dedup and cache key
        language: Two-letter output language
        payload: Original inputs {cv_text, job_description_text}
        result: Structured output, only set when COMPLETED
        error_message: Failure reason, only set when FAILED
        started_at: When a processor claimed the job
        completed_at: When the job reached a terminal state
        processing_time_ms: Claim-to-terminal duration
        dispatch_attempts: Handoffs to the background processor so far
        created_at / updated_at: Row timestamps (UTC)

    Workflow:
        1. Submission stores the job as PENDING and dispatches it
        2. The processor claims it (PENDING -> PROCESSING)
        3. The processor records COMPLETED with a result or FAILED with an error
        4. Clients poll /analyses/{id} until the status is terminal
    """

    __tablename__ = "analysis_jobs"
    __table_args__ = (
        Index("ix_analysis_jobs_fingerprint_created", "input_fingerprint", "created_at"),
        Index("ix_analysis_jobs_status", "status"),
    )

    status: Mapped[JobStatus] = mapped_column(
        Enum(
            JobStatus,
            native_enum=False,
            length=20,
            values_callable=lambda statuses: [status.value for status in statuses],
        ),
        nullable=False,
        default=JobStatus.PENDING,
    )

    input_fingerprint: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        doc="SHA-256 fingerprint of normalized inputs",
    )

    language: Mapped[str] = mapped_column(String(8), nullable=False)

    payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        doc="Original input texts (immutable)",
    )

    result: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=None)

    error_message: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, default=None
    )
    processing_time_ms: Mapped[int | None] = mapped_column(Integer, nullable=True, default=None)

    dispatch_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
