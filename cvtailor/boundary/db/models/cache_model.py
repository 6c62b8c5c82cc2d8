"""
Result cache ORM model.

Content-addressed store of extracted analysis sections, keyed by the same
fingerprint as AnalysisJobModel.input_fingerprint.

Dependencies: sqlalchemy, cvtailor.boundary.db.base
System role: Persistent cache for expensive model calls
"""

from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from cvtailor.boundary.db.base import Base, UUIDMixin


class CacheEntryModel(Base, UUIDMixin):
    """
    Cached analysis result.

    Attributes:
        cache_key: Fingerprint of (CV text, job text, language); unique
        cv_text_hash / job_description_hash: Per-input hashes for analytics
        language: Output language of the cached sections
        improved_text / cover_letter_text / tips_text / changes_overview_text:
            The four extracted sections
        output_format: Markup variant the sections were extracted from
        fallback_sections: Result fields that carry fallback text
        hit_count: Successful lookups so far; only ever incremented
        created_at: Insert time (UTC)
        last_accessed_at: Last successful lookup (UTC)
        expires_at: Entry is treated as a miss after this time

    Constraints:
        cache_key: UNIQUE; concurrent inserts resolve to the first writer
    """

    __tablename__ = "analysis_cache"

    cache_key: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    cv_text_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    job_description_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    language: Mapped[str] = mapped_column(String(8), nullable=False)

    improved_text: Mapped[str] = mapped_column(Text, nullable=False)
    cover_letter_text: Mapped[str] = mapped_column(Text, nullable=False)
    tips_text: Mapped[str] = mapped_column(Text, nullable=False)
    changes_overview_text: Mapped[str] = mapped_column(Text, nullable=False)

    output_format: Mapped[str] = mapped_column(String(16), nullable=False, default="sectioned")
    fallback_sections: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    hit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    last_accessed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
