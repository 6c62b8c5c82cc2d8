"""
Content-addressed result cache.

Stores the four extracted sections under the input fingerprint so that an
identical request never pays for a second model call. The cache fails
open: any storage error is logged and reported as a miss (lookup) or as
UNAVAILABLE (store); it never propagates to the pipeline.

Each operation runs in its own short session from the injected factory,
so a cache failure can not poison the caller's transaction.

Dependencies: sqlalchemy, cvtailor.boundary.db.CRUD
System role: Expensive-call deduplication across jobs
"""

import enum
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cvtailor.boundary.db.CRUD.cache_crud import cache_crud
from cvtailor.boundary.db.models.cache_model import CacheEntryModel
from cvtailor.core.analysis_sections import OutputFormat
from cvtailor.core.clock import as_utc, utcnow
from cvtailor.core.fingerprint import text_hash
from cvtailor.observability.log_utils import log_exception_with_context, short_key

logger = logging.getLogger(__name__)

RESULT_FIELDS = ("improved_text", "cover_letter_text", "tips_text", "changes_overview_text")


class CacheStoreOutcome(str, enum.Enum):
    """Result of a cache write; UNAVAILABLE is falsy."""

    STORED = "stored"
    ALREADY_EXISTS = "already_exists"
    UNAVAILABLE = "unavailable"

    def __bool__(self) -> bool:
        return self is not CacheStoreOutcome.UNAVAILABLE


@dataclass(frozen=True)
class CachedResult:
    """Detached copy of a cache entry returned by a hit."""

    improved_text: str
    cover_letter_text: str
    tips_text: str
    changes_overview_text: str
    output_format: str
    fallback_sections: tuple[str, ...]
    hit_count: int
    created_at: datetime
    expires_at: datetime | None

    @classmethod
    def from_entry(cls, entry: CacheEntryModel) -> "CachedResult":
        return cls(
            improved_text=entry.improved_text,
            cover_letter_text=entry.cover_letter_text,
            tips_text=entry.tips_text,
            changes_overview_text=entry.changes_overview_text,
            output_format=entry.output_format,
            fallback_sections=tuple(entry.fallback_sections or ()),
            hit_count=entry.hit_count,
            created_at=as_utc(entry.created_at),
            expires_at=as_utc(entry.expires_at),
        )

    def fields(self) -> dict[str, str]:
        """The four result sections keyed by result field name."""
        return {name: getattr(self, name) for name in RESULT_FIELDS}


@dataclass(frozen=True)
class CacheStats:
    """Aggregate cache usage."""

    total_entries: int
    reused_entries: int
    total_hits: int
    max_hit_count: int
    expired_entries: int

    @property
    def avg_hit_count(self) -> float:
        if not self.total_entries:
            return 0.0
        return round(self.total_hits / self.total_entries, 2)

    @property
    def hit_rate(self) -> float:
        """Percentage of entries that were served at least once."""
        if not self.total_entries:
            return 0.0
        return round(self.reused_entries / self.total_entries * 100, 2)


class ResultCache:
    """
    Fail-open result cache over the analysis_cache table.

    Usage:
        cache = ResultCache(get_async_session_factory(), ttl_days=30)
        hit = await cache.lookup(key)
        if hit is None:
            ...
            await cache.store(key, fields, cv_text=cv, job_description_text=jd, language="en")
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        ttl_days: int = 30,
    ) -> None:
        """
        Initialize the cache.

        Args:
            session_factory: Factory for short-lived sessions
            ttl_days: Entry lifetime, extended by every hit
        """
        self._session_factory = session_factory
        self._ttl = timedelta(days=ttl_days)

    async def lookup(self, key: str) -> CachedResult | None:
        """
        Look up a result and count the hit.

        Hit counter, last access time and expiry are updated in one atomic
        statement. An expired entry is deleted and reported as a miss.

        Args:
            key: Content fingerprint

        Returns:
            CachedResult on hit, None on miss or when the cache is unavailable
        """
        now = utcnow()
        try:
            async with self._session_factory() as session:
                entry = await cache_crud.touch_valid(session, key, now, self._ttl)
                if entry is not None:
                    hit = CachedResult.from_entry(entry)
                    await session.commit()
                    logger.info(
                        f"{__name__}:lookup - Cache hit for {short_key(key)} "
                        f"(hit_count={hit.hit_count})"
                    )
                    return hit

                removed = await cache_crud.delete_expired(session, now, cache_key=key)
                await session.commit()
                if removed:
                    logger.info(f"{__name__}:lookup - Removed expired entry {short_key(key)}")
                return None
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:lookup - Cache unavailable, treating as miss",
                e,
                cache_key=short_key(key),
            )
            return None

    async def store(
        self,
        key: str,
        fields: dict[str, str],
        *,
        cv_text: str,
        job_description_text: str,
        language: str,
        output_format: str = OutputFormat.SECTIONED.value,
        fallback_sections: Sequence[str] = (),
    ) -> CacheStoreOutcome:
        """
        Store a result; the first writer for a key wins.

        Args:
            key: Content fingerprint
            fields: The four result sections keyed by field name
            cv_text: CV text (hashed for analytics)
            job_description_text: Job text (hashed for analytics)
            language: Output language
            output_format: Markup variant the sections came from
            fallback_sections: Fields that carry fallback text

        Returns:
            CacheStoreOutcome: STORED, ALREADY_EXISTS, or UNAVAILABLE
        """
        now = utcnow()
        try:
            async with self._session_factory() as session:
                await cache_crud.delete_expired(session, now, cache_key=key)
                try:
                    await cache_crud.create(
                        session,
                        cache_key=key,
                        cv_text_hash=text_hash(cv_text),
                        job_description_hash=text_hash(job_description_text),
                        language=language,
                        output_format=output_format,
                        fallback_sections=list(fallback_sections),
                        hit_count=0,
                        created_at=now,
                        last_accessed_at=now,
                        expires_at=now + self._ttl,
                        **{name: fields[name] for name in RESULT_FIELDS},
                    )
                    await session.commit()
                except IntegrityError:
                    await session.rollback()
                    logger.info(
                        f"{__name__}:store - Entry {short_key(key)} already cached by another writer"
                    )
                    return CacheStoreOutcome.ALREADY_EXISTS
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:store - Cache unavailable, result not cached",
                e,
                cache_key=short_key(key),
            )
            return CacheStoreOutcome.UNAVAILABLE

        logger.info(f"{__name__}:store - Cached result {short_key(key)}")
        return CacheStoreOutcome.STORED

    async def stats(self) -> CacheStats | None:
        """
        Aggregate usage counters.

        Returns:
            CacheStats, or None when the cache is unavailable
        """
        try:
            async with self._session_factory() as session:
                usage = await cache_crud.get_usage(session, utcnow())
        except Exception as e:
            log_exception_with_context(logger, f"{__name__}:stats - Cache unavailable", e)
            return None
        return CacheStats(**usage)

    async def purge_expired(self) -> int:
        """
        Delete every expired entry.

        Returns:
            int: Entries removed (0 when the cache is unavailable)
        """
        try:
            async with self._session_factory() as session:
                removed = await cache_crud.delete_expired(session, utcnow())
                await session.commit()
        except Exception as e:
            log_exception_with_context(logger, f"{__name__}:purge_expired - Cache unavailable", e)
            return 0
        if removed:
            logger.info(f"{__name__}:purge_expired - Removed {removed} expired entries")
        return removed
