"""
Result cache CRUD operations.

Extends BaseCRUD with the content-addressed cache operations: atomic
lookup-and-touch, expiry cleanup and usage aggregates. Inserts go through
BaseCRUD.create; the unique cache_key makes the first writer win.

Dependencies: sqlalchemy, cvtailor.boundary.db.models
System role: Cache persistence operations for analysis results
"""

from datetime import datetime, timedelta

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from cvtailor.boundary.db.CRUD.base_crud import BaseCRUD
from cvtailor.boundary.db.models.cache_model import CacheEntryModel


class CacheCRUD(BaseCRUD[CacheEntryModel]):
    """
    CRUD operations for CacheEntryModel.

    Extends BaseCRUD with keyed lookups that count hits in SQL.
    """

    def __init__(self) -> None:
        """Initialize CacheCRUD with CacheEntryModel."""
        super().__init__(CacheEntryModel)

    async def touch_valid(
        self,
        session: AsyncSession,
        cache_key: str,
        now: datetime,
        ttl: timedelta,
    ) -> CacheEntryModel | None:
        """
        Register a hit on a non-expired entry and return it.

        A single UPDATE increments hit_count, refreshes last_accessed_at and
        pushes expires_at to ``now + ttl``, so concurrent hits never lose a
        count.

        Args:
            session: Async database session
            cache_key: Content fingerprint
            now: Lookup time
            ttl: Lifetime granted by this hit

        Returns:
            Updated entry, or None when absent or expired
        """
        stmt = (
            update(CacheEntryModel)
            .where(
                CacheEntryModel.cache_key == cache_key,
                or_(CacheEntryModel.expires_at.is_(None), CacheEntryModel.expires_at > now),
            )
            .values(
                hit_count=CacheEntryModel.hit_count + 1,
                last_accessed_at=now,
                expires_at=now + ttl,
            )
            .returning(CacheEntryModel)
            .execution_options(populate_existing=True, synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_expired(
        self,
        session: AsyncSession,
        now: datetime,
        cache_key: str | None = None,
    ) -> int:
        """
        Delete entries whose expiry has passed.

        Args:
            session: Async database session
            now: Reference time
            cache_key: Restrict the delete to one key

        Returns:
            int: Number of rows deleted
        """
        stmt = (
            delete(CacheEntryModel)
            .where(
                CacheEntryModel.expires_at.is_not(None),
                CacheEntryModel.expires_at <= now,
            )
            .execution_options(synchronize_session=False)
        )
        if cache_key is not None:
            stmt = stmt.where(CacheEntryModel.cache_key == cache_key)
        result = await session.execute(stmt)
        return result.rowcount or 0

    async def get_usage(self, session: AsyncSession, now: datetime) -> dict[str, int]:
        """
        Aggregate cache usage counters.

        Args:
            session: Async database session
            now: Reference time for the expired count

        Returns:
            dict with total_entries, reused_entries, total_hits, max_hit_count,
            expired_entries
        """
        stmt = select(
            func.count(CacheEntryModel.id),
            func.coalesce(
                func.sum(case((CacheEntryModel.hit_count > 0, 1), else_=0)), 0
            ),
            func.coalesce(func.sum(CacheEntryModel.hit_count), 0),
            func.coalesce(func.max(CacheEntryModel.hit_count), 0),
            func.coalesce(
                func.sum(
                    case(
                        (
                            (CacheEntryModel.expires_at.is_not(None))
                            & (CacheEntryModel.expires_at <= now),
                            1,
                        ),
                        else_=0,
                    )
                ),
                0,
            ),
        )
        result = await session.execute(stmt)
        total_entries, reused_entries, total_hits, max_hit_count, expired_entries = result.one()
        return {
            "total_entries": int(total_entries),
            "reused_entries": int(reused_entries),
            "total_hits": int(total_hits),
            "max_hit_count": int(max_hit_count),
            "expired_entries": int(expired_entries),
        }


cache_crud = CacheCRUD()
