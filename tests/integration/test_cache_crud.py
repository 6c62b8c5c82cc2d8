"""
Test suite for CacheCRUD database operations.

Tests atomic hit counting, expiry handling, first-writer-wins inserts and
usage aggregates against an SQLite database.

System role: Verification of cache persistence layer
"""

from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cvtailor.boundary.db.CRUD.cache_crud import CacheCRUD
from cvtailor.boundary.db.models.cache_model import CacheEntryModel
from cvtailor.core.clock import as_utc, utcnow

TTL = timedelta(days=30)


@pytest.fixture
def cache_crud() -> CacheCRUD:
    """Provide CacheCRUD instance for testing."""
    return CacheCRUD()


async def add_entry(
    crud: CacheCRUD,
    session: AsyncSession,
    key: str,
    expires_in: timedelta = TTL,
    hit_count: int = 0,
) -> CacheEntryModel:
    now = utcnow()
    return await crud.create(
        session,
        cache_key=key,
        cv_text_hash="c" * 64,
        job_description_hash="j" * 64,
        language="en",
        improved_text="cv",
        cover_letter_text="letter",
        tips_text="tips",
        changes_overview_text="changes",
        hit_count=hit_count,
        created_at=now,
        last_accessed_at=now,
        expires_at=now + expires_in,
    )


class TestCacheCRUDTouchValid:
    """Test suite for CacheCRUD.touch_valid()."""

    async def test_touch_valid_should_count_hits_and_extend_expiry(
        self, cache_crud: CacheCRUD, test_async_db: AsyncSession
    ) -> None:
        # Arrange
        await add_entry(cache_crud, test_async_db, "k1", expires_in=timedelta(days=1))
        later = utcnow() + timedelta(hours=1)

        # Act
        first = await cache_crud.touch_valid(test_async_db, "k1", utcnow(), TTL)
        second = await cache_crud.touch_valid(test_async_db, "k1", later, TTL)

        # Assert
        assert first.hit_count == 1
        assert second.hit_count == 2
        assert as_utc(second.expires_at) == later + TTL

    async def test_touch_valid_should_miss_unknown_key(
        self, cache_crud: CacheCRUD, test_async_db: AsyncSession
    ) -> None:
        assert await cache_crud.touch_valid(test_async_db, "missing", utcnow(), TTL) is None

    async def test_touch_valid_should_miss_expired_entry(
        self, cache_crud: CacheCRUD, test_async_db: AsyncSession
    ) -> None:
        # Arrange
        await add_entry(cache_crud, test_async_db, "old", expires_in=-timedelta(minutes=1))

        # Act
        entry = await cache_crud.touch_valid(test_async_db, "old", utcnow(), TTL)

        # Assert
        assert entry is None


class TestCacheCRUDCreate:
    """Test suite for unique cache keys."""

    async def test_duplicate_key_should_violate_unique_constraint(
        self, cache_crud: CacheCRUD, test_async_db: AsyncSession
    ) -> None:
        # Arrange
        await add_entry(cache_crud, test_async_db, "dup")

        # Act / Assert
        with pytest.raises(IntegrityError):
            await add_entry(cache_crud, test_async_db, "dup")


class TestCacheCRUDDeleteExpired:
    """Test suite for CacheCRUD.delete_expired()."""

    async def test_delete_expired_should_remove_only_expired_entries(
        self, cache_crud: CacheCRUD, test_async_db: AsyncSession
    ) -> None:
        # Arrange
        await add_entry(cache_crud, test_async_db, "old-1", expires_in=-timedelta(days=1))
        await add_entry(cache_crud, test_async_db, "old-2", expires_in=-timedelta(days=1))
        await add_entry(cache_crud, test_async_db, "live")

        # Act
        removed_one = await cache_crud.delete_expired(test_async_db, utcnow(), cache_key="old-1")
        removed_rest = await cache_crud.delete_expired(test_async_db, utcnow())

        # Assert
        assert removed_one == 1
        assert removed_rest == 1
        usage = await cache_crud.get_usage(test_async_db, utcnow())
        assert usage["total_entries"] == 1


class TestCacheCRUDGetUsage:
    """Test suite for CacheCRUD.get_usage()."""

    async def test_get_usage_should_aggregate_counters(
        self, cache_crud: CacheCRUD, test_async_db: AsyncSession
    ) -> None:
        # Arrange
        await add_entry(cache_crud, test_async_db, "a", hit_count=3)
        await add_entry(cache_crud, test_async_db, "b", hit_count=0)
        await add_entry(cache_crud, test_async_db, "c", hit_count=1, expires_in=-timedelta(days=1))

        # Act
        usage = await cache_crud.get_usage(test_async_db, utcnow())

        # Assert
        assert usage == {
            "total_entries": 3,
            "reused_entries": 2,
            "total_hits": 4,
            "max_hit_count": 3,
            "expired_entries": 1,
        }

    async def test_get_usage_should_return_zeros_for_empty_cache(
        self, cache_crud: CacheCRUD, test_async_db: AsyncSession
    ) -> None:
        usage = await cache_crud.get_usage(test_async_db, utcnow())
        assert usage["total_entries"] == 0
        assert usage["total_hits"] == 0
