"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - AnalysisJobModel, CacheEntryModel: Domain entities
  - JobStatus: Job lifecycle enum
  - job_crud, cache_crud: CRUD operation singletons

Dependencies: sqlalchemy, cvtailor.configs
System role: Database adapter providing persistent storage for analysis
jobs and the result cache.
"""

from cvtailor.boundary.db.base import Base, TimestampMixin, UUIDMixin
from cvtailor.boundary.db.connection import (
    build_async_engine,
    create_tables,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
    make_session_factory,
)
from cvtailor.boundary.db.models import AnalysisJobModel, CacheEntryModel, JobStatus
from cvtailor.boundary.db.CRUD import (
    BaseCRUD,
    CacheCRUD,
    JobCRUD,
    cache_crud,
    job_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "build_async_engine",
    "create_tables",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    "make_session_factory",
    # Models
    "AnalysisJobModel",
    "CacheEntryModel",
    "JobStatus",
    # CRUD
    "BaseCRUD",
    "CacheCRUD",
    "JobCRUD",
    "cache_crud",
    "job_crud",
]
