"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from cvtailor.boundary.db.CRUD import job_crud, cache_crud

    job = await job_crud.get_by_id(db, job_id)
    entry = await cache_crud.touch_valid(db, key, now, ttl)
"""

from cvtailor.boundary.db.CRUD.base_crud import BaseCRUD
from cvtailor.boundary.db.CRUD.cache_crud import CacheCRUD, cache_crud
from cvtailor.boundary.db.CRUD.job_crud import JobCRUD, job_crud

__all__ = [
    "BaseCRUD",
    "CacheCRUD",
    "cache_crud",
    "JobCRUD",
    "job_crud",
]
