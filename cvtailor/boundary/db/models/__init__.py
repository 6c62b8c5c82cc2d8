"""
Database models package.

Exports:
  - AnalysisJobModel, JobStatus: Job ORM model and lifecycle enum
  - CacheEntryModel: Result cache ORM model

Dependencies: sqlalchemy, cvtailor.boundary.db.base
System role: Database model definitions for domain entities
"""

from cvtailor.boundary.db.models.cache_model import CacheEntryModel
from cvtailor.boundary.db.models.job_model import (
    ALLOWED_TRANSITIONS,
    AnalysisJobModel,
    JobStatus,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "AnalysisJobModel",
    "CacheEntryModel",
    "JobStatus",
]
