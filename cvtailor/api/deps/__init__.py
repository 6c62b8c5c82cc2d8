"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_job_dispatcher,
    get_result_cache,
    get_service_cache,
    get_settings_dependency,
    get_status_service,
    get_submission_service,
)

__all__ = [
    "get_job_dispatcher",
    "get_result_cache",
    "get_service_cache",
    "get_settings_dependency",
    "get_status_service",
    "get_submission_service",
]
