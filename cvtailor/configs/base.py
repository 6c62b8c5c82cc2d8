"""
Base configuration settings.

Shared by the API process and the Celery worker: deployment environment,
debug switch and root log level. Specific config modules inherit the
``.env`` loading behaviour from here.

Dependencies: pydantic_settings
System role: Foundation for all configuration classes
"""

from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict
from pydantic import Field


class BaseSettings(PydanticBaseSettings):
    """Process-wide settings common to the API and the worker."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = Field(
        default="development",
        description="Deployment name reported in the startup log (development, staging, production)",
    )
    debug: bool = Field(
        default=False,
        description="Run the FastAPI app in debug mode (tracebacks in 500 responses)",
    )
    log_level: str = Field(
        default="INFO",
        description="Root log level for the API and the Celery worker",
    )
