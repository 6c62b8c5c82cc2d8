"""
Configuration management module.

Provides centralized, type-safe configuration using Pydantic Settings.
All config modules support environment variable mapping with validation.
"""

from cvtailor.configs.pipeline import PipelineSettings
from cvtailor.configs.settings import Settings, get_settings

__all__ = ["PipelineSettings", "Settings", "get_settings"]
