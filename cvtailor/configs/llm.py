"""
Upstream model configuration settings.

Settings for the Gemini text-completion model used to tailor CVs.

Dependencies: pydantic_settings
System role: Generative model configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class LLMSettings(BaseSettings):
    """Gemini model configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GEMINI_",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str | None = Field(
        default=None,
        description="Google Gemini API key",
    )
    model: str = Field(
        default="gemini-2.5-flash-lite",
        description="Gemini model ID",
    )
    temperature: float = Field(default=0.7, description="Sampling temperature")
    max_output_tokens: int = Field(default=4096, description="Maximum tokens generated")
    top_p: float = Field(default=0.95, description="Nucleus sampling threshold")
    top_k: int = Field(default=40, description="Top-k sampling cutoff")
    max_attempts: int = Field(
        default=3,
        description="Attempts per generation before the job is failed",
    )
