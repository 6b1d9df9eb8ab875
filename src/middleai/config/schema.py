"""
Pydantic models for middleai configuration.

Defines the collector connection and logging schemas using Pydantic v2
for validation, defaults, and serialization.
"""

from pathlib import Path
from typing import Literal
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator


class MiddleAIConfig(BaseModel):
    """Connection settings for the Middle AI collector.

    Both values are required and validated when the model is built, so a
    tracer never starts exporting against an empty endpoint or without
    credentials.
    """

    endpoint: str = Field(description="Base URL of the collector (MIDDLE_AI_ENDPOINT)")
    api_key: str = Field(
        description="Value sent in the x-middle-ai-api-key header (MIDDLE_AI_API_KEY)",
        repr=False,
    )
    tracer_name: str = Field(
        default="MiddleAI",
        description="Instrumentation scope name used when obtaining the tracer",
    )

    model_config = {"extra": "forbid"}

    @field_validator("endpoint")
    @classmethod
    def validate_endpoint(cls, v: str) -> str:
        v = v.strip()
        parts = urlsplit(v)
        if parts.scheme not in ("http", "https"):
            raise ValueError(f"endpoint must be an http(s) URL, got {v!r}")
        # Sin host las URLs derivadas quedan como "http:/v1/traces"
        if not parts.hostname or any(c.isspace() for c in parts.netloc):
            raise ValueError(f"endpoint has no valid host: {v!r}")
        return v.rstrip("/")

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("api_key must not be empty")
        return v

    @property
    def traces_url(self) -> str:
        return f"{self.endpoint}/v1/traces"

    @property
    def feedback_url(self) -> str:
        return f"{self.endpoint}/feedback"

    @property
    def auth_headers(self) -> dict[str, str]:
        return {"x-middle-ai-api-key": self.api_key}


class LoggingConfig(BaseModel):
    """Logging system configuration."""

    level: Literal["debug", "info", "warn", "error"] = "warn"
    file: Path | None = None

    model_config = {"extra": "forbid"}


class AppConfig(BaseModel):
    """Root configuration: collector connection plus logging."""

    middle_ai: MiddleAIConfig
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "forbid"}
