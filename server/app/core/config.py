from __future__ import annotations

from typing import List, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_UPSTREAM_API_URL = "http://localhost:3000/api"
DEFAULT_GATEWAY_URL = "http://localhost:8000"

SUBMIT_MODES = ("direct", "gateway")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    app_name: str = "Feature Studio"
    description: str = "Image feature studio and gateway for the upstream processing API"
    version: str = "1.0.0"

    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT", ge=1, le=65535)
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Upstream processing service (one path per feature is appended)
    upstream_api_url: str = Field(default=DEFAULT_UPSTREAM_API_URL, alias="UPSTREAM_API_URL")
    upstream_timeout: float = Field(
        default=300.0, alias="UPSTREAM_TIMEOUT", gt=0,
        description="Timeout in seconds for a single upstream processing call"
    )

    # Where the studio sends submissions: straight to upstream, or through our gateway
    submit_mode: Literal["direct", "gateway"] = Field(default="direct", alias="SUBMIT_MODE")
    gateway_url: str = Field(default=DEFAULT_GATEWAY_URL, alias="GATEWAY_URL")

    download_timeout: float = Field(default=60.0, alias="DOWNLOAD_TIMEOUT", gt=0)
    max_upload_mb: int = Field(default=10, alias="MAX_UPLOAD_MB", ge=1, le=100)

    # Comma separated list, parsed by the ``cors_origins`` property
    allowed_origins: str = Field(
        default="http://localhost:3000,https://localhost:3000",
        alias="ALLOWED_ORIGINS",
    )

    @field_validator("upstream_api_url", "gateway_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        """Normalize base URLs so endpoint paths can be appended directly."""
        if not value:
            raise ValueError("Base URL cannot be empty")
        return value.strip().rstrip("/")

    @field_validator("submit_mode", mode="before")
    @classmethod
    def validate_submit_mode(cls, value: str) -> str:
        """Normalize and validate submit mode."""
        if not value:
            return "direct"
        normalized = value.strip().lower()
        if normalized not in SUBMIT_MODES:
            raise ValueError(
                f"Invalid SUBMIT_MODE '{value}'. "
                f"Valid options: {', '.join(SUBMIT_MODES)}"
            )
        return normalized

    @property
    def cors_origins(self) -> List[str]:
        """Allowed CORS origins as a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024


settings = Settings()
