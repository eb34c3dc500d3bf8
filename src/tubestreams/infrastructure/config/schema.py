"""Pydantic configuration models with validation."""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    Field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["dev", "test", "prod"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]
LogFormat = Literal["json", "console"]


class StreamsConfig(BaseModel):
    """Stream resolution tuning (YAML section: streams.*)."""

    max_retries: int = Field(
        default=5,
        description="Extra attempts after a transient network failure.",
    )
    probe_concurrency: int = Field(
        default=1,
        description="Streams probed in parallel. 1 = sequential.",
    )
    include_dash_manifest: bool = Field(
        default=True,
        description="Merge streams from the DASH manifest when one is advertised.",
    )
    player_api_url: str = Field(
        default="https://www.youtube.com/youtubei/v1/player",
        description="Endpoint serving player responses.",
    )
    player_client_name: str = Field(
        default="ANDROID_VR",
        description="Client name sent in the player request context.",
    )
    player_client_version: str = Field(
        default="1.60.19",
        description="Client version sent in the player request context.",
    )

    @field_validator("max_retries")
    @classmethod
    def _validate_max_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError("max_retries must be >= 0")
        return v

    @field_validator("probe_concurrency")
    @classmethod
    def _validate_probe_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("probe_concurrency must be >= 1")
        return v


class AppConfig(BaseModel):
    """
    Canonical application configuration (validated, final).

    Note:
    - YAML is expected to be sectioned (http/logging/streams).
    - Environment variables are handled by EnvOverrides(BaseSettings) to allow strict
      precedence control (defaults < YAML < ENV < CLI) in load.py.
    """

    # General
    app_name: str = Field(default="tubestreams", description="Application name.")
    environment: Environment = Field(
        default="dev",
        description="Runtime environment (affects defaults like log format).",
    )

    # HTTP client (YAML section: http.*)
    http_timeout_seconds: float = Field(
        default=30.0,
        validation_alias=AliasChoices(
            "http_timeout_seconds",
            AliasPath("http", "timeout_seconds"),
        ),
        description="Timeout in seconds for every outgoing request.",
    )
    http_follow_redirects: bool = Field(
        default=True,
        validation_alias=AliasChoices(
            "http_follow_redirects",
            AliasPath("http", "follow_redirects"),
        ),
        description="Whether the HTTP client follows redirects.",
    )
    http_user_agent: str = Field(
        default="tubestreams/0.1.0",
        validation_alias=AliasChoices(
            "http_user_agent",
            AliasPath("http", "user_agent"),
        ),
        description="User-Agent for outgoing HTTP requests.",
    )

    # Logging (YAML section: logging.*)
    log_level: LogLevel = Field(
        default="INFO",
        validation_alias=AliasChoices(
            "log_level",
            AliasPath("logging", "level"),
        ),
        description="Log level.",
    )
    log_format: Optional[LogFormat] = Field(
        default=None,
        validation_alias=AliasChoices(
            "log_format",
            AliasPath("logging", "format"),
        ),
        description=(
            "Log renderer format (console/json). If unset, derived from environment."
        ),
    )

    streams: StreamsConfig = Field(default_factory=StreamsConfig)

    @field_validator("http_timeout_seconds")
    @classmethod
    def _validate_http_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("http_timeout_seconds must be > 0")
        return v

    @model_validator(mode="after")
    def _derive_defaults(self) -> "AppConfig":
        # Default log format: console in dev/test, json in prod.
        if self.log_format is None:
            self.log_format = "json" if self.environment == "prod" else "console"
        return self

    def to_sectioned_dict(self) -> dict[str, Any]:
        """Dump configuration in the sectioned YAML shape."""
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "http": {
                "timeout_seconds": self.http_timeout_seconds,
                "follow_redirects": self.http_follow_redirects,
                "user_agent": self.http_user_agent,
            },
            "logging": {"level": self.log_level, "format": self.log_format},
            "streams": self.streams.model_dump(),
        }


class EnvOverrides(BaseSettings):
    """
    Environment-variable overrides (all optional).

    load.py reads TUBESTREAMS_* variables through this model, keeps the
    values that were set and merges them over YAML/defaults before
    validating AppConfig.

    Supported env vars (flat):
    - TUBESTREAMS_HTTP_TIMEOUT_SECONDS
    - TUBESTREAMS_LOG_LEVEL
    - TUBESTREAMS_STREAMS_MAX_RETRIES
    - TUBESTREAMS_STREAMS_PROBE_CONCURRENCY
    """

    model_config = SettingsConfigDict(
        env_prefix="TUBESTREAMS_",
        extra="ignore",
        case_sensitive=False,
    )

    app_name: Optional[str] = None
    environment: Optional[Environment] = None

    http_timeout_seconds: Optional[float] = None
    http_follow_redirects: Optional[bool] = None
    http_user_agent: Optional[str] = None

    log_level: Optional[LogLevel] = None
    log_format: Optional[LogFormat] = None

    streams_max_retries: Optional[int] = None
    streams_probe_concurrency: Optional[int] = None
    streams_include_dash_manifest: Optional[bool] = None
    streams_player_api_url: Optional[str] = None
    streams_player_client_name: Optional[str] = None
    streams_player_client_version: Optional[str] = None

    def to_update_dict(self) -> dict[str, Any]:
        """Return only values that were actually provided (non-None), for merging."""
        return self.model_dump(exclude_none=True)
