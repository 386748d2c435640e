"""Shared configuration management using pydantic-settings."""
from __future__ import annotations

import math
import shlex

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from src.shared.constants import (
    ADDON_PORT,
    AI_PROVIDER_GEMINI,
    AI_PROVIDER_OPENAI_COMPAT,
    LOOPBACK_HOST,
    MOCK_PORT,
    READINESS_POLL_INTERVAL_S,
    READINESS_TIMEOUT_S,
    SHUTDOWN_GRACE_S,
    SUPPORTED_AI_PROVIDERS,
)


class SharedConfig(BaseSettings):
    """Base configuration shared across both processes."""
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
    }


class FixtureServerConfig(SharedConfig):
    """Configuration for the fixture server process."""
    mock_port: int = Field(default=MOCK_PORT, validation_alias="MOCK_PORT")


class HarnessConfig(SharedConfig):
    """Configuration for a full mocked smoke run."""
    mock_port: int = Field(default=MOCK_PORT, validation_alias="MOCK_PORT")
    addon_port: int = Field(default=ADDON_PORT, validation_alias="ADDON_PORT")
    ai_provider: str = Field(
        default=AI_PROVIDER_OPENAI_COMPAT, validation_alias="AI_PROVIDER"
    )
    encryption_key: str = Field(default="x" * 32, validation_alias="ENCRYPTION_KEY")
    service_command: str = Field(
        default="node server.js", validation_alias="SERVICE_COMMAND"
    )
    service_cwd: str = Field(default=".", validation_alias="SERVICE_CWD")
    ready_timeout_s: float = Field(
        default=READINESS_TIMEOUT_S, validation_alias="READY_TIMEOUT_S"
    )
    poll_interval_s: float = Field(
        default=READINESS_POLL_INTERVAL_S, validation_alias="POLL_INTERVAL_S"
    )
    shutdown_grace_s: float = Field(
        default=SHUTDOWN_GRACE_S, validation_alias="SHUTDOWN_GRACE_S"
    )

    @field_validator("ai_provider")
    @classmethod
    def _known_provider(cls, value: str) -> str:
        if value not in SUPPORTED_AI_PROVIDERS:
            raise ValueError(
                f"Unsupported AI_PROVIDER: {value!r} "
                f"(expected one of {', '.join(SUPPORTED_AI_PROVIDERS)})"
            )
        return value

    @property
    def mock_base(self) -> str:
        return f"http://{LOOPBACK_HOST}:{self.mock_port}"

    @property
    def tmdb_base(self) -> str:
        return f"{self.mock_base}/3"

    @property
    def addon_base(self) -> str:
        return f"http://{LOOPBACK_HOST}:{self.addon_port}"

    def service_argv(self) -> list[str]:
        """Split ``SERVICE_COMMAND`` into an argv list."""
        return shlex.split(self.service_command)

    def service_env(self) -> dict[str, str]:
        """Environment overlay handed to the service-under-test.

        Points the service at the fixture server instead of the real
        metadata and AI providers.
        """
        env = {
            "PORT": str(self.addon_port),
            "ENABLE_LOGGING": "true",
            "ENCRYPTION_KEY": self.encryption_key,
            "TMDB_API_BASE": self.tmdb_base,
        }
        if self.ai_provider == AI_PROVIDER_GEMINI:
            env["GEMINI_MOCK_BASE_URL"] = self.mock_base
        return env


class StandaloneSmokeConfig(SharedConfig):
    """Environment for the standalone smokes against an already running service.

    Empty variables count as unset, so defaults apply.
    """
    base_url: str = Field(default="http://localhost:7000", validation_alias="BASE_URL")
    ai_provider: str = Field(default=AI_PROVIDER_GEMINI, validation_alias="AI_PROVIDER")
    ai_temperature: str = Field(default="0.2", validation_alias="AI_TEMPERATURE")
    tmdb_api_key: str = Field(default="", validation_alias="TMDB_API_KEY")
    gemini_api_key: str = Field(default="", validation_alias="GEMINI_API_KEY")
    gemini_model: str = Field(
        default="gemini-2.5-flash-lite", validation_alias="GEMINI_MODEL"
    )
    openai_compat_api_key: str = Field(default="", validation_alias="OPENAI_COMPAT_API_KEY")
    openai_compat_model: str = Field(default="", validation_alias="OPENAI_COMPAT_MODEL")
    openai_compat_base_url: str = Field(default="", validation_alias="OPENAI_COMPAT_BASE_URL")
    openai_compat_extra_headers: str = Field(
        default="", validation_alias="OPENAI_COMPAT_EXTRA_HEADERS"
    )
    manifest_url: str = Field(default="", validation_alias="MANIFEST_URL")
    query: str = Field(default="matrix", validation_alias="QUERY")
    media_type: str = Field(default="movie", validation_alias="TYPE")
    catalog_id: str = Field(default="aisearch.top", validation_alias="CATALOG_ID")
    config_id: str = Field(default="", validation_alias="CONFIG_ID")
    imdb_id: str = Field(default="tt0133093", validation_alias="IMDB_ID")
    source_type: str = Field(default="movie", validation_alias="SOURCE_TYPE")

    model_config = {
        "populate_by_name": True,
        "extra": "ignore",
        "env_ignore_empty": True,
    }

    @property
    def service_base(self) -> str:
        return self.base_url.rstrip("/")

    def temperature(self) -> float:
        """``AI_TEMPERATURE`` clamped to [0, 1]; 0.2 when not a number."""
        try:
            value = float(self.ai_temperature)
        except ValueError:
            return 0.2
        if not math.isfinite(value):
            return 0.2
        return max(0.0, min(1.0, value))
