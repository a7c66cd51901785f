"""Application configuration, credential resolution and logging setup."""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import AssistantError

API_KEY_PREFIX = "AIza"
CREDENTIAL_ENV_NAMES = ("GEMINI_API_KEY", "API_KEY")
_ENV_NAME_PATTERN = re.compile(r"^\$?\{?[A-Z][A-Z0-9_]*\}?$")

CredentialSource = Literal["runtime", "environment", "unconfigured"]


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Credentials
    GEMINI_API_KEY: str | None = None
    API_KEY: str | None = None

    # Storage
    GENESIS_DATA_DIR: Path = Path(".genesis")
    GENESIS_STORAGE_KEY: str = "genesis_progress"
    GENESIS_INSIGHT_DATE_FORMAT: str = "%d.%m.%Y"

    # Assistant
    GENESIS_FLASH_MODEL: str = "gemini-3-flash-preview"
    GENESIS_PRO_MODEL: str = "gemini-3-pro-preview"
    GENESIS_TEMPERATURE: float = 0.75
    GENESIS_PRO_THINKING_BUDGET: int = 16000
    GENESIS_TIER_FALLBACK: bool = False

    GENESIS_LOG_LEVEL: str = "WARNING"

    @field_validator("GEMINI_API_KEY", "API_KEY", mode="after")
    @classmethod
    def blank_key_is_unset(cls, value: str | None) -> str | None:
        """Treat blank credential values as unset."""
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def db_path(self) -> Path:
        """Location of the progress database."""
        return self.GENESIS_DATA_DIR / "progress.db"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@dataclass(frozen=True)
class CredentialResolution:
    """Outcome of credential lookup."""

    source: CredentialSource
    api_key: str | None = None
    env_name: str | None = None


def resolve_credential(settings: Settings, runtime_key: str | None = None) -> CredentialResolution:
    """Resolve the provider key: runtime selection, then environment, then unconfigured."""
    if runtime_key is not None and runtime_key.strip():
        return CredentialResolution(source="runtime", api_key=runtime_key.strip())
    for name in CREDENTIAL_ENV_NAMES:
        value = getattr(settings, name)
        if value:
            return CredentialResolution(source="environment", api_key=value, env_name=name)
    return CredentialResolution(source="unconfigured")


def validate_credential(resolution: CredentialResolution) -> str:
    """Return the usable key or raise the matching configuration failure."""
    key = resolution.api_key
    if resolution.source == "unconfigured" or not key:
        raise AssistantError("missing-credential", "no key selected and none in the environment")
    if key in CREDENTIAL_ENV_NAMES or _ENV_NAME_PATTERN.match(key):
        raise AssistantError("credential-is-variable-name", f"value {key!r} from {resolution.source}")
    if not key.startswith(API_KEY_PREFIX):
        raise AssistantError("credential-format-invalid", f"key from {resolution.source} lacks the expected prefix")
    return key


def configure_logging(level: str = "WARNING") -> None:
    """Configure structured logging with structlog."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.WARNING

    # CLI output owns stdout
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level)

    processors: list[Callable[..., Any]] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(colors=False),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
