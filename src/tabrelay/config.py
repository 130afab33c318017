"""Runtime configuration for the tabrelay service."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_ORIGINS: tuple[str, ...] = ("http://localhost:3000", "http://127.0.0.1:3000")
DEFAULT_CONVERTER_COMMAND: tuple[str, ...] = ("./ultimate-guitar-scraper",)


def _split_csv(value: tuple[str, ...] | str, default: tuple[str, ...]) -> tuple[str, ...]:
    if isinstance(value, tuple):
        return value
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",") if p.strip()]
        return tuple(parts) if parts else default
    return default


class Settings(BaseSettings):
    """Environment-backed configuration model."""

    model_config = SettingsConfigDict(env_prefix="tabrelay_", env_file=".env", case_sensitive=False)

    environment: Literal["dev", "test", "prod"] = "dev"
    log_level: str = "INFO"

    # Listener
    host: str = "0.0.0.0"
    port: int = 3000

    # CORS, e.g. "https://app.example.com,https://*.example.com"
    allowed_origins: tuple[str, ...] | str = DEFAULT_ALLOWED_ORIGINS

    # Rate limiting (general applies to every route, strict to submissions)
    rate_limit_window_seconds: int = 15 * 60
    rate_limit_requests: int = 100
    strict_rate_limit_requests: int = 10
    trust_forwarded_for: bool = False

    # Upstream search
    search_url: str = "https://www.ultimate-guitar.com/search.php"
    search_timeout_seconds: float = 10.0
    search_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )

    # External converter, argv prefix (comma-separated when set from env)
    converter_command: tuple[str, ...] | str = DEFAULT_CONVERTER_COMMAND

    # Downstream automation webhook
    webhook_url: str = "http://localhost:5678/webhook/google-drive"
    webhook_timeout_seconds: float = 10.0
    # When true, blank song/artist default to "Unknown Song"/"Unknown Artist"
    submission_lenient: bool = False

    @property
    def allowed_origins_tuple(self) -> tuple[str, ...]:
        return _split_csv(self.allowed_origins, DEFAULT_ALLOWED_ORIGINS)

    @property
    def converter_command_tuple(self) -> tuple[str, ...]:
        return _split_csv(self.converter_command, DEFAULT_CONVERTER_COMMAND)


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return Settings()


def get_settings(override: Optional[dict[str, object]] = None) -> Settings:
    """Return settings, optionally overriding values without mutating cache."""

    if override:
        return Settings(**override)
    return _cached_settings()
