"""crash_router/settings.py

Environment-driven configuration. Every field can be set through a
``CRASH_ROUTER_``-prefixed environment variable or an ``.env`` file.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_URL = (
    "https://raw.githubusercontent.com/sagarmotsara/remoteConfig/refs/heads/main/remoteConfig.json"
)


class Settings(BaseSettings):
    app_name: str = "crash-router"

    # Remote flag document
    config_url: str = DEFAULT_CONFIG_URL
    http_timeout_seconds: float | None = None

    # Build flavor: non-fatal errors only reach Slack on the dev variant
    build_variant: str = "prod"
    dev_variant: str = "dev"
    build_number: str = "0"

    # False while developing locally: crash collection is forced off
    release: bool = True

    # Backends
    sentry_dsn: str | None = None
    traces_sample_rate: float = 1.0
    slack_webhook_url: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="CRASH_ROUTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_dev_variant(self) -> bool:
        return self.build_variant == self.dev_variant


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
