from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel, Field

from .errors import ConfigError


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


class Settings(BaseModel):
    # Values are read from the environment when Settings() is instantiated,
    # so tests can build their own instance without touching os.environ.
    db_path: str = Field(default_factory=lambda: _env("DB_PATH"))
    news_api_key: str = Field(default_factory=lambda: _env("NEWS_API_KEY"))
    news_api_url: str = Field(default_factory=lambda: _env("NEWS_API_URL", "https://api.currentsapi.services/v1/latest-news"))
    news_category: str = Field(default_factory=lambda: _env("NEWS_CATEGORY", "politics"))
    news_country: str = Field(default_factory=lambda: _env("NEWS_COUNTRY", "US"))
    user_agent: str = Field(default_factory=lambda: _env("USER_AGENT", "civicwatch/1.0"))
    request_timeout: float = Field(default_factory=lambda: float(_env("REQUEST_TIMEOUT", "25")))
    db_commit_every: int = Field(default_factory=lambda: int(_env("DB_COMMIT_EVERY", "25")))
    scheduler_enabled: bool = Field(default_factory=lambda: _env("SCHEDULER_ENABLED", "1") == "1")
    scheduler_tz: Optional[str] = Field(default_factory=lambda: _env("SCHEDULER_TZ") or None)
    ingest_cron_hour: str = Field(default_factory=lambda: _env("INGEST_CRON_HOUR", "*/2"))
    run_on_start: bool = Field(default_factory=lambda: _env("RUN_ON_START", "1") == "1")
    fec_api_key: str = Field(default_factory=lambda: _env("FEC_API_KEY"))
    fec_api_url: str = Field(default_factory=lambda: _env("FEC_API_URL", "https://api.open.fec.gov/v1"))
    log_level: str = Field(default_factory=lambda: _env("LOG_LEVEL", "INFO"))
    jwt_secret: str = Field(default_factory=lambda: _env("JWT_SECRET"))
    jwt_expires_in: str = Field(default_factory=lambda: _env("JWT_EXPIRES_IN", "1h"))

    def require_storage(self) -> str:
        """Return the storage path or fail; the service must not run without it."""
        if not self.db_path:
            raise ConfigError("DB_PATH is not set; refusing to start without storage")
        return self.db_path
