from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_BACKEND_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FEEDPROXY_",
        env_file=(str(_BACKEND_DIR / ".env"), ".env", "backend/.env"),
        extra="ignore",
    )

    host: str = "127.0.0.1"
    port: int = 8787
    log_level: str = "info"

    # Outbound fetch
    user_agent: str = "Mozilla/5.0 (compatible; FeedFetcher/1.0; +https://github.com/)"
    accept_header: str = "application/rss+xml, application/atom+xml, application/xml, text/xml;q=0.9, */*;q=0.8"
    fetch_timeout_seconds: float = 20.0

    # How long a successful upstream response is reused for the same URL; 0 disables the cache.
    upstream_cache_ttl_seconds: int = 120

    # max-age advertised to clients on successful responses.
    cache_max_age_seconds: int = 120


settings = Settings()
