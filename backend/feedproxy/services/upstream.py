from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock

import httpx

from feedproxy.settings import settings

_log = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The upstream server answered with a non-2xx status."""

    def __init__(self, status_code: int):
        super().__init__(f"Upstream error {status_code}")
        self.status_code = status_code


class UpstreamFetchError(Exception):
    """The upstream server could not be reached at all."""


@dataclass(frozen=True)
class UpstreamResponse:
    url: str
    status_code: int
    content_type: str
    text: str


@dataclass
class _CacheEntry:
    fetched_at: datetime
    response: UpstreamResponse


class UpstreamFetcher:
    def __init__(
        self,
        *,
        user_agent: str | None = None,
        accept: str | None = None,
        timeout_seconds: float | None = None,
        cache_ttl_seconds: int | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self._headers = {
            "User-Agent": user_agent or settings.user_agent,
            "Accept": accept or settings.accept_header,
        }
        self._timeout_seconds = timeout_seconds if timeout_seconds is not None else settings.fetch_timeout_seconds
        ttl = settings.upstream_cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
        self._cache_ttl = timedelta(seconds=max(0, ttl))
        self._transport = transport
        self._cache: dict[str, _CacheEntry] = {}
        self._cache_lock = Lock()

    def _cached(self, url: str, now: datetime) -> UpstreamResponse | None:
        if not self._cache_ttl:
            return None
        with self._cache_lock:
            entry = self._cache.get(url)
            if entry is None:
                return None
            if now - entry.fetched_at >= self._cache_ttl:
                del self._cache[url]
                return None
            return entry.response

    def _store(self, response: UpstreamResponse, now: datetime) -> None:
        if not self._cache_ttl:
            return
        with self._cache_lock:
            # Drop anything already stale so the cache does not grow with one-off URLs.
            expired = [key for key, entry in self._cache.items() if now - entry.fetched_at >= self._cache_ttl]
            for key in expired:
                del self._cache[key]
            self._cache[response.url] = _CacheEntry(fetched_at=now, response=response)

    def clear_cache(self) -> None:
        with self._cache_lock:
            self._cache.clear()

    def fetch(self, url: str) -> UpstreamResponse:
        now = datetime.now(timezone.utc)
        cached = self._cached(url, now)
        if cached is not None:
            _log.debug("Upstream cache hit for %s", url)
            return cached

        try:
            with httpx.Client(
                timeout=self._timeout_seconds,
                follow_redirects=True,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                resp = client.get(url)
                text = resp.text
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamFetchError(str(e) or e.__class__.__name__) from e

        if not resp.is_success:
            raise UpstreamError(resp.status_code)

        response = UpstreamResponse(
            url=url,
            status_code=resp.status_code,
            content_type=resp.headers.get("content-type", ""),
            text=text,
        )
        self._store(response, now)
        return response


_fetcher: UpstreamFetcher | None = None
_fetcher_lock = Lock()


def get_upstream_fetcher() -> UpstreamFetcher:
    global _fetcher
    with _fetcher_lock:
        if _fetcher is None:
            _fetcher = UpstreamFetcher()
        return _fetcher
