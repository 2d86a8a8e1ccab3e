from __future__ import annotations

import logging
from typing import Union

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from feedproxy.schemas import ErrorOut, JsonFeedOut, RssFeedOut
from feedproxy.services.dispatcher import dispatch
from feedproxy.services.upstream import UpstreamError, UpstreamFetcher, UpstreamFetchError, get_upstream_fetcher
from feedproxy.services.url_guard import check_url
from feedproxy.settings import settings

router = APIRouter(tags=["feeds"])
_log = logging.getLogger(__name__)


def _error(status_code: int, error: str, *, details: str | None = None) -> JSONResponse:
    body = ErrorOut(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@router.get(
    "/rss",
    responses={
        200: {"model": Union[RssFeedOut, JsonFeedOut]},
        400: {"model": ErrorOut},
        502: {"model": ErrorOut},
    },
)
def read_feed(url: str | None = None, fetcher: UpstreamFetcher = Depends(get_upstream_fetcher)):
    if not url:
        return _error(400, "Missing ?url=")

    decision = check_url(url)
    if not decision.allowed:
        _log.info("Refused feed url %s: %s", url, decision.reason)
        return _error(400, decision.reason or "URL blocked")

    try:
        upstream = fetcher.fetch(url)
    except UpstreamError as e:
        _log.warning("Upstream %s answered %s", url, e.status_code)
        return _error(502, str(e))
    except UpstreamFetchError as e:
        _log.warning("Upstream %s unreachable: %s", url, e)
        return _error(502, "Upstream fetch failed", details=str(e))

    result = dispatch(url, upstream.content_type, upstream.text)
    headers = None
    if result.status_code == 200:
        headers = {"Cache-Control": f"public, max-age={settings.cache_max_age_seconds}"}
    return JSONResponse(status_code=result.status_code, content=result.to_payload(), headers=headers)
