from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Union

from feedproxy.schemas import ErrorOut, FeedItemOut, JsonFeedOut, RssFeedOut
from feedproxy.services.feed_normalizer import FeedParseError, ParsedFeed, normalize_feed
from feedproxy.services.xml_tree import parse_xml

PARSE_FAILURE_HINT = "Make sure the URL is RSS/Atom XML or JSON."


def _reject_constant(value: str) -> Any:
    raise ValueError(f"Invalid JSON constant: {value}")


@dataclass(frozen=True)
class JsonPassthrough:
    source: str
    data: Any
    type: str = "json"
    status_code: int = 200

    def to_payload(self) -> dict[str, Any]:
        # None values inside the upstream document are kept, so no exclude_none here.
        return JsonFeedOut(source=self.source, data=self.data).model_dump()


@dataclass(frozen=True)
class FeedResult:
    source: str
    feed: ParsedFeed
    type: str = "rss"
    status_code: int = 200

    def to_payload(self) -> dict[str, Any]:
        body = RssFeedOut(
            source=self.source,
            feed_title=self.feed.feed_title,
            feed_link=self.feed.feed_link,
            items=[
                FeedItemOut(
                    title=item.title,
                    link=item.link,
                    published_at=item.published_at,
                    summary=item.summary,
                )
                for item in self.feed.items
            ],
        )
        return body.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class ParseFailure:
    details: str
    status_code: int = 400

    def to_payload(self) -> dict[str, Any]:
        body = ErrorOut(error="Could not parse feed", hint=PARSE_FAILURE_HINT, details=self.details)
        return body.model_dump(exclude_none=True)


DispatchResult = Union[JsonPassthrough, FeedResult, ParseFailure]


def _looks_like_json(content_type: str, body_text: str) -> bool:
    if "application/json" in (content_type or "").lower():
        return True
    return body_text.strip().startswith(("{", "["))


def dispatch(url: str, content_type: str | None, body_text: str) -> DispatchResult:
    """Turn an already-fetched upstream body into a tagged result.

    JSON bodies (by declared type or by their first character) are passed
    through untouched. A body that only looks like JSON but does not parse
    is retried as XML, so a mislabeled feed still normalizes.
    """
    body_text = body_text or ""
    if _looks_like_json(content_type or "", body_text):
        try:
            data = json.loads(body_text, parse_constant=_reject_constant)
        except ValueError:
            pass
        else:
            return JsonPassthrough(source=url, data=data)

    try:
        feed = normalize_feed(parse_xml(body_text))
    except FeedParseError as e:
        return ParseFailure(details=str(e))
    return FeedResult(source=url, feed=feed)
