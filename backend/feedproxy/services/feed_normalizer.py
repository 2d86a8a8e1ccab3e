from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Sequence

MAX_FEED_ITEMS = 50


class FeedParseError(ValueError):
    """Raised when a document is neither RSS nor Atom, or is not XML at all."""


class XmlNode(Protocol):
    def elements_by_tag_name(self, name: str) -> Sequence["XmlNode"]: ...

    def text_content(self) -> str: ...

    def get_attribute(self, name: str) -> str | None: ...


@dataclass(frozen=True)
class FeedItem:
    title: str | None = None
    link: str | None = None
    published_at: str | None = None
    summary: str | None = None


@dataclass(frozen=True)
class ParsedFeed:
    feed_title: str | None = None
    feed_link: str | None = None
    items: list[FeedItem] = field(default_factory=list)


def _first(node: XmlNode, name: str) -> XmlNode | None:
    found = node.elements_by_tag_name(name)
    return found[0] if found else None


def _text_of(node: XmlNode | None) -> str | None:
    if node is None:
        return None
    text = (node.text_content() or "").strip()
    return text or None


def _child_text(node: XmlNode, name: str) -> str | None:
    return _text_of(_first(node, name))


def _atom_entry_link(entry: XmlNode) -> str | None:
    links = entry.elements_by_tag_name("link")
    for link in links:
        rel = (link.get_attribute("rel") or "").lower()
        href = link.get_attribute("href") or ""
        if href and (not rel or rel == "alternate"):
            return href
    if not links:
        return None
    return links[0].get_attribute("href") or None


def _normalize_rss(document: XmlNode, channel: XmlNode) -> ParsedFeed:
    items = [
        FeedItem(
            title=_child_text(item, "title"),
            link=_child_text(item, "link"),
            published_at=_child_text(item, "pubDate"),
            summary=_child_text(item, "description") or _child_text(item, "content:encoded"),
        )
        # Items are matched document-wide, not only under the channel.
        for item in list(document.elements_by_tag_name("item"))[:MAX_FEED_ITEMS]
    ]
    return ParsedFeed(
        feed_title=_child_text(channel, "title"),
        feed_link=_child_text(channel, "link"),
        items=items,
    )


def _normalize_atom(feed: XmlNode) -> ParsedFeed:
    feed_link = _first(feed, "link")
    items = [
        FeedItem(
            title=_child_text(entry, "title"),
            link=_atom_entry_link(entry),
            published_at=_child_text(entry, "updated") or _child_text(entry, "published"),
            summary=_child_text(entry, "summary") or _child_text(entry, "content"),
        )
        for entry in list(feed.elements_by_tag_name("entry"))[:MAX_FEED_ITEMS]
    ]
    return ParsedFeed(
        feed_title=_child_text(feed, "title"),
        feed_link=(feed_link.get_attribute("href") or None) if feed_link is not None else None,
        items=items,
    )


def normalize_feed(document: XmlNode) -> ParsedFeed:
    """Map an RSS 2.0 or Atom document onto a single feed shape.

    ``document`` is the document-level node, so its ``elements_by_tag_name``
    includes the root element. When both a ``channel`` and a ``feed`` element
    are present the RSS reading is used.
    """
    channel = _first(document, "channel")
    if channel is not None:
        return _normalize_rss(document, channel)

    feed = _first(document, "feed")
    if feed is not None:
        return _normalize_atom(feed)

    raise FeedParseError("Not RSS or Atom")
