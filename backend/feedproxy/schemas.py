from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class HealthOut(BaseModel):
    ok: bool = True


class ErrorOut(BaseModel):
    error: str
    hint: Optional[str] = None
    details: Optional[str] = None


class FeedItemOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    link: Optional[str] = None
    published_at: Optional[str] = Field(None, alias="pubDate")
    summary: Optional[str] = None


class RssFeedOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: str
    type: Literal["rss"] = "rss"
    feed_title: Optional[str] = Field(None, alias="feedTitle")
    feed_link: Optional[str] = Field(None, alias="feedLink")
    items: list[FeedItemOut] = Field(default_factory=list)


class JsonFeedOut(BaseModel):
    source: str
    type: Literal["json"] = "json"
    data: Any = None
