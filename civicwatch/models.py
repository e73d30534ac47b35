"""News record model and normalization of raw feed items.

The feed returns loosely typed JSON. Everything downstream of `parse_raw_item`
works with a validated `NewsRecord`; the raw dict never reaches the store.
"""

from __future__ import annotations

import datetime as dt
import json
from typing import Any, Dict, List, Optional

import pydantic
from dateutil import parser as dtparser
from pydantic import BaseModel, field_validator

from .errors import ValidationError

# Raw JSON object as returned by the feed (keys follow the feed's naming).
RawItem = Dict[str, Any]

# The feed reports "no image" with this literal string instead of null.
IMAGE_NONE_SENTINEL = "None"


class NewsRecord(BaseModel):
    id: str
    title: str
    description: str = ""
    url: str
    author: str = ""
    image: Optional[str] = None
    language: str = ""
    category: List[str] = []
    published: dt.datetime

    @field_validator("id", "title", "url")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("description", "author", "language", mode="before")
    @classmethod
    def _null_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("image", mode="before")
    @classmethod
    def _normalize_image(cls, v: Any) -> Any:
        if v is None or v == IMAGE_NONE_SENTINEL or v == "":
            return None
        return v

    @field_validator("category", mode="before")
    @classmethod
    def _normalize_category(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("published", mode="before")
    @classmethod
    def _parse_published(cls, v: Any) -> Any:
        # Feed format is "2024-01-03 10:15:00 +0000"; ISO-8601 is accepted too.
        if isinstance(v, str):
            try:
                return dtparser.parse(v)
            except (ValueError, OverflowError) as e:
                raise ValueError(f"unparseable timestamp {v!r}") from e
        return v

    @field_validator("published")
    @classmethod
    def _to_utc(cls, v: dt.datetime) -> dt.datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=dt.timezone.utc)
        return v.astimezone(dt.timezone.utc)

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "author": self.author,
            "image": self.image,
            "language": self.language,
            "category": json.dumps(self.category, ensure_ascii=False),
            "published": self.published.isoformat(),
        }

    @classmethod
    def from_row(cls, row: Any) -> "NewsRecord":
        d = dict(row)
        d.pop("fetched_at", None)
        d["category"] = json.loads(d.get("category") or "[]")
        return cls(**d)


def parse_raw_item(raw: RawItem) -> NewsRecord:
    """Validate and normalize one feed item, raising ValidationError on bad shape."""
    if not isinstance(raw, dict):
        raise ValidationError(f"expected an object, got {type(raw).__name__}")
    item_id = raw.get("id")
    try:
        return NewsRecord.model_validate(raw)
    except pydantic.ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ValidationError(
            f"invalid news item {item_id!r}: {fields}",
            item_id=str(item_id) if item_id is not None else None,
        ) from e
