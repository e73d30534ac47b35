from __future__ import annotations

from typing import Any, Dict, List

import pytest

from civicwatch.db import init_db
from civicwatch.news_store import NewsStore


def make_item(item_id: str, **overrides: Any) -> Dict[str, Any]:
    item = {
        "id": item_id,
        "title": f"Headline {item_id}",
        "description": "Senate debates the budget",
        "url": f"https://news.example.com/{item_id}",
        "author": "Staff",
        "image": f"https://img.example.com/{item_id}.jpg",
        "language": "en",
        "category": ["politics"],
        "published": "2024-01-01 12:00:00 +0000",
    }
    item.update(overrides)
    return item


class FakeFetcher:
    def __init__(self, items: List[Dict[str, Any]] | None = None, error: Exception | None = None):
        self.items = list(items or [])
        self.error = error
        self.calls = 0

    def fetch(self) -> List[Dict[str, Any]]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.items)


@pytest.fixture
def db_path(tmp_path) -> str:
    p = str(tmp_path / "civicwatch.db")
    init_db(p)
    return p


@pytest.fixture
def store(db_path) -> NewsStore:
    return NewsStore(db_path)
