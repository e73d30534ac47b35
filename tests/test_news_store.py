from __future__ import annotations

import sqlite3

import pytest

from civicwatch.errors import StorageError
from civicwatch.models import parse_raw_item
from civicwatch.news_store import NewsStore, UpsertResult

from .conftest import make_item


def test_upsert_is_idempotent_and_first_write_wins(store):
    first = parse_raw_item(make_item("a1", title="Original title"))
    results = [store.upsert_if_absent(first)]
    for n in range(3):
        results.append(store.upsert_if_absent(parse_raw_item(make_item("a1", title=f"Rewrite {n}", image="None"))))

    assert results == [UpsertResult.INSERTED] + [UpsertResult.ALREADY_PRESENT] * 3
    stored = store.list_news()
    assert len(stored) == 1
    assert stored[0] == first


def test_store_never_holds_duplicate_ids(store, db_path):
    for item_id in ["a1", "a2", "a1", "a3", "a2"]:
        store.upsert_if_absent(parse_raw_item(make_item(item_id)))

    with sqlite3.connect(db_path) as con:
        rows = con.execute("SELECT id, COUNT(*) FROM news GROUP BY id HAVING COUNT(*) > 1").fetchall()
    assert rows == []
    assert store.count() == 3


def test_list_news_is_newest_first(store):
    for item_id, day in [("a", "2024-01-03"), ("b", "2024-01-01"), ("c", "2024-01-02")]:
        store.upsert_if_absent(parse_raw_item(make_item(item_id, published=f"{day} 09:00:00 +0000")))

    days = [r.published.date().isoformat() for r in store.list_news()]
    assert days == ["2024-01-03", "2024-01-02", "2024-01-01"]


def test_equal_published_ties_break_by_id(store):
    for item_id in ["c", "a", "b"]:
        store.upsert_if_absent(parse_raw_item(make_item(item_id, published="2024-01-01 09:00:00 +0000")))

    assert [r.id for r in store.list_news()] == ["a", "b", "c"]


def test_ordering_uses_utc_instant_not_local_text(store):
    # 08:00 -0500 is 13:00 UTC, later than 12:00 UTC.
    store.upsert_if_absent(parse_raw_item(make_item("utc", published="2024-01-01 12:00:00 +0000")))
    store.upsert_if_absent(parse_raw_item(make_item("est", published="2024-01-01 08:00:00 -0500")))

    assert [r.id for r in store.list_news()] == ["est", "utc"]


def test_missing_table_is_a_storage_error(tmp_path):
    store = NewsStore(str(tmp_path / "empty.db"))
    with pytest.raises(StorageError):
        store.list_news()
    with pytest.raises(StorageError):
        store.upsert_if_absent(parse_raw_item(make_item("a1")))
