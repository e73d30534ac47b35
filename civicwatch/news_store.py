from __future__ import annotations

import datetime as dt
import enum
import sqlite3
from contextlib import contextmanager
from typing import Iterator, List, Optional

from .db import connect
from .errors import StorageError
from .models import NewsRecord


class UpsertResult(str, enum.Enum):
    INSERTED = "inserted"
    ALREADY_PRESENT = "already-present"


_INSERT_IF_ABSENT = """
INSERT INTO news (id, title, description, url, author, image, language, category, published, fetched_at)
VALUES (:id, :title, :description, :url, :author, :image, :language, :category, :published, :fetched_at)
ON CONFLICT(id) DO NOTHING
"""


class NewsStore:
    """Insert-only news storage keyed by the feed's own item id."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def session(self) -> Iterator[sqlite3.Connection]:
        try:
            with connect(self.db_path) as con:
                yield con
        except sqlite3.Error as e:
            raise StorageError(f"storage unavailable: {e}") from e

    def upsert_if_absent(self, record: NewsRecord, con: Optional[sqlite3.Connection] = None) -> UpsertResult:
        """Store `record` unless its id is already present. Never overwrites.

        With an explicit connection the caller owns the commit.
        """
        row = record.to_row()
        row["fetched_at"] = dt.datetime.now(dt.timezone.utc).replace(microsecond=0).isoformat()
        if con is None:
            with self.session() as own:
                result = self._insert(own, row)
                own.commit()
                return result
        return self._insert(con, row)

    def _insert(self, con: sqlite3.Connection, row: dict) -> UpsertResult:
        try:
            cur = con.execute(_INSERT_IF_ABSENT, row)
        except sqlite3.Error as e:
            raise StorageError(f"insert failed for id={row.get('id')!r}: {e}") from e
        return UpsertResult.INSERTED if cur.rowcount == 1 else UpsertResult.ALREADY_PRESENT

    def list_news(self) -> List[NewsRecord]:
        with self.session() as con:
            try:
                rows = con.execute(
                    """
                    SELECT id, title, description, url, author, image, language, category, published
                    FROM news
                    ORDER BY published DESC, id ASC
                    """
                ).fetchall()
            except sqlite3.Error as e:
                raise StorageError(f"news query failed: {e}") from e
        return [NewsRecord.from_row(r) for r in rows]

    def count(self) -> int:
        with self.session() as con:
            return int(con.execute("SELECT COUNT(*) FROM news").fetchone()[0])
