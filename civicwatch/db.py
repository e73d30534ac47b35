import sqlite3
from contextlib import contextmanager

SCHEMA_CORE = '''
CREATE TABLE IF NOT EXISTS news (
  id TEXT PRIMARY KEY,
  title TEXT NOT NULL,
  description TEXT NOT NULL DEFAULT '',
  url TEXT NOT NULL,
  author TEXT NOT NULL DEFAULT '',
  image TEXT,
  language TEXT NOT NULL DEFAULT '',
  category TEXT NOT NULL DEFAULT '[]',
  published TEXT NOT NULL,
  fetched_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_news_published ON news(published);
CREATE TABLE IF NOT EXISTS users (
  id INTEGER PRIMARY KEY AUTOINCREMENT,
  email TEXT NOT NULL UNIQUE,
  password_hash TEXT NOT NULL,
  created_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS votes (
  state TEXT PRIMARY KEY,
  party_a INTEGER NOT NULL DEFAULT 0,
  party_b INTEGER NOT NULL DEFAULT 0
);
'''


def _apply_pragmas(con: sqlite3.Connection):
    con.execute("PRAGMA journal_mode=WAL;")
    con.execute("PRAGMA synchronous=NORMAL;")
    con.execute("PRAGMA busy_timeout=30000;")
    con.execute("PRAGMA temp_store=MEMORY;")


def init_db(db_path: str):
    with sqlite3.connect(db_path, timeout=30) as con:
        _apply_pragmas(con)
        con.executescript(SCHEMA_CORE)
        con.commit()


@contextmanager
def connect(db_path: str):
    con = sqlite3.connect(db_path, timeout=30, check_same_thread=False)
    con.row_factory = sqlite3.Row
    _apply_pragmas(con)
    try:
        yield con
    finally:
        con.close()
