#!/usr/bin/env python3
"""Quick smoke test for the news feed.

Usage (from repo root):
  NEWS_API_KEY=... python scripts/smoke_test_feed.py --limit 3

This script performs a live HTTP request and does not touch the database.
"""

from __future__ import annotations

import argparse

from civicwatch.config import Settings
from civicwatch.errors import FetchError, ValidationError
from civicwatch.models import parse_raw_item
from civicwatch.news_feed import FeedConfig, NewsFeedClient


def main() -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument("--limit", type=int, default=3, help="How many items to print")
    args = ap.parse_args()

    cfg = FeedConfig.from_settings(Settings())
    print(f"Feed: {cfg.url} category={cfg.category} country={cfg.country}")

    client = NewsFeedClient(cfg)
    try:
        items = client.fetch()
    except FetchError as e:
        print(f"[ERROR] {e}")
        return 1
    finally:
        client.close()
    print(f"Fetched items: {len(items)}")

    invalid = 0
    for i, raw in enumerate(items, 1):
        try:
            rec = parse_raw_item(raw)
        except ValidationError as e:
            invalid += 1
            print(f"[WARN] {e}")
            continue
        if i <= args.limit:
            print("\n---")
            print(f"#{i}: {rec.title}")
            print(rec.url)
            print(f"published={rec.published.isoformat()} image={rec.image!r} category={rec.category}")

    if invalid:
        print(f"\n[WARN] {invalid} item(s) failed validation")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
