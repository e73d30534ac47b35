from __future__ import annotations

import datetime as dt

import pytest

from civicwatch.errors import ValidationError
from civicwatch.models import NewsRecord, parse_raw_item

from .conftest import make_item


def test_image_none_sentinel_becomes_null():
    rec = parse_raw_item(make_item("a1", image="None"))
    assert rec.image is None


@pytest.mark.parametrize("image", ["https://img.example.com/x.png", "none", "NONE ", "data:image/png;base64,AAA"])
def test_other_image_values_kept_verbatim(image):
    rec = parse_raw_item(make_item("a1", image=image))
    assert rec.image == image


def test_feed_timestamp_is_parsed_to_utc():
    rec = parse_raw_item(make_item("a1", published="2024-01-03 10:15:00 -0500"))
    assert rec.published == dt.datetime(2024, 1, 3, 15, 15, tzinfo=dt.timezone.utc)


def test_naive_timestamp_is_taken_as_utc():
    rec = parse_raw_item(make_item("a1", published="2024-01-03T10:15:00"))
    assert rec.published.tzinfo is not None
    assert rec.published.hour == 10


def test_single_category_string_is_wrapped():
    rec = parse_raw_item(make_item("a1", category="politics"))
    assert rec.category == ["politics"]


def test_null_optional_text_fields_become_empty():
    rec = parse_raw_item(make_item("a1", author=None, description=None))
    assert rec.author == ""
    assert rec.description == ""


@pytest.mark.parametrize(
    "overrides",
    [
        {"id": ""},
        {"id": None},
        {"title": "   "},
        {"url": None},
        {"published": "not a date"},
        {"category": 42},
    ],
)
def test_malformed_items_raise_validation_error(overrides):
    with pytest.raises(ValidationError):
        parse_raw_item(make_item("a1", **overrides))


def test_non_object_item_is_rejected():
    with pytest.raises(ValidationError):
        parse_raw_item(["not", "a", "dict"])  # type: ignore[arg-type]


def test_row_conversion_keeps_fields():
    rec = parse_raw_item(make_item("a1", category=["politics", "us"]))
    row = dict(rec.to_row())
    row["fetched_at"] = "2024-01-01T00:00:00+00:00"
    assert NewsRecord.from_row(row) == rec
