from datetime import date, datetime

from kindle_to_anki.filters import filter_since
from kindle_to_anki.parser import Clipping, ClippingKind


def clipping(day, hour=12, minute=0, content=None):
    return Clipping(
        title="Book (Author)"
        ,content=content or f"highlight from {day}"
        ,location="Location 1"
        ,date=datetime(2022, 3, day, hour, minute)
        ,kind=ClippingKind.HIGHLIGHT
    )


def test_cutoff_keeps_only_later_entries():
    early, late = clipping(10), clipping(20)

    assert filter_since([early, late], datetime(2022, 3, 14)) == [late]


def test_cutoff_is_inclusive_from_midnight():
    before = clipping(13, hour=23, minute=59)
    at_midnight = clipping(14, hour=0)

    assert filter_since([before, at_midnight], datetime(2022, 3, 14)) == [at_midnight]


def test_no_cutoff_keeps_everything():
    items = [clipping(20), clipping(10)]

    assert filter_since(items, None) == items


def test_partition_and_idempotence():
    items = [clipping(day) for day in (1, 5, 14, 15, 28, 3)]
    cutoff = datetime(2022, 3, 14)

    kept = filter_since(items, cutoff)

    assert all(c.date >= cutoff for c in kept)
    assert all(c.date < cutoff for c in items if c not in kept)
    assert [c.date.day for c in kept] == [14, 15, 28]
    assert filter_since(kept, cutoff) == kept


def test_no_match_is_empty_not_error():
    assert filter_since([clipping(1)], datetime(2023, 1, 1)) == []


def test_plain_date_cutoff():
    assert filter_since([clipping(10), clipping(20)], date(2022, 3, 14)) == [clipping(20)]
