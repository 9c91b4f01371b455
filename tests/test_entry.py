import math

from rankboard.entry import Entry


def test_more_points_ranks_higher():
    low = Entry(key=1, points=5.0, timestamp=1.0)
    high = Entry(key=2, points=10.0, timestamp=2.0)
    assert high > low
    assert low < high
    assert not high < low


def test_earlier_timestamp_wins_tie():
    early = Entry(key=1, points=5.0, timestamp=1.0)
    late = Entry(key=2, points=5.0, timestamp=2.0)
    assert early > late
    assert late <= early


def test_smaller_key_wins_full_tie():
    small = Entry(key=1, points=5.0, timestamp=1.0)
    big = Entry(key=2, points=5.0, timestamp=1.0)
    assert small > big
    assert big < small


def test_equal_entries():
    a = Entry(key=7, points=3.0, timestamp=4.0)
    b = Entry(key=7, points=3.0, timestamp=4.0)
    assert a == b
    assert a <= b and a >= b
    assert hash(a) == hash(b)


def test_nan_points_fall_through_to_timestamp():
    early = Entry(key=1, points=math.nan, timestamp=1.0)
    late = Entry(key=2, points=3.0, timestamp=2.0)
    assert early > late


def test_sort_key_matches_comparisons():
    entries = [
        Entry(key=3, points=1.0, timestamp=1.0),
        Entry(key=1, points=9.0, timestamp=5.0),
        Entry(key=2, points=9.0, timestamp=2.0),
        Entry(key=4, points=4.0, timestamp=3.0),
    ]
    ordered = sorted(entries, key=Entry.sort_key)
    assert [e.key for e in ordered] == [3, 4, 1, 2]
    assert all(a < b for a, b in zip(ordered, ordered[1:]))


def test_to_dict_field_order_and_values():
    entry = Entry(key=42, points=1.5, timestamp=100.0)
    data = entry.to_dict()
    assert list(data) == ["timestamp", "points", "key"]
    assert data == {"timestamp": 100.0, "points": 1.5, "key": 42}


def test_default_entry_equals_zeroed_entry():
    assert Entry() == Entry(key=0, points=0.0, timestamp=0.0)
    assert Entry().to_dict()["timestamp"] == 0.0