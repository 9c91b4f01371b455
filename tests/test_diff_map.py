import pytest

from rankboard.diff_map import DiffMap


def test_basic_insert_get_remove():
    m = DiffMap()
    assert m.insert("a", 1) is None
    assert m.get("a") == 1
    assert "a" in m
    assert m.insert("a", 2) == 1
    assert m.remove("a") == 2
    assert "a" not in m
    assert m.get("a") is None
    assert m.remove("a") is None


def test_initial_mapping_is_copied():
    source = {"x": 5}
    m = DiffMap(source)
    m.insert("y", 6)
    assert "y" not in source
    assert m.get("x") == 5


def test_snapshot_is_frozen_while_writes_continue():
    m = DiffMap({"a": 1, "b": 2})
    snap = m.snapshot()
    assert m.is_borrowed()
    m.insert("c", 3)
    m.insert("a", 10)
    m.remove("b")
    assert dict(snap.view()) == {"a": 1, "b": 2}
    assert m.get("a") == 10
    assert m.get("c") == 3
    assert "b" not in m
    snap.release()
    assert not m.is_borrowed()
    with m.snapshot() as again:
        assert dict(again.view()) == {"a": 10, "c": 3}


def test_insert_during_snapshot_returns_previous():
    m = DiffMap({"a": 1})
    with m.snapshot():
        assert m.insert("a", 2) == 1
        assert m.insert("a", 3) == 2
        assert m.insert("new", 4) is None


def test_remove_during_snapshot_returns_previous():
    m = DiffMap({"a": 1})
    with m.snapshot():
        assert m.remove("a") == 1
        assert m.remove("a") is None
        m.insert("b", 7)
        assert m.remove("b") == 7
        assert "b" not in m
    with m.snapshot() as snap:
        assert dict(snap.view()) == {}


def test_clear_during_snapshot():
    m = DiffMap({"a": 1, "b": 2})
    with m.snapshot() as snap:
        m.clear()
        assert "a" not in m
        assert m.get("b") is None
        assert m.insert("a", 5) is None
        assert dict(snap.view()) == {"a": 1, "b": 2}
    with m.snapshot() as snap:
        assert dict(snap.view()) == {"a": 5}


def test_nested_snapshots_merge_on_last_release():
    m = DiffMap({"a": 1})
    first = m.snapshot()
    second = m.snapshot()
    m.insert("b", 2)
    first.release()
    assert m.is_borrowed()
    assert "b" not in second.view()
    second.release()
    assert not m.is_borrowed()
    with m.snapshot() as snap:
        assert snap.view()["b"] == 2


def test_release_is_idempotent():
    m = DiffMap()
    outer = m.snapshot()
    inner = m.snapshot()
    inner.release()
    inner.release()
    assert m.is_borrowed()
    outer.release()
    assert not m.is_borrowed()


def test_view_after_release_raises():
    m = DiffMap({"a": 1})
    snap = m.snapshot()
    snap.release()
    with pytest.raises(RuntimeError):
        snap.view()


def test_view_is_read_only():
    m = DiffMap({"a": 1})
    with m.snapshot() as snap:
        with pytest.raises(TypeError):
            snap.view()["a"] = 2


def test_clear_without_snapshot():
    m = DiffMap({"a": 1})
    m.clear()
    assert "a" not in m
    with m.snapshot() as snap:
        assert len(snap.view()) == 0