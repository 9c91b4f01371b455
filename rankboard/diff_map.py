"""A dictionary that can be snapshotted while writes continue."""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Any, Dict, Hashable, Mapping, Optional

_REMOVED = object()


class DiffMap:
    """A mapping whose base can be frozen for reading by snapshots.

    While any snapshot is held, writes are recorded in a pending diff and
    the base mapping stays unchanged. When the last snapshot is released
    the diff is applied to the base.
    """

    def __init__(self, mapping: Optional[Mapping] = None) -> None:
        self._lock = threading.RLock()
        self._base: Dict[Hashable, Any] = dict(mapping) if mapping is not None else {}
        self._diff: Dict[Hashable, Any] = {}
        self._cleared = False
        self._borrows = 0

    def __repr__(self) -> str:
        return f"DiffMap(borrows={self._borrows}, pending={len(self._diff)})"

    def get(self, key: Hashable) -> Any:
        """Return the current value for key, or None if absent."""
        with self._lock:
            if key in self._diff:
                value = self._diff[key]
                return None if value is _REMOVED else value
            if self._cleared:
                return None
            return self._base.get(key)

    def insert(self, key: Hashable, value: Any) -> Any:
        """Set key to value and return the previous value, or None."""
        with self._lock:
            if self._borrows == 0:
                previous = self._base.get(key)
                self._base[key] = value
                return previous
            previous = self._diff.get(key, _REMOVED)
            had_diff = key in self._diff
            self._diff[key] = value
            if had_diff:
                return None if previous is _REMOVED else previous
            if self._cleared:
                return None
            return self._base.get(key)

    def remove(self, key: Hashable) -> Any:
        """Remove key and return its value, or None if it was absent."""
        with self._lock:
            if self._borrows == 0:
                return self._base.pop(key, None)
            if key in self._base:
                had_diff = key in self._diff
                previous = self._diff.get(key)
                self._diff[key] = _REMOVED
                if had_diff:
                    return None if previous is _REMOVED else previous
                if self._cleared:
                    return None
                return self._base[key]
            previous = self._diff.pop(key, None)
            return None if previous is _REMOVED else previous

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            if key in self._diff:
                return self._diff[key] is not _REMOVED
            return not self._cleared and key in self._base

    def clear(self) -> None:
        with self._lock:
            if self._borrows == 0:
                self._base.clear()
            else:
                self._cleared = True
                self._diff.clear()

    def snapshot(self) -> "SnapshotBorrow":
        """Freeze the base mapping until the returned snapshot is released."""
        with self._lock:
            self._borrows += 1
        return SnapshotBorrow(self)

    def is_borrowed(self) -> bool:
        with self._lock:
            return self._borrows > 0

    def _release(self) -> None:
        with self._lock:
            if self._borrows == 1:
                if self._cleared:
                    self._base.clear()
                    self._cleared = False
                for key, value in self._diff.items():
                    if value is _REMOVED:
                        self._base.pop(key, None)
                    else:
                        self._base[key] = value
                self._diff.clear()
            self._borrows -= 1


class SnapshotBorrow:
    """A read-only view of a DiffMap's base, frozen until released."""

    def __init__(self, diff_map: DiffMap) -> None:
        self._diff_map = diff_map
        self._released = False

    def __enter__(self) -> "SnapshotBorrow":
        return self

    def __exit__(self, *args: Any) -> None:
        self.release()

    def view(self) -> Mapping:
        """Return a read-only mapping of the frozen contents."""
        if self._released:
            raise RuntimeError("snapshot has already been released")
        return MappingProxyType(self._diff_map._base)

    def release(self) -> None:
        """Give the snapshot back; the last release applies pending writes."""
        if self._released:
            return
        self._released = True
        self._diff_map._release()