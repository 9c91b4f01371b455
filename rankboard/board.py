"""A leaderboard: entries ranked by points, looked up by key."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Tuple

from rankboard.codec import decode_entry_map, encode_entry_map
from rankboard.cursor import Cursor
from rankboard.diff_map import DiffMap, SnapshotBorrow
from rankboard.entry import Entry
from rankboard.tree import Tree

Ranked = List[Tuple[int, Entry]]


class SizeCapError(ValueError):
    """Raised when an entry ranks too low to fit within the size cap."""


@dataclass
class _EdgeCache:
    entries: Optional[Ranked] = None
    stamp: float = field(default_factory=time.monotonic)
    requested: bool = False

    def expired(self, expire_secs: float) -> bool:
        return time.monotonic() - self.stamp > expire_secs


def _collect(cursor: Cursor, step: Callable[[Cursor], Any], count: int) -> Ranked:
    """Step the cursor up to count times, gathering (rank, entry) pairs."""
    result: Ranked = []
    for _ in range(count):
        step(cursor)
        if cursor.is_at_end():
            break
        result.append((cursor.index() + 1, cursor.value()))
    return result


class Board:
    """Entries kept both by key and in ranking order; rank 1 is the best."""

    def __init__(self) -> None:
        self._tree = Tree()
        self._map = DiffMap()
        self._size_cap: Optional[int] = None
        self._top_cache = _EdgeCache()
        self._bottom_cache = _EdgeCache()

    def __repr__(self) -> str:
        return f"Board(size={len(self)}, size_cap={self._size_cap})"

    # --------------------------------------------------------------- lookups

    def get_entry(self, key: Hashable) -> Optional[Entry]:
        return self._map.get(key)

    def get_entry_and_rank(self, key: Hashable) -> Optional[Tuple[int, Entry]]:
        entry = self._map.get(key)
        if entry is None:
            return None
        return self._tree.index_of(entry)[0] + 1, entry

    def rank(self, key: Hashable) -> Optional[int]:
        entry = self._map.get(key)
        if entry is None:
            return None
        return self._tree.index_of(entry)[0] + 1

    def at_rank(self, rank: int) -> Optional[Entry]:
        if rank < 1:
            raise ValueError("rank must be at least 1")
        return self._tree.at_index(rank - 1)

    def __len__(self) -> int:
        return len(self._tree)

    def ids(self) -> List[Hashable]:
        """Return every key, from the lowest ranked to the highest."""
        return [entry.key for entry in self._tree]

    def min_points(self) -> Any:
        """Return the lowest points on the board, or None when empty."""
        cursor = self._tree.cursor()
        cursor.move_next()
        return None if cursor.is_at_end() else cursor.value().points

    def tree_copy(self) -> Tree:
        return self._tree.copy()

    def map_snapshot(self) -> SnapshotBorrow:
        """Freeze the key map for reading; writes wait until it is released."""
        return self._map.snapshot()

    def is_map_snapshotted(self) -> bool:
        return self._map.is_borrowed()

    # ---------------------------------------------------------------- writes

    def add_entry(self, entry: Entry) -> bool:
        """Add a new entry; return False if its key is already present.

        Raises SizeCapError when the board is full and the entry would not
        rank within the cap. If adding pushes the board past its cap, the
        lowest entry is dropped.
        """
        if entry.key in self._map:
            return False

        if (
            self._size_cap is not None
            and self.is_at_size_cap()
            and self._tree.index_of(entry)[0] >= self._size_cap
        ):
            raise SizeCapError("Too low rank to fall into the size cap.")

        self._tree.insert(entry)
        self._map.insert(entry.key, entry)

        if self.is_past_size_cap():
            dropped = self._tree.cursor_mut().delete_next()
            self._map.remove(dropped.key)
        return True

    def update_entry(self, key: Hashable, points: Any) -> bool:
        """Set a key's points, adding the key if needed.

        A changed score gets the current time as its timestamp.
        """
        old = self._map.get(key)
        if old is None:
            self.add_entry(Entry(key=key, points=points, timestamp=time.time()))
            return True
        if old.points == points:
            return True
        new = Entry(key=key, points=points, timestamp=time.time())
        self._tree.replace(old, new)
        self._map.insert(key, new)
        return True

    def remove_entry(self, key: Hashable) -> Optional[Entry]:
        entry = self._map.remove(key)
        if entry is None:
            return None
        self._tree.remove(entry)
        return entry

    def clear(self) -> None:
        self._tree.clear()
        self._map.clear()

    # -------------------------------------------------------------- size cap

    def set_size_cap(self, cap: int) -> None:
        self._size_cap = cap

    def remove_size_cap(self) -> None:
        self._size_cap = None

    def size_cap(self) -> Optional[int]:
        return self._size_cap

    def is_at_size_cap(self) -> bool:
        return self._size_cap is not None and self._size_cap <= len(self)

    def is_past_size_cap(self) -> bool:
        return self._size_cap is not None and self._size_cap < len(self)

    def trim_after_cap(self) -> None:
        """Drop the lowest entries until the board fits its cap."""
        if self._size_cap is None:
            return
        cursor = self._tree.cursor_mut()
        while self._size_cap < len(self._tree):
            dropped = cursor.delete_next()
            self._map.remove(dropped.key)

    # ----------------------------------------------------------- edge lists

    @staticmethod
    def _cached(
        cache: _EdgeCache,
        count: int,
        no_cache: bool,
        expire_secs: float,
        compute: Callable[[int], Ranked],
    ) -> Ranked:
        cache.requested = cache.requested or not no_cache
        unusable = (
            cache.entries is None or count > len(cache.entries) or cache.expired(expire_secs)
        )
        if no_cache or unusable:
            result = compute(count)
            if cache.requested and unusable:
                cache.entries = list(result)
                cache.stamp = time.monotonic()
            return result
        return cache.entries[:count]

    def top(self, count: int, no_cache: bool, expire_secs: float) -> Ranked:
        """Return the best count entries with their ranks, cached once asked for."""
        return self._cached(self._top_cache, count, no_cache, expire_secs, self.top_cacheless)

    def top_cacheless(self, count: int) -> Ranked:
        return _collect(self._tree.cursor(), Cursor.move_prev, count)

    def bottom(self, count: int, no_cache: bool, expire_secs: float) -> Ranked:
        """Return the lowest count entries with their ranks, lowest first."""
        return self._cached(
            self._bottom_cache, count, no_cache, expire_secs, self.bottom_cacheless
        )

    def bottom_cacheless(self, count: int) -> Ranked:
        return _collect(self._tree.cursor(), Cursor.move_next, count)

    # --------------------------------------------------------- neighbourhood

    def _seek(self, key: Hashable) -> Optional[Cursor]:
        entry = self._map.get(key)
        if entry is None:
            return None
        return self._tree.seek_val(entry)

    def around(self, key: Hashable, before: int, after: int) -> Optional[Ranked]:
        """Return up to before entries above key, key itself, and up to after below."""
        cursor = self._seek(key)
        if cursor is None:
            return None
        above = _collect(cursor.copy(), Cursor.move_next, before)
        above.reverse()
        above.append((cursor.index() + 1, cursor.value()))
        above.extend(_collect(cursor, Cursor.move_prev, after))
        return above

    def after(self, key: Hashable, count: int) -> Optional[Ranked]:
        """Return up to count entries ranked just below key."""
        cursor = self._seek(key)
        if cursor is None:
            return None
        return _collect(cursor, Cursor.move_prev, count)

    def before(self, key: Hashable, count: int) -> Optional[Ranked]:
        """Return up to count entries ranked just above key, nearest first."""
        cursor = self._seek(key)
        if cursor is None:
            return None
        return _collect(cursor, Cursor.move_next, count)

    def range(self, start_rank: int, end_rank: int) -> Ranked:
        """Return the entries from start_rank to end_rank inclusive."""
        if start_rank < 1:
            raise ValueError("start rank must be at least 1")
        if end_rank < start_rank:
            return []
        cursor = self._tree.seek_index(start_rank - 1)
        if cursor is None:
            return []
        result: Ranked = []
        for _ in range(end_rank - start_rank + 1):
            if cursor.is_at_end():
                break
            result.append((cursor.index() + 1, cursor.value()))
            cursor.move_prev()
        return result

    # ---------------------------------------------------------- construction

    @classmethod
    def from_tree(cls, tree: Tree) -> "Board":
        board = cls()
        board._tree = tree
        board._map = DiffMap({entry.key: entry for entry in tree})
        return board

    @classmethod
    def from_map(
        cls,
        mapping: Mapping[Hashable, Entry],
        progress: Optional[Callable[[int], Any]] = None,
    ) -> "Board":
        """Build a board from a key-to-entry mapping, reporting each insert."""
        board = cls()
        for entry in mapping.values():
            board._tree.insert(entry)
            if progress is not None:
                progress(1)
        board._map = DiffMap(mapping)
        return board

    def to_bytes(self) -> bytes:
        """Encode the board's key map; pending snapshot writes are not included."""
        with self._map.snapshot() as snapshot:
            contents: Dict[Hashable, Entry] = dict(snapshot.view())
        return encode_entry_map(contents)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Board":
        return cls.from_map(decode_entry_map(data))