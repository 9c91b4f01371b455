"""Leaderboard entries and their ranking order."""

from __future__ import annotations

import functools
import math
from dataclasses import dataclass
from typing import Any


def _three_way(a: Any, b: Any) -> int:
    """Compare two values; incomparable values (such as NaN) count as equal."""
    try:
        if a < b:
            return -1
        if a > b:
            return 1
    except TypeError:
        return 0
    return 0


def _compare(left: "Entry", right: "Entry") -> int:
    result = _three_way(left.points, right.points)
    if result:
        return result
    # An earlier timestamp ranks higher, so the comparison is reversed.
    result = _three_way(right.timestamp, left.timestamp)
    if result:
        return result
    return _three_way(right.key, left.key)


_SortKey = functools.cmp_to_key(_compare)


@dataclass(eq=False)
class Entry:
    """A player's score on a board.

    Entries order by points; ties go to the earlier timestamp, then to the
    smaller key. A greater entry ranks higher.
    """

    key: Any = 0
    points: Any = 0.0
    timestamp: float = 0.0

    def sort_key(self) -> Any:
        """Return an object that sorts in the same order as the entries."""
        return _SortKey(self)

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "points": self.points, "key": self.key}

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return _compare(self, other) == 0

    def __hash__(self) -> int:
        timestamp = 0.0 if math.isnan(self.timestamp) else self.timestamp
        return hash((self.key, timestamp))

    def __lt__(self, other: "Entry") -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return _compare(self, other) < 0

    def __le__(self, other: "Entry") -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return _compare(self, other) <= 0

    def __gt__(self, other: "Entry") -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return _compare(self, other) > 0

    def __ge__(self, other: "Entry") -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return _compare(self, other) >= 0