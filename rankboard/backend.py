"""JSON request handling and periodic saving for a set of named boards."""

from __future__ import annotations

import json
import os
import sys
import threading
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional, Tuple

from rankboard.board import Board, SizeCapError
from rankboard.codec import encode_entry_map
from rankboard.entry import Entry

_UINT_LIMIT = 1 << 64


class RequestError(Exception):
    """A request that cannot be served; carries the HTTP status to answer with."""

    def __init__(self, status: HTTPStatus) -> None:
        super().__init__(f"{status.value} {status.phrase}")
        self.status = status


@dataclass(frozen=True)
class User:
    """Who is asking: the board they act on and whether they may write to it."""

    board: str
    write: bool


@dataclass
class Interaction:
    """A user together with the shared boards their requests act on."""

    user: User
    boards: MutableMapping[str, Board]
    cache_len: float = 0.0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    @property
    def board(self) -> Board:
        return self.boards[self.user.board]


class ActionType(Enum):
    UPDATE = "Update"
    REMOVE = "Remove"
    GET = "Get"
    INFO = "Info"
    BOARD = "Board"
    AT_RANK = "AtRank"
    TOP = "Top"
    BOTTOM = "Bottom"
    AFTER = "After"
    BEFORE = "Before"
    AROUND = "Around"
    RANGE = "Range"


# ------------------------------------------------------------------ parsing


def _bad_request() -> RequestError:
    return RequestError(HTTPStatus.BAD_REQUEST)


def _no_duplicates(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    result: Dict[str, Any] = {}
    for name, value in pairs:
        if name in result:
            raise ValueError(f"duplicate field {name!r}")
        result[name] = value
    return result


def _reject_constant(name: str) -> Any:
    raise ValueError(f"invalid number {name}")


def _unsigned(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise _bad_request()
    if not 0 <= value < _UINT_LIMIT:
        raise _bad_request()
    return value


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _bad_request()
    return float(value)


def _optional_flag(value: Any) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise _bad_request()
    return value


_REQUIRED: Dict[str, Callable[[Any], Any]] = {}


def _parse(data: str, required: Mapping[str, Callable[[Any], Any]],
           optional: Mapping[str, Callable[[Any], Any]] = _REQUIRED) -> Dict[str, Any]:
    try:
        obj = json.loads(data, object_pairs_hook=_no_duplicates, parse_constant=_reject_constant)
    except (ValueError, TypeError) as exc:
        raise _bad_request() from exc
    if not isinstance(obj, dict):
        raise _bad_request()
    parsed: Dict[str, Any] = {}
    for name, convert in required.items():
        if name not in obj:
            raise _bad_request()
        parsed[name] = convert(obj[name])
    for name, convert in optional.items():
        parsed[name] = convert(obj.get(name))
    return parsed


# ----------------------------------------------------------------- responses


def _dump(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"))


def _ranked(entries: List[Tuple[int, Entry]]) -> List[List[Any]]:
    return [[rank, entry.to_dict()] for rank, entry in entries]


def _response(
    code: int,
    message: str,
    entry: Optional[Entry] = None,
    rank: Optional[int] = None,
    entries: Optional[List[Tuple[int, Entry]]] = None,
) -> str:
    return _dump(
        {
            "code": code,
            "message": message,
            "entry": None if entry is None else entry.to_dict(),
            "rank": rank,
            "entries": None if entries is None else _ranked(entries),
        }
    )


def _require_write(interaction: Interaction) -> None:
    if not interaction.user.write:
        raise RequestError(HTTPStatus.FORBIDDEN)


# ------------------------------------------------------------------ actions


def _update(interaction: Interaction, data: str) -> str:
    _require_write(interaction)
    req = _parse(data, {"id": _unsigned, "value": _number})
    key = req["id"]
    try:
        with interaction.lock:
            updated = interaction.board.update_entry(key, req["value"])
    except SizeCapError as exc:
        return _response(-1, f"Failed to add player {key}: {exc}")
    if updated:
        return _response(0, f"Successfully updated {key}.")
    return _response(1, f"Added player {key} and updated.")


def _remove(interaction: Interaction, data: str) -> str:
    _require_write(interaction)
    key = _parse(data, {"id": _unsigned})["id"]
    with interaction.lock:
        entry = interaction.board.remove_entry(key)
    if entry is None:
        return _response(1, f"User {key} was already not in the board.")
    return _response(0, f"Successfully removed {key}.", entry=entry)


def _get(interaction: Interaction, data: str) -> str:
    key = _parse(data, {"id": _unsigned})["id"]
    with interaction.lock:
        entry = interaction.board.get_entry(key)
    if entry is None:
        return _response(-1, f"User {key} was not in the board.")
    return _response(0, f"Found user {key}.", entry=entry)


def _info(interaction: Interaction, data: str) -> str:
    key = _parse(data, {"id": _unsigned})["id"]
    with interaction.lock:
        found = interaction.board.get_entry_and_rank(key)
    if found is None:
        return _response(-1, f"User {key} was not in the board.")
    rank, entry = found
    return _response(0, f"Found user {key}.", entry=entry, rank=rank)


def board_info(interaction: Interaction) -> Dict[str, Any]:
    """Return the board's size cap, size and lowest points."""
    with interaction.lock:
        board = interaction.board
        return {"cap": board.size_cap(), "size": len(board), "min": board.min_points()}


def _board(interaction: Interaction, data: str) -> str:
    return _dump(board_info(interaction))


def _at_rank(interaction: Interaction, data: str) -> str:
    rank = _parse(data, {"rank": _unsigned})["rank"]
    if rank == 0:
        raise _bad_request()
    with interaction.lock:
        entry = interaction.board.at_rank(rank)
    if entry is None:
        return _response(-1, f"No user with rank {rank}.", rank=rank)
    return _response(0, f"Found user {entry.key} with rank {rank}.", entry=entry, rank=rank)


def _edge(interaction: Interaction, data: str, top: bool) -> str:
    req = _parse(data, {"count": _unsigned}, {"no_cache": _optional_flag})
    with interaction.lock:
        board = interaction.board
        fetch = board.top if top else board.bottom
        entries = fetch(req["count"], req["no_cache"], interaction.cache_len)
    return _dump(_ranked(entries))


def _top(interaction: Interaction, data: str) -> str:
    return _edge(interaction, data, True)


def _bottom(interaction: Interaction, data: str) -> str:
    return _edge(interaction, data, False)


def _neighbours(interaction: Interaction, data: str, after: bool) -> str:
    req = _parse(data, {"count": _unsigned, "id": _unsigned})
    key = req["id"]
    with interaction.lock:
        board = interaction.board
        entries = (board.after if after else board.before)(key, req["count"])
    if entries is None:
        return _response(-1, f"User {key} was not in the board.")
    word = "after" if after else "before"
    return _response(0, f"Retrieved {len(entries)} entries {word} {key}.", entries=entries)


def _after(interaction: Interaction, data: str) -> str:
    return _neighbours(interaction, data, True)


def _before(interaction: Interaction, data: str) -> str:
    return _neighbours(interaction, data, False)


def _around(interaction: Interaction, data: str) -> str:
    req = _parse(data, {"before": _unsigned, "after": _unsigned, "id": _unsigned})
    key = req["id"]
    with interaction.lock:
        entries = interaction.board.around(key, req["before"], req["after"])
    if entries is None:
        return _response(-1, f"User {key} was not in the board.")
    return _response(0, f"Retrieved {len(entries)} entries around {key}.", entries=entries)


def _range(interaction: Interaction, data: str) -> str:
    req = _parse(data, {"start": _unsigned, "end": _unsigned})
    if req["start"] == 0 or req["end"] == 0:
        raise _bad_request()
    with interaction.lock:
        entries = interaction.board.range(req["start"], req["end"])
    return _dump(_ranked(entries))


_HANDLERS: Dict[ActionType, Callable[[Interaction, str], str]] = {
    ActionType.UPDATE: _update,
    ActionType.REMOVE: _remove,
    ActionType.GET: _get,
    ActionType.INFO: _info,
    ActionType.BOARD: _board,
    ActionType.AT_RANK: _at_rank,
    ActionType.TOP: _top,
    ActionType.BOTTOM: _bottom,
    ActionType.AFTER: _after,
    ActionType.BEFORE: _before,
    ActionType.AROUND: _around,
    ActionType.RANGE: _range,
}


def execute_action(action: Any, interaction: Interaction, data: str) -> str:
    """Run one action with a JSON request body and return the JSON reply.

    Raises RequestError with FORBIDDEN for writes by a read-only user and
    BAD_REQUEST for malformed requests.
    """
    return _HANDLERS[ActionType(action)](interaction, data)


# -------------------------------------------------------------------- saving


def _encode(board: Board, lock_save: bool) -> bytes:
    if lock_save:
        return board.to_bytes()
    with board.map_snapshot() as snapshot:
        contents = dict(snapshot.view())
    return encode_entry_map(contents)


def save(boards: Mapping[str, Board], saves_path: Any, lock_save: bool) -> List[str]:
    """Write every board to ``<name>.board`` under saves_path.

    Each board goes to a temporary file first and is renamed into place.
    Saving stops at the first failure. Returns the names that were saved.
    """
    saves_path = Path(saves_path)
    print("Starting backup", flush=True)
    saved: List[str] = []
    for name in list(boards):
        board = boards.get(name)
        if board is None:
            continue
        print(f"Saving {name}...", flush=True)
        temp_path = saves_path / f"{name}_saving.part"
        try:
            payload = _encode(board, lock_save)
        except ValueError as exc:
            print(f"Failed to write to temp file to save leaderboard backup.\n{exc}",
                  file=sys.stderr)
            break
        try:
            handle = open(temp_path, "wb")
        except OSError as exc:
            print(f"Failed to open temp file to save leaderboard backup.\n{exc}",
                  file=sys.stderr)
            break
        try:
            with handle:
                handle.write(payload)
        except OSError as exc:
            print(f"Failed to write to temp file to save leaderboard backup.\n{exc}",
                  file=sys.stderr)
            break
        try:
            os.replace(temp_path, saves_path / f"{name}.board")
        except OSError as exc:
            print(f"Failed to rename temp file into save.\n{exc}", file=sys.stderr)
            break
        saved.append(name)
    print("All boards saved.", flush=True)
    return saved