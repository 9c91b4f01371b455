# rankboard

In-memory leaderboards with fast ranked queries.

Entries are kept in an order-statistic AVL tree, so adding, updating,
removing and finding the rank of a player take logarithmic time. A side
map keyed by player id can be snapshotted: while a snapshot is held,
writes are recorded separately and applied when the snapshot is released,
so a board can be saved while it keeps changing.

The package has no runtime dependencies.

## Installation

```
pip install .
```

To run the test suite:

```
pip install .[test]
pytest
```

## Quick start

```python
from rankboard.board import Board

board = Board()
board.update_entry(1, 120.0)
board.update_entry(2, 300.0)
board.update_entry(3, 75.5)

board.rank(2)            # 1: the highest points rank first
board.at_rank(3).key     # 3
board.top(2, True, 5.0)  # [(1, Entry(key=2, ...)), (2, Entry(key=1, ...))]
board.around(1, 1, 1)    # player 2, player 1, player 3, each with its rank
```

Results that list several entries are lists of `(rank, Entry)` pairs, with
rank 1 the best. Ties in points go to the entry whose score was set
earlier, then to the smaller key. `update_entry` stamps a changed score
with the current time; setting the same points again leaves the entry
untouched.

Other lookups on `Board`: `get_entry`, `get_entry_and_rank`, `after`,
`before`, `range(start_rank, end_rank)`, `bottom`, `ids` (lowest ranked
first), `min_points`, `len(board)`. `remove_entry` and `clear` take entries
away.

### Size caps

```python
board.set_size_cap(100)
```

With a cap set and the board full, an entry that would not rank within
the cap is refused with `SizeCapError`; one that does rank within it is
added and the lowest entry drops out. `trim_after_cap()` shrinks a board
that grew past a cap set later, and `remove_size_cap()` lifts the cap.

### Cached top and bottom lists

`top(count, no_cache, expire_secs)` and `bottom(...)` start caching their
list once they have been called with `no_cache` false. The cached list is
served until it is older than `expire_secs` or shorter than the request;
`top_cacheless` and `bottom_cacheless` always read the tree.

### Persistence

```python
data = board.to_bytes()
restored = Board.from_bytes(data)
```

The binary format (in `rankboard.codec`) stores keys as non-negative
variable-length integers and points and timestamps as doubles, so boards
to be saved need integer keys and numeric points. `encode_tree` and
`decode_tree` write and rebuild a `Tree` with its exact shape.

`rankboard.backend.save(boards, saves_path, lock_save)` writes each board
of a mapping of name to `Board` to `<name>.board` in the given directory,
through a temporary `<name>_saving.part` file renamed into place. It stops
at the first failure, reporting it on standard error, and returns the
names it saved.

### Request handling

`rankboard.backend.execute_action(action, interaction, data)` takes an
`ActionType` (or its name, such as `"Top"`), an `Interaction` and a JSON
request body, and returns a JSON reply.

```python
from rankboard.backend import ActionType, Interaction, User, execute_action

boards = {"main": Board()}
writer = Interaction(User(board="main", write=True), boards, cache_len=5.0)
execute_action(ActionType.UPDATE, writer, '{"id": 7, "value": 42.0}')
execute_action("Info", writer, '{"id": 7}')
```

Actions and their fields: `Update` (`id`, `value`), `Remove` (`id`),
`Get` (`id`), `Info` (`id`), `Board` (none), `AtRank` (`rank`), `Top` and
`Bottom` (`count`, optional `no_cache`), `After` and `Before` (`count`,
`id`), `Around` (`before`, `after`, `id`), `Range` (`start`, `end`).
Malformed input raises `RequestError` with `HTTPStatus.BAD_REQUEST`;
`Update` and `Remove` by a user without write access raise it with
`HTTPStatus.FORBIDDEN`. `board_info(interaction)` returns the cap, size
and lowest points of the user's board.

## What this package does not do

It is a library only. There is no HTTP server, no command-line program or
interactive prompt, no user accounts or authentication, and no background
loop that saves on a timer: call `save` yourself when you want boards on
disk, and serve `execute_action` from whatever server you use.

## Modules

- `rankboard.node`: `Node`, the balanced tree node with subtree counts
- `rankboard.tree`: `Tree`, the order-statistic AVL tree; index 0 is the largest value
- `rankboard.cursor`: `Cursor` and `CursorMut` for walking and editing a tree
- `rankboard.entry`: `Entry` and its ranking order
- `rankboard.diff_map`: `DiffMap` and `SnapshotBorrow`
- `rankboard.codec`: the compact binary format for entries, entry maps and trees
- `rankboard.board`: `Board` and `SizeCapError`
- `rankboard.backend`: JSON request handling and saving