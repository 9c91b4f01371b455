import json
from http import HTTPStatus

import pytest

from rankboard.backend import (
    ActionType,
    Interaction,
    RequestError,
    User,
    board_info,
    execute_action,
    save,
)
from rankboard.board import Board


def make_interaction(write=True):
    return Interaction(User("main", write), {"main": Board()}, cache_len=60.0)


def run(interaction, action, body):
    return json.loads(execute_action(action, interaction, json.dumps(body)))


@pytest.fixture
def filled():
    interaction = make_interaction()
    for key, value in ((1, 10), (2, 30), (3, 20)):
        run(interaction, ActionType.UPDATE, {"id": key, "value": value})
    return interaction


def test_update_then_get():
    interaction = make_interaction()
    reply = run(interaction, ActionType.UPDATE, {"id": 7, "value": 12.5})
    assert reply["code"] == 0
    assert reply["message"] == "Successfully updated 7."
    got = run(interaction, ActionType.GET, {"id": 7})
    assert got["code"] == 0
    assert got["message"] == "Found user 7."
    assert got["entry"]["key"] == 7
    assert got["entry"]["points"] == 12.5


def test_action_accepts_string_name():
    interaction = make_interaction()
    reply = json.loads(execute_action("Update", interaction, '{"id": 1, "value": 2}'))
    assert reply["code"] == 0
    assert interaction.board.get_entry(1).points == 2.0


def test_get_missing_user():
    reply = run(make_interaction(), ActionType.GET, {"id": 5})
    assert reply["code"] == -1
    assert reply["message"] == "User 5 was not in the board."
    assert reply["entry"] is None


def test_write_requires_permission():
    interaction = make_interaction(write=False)
    with pytest.raises(RequestError) as info:
        run(interaction, ActionType.UPDATE, {"id": 1, "value": 1})
    assert info.value.status == HTTPStatus.FORBIDDEN
    with pytest.raises(RequestError) as info:
        run(interaction, ActionType.REMOVE, {"id": 1})
    assert info.value.status == HTTPStatus.FORBIDDEN


@pytest.mark.parametrize(
    "action, body",
    [
        (ActionType.UPDATE, "not json"),
        (ActionType.UPDATE, '{"id": -1, "value": 3}'),
        (ActionType.UPDATE, '{"id": 1}'),
        (ActionType.UPDATE, '{"id": 1, "value": "high"}'),
        (ActionType.GET, '{"id": 1.5}'),
        (ActionType.GET, '{"id": 1, "id": 2}'),
        (ActionType.GET, "[1]"),
        (ActionType.UPDATE, '{"id": 1, "value": NaN}'),
        (ActionType.AT_RANK, '{"rank": 0}'),
        (ActionType.RANGE, '{"start": 0, "end": 3}'),
        (ActionType.RANGE, '{"start": 1, "end": 0}'),
        (ActionType.TOP, '{"count": 2, "no_cache": 1}'),
    ],
)
def test_bad_requests(action, body):
    with pytest.raises(RequestError) as info:
        execute_action(action, make_interaction(), body)
    assert info.value.status == HTTPStatus.BAD_REQUEST


def test_remove(filled):
    reply = run(filled, ActionType.REMOVE, {"id": 1})
    assert reply["code"] == 0
    assert reply["message"] == "Successfully removed 1."
    assert reply["entry"]["key"] == 1
    again = run(filled, ActionType.REMOVE, {"id": 1})
    assert again["code"] == 1
    assert again["message"] == "User 1 was already not in the board."


def test_info_gives_rank(filled):
    reply = run(filled, ActionType.INFO, {"id": 3})
    assert reply["code"] == 0
    assert reply["rank"] == 2
    assert reply["entry"]["points"] == 20.0


def test_at_rank(filled):
    reply = run(filled, ActionType.AT_RANK, {"rank": 1})
    assert reply["entry"]["key"] == 2
    assert reply["message"] == "Found user 2 with rank 1."
    missing = run(filled, ActionType.AT_RANK, {"rank": 9})
    assert missing["code"] == -1
    assert missing["rank"] == 9
    assert missing["message"] == "No user with rank 9."


def test_top_and_bottom(filled):
    top = run(filled, ActionType.TOP, {"count": 2})
    assert [(rank, entry["key"]) for rank, entry in top] == [(1, 2), (2, 3)]
    bottom = run(filled, ActionType.BOTTOM, {"count": 5, "no_cache": True})
    assert [(rank, entry["key"]) for rank, entry in bottom] == [(3, 1), (2, 3), (1, 2)]


def test_after_before_around(filled):
    after = run(filled, ActionType.AFTER, {"id": 2, "count": 5})
    assert [e["key"] for _, e in after["entries"]] == [3, 1]
    assert after["message"] == "Retrieved 2 entries after 2."
    before = run(filled, ActionType.BEFORE, {"id": 1, "count": 1})
    assert [(r, e["key"]) for r, e in before["entries"]] == [(2, 3)]
    around = run(filled, ActionType.AROUND, {"id": 3, "before": 1, "after": 1})
    assert [(r, e["key"]) for r, e in around["entries"]] == [(1, 2), (2, 3), (3, 1)]
    missing = run(filled, ActionType.AROUND, {"id": 99, "before": 1, "after": 1})
    assert missing["code"] == -1
    assert missing["entries"] is None


def test_range(filled):
    result = run(filled, ActionType.RANGE, {"start": 2, "end": 3})
    assert [(r, e["key"]) for r, e in result] == [(2, 3), (3, 1)]
    assert run(filled, ActionType.RANGE, {"start": 3, "end": 2}) == []


def test_board_info(filled):
    info = board_info(filled)
    assert info == {"cap": None, "size": 3, "min": 10.0}
    assert run(filled, ActionType.BOARD, {}) == info


def test_size_cap_failure():
    interaction = make_interaction()
    interaction.board.set_size_cap(1)
    run(interaction, ActionType.UPDATE, {"id": 1, "value": 10})
    reply = run(interaction, ActionType.UPDATE, {"id": 2, "value": 5})
    assert reply["code"] == -1
    assert reply["message"] == "Failed to add player 2: Too low rank to fall into the size cap."


@pytest.mark.parametrize("lock_save", [True, False])
def test_save_round_trip(filled, tmp_path, capsys, lock_save):
    saved = save(filled.boards, tmp_path, lock_save)
    assert saved == ["main"]
    assert not (tmp_path / "main_saving.part").exists()
    restored = Board.from_bytes((tmp_path / "main.board").read_bytes())
    assert len(restored) == 3
    assert restored.rank(2) == 1
    assert restored.get_entry(1).points == 10.0
    out = capsys.readouterr().out
    assert "Starting backup" in out
    assert "Saving main..." in out
    assert "All boards saved." in out


def test_save_reports_missing_directory(filled, tmp_path, capsys):
    saved = save(filled.boards, tmp_path / "absent", True)
    assert saved == []
    assert "Failed to open temp file" in capsys.readouterr().err