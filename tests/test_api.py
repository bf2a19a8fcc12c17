"""Tests for the FastAPI Tic Tac Toe Arena interface."""

from __future__ import annotations

import time

from fastapi.testclient import TestClient

from tttarena import ui
from tttarena.ui import app


client = TestClient(app)
ui.COMPUTER_MOVE_DELAY = 0.0
ui.ASSISTANT_REPLY_DELAY = 0.0


def _new_game(mode: str = "human-vs-human") -> dict:
    response = client.post("/api/game", json={"mode": mode})
    assert response.status_code == 200
    return response.json()


def _wait_until_settled(game_id: str, timeout: float = 2.0) -> dict:
    deadline = time.monotonic() + timeout
    while True:
        state = client.get(f"/api/game/{game_id}").json()
        if not state["computerPending"] and not state["assistantPending"]:
            return state
        assert time.monotonic() < deadline, "deferred action never ran"
        time.sleep(0.01)


def test_index_page_served():
    response = client.get("/")
    assert response.status_code == 200
    assert "Tic Tac Toe Arena" in response.text
    assert 'data-q="Suggest a move"' in response.text


def test_create_game_defaults_to_computer_mode():
    response = client.post("/api/game", json={})
    assert response.status_code == 200
    payload = response.json()
    assert payload["mode"] == "human-vs-computer"
    assert payload["currentPlayer"] == "X"
    assert payload["board"] == [""] * 9
    assert payload["history"] == [[""] * 9]
    assert payload["transcript"][0]["speaker"] == "assistant"


def test_rejects_unknown_mode():
    response = client.post("/api/game", json={"mode": "robot-vs-robot"})
    assert response.status_code == 422


def test_missing_game_returns_404():
    response = client.get("/api/game/nope")
    assert response.status_code == 404


def test_two_player_win_updates_scores():
    game_id = _new_game()["id"]
    for index in (0, 4, 1, 7):
        assert client.post(f"/api/game/{game_id}/move", json={"index": index}).json()["accepted"]
    state = client.post(f"/api/game/{game_id}/move", json={"index": 2}).json()
    assert state["status"] == "won"
    assert state["winner"] == "X"
    assert state["isOver"] is True
    assert state["winningLine"] == [0, 1, 2]
    assert state["scores"] == {"X": 1, "O": 0, "draws": 0}
    assert state["step"] == 5


def test_invalid_move_leaves_state_unchanged():
    game_id = _new_game()["id"]
    client.post(f"/api/game/{game_id}/move", json={"index": 0})

    duplicate = client.post(f"/api/game/{game_id}/move", json={"index": 0})
    assert duplicate.status_code == 200
    assert duplicate.json()["accepted"] is False
    assert duplicate.json()["currentPlayer"] == "O"

    outside = client.post(f"/api/game/{game_id}/move", json={"index": 12})
    assert outside.status_code == 200
    assert outside.json()["accepted"] is False
    assert outside.json()["board"] == ["X"] + [""] * 8


def test_non_integer_index_is_a_validation_error():
    game_id = _new_game()["id"]
    response = client.post(f"/api/game/{game_id}/move", json={"index": "middle"})
    assert response.status_code == 422


def test_computer_answers_move():
    game_id = _new_game("human-vs-computer")["id"]
    state = client.post(f"/api/game/{game_id}/move", json={"index": 0}).json()
    assert state["accepted"] is True
    assert state["board"][0] == "X"

    final_state = _wait_until_settled(game_id)
    assert final_state["board"][4] == "O"
    assert final_state["currentPlayer"] == "X"


def test_new_game_alternates_and_mode_resets_rotation():
    game_id = _new_game()["id"]
    state = client.post(f"/api/game/{game_id}/new").json()
    assert state["startingPlayer"] == "O"
    assert state["currentPlayer"] == "O"

    state = client.post(f"/api/game/{game_id}/new").json()
    assert state["startingPlayer"] == "X"

    client.post(f"/api/game/{game_id}/new")
    state = client.post(
        f"/api/game/{game_id}/mode", json={"mode": "human-vs-human"}
    ).json()
    assert state["startingPlayer"] == "X"
    assert state["mode"] == "human-vs-human"


def test_reset_scores_keeps_board():
    game_id = _new_game()["id"]
    for index in (0, 4, 1, 7, 2):
        client.post(f"/api/game/{game_id}/move", json={"index": index})
    state = client.post(f"/api/game/{game_id}/scores/reset").json()
    assert state["scores"] == {"X": 0, "O": 0, "draws": 0}
    assert state["board"][:3] == ["X", "X", "X"]


def test_jump_then_move_truncates_history():
    game_id = _new_game()["id"]
    for index in (0, 4, 8):
        client.post(f"/api/game/{game_id}/move", json={"index": index})
    state = client.post(f"/api/game/{game_id}/jump", json={"step": 1}).json()
    assert state["accepted"] is True
    assert state["currentPlayer"] == "O"
    assert len(state["history"]) == 4

    state = client.post(f"/api/game/{game_id}/move", json={"index": 2}).json()
    assert len(state["history"]) == 3

    bad = client.post(f"/api/game/{game_id}/jump", json={"step": 10}).json()
    assert bad["accepted"] is False


def test_assistant_conversation():
    game_id = _new_game()["id"]
    state = client.post(
        f"/api/game/{game_id}/assistant", json={"message": "Suggest a move"}
    ).json()
    assert state["accepted"] is True
    assert state["transcript"][-1] == {"speaker": "user", "text": "Suggest a move"}

    final_state = _wait_until_settled(game_id)
    assert final_state["transcript"][-1] == {
        "speaker": "assistant",
        "text": "I recommend you play in square 5.",
    }


def test_blank_assistant_message_ignored():
    game_id = _new_game()["id"]
    state = client.post(
        f"/api/game/{game_id}/assistant", json={"message": "   "}
    ).json()
    assert state["accepted"] is False
    assert len(state["transcript"]) == 1


def test_human_cannot_play_the_computers_turn(monkeypatch):
    monkeypatch.setattr(ui, "COMPUTER_MOVE_DELAY", 5.0)
    game_id = _new_game("human-vs-computer")["id"]
    client.post(f"/api/game/{game_id}/move", json={"index": 0})

    state = client.post(f"/api/game/{game_id}/move", json={"index": 8}).json()
    assert state["accepted"] is False
    assert state["board"][8] == ""
    assert state["computerPending"] is True

    # Switching mode drops the slow computer move
    client.post(f"/api/game/{game_id}/mode", json={"mode": "human-vs-human"})


def test_idle_sessions_expire():
    stale_id = _new_game()["id"]
    ui.SESSIONS[stale_id].last_seen -= ui.SESSION_TTL_SECONDS + 1

    fresh_id = _new_game()["id"]
    assert stale_id not in ui.SESSIONS
    assert client.get(f"/api/game/{stale_id}").status_code == 404
    assert client.get(f"/api/game/{fresh_id}").status_code == 200
