"""
Tests for the HTTP API.

The application is built with a scripted question generator and the in-memory
progress repository, so no database file or network is touched.
"""

import pytest
from fastapi.testclient import TestClient

from conftest import FailingQuestionGenerator, ScriptedQuestionGenerator
from mathquiz import create_app
from mathquiz.common.error_handling import DatabaseError
from mathquiz.progress.repository import MemoryProgressRepository
from mathquiz.questions.model import GeneratedQuestion

PLAYER = {"X-Player-Id": "player-1"}


class BrokenProgressRepository(MemoryProgressRepository):
    async def get(self, player_id):
        raise DatabaseError("connection refused")


def _client(generator=None, repository=None):
    app = create_app(
        question_generator=generator or ScriptedQuestionGenerator(),
        progress_repository=repository or MemoryProgressRepository()
    )
    return TestClient(app)


def _start_session(client):
    response = client.post("/api/game/sessions", headers=PLAYER)
    assert response.status_code == 201
    return response.json()["session_id"]


def test_health():
    with _client() as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_new_session_has_default_snapshot():
    with _client() as client:
        response = client.post("/api/game/sessions")

    data = response.json()
    assert response.status_code == 201
    assert data["round_active"] is False
    assert data["performance"]["score"] == 100
    assert data["performance"]["current_level"] == 1.0
    assert data["performance"]["average_time"] == 30.0
    assert data["performance"]["history"] == []


def test_round_flow():
    generator = ScriptedQuestionGenerator([
        GeneratedQuestion(question="125×4+50", answer="550", difficulty=1.0, estimated_time=15)
    ])
    with _client(generator) as client:
        session_id = _start_session(client)

        response = client.post(f"/api/game/sessions/{session_id}/rounds")
        question = response.json()
        assert response.status_code == 200
        assert question["question"] == "125×4+50"
        assert question["recommended_time"] == 25
        assert "answer" not in question

        response = client.post(f"/api/game/sessions/{session_id}/answer", json={"answer": " 55 0"})
        result = response.json()
        assert response.status_code == 200
        assert result["correct"] is True
        assert result["expected_answer"] == "550"
        assert result["score"] > 100
        assert result["speed_rating"] in ("Fast!", "Good")

        snapshot = client.get(f"/api/game/sessions/{session_id}").json()["performance"]
        assert snapshot["streak"] == 1
        assert snapshot["used_questions"] == ["125×4+50"]


def test_numeric_answer_is_accepted():
    generator = ScriptedQuestionGenerator([
        GeneratedQuestion(question="6×7", answer="42", difficulty=1.0, estimated_time=5)
    ])
    with _client(generator) as client:
        session_id = _start_session(client)
        client.post(f"/api/game/sessions/{session_id}/rounds")

        response = client.post(f"/api/game/sessions/{session_id}/answer", json={"answer": 42})

    assert response.json()["correct"] is True


def test_timeout_counts_as_wrong_answer():
    with _client() as client:
        session_id = _start_session(client)
        client.post(f"/api/game/sessions/{session_id}/rounds")

        response = client.post(f"/api/game/sessions/{session_id}/timeout")

    result = response.json()
    assert response.status_code == 200
    assert result["timed_out"] is True
    assert result["correct"] is False
    assert result["score"] == 75
    assert result["failures"] == 1


def test_round_state_conflicts():
    with _client() as client:
        session_id = _start_session(client)

        response = client.post(f"/api/game/sessions/{session_id}/answer", json={"answer": "1"})
        assert response.status_code == 409
        assert response.json()["code"] == "round_state_error"

        client.post(f"/api/game/sessions/{session_id}/rounds")
        response = client.post(f"/api/game/sessions/{session_id}/rounds")
        assert response.status_code == 409


def test_generation_failure_returns_retry_message():
    with _client(FailingQuestionGenerator()) as client:
        session_id = _start_session(client)

        response = client.post(f"/api/game/sessions/{session_id}/rounds")
        session = client.get(f"/api/game/sessions/{session_id}").json()

    assert response.status_code == 502
    assert response.json()["status"] == "error"
    assert response.json()["message"] == "Error generating question. Please try again."
    assert session["round_active"] is False
    assert session["performance"]["score"] == 100


def test_unknown_session_is_404():
    with _client() as client:
        for method, path in [
            ("get", "/api/game/sessions/missing"),
            ("post", "/api/game/sessions/missing/rounds"),
            ("post", "/api/game/sessions/missing/timeout"),
            ("delete", "/api/game/sessions/missing"),
        ]:
            response = getattr(client, method)(path)
            assert response.status_code == 404, path
            assert response.json()["code"] == "session_not_found"


def test_end_session_returns_final_snapshot():
    with _client() as client:
        session_id = _start_session(client)
        client.post(f"/api/game/sessions/{session_id}/rounds")
        client.post(f"/api/game/sessions/{session_id}/answer", json={"answer": "2"})

        response = client.delete(f"/api/game/sessions/{session_id}")
        assert response.status_code == 200
        assert len(response.json()["history"]) == 1

        assert client.get(f"/api/game/sessions/{session_id}").status_code == 404


def test_answer_body_is_validated():
    with _client() as client:
        session_id = _start_session(client)
        client.post(f"/api/game/sessions/{session_id}/rounds")

        response = client.post(f"/api/game/sessions/{session_id}/answer", json={})

    assert response.status_code == 422
    assert response.json()["message"] == "Validation error"


def test_progress_requires_player_header():
    with _client() as client:
        response = client.get("/api/progress")

    assert response.status_code == 422


def test_progress_not_found_before_first_game():
    with _client() as client:
        response = client.get("/api/progress", headers=PLAYER)

    assert response.status_code == 404
    assert response.json()["code"] == "progress_not_found"


def test_progress_update_merges_games():
    with _client() as client:
        first = client.post("/api/progress/update", headers=PLAYER, json={
            "highScore": 320,
            "currentLevel": 2.2,
            "history": {"question": "45×8", "correct": True, "timeSpent": 7.5}
        })
        second = client.post("/api/progress/update", headers=PLAYER, json={
            "highScore": 180,
            "currentLevel": 1.4,
            "history": [{"question": "√144", "correct": False}]
        })
        stored = client.get("/api/progress", headers=PLAYER)

    assert first.status_code == 200
    assert first.json()["totalGamesPlayed"] == 1

    data = stored.json()
    assert stored.status_code == 200
    assert data["playerId"] == "player-1"
    assert data["highScore"] == 320
    assert data["currentLevel"] == 1.4
    assert data["totalGamesPlayed"] == 2
    assert [entry["question"] for entry in data["history"]] == ["45×8", "√144"]
    assert second.json() == data


@pytest.mark.parametrize("body", [
    {"highScore": -1, "currentLevel": 1.0},
    {"highScore": 10, "currentLevel": 6.0},
    {"highScore": 10, "currentLevel": 0.5},
])
def test_progress_update_validation(body):
    with _client() as client:
        response = client.post("/api/progress/update", headers=PLAYER, json=body)

    assert response.status_code == 422


def test_storage_failure_is_generic_server_error():
    with _client(repository=BrokenProgressRepository()) as client:
        response = client.get("/api/progress", headers=PLAYER)

    assert response.status_code == 500
    assert response.json()["message"] == "Server error"
    assert "connection refused" not in response.text


def test_session_idle_timeout_comes_from_settings():
    from mathquiz.config import Settings

    app = create_app(
        app_settings=Settings(SESSION_IDLE_TIMEOUT=90),
        question_generator=ScriptedQuestionGenerator(),
        progress_repository=MemoryProgressRepository()
    )
    with TestClient(app):
        assert app.state.session_manager.idle_timeout == 90
