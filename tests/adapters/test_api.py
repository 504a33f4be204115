# tests/adapters/test_api.py
import inspect
import threading

import pytest
from fastapi.testclient import TestClient

from ontogen.adapters.api.dependencies import get_session_registry
from ontogen.adapters.api.main import create_app
from ontogen.adapters.api.routers import sessions


@pytest.fixture
def client(container):
    """HTTP client over an app wired to the test solver and project directory."""
    with TestClient(create_app()) as c:
        yield c


@pytest.fixture
def session_id(client):
    response = client.post("/api/v1/sessions")
    return response.json()["session_id"]


class TestHealth:
    def test_liveness(self, client):
        response = client.get("/api/v1/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestSessions:
    def test_create_session(self, client):
        # Act
        response = client.post("/api/v1/sessions")

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["session_id"]
        assert data["loaded"] == []
        assert data["errors"] == []

    def test_create_session_with_definitions(self, client, project_dir):
        """
        Scenario: A session is created loading a project file with one bad line.
        Expected: 201, the file is reported as loaded, the bad line as an error.
        """
        # Arrange
        (project_dir / "pets.gen").write_text("cats are fuzzy\ncats should maybe\n", encoding="utf-8")

        # Act
        response = client.post("/api/v1/sessions", json={"load": ["pets"]})

        # Assert
        assert response.status_code == 201
        data = response.json()
        assert data["loaded"] == ["pets"]
        assert len(data["errors"]) == 1

    def test_create_session_with_missing_file(self, client):
        response = client.post("/api/v1/sessions", json={"load": ["nowhere"]})

        assert response.status_code == 404
        assert "nowhere" in response.json()["detail"]
        assert client.get("/api/v1/health/live").json()["sessions"] == 0

    def test_delete_session(self, client, session_id):
        response = client.delete(f"/api/v1/sessions/{session_id}")
        assert response.status_code == 204

        response = client.delete(f"/api/v1/sessions/{session_id}")
        assert response.status_code == 404

    def test_unknown_session(self, client):
        response = client.post("/api/v1/sessions/missing/statements", json={"text": "imagine a cat"})

        assert response.status_code == 404


class TestStatements:
    def test_declaration_then_imagine(self, client, session_id):
        """
        Scenario: "cats are fuzzy" then "imagine a cat" over HTTP.
        Expected: Both accepted; the invention is described.
        """
        url = f"/api/v1/sessions/{session_id}/statements"

        declared = client.post(url, json={"text": "cats are fuzzy"}).json()
        imagined = client.post(url, json={"text": "imagine a cat"}).json()

        assert declared["accepted"] is True
        assert declared["is_declaration"] is True
        assert imagined["responses"] == ["the cat is a fuzzy cat"]

    def test_rejected_statement_is_still_ok(self, client, session_id):
        response = client.post(f"/api/v1/sessions/{session_id}/statements", json={"text": "cats should maybe"})

        assert response.status_code == 200
        data = response.json()
        assert data["accepted"] is False
        assert "Subject should exist/not exist" in data["suggestions"]

    def test_empty_text_is_invalid(self, client, session_id):
        response = client.post(f"/api/v1/sessions/{session_id}/statements", json={"text": ""})

        assert response.status_code == 422

    def test_transcript(self, client, session_id):
        url = f"/api/v1/sessions/{session_id}/statements"
        client.post(url, json={"text": "cats are fuzzy"})
        client.post(url, json={"text": "imagine a cat"})
        client.post(url, json={"text": "dogs are loud"})

        response = client.get(f"/api/v1/sessions/{session_id}/transcript")

        assert response.status_code == 200
        assert response.json()["statements"] == ["cats are fuzzy", "dogs are loud"]

    def test_sessions_are_isolated(self, client, session_id):
        other = client.post("/api/v1/sessions").json()["session_id"]
        client.post(f"/api/v1/sessions/{session_id}/statements", json={"text": "cats are fuzzy"})

        response = client.post(f"/api/v1/sessions/{other}/statements", json={"text": "imagine a cat"})

        # The other session never learned that cats are fuzzy
        assert response.json()["responses"] == ["the cat is a cat"]


class TestConcurrency:
    def test_session_work_runs_in_the_threadpool(self):
        assert not inspect.iscoroutinefunction(sessions.create_session)
        assert not inspect.iscoroutinefunction(sessions.execute_statement)

    def test_statement_waits_for_the_session_lock(self, client, session_id):
        """
        Scenario: A statement arrives while another holder has the session's lock.
        Expected: It waits until the lock is released, then succeeds.
        """
        # Arrange
        lock = get_session_registry().lock_for(session_id)
        url = f"/api/v1/sessions/{session_id}/statements"
        responses = []
        worker = threading.Thread(target=lambda: responses.append(client.post(url, json={"text": "cats are fuzzy"})))

        # Act
        with lock:
            worker.start()
            worker.join(timeout=0.5)
            waited = worker.is_alive()
        worker.join(timeout=30)

        # Assert
        assert waited
        assert responses[0].status_code == 200
        assert responses[0].json()["accepted"] is True

    def test_deleted_session_drops_its_lock(self, client, session_id):
        client.delete(f"/api/v1/sessions/{session_id}")

        assert get_session_registry().lock_for(session_id) is None
