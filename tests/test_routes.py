import base64

import pytest
from fastapi.testclient import TestClient

from conftest import PendingClassifier, jpeg_bytes
from models.session_models import SessionState
from services.realtime.session_store import SessionStore


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    from main import app

    with TestClient(app) as test_client:
        test_client.portal.call(app.state.session_store.close_all)
        app.state.session_store = SessionStore(PendingClassifier(), analysis_interval=60, countdown_interval=60)
        yield test_client


def _start(client, **payload):
    response = client.post("/sessions", json=payload)
    assert response.status_code == 200
    return response.json()


def test_health(client):
    body = client.get("/health").json()
    assert body["ok"] is True
    assert body["openai_available"] is True


def test_start_session_returns_idle_snapshot(client):
    snapshot = _start(client, reward="PRIZE-1")
    assert snapshot["state"] == "IDLE"
    assert snapshot["status_message"] == "Ready to start"
    assert snapshot["reward"] is None
    assert snapshot["analyzing"] is False
    assert client.get(f"/sessions/{snapshot['session_id']}").json()["state"] == "IDLE"


def test_new_session_replaces_previous(client):
    first = _start(client)
    _start(client)
    assert client.get(f"/sessions/{first['session_id']}").status_code == 404


def test_unknown_session_is_404(client):
    assert client.get("/sessions/missing").status_code == 404
    assert client.post("/sessions/missing/reset").status_code == 404


def test_upload_frames(client):
    session_id = _start(client)["session_id"]
    binary = client.post(
        f"/sessions/{session_id}/frames", files={"file": ("frame.jpg", jpeg_bytes(), "image/jpeg")}
    )
    assert binary.status_code == 200
    assert binary.json()["accepted"] is True

    text = client.post(
        f"/sessions/{session_id}/frames",
        files={"file": ("frame.txt", base64.b64encode(jpeg_bytes()), "text/plain")},
    )
    assert text.json()["accepted"] is True


def test_upload_rejects_bad_frames(client):
    session_id = _start(client)["session_id"]
    garbage = client.post(
        f"/sessions/{session_id}/frames", files={"file": ("frame.jpg", b"\xff\xd8\x00garbage", "image/jpeg")}
    )
    assert garbage.status_code == 400
    wrong_type = client.post(
        f"/sessions/{session_id}/frames", files={"file": ("clip.mp4", b"\x00\x01", "video/mp4")}
    )
    assert wrong_type.status_code == 415


def test_camera_error_and_retry(client):
    session_id = _start(client)["session_id"]
    failed = client.post(f"/sessions/{session_id}/camera/error", json={"reason": "NotAllowedError"}).json()
    assert failed["state"] == "ERROR"
    assert failed["last_error"] == "NotAllowedError"

    retried = client.post(f"/sessions/{session_id}/camera/retry").json()
    assert retried["state"] == "IDLE"
    assert retried["last_error"] is None


def test_reward_code_requires_finished_session(client):
    session_id = _start(client)["session_id"]
    assert client.get(f"/sessions/{session_id}/reward.png").status_code == 409

    assert client.put(f"/sessions/{session_id}/reward", json={"content": "   "}).status_code == 400
    assert client.put(f"/sessions/{session_id}/reward", json={"content": "PRIZE-2"}).status_code == 200

    session = client.app.state.session_store.get(session_id)
    session.machine.session.state = SessionState.FINISHED
    response = client.get(f"/sessions/{session_id}/reward.png")
    assert response.status_code == 200
    assert response.headers["content-type"] == "image/png"
    assert client.get(f"/sessions/{session_id}").json()["reward"] == "PRIZE-2"


def test_reset_and_close(client):
    session_id = _start(client)["session_id"]
    assert client.post(f"/sessions/{session_id}/reset").json()["state"] == "IDLE"
    assert client.delete(f"/sessions/{session_id}").json() == {"session_id": session_id, "closed": True}
    assert client.get(f"/sessions/{session_id}").status_code == 404


def test_websocket_commands_push_snapshots(client):
    session_id = _start(client)["session_id"]
    with client.websocket_connect(f"/ws/{session_id}") as ws:
        initial = ws.receive_json()
        assert initial["type"] == "session.snapshot"
        assert initial["state"] == "IDLE"

        ws.send_json({"type": "camera.error", "reason": "NotReadableError"})
        failed = ws.receive_json()
        assert failed["state"] == "ERROR"
        assert failed["last_error"] == "NotReadableError"

        ws.send_json({"type": "dance", "request_id": 7})
        error = ws.receive_json()
        assert error == {"type": "error", "request_id": 7, "detail": "Unsupported message type."}

        ws.send_json({"type": "camera.retry"})
        assert ws.receive_json()["state"] == "IDLE"


def test_websocket_unknown_session(client):
    with client.websocket_connect("/ws/missing") as ws:
        assert ws.receive_json() == {"type": "error", "detail": "Session not found"}


def test_shutdown_closes_open_sessions(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    from main import app

    with TestClient(app) as test_client:
        test_client.portal.call(app.state.session_store.close_all)
        store = SessionStore(PendingClassifier(), analysis_interval=60, countdown_interval=60)
        app.state.session_store = store
        session_id = _start(test_client)["session_id"]
        session = store.get(session_id)
        assert not session.closed
    assert session.closed
    with pytest.raises(KeyError):
        store.get(session_id)
