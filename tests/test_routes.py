from fastapi.testclient import TestClient
from api.main import app
import api.routes as routes
from core.models import StartSessionResponse

START_BODY = {
    "user_name": "Dana",
    "meeting_url": "https://zoom.us/j/123456789",
    "meeting_objective": "Close the renewal",
    "selected_emotions": ["Doubt"],
}


def test_health():
    client = TestClient(app)
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_emotions_catalogue():
    client = TestClient(app)
    body = client.get("/emotions").json()
    assert "Confusion" in body["available"]
    assert set(body["default"]) <= set(body["available"])


def test_engine_not_running(monkeypatch):
    monkeypatch.setattr(routes, "controller", None)
    client = TestClient(app)
    assert client.get("/session/status").status_code == 503


def test_session_start_and_stop(monkeypatch, controller, backend):
    monkeypatch.setattr(routes, "controller", controller)
    client = TestClient(app)
    r = client.post("/session/start", json=START_BODY)
    assert r.status_code == 200
    assert r.json()["state"] == "active"
    assert r.json()["has_session"] is True

    r = client.get("/session/status")
    assert r.json()["selected_emotions"] == ["Doubt"]

    r = client.post("/session/stop")
    assert r.status_code == 200
    assert r.json()["state"] == "idle"
    assert len(backend.stop_calls) == 1


def test_session_start_rejects_missing_fields(monkeypatch, controller, backend):
    monkeypatch.setattr(routes, "controller", controller)
    client = TestClient(app)
    r = client.post("/session/start", json={**START_BODY, "meeting_url": ""})
    assert r.status_code == 400
    assert backend.start_calls == []


def test_session_start_backend_refusal(monkeypatch, controller, backend):
    backend.start_result = StartSessionResponse(success=False, error="Bot quota exceeded")
    monkeypatch.setattr(routes, "controller", controller)
    client = TestClient(app)
    r = client.post("/session/start", json=START_BODY)
    assert r.status_code == 502
    assert r.json()["detail"] == "Failed: Bot quota exceeded"


def test_backend_health(monkeypatch, controller):
    monkeypatch.setattr(routes, "controller", controller)
    client = TestClient(app)
    r = client.get("/backend/health")
    assert r.status_code == 200
    assert r.json()["status"] == "healthy"


def test_close_app(monkeypatch, controller, backend):
    monkeypatch.setattr(routes, "controller", controller)
    client = TestClient(app)
    client.post("/session/start", json=START_BODY)
    r = client.post("/ipc/close-app")
    assert r.status_code == 200
    assert r.json() == {"status": "closed"}
    assert len(backend.stop_calls) == 1
    assert backend.closed is True
    assert routes.controller is None
