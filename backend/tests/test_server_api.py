"""REST + WebSocket API tests against the FastAPI app (mock LLM, mock TTS)."""
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

import server
from core.exceptions import QuotaError


@pytest.fixture
def client():
    with TestClient(server.app) as c:
        yield c


# ── Test 1: REST ────────────────────────────────────────────────────────────

def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "ok"
    assert "tts_provider" in body


def test_voice_chat_returns_discovery_envelope(client):
    res = client.post("/api/voice-chat", json={"message": "I want a site for my bakery", "history": []})
    assert res.status_code == 200
    body = res.json()
    assert body["success"] is True
    assert body["fallback"] is False
    assert set(body["data"]) == {"prompt", "previewInstructions", "nextQuestion", "speech", "readyToBuild"}
    assert body["data"]["readyToBuild"] is False


def test_voice_chat_editor_returns_editing_envelope(client):
    res = client.post("/api/voice-chat-editor", json={
        "message": "make the header blue",
        "history": [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hey!"}],
        "appId": "app-1",
    })
    assert res.status_code == 200
    data = res.json()["data"]
    assert set(data) == {"websiteChange", "speech", "nextQuestion"}
    assert data["websiteChange"]


def test_voice_chat_rejects_blank_message(client):
    res = client.post("/api/voice-chat", json={"message": "   "})
    assert res.status_code == 400


def test_voice_chat_maps_upstream_error_to_status(client, monkeypatch):
    async def _respond(*args, **kwargs):
        raise QuotaError("rate limited")

    monkeypatch.setattr(server, "get_response_client", lambda: SimpleNamespace(respond=_respond))
    res = client.post("/api/voice-chat", json={"message": "hello"})

    assert res.status_code == 429
    assert res.json()["success"] is False
    assert res.json()["code"] == "QUOTA_EXCEEDED"


def test_speak_returns_cacheable_audio_response(client):
    res = client.post("/api/speak", json={"text": "Hello there!", "voice": "jessa"})
    assert res.status_code == 200
    assert res.headers["cache-control"] == "public, max-age=3600"
    assert res.headers["accept-ranges"] == "bytes"
    assert "content-length" in res.headers


def test_speak_requires_text(client):
    res = client.post("/api/speak", json={"text": ""})
    assert res.status_code == 400
    assert res.json()["code"] == "SPEECH_REQUEST_INVALID"


# ── Test 2: WebSocket session ───────────────────────────────────────────────

def _next(ws, msg_type):
    """Read envelopes until one of ``msg_type`` arrives."""
    for _ in range(10):
        msg = ws.receive_json()
        if msg["type"] == msg_type:
            return msg
    raise AssertionError(f"no {msg_type} message received")


def test_ws_discovery_session_builds_once(client):
    with client.websocket_connect("/api/ws/session?mode=discovery") as ws:
        ready = ws.receive_json()
        assert ready["type"] == "session_ready"
        assert ready["payload"]["phase"] == "DISCOVERING"

        ws.send_json({"type": "text_input", "payload": {"text": "a site for my bakery"}})
        result = _next(ws, "turn_result")
        assert result["payload"]["phase"] == "DISCOVERING"
        audio = _next(ws, "tts_audio")
        assert audio["payload"]["is_mock"] is True
        ws.send_json({"type": "playback_complete", "payload": {}})

        ws.send_json({"type": "text_input", "payload": {"text": "yes, build it"}})
        command = _next(ws, "command")
        assert command["payload"]["command"]["kind"] == "build"
        assert command["payload"]["command"]["commandId"].endswith(":build")
        result = _next(ws, "turn_result")
        assert result["payload"]["phase"] == "BUILT"
        assert result["payload"]["dispatched"] is True
        _next(ws, "tts_audio")
        ws.send_json({"type": "playback_complete", "payload": {}})


def test_ws_capture_round_trip_and_busy_rejection(client):
    with client.websocket_connect("/api/ws/session") as ws:
        _next(ws, "session_ready")

        ws.send_json({"type": "start_capture", "payload": {}})
        _next(ws, "capture_start")

        ws.send_json({"type": "start_capture", "payload": {}})
        error = _next(ws, "error")
        assert error["payload"]["code"] == "SESSION_BUSY"

        ws.send_json({"type": "stop_capture", "payload": {}})
        _next(ws, "capture_stop")


def test_ws_capture_error_is_reported(client):
    with client.websocket_connect("/api/ws/session") as ws:
        _next(ws, "session_ready")
        ws.send_json({"type": "start_capture", "payload": {}})
        _next(ws, "capture_start")

        ws.send_json({"type": "capture_error", "payload": {"kind": "no-speech"}})
        error = _next(ws, "error")
        assert error["payload"]["code"] == "CAPTURE_ERROR"
        assert "No speech detected" in error["payload"]["message"]


def test_ws_unknown_message_type(client):
    with client.websocket_connect("/api/ws/session") as ws:
        _next(ws, "session_ready")
        ws.send_json({"type": "bogus", "payload": {}})
        error = _next(ws, "error")
        assert error["payload"]["code"] == "UNKNOWN_MSG_TYPE"


def test_ws_editing_requires_app_id(client):
    with client.websocket_connect("/api/ws/session?mode=editing") as ws:
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["payload"]["code"] == "INVALID_SESSION"
