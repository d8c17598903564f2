import base64

import pytest

AUDIO_B64 = base64.b64encode(b"fake-webm-audio").decode("utf-8")


@pytest.fixture
def session_id(client):
    return client.post("/sessions").json()["session_id"]


def test_dictation_flow_proposes_instruction(client, store, session_id, dictation_service, generator):
    with client.websocket_connect(f"/ws/{session_id}") as ws:
        ws.send_json({"type": "dictation.start", "request_id": 1})
        assert ws.receive_json() == {"type": "dictation.started", "listening": True, "request_id": 1}

        ws.send_json({"type": "dictation.audio", "audio_b64": AUDIO_B64, "mime_type": "audio/webm", "request_id": 2})
        message = ws.receive_json()
        assert message["type"] == "dictation.transcript"
        assert message["text"] == "make it blue"
        assert message["pending_instruction"] == "make it blue"

        dictation_service.transcribe.return_value = "add a label"
        ws.send_json({"type": "dictation.audio", "audio_b64": AUDIO_B64, "request_id": 3})
        assert ws.receive_json()["pending_instruction"] == "add a label"

        ws.send_json({"type": "dictation.stop", "request_id": 4})
        assert ws.receive_json()["listening"] is False

    state = store.get(session_id).state
    assert state.pending_instruction == "add a label"
    assert generator.calls == []
    dictation_service.transcribe.assert_awaited_with(b"fake-webm-audio", "audio/webm")


def test_audio_before_start_is_an_error(client, session_id, dictation_service):
    with client.websocket_connect(f"/ws/{session_id}") as ws:
        ws.send_json({"type": "dictation.audio", "audio_b64": AUDIO_B64, "request_id": "a"})
        message = ws.receive_json()

    assert message["type"] == "error"
    assert message["request_id"] == "a"
    dictation_service.transcribe.assert_not_awaited()


def test_bad_audio_payloads(client, session_id):
    with client.websocket_connect(f"/ws/{session_id}") as ws:
        ws.send_json({"type": "dictation.start"})
        ws.receive_json()
        ws.send_json({"type": "dictation.audio"})
        assert ws.receive_json()["detail"] == "Audio payload is required for dictation."
        ws.send_json({"type": "dictation.audio", "audio_b64": "%%%"})
        assert ws.receive_json()["detail"] == "Audio payload must be base64-encoded."


def test_state_and_unknown_messages(client, session_id):
    with client.websocket_connect(f"/ws/{session_id}") as ws:
        ws.send_json({"type": "session.state"})
        state = ws.receive_json()
        assert state["type"] == "session.state"
        assert state["session_id"] == session_id
        assert state["phase"] == "idle"

        ws.send_json({"type": "edit.submit", "instruction": "make it blue"})
        assert ws.receive_json() == {"type": "error", "request_id": None, "detail": "Unsupported message type."}

        ws.send_text("not json")
        assert ws.receive_json() == {"type": "error", "detail": "Payload must be JSON"}


def test_disconnect_stops_listening(client, store, session_id):
    with client.websocket_connect(f"/ws/{session_id}") as ws:
        ws.send_json({"type": "dictation.start"})
        ws.receive_json()
        assert store.get(session_id).state.listening is True

    assert store.get(session_id).state.listening is False


def test_unknown_session_closes_socket(client):
    with client.websocket_connect("/ws/missing") as ws:
        assert ws.receive_json() == {"type": "error", "detail": "Session not found"}
