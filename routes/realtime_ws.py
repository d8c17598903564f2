"""WebSocket endpoint for continuous dictation into a diagram session."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, WebSocket
from starlette.websockets import WebSocketDisconnect

from services.session.session_store import SessionStore
from services.session.ws_session import SessionSocketHandler

router = APIRouter()


def _require_session_store(websocket: WebSocket) -> SessionStore:
	store = getattr(websocket.app.state, "session_store", None)
	if store is None:
		raise HTTPException(status_code=500, detail="Session store unavailable")
	return store


@router.websocket("/ws/{session_id}")
async def session_socket(websocket: WebSocket, session_id: str, store: SessionStore = Depends(_require_session_store)):
	"""Stream dictation segments and session snapshots over one websocket."""
	await websocket.accept()
	try:
		session = store.get(session_id)
	except KeyError:
		await websocket.send_text(json.dumps({"type": "error", "detail": "Session not found"}))
		await websocket.close()
		return

	handler = SessionSocketHandler(store, websocket.app.state.dictation_service)
	try:
		while True:
			try:
				raw = await websocket.receive_text()
			except WebSocketDisconnect:
				return
			except KeyError:
				# binary frame
				await websocket.send_text(json.dumps({"type": "error", "detail": "Invalid websocket frame"}))
				continue
			try:
				payload = json.loads(raw)
			except json.JSONDecodeError:
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be JSON"}))
				continue
			if not isinstance(payload, dict):
				await websocket.send_text(json.dumps({"type": "error", "detail": "Payload must be a JSON object"}))
				continue
			await handler.handle(websocket, session_id, payload)
	finally:
		session.stop_listening()
