"""Dispatch session websocket events to the appropriate handlers."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import WebSocket

from services.openai.dictation_service import DictationService
from services.session.session_store import SessionStore
from services.session.ws_dictation import DictationMessageHandler

LOGGER = logging.getLogger(__name__)


class SessionSocketHandler:
	"""Route websocket messages for a single diagram session."""

	def __init__(self, store: SessionStore, dictation: DictationService) -> None:
		self.store = store
		self.dictation_handler = DictationMessageHandler(store, dictation)

	async def handle(self, websocket: WebSocket, session_id: str, payload: Dict[str, Any]) -> None:
		"""Process a single inbound websocket payload."""
		request_id = payload.get("request_id")
		message_type = payload.get("type")
		try:
			if message_type == "dictation.start":
				result = self.dictation_handler.start(session_id)
			elif message_type == "dictation.stop":
				result = self.dictation_handler.stop(session_id)
			elif message_type == "dictation.audio":
				result = await self.dictation_handler.transcribe(session_id, payload)
			elif message_type == "session.state":
				result = {"type": "session.state", **self.store.get(session_id).snapshot()}
			else:
				raise ValueError("Unsupported message type.")
			result["request_id"] = request_id
			await self._send(websocket, result)
		except Exception as exc:
			LOGGER.warning("Session %s: websocket %s failed: %s", session_id, message_type, exc)
			await self._send_error(websocket, request_id, str(exc))

	async def _send_error(self, websocket: WebSocket, request_id: Any, detail: str) -> None:
		await self._send(websocket, {"type": "error", "request_id": request_id, "detail": detail})

	async def _send(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		await websocket.send_text(json.dumps(payload))
