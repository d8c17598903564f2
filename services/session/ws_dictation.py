"""Handle dictation audio events coming over the session websocket."""
from __future__ import annotations

import base64
import binascii
from typing import Any, Dict

from services.openai.dictation_service import DictationService
from services.session.session_store import SessionStore


class DictationMessageHandler:
	"""Transcribe speech segments into the session's pending instruction.

	Transcripts only ever propose an instruction; submitting it as an edit is
	left to the user.
	"""

	def __init__(self, store: SessionStore, dictation: DictationService) -> None:
		self.store = store
		self.dictation = dictation

	def start(self, session_id: str) -> Dict[str, Any]:
		session = self.store.get(session_id)
		session.start_listening()
		return {"type": "dictation.started", "listening": True}

	def stop(self, session_id: str) -> Dict[str, Any]:
		session = self.store.get(session_id)
		session.stop_listening()
		return {"type": "dictation.stopped", "listening": False}

	async def transcribe(self, session_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
		"""Return the transcript for a single finalized audio segment."""
		session = self.store.get(session_id)
		if not session.state.listening:
			raise RuntimeError("Dictation is not active; send dictation.start first.")
		audio_b64 = payload.get("audio_b64") or ""
		if not audio_b64:
			raise ValueError("Audio payload is required for dictation.")
		try:
			audio_bytes = base64.b64decode(audio_b64, validate=True)
		except binascii.Error as exc:
			raise ValueError("Audio payload must be base64-encoded.") from exc
		mime_type = payload.get("mime_type") or "audio/webm"
		transcript = await self.dictation.transcribe(audio_bytes, mime_type)
		session.propose_instruction(transcript)
		return {
			"type": "dictation.transcript",
			"text": transcript,
			"pending_instruction": session.state.pending_instruction,
		}
