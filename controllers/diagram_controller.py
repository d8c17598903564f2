"""Diagram session lifecycle helpers for the HTTP routes."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, UploadFile
from fastapi.responses import Response

from models.diagram_models import EncodedImage, GenerationTicket, ImageStage
from models.errors import ReadError
from services.image_decoder import ImageDecoder
from services.openai.dictation_service import DictationService
from services.session.diagram_session import DiagramSession
from services.session.session_store import SessionStore
from utils.config import DOWNLOAD_BASENAME
from utils.media_validation import audio_mime_type, read_audio_bytes, read_image_bytes


def _store(request: Request) -> SessionStore:
	store = getattr(request.app.state, "session_store", None)
	if store is None:
		raise HTTPException(status_code=500, detail="Session store unavailable")
	return store


def _session(request: Request, session_id: str) -> DiagramSession:
	try:
		return _store(request).get(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail="Session not found") from exc


async def _dispatch(
	request: Request,
	session: DiagramSession,
	ticket: Optional[GenerationTicket],
	wait: bool,
) -> Dict[str, Any]:
	"""Await or schedule the generation call, then describe the session."""
	if ticket is not None:
		if wait:
			await session.run(ticket)
		else:
			_store(request).schedule(session, ticket)
	return {"accepted": ticket is not None, **session.snapshot()}


async def start_session(request: Request) -> Dict[str, Any]:
	"""Create a new diagram session and return its initial state."""
	session = _store(request).create()
	return session.snapshot()


async def get_session(request: Request, session_id: str) -> Dict[str, Any]:
	return _session(request, session_id).snapshot()


async def discard_session(request: Request, session_id: str) -> Dict[str, Any]:
	"""Drop the session entirely ("New Diagram" without retention)."""
	try:
		_store(request).discard(session_id)
	except KeyError as exc:
		raise HTTPException(status_code=404, detail="Session not found") from exc
	return {"session_id": session_id, "discarded": True}


async def upload_original(request: Request, session_id: str, file: UploadFile, wait: bool = True) -> Dict[str, Any]:
	"""Accept an uploaded sketch as the original and refine it."""
	session = _session(request, session_id)
	raw = await read_image_bytes(file)
	try:
		image = ImageDecoder().decode_bytes(raw)
	except ReadError as exc:
		session.record_read_failure()
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	return await _dispatch(request, session, session.set_original(image), wait)


async def submit_drawing(request: Request, session_id: str, data_url: str, wait: bool = True) -> Dict[str, Any]:
	"""Accept a finalized canvas drawing (data URL) as the original and refine it."""
	session = _session(request, session_id)
	try:
		image = ImageDecoder().decode_data_url(data_url)
	except ReadError as exc:
		session.record_read_failure()
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	return await _dispatch(request, session, session.set_original(image), wait)


async def retry_refinement(request: Request, session_id: str, wait: bool = True) -> Dict[str, Any]:
	session = _session(request, session_id)
	return await _dispatch(request, session, session.begin_refine(), wait)


async def submit_edit(request: Request, session_id: str, instruction: Optional[str], wait: bool = True) -> Dict[str, Any]:
	"""Submit an edit instruction; the pending dictated text is used when none is given."""
	session = _session(request, session_id)
	text = instruction if instruction is not None else session.state.pending_instruction
	return await _dispatch(request, session, session.begin_edit(text), wait)


async def reset_session(request: Request, session_id: str) -> Dict[str, Any]:
	session = _session(request, session_id)
	session.reset()
	return session.snapshot()


def _image_response(image: EncodedImage, filename: Optional[str] = None) -> Response:
	headers = {"Content-Disposition": f'attachment; filename="{filename}"'} if filename else None
	return Response(content=image.to_bytes(), media_type=image.mime_type, headers=headers)


async def get_stage_image(request: Request, session_id: str, stage: ImageStage) -> Response:
	"""Return the raw bytes of one pipeline stage."""
	image = _session(request, session_id).state.image_for(stage)
	if image is None:
		raise HTTPException(status_code=404, detail=f"No {stage.value} image available")
	return _image_response(image)


async def download_result(request: Request, session_id: str) -> Response:
	"""Serve the latest edited diagram as a file download."""
	state = _session(request, session_id).state
	if not state.downloadable:
		raise HTTPException(status_code=404, detail="Nothing to download yet")
	return _image_response(state.edited, filename=f"{DOWNLOAD_BASENAME}.{state.edited.extension}")


async def transcribe_dictation(request: Request, session_id: str, audio_file: UploadFile) -> Dict[str, Any]:
	"""Transcribe recorded speech into the session's pending instruction."""
	session = _session(request, session_id)
	dictation: DictationService = getattr(request.app.state, "dictation_service", None)
	if dictation is None:
		raise HTTPException(status_code=500, detail="Dictation service unavailable")
	audio_bytes = await read_audio_bytes(audio_file)
	try:
		transcript = await dictation.transcribe(audio_bytes, audio_mime_type(audio_file))
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	session.propose_instruction(transcript)
	return {"text": transcript, "pending_instruction": session.state.pending_instruction}
