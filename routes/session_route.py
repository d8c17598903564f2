"""FastAPI routes for diagram sessions."""

from typing import Optional

from fastapi import APIRouter, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from controllers.diagram_controller import (
	discard_session,
	download_result,
	get_session,
	get_stage_image,
	reset_session,
	retry_refinement,
	start_session,
	submit_drawing,
	submit_edit,
	transcribe_dictation,
	upload_original,
)
from models.diagram_models import ImageStage

router = APIRouter(prefix="/sessions", tags=["sessions"])


class DrawingPayload(BaseModel):
	data_url: str


class EditPayload(BaseModel):
	instruction: Optional[str] = None


@router.post("")
async def start_session_route(request: Request):
	try:
		return await start_session(request)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}")
async def get_session_route(request: Request, session_id: str):
	try:
		return await get_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.delete("/{session_id}")
async def discard_session_route(request: Request, session_id: str):
	try:
		return await discard_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/original")
async def upload_original_route(request: Request, session_id: str, image: UploadFile = File(...), wait: bool = True):
	"""Upload a sketch; refinement starts automatically."""
	try:
		return await upload_original(request, session_id, image, wait)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/drawing")
async def submit_drawing_route(request: Request, session_id: str, payload: DrawingPayload, wait: bool = True):
	"""Submit a finished canvas drawing; refinement starts automatically."""
	try:
		return await submit_drawing(request, session_id, payload.data_url, wait)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/refine")
async def retry_refinement_route(request: Request, session_id: str, wait: bool = True):
	try:
		return await retry_refinement(request, session_id, wait)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/edits")
async def submit_edit_route(request: Request, session_id: str, payload: EditPayload, wait: bool = True):
	try:
		return await submit_edit(request, session_id, payload.instruction, wait)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/reset")
async def reset_session_route(request: Request, session_id: str):
	try:
		return await reset_session(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}/images/{stage}")
async def get_stage_image_route(request: Request, session_id: str, stage: ImageStage):
	try:
		return await get_stage_image(request, session_id, stage)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.get("/{session_id}/download")
async def download_result_route(request: Request, session_id: str):
	try:
		return await download_result(request, session_id)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))


@router.post("/{session_id}/dictation")
async def dictation_route(request: Request, session_id: str, audio: UploadFile = File(...)):
	"""Transcribe spoken instructions into the pending instruction field."""
	try:
		return await transcribe_dictation(request, session_id, audio)
	except HTTPException:
		raise
	except Exception as exc:
		raise HTTPException(status_code=500, detail=str(exc))
