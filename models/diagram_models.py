"""Diagram session domain models."""

from __future__ import annotations

import base64
import binascii
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

_DATA_URL_HEADER = re.compile(r"^data:(?P<mime>[^;,]+)(?P<params>(;[^;,]*)*)$")

_EXTENSIONS = {
	"image/png": "png",
	"image/jpeg": "jpg",
	"image/jpg": "jpg",
	"image/webp": "webp",
	"image/gif": "gif",
	"image/bmp": "bmp",
}


@dataclass(frozen=True)
class EncodedImage:
	"""Immutable image payload: media type plus base64 data."""

	mime_type: str
	data: str

	@classmethod
	def from_data_url(cls, data_url: str) -> "EncodedImage":
		"""Parse a `data:<mime>;base64,<data>` string."""
		header, sep, data = (data_url or "").strip().partition(",")
		match = _DATA_URL_HEADER.match(header)
		if not sep or match is None or not data:
			raise ValueError("Invalid data URL format")
		if ";base64" not in match.group("params"):
			raise ValueError("Data URL must be base64-encoded")
		return cls(mime_type=match.group("mime").lower(), data=data)

	@classmethod
	def from_bytes(cls, raw: bytes, mime_type: str) -> "EncodedImage":
		return cls(mime_type=mime_type, data=base64.b64encode(raw).decode("utf-8"))

	def to_data_url(self) -> str:
		return f"data:{self.mime_type};base64,{self.data}"

	def to_bytes(self) -> bytes:
		try:
			return base64.b64decode(self.data, validate=True)
		except binascii.Error as exc:
			raise ValueError("Image payload is not valid base64") from exc

	@property
	def extension(self) -> str:
		return _EXTENSIONS.get(self.mime_type, "png")


class SessionPhase(str, Enum):
	"""Request lifecycle of a diagram session."""

	IDLE = "idle"
	REFINING = "refining"
	EDITING = "editing"


class ImageStage(str, Enum):
	"""The three stages of the image pipeline."""

	ORIGINAL = "original"
	REFINED = "refined"
	EDITED = "edited"


@dataclass
class DiagramState:
	"""In-memory state for one diagramming task."""

	session_id: str
	original: Optional[EncodedImage] = None
	refined: Optional[EncodedImage] = None
	edited: Optional[EncodedImage] = None
	phase: SessionPhase = SessionPhase.IDLE
	last_error: Optional[str] = None
	epoch: int = 0
	pending_instruction: str = ""
	listening: bool = False

	@property
	def downloadable(self) -> bool:
		return self.edited is not None

	def image_for(self, stage: ImageStage) -> Optional[EncodedImage]:
		return getattr(self, stage.value)


@dataclass(frozen=True)
class GenerationTicket:
	"""Captured at the start of a generation call.

	`epoch` is compared with the session's epoch when the response arrives;
	a mismatch means the task was reset or replaced and the result is dropped.
	"""

	phase: SessionPhase
	epoch: int
	base: EncodedImage
	instruction: Optional[str] = None
