"""Audio transcription helper built on OpenAI's transcription models."""

import io
import logging

from openai import AsyncOpenAI

from utils.config import DICTATION_LANGUAGE, TRANSCRIBE_MODEL

_AUDIO_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/mp4": "mp4",
    "audio/aac": "m4a",
    "audio/ogg": "oga",
    "audio/opus": "ogg",
    "audio/flac": "flac",
    "audio/x-flac": "flac",
}
_KNOWN_SUFFIXES = {"webm", "wav", "mp3", "mp4", "mpeg", "mpga", "oga", "ogg", "flac", "m4a"}


def filename_for_mime(mime_type: str) -> str:
    """Return an upload filename whose extension matches the audio MIME type.

    The transcription endpoint infers the container from the filename, so an
    unknown type raises ValueError instead of sending an unsupported format.
    """
    # Strip any MIME parameters (e.g. 'audio/webm;codecs=opus') and normalize
    mime = (mime_type or "").lower().split(";", 1)[0].strip()
    if mime in _AUDIO_EXTENSIONS:
        suffix = _AUDIO_EXTENSIONS[mime]
    elif "/" in mime and mime.split("/")[-1] in _KNOWN_SUFFIXES:
        suffix = mime.split("/")[-1]
    else:
        raise ValueError(f"Unsupported or unknown audio MIME type: '{mime_type}'")
    return f"dictation.{suffix}"


class DictationService:
    """Create text transcriptions from spoken edit instructions."""

    def __init__(
        self,
        client: AsyncOpenAI,
        *,
        model: str = TRANSCRIBE_MODEL,
        language: str = DICTATION_LANGUAGE,
    ) -> None:
        """Initialize the service with a shared OpenAI client."""
        if client is None:
            raise ValueError("OpenAI client is required for dictation.")
        self.client = client
        self.model = model
        self.language = language

    async def transcribe(self, audio_bytes: bytes, mime_type: str = "audio/webm") -> str:
        """Transcribe one finalized speech segment into whitespace-trimmed text."""
        if not audio_bytes:
            raise ValueError("audio_bytes must contain data for transcription.")

        audio_file = io.BytesIO(audio_bytes)
        audio_file.name = filename_for_mime(mime_type)

        try:
            response = await self.client.audio.transcriptions.create(
                model=self.model,
                file=audio_file,
                language=self.language,
            )
        except Exception as exc:
            logging.error("OpenAI transcription request failed: %s", exc)
            raise

        transcript = getattr(response, "text", None)
        if transcript is None:
            raise RuntimeError("Transcription response did not include text.")
        return transcript.strip()
