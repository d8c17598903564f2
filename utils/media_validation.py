"""Validation helpers for uploaded sketches and dictation audio."""

from fastapi import HTTPException, UploadFile

from utils.config import MAX_UPLOAD_BYTES

ALLOWED_AUDIO_TYPES = {
    "audio/wav",
    "audio/x-wav",
    "audio/webm",
    "audio/mpeg",
    "audio/mp3",
    "audio/mp4",
    "audio/aac",
    "audio/ogg",
    "audio/opus",
    "audio/flac",
}

AUDIO_EXTENSIONS = (".wav", ".webm", ".mp3", ".mp4", ".m4a", ".ogg", ".flac")


def validate_image_file(image_file: UploadFile) -> None:
    """Reject uploads that declare a non-image content type.

    A missing content type is allowed; the bytes are sniffed when decoded.
    """
    if image_file.content_type:
        content_type = image_file.content_type.lower().split(";", 1)[0].strip()
        if not content_type.startswith("image/") and content_type != "application/octet-stream":
            raise HTTPException(status_code=415, detail=f"Unsupported image content type: {image_file.content_type}")


async def read_image_bytes(image_file: UploadFile, max_bytes: int = MAX_UPLOAD_BYTES) -> bytes:
    """Read an uploaded sketch, ensuring it is non-empty and within the size limit."""
    validate_image_file(image_file)
    image_bytes = await image_file.read()
    if not image_bytes:
        raise HTTPException(status_code=400, detail="Uploaded image is empty.")
    if len(image_bytes) > max_bytes:
        raise HTTPException(status_code=413, detail=f"Uploaded image exceeds {max_bytes} bytes.")
    return image_bytes


def audio_mime_type(audio_file: UploadFile) -> str:
    """Return the declared audio MIME type, falling back to the filename extension."""
    if audio_file.content_type:
        return audio_file.content_type
    name = (audio_file.filename or "").lower()
    for ext in AUDIO_EXTENSIONS:
        if name.endswith(ext):
            return "audio/mp4" if ext == ".m4a" else f"audio/{ext[1:]}"
    return ""


def validate_audio_file(audio_file: UploadFile) -> None:
    """Validate that the uploaded audio file is a supported audio format.

    Dictation accepts several audio container formats (webm, wav, mp3, mp4,
    ogg, flac). A filename is only required when the content type is missing.
    """
    if audio_file.content_type:
        content_type = audio_file.content_type.lower().split(";", 1)[0].strip()
        if content_type not in ALLOWED_AUDIO_TYPES:
            raise HTTPException(status_code=415, detail=f"Unsupported audio content type: {audio_file.content_type}")
        return
    if not audio_file.filename:
        raise HTTPException(status_code=400, detail="Audio file must have a filename.")
    # If content_type is missing, at least check extension for a known type
    if not audio_file.filename.lower().endswith(AUDIO_EXTENSIONS):
        raise HTTPException(status_code=415, detail="Unsupported or missing audio content type.")


async def read_audio_bytes(audio_file: UploadFile) -> bytes:
    """Read validated audio bytes, ensuring the upload is not empty."""
    validate_audio_file(audio_file)
    audio_bytes = await audio_file.read()
    if not audio_bytes:
        raise HTTPException(status_code=400, detail="Uploaded audio file is empty.")
    return audio_bytes
