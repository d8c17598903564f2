"""Environment-driven settings for the diagram tutor service.

Values are read from the process environment after `load_dotenv()` has had a
chance to populate it from a local `.env` file.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file if present

IMAGE_MODEL = os.getenv("OPENAI_IMAGE_MODEL", "gpt-5")
IMAGE_FORMAT = os.getenv("OPENAI_IMAGE_FORMAT", "png").lower()
TRANSCRIBE_MODEL = os.getenv("OPENAI_TRANSCRIBE_MODEL", "gpt-4o-transcribe")
DICTATION_LANGUAGE = os.getenv("DICTATION_LANGUAGE", "en")

MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(20 * 1024 * 1024)))
MAX_IMAGE_SIDE = int(os.getenv("MAX_IMAGE_SIDE", "2048"))

DOWNLOAD_BASENAME = "diagram-tutor-result"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging once for the application process."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def require_openai_key() -> str:
    """Return the OpenAI API key or raise if it is not configured."""
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY environment variable is not set")
    return api_key
