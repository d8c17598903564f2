"""
Shared test fixtures.

Provides: a scriptable fake generation client, image factories, and a FastAPI
app wired with in-memory state (the lifespan is not run, so no OpenAI key is needed).
"""

import asyncio
import base64
import io
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from main import create_app
from models.diagram_models import EncodedImage
from services.session.diagram_session import DiagramSession
from services.session.session_store import SessionStore


class FakeGenerator:
    """Stand-in for DiagramGenerator that replays queued outcomes.

    Each outcome is either an EncodedImage (returned) or an exception (raised).
    When `gate` is set to an asyncio.Event, calls wait for it before answering,
    which keeps a request in flight for as long as a test needs.
    """

    def __init__(self):
        self.calls = []
        self.outcomes = []
        self.gate = None

    def queue(self, *outcomes):
        self.outcomes.extend(outcomes)

    async def refine(self, image):
        return await self._answer(("refine", image, None))

    async def edit(self, image, instruction):
        return await self._answer(("edit", image, instruction))

    async def _answer(self, call):
        self.calls.append(call)
        if self.gate is not None:
            await self.gate.wait()
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def make_image(label: str) -> EncodedImage:
    """Small opaque image value; the state machine never decodes it."""
    return EncodedImage(mime_type="image/png", data=base64.b64encode(label.encode("utf-8")).decode("utf-8"))


def make_picture_bytes(size=(8, 8), fmt="PNG", mode="RGB", color=(30, 41, 59)) -> bytes:
    """Real encoded image bytes produced with Pillow."""
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def session(generator):
    return DiagramSession(generator)


@pytest.fixture
def gate():
    return asyncio.Event()


@pytest.fixture
def picture_bytes():
    return make_picture_bytes


@pytest.fixture
def images():
    return make_image


@pytest.fixture
def store(generator):
    return SessionStore(generator)


@pytest.fixture
def dictation_service():
    service = AsyncMock()
    service.transcribe = AsyncMock(return_value="make it blue")
    return service


@pytest.fixture
def client(store, dictation_service):
    app = create_app()
    app.state.session_store = store
    app.state.dictation_service = dictation_service
    return TestClient(app)
