import inspect
import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from openai import AsyncOpenAI

from routes.realtime_ws import router as realtime_router
from routes.session_route import router as session_router
from services.openai.diagram_generator import DiagramGenerator
from services.openai.dictation_service import DictationService
from services.session.session_store import SessionStore
from utils.config import configure_logging, require_openai_key

BASE_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = BASE_DIR / "public"

configure_logging()
LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan manager to initialize:
      - the OpenAI async client
      - the diagram generator and dictation services built on it
      - the in-memory session store
    and attach them to `app.state`.
    """
    require_openai_key()

    try:
        openai_client = AsyncOpenAI()
    except Exception as exc:
        raise RuntimeError("Failed to initialize OpenAI Async client") from exc

    app.state.openai_client = openai_client
    app.state.session_store = SessionStore(DiagramGenerator(openai_client))
    app.state.dictation_service = DictationService(openai_client)

    try:
        yield
    finally:
        await app.state.session_store.shutdown()
        # Gracefully close the OpenAI client if it exposes a close/aclose method.
        client = getattr(app.state, "openai_client", None)
        if client is not None:
            aclose = getattr(client, "aclose", None) or getattr(client, "close", None)
            if aclose is not None:
                try:
                    result = aclose()
                    if inspect.isawaitable(result):
                        await result
                except Exception as exc:
                    LOGGER.warning("Error while closing OpenAI client: %s", exc)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application instance.
    """
    app = FastAPI(title="Diagram Tutor", lifespan=lifespan)

    # Serve static assets from the public directory, if it exists.
    if PUBLIC_DIR.exists():
        app.mount("/public", StaticFiles(directory=PUBLIC_DIR), name="public")

    @app.get("/", include_in_schema=False)
    async def serve_index():
        """
        Serve the frontend index page from the public directory.
        """
        index_path = PUBLIC_DIR / "index.html"
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="Frontend not found")
        return FileResponse(index_path)

    @app.get("/health")
    async def health(request: Request):
        """
        Simple health check that reports session store and OpenAI client presence.
        """
        store = getattr(request.app.state, "session_store", None)
        has_openai = getattr(request.app.state, "openai_client", None) is not None
        return {
            "ok": True,
            "openai_available": has_openai,
            "active_sessions": len(store) if store is not None else 0,
        }

    # Register application routers
    app.include_router(session_router)
    app.include_router(realtime_router)

    return app


app = create_app()
