"""FastAPI server for the Salon Insights analytics assistant.

Run with:
    uv run uvicorn salon_insights.server:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from salon_insights.api.routes import router
from salon_insights.chat.session import SessionRegistry
from salon_insights.config import CORS_ORIGINS, SERVER_HOST, SERVER_PORT
from salon_insights.services.salon_client import SalonAPIClient

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


# ── Lifespan: initialise / tear-down shared resources ────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Open the salon API client and the session registry.

    On shutdown every session is closed, which cancels any data load still
    in flight, before the HTTP client is released.
    """
    client = SalonAPIClient()
    sessions = SessionRegistry(client)
    application.state.sessions = sessions
    logger.info("Salon Insights ready.")
    yield
    sessions.close_all()
    application.state.sessions = None
    await client.aclose()
    logger.info("Salon Insights stopped.")


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="Salon Insights",
    description=(
        "Chat with your salon's data: appointments, revenue and clients "
        "summarised for an AI business analyst."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Attach a request ID (``X-Request-ID``) for log correlation."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info(
        "[%s] %s %s", request_id, request.method, request.url.path,
    )
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ── Register routes ──────────────────────────────────────────────────
app.include_router(router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Salon Insights",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/health",
    }


if __name__ == "__main__":
    logger.info("Starting Salon Insights API server on %s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run(
        "salon_insights.server:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=True,
    )
