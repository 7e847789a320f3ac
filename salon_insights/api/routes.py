"""FastAPI route definitions for the analytics assistant API."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, HTTPException, Request, Response
from fastapi.responses import StreamingResponse

from salon_insights.analytics.markdown import render_html
from salon_insights.api.schemas import (
    ChatRequest,
    DraftResponse,
    HealthResponse,
    MessageOut,
    QuickQuestion,
    SummaryResponse,
    TranscriptResponse,
)
from salon_insights.chat.orchestrator import TurnStream
from salon_insights.chat.session import ChatSession, SessionRegistry
from salon_insights.prompts import QUICK_QUESTIONS

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_registry(request: Request) -> SessionRegistry:
    """Retrieve the session registry from app state (set up by the lifespan)."""
    registry = getattr(request.app.state, "sessions", None)
    if registry is None:
        raise HTTPException(
            status_code=503,
            detail="The assistant is still starting up. Please try again in a moment.",
        )
    return registry


def _get_session(request: Request, session_id: str) -> ChatSession:
    session = _get_registry(request).get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Unknown session.")
    return session


def _transcript(session: ChatSession) -> TranscriptResponse:
    orchestrator = session.orchestrator
    return TranscriptResponse(
        session_id=session.session_id,
        messages=[
            MessageOut(role=m.role, content=m.content, html=render_html(m.content))
            for m in orchestrator.transcript
        ],
        is_pending=orchestrator.is_pending,
        is_loading=orchestrator.is_loading,
        error=orchestrator.error,
        draft=orchestrator.draft,
    )


def _event(kind: str, **fields) -> bytes:
    return (json.dumps({"type": kind, **fields}, ensure_ascii=False) + "\n").encode("utf-8")


class TurnStreamingResponse(StreamingResponse):
    """Streams a chat turn and closes it however the response ends.

    The body generator may never start (the client can disconnect while the
    response start is being sent), so closing the turn cannot be left to it.
    """

    def __init__(self, turn: TurnStream, content: AsyncIterator[bytes], **kwargs):
        super().__init__(content, **kwargs)
        self.turn = turn

    async def __call__(self, scope, receive, send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.turn.aclose()


# ── Endpoints ────────────────────────────────────────────────────────


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check endpoint."""
    registry = getattr(request.app.state, "sessions", None)
    return HealthResponse(sessions=len(registry) if registry is not None else 0)


@router.get("/quick-questions", response_model=list[QuickQuestion])
async def quick_questions():
    """The suggested questions shown under the chat."""
    return [
        QuickQuestion(key=key, label=label, prompt=prompt)
        for key, (label, prompt) in QUICK_QUESTIONS.items()
    ]


@router.post("/sessions", response_model=TranscriptResponse, status_code=201)
async def create_session(http_request: Request):
    """Open a conversation.  Its salon data starts loading immediately."""
    session = _get_registry(http_request).create()
    return _transcript(session)


@router.delete("/sessions/{session_id}", status_code=204)
async def close_session(session_id: str, http_request: Request):
    """Drop a conversation, aborting its data load if still running."""
    if not _get_registry(http_request).close(session_id):
        raise HTTPException(status_code=404, detail="Unknown session.")
    return Response(status_code=204)


@router.get("/sessions/{session_id}/summary", response_model=SummaryResponse)
async def session_summary(session_id: str, http_request: Request):
    """Wait for the data load and return the summary panel."""
    session = _get_session(http_request, session_id)
    context = await session.ensure_context()
    return SummaryResponse(
        session_id=session_id,
        loaded=context.is_loaded,
        summary=context.summary(),
        error=session.orchestrator.error,
    )


@router.get("/sessions/{session_id}/messages", response_model=TranscriptResponse)
async def session_messages(session_id: str, http_request: Request):
    """The transcript, with every message rendered to markup."""
    return _transcript(_get_session(http_request, session_id))


@router.post("/sessions/{session_id}/draft/{key}", response_model=DraftResponse)
async def apply_quick_question(session_id: str, key: str, http_request: Request):
    """Pre-fill the input with a quick question.  Does not send it."""
    session = _get_session(http_request, session_id)
    try:
        draft = session.orchestrator.apply_quick_question(key)
    except KeyError:
        raise HTTPException(status_code=404, detail="Unknown quick question.") from None
    return DraftResponse(session_id=session_id, draft=draft)


@router.post("/sessions/{session_id}/messages")
async def send_message(session_id: str, request: ChatRequest, http_request: Request):
    """Ask a question and stream the reply as NDJSON events.

    Events: ``{"type": "chunk", "text": ...}`` for each fragment, then either
    ``{"type": "done", "message": ...}`` or ``{"type": "error", "error": ...,
    "message": ...}``.  A client that disconnects before the first chunk
    rolls the turn back; one that leaves mid-stream gets its reply marked as
    interrupted.
    """
    session = _get_session(http_request, session_id)
    request_id = getattr(http_request.state, "request_id", "?")

    await session.ensure_context()
    orchestrator = session.orchestrator
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="The message is empty.")

    chunks = orchestrator.start_turn(request.message)
    if chunks is None:
        raise HTTPException(
            status_code=409,
            detail="A reply is still being generated for this session.",
        )
    logger.info("[%s] Chat turn started for session %s", request_id, session_id)

    async def _body() -> AsyncIterator[bytes]:
        async for piece in chunks:
            yield _event("chunk", text=piece)

        last = orchestrator.transcript.last
        message = {"role": last.role, "content": last.content, "html": render_html(last.content)}
        if orchestrator.last_exception is not None:
            yield _event("error", error=orchestrator.error, message=message)
        else:
            yield _event("done", message=message)

    return TurnStreamingResponse(chunks, _body(), media_type="application/x-ndjson")
