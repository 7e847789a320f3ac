"""Chat orchestration: one conversation with the analytics assistant.

Turn lifecycle::

    IDLE ──submit──▶ PENDING ──first chunk──▶ STREAMING ──stream exhausted──▶ IDLE
                        │                         │
                        └──────── error ──────────┴──▶ ERROR ──▶ IDLE

On submit the user message and an empty *placeholder* model message are
appended to the transcript.  Each streamed chunk produces a new transcript
whose last message is the placeholder extended by that chunk, in arrival
order.  Any failure (missing credential, request construction, the stream
itself) replaces the placeholder with a failure message and sets the error
banner; nothing propagates to the caller.

The credential is checked when the model client is built, i.e. *after* the
placeholder has been appended, so a missing key shows up as the assistant's
reply to that turn.

Closing a turn's :class:`TurnStream` before its first chunk was requested
rolls the turn back (the transcript returns to its previous value).  Closing
it mid-stream keeps the partial reply but marks it as interrupted.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections.abc import AsyncGenerator, Callable
from datetime import date
from typing import Any

from langchain_anthropic import ChatAnthropic

from salon_insights.analytics.context import AnalyticsContext
from salon_insights.chat.transcript import Message, Transcript
from salon_insights.config import (
    ASSISTANT_NAME,
    MODEL_MAX_TOKENS,
    MODEL_NAME,
    get_anthropic_api_key,
    get_reference_date,
)
from salon_insights.errors import ConfigurationError, SalonInsightsError, StreamError
from salon_insights.prompts import (
    ERROR_BANNER_TEMPLATE,
    FAILURE_MESSAGE_TEMPLATE,
    INTERRUPTED_MARKER,
    QUICK_QUESTIONS,
    UNKNOWN_ERROR,
    build_request_messages,
    get_greeting,
)
from salon_insights.services.metrics import metrics

logger = logging.getLogger(__name__)


class TurnState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    STREAMING = "streaming"
    ERROR = "error"


def _build_llm() -> ChatAnthropic:
    """Build the streaming chat model.

    Raises :class:`ConfigurationError` before any network activity when the
    API key is missing.
    """
    return ChatAnthropic(
        model=MODEL_NAME,
        api_key=get_anthropic_api_key(),
        temperature=0.3,
        max_tokens=MODEL_MAX_TOKENS,
    )


def _chunk_text(chunk: Any) -> str:
    """Extract the text of a streamed message chunk.

    Anthropic chunks carry either a plain string or a list of content blocks.
    """
    content = getattr(chunk, "content", chunk)
    if isinstance(content, str):
        return content
    parts: list[str] = []
    for block in content or ():
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


class TurnStream:
    """Async iterator over the reply chunks of one turn.

    ``aclose()`` must be called when the consumer stops early; it is a no-op
    once the turn has finished.
    """

    def __init__(
        self,
        orchestrator: ChatOrchestrator,
        chunks: AsyncGenerator[str, None],
        previous: Transcript,
    ):
        self._orchestrator = orchestrator
        self._chunks = chunks
        self._previous = previous
        self._started = False

    def __aiter__(self) -> TurnStream:
        return self

    async def __anext__(self) -> str:
        self._started = True
        return await self._chunks.__anext__()

    async def aclose(self) -> None:
        if not self._started:
            self._started = True
            self._orchestrator._abandon_turn(self._previous)
        await self._chunks.aclose()


class ChatOrchestrator:
    """Owns the transcript of one conversation and drives its turns."""

    def __init__(
        self,
        context: AnalyticsContext | None = None,
        *,
        llm_factory: Callable[[], Any] | None = None,
        reference_date: date | None = None,
        assistant_name: str = ASSISTANT_NAME,
    ):
        self._context = context if context is not None else AnalyticsContext.empty()
        self._llm_factory = llm_factory or _build_llm
        self._reference_date = reference_date or get_reference_date()
        self._assistant_name = assistant_name

        self.transcript = Transcript.start(get_greeting(assistant_name))
        self.state = TurnState.IDLE
        self.is_loading = False
        self.error: str | None = None
        self.last_exception: SalonInsightsError | None = None
        self.draft = ""

    # ── Context & UI state ───────────────────────────────────────────

    @property
    def context(self) -> AnalyticsContext:
        return self._context

    def update_context(self, context: AnalyticsContext) -> None:
        """Use *context* for every turn submitted from now on."""
        self._context = context

    def report_error(self, banner: str) -> None:
        self.error = banner

    @property
    def is_pending(self) -> bool:
        return self.state in (TurnState.PENDING, TurnState.STREAMING)

    def can_submit(self, text: str) -> bool:
        return bool(text and text.strip()) and not self.is_pending

    def apply_quick_question(self, key: str) -> str:
        """Pre-fill the draft with a predefined question.  Never submits."""
        _, prompt = QUICK_QUESTIONS[key]
        self.draft = prompt
        return prompt

    # ── Turns ────────────────────────────────────────────────────────

    def start_turn(self, text: str) -> TurnStream | None:
        """Begin a turn and return the iterator of reply chunks.

        Returns ``None`` (and leaves the transcript untouched) when *text* is
        blank or a turn is already in progress.  The user message and the
        placeholder are appended synchronously, so a second call made before
        the iterator is consumed is already refused.
        """
        if not self.can_submit(text):
            logger.debug("Submission ignored (blank input or turn pending)")
            return None

        previous = self.transcript
        self.transcript = previous.append(
            Message("user", text), Message("model", ""),
        )
        self.draft = ""
        self.state = TurnState.PENDING
        self.is_loading = True
        self.error = None
        self.last_exception = None
        return TurnStream(self, self._run_turn(text, previous.history), previous)

    async def submit(self, text: str) -> bool:
        """Run a whole turn.  Returns ``False`` if the submission was ignored."""
        chunks = self.start_turn(text)
        if chunks is None:
            return False
        try:
            async for _ in chunks:
                pass
        finally:
            await chunks.aclose()
        return True

    def _abandon_turn(self, previous: Transcript) -> None:
        """Undo a turn whose stream was closed before it started."""
        logger.info("Chat turn abandoned before streaming started")
        self.transcript = previous
        self.is_loading = False
        self.state = TurnState.IDLE

    def _interrupt(self, *, latency_ms: float) -> None:
        partial = self.transcript.last.content
        logger.warning("Chat turn interrupted after %d characters", len(partial))
        metrics.record_failure(
            "anthropic", "stream", error_type="Interrupted", latency_ms=latency_ms,
        )
        content = f"{partial}\n\n{INTERRUPTED_MARKER}" if partial else INTERRUPTED_MARKER
        self.transcript = self.transcript.replace_last(Message("model", content))

    async def _run_turn(
        self, text: str, history: tuple[Message, ...],
    ) -> AsyncGenerator[str, None]:
        t0 = time.perf_counter()
        first_chunk_ms: float | None = None
        chunk_count = 0
        try:
            llm = self._llm_factory()
            messages = build_request_messages(
                self._context,
                history,
                text,
                reference_date=self._reference_date,
                assistant_name=self._assistant_name,
            )
            logger.debug(
                "Streaming reply: %d prior messages, context loaded=%s",
                len(history), self._context.is_loaded,
            )
            async for chunk in llm.astream(messages):
                if self.state is TurnState.PENDING:
                    self.state = TurnState.STREAMING
                    self.is_loading = False
                    first_chunk_ms = (time.perf_counter() - t0) * 1000
                piece = _chunk_text(chunk)
                if not piece:
                    continue
                chunk_count += 1
                self.transcript = self.transcript.extend_last(piece)
                yield piece
        except (GeneratorExit, asyncio.CancelledError):
            self._interrupt(latency_ms=(time.perf_counter() - t0) * 1000)
            raise
        except Exception as exc:
            self._fail(exc, latency_ms=(time.perf_counter() - t0) * 1000)
            return
        finally:
            self.is_loading = False
            if self.state is not TurnState.ERROR:
                self.state = TurnState.IDLE

        metrics.record_stream(
            "anthropic",
            first_chunk_ms=first_chunk_ms,
            total_ms=(time.perf_counter() - t0) * 1000,
            chunks=chunk_count,
        )

    def _fail(self, exc: Exception, *, latency_ms: float) -> None:
        if isinstance(exc, ConfigurationError):
            logger.error("Chat turn aborted: %s", exc)
            error: SalonInsightsError = exc
        else:
            logger.exception("LLM stream failed")
            error = StreamError(str(exc) or UNKNOWN_ERROR)
            error.__cause__ = exc
        metrics.record_failure(
            "anthropic", "stream", error_type=type(exc).__name__, latency_ms=latency_ms,
        )

        description = str(error)
        self.state = TurnState.ERROR
        self.last_exception = error
        self.error = ERROR_BANNER_TEMPLATE.format(error=description)
        self.transcript = self.transcript.replace_last(
            Message("model", FAILURE_MESSAGE_TEMPLATE.format(error=description)),
        )
        self.state = TurnState.IDLE
