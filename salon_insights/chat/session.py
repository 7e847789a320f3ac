"""Per-conversation sessions and the in-memory registry that holds them."""

from __future__ import annotations

import logging
import uuid
from collections import OrderedDict
from collections.abc import Callable
from time import monotonic
from typing import Any

from salon_insights.analytics.context import AnalyticsContext
from salon_insights.analytics.loader import AnalyticsLoader, SettingsProvider
from salon_insights.chat.orchestrator import ChatOrchestrator
from salon_insights.config import (
    MAX_SESSIONS,
    RECENT_SAMPLE_SIZE,
    SESSION_IDLE_TTL_SECONDS,
    get_reference_date,
)
from salon_insights.errors import DataFetchError
from salon_insights.prompts import DATA_FETCH_ERROR_BANNER
from salon_insights.services.salon_client import SalonAPIClient

logger = logging.getLogger(__name__)


class ChatSession:
    """A conversation plus the data load that feeds its context."""

    def __init__(self, session_id: str, loader: AnalyticsLoader, orchestrator: ChatOrchestrator):
        self.session_id = session_id
        self.loader = loader
        self.orchestrator = orchestrator
        self._context_resolved = False

    async def ensure_context(self) -> AnalyticsContext:
        """Wait for the data load and install its context in the orchestrator.

        A failed load sets the error banner and leaves the context empty; it
        is not retried.
        """
        if self._context_resolved:
            return self.orchestrator.context
        try:
            context = await self.loader.wait()
        except DataFetchError:
            self.orchestrator.report_error(DATA_FETCH_ERROR_BANNER)
            context = AnalyticsContext.empty()
        self.orchestrator.update_context(context)
        self._context_resolved = True
        return context

    def close(self) -> None:
        self.loader.cancel()


class SessionRegistry:
    """In-memory map of session id → :class:`ChatSession`.

    Nothing is persisted.  Sessions idle for longer than *idle_ttl* seconds
    are dropped, and once *max_sessions* are open the least recently used
    one is closed to make room.  Every lookup counts as use.
    """

    def __init__(
        self,
        client: SalonAPIClient,
        *,
        settings_provider: SettingsProvider | None = None,
        llm_factory: Callable[[], Any] | None = None,
        idle_ttl: float = SESSION_IDLE_TTL_SECONDS,
        max_sessions: int = MAX_SESSIONS,
    ):
        self._client = client
        self._settings_provider = settings_provider
        self._llm_factory = llm_factory
        self._idle_ttl = idle_ttl
        self._max_sessions = max_sessions
        # session id → (session, last used); least recently used first
        self._sessions: OrderedDict[str, tuple[ChatSession, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> ChatSession:
        """Create a session and start loading its data in the background."""
        self.evict_idle()
        while len(self._sessions) >= self._max_sessions:
            oldest = next(iter(self._sessions))
            logger.info("Session limit (%d) reached, closing %s", self._max_sessions, oldest)
            self.close(oldest)

        session_id = str(uuid.uuid4())
        reference_date = get_reference_date()
        loader = AnalyticsLoader(
            self._client,
            reference_date=reference_date,
            sample_size=RECENT_SAMPLE_SIZE,
            settings_provider=self._settings_provider,
        )
        orchestrator = ChatOrchestrator(
            llm_factory=self._llm_factory,
            reference_date=reference_date,
        )
        session = ChatSession(session_id, loader, orchestrator)
        loader.start()
        self._sessions[session_id] = (session, monotonic())
        logger.info("Started new session: %s", session_id)
        return session

    def get(self, session_id: str) -> ChatSession | None:
        """Return the session (marking it as used) or ``None``."""
        self.evict_idle()
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        session, _ = entry
        self._sessions[session_id] = (session, monotonic())
        self._sessions.move_to_end(session_id)
        return session

    def evict_idle(self) -> int:
        """Close sessions unused for longer than the idle TTL.  Returns count closed."""
        cutoff = monotonic() - self._idle_ttl
        expired = [sid for sid, (_, last_used) in self._sessions.items() if last_used < cutoff]
        for session_id in expired:
            logger.info("Session %s idle for over %ss, closing", session_id, self._idle_ttl)
            self.close(session_id)
        return len(expired)

    def close(self, session_id: str) -> bool:
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            return False
        session, _ = entry
        session.close()
        logger.info("Closed session: %s", session_id)
        return True

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)
