"""Centralized configuration for the Salon Insights service.

Secret resolution order (per variable):
  1. Environment variable / ``.env`` file  (local dev)
  2. AWS SSM Parameter Store SecureString  (when ``AWS_EXECUTION_ENV`` is set)

The SSM paths follow the convention ``/salon-insights/<VARIABLE_NAME>``.

``ANTHROPIC_API_KEY`` is resolved lazily through :func:`get_anthropic_api_key`
so the service can start (and load salon data) without it; a missing key only
fails the chat turn that needs it.
"""

from __future__ import annotations

import logging
import os
from datetime import UTC, date, datetime

from dotenv import load_dotenv

from salon_insights.errors import ConfigurationError

load_dotenv()

logger = logging.getLogger(__name__)

# ── Feature flag: running on AWS? ────────────────────────────────────
_ON_AWS = bool(os.getenv("AWS_EXECUTION_ENV"))


# ── Secret resolution ────────────────────────────────────────────────

def _get_ssm_parameter(name: str) -> str | None:
    """Fetch a SecureString from SSM Parameter Store.

    Returns ``None`` if the parameter does not exist or boto3 is
    unavailable.  Errors are logged but never raised so that local-dev
    fallback still works.
    """
    try:
        import boto3  # noqa: PLC0415  lazy import, boto3 is only needed on AWS

        ssm = boto3.client("ssm")
        resp = ssm.get_parameter(Name=f"/salon-insights/{name}", WithDecryption=True)
        return resp["Parameter"]["Value"]
    except Exception:
        logger.debug("SSM lookup for %s failed (expected locally)", name)
        return None


def _resolve(name: str) -> str | None:
    """Return a config value from env-var or SSM, or ``None`` when unset."""
    value = os.getenv(name)
    if value and not value.startswith("your_"):
        return value

    if _ON_AWS:
        return _get_ssm_parameter(name)
    return None


def get_anthropic_api_key() -> str:
    """Return the LLM credential or raise :class:`ConfigurationError`.

    Read on every call (not at import) so that the key can be rotated and
    so that its absence is reported per chat turn.
    """
    value = _resolve("ANTHROPIC_API_KEY")
    if not value:
        raise ConfigurationError("A chave da API não foi configurada.")
    return value


def get_reference_date() -> date:
    """The fixed "today" the assistant reasons about.

    ``REFERENCE_DATE`` (ISO format) pins it; otherwise the current UTC date.
    """
    raw = os.getenv("REFERENCE_DATE")
    if raw:
        return date.fromisoformat(raw)
    return datetime.now(UTC).date()


# ── LLM ─────────────────────────────────────────────────────────────
MODEL_NAME: str = os.getenv("MODEL_NAME", "claude-haiku-4-5")
MODEL_MAX_TOKENS: int = int(os.getenv("MODEL_MAX_TOKENS", "2048"))
ASSISTANT_NAME: str = os.getenv("ASSISTANT_NAME", "Any Hair")

# ── Salon API ───────────────────────────────────────────────────────
SALON_API_BASE_URL: str = os.getenv("SALON_API_BASE_URL", "http://localhost:3001/api")
SALON_API_TOKEN: str | None = _resolve("SALON_API_TOKEN")
# Large enough to request the full client list in one page
CLIENTS_PAGE_SIZE: int = int(os.getenv("CLIENTS_PAGE_SIZE", "10000"))
RECENT_SAMPLE_SIZE: int = int(os.getenv("RECENT_SAMPLE_SIZE", "30"))

# ── Sessions ────────────────────────────────────────────────────────
# Idle sessions are dropped after this many seconds without a request
SESSION_IDLE_TTL_SECONDS: int = int(os.getenv("SESSION_IDLE_TTL_SECONDS", "3600"))
MAX_SESSIONS: int = int(os.getenv("MAX_SESSIONS", "1000"))

# ── Server ──────────────────────────────────────────────────────────
SERVER_HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("SERVER_PORT", "8000"))
CORS_ORIGINS: list[str] = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")
