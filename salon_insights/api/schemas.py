"""Pydantic schemas for the FastAPI endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from salon_insights.analytics.context import AnalyticsSummary


class ChatRequest(BaseModel):
    """A question typed by the salon owner."""

    message: str = Field(..., min_length=1, max_length=2000, description="The user's question")


class MessageOut(BaseModel):
    role: Literal["user", "model"]
    content: str = Field(..., description="Raw markdown as produced by the model")
    html: str = Field(..., description="Content rendered to display markup")


class TranscriptResponse(BaseModel):
    session_id: str
    messages: list[MessageOut]
    is_pending: bool = False
    is_loading: bool = False
    error: str | None = Field(None, description="Error banner, if any")
    draft: str = ""


class SummaryResponse(BaseModel):
    """Data behind the collapsible summary panel."""

    session_id: str
    loaded: bool
    summary: AnalyticsSummary | None = None
    error: str | None = None


class QuickQuestion(BaseModel):
    key: str
    label: str
    prompt: str


class DraftResponse(BaseModel):
    session_id: str
    draft: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    service: str = "salon-insights"
    sessions: int = 0
