"""Shared test fixtures for the Salon Insights test suite."""

from __future__ import annotations

import asyncio
import os
from datetime import date

import pytest
from langchain_core.messages import AIMessageChunk


def pytest_configure(config):
    """Set test environment variables BEFORE collection starts.

    This runs before any imports, so config.py picks up a fixed reference
    date and metrics stay local.
    """
    os.environ.setdefault("ANTHROPIC_API_KEY", "test-anthropic-key-123")
    os.environ.setdefault("REFERENCE_DATE", "2025-10-22")
    os.environ["METRICS_ENABLED"] = "false"


@pytest.fixture
def reference_date() -> date:
    return date(2025, 10, 22)


class FakeStreamingLLM:
    """Stands in for ChatAnthropic: streams fixed chunks, records requests.

    If *error* is given it is raised after *fail_after* chunks.
    """

    def __init__(self, chunks, *, error: Exception | None = None, fail_after: int | None = None):
        self.chunks = list(chunks)
        self.error = error
        self.fail_after = len(self.chunks) if fail_after is None else fail_after
        self.calls: list[list] = []

    async def astream(self, messages):
        self.calls.append(list(messages))
        for i, chunk in enumerate(self.chunks):
            if self.error is not None and i == self.fail_after:
                raise self.error
            await asyncio.sleep(0)
            yield AIMessageChunk(content=chunk)
        if self.error is not None and self.fail_after >= len(self.chunks):
            raise self.error


@pytest.fixture
def fake_llm():
    """Factory fixture for fake streaming models."""
    return FakeStreamingLLM


@pytest.fixture
def make_appointment():
    """Factory fixture for appointment records as the salon API returns them."""

    def _make(
        when: str = "2025-10-20T10:00:00Z",
        status: str = "completed",
        price: str | float = "R$ 50,00",
        service: str = "Corte",
        professional: str = "Ana",
        client_id: str = "c1",
    ):
        from salon_insights.models import AppointmentRecord

        return AppointmentRecord.model_validate(
            {
                "date": when,
                "status": status,
                "service": {"name": service, "price": price},
                "professional": {"name": professional},
                "client": {"id": client_id},
            }
        )

    return _make


@pytest.fixture
def salon_settings():
    from salon_insights.analytics.loader import SalonSettings
    from salon_insights.models import FinancialSettings, ServiceRecord

    return SalonSettings(
        services=(
            ServiceRecord.model_validate(
                {"id": "s1", "name": "Corte", "price": "R$ 50,00",
                 "productCost": "R$ 5,00", "duration": "45 min"}
            ),
            ServiceRecord.model_validate(
                {"id": "s2", "name": "Coloração", "price": "R$ 180,00",
                 "productCost": "R$ 40,00", "duration": "1h 30min"}
            ),
        ),
        financial_settings=FinancialSettings.model_validate(
            {"defaultCommission": 40, "fixedCosts": 3500}
        ),
    )
