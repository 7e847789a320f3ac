"""Background load of the data behind the analytics context.

The load runs as an :class:`asyncio.Task` so that a session teardown can
cancel it while requests are still in flight.  Appointments and clients are
fetched concurrently and are all-or-nothing: if either read fails the whole
load fails with :class:`DataFetchError` and no partial context is kept.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import date

from salon_insights.analytics.context import (
    DEFAULT_SAMPLE_SIZE,
    AnalyticsContext,
    build_analytics_context,
)
from salon_insights.errors import DataFetchError
from salon_insights.models import FinancialSettings, ServiceRecord
from salon_insights.services.salon_client import SalonAPIClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalonSettings:
    """Service catalog and financial settings, injected into the aggregator."""

    services: tuple[ServiceRecord, ...]
    financial_settings: FinancialSettings


async def load_salon_settings(client: SalonAPIClient) -> SalonSettings:
    services, financial_settings = await asyncio.gather(
        client.list_services(), client.get_financial_settings(),
    )
    return SalonSettings(tuple(services), financial_settings)


SettingsProvider = Callable[[], Awaitable[SalonSettings]]


class AnalyticsLoader:
    """Cancellable one-shot load producing an :class:`AnalyticsContext`."""

    def __init__(
        self,
        client: SalonAPIClient,
        *,
        reference_date: date,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        settings_provider: SettingsProvider | None = None,
    ):
        self._client = client
        self._reference_date = reference_date
        self._sample_size = sample_size
        self._settings_provider = settings_provider or (lambda: load_salon_settings(client))
        self._task: asyncio.Task[AnalyticsContext] | None = None

    def start(self) -> None:
        """Schedule the load on the running loop (idempotent)."""
        if self._task is None:
            self._task = asyncio.create_task(self._load(), name="analytics-load")

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def wait(self) -> AnalyticsContext:
        """Wait for the load and return the context.

        Raises :class:`DataFetchError` if the load failed and
        :class:`asyncio.CancelledError` if it was cancelled.  Cancelling the
        caller does not cancel the load itself.
        """
        self.start()
        return await asyncio.shield(self._task)

    def cancel(self) -> bool:
        """Abort an in-flight load.  Returns ``True`` if there was one."""
        if self._task is None or self._task.done():
            return False
        logger.info("Cancelling in-flight analytics load")
        return self._task.cancel()

    async def _load(self) -> AnalyticsContext:
        try:
            (appointments, client_page), settings = await asyncio.gather(
                asyncio.gather(self._client.list_appointments(), self._client.list_clients()),
                self._settings_provider(),
            )
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("Failed to load data for AI context: %s", exc, exc_info=True)
            raise DataFetchError(str(exc)) from exc

        logger.info(
            "Loaded %d appointments and %d clients for analytics",
            len(appointments), len(client_page.clients),
        )
        return build_analytics_context(
            appointments,
            client_page.clients,
            settings.services,
            settings.financial_settings,
            reference_date=self._reference_date,
            sample_size=self._sample_size,
        )
