"""Async HTTP client for the salon-management REST API.

Only the read endpoints the analytics assistant needs are wrapped.  Calls
are not retried: a failed load is reported to the user, who decides whether
to reload.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx
from pydantic import ValidationError

from salon_insights.config import CLIENTS_PAGE_SIZE, SALON_API_BASE_URL, SALON_API_TOKEN
from salon_insights.errors import SalonAPIError
from salon_insights.models import (
    AppointmentRecord,
    ClientPage,
    FinancialSettings,
    ServiceRecord,
)
from salon_insights.services.metrics import metrics

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 15.0


class SalonAPIClient:
    """Thin wrapper around the salon REST API.

    ``transport`` is injectable so tests can serve canned responses through
    :class:`httpx.MockTransport`.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        token = token or SALON_API_TOKEN
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url or SALON_API_BASE_URL,
            headers=headers,
            timeout=REQUEST_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # ── Internal helpers ─────────────────────────────────────────────

    async def _get(self, path: str, *, params: dict[str, Any] | None = None) -> Any:
        """GET *path* and return the decoded JSON body."""
        operation = f"GET {path}"
        t0 = time.perf_counter()
        try:
            response = await self._client.get(path, params=params)
            if response.status_code >= 400:
                kind = "Server" if response.status_code >= 500 else "Client"
                raise SalonAPIError(
                    f"{kind} error {response.status_code}: {response.text}",
                    status_code=response.status_code,
                )
            data = response.json()
        except (httpx.HTTPError, ValueError, SalonAPIError) as exc:
            elapsed = (time.perf_counter() - t0) * 1000
            metrics.record_failure(
                "salon_api", operation, error_type=type(exc).__name__, latency_ms=elapsed,
            )
            logger.warning("Salon API %s failed: %s", operation, exc)
            if isinstance(exc, SalonAPIError):
                raise
            raise SalonAPIError(f"Salon API request {operation} failed: {exc}") from exc

        metrics.record_call("salon_api", operation, latency_ms=(time.perf_counter() - t0) * 1000)
        return data

    @staticmethod
    def _validate_list(model, payload: Any, operation: str) -> list:
        if not isinstance(payload, list):
            raise SalonAPIError(f"Unexpected payload for {operation}: expected a list")
        try:
            return [model.model_validate(item) for item in payload]
        except ValidationError as exc:
            raise SalonAPIError(f"Malformed record in {operation}: {exc}") from exc

    # ── Public API methods ───────────────────────────────────────────

    async def list_appointments(self) -> list[AppointmentRecord]:
        """List every appointment the salon has on record."""
        payload = await self._get("/appointments")
        return self._validate_list(AppointmentRecord, payload, "GET /appointments")

    async def list_clients(self, page: int = 1, limit: int | None = None) -> ClientPage:
        """Fetch one page of clients.

        The default page size is large enough to bring the whole list back
        in a single request.
        """
        payload = await self._get(
            "/clients", params={"page": page, "limit": limit or CLIENTS_PAGE_SIZE},
        )
        try:
            return ClientPage.from_payload(payload)
        except ValidationError as exc:
            raise SalonAPIError(f"Malformed payload for GET /clients: {exc}") from exc

    async def list_services(self) -> list[ServiceRecord]:
        """The salon's service catalog."""
        payload = await self._get("/services")
        return self._validate_list(ServiceRecord, payload, "GET /services")

    async def get_financial_settings(self) -> FinancialSettings:
        payload = await self._get("/settings/financial")
        try:
            return FinancialSettings.model_validate(payload)
        except ValidationError as exc:
            raise SalonAPIError(f"Malformed payload for GET /settings/financial: {exc}") from exc
