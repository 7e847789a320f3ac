"""Tests for the SalonAPIClient service."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from salon_insights.errors import SalonAPIError
from salon_insights.services.salon_client import SalonAPIClient

BASE_URL = "https://salon.test/api"

# ── Helpers ──────────────────────────────────────────────────────────


def _client(handler, token: str | None = "salon-token") -> SalonAPIClient:
    return SalonAPIClient(BASE_URL, token, transport=httpx.MockTransport(handler))


def _call(client: SalonAPIClient, method: str, *args, **kwargs):
    async def run():
        try:
            return await getattr(client, method)(*args, **kwargs)
        finally:
            await client.aclose()

    return asyncio.run(run())


APPOINTMENT = {
    "id": "a1",
    "date": "2025-10-20T14:00:00.000Z",
    "status": "completed",
    "service": {"name": "Corte", "price": "R$ 50,00"},
    "professional": {"name": "Ana"},
    "client": {"id": "c1"},
}


# ── Tests: list_appointments ─────────────────────────────────────────


class TestListAppointments:
    def test_returns_parsed_records(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/appointments"
            return httpx.Response(200, json=[APPOINTMENT])

        appointments = _call(_client(handler), "list_appointments")

        assert len(appointments) == 1
        assert appointments[0].service.price == "R$ 50,00"
        assert appointments[0].professional.name == "Ana"
        assert appointments[0].is_completed
        assert appointments[0].date.tzinfo is not None

    def test_sends_bearer_token(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=[])

        _call(_client(handler), "list_appointments")
        assert seen["auth"] == "Bearer salon-token"

    def test_malformed_record_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"status": "completed"}])

        with pytest.raises(SalonAPIError, match="Malformed"):
            _call(_client(handler), "list_appointments")

    def test_non_list_payload_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"appointments": []})

        with pytest.raises(SalonAPIError, match="expected a list"):
            _call(_client(handler), "list_appointments")


# ── Tests: list_clients ──────────────────────────────────────────────


class TestListClients:
    def test_requests_full_page(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["params"] = dict(request.url.params)
            return httpx.Response(
                200, json={"clients": [{"id": "c1", "name": "Maria"}], "total": 1},
            )

        page = _call(_client(handler), "list_clients")

        assert seen["params"] == {"page": "1", "limit": "10000"}
        assert [c.id for c in page.clients] == ["c1"]
        assert page.total == 1

    def test_accepts_bare_list(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"id": 1}, {"id": 2}])

        page = _call(_client(handler), "list_clients", page=1, limit=50)
        assert len(page.clients) == 2


# ── Tests: catalog & settings ────────────────────────────────────────


class TestCatalogAndSettings:
    def test_list_services(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json=[{"id": "s1", "name": "Corte", "price": "R$ 50,00",
                       "productCost": "R$ 5,00", "duration": "45 min"}],
            )

        services = _call(_client(handler), "list_services")
        assert services[0].product_cost == "R$ 5,00"

    def test_get_financial_settings(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/settings/financial"
            return httpx.Response(200, json={"defaultCommission": 40, "fixedCosts": 3500})

        settings = _call(_client(handler), "get_financial_settings")
        assert settings.default_commission == 40
        assert settings.fixed_costs == 3500


# ── Tests: error handling ────────────────────────────────────────────


class TestErrors:
    def test_server_error_carries_status(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503, text="maintenance")

        with pytest.raises(SalonAPIError) as exc_info:
            _call(_client(handler), "list_appointments")

        assert exc_info.value.status_code == 503
        assert "Server error 503" in str(exc_info.value)
        assert len(calls) == 1  # not retried

    def test_client_error_carries_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, text="unauthorized")

        with pytest.raises(SalonAPIError) as exc_info:
            _call(_client(handler), "list_clients")
        assert exc_info.value.status_code == 401

    def test_connection_error_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(SalonAPIError, match="connection refused") as exc_info:
            _call(_client(handler), "list_appointments")
        assert exc_info.value.status_code is None

    def test_invalid_json_is_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        with pytest.raises(SalonAPIError):
            _call(_client(handler), "list_appointments")
