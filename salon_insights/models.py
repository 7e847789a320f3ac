"""Pydantic models for the records served by the salon REST API.

The API speaks camelCase JSON; fields are exposed in snake_case and accept
either spelling on input.  Records are frozen: once fetched they are never
mutated.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

COMPLETED = "completed"
PENDING = "pending"


class _Record(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class ServiceRef(_Record):
    name: str = ""
    price: str | float | int | None = None


class ProfessionalRef(_Record):
    name: str = ""


class ClientRef(_Record):
    id: str | int | None = None


class AppointmentRecord(_Record):
    """A single booking as returned by ``GET /appointments``."""

    id: str | int | None = None
    date: datetime
    status: str = PENDING
    service: ServiceRef = Field(default_factory=ServiceRef)
    professional: ProfessionalRef = Field(default_factory=ProfessionalRef)
    client: ClientRef = Field(default_factory=ClientRef)

    @field_validator("date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Mixed naive/aware timestamps cannot be compared when sorting
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def is_completed(self) -> bool:
        return self.status == COMPLETED


class ClientRecord(_Record):
    """A salon client.  Only the identity matters for analytics."""

    model_config = ConfigDict(extra="allow")

    id: str | int


class ServiceRecord(_Record):
    """An entry of the salon's service catalog."""

    id: str | int
    name: str
    price: str | float | int | None = None
    product_cost: str | float | int | None = None
    duration: str | int | None = None


class FinancialSettings(_Record):
    default_commission: float | None = None
    fixed_costs: float | None = None


class ClientPage(_Record):
    """One page of ``GET /clients``."""

    clients: list[ClientRecord] = Field(default_factory=list)
    total: int | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> ClientPage:
        # Older API versions return a bare list
        if isinstance(payload, list):
            return cls(clients=payload, total=len(payload))
        return cls.model_validate(payload)
