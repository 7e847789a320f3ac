"""Analytics context: the compact summary of the salon's data sent to the LLM.

:func:`build_analytics_context` is a pure function of its inputs.  Whenever
the appointments, clients, services or financial settings change the whole
context is rebuilt; there is no incremental update path.

The context is serialized with the Portuguese keys the assistant's prompt is
written against (``geral``, ``servicos``, ...), while the Python attributes
stay in English.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from salon_insights.analytics.formatters import parse_currency, parse_duration_to_minutes
from salon_insights.models import (
    AppointmentRecord,
    ClientRecord,
    FinancialSettings,
    ServiceRecord,
)

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_SIZE = 30


class _ContextModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class GeneralSummary(_ContextModel):
    reference_date: date = Field(alias="data_atual")
    total_appointments: int = Field(alias="total_agendamentos_no_periodo")
    total_clients: int = Field(alias="total_clientes")
    total_revenue: float = Field(alias="faturamento_total_agendamentos_concluidos")
    completed_count: int = Field(alias="total_servicos_prestados")
    average_ticket: float = Field(alias="ticket_medio")


class ServiceSnapshot(_ContextModel):
    id: str | int
    name: str = Field(alias="nome")
    price: str | float | int | None = Field(alias="preco")
    product_cost: str | float | int | None = Field(alias="custo_produto")
    duration_minutes: int = Field(alias="duracao_minutos")


class FinancialSnapshot(_ContextModel):
    default_commission_percent: float | None = Field(alias="comissao_padrao_percentual")
    monthly_fixed_costs: float | None = Field(alias="custos_fixos_mensais")


class AppointmentSample(_ContextModel):
    day: date = Field(alias="data")
    service: str = Field(alias="servico")
    professional: str = Field(alias="profissional")
    price: str | float | int | None = Field(alias="preco")
    status: str
    client_id: str | int | None = Field(alias="id_cliente")


class AnalyticsSummary(BaseModel):
    """What the collapsible summary panel shows."""

    total_revenue: float
    total_appointments: int
    total_clients: int
    average_ticket: float
    service_count: int


class AnalyticsContext(_ContextModel):
    general: GeneralSummary | None = Field(default=None, alias="geral")
    services: tuple[ServiceSnapshot, ...] = Field(default=(), alias="servicos")
    financial_settings: FinancialSnapshot | None = Field(
        default=None, alias="configuracoes_financeiras",
    )
    recent_appointments: tuple[AppointmentSample, ...] = Field(
        default=(), alias="amostra_agendamentos_recentes",
    )

    @classmethod
    def empty(cls) -> AnalyticsContext:
        """The context before any data was loaded (or after a failed load)."""
        return cls()

    @property
    def is_loaded(self) -> bool:
        return self.general is not None

    def to_prompt_json(self) -> str:
        """Serialize with the Portuguese keys, for the first synthetic turn."""
        return self.model_dump_json(by_alias=True)

    def summary(self) -> AnalyticsSummary | None:
        if self.general is None:
            return None
        return AnalyticsSummary(
            total_revenue=self.general.total_revenue,
            total_appointments=self.general.total_appointments,
            total_clients=self.general.total_clients,
            average_ticket=self.general.average_ticket,
            service_count=len(self.services),
        )


def _snapshot_service(service: ServiceRecord) -> ServiceSnapshot:
    return ServiceSnapshot(
        id=service.id,
        name=service.name,
        price=service.price,
        product_cost=service.product_cost,
        duration_minutes=parse_duration_to_minutes(service.duration),
    )


def _sample_appointment(appointment: AppointmentRecord) -> AppointmentSample:
    return AppointmentSample(
        day=appointment.date.date(),
        service=appointment.service.name,
        professional=appointment.professional.name,
        price=appointment.service.price,
        status=appointment.status,
        client_id=appointment.client.id,
    )


def build_analytics_context(
    appointments: Sequence[AppointmentRecord],
    clients: Sequence[ClientRecord],
    services: Sequence[ServiceRecord],
    financial_settings: FinancialSettings,
    *,
    reference_date: date,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
) -> AnalyticsContext:
    """Reduce the raw salon records into an :class:`AnalyticsContext`.

    Only ``completed`` appointments contribute revenue; prices that cannot be
    parsed count as zero.  The recent sample holds at most *sample_size*
    appointments, newest first.
    """
    completed = [a for a in appointments if a.is_completed]
    total_revenue = sum(parse_currency(a.service.price) for a in completed)
    completed_count = len(completed)
    average_ticket = total_revenue / completed_count if completed_count > 0 else 0.0

    general = GeneralSummary(
        reference_date=reference_date,
        total_appointments=len(appointments),
        total_clients=len(clients),
        total_revenue=total_revenue,
        completed_count=completed_count,
        average_ticket=average_ticket,
    )

    recent = sorted(appointments, key=lambda a: a.date, reverse=True)[:sample_size]

    context = AnalyticsContext(
        general=general,
        services=tuple(_snapshot_service(s) for s in services),
        financial_settings=FinancialSnapshot(
            default_commission_percent=financial_settings.default_commission,
            monthly_fixed_costs=financial_settings.fixed_costs,
        ),
        recent_appointments=tuple(_sample_appointment(a) for a in recent),
    )
    logger.debug(
        "Analytics context built: %d appointments (%d completed), %d clients, "
        "revenue=%.2f",
        len(appointments), completed_count, len(clients), total_revenue,
    )
    return context
