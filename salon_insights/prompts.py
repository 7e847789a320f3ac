"""Prompts and fixed texts for the salon analytics assistant."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from salon_insights.analytics.context import AnalyticsContext
from salon_insights.chat.transcript import Message

_MONTHS_PT = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)

SYSTEM_PROMPT_TEMPLATE = """Você é um analista de negócios especialista em salões de beleza chamado '{assistant_name} IA'.

## Personalidade
Sua personalidade é prestativa, perspicaz e profissional.

## Como responder
- Responda às perguntas do usuário com base nos dados fornecidos em JSON.
- Forneça insights claros, concisos e acionáveis.
- Use formatação Markdown, como negrito (**texto**), itálico (*texto*), listas (- item) e títulos (## Título ou ### Subtítulo), para organizar suas respostas e torná-las fáceis de ler.
- Sempre baseie suas conclusões nos dados fornecidos. Se os dados não forem suficientes para responder, explique o porquê.
- Valores monetários estão em reais (R$).

## Data atual
Hoje é {current_date}.
"""

GREETING_TEMPLATE = (
    "Olá! Sou a inteligência artificial do {assistant_name} e tenho acesso aos "
    "dados do seu salão. O que você gostaria de analisar hoje para "
    "impulsionar seus resultados?"
)

CONTEXT_TURN_TEMPLATE = "Aqui estão os dados do salão: {context_json}"

CONTEXT_ACKNOWLEDGEMENT = (
    "Ok, entendi. Tenho os dados carregados. O que você gostaria de analisar?"
)

FAILURE_MESSAGE_TEMPLATE = (
    "Desculpe, não consegui processar sua solicitação. Erro: {error}"
)

ERROR_BANNER_TEMPLATE = "Erro na comunicação com a IA: {error}"

DATA_FETCH_ERROR_BANNER = "Falha ao carregar dados para a análise. Tente novamente."

UNKNOWN_ERROR = "Ocorreu um erro desconhecido."

# Appended to a reply whose stream was closed before it finished
INTERRUPTED_MARKER = "*(Resposta interrompida.)*"

# key → (button label, prompt that pre-fills the input)
QUICK_QUESTIONS: dict[str, tuple[str, str]] = {
    "popular_service": (
        "Serviço mais popular?",
        "Qual foi o serviço mais popular no último mês?",
    ),
    "top_professional": (
        "Melhor profissional?",
        "Qual profissional teve o maior faturamento?",
    ),
    "inactive_clients": (
        "Clientes inativos?",
        "Quais clientes não retornam há mais de 6 meses? Liste 5.",
    ),
    "busiest_weekday": (
        "Dia mais movimentado?",
        "Qual o dia da semana com mais agendamentos?",
    ),
}


def format_date_pt(day: date) -> str:
    """``date(2025, 10, 22)`` → ``"22 de outubro de 2025"``."""
    return f"{day.day} de {_MONTHS_PT[day.month - 1]} de {day.year}"


def get_system_prompt(reference_date: date, assistant_name: str) -> str:
    """Build the system instruction with the fixed current-date anchor."""
    return SYSTEM_PROMPT_TEMPLATE.format(
        assistant_name=assistant_name,
        current_date=format_date_pt(reference_date),
    )


def get_greeting(assistant_name: str) -> str:
    return GREETING_TEMPLATE.format(assistant_name=assistant_name)


def _to_langchain(message: Message) -> BaseMessage:
    if message.role == "user":
        return HumanMessage(content=message.content)
    return AIMessage(content=message.content)


def build_request_messages(
    context: AnalyticsContext,
    history: Iterable[Message],
    user_message: str,
    *,
    reference_date: date,
    assistant_name: str,
) -> list[BaseMessage]:
    """Assemble the outbound conversation for one chat turn.

    Order: system instruction, the synthetic data exchange (context as the
    first user turn, a fixed acknowledgement as the first model turn), the
    prior *history* as accumulated, and finally *user_message*.  *history*
    must exclude the greeting and the reply placeholder.
    """
    return [
        SystemMessage(content=get_system_prompt(reference_date, assistant_name)),
        HumanMessage(content=CONTEXT_TURN_TEMPLATE.format(context_json=context.to_prompt_json())),
        AIMessage(content=CONTEXT_ACKNOWLEDGEMENT),
        *(_to_langchain(m) for m in history),
        HumanMessage(content=user_message),
    ]
