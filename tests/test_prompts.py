"""Tests for prompt construction."""

from __future__ import annotations

from datetime import date

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from salon_insights.analytics.context import AnalyticsContext
from salon_insights.chat.transcript import Message
from salon_insights.prompts import (
    CONTEXT_ACKNOWLEDGEMENT,
    QUICK_QUESTIONS,
    build_request_messages,
    format_date_pt,
    get_greeting,
    get_system_prompt,
)


@pytest.mark.parametrize(
    ("day", "expected"),
    [
        (date(2025, 10, 22), "22 de outubro de 2025"),
        (date(2024, 3, 1), "1 de março de 2024"),
        (date(2023, 12, 31), "31 de dezembro de 2023"),
    ],
)
def test_format_date_pt(day, expected):
    assert format_date_pt(day) == expected


def test_system_prompt_names_assistant_and_date():
    prompt = get_system_prompt(date(2025, 10, 22), "Any Hair")
    assert "'Any Hair IA'" in prompt
    assert "Hoje é 22 de outubro de 2025." in prompt
    assert "Markdown" in prompt


def test_greeting_mentions_salon_name():
    assert "Any Hair" in get_greeting("Any Hair")


def test_request_layout_with_history():
    history = (Message("user", "Oi"), Message("model", "Olá!"))
    messages = build_request_messages(
        AnalyticsContext.empty(),
        history,
        "E agora?",
        reference_date=date(2025, 10, 22),
        assistant_name="Any Hair",
    )

    assert [type(m) for m in messages] == [
        SystemMessage, HumanMessage, AIMessage, HumanMessage, AIMessage, HumanMessage,
    ]
    assert messages[1].content == (
        'Aqui estão os dados do salão: {"geral":null,"servicos":[],'
        '"configuracoes_financeiras":null,"amostra_agendamentos_recentes":[]}'
    )
    assert messages[2].content == CONTEXT_ACKNOWLEDGEMENT
    assert [m.content for m in messages[3:]] == ["Oi", "Olá!", "E agora?"]


def test_quick_questions_have_label_and_prompt():
    assert set(QUICK_QUESTIONS) == {
        "popular_service", "top_professional", "inactive_clients", "busiest_weekday",
    }
    for label, prompt in QUICK_QUESTIONS.values():
        assert label.endswith("?")
        assert prompt.endswith(".") or prompt.endswith("?")
