"""Tests for the currency and duration parsers."""

from __future__ import annotations

import pytest

from salon_insights.analytics.formatters import parse_currency, parse_duration_to_minutes


class TestParseCurrency:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("R$ 50,00", 50.0),
            ("R$1.234,56", 1234.56),
            ("R$ 12.500,00", 12500.0),
            ("80", 80.0),
            ("35,5", 35.5),
            ("R$ 75,00", 75.0),
        ],
    )
    def test_parses_brazilian_format(self, raw, expected):
        assert parse_currency(raw) == expected

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("R$ 50,00 (promo)", 50.0),
            ("R$ 120,00 + gorjeta", 120.0),
            ("R$ 1,2,3", 1.2),
            ("  R$ 99,90", 99.9),
        ],
    )
    def test_reads_leading_number_and_ignores_trailing_text(self, raw, expected):
        assert parse_currency(raw) == expected

    def test_numbers_pass_through(self):
        assert parse_currency(42) == 42.0
        assert parse_currency(19.9) == 19.9

    @pytest.mark.parametrize("raw", ["", "grátis", "R$ ", "a partir de R$ 50", None, "--"])
    def test_malformed_values_count_as_zero(self, raw):
        assert parse_currency(raw) == 0.0


class TestParseDuration:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("45 min", 45),
            ("1h 30min", 90),
            ("2h", 120),
            ("01:15", 75),
            ("60", 60),
            (30, 30),
        ],
    )
    def test_parses_common_formats(self, raw, expected):
        assert parse_duration_to_minutes(raw) == expected

    def test_unparseable_duration_is_zero(self):
        assert parse_duration_to_minutes("rápido") == 0
        assert parse_duration_to_minutes(None) == 0
