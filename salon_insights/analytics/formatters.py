"""Parsers for the localized strings the salon API hands back.

Prices arrive as Brazilian currency strings (``"R$ 1.234,56"``) and service
durations as human text (``"1h 30min"``).  Neither parser ever raises: a value
that cannot be read counts as zero so a single bad record cannot break the
analytics context.
"""

from __future__ import annotations

import logging
import re

logger = logging.getLogger(__name__)

_LEADING_NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)")

_HOURS_RE = re.compile(r"(\d+)\s*h", re.IGNORECASE)
_MINUTES_RE = re.compile(r"(\d+)\s*min", re.IGNORECASE)
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


def parse_currency(value: str | float | int | None) -> float:
    """Convert ``"R$ 1.234,56"`` to ``1234.56``.

    ``.`` is treated as a thousands separator and the first ``,`` as the
    decimal mark.  Only the leading number is read, so trailing text such as
    ``"R$ 50,00 (promo)"`` is ignored.  Numbers pass through unchanged.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        return float(value)

    cleaned = value.replace("R$", "", 1).replace(".", "").replace(",", ".", 1).lstrip()
    number = _LEADING_NUMBER_RE.match(cleaned)
    if not number:
        logger.debug("Unparseable price %r, counting as 0", value)
        return 0.0
    return float(number.group(0))


def parse_duration_to_minutes(value: str | int | None) -> int:
    """Convert ``"1h 30min"``, ``"45 min"``, ``"01:30"`` or ``"90"`` to minutes."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value

    text = value.strip()
    if text.isdigit():
        return int(text)

    clock = _CLOCK_RE.match(text)
    if clock:
        return int(clock.group(1)) * 60 + int(clock.group(2))

    hours = _HOURS_RE.search(text)
    minutes = _MINUTES_RE.search(text)
    if not hours and not minutes:
        logger.debug("Unparseable duration %r, counting as 0", value)
        return 0
    total = int(hours.group(1)) * 60 if hours else 0
    if minutes:
        total += int(minutes.group(1))
    return total
