from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import List

NBSP = "\u00a0"
ID_PAIRING_CHARS = 60

# Two-letter weekday names as printed on the association's schedules.
WEEKDAYS_DE = ("Mo", "Di", "Mi", "Do", "Fr", "Sa", "So")


def normalize_spaces(text: str) -> str:
    return re.sub(r"\s+", " ", text.replace(NBSP, " ")).strip()


def normalize_lines(text: str) -> List[str]:
    """Split pasted schedule text into trimmed, single-spaced, non-empty lines."""
    lines = (normalize_spaces(line) for line in text.splitlines())
    return [line for line in lines if line]


def iso_date(dmy: str) -> str:
    """Convert DD.MM.YYYY to YYYY-MM-DD.

    Raises ValueError when the text is not a real calendar date (e.g. 31.02.2025).
    """
    return datetime.strptime(dmy, "%d.%m.%Y").date().isoformat()


def pad_time(hhmm: str) -> str:
    hours, _, minutes = hhmm.partition(":")
    return f"{int(hours):02d}:{minutes}"


def sort_key(iso: str, hhmm: str) -> str:
    return f"{iso}T{hhmm}:00"


def match_id(*, iso: str, hhmm: str, pairing: str) -> str:
    return f"{iso}_{hhmm}_{normalize_spaces(pairing)[:ID_PAIRING_CHARS]}"


def monday_of(day: date) -> date:
    return day - timedelta(days=day.weekday())


def weekday_de(day: date) -> str:
    return WEEKDAYS_DE[day.weekday()]
