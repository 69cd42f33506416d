"""Loose date normalisation for Bitable date cells.

Bitable hands dates back as millisecond epochs, second epochs, spreadsheet
serial day counts or plain ``YYYY/M/D`` text depending on how the column was
filled. ``format_date_loose`` turns all of them into ``YYYY-MM-DD`` using the
decision table in ``DateHeuristics``; anything it cannot classify comes back
unchanged.

Decision table for numeric input, checked in order:

=========  ==========================================  ==================
kind       rule                                        conversion
=========  ==========================================  ==================
ms epoch   13+ characters, or value > 1e11             UTC date
sec epoch  exactly 10 characters, or 1e9 <= v < 2e10   UTC date
serial     serial_min < v < serial_max                 1899-12-30 + v days
other      none of the above                           returned unchanged
=========  ==========================================  ==================

The serial window is a heuristic: an ordinary integer inside it (say an
amount of 30000) will be read as a date if it reaches a date column.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any

from src.bd_dashboard.records.values import parse_number

_YMD = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$")


@dataclass(frozen=True)
class DateHeuristics:
    ms_min_length: int = 13
    ms_min_value: float = 1e11
    sec_length: int = 10
    sec_min_value: float = 1e9
    sec_max_value: float = 2e10
    serial_min: float = 20000
    serial_max: float = 60000
    # Day zero of the spreadsheet serial system; absorbs the 1900 leap-year bug
    serial_epoch: datetime = datetime(1899, 12, 30)


DEFAULT_HEURISTICS = DateHeuristics()


def _epoch_to_date(seconds: float) -> str | None:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).date().isoformat()
    except (OverflowError, OSError, ValueError):
        return None


def _serial_to_date(days: float, epoch: datetime) -> str | None:
    try:
        return (epoch + timedelta(days=days)).date().isoformat()
    except OverflowError:
        return None


def format_date_loose(value: Any, heuristics: DateHeuristics = DEFAULT_HEURISTICS) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    if not text or text == "0":
        return ""

    number = parse_number(text)
    if number is not None:
        h = heuristics
        is_ms = len(text) >= h.ms_min_length or number > h.ms_min_value
        is_sec = len(text) == h.sec_length or h.sec_min_value <= number < h.sec_max_value
        is_serial = h.serial_min < number < h.serial_max

        if is_ms or is_sec:
            converted = _epoch_to_date(number / 1000 if is_ms else number)
            if converted:
                return converted
        if is_serial:
            converted = _serial_to_date(number, h.serial_epoch)
            if converted:
                return converted
        return text

    match = _YMD.match(text)
    if match:
        year, month, day = (int(part) for part in match.groups())
        try:
            return date(year, month, day).isoformat()
        except ValueError:
            return text
    return text
