"""Scalar extraction from loosely typed Bitable cell values.

A Bitable cell arrives as one of three shapes:

- a scalar (str, int, float, bool),
- a list of cells (multi-select, person, link, rich-text segments),
- a tagged object (option, person, text segment) carrying one of
  ``name``, ``text``, ``label``, ``value`` or ``option_name``. Lookup and
  formula cells nest a list or another tagged object under ``value``.

``cell_kind`` names the shape; the helpers below dispatch on it.
"""

from __future__ import annotations

import math
import re
from typing import Any, Literal

CellKind = Literal["empty", "list", "tagged", "scalar"]

LIST_DELIMITER = "、"

_TAG_KEYS = ("name", "text", "label", "value", "option_name")
_NUMBER_TAG_KEYS = ("value", "text", "name")
_NUMERIC = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def cell_kind(value: Any) -> CellKind:
    if value is None:
        return "empty"
    if isinstance(value, (list, tuple)):
        return "list"
    if isinstance(value, dict):
        return "tagged"
    return "scalar"


def _first_present(tagged: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if tagged.get(key) is not None:
            return tagged[key]
    return None


def parse_number(text: str) -> int | float | None:
    """Parse a trimmed decimal string; None unless it is a finite number."""
    if not _NUMERIC.fullmatch(text):
        return None
    number = float(text)
    if not math.isfinite(number):
        return None
    return int(number) if number.is_integer() else number


def coerce_number(value: Any) -> int | float | None:
    """Coerce a scalar to a number the way a form field would.

    Booleans become 0/1, blank strings 0. Anything else non-numeric or
    non-finite gives None. Integral results come back as ``int``.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return None
        return int(value) if float(value).is_integer() else value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0
        return parse_number(text)
    return None


def pick_single(value: Any) -> Any:
    kind = cell_kind(value)
    if kind == "list":
        return pick_single(value[0]) if value else ""
    if kind == "tagged":
        # Lookup and formula cells nest their result under "value"
        picked = _first_present(value, _TAG_KEYS)
        if isinstance(picked, (list, tuple, dict)):
            return pick_single(picked)
        return "" if picked is None else picked
    if kind == "empty":
        return ""
    return value


def pick_number(value: Any) -> int | float:
    kind = cell_kind(value)
    if kind == "list":
        return pick_number(value[0]) if value else 0
    if kind == "tagged":
        value = _first_present(value, _NUMBER_TAG_KEYS)
        if isinstance(value, (list, tuple, dict)):
            return pick_number(value)
    number = coerce_number(value)
    return 0 if number is None else number


def normalize_any(value: Any) -> Any:
    """Flatten a cell for display: lists are joined with "、"."""
    kind = cell_kind(value)
    if kind == "list":
        picked = (pick_single(item) for item in value)
        return LIST_DELIMITER.join(str(item) for item in picked if item)
    if kind == "tagged":
        return pick_single(value)
    if kind == "empty":
        return ""
    return value
