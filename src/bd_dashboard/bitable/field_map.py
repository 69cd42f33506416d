"""Field display-name -> field-id resolution with a short TTL cache.

Column labels in Bitable drift: a label typed as "公司总部 地区" in the table
is "公司总部地区" in the code. Resolving labels through the table's own field
list keeps writes working through that kind of whitespace drift.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from src.bd_dashboard.bitable.cache import TTLCache

logger = structlog.get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")

DEFAULT_FIELD_MAP_TTL = 60.0


def _strip_whitespace(value: Any) -> str:
    return _WHITESPACE.sub("", str(value or ""))


def find_field(field_map: dict[str, str], expected_name: str) -> tuple[str, str] | None:
    """Return ``(table_label, field_id)`` for ``expected_name``.

    Exact match first, then the first label that is equal once all
    whitespace is removed from both sides. None when nothing matches.
    """
    if expected_name in field_map:
        return expected_name, field_map[expected_name]

    target = _strip_whitespace(expected_name)
    for name, field_id in field_map.items():
        if _strip_whitespace(name) == target:
            return name, field_id
    return None


def find_field_id(field_map: dict[str, str], expected_name: str) -> str | None:
    found = find_field(field_map, expected_name)
    return found[1] if found else None


class FieldMapCache:
    """Per-table cache of ``field_name -> field_id`` maps.

    Each ``(app_token, table_id)`` pair owns one whole map that is rebuilt in
    full from ``list_fields`` once its TTL runs out.

    Args:
        client: Anything with an async ``list_fields(app_token, table_id)``.
        ttl: Seconds a map stays fresh.
    """

    def __init__(self, client: Any, ttl: float = DEFAULT_FIELD_MAP_TTL, **cache_kwargs: Any) -> None:
        self._client = client
        self._cache: TTLCache[dict[str, str]] = TTLCache(ttl, **cache_kwargs)

    async def get(self, app_token: str, table_id: str) -> dict[str, str]:
        async def load() -> dict[str, str]:
            items = await self._client.list_fields(app_token, table_id)
            field_map: dict[str, str] = {}
            for item in items or []:
                name = (item or {}).get("field_name")
                field_id = (item or {}).get("field_id")
                if name and field_id:
                    field_map[name] = field_id
            logger.info("field_map.rebuilt", table_id=table_id, fields=len(field_map))
            return field_map

        return await self._cache.get_or_load((app_token, table_id), load)

    async def resolve(self, app_token: str, table_id: str, name: str) -> str | None:
        return find_field_id(await self.get(app_token, table_id), name)

    async def canonicalize(
        self, app_token: str, table_id: str, fields: dict[str, Any]
    ) -> dict[str, Any]:
        """Re-key a ``{label: value}`` payload by the table's actual labels.

        Labels the table does not know are kept as-is, so the vendor rejects
        the unknown column loudly instead of the value vanishing.
        """
        field_map = await self.get(app_token, table_id)
        keyed: dict[str, Any] = {}
        for name, value in fields.items():
            found = find_field(field_map, name)
            if found is None:
                logger.warning("field_map.unknown_field", table_id=table_id, field_name=name)
                keyed[name] = value
            else:
                keyed[found[0]] = value
        return keyed
