"""Person field resolution: display name -> Bitable user reference.

Bitable person columns only accept ``[{"id": user_id}]``, while the frontend
sends display names. Names are resolved, in order, through:

1. the static override map from ``FEISHU_PERSON_ID_MAP`` (never expires);
2. a person index built by scanning one page of records of the target
   table and collecting the first user id seen for each name (5 min TTL).

A name that only appears beyond the scanned page stays unresolved.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from typing import Any

import structlog

from src.bd_dashboard.bitable.cache import TTLCache

logger = structlog.get_logger(__name__)

DEFAULT_PERSON_INDEX_TTL = 300.0

_ID_KEYS = ("id", "user_id", "open_id", "union_id")


@dataclass(frozen=True)
class PersonField:
    """One person column: the scope a person index is built for."""

    app_token: str
    table_id: str
    field_name: str


def normalize_person_name(name: Any) -> str:
    return str(name or "").strip()


def name_sort_key(name: str) -> str:
    return unicodedata.normalize("NFKC", name)


def pick_person_id(person: Any) -> str:
    """First of id / user_id / open_id / union_id on a person object."""
    if not isinstance(person, dict):
        return ""
    for key in _ID_KEYS:
        value = person.get(key)
        if value is not None:
            return str(value).strip()
    return ""


def collect_person_ids(records: list[dict[str, Any]], field_name: str) -> dict[str, str]:
    """Build ``name -> user id`` from person cells; the first id per name wins."""
    index: dict[str, str] = {}
    for record in records or []:
        cell = ((record or {}).get("fields") or {}).get(field_name)
        if not isinstance(cell, list):
            continue
        for person in cell:
            name = normalize_person_name(person.get("name") if isinstance(person, dict) else None)
            user_id = pick_person_id(person)
            if name and user_id and name not in index:
                index[name] = user_id
    return index


class PersonResolver:
    """Resolve person display names into Bitable person references.

    Args:
        client: Anything with an async ``list_records(app_token, table_id, page_size)``.
        env_map: Static ``name -> user id`` overrides; they win over the index.
        page_size: Records scanned per index build.
        ttl: Seconds an index stays fresh.
    """

    def __init__(
        self,
        client: Any,
        env_map: dict[str, str] | None = None,
        page_size: int = 200,
        ttl: float = DEFAULT_PERSON_INDEX_TTL,
        **cache_kwargs: Any,
    ) -> None:
        self._client = client
        self.env_map = dict(env_map or {})
        self._page_size = page_size
        self._cache: TTLCache[dict[str, str]] = TTLCache(ttl, **cache_kwargs)

    async def get_index(self, field: PersonField) -> dict[str, str]:
        async def load() -> dict[str, str]:
            records = await self._client.list_records(
                field.app_token, field.table_id, page_size=self._page_size
            )
            index = collect_person_ids(records, field.field_name)
            logger.info(
                "persons.index_rebuilt",
                table_id=field.table_id,
                field_name=field.field_name,
                names=len(index),
            )
            return index

        return await self._cache.get_or_load(field, load)

    async def known_names(self, field: PersonField) -> list[str]:
        return sorted(await self.get_index(field), key=name_sort_key)

    async def resolve(self, field: PersonField, value: Any) -> list[dict[str, Any]] | None:
        """Return ``[{"id": ...}]`` for ``value``, or None when unresolved.

        A list is taken to be an already-built reference list and returned
        unchanged.
        """
        if isinstance(value, list):
            return value

        name = normalize_person_name(value)
        if not name:
            return None

        env_id = normalize_person_name(self.env_map.get(name))
        if env_id:
            return [{"id": env_id}]

        user_id = (await self.get_index(field)).get(name)
        if not user_id:
            return None
        return [{"id": user_id}]

    async def resolve_with_fallback(
        self, fields: list[PersonField], value: Any
    ) -> tuple[list[dict[str, Any]] | None, list[str]]:
        """Try each person column in turn until one resolves ``value``.

        Returns ``(reference, known_names)``. On success ``known_names`` comes
        from the column that resolved; on failure it is the union of every
        column consulted.
        """
        consulted: set[str] = set()
        for field in fields:
            resolved = await self.resolve(field, value)
            if resolved:
                return resolved, await self.known_names(field)
            consulted.update(await self.get_index(field))
            logger.info(
                "persons.fallback",
                table_id=field.table_id,
                field_name=field.field_name,
                name=normalize_person_name(value),
            )
        return None, sorted(consulted, key=name_sort_key)
