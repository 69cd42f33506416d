"""Async HTTP client for the Feishu Bitable REST API.

Covers the handful of calls the dashboard needs: tenant token exchange,
field listing, one-page record scans, single-record reads, batch create and
update. Every call is attempted once; failures surface as ``VendorError``.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog

from src.bd_dashboard.core.errors import VendorError

logger = structlog.get_logger(__name__)


class BitableClient:
    """Async client for Feishu Bitable.

    Holds one ``httpx.AsyncClient`` for the lifetime of the application and
    a cached ``tenant_access_token``.

    Args:
        app_id: Feishu app id.
        app_secret: Feishu app secret.
        base_url: Open API root, e.g. ``https://open.feishu.cn/open-apis``.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass a MockTransport).
    """

    # Refresh the tenant token this many seconds before Feishu expires it
    TOKEN_EXPIRY_MARGIN = 60.0
    FIELD_PAGE_SIZE = 100

    def __init__(
        self,
        app_id: str,
        app_secret: str,
        base_url: str = "https://open.feishu.cn/open-apis",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._app_id = app_id
        self._app_secret = app_secret
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )
        self._access_token: str | None = None
        self._token_expires_at = 0.0

    async def aclose(self) -> None:
        await self._http.aclose()

    # ── Auth ────────────────────────────────────────────────────────────────

    async def get_tenant_access_token(self) -> str:
        """Return a valid tenant_access_token, fetching a new one when stale."""
        now = time.monotonic()
        if self._access_token and now < self._token_expires_at:
            return self._access_token

        if not self._app_id or not self._app_secret:
            raise VendorError("missing FEISHU_APP_ID or FEISHU_APP_SECRET")

        data = await self._send(
            "POST",
            "/auth/v3/tenant_access_token/internal",
            json={"app_id": self._app_id, "app_secret": self._app_secret},
            authenticated=False,
        )
        token = data.get("tenant_access_token")
        if not token:
            raise VendorError("tenant_access_token missing from response")

        expire = float(data.get("expire") or 0)
        self._access_token = token
        self._token_expires_at = now + max(expire - self.TOKEN_EXPIRY_MARGIN, 0.0)
        logger.info("bitable.token_refreshed", expires_in=expire)
        return token

    # ── Transport ───────────────────────────────────────────────────────────

    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
        authenticated: bool = True,
    ) -> dict[str, Any]:
        """Issue one request and unwrap Feishu's ``{code, msg, data}`` envelope.

        For the token endpoint the whole envelope is returned, since the token
        sits at the top level rather than under ``data``.
        """
        headers = {"Content-Type": "application/json; charset=utf-8"}
        if authenticated:
            headers["Authorization"] = f"Bearer {await self.get_tenant_access_token()}"

        try:
            response = await self._http.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as exc:
            logger.error("bitable.request_failed", method=method, path=path, error=str(exc))
            raise VendorError(f"{type(exc).__name__}: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not isinstance(payload, dict):
            raise VendorError(
                f"unexpected response from Bitable (HTTP {response.status_code})",
                body=response.text[:500],
            )

        code = payload.get("code", 0)
        if response.is_error or code != 0:
            logger.warning(
                "bitable.api_error",
                method=method,
                path=path,
                status_code=response.status_code,
                code=code,
                msg=payload.get("msg"),
            )
            raise VendorError(str(payload.get("msg") or "Bitable API error"), code=code)

        if not authenticated:
            return payload
        return payload.get("data") or {}

    @staticmethod
    def _table_path(app_token: str, table_id: str) -> str:
        return f"/bitable/v1/apps/{app_token}/tables/{table_id}"

    # ── Fields ──────────────────────────────────────────────────────────────

    async def list_fields(self, app_token: str, table_id: str) -> list[dict[str, Any]]:
        """List every field of a table, following pagination to the end."""
        items: list[dict[str, Any]] = []
        page_token: str | None = None
        while True:
            params: dict[str, Any] = {"page_size": self.FIELD_PAGE_SIZE}
            if page_token:
                params["page_token"] = page_token
            data = await self._send(
                "GET", f"{self._table_path(app_token, table_id)}/fields", params=params
            )
            items.extend(data.get("items") or [])
            page_token = data.get("page_token")
            if not data.get("has_more") or not page_token:
                return items

    # ── Records ─────────────────────────────────────────────────────────────

    async def list_records(
        self, app_token: str, table_id: str, page_size: int = 200
    ) -> list[dict[str, Any]]:
        """Return the first page of records (a bounded scan, not the whole table)."""
        data = await self._send(
            "GET",
            f"{self._table_path(app_token, table_id)}/records",
            params={"page_size": page_size},
        )
        return data.get("items") or []

    async def get_record(self, app_token: str, table_id: str, record_id: str) -> dict[str, Any]:
        data = await self._send(
            "GET", f"{self._table_path(app_token, table_id)}/records/{record_id}"
        )
        return data.get("record") or data

    async def batch_create_records(
        self, app_token: str, table_id: str, records: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Create records; ``records`` is a list of ``{"fields": {...}}``."""
        data = await self._send(
            "POST",
            f"{self._table_path(app_token, table_id)}/records/batch_create",
            json={"records": records},
        )
        logger.info(
            "bitable.records_created",
            table_id=table_id,
            count=len(data.get("records") or []),
        )
        return data

    async def update_record(
        self, app_token: str, table_id: str, record_id: str, fields: dict[str, Any]
    ) -> dict[str, Any]:
        data = await self._send(
            "PUT",
            f"{self._table_path(app_token, table_id)}/records/{record_id}",
            json={"fields": fields},
        )
        logger.info("bitable.record_updated", table_id=table_id, record_id=record_id)
        return data
