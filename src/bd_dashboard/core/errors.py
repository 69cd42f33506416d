"""Error taxonomy for the dashboard API.

Every error carries its HTTP status and renders to the JSON body the
frontend expects: ``{"success": false, "error": "...", ...extra}``.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that map directly onto an HTTP response."""

    status_code: int = 500

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"success": False, "error": self.message}
        body.update(self.extra)
        return body


class ConfigurationError(AppError):
    """A required token or table id is not configured."""

    status_code = 500


class BadRequestError(AppError):
    """Missing or malformed request input."""

    status_code = 400


class NotFoundError(AppError):
    """A business identifier matched no record."""

    status_code = 404


class UnresolvedPersonError(BadRequestError):
    """A person display name could not be mapped to a user id.

    ``known_names`` lists the names the consulted index does know, so the
    user can correct the input.
    """

    def __init__(self, field_label: str, name: str, known_names: list[str]) -> None:
        super().__init__(
            f"无法解析人员字段 {field_label}='{name}'"
            "（请确保该人员在飞书表里出现过一次，或配置 FEISHU_PERSON_ID_MAP）",
            known_names=known_names,
        )
        self.field_label = field_label
        self.name = name
        self.known_names = known_names


class VendorError(AppError):
    """The Bitable API failed or answered with something unusable."""

    status_code = 500

    def __init__(self, message: str, code: int | None = None, **extra: Any) -> None:
        super().__init__(message, **extra)
        self.code = code

    def __str__(self) -> str:
        if self.code is not None:
            return f"VendorError(code={self.code}): {self.message}"
        return f"VendorError: {self.message}"
