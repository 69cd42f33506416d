"""Kanban endpoints.

The paths are reserved for a future Feishu Kanban integration. Every
response carries ``reserved: true`` and echoes what it was given.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Body, Depends

from src.bd_dashboard.api.deps import get_app_settings
from src.bd_dashboard.config import Settings

router = APIRouter(prefix="/kanban", tags=["kanban"])

KANBAN_HINT = "Kanban API placeholder; connect to Feishu Kanban later."


def placeholder(data: Any = None, **extra: Any) -> dict[str, Any]:
    return {"success": True, "reserved": True, "data": data, "hint": KANBAN_HINT, **extra}


def _board(board_id: str) -> dict[str, str] | None:
    board_id = board_id.strip()
    if not board_id:
        return None
    return {"id": board_id, "name": "Feishu Kanban", "description": "飞书看板占位"}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/boards")
async def list_boards(settings: Settings = Depends(get_app_settings)) -> dict[str, Any]:
    board = _board(settings.FEISHU_KANBAN_BOARD_ID)
    return placeholder(
        [board] if board else [],
        target={
            "appToken": settings.kanban_app_token or None,
            "boardId": settings.FEISHU_KANBAN_BOARD_ID or None,
        },
    )


@router.get("/boards/{board_id}")
async def get_board(board_id: str) -> dict[str, Any]:
    return placeholder(_board(board_id))


@router.get("/boards/{board_id}/columns")
async def list_columns(board_id: str) -> dict[str, Any]:
    return placeholder([])


@router.get("/boards/{board_id}/cards")
async def list_cards(board_id: str) -> dict[str, Any]:
    return placeholder([])


@router.post("/boards/{board_id}/cards")
async def create_card(
    board_id: str,
    payload: dict[str, Any] | None = Body(default=None),
) -> dict[str, Any]:
    return placeholder(
        None, action="create_card", boardId=board_id.strip(), payload=payload or {}
    )


@router.put("/boards/{board_id}/cards/{card_id}")
async def update_card(
    board_id: str,
    card_id: str,
    payload: dict[str, Any] | None = Body(default=None),
) -> dict[str, Any]:
    return placeholder(
        None,
        action="update_card",
        boardId=board_id.strip(),
        cardId=card_id.strip(),
        payload=payload or {},
    )


@router.patch("/boards/{board_id}/cards/{card_id}/move")
async def move_card(
    board_id: str,
    card_id: str,
    payload: dict[str, Any] | None = Body(default=None),
) -> dict[str, Any]:
    return placeholder(
        None,
        action="move_card",
        boardId=board_id.strip(),
        cardId=card_id.strip(),
        payload=payload or {},
    )


@router.post("/boards/{board_id}/sync")
async def sync_board(board_id: str) -> dict[str, Any]:
    return placeholder({"syncedAt": _now()}, boardId=board_id.strip())


@router.post("/boards/{board_id}/push")
async def push_board(board_id: str) -> dict[str, Any]:
    return placeholder({"pushedAt": _now()}, boardId=board_id.strip())
