"""Follow-up reminder endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.bd_dashboard.api.deps import get_reminder_service
from src.bd_dashboard.records.schemas import ListResponse, ReminderItem
from src.bd_dashboard.services.reminders import ReminderService

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.get("", response_model=ListResponse[ReminderItem])
async def list_reminders(
    service: ReminderService = Depends(get_reminder_service),
) -> ListResponse[ReminderItem]:
    """Open projects that are past their follow-up date or stale."""
    return ListResponse[ReminderItem](data=await service.due())
