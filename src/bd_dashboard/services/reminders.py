"""Follow-up reminders derived from the project table.

A project needs a reminder when it is still open (stage in
``REMINDER_STAGES``) and either its next follow-up date has passed or it
has not been updated for more than ``STALE_AFTER_DAYS`` days. A follow-up
date of today already counts as overdue; "today" is the UTC calendar day.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from src.bd_dashboard.records.schemas import Project, ReminderItem
from src.bd_dashboard.services.projects import ProjectService

REMINDER_STAGES = ("未开始", "进行中", "FA", "停滞")
STALE_AFTER_DAYS = 5


def _parse_day(value: str) -> date | None:
    text = str(value or "").strip().replace("/", "-")
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def reminder_reason(project: Project, today: date) -> str | None:
    if project.stage not in REMINDER_STAGES:
        return None

    follow = _parse_day(project.next_follow_date)
    if follow is not None and follow <= today:
        return "已过下次跟进日期"

    updated = _parse_day(project.last_update_date)
    if updated is not None:
        days = (today - updated).days
        if days > STALE_AFTER_DAYS:
            return f"{days} 天未更新"
    return None


class ReminderService:
    def __init__(self, projects: ProjectService) -> None:
        self.projects = projects

    async def due(self, today: date | None = None) -> list[ReminderItem]:
        today = today or datetime.now(timezone.utc).date()
        items: list[ReminderItem] = []
        for project in await self.projects.search():
            reason = reminder_reason(project, today)
            if reason is None:
                continue
            items.append(
                ReminderItem(
                    project_id=project.project_id,
                    project_name=project.project_name,
                    short_name=project.short_name,
                    bd=project.bd,
                    stage=project.stage,
                    last_update_date=project.last_update_date,
                    next_follow_date=project.next_follow_date,
                    reason=reason,
                )
            )
        return items
