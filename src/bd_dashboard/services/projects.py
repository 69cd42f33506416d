"""Project table operations.

BD is the primary person column: an unresolvable BD name rejects the write.
AM is secondary: an unresolvable AM name is skipped and reported in
``warnings`` so the rest of the write still lands.
"""

from __future__ import annotations

from typing import Any

import structlog

from src.bd_dashboard.bitable.persons import PersonField, PersonResolver, collect_person_ids
from src.bd_dashboard.core.errors import BadRequestError, UnresolvedPersonError
from src.bd_dashboard.records.dates import DEFAULT_HEURISTICS, DateHeuristics
from src.bd_dashboard.records.field_mapping import (
    PROJECT_FIELD,
    PROJECT_SPECS,
    FieldSet,
    map_record,
)
from src.bd_dashboard.records.schemas import Project, ProjectWrite
from src.bd_dashboard.services.base import TableService

logger = structlog.get_logger(__name__)

_ID_SPEC = PROJECT_SPECS[0]


class ProjectService(TableService):
    resource = "projects"

    def __init__(
        self,
        client: Any,
        app_token: str,
        table_id: str,
        persons: PersonResolver,
        page_size: int = 200,
        heuristics: DateHeuristics = DEFAULT_HEURISTICS,
    ) -> None:
        super().__init__(
            client,
            app_token,
            table_id,
            "missing project appToken/tableId (FEISHU_PROJECT_APP_TOKEN/FEISHU_BITABLE_PROJECT_TABLE_ID)",
            page_size=page_size,
        )
        self.persons = persons
        self.heuristics = heuristics

    def person_field(self, key: str) -> PersonField:
        return PersonField(self.app_token, self.table_id, PROJECT_FIELD[key])

    def to_project(self, item: dict[str, Any]) -> Project:
        return Project.model_validate(map_record(item, PROJECT_SPECS, self.heuristics))

    async def search(self, keyword: str = "", customer_id: str = "") -> list[Project]:
        projects = [self.to_project(item) for item in await self.scan()]
        keyword = keyword.strip().lower()
        customer_id = customer_id.strip()
        if keyword:
            projects = [
                p
                for p in projects
                if keyword in str(p.project_name).lower() or keyword in str(p.short_name).lower()
            ]
        if customer_id:
            projects = [p for p in projects if str(p.customer_id) == customer_id]
        return projects

    async def get(self, project_id: str) -> Project:
        item = await self.require_record(project_id, _ID_SPEC, "project not found")
        return self.to_project(item)

    def _apply_common(self, fs: FieldSet, body: ProjectWrite) -> None:
        fs.set_if(PROJECT_FIELD["projectName"], body.project_name)
        fs.set_if(PROJECT_FIELD["customerId"], body.customer_id)
        fs.set_if(PROJECT_FIELD["shortName"], body.short_name)
        fs.set_if(PROJECT_FIELD["serviceType"], body.service_type)
        fs.set_if(PROJECT_FIELD["projectType"], body.project_type)
        fs.set_if(PROJECT_FIELD["stage"], body.stage)
        fs.set_if(PROJECT_FIELD["priority"], body.priority)
        fs.set_if(PROJECT_FIELD["month"], body.month)
        fs.set_if(PROJECT_FIELD["nextFollowDate"], body.next_follow_date)
        fs.set_if(PROJECT_FIELD["campaignName"], body.campaign_name)
        fs.set_if(PROJECT_FIELD["deliverableName"], body.deliverable_name)
        fs.set_if(PROJECT_FIELD["lastUpdateDate"], body.last_update_date)
        fs.set_number(PROJECT_FIELD["totalBdHours"], body.total_bd_hours)
        fs.set_number(PROJECT_FIELD["expectedAmount"], body.expected_amount)

    async def _apply_persons(self, fs: FieldSet, body: ProjectWrite) -> list[str]:
        """Resolve BD (required to resolve) and AM (best effort); return warnings."""
        warnings: list[str] = []

        if _has_value(body.bd):
            field = self.person_field("bd")
            resolved = await self.persons.resolve(field, body.bd)
            if not resolved:
                known = await self.persons.known_names(field)
                logger.warning("projects.bd_unresolved", name=str(body.bd), known=len(known))
                raise UnresolvedPersonError("BD", str(body.bd), known)
            fs.set_raw(PROJECT_FIELD["bd"], resolved)

        if _has_value(body.am):
            field = self.person_field("am")
            resolved = await self.persons.resolve(field, body.am)
            if not resolved:
                known = await self.persons.known_names(field)
                warning = (
                    f"无法解析人员字段 AM='{body.am}'（请确保该人员在飞书表里出现过一次，"
                    "或配置 FEISHU_PERSON_ID_MAP）；已忽略该字段以避免写入失败。"
                )
                warnings.append(warning)
                logger.warning("projects.am_skipped", name=str(body.am), known_names=known)
            else:
                fs.set_raw(PROJECT_FIELD["am"], resolved)

        return warnings

    async def create(self, body: ProjectWrite) -> dict[str, Any]:
        self.require_table()
        project_name = (body.project_name or "").strip()
        if not project_name:
            raise BadRequestError("缺少 projectName")

        fs = FieldSet()
        self._apply_common(fs, body)
        fs.set_if(PROJECT_FIELD["projectId"], body.project_id)
        warnings = await self._apply_persons(fs, body)

        record_id = await self.create_one(fs.fields)
        return {
            "success": True,
            "record_id": record_id,
            "target": self.target,
            "fields": fs.fields,
            "warnings": warnings,
        }

    async def update(self, project_id: str, body: ProjectWrite) -> dict[str, Any]:
        item = await self.require_record(project_id, _ID_SPEC, "project not found")
        record_id = item["record_id"]

        # 项目ID is never written on update
        fs = FieldSet()
        self._apply_common(fs, body)
        warnings = await self._apply_persons(fs, body)

        data = await self.update_one(record_id, fs.fields)
        return {
            "success": True,
            "record_id": record_id,
            "data": data,
            "fields": fs.fields,
            "warnings": warnings,
        }

    async def person_directory(self, env_map: dict[str, str]) -> dict[str, Any]:
        """Name/id pairs seen in the BD and AM columns of one scanned page."""
        records = await self.scan()

        def pairs(key: str) -> list[dict[str, str]]:
            index = collect_person_ids(records, PROJECT_FIELD[key])
            return [{"name": name, "id": index[name]} for name in sorted(index)]

        return {"bd": pairs("bd"), "am": pairs("am"), "env_map": env_map}


def _has_value(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, list):
        return bool(value)
    return str(value).strip() != ""
