from __future__ import annotations

from datetime import datetime, timezone

from motor.motor_asyncio import AsyncIOMotorDatabase

from fleet_access.configs.settings import Settings
from fleet_access.configs.logging_config import get_logger
from fleet_access.domain.entities.permission import RoleSectionOverride

log = get_logger(__name__)


class RoleOverrideRepository:
    def __init__(self, db: AsyncIOMotorDatabase, settings: Settings):
        self._db = db
        self._settings = settings
        self._col = db["role_section_overrides"]

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("role", 1)], unique=True)

    async def load_all(self) -> dict[str, list[str]]:
        """Return `{role: visible_sections}` for every non-empty override."""
        out: dict[str, list[str]] = {}
        async for doc in self._col.find({}, projection={"_id": 0, "role": 1, "visible_sections": 1}):
            sections = doc.get("visible_sections") or []
            if sections:
                out[doc["role"]] = list(sections)
        log.info("repo.role_override.load_all roles=%s", sorted(out))
        return out

    async def upsert(self, role: str, visible_sections: list[str], *, updated_by: str) -> RoleSectionOverride:
        now = datetime.now(timezone.utc)
        log.info(
            "repo.role_override.upsert role=%s sections=%s updated_by=%s",
            role,
            len(visible_sections),
            updated_by,
        )
        await self._col.update_one(
            {"role": role},
            {"$set": {"visible_sections": visible_sections, "updated_by": updated_by, "updated_at": now}},
            upsert=True,
        )
        return RoleSectionOverride(
            role=role, visible_sections=visible_sections, updated_by=updated_by, updated_at=now
        )
