from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from motor.motor_asyncio import AsyncIOMotorDatabase

from fleet_access.configs.settings import Settings
from fleet_access.configs.logging_config import get_logger
from fleet_access.domain.entities.permission import PermissionRecord

log = get_logger(__name__)


def _to_record(doc: dict[str, Any] | None) -> PermissionRecord | None:
    if not doc:
        return None
    doc = dict(doc)
    doc.pop("_id", None)
    return PermissionRecord(**doc)


class PermissionRepository:
    def __init__(self, db: AsyncIOMotorDatabase, settings: Settings):
        self._db = db
        self._settings = settings
        self._col = db["user_permissions"]

    async def ensure_indexes(self) -> None:
        log.info("repo.permission.ensure_indexes start")
        await self._col.create_index(
            [("scope", 1), ("user_email", 1)],
            unique=True,
            partialFilterExpression={"scope": "user"},
            name="uniq_user_scope",
        )
        await self._col.create_index(
            [("scope", 1), ("email_domain", 1)],
            unique=True,
            partialFilterExpression={"scope": "domain"},
            name="uniq_domain_scope",
        )
        log.info("repo.permission.ensure_indexes done")

    async def find_user_record(self, email: str) -> PermissionRecord | None:
        log.info("repo.permission.find_user_record email=%s", email)
        doc = await self._col.find_one(
            {"scope": "user", "user_email": email.lower(), "is_active": True}
        )
        return _to_record(doc)

    async def find_domain_record(self, domain: str) -> PermissionRecord | None:
        log.info("repo.permission.find_domain_record domain=%s", domain)
        doc = await self._col.find_one(
            {"scope": "domain", "email_domain": domain.lower(), "is_active": True}
        )
        return _to_record(doc)

    async def upsert(self, record: PermissionRecord, *, updated_by: str) -> PermissionRecord:
        if record.scope == "user":
            key = {"scope": "user", "user_email": record.user_email}
        elif record.scope == "domain":
            key = {"scope": "domain", "email_domain": record.email_domain}
        else:
            raise ValueError("the default permission record is built in and cannot be stored")
        if None in key.values():
            raise ValueError(f"{record.scope} record requires its lookup key")

        body = record.model_dump(exclude={"updated_by", "updated_at"})
        body["updated_by"] = updated_by
        body["updated_at"] = datetime.now(timezone.utc)
        log.info("repo.permission.upsert key=%s updated_by=%s", key, updated_by)
        await self._col.update_one(key, {"$set": body}, upsert=True)
        return PermissionRecord(**body)
