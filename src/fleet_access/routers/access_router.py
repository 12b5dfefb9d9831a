from fastapi import APIRouter, Depends, Request

from fleet_access.auth.dependencies import get_principal
from fleet_access.auth.models import Principal
from fleet_access.domain.entities.fleet import GuardRequest, ScopeRequest
from fleet_access.domain.entities.permission import PermissionUpdateRequest, RoleOverrideUpdateRequest
from fleet_access.services.access_service import AccessService
from fleet_access.utils.response import success
from fleet_access.configs.logging_config import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/ext/access", tags=["access"])


def _service(request: Request) -> AccessService:
    return request.app.state.access_service


@router.get("/permissions")
async def get_permissions(
    request: Request,
    principal: Principal = Depends(get_principal),
) -> dict:
    perms = await _service(request).permissions_for(principal)
    return success(perms.to_dict())


@router.get("/sections")
async def get_sections(
    request: Request,
    principal: Principal = Depends(get_principal),
) -> dict:
    snap = await _service(request).snapshot(principal)
    return success(snap.to_dict())


@router.post("/guard")
async def guard(
    request: Request,
    body: GuardRequest,
    principal: Principal = Depends(get_principal),
) -> dict:
    decision = await _service(request).guard(principal, body.path)
    return success(
        {
            "path": body.path,
            "allowed": decision.allowed,
            "section": decision.section,
            "redirect_to": decision.redirect_to,
        },
        request_id=body.request_id,
    )


@router.post("/scope")
async def scope(
    request: Request,
    body: ScopeRequest,
    principal: Principal = Depends(get_principal),
) -> dict:
    log.info(
        "access.scope.start request_id=%s user_id=%s role=%s vehicles=%s sites=%s customers=%s",
        body.request_id,
        principal.user_id,
        principal.role.value,
        len(body.vehicles),
        len(body.sites),
        None if body.customers is None else len(body.customers),
    )
    result = await _service(request).scope(principal, body)
    log.info(
        "access.scope.done request_id=%s user_id=%s vehicles=%s sites=%s",
        body.request_id,
        principal.user_id,
        len(result.vehicles),
        len(result.sites),
    )
    return success(result.to_dict(), request_id=body.request_id)


@router.put("/role-overrides/{role}")
async def put_role_override(
    role: str,
    request: Request,
    body: RoleOverrideUpdateRequest,
    principal: Principal = Depends(get_principal),
) -> dict:
    saved = await _service(request).save_role_override(principal, role, body.visible_sections)
    log.info(
        "access.role_override.saved request_id=%s role=%s by=%s",
        body.request_id,
        saved.role,
        principal.user_id,
    )
    return success(
        saved.model_dump(mode="json"),
        message="Role sections updated successfully",
        request_id=body.request_id,
    )


@router.put("/permissions")
async def put_permissions(
    request: Request,
    body: PermissionUpdateRequest,
    principal: Principal = Depends(get_principal),
) -> dict:
    saved = await _service(request).save_permission_record(principal, body.record)
    log.info(
        "access.permissions.saved request_id=%s scope=%s by=%s",
        body.request_id,
        saved.scope,
        principal.user_id,
    )
    return success(
        saved.model_dump(mode="json"),
        message="Permissions updated successfully",
        request_id=body.request_id,
    )
