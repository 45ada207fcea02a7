"""Admin staff management router: approval transitions and profile administration."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from staffdir.approvals.schemas import StaffUpdate
from staffdir.auth.gate import AuthContext, RequestOrigin
from staffdir.common.exceptions import StaffDirError
from staffdir.common.schemas import MessageResponse
from staffdir.common.security import request_origin, require_admin, to_http_exception
from staffdir.principals.schemas import StaffResponse
from staffdir.principals.types import ApprovalState

router = APIRouter()


def _get_context():
    from staffdir.deps import get_context
    return get_context()


@router.get("/admin/staff", response_model=list[StaffResponse])
async def list_staff(
    status: Optional[str] = Query(None, pattern=r"^(pending|approved|deactivated)$"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    _=Depends(require_admin),
):
    ctx = _get_context()
    state = ApprovalState(status) if status else None
    async with ctx.db.get_session() as session:
        staff = await ctx.approvals.list_staff(session, state, limit=limit, offset=offset)
        return [StaffResponse.from_principal(s) for s in staff]


@router.post("/admin/staff/{staff_id}/approve", response_model=StaffResponse)
async def approve_staff(
    staff_id: str,
    auth: AuthContext = Depends(require_admin),
    origin: RequestOrigin = Depends(request_origin),
):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            staff = await ctx.approvals.approve(session, staff_id, auth.principal, origin)
        except StaffDirError as e:
            raise to_http_exception(e)
        return StaffResponse.from_principal(staff)


@router.post("/admin/staff/{staff_id}/reject", response_model=MessageResponse)
async def reject_staff(
    staff_id: str,
    auth: AuthContext = Depends(require_admin),
    origin: RequestOrigin = Depends(request_origin),
):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            staff = await ctx.approvals.reject(session, staff_id, auth.principal, origin)
        except StaffDirError as e:
            raise to_http_exception(e)
    return MessageResponse(message=f"Registration for {staff.full_name} rejected and removed")


@router.post("/admin/staff/{staff_id}/deactivate", response_model=StaffResponse)
async def deactivate_staff(
    staff_id: str,
    auth: AuthContext = Depends(require_admin),
    origin: RequestOrigin = Depends(request_origin),
):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            staff = await ctx.approvals.deactivate(session, staff_id, auth.principal, origin)
        except StaffDirError as e:
            raise to_http_exception(e)
        return StaffResponse.from_principal(staff)


@router.post("/admin/staff/{staff_id}/reactivate", response_model=StaffResponse)
async def reactivate_staff(
    staff_id: str,
    auth: AuthContext = Depends(require_admin),
    origin: RequestOrigin = Depends(request_origin),
):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            staff = await ctx.approvals.reactivate(session, staff_id, auth.principal, origin)
        except StaffDirError as e:
            raise to_http_exception(e)
        return StaffResponse.from_principal(staff)


@router.patch("/admin/staff/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: str,
    body: StaffUpdate,
    auth: AuthContext = Depends(require_admin),
    origin: RequestOrigin = Depends(request_origin),
):
    ctx = _get_context()
    changes = body.model_dump(exclude_none=True)
    if "email" in changes:
        changes["email"] = str(changes["email"])
    async with ctx.db.get_session() as session:
        try:
            staff = await ctx.approvals.update_staff(
                session, staff_id, changes, auth.principal, origin,
            )
        except StaffDirError as e:
            raise to_http_exception(e)
        return StaffResponse.from_principal(staff)


@router.delete("/admin/staff/{staff_id}", status_code=204)
async def delete_staff(
    staff_id: str,
    auth: AuthContext = Depends(require_admin),
    origin: RequestOrigin = Depends(request_origin),
):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        try:
            await ctx.approvals.delete_staff(session, staff_id, auth.principal, origin)
        except StaffDirError as e:
            raise to_http_exception(e)
