"""Audit log API router."""

from fastapi import APIRouter, Depends, Query

from staffdir.audit.models import TargetModel
from staffdir.audit.schemas import AuditEntryResponse, AuditSweepResponse
from staffdir.common.security import require_admin, require_super_admin

router = APIRouter()


def _get_context():
    from staffdir.deps import get_context
    return get_context()


@router.get("/admin/audit", response_model=list[AuditEntryResponse])
async def recent_audit_entries(
    limit: int = Query(50, ge=1, le=500),
    admin_id: str | None = Query(None),
    _=Depends(require_admin),
):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        entries = await ctx.audit.recent_entries(session, limit=limit, by_admin=admin_id)
        return [AuditEntryResponse.from_entry(e) for e in entries]


@router.get(
    "/admin/audit/{target_model}/{target_id}",
    response_model=list[AuditEntryResponse],
)
async def audit_entries_for_target(
    target_model: TargetModel,
    target_id: str,
    _=Depends(require_admin),
):
    ctx = _get_context()
    async with ctx.db.get_session() as session:
        entries = await ctx.audit.entries_for_target(session, target_model, target_id)
        return [AuditEntryResponse.from_entry(e) for e in entries]


@router.post("/admin/audit/sweep", response_model=AuditSweepResponse)
async def sweep_audit_entries(
    days_to_keep: int | None = Query(None, ge=0),
    _=Depends(require_super_admin),
):
    ctx = _get_context()
    days = ctx.audit.retention_days if days_to_keep is None else days_to_keep
    async with ctx.db.get_session() as session:
        removed = await ctx.audit.sweep_expired(session, days)
    return AuditSweepResponse(removed=removed, days_to_keep=days, cutoff=ctx.audit.cutoff(days))
