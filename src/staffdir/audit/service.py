"""Audit service: record, query and expire the admin action log."""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from staffdir.audit.models import (
    MAX_ACTION_LENGTH,
    ActionType,
    AuditLogModel,
    TargetModel,
)
from staffdir.common.clock import Clock, SystemClock, as_utc
from staffdir.principals.models import AdminUserModel

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 90
MAX_USER_AGENT_LENGTH = 500


@dataclass(frozen=True)
class AuditEntry:
    id: str
    admin_id: str
    action: str
    action_type: ActionType
    target_model: TargetModel
    target_id: Optional[str]
    details: Optional[dict[str, Any]]
    ip_address: Optional[str]
    user_agent: Optional[str]
    timestamp: datetime
    admin_username: Optional[str] = None
    admin_email: Optional[str] = None


def _to_entry(row: AuditLogModel, username: str | None = None, email: str | None = None) -> AuditEntry:
    return AuditEntry(
        id=row.id,
        admin_id=row.admin_id,
        action=row.action,
        action_type=ActionType(row.action_type),
        target_model=TargetModel(row.target_model),
        target_id=row.target_id,
        details=row.details,
        ip_address=row.ip_address,
        user_agent=row.user_agent,
        timestamp=as_utc(row.timestamp),
        admin_username=username,
        admin_email=email,
    )


class AuditService:
    """Append-only log of privileged actions with a retention window.

    ``record`` is advisory: it never raises, and a failed write is rolled back
    to its own savepoint so the operation being documented is unaffected.
    """

    def __init__(self, clock: Clock | None = None, retention_days: int = DEFAULT_RETENTION_DAYS):
        self.clock = clock or SystemClock()
        self.retention_days = retention_days

    # ── Write ──

    async def record(
        self,
        session: AsyncSession,
        admin_id: str,
        action: str,
        action_type: ActionType | str,
        target_model: TargetModel | str,
        target_id: str | None = None,
        details: dict[str, Any] | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> Optional[AuditEntry]:
        """Append one entry. Returns None (and logs why) if it could not be written."""
        try:
            action_type = ActionType(action_type)
            target_model = TargetModel(target_model)
        except ValueError as exc:
            logger.error("Audit entry rejected: %s", exc, extra={"admin_id": admin_id})
            return None
        if not admin_id or not action or len(action) > MAX_ACTION_LENGTH:
            logger.error(
                "Audit entry rejected: action must be 1-%d characters with an acting admin",
                MAX_ACTION_LENGTH,
                extra={"admin_id": admin_id, "action_type": action_type.value},
            )
            return None

        row = AuditLogModel(
            admin_id=admin_id,
            action=action,
            action_type=action_type.value,
            target_model=target_model.value,
            target_id=target_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent[:MAX_USER_AGENT_LENGTH] if user_agent else user_agent,
            timestamp=self.clock.now(),
        )
        try:
            async with session.begin_nested():
                session.add(row)
        except SQLAlchemyError:
            logger.exception(
                "Failed to write audit entry",
                extra={
                    "admin_id": admin_id,
                    "action_type": action_type.value,
                    "target_model": target_model.value,
                    "target_id": target_id,
                },
            )
            return None
        return _to_entry(row)

    # ── Read ──

    def _select(self):
        return select(
            AuditLogModel, AdminUserModel.username, AdminUserModel.email,
        ).outerjoin(AdminUserModel, AdminUserModel.id == AuditLogModel.admin_id)

    async def recent_entries(
        self,
        session: AsyncSession,
        limit: int = 50,
        by_admin: str | None = None,
    ) -> list[AuditEntry]:
        """Newest first, optionally restricted to one acting admin."""
        query = self._select()
        if by_admin:
            query = query.where(AuditLogModel.admin_id == by_admin)
        query = query.order_by(AuditLogModel.timestamp.desc()).limit(limit)
        result = await session.execute(query)
        return [_to_entry(row, username, email) for row, username, email in result.all()]

    async def entries_for_target(
        self,
        session: AsyncSession,
        target_model: TargetModel | str,
        target_id: str,
    ) -> list[AuditEntry]:
        """Every entry about one target, newest first. Works for deleted targets too."""
        query = (
            self._select()
            .where(
                AuditLogModel.target_model == TargetModel(target_model).value,
                AuditLogModel.target_id == target_id,
            )
            .order_by(AuditLogModel.timestamp.desc())
        )
        result = await session.execute(query)
        return [_to_entry(row, username, email) for row, username, email in result.all()]

    # ── Retention ──

    def cutoff(self, days_to_keep: int | None = None) -> datetime:
        days = self.retention_days if days_to_keep is None else days_to_keep
        return self.clock.now() - timedelta(days=days)

    async def sweep_expired(
        self, session: AsyncSession, days_to_keep: int | None = None,
    ) -> int:
        """Delete entries strictly older than the retention window; return how many."""
        if days_to_keep is not None and days_to_keep < 0:
            raise ValueError("days_to_keep must not be negative")
        cutoff = self.cutoff(days_to_keep)
        result = await session.execute(
            delete(AuditLogModel)
            .where(AuditLogModel.timestamp < cutoff)
            .execution_options(synchronize_session=False)
        )
        removed = result.rowcount or 0
        logger.info("Audit sweep removed %d entries older than %s", removed, cutoff.isoformat())
        return removed
