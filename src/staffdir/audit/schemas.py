"""Pydantic schemas for audit endpoints."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from staffdir.audit.service import AuditEntry


class AuditAdmin(BaseModel):
    id: str
    username: Optional[str] = None
    email: Optional[str] = None


class AuditEntryResponse(BaseModel):
    id: str
    admin: AuditAdmin
    action: str
    action_type: str
    target_model: str
    target_id: Optional[str] = None
    details: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    timestamp: datetime

    @classmethod
    def from_entry(cls, entry: AuditEntry) -> "AuditEntryResponse":
        return cls(
            id=entry.id,
            admin=AuditAdmin(
                id=entry.admin_id,
                username=entry.admin_username,
                email=entry.admin_email,
            ),
            action=entry.action,
            action_type=entry.action_type.value,
            target_model=entry.target_model.value,
            target_id=entry.target_id,
            details=entry.details,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            timestamp=entry.timestamp,
        )


class AuditSweepResponse(BaseModel):
    removed: int
    days_to_keep: int
    cutoff: datetime
