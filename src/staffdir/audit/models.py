"""SQLAlchemy model for the admin action log."""

import enum
from datetime import datetime

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from staffdir.common.models import Base, generate_uuid, utcnow

MAX_ACTION_LENGTH = 500


class ActionType(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    APPROVE = "approve"
    REJECT = "reject"
    EXPORT = "export"


class TargetModel(str, enum.Enum):
    USER = "User"
    ADMIN = "Admin"
    SYSTEM = "System"


class AuditLogModel(Base):
    """One privileged action. Rows are written once and only ever deleted by the retention sweep.

    ``admin_id`` and ``target_id`` are plain strings: entries outlive the
    principals they mention.
    """

    __tablename__ = "audit_logs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    admin_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(MAX_ACTION_LENGTH), nullable=False)
    action_type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    target_model: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    target_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True,
    )
