"""Principal value types: a kind-discriminated union of staff and admins.

ORM rows never leave the repository; callers receive these frozen values.
``password_hash`` is populated only when a lookup explicitly asks for it
(authentication paths) and is excluded from ``repr`` and from every
outward-facing schema.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union


class PrincipalKind(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class AdminRole(str, enum.Enum):
    ADMIN = "admin"
    SUPER_ADMIN = "super-admin"


class ApprovalState(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    DEACTIVATED = "deactivated"


@dataclass(frozen=True)
class StaffPrincipal:
    id: str
    staff_id: str
    email: str
    full_name: str
    faculty: str
    department: str
    designation: str
    slug: str
    is_verified: bool = False
    is_approved: bool = False
    is_active: bool = True
    office_address: Optional[str] = None
    contact_number: Optional[str] = None
    office_hours: Optional[str] = None
    research_interests: Optional[str] = None
    biography: Optional[str] = None
    education: Optional[str] = None
    publications: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    password_hash: Optional[str] = field(default=None, repr=False, compare=False)

    kind = PrincipalKind.USER

    @property
    def approval_state(self) -> ApprovalState:
        return approval_state(self)


@dataclass(frozen=True)
class AdminPrincipal:
    id: str
    username: str
    email: str
    role: AdminRole = AdminRole.ADMIN
    full_name: Optional[str] = None
    is_active: bool = True
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    password_hash: Optional[str] = field(default=None, repr=False, compare=False)

    kind = PrincipalKind.ADMIN

    @property
    def is_super_admin(self) -> bool:
        return self.role is AdminRole.SUPER_ADMIN


Principal = Union[StaffPrincipal, AdminPrincipal]


def approval_state(staff: Optional[StaffPrincipal]) -> ApprovalState:
    """Derive the registration state from ``(is_approved, is_active)``.

    Rejection deletes the record, so a missing principal is ``REJECTED``.
    An inactive record is ``DEACTIVATED`` whether or not it was approved.
    """
    if staff is None:
        return ApprovalState.REJECTED
    if not staff.is_active:
        return ApprovalState.DEACTIVATED
    if not staff.is_approved:
        return ApprovalState.PENDING
    return ApprovalState.APPROVED
