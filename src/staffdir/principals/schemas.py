"""Outward-facing principal representations. No schema carries a password hash."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from staffdir.principals.types import AdminPrincipal, StaffPrincipal


class StaffResponse(BaseModel):
    id: str
    staff_id: str
    email: str
    full_name: str
    faculty: str
    department: str
    designation: str
    slug: str
    is_verified: bool
    is_approved: bool
    is_active: bool
    approval_state: str
    office_address: Optional[str] = None
    contact_number: Optional[str] = None
    office_hours: Optional[str] = None
    research_interests: Optional[str] = None
    biography: Optional[str] = None
    education: Optional[str] = None
    publications: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_principal(cls, staff: StaffPrincipal) -> "StaffResponse":
        return cls(
            id=staff.id,
            staff_id=staff.staff_id,
            email=staff.email,
            full_name=staff.full_name,
            faculty=staff.faculty,
            department=staff.department,
            designation=staff.designation,
            slug=staff.slug,
            is_verified=staff.is_verified,
            is_approved=staff.is_approved,
            is_active=staff.is_active,
            approval_state=staff.approval_state.value,
            office_address=staff.office_address,
            contact_number=staff.contact_number,
            office_hours=staff.office_hours,
            research_interests=staff.research_interests,
            biography=staff.biography,
            education=staff.education,
            publications=staff.publications,
            photo_url=staff.photo_url,
            created_at=staff.created_at,
        )


class AdminResponse(BaseModel):
    id: str
    username: str
    email: str
    role: str
    full_name: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_principal(cls, admin: AdminPrincipal) -> "AdminResponse":
        return cls(
            id=admin.id,
            username=admin.username,
            email=admin.email,
            role=admin.role.value,
            full_name=admin.full_name,
            is_active=admin.is_active,
            last_login=admin.last_login,
            created_at=admin.created_at,
        )
