"""Pydantic schemas for staff and admin authentication endpoints."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from staffdir.principals.schemas import AdminResponse, StaffResponse


class StaffRegistration(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    staff_id: str = Field(..., min_length=1, max_length=50, pattern=r"^[A-Za-z0-9/_.-]+$")
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    faculty: str = Field(..., min_length=1, max_length=255)
    department: str = Field(..., min_length=1, max_length=255)
    designation: str = Field(..., min_length=1, max_length=255)
    office_address: Optional[str] = Field(None, max_length=200)
    contact_number: Optional[str] = Field(None, max_length=50)
    office_hours: Optional[str] = Field(None, max_length=200)


class StaffLoginRequest(BaseModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class AdminLoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)


class AdminCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$")
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    role: str = Field("admin", pattern=r"^(admin|super-admin)$")
    full_name: Optional[str] = Field(None, max_length=100)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=1, max_length=128)


class StaffLoginResponse(BaseModel):
    token: str
    expires_in: int
    user: StaffResponse


class AdminLoginResponse(BaseModel):
    token: str
    expires_in: int
    admin: AdminResponse


class RegistrationResponse(BaseModel):
    success: bool = True
    message: str = "Registration successful. Your account is pending administrator approval."
    user: StaffResponse


class MeResponse(BaseModel):
    """Who the caller is, if anyone. ``kind`` is None for anonymous callers."""

    authenticated: bool
    kind: Optional[str] = None
    user: Optional[StaffResponse] = None
    admin: Optional[AdminResponse] = None
