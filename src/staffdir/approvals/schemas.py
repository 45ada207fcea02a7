"""Pydantic schemas for admin staff management."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class StaffUpdate(BaseModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    staff_id: Optional[str] = Field(None, min_length=1, max_length=50, pattern=r"^[A-Za-z0-9/_.-]+$")
    faculty: Optional[str] = Field(None, min_length=1, max_length=255)
    department: Optional[str] = Field(None, min_length=1, max_length=255)
    designation: Optional[str] = Field(None, min_length=1, max_length=255)
    office_address: Optional[str] = Field(None, max_length=200)
    contact_number: Optional[str] = Field(None, max_length=50)
    office_hours: Optional[str] = Field(None, max_length=200)
    research_interests: Optional[str] = None
    biography: Optional[str] = None
    education: Optional[str] = None
    publications: Optional[str] = None
    photo_url: Optional[str] = Field(None, max_length=500)
