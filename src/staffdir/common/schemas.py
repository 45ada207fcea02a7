"""Shared Pydantic schemas for the staff directory."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "staffdir"


class MessageResponse(BaseModel):
    success: bool = True
    message: str
