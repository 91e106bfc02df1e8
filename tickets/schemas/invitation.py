from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from ..models.appointment import AppointmentFormat
from .common import validate_http_url


class InvitationRequest(BaseModel):
    """Body of an invitation generation request."""
    email: Optional[List[EmailStr]] = None


class NewInvitation(BaseModel):
    """An invitation draft, created before it is persisted."""
    id: UUID
    appointment_id: UUID
    short_url: str


class InvitationResponse(BaseModel):
    id: UUID
    appointment_id: UUID
    used: bool
    short_url: str

    model_config = ConfigDict(from_attributes=True)


class RedemptionSnapshot(BaseModel):
    """Invitation joined with its appointment, shown for OFFLINE redemptions."""
    id: UUID
    appointment_id: UUID
    used: bool
    short_url: str
    format: AppointmentFormat
    address: Optional[str] = None
    link: Optional[str] = None
    date: datetime


class ShortUrlResult(BaseModel):
    hash: str
    short_url: str
    long_url: str

    @field_validator("short_url")
    @classmethod
    def validate_short_url(cls, value: str) -> str:
        return validate_http_url(value)
