from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..models.appointment import AppointmentFormat
from .common import validate_http_url


class NewAppointment(BaseModel):
    title: str = Field(..., min_length=1)
    description: str
    format: AppointmentFormat
    address: Optional[str] = None
    link: Optional[str] = None
    date: datetime
    duration: int = Field(0, ge=0, description="Duration in seconds")

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        # Stored without timezone, always UTC
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    @model_validator(mode="after")
    def check_format_fields(self) -> "NewAppointment":
        if self.format == AppointmentFormat.ONLINE:
            if not self.link:
                raise ValueError("An ONLINE appointment requires a meeting link")
            self.link = validate_http_url(self.link)
            self.address = None
        else:
            if not self.address or not self.address.strip():
                raise ValueError("An OFFLINE appointment requires an address")
            self.link = None
        return self


class AppointmentResponse(BaseModel):
    id: UUID
    title: str
    description: str
    format: AppointmentFormat
    address: Optional[str] = None
    link: Optional[str] = None
    date: datetime
    duration: int

    model_config = ConfigDict(from_attributes=True)
