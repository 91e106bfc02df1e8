from sqlalchemy import Column, Integer, String, DateTime, Text, Uuid, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
import uuid

from ..core.database import Base

class AppointmentFormat(str, enum.Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"

class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Appointment details
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    format = Column(SQLEnum(AppointmentFormat, name="format"), nullable=False)

    # Exactly one of these is set, depending on format
    address = Column(String(255), nullable=True)
    link = Column(Text, nullable=True)

    # Naive UTC
    date = Column(DateTime, nullable=False, index=True)
    duration = Column(Integer, nullable=False, default=0)  # seconds

    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    invitations = relationship(
        "Invitation",
        back_populates="appointment",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Appointment(id={self.id}, format='{self.format}', date='{self.date}')>"
