from sqlalchemy import Column, ForeignKey, DateTime, Boolean, Text, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from ..core.database import Base

class Invitation(Base):
    __tablename__ = "invitations"

    # Assigned by the batch generator before the row exists
    id = Column(Uuid, primary_key=True)
    appointment_id = Column(
        Uuid,
        ForeignKey("appointments.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    used = Column(Boolean, nullable=False, default=False)
    short_url = Column(Text, nullable=False, unique=True)

    created_at = Column(DateTime, server_default=func.now())

    # Relationships
    appointment = relationship("Appointment", back_populates="invitations")

    def __repr__(self):
        return f"<Invitation(id={self.id}, appointment_id={self.appointment_id}, used={self.used})>"
