import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import NotFoundError, StorageError
from ..models.appointment import Appointment
from ..schemas.appointment import NewAppointment

logger = logging.getLogger(__name__)

class AppointmentService:
    def __init__(self, db: Session):
        self.db = db

    def create_appointment(self, data: NewAppointment) -> Appointment:
        """Store a new appointment and return it."""
        appointment = Appointment(
            title=data.title,
            description=data.description,
            format=data.format,
            address=data.address,
            link=data.link,
            date=data.date,
            duration=data.duration,
        )

        self.db.add(appointment)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("Failed to insert a new appointment into the database.") from exc
        self.db.refresh(appointment)

        logger.info(f"Created {appointment.format.value} appointment {appointment.id}")
        return appointment

    def list_appointments(self, appointment_id: Optional[uuid.UUID] = None) -> List[Appointment]:
        query = self.db.query(Appointment)
        if appointment_id is not None:
            query = query.filter(Appointment.id == appointment_id)
        return query.order_by(Appointment.date).all()

    def get_appointment(self, appointment_id: uuid.UUID) -> Optional[Appointment]:
        return self.db.query(Appointment).filter(Appointment.id == appointment_id).first()

    def require_appointment(self, appointment_id: uuid.UUID) -> Appointment:
        appointment = self.get_appointment(appointment_id)
        if not appointment:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    def delete_appointment(self, appointment_id: uuid.UUID) -> bool:
        """Delete an appointment together with its invitations."""
        appointment = self.get_appointment(appointment_id)
        if not appointment:
            return False

        # ORM cascade removes the invitations, also on databases without FK enforcement
        self.db.delete(appointment)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("Failed to delete the appointment") from exc

        logger.info(f"Deleted appointment {appointment_id}")
        return True
