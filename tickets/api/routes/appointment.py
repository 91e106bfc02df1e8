from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID
import logging

from ...core.database import get_db
from ...api.deps import (
    get_invitation_generator, get_invitation_store,
    get_notification_dispatcher, rate_limit_check
)
from ...services.appointment_service import AppointmentService
from ...services.invitation_generator import InvitationBatchGenerator
from ...services.invitation_store import InvitationStore
from ...services.notifications import NotificationDispatcher
from ...schemas.appointment import NewAppointment, AppointmentResponse
from ...schemas.invitation import InvitationRequest, InvitationResponse, NewInvitation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appointment", tags=["Appointments"])

@router.post("", response_model=UUID)
async def add_appointment(
    new_appointment: NewAppointment,
    db: Session = Depends(get_db)
):
    """Create an appointment and return its id."""
    appointment_service = AppointmentService(db)
    appointment = appointment_service.create_appointment(new_appointment)
    return appointment.id

@router.get("", response_model=List[AppointmentResponse])
async def list_appointments(db: Session = Depends(get_db)):
    """List all appointments."""
    appointment_service = AppointmentService(db)
    return appointment_service.list_appointments()

@router.get("/{appointment_id}", response_model=Optional[AppointmentResponse])
async def get_appointment_by_id(
    appointment_id: UUID,
    db: Session = Depends(get_db)
):
    """Get an appointment, or null when it does not exist."""
    appointment_service = AppointmentService(db)
    return appointment_service.get_appointment(appointment_id)

@router.delete("/{appointment_id}", response_model=bool)
async def delete_appointment(
    appointment_id: UUID,
    db: Session = Depends(get_db)
):
    """Delete an appointment and its invitations."""
    appointment_service = AppointmentService(db)
    return appointment_service.delete_appointment(appointment_id)

@router.post("/{appointment_id}/invitation", response_model=List[NewInvitation])
async def add_invitation(
    appointment_id: UUID,
    background_tasks: BackgroundTasks,
    request_body: Optional[InvitationRequest] = None,
    count: Optional[int] = Query(None, description="Ignored when emails are given"),
    db: Session = Depends(get_db),
    generator: InvitationBatchGenerator = Depends(get_invitation_generator),
    store: InvitationStore = Depends(get_invitation_store),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
    _: None = Depends(rate_limit_check)
):
    """Generate a batch of invitations and optionally email them."""
    AppointmentService(db).require_appointment(appointment_id)
    # Give the connection back to the pool while the shortener is called
    db.close()

    emails = list(request_body.email or []) if request_body else []

    # Nothing is written unless every short link was obtained
    drafts = await generator.generate(appointment_id, count=count, emails=emails)
    store.persist_batch(drafts)

    if emails:
        # Sent after the response, the stored batch is never rolled back by email failures
        background_tasks.add_task(dispatcher.dispatch, list(zip(emails, drafts)))
        logger.info(f"Queued {len(emails)} invitation emails for appointment {appointment_id}")

    return drafts

@router.get("/{appointment_id}/invitation", response_model=List[InvitationResponse])
async def list_appointment_invitations(
    appointment_id: UUID,
    store: InvitationStore = Depends(get_invitation_store)
):
    """List the invitations of an appointment."""
    return store.find(appointment_id)
