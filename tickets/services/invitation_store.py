import logging
import uuid
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.errors import ConflictError, StorageError
from ..models.appointment import Appointment
from ..models.invitation import Invitation
from ..schemas.invitation import NewInvitation

logger = logging.getLogger(__name__)


class InvitationStore:
    def __init__(self, db: Session):
        self.db = db

    def persist_batch(self, drafts: Sequence[NewInvitation]) -> None:
        """Insert a whole batch in one transaction, all rows or none."""
        if not drafts:
            return

        self.db.add_all(
            Invitation(
                id=draft.id,
                appointment_id=draft.appointment_id,
                short_url=draft.short_url,
                used=False,
            )
            for draft in drafts
        )
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.error(f"Invitation batch rejected by the database: {exc}")
            raise ConflictError("Invitation batch conflicts with stored invitations") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(f"Failed to store invitation batch: {exc}")
            raise StorageError("Failed to store the invitation batch") from exc

        logger.info(f"Stored {len(drafts)} invitations for appointment {drafts[0].appointment_id}")

    def find(self, appointment_id: Optional[uuid.UUID] = None) -> List[Invitation]:
        query = self.db.query(Invitation)
        if appointment_id is not None:
            query = query.filter(Invitation.appointment_id == appointment_id)
        try:
            return query.order_by(Invitation.created_at).all()
        except SQLAlchemyError as exc:
            raise StorageError() from exc

    def get(self, invitation_id: uuid.UUID) -> Optional[Invitation]:
        try:
            return self.db.query(Invitation).filter(Invitation.id == invitation_id).first()
        except SQLAlchemyError as exc:
            raise StorageError() from exc

    def load_for_redemption(self, invitation_id: uuid.UUID) -> Optional[Tuple[Invitation, Appointment]]:
        """Invitation and its appointment in a single read."""
        try:
            return (
                self.db.query(Invitation, Appointment)
                .join(Appointment, Invitation.appointment_id == Appointment.id)
                .filter(Invitation.id == invitation_id)
                .first()
            )
        except SQLAlchemyError as exc:
            raise StorageError() from exc

    def mark_used(self, invitation_id: uuid.UUID) -> bool:
        """Flip ``used`` only if it is still false.

        Returns True when this call performed the transition. The caller owns
        the surrounding transaction and commits or rolls back.
        """
        try:
            updated = (
                self.db.query(Invitation)
                .filter(Invitation.id == invitation_id, Invitation.used == False)  # noqa: E712
                .update({"used": True}, synchronize_session=False)
            )
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError("Failed to mark the invitation as used") from exc
        return updated == 1
