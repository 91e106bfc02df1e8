"""Redemption of invitation links.

An invitation moves from unused to used exactly once. A redemption attempt is
accepted when the invitation exists, is unused and its appointment is not older
than midnight (UTC) of the previous day. Acceptance consumes the invitation with
a conditional update in the same transaction as the read, so two concurrent
attempts can never both succeed.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from ..core.errors import ErrorKind, StorageError
from ..models.appointment import AppointmentFormat
from ..schemas.invitation import RedemptionSnapshot
from .invitation_store import InvitationStore

logger = logging.getLogger(__name__)

ALREADY_USED = "invitation has already been used"
OUTDATED = "The invitation date is outdated."


@dataclass(frozen=True)
class Redirect:
    link: str


@dataclass(frozen=True)
class Display:
    snapshot: RedemptionSnapshot


@dataclass(frozen=True)
class Rejected:
    kind: ErrorKind
    reason: str


RedemptionOutcome = Union[Redirect, Display, Rejected]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def yesterday_midnight(now: datetime) -> datetime:
    """Midnight (naive UTC) at the start of the calendar day before ``now``."""
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    return datetime.combine(now.date() - timedelta(days=1), time.min)


class RedemptionValidator:
    def __init__(self, store: InvitationStore):
        self.store = store

    def redeem(self, invitation_id: uuid.UUID, now: Optional[datetime] = None) -> RedemptionOutcome:
        now = now or utcnow()
        db = self.store.db

        row = self.store.load_for_redemption(invitation_id)
        if row is None:
            return Rejected(ErrorKind.NOT_FOUND, f"Not found for {invitation_id}")

        invitation, appointment = row

        if invitation.used:
            logger.info(f"Rejected invitation {invitation_id}: already used")
            return Rejected(ErrorKind.FORBIDDEN, ALREADY_USED)

        if appointment.date < yesterday_midnight(now):
            logger.info(f"Rejected invitation {invitation_id}: appointment on {appointment.date} is outdated")
            return Rejected(ErrorKind.FORBIDDEN, OUTDATED)

        if not self.store.mark_used(invitation_id):
            # Another attempt consumed it between our read and update
            db.rollback()
            logger.info(f"Rejected invitation {invitation_id}: consumed concurrently")
            return Rejected(ErrorKind.FORBIDDEN, ALREADY_USED)

        if appointment.format == AppointmentFormat.ONLINE:
            outcome = Redirect(link=appointment.link)
        else:
            outcome = Display(
                snapshot=RedemptionSnapshot(
                    id=invitation.id,
                    appointment_id=invitation.appointment_id,
                    used=True,
                    short_url=invitation.short_url,
                    format=appointment.format,
                    address=appointment.address,
                    link=appointment.link,
                    date=appointment.date,
                )
            )

        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            raise StorageError("Failed to consume the invitation") from exc

        logger.info(f"Invitation {invitation_id} redeemed")
        return outcome
