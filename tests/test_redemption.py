import uuid
from datetime import datetime, timedelta, timezone

import pytest

from tickets.core.errors import ErrorKind
from tickets.models.appointment import AppointmentFormat
from tickets.models.invitation import Invitation
from tickets.services.invitation_store import InvitationStore
from tickets.services.redemption import (
    ALREADY_USED, OUTDATED, Display, Redirect, Rejected, RedemptionValidator, yesterday_midnight
)

from .conftest import TestingSessionLocal, add_appointment

NOW = datetime(2024, 10, 11, 15, 30)


def add_invitation(db, appointment, used=False) -> Invitation:
    invitation_id = uuid.uuid4()
    invitation = Invitation(
        id=invitation_id,
        appointment_id=appointment.id,
        used=used,
        short_url=f"https://sho.rt/{invitation_id}",
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)
    return invitation


def is_used(invitation_id) -> bool:
    with TestingSessionLocal() as session:
        return InvitationStore(session).get(invitation_id).used


class ConsumedAfterReadStore(InvitationStore):
    """Another request consumes the invitation right after this one read it."""

    def load_for_redemption(self, invitation_id):
        row = super().load_for_redemption(invitation_id)
        with TestingSessionLocal() as other_session:
            InvitationStore(other_session).mark_used(invitation_id)
            other_session.commit()
        return row


class RedeemedByOtherRequestStore(InvitationStore):
    """A second request redeems the invitation while this one is between read and update."""

    def __init__(self, db, outcomes):
        super().__init__(db)
        self.outcomes = outcomes

    def load_for_redemption(self, invitation_id):
        row = super().load_for_redemption(invitation_id)
        with TestingSessionLocal() as other_session:
            validator = RedemptionValidator(InvitationStore(other_session))
            self.outcomes.append(validator.redeem(invitation_id, now=NOW))
        return row


@pytest.mark.parametrize(
    ("now", "expected"),
    [
        (datetime(2024, 10, 11, 15, 30), datetime(2024, 10, 10)),
        (datetime(2024, 10, 11, 0, 0), datetime(2024, 10, 10)),
        (datetime(2024, 3, 1, 23, 59), datetime(2024, 2, 29)),
        (datetime(2025, 1, 1, 8, 0), datetime(2024, 12, 31)),
        (datetime(2024, 10, 11, 1, 0, tzinfo=timezone(timedelta(hours=5))), datetime(2024, 10, 9)),
        (datetime(2024, 10, 10, 23, 0, tzinfo=timezone(timedelta(hours=-3))), datetime(2024, 10, 10)),
    ],
)
def test_yesterday_midnight(now, expected) -> None:
    assert yesterday_midnight(now) == expected


class TestRedemptionValidator:

    def test_unknown_invitation_is_not_found(self, db_session):
        unknown = uuid.uuid4()

        outcome = RedemptionValidator(InvitationStore(db_session)).redeem(unknown, now=NOW)

        assert outcome == Rejected(ErrorKind.NOT_FOUND, f"Not found for {unknown}")

    def test_offline_invitation_is_displayed_and_consumed(self, db_session):
        appointment = add_appointment(db_session)
        invitation = add_invitation(db_session, appointment)

        outcome = RedemptionValidator(InvitationStore(db_session)).redeem(invitation.id, now=NOW)

        assert isinstance(outcome, Display)
        snapshot = outcome.snapshot
        assert snapshot.id == invitation.id
        assert snapshot.appointment_id == appointment.id
        assert snapshot.used is True
        assert snapshot.format == AppointmentFormat.OFFLINE
        assert snapshot.address == "123 Main St"
        assert snapshot.date == datetime(2024, 10, 10, 10, 0)
        assert is_used(invitation.id)

    def test_online_invitation_redirects_to_the_meeting(self, db_session):
        appointment = add_appointment(
            db_session, format=AppointmentFormat.ONLINE, address=None, link="https://meet.example.com/abc"
        )
        invitation = add_invitation(db_session, appointment)

        outcome = RedemptionValidator(InvitationStore(db_session)).redeem(invitation.id, now=NOW)

        assert outcome == Redirect(link="https://meet.example.com/abc")
        assert is_used(invitation.id)

    def test_second_redemption_is_forbidden(self, db_session):
        appointment = add_appointment(db_session)
        invitation = add_invitation(db_session, appointment)
        validator = RedemptionValidator(InvitationStore(db_session))

        validator.redeem(invitation.id, now=NOW)
        outcome = validator.redeem(invitation.id, now=NOW)

        assert outcome == Rejected(ErrorKind.FORBIDDEN, ALREADY_USED)

    def test_used_invitation_is_left_untouched(self, db_session):
        appointment = add_appointment(db_session)
        invitation = add_invitation(db_session, appointment, used=True)

        outcome = RedemptionValidator(InvitationStore(db_session)).redeem(invitation.id, now=NOW)

        assert outcome == Rejected(ErrorKind.FORBIDDEN, ALREADY_USED)
        assert is_used(invitation.id)

    def test_appointment_at_yesterday_midnight_is_still_valid(self, db_session):
        appointment = add_appointment(db_session, date=datetime(2024, 10, 10, 0, 0))
        invitation = add_invitation(db_session, appointment)

        outcome = RedemptionValidator(InvitationStore(db_session)).redeem(invitation.id, now=NOW)

        assert isinstance(outcome, Display)

    def test_appointment_before_yesterday_midnight_is_outdated(self, db_session):
        """Outdated invitations are rejected and stay unused."""
        appointment = add_appointment(db_session, date=datetime(2024, 10, 10) - timedelta(microseconds=1))
        invitation = add_invitation(db_session, appointment)

        outcome = RedemptionValidator(InvitationStore(db_session)).redeem(invitation.id, now=NOW)

        assert outcome == Rejected(ErrorKind.FORBIDDEN, OUTDATED)
        assert not is_used(invitation.id)

    def test_future_appointment_is_valid(self, db_session):
        appointment = add_appointment(db_session, date=NOW + timedelta(days=30))
        invitation = add_invitation(db_session, appointment)

        outcome = RedemptionValidator(InvitationStore(db_session)).redeem(invitation.id, now=NOW)

        assert isinstance(outcome, Display)

    def test_concurrent_consumption_leaves_one_winner(self, db_session):
        """The read saw an unused invitation but another request consumed it first."""
        appointment = add_appointment(db_session)
        invitation = add_invitation(db_session, appointment)

        outcome = RedemptionValidator(ConsumedAfterReadStore(db_session)).redeem(invitation.id, now=NOW)

        assert outcome == Rejected(ErrorKind.FORBIDDEN, ALREADY_USED)
        assert is_used(invitation.id)

    def test_interleaved_redemptions_have_exactly_one_winner(self, db_session):
        """Two redemptions read the unused invitation, one is displayed and one is refused."""
        appointment = add_appointment(db_session)
        invitation = add_invitation(db_session, appointment)
        outcomes = []

        store = RedeemedByOtherRequestStore(db_session, outcomes)
        outcomes.append(RedemptionValidator(store).redeem(invitation.id, now=NOW))

        assert len(outcomes) == 2
        assert sum(isinstance(outcome, Display) for outcome in outcomes) == 1
        assert outcomes.count(Rejected(ErrorKind.FORBIDDEN, ALREADY_USED)) == 1
        assert is_used(invitation.id)
