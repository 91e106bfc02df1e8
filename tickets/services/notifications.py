import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from ..schemas.invitation import NewInvitation
from ..templates import INVITATION_EMAIL_SUBJECT, render_invitation_email
from . import qr
from .email_client import EmailClient

logger = logging.getLogger(__name__)


@dataclass
class DispatchReport:
    sent: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class NotificationDispatcher:
    """Emails one invitation per recipient.

    Each recipient is handled on its own: a failed render or send is logged and
    reported, never raised, and never affects the other recipients.
    """

    def __init__(self, email_client: EmailClient, box_size: int = 10, border: int = 4):
        self.email_client = email_client
        self.box_size = box_size
        self.border = border

    async def _send_one(self, email: str, invitation: NewInvitation) -> None:
        image = qr.encode_base64(invitation.short_url, box_size=self.box_size, border=self.border)
        html_body, text_body = render_invitation_email(image, invitation.short_url)
        await self.email_client.send_email(email, INVITATION_EMAIL_SUBJECT, html_body, text_body)

    async def dispatch(self, pairs: Sequence[Tuple[str, NewInvitation]]) -> DispatchReport:
        results = await asyncio.gather(
            *(self._send_one(email, invitation) for email, invitation in pairs),
            return_exceptions=True,
        )

        report = DispatchReport()
        for (email, invitation), result in zip(pairs, results):
            if isinstance(result, Exception):
                logger.error(f"Failed to send invitation {invitation.id} to {email}: {result}")
                report.failed.append(email)
            else:
                report.sent.append(email)

        logger.info(f"Invitation emails: {len(report.sent)} sent, {len(report.failed)} failed")
        return report
