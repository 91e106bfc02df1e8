import logging
from typing import Optional

import httpx

from ..core.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)


class EmailDeliveryError(UpstreamUnavailableError):
    default_detail = "The email service failed to deliver the message"


class EmailClient:
    """Client for a Postmark compatible transactional email API."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        base_url: str,
        sender: str,
        authorization_token: Optional[str],
    ):
        self.http_client = http_client
        self.base_url = base_url.rstrip("/")
        self.sender = sender
        self.authorization_token = authorization_token or ""

    async def send_email(self, recipient: str, subject: str, html_content: str, text_content: str) -> None:
        body = {
            "From": self.sender,
            "To": recipient,
            "Subject": subject,
            "HtmlBody": html_content,
            "TextBody": text_content,
        }
        try:
            response = await self.http_client.post(
                f"{self.base_url}/email",
                headers={"X-Postmark-Server-Token": self.authorization_token},
                json=body,
            )
        except httpx.RequestError as exc:
            raise EmailDeliveryError(f"Could not reach the email service: {exc!r}") from exc

        if not response.is_success:
            logger.error(f"Email service answered {response.status_code} for {recipient}")
            raise EmailDeliveryError(
                f"The email service answered with status {response.status_code}"
            )
