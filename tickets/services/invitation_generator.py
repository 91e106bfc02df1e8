import asyncio
import logging
import uuid
from typing import List, Optional, Sequence

from ..core.errors import InputValidationError, UpstreamUnavailableError
from ..schemas.invitation import NewInvitation
from .short_link import ShortLinkGateway

logger = logging.getLogger(__name__)


def resolve_batch_size(count: Optional[int], emails: Optional[Sequence[str]]) -> int:
    """Number of invitations to mint.

    A non-empty email list wins over ``count``; without either one invitation
    is generated.
    """
    if emails:
        return len(emails)
    if count is None:
        return 1
    return count


class InvitationBatchGenerator:
    """Mints a batch of invitation drafts for one appointment.

    Each draft gets a locally generated UUID and a short URL obtained from the
    shortening service. All shortening calls run concurrently; the batch is
    only returned when every call succeeded.
    """

    def __init__(
        self,
        gateway: ShortLinkGateway,
        max_concurrency: int = 10,
        timeout: Optional[float] = None,
        max_batch_size: int = 100,
    ):
        self.gateway = gateway
        self.max_concurrency = max(1, max_concurrency)
        self.timeout = timeout
        self.max_batch_size = max_batch_size

    async def generate(
        self,
        appointment_id: uuid.UUID,
        count: Optional[int] = None,
        emails: Optional[Sequence[str]] = None,
    ) -> List[NewInvitation]:
        size = resolve_batch_size(count, emails)
        if size < 1:
            raise InputValidationError("At least one invitation must be requested")
        if size > self.max_batch_size:
            raise InputValidationError(
                f"At most {self.max_batch_size} invitations can be generated at once"
            )

        ids = [uuid.uuid4() for _ in range(size)]
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def mint(invitation_id: uuid.UUID) -> NewInvitation:
            async with semaphore:
                result = await self.gateway.shorten(str(invitation_id))
            return NewInvitation(
                id=invitation_id,
                appointment_id=appointment_id,
                short_url=result.short_url,
            )

        tasks = [asyncio.ensure_future(mint(invitation_id)) for invitation_id in ids]
        try:
            # gather keeps input order, so draft i always belongs to email i
            drafts = await asyncio.wait_for(asyncio.gather(*tasks), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.error(f"Invitation batch for appointment {appointment_id} timed out after {self.timeout}s")
            raise UpstreamUnavailableError("Generating the invitation links timed out") from exc
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        logger.info(f"Generated {len(drafts)} invitation drafts for appointment {appointment_id}")
        return list(drafts)
