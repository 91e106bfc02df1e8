from fastapi import Depends, HTTPException, status, Request
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..services.email_client import EmailClient
from ..services.invitation_generator import InvitationBatchGenerator
from ..services.invitation_store import InvitationStore
from ..services.notifications import NotificationDispatcher
from ..services.redemption import RedemptionValidator
from ..services.short_link import ShortLinkGateway

# Upstream clients are built once at startup and kept on app.state
def get_short_link_gateway(request: Request) -> ShortLinkGateway:
    """Get the shared URL shortening client."""
    return request.app.state.short_link_gateway

def get_email_client(request: Request) -> EmailClient:
    """Get the shared email client."""
    return request.app.state.email_client

def get_invitation_generator(
    gateway: ShortLinkGateway = Depends(get_short_link_gateway)
) -> InvitationBatchGenerator:
    return InvitationBatchGenerator(
        gateway,
        max_concurrency=settings.SHORTENER_MAX_CONCURRENCY,
        timeout=settings.batch_timeout,
        max_batch_size=settings.MAX_INVITATIONS_PER_BATCH,
    )

def get_notification_dispatcher(
    email_client: EmailClient = Depends(get_email_client)
) -> NotificationDispatcher:
    return NotificationDispatcher(
        email_client,
        box_size=settings.QR_BOX_SIZE,
        border=settings.QR_BORDER,
    )

def get_invitation_store(db: Session = Depends(get_db)) -> InvitationStore:
    return InvitationStore(db)

def get_redemption_validator(
    store: InvitationStore = Depends(get_invitation_store)
) -> RedemptionValidator:
    return RedemptionValidator(store)

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Limit invitation generation per client, every batch costs upstream calls."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:invitations:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, 3600, 1)  # one hour window
    else:
        if int(current_requests) >= settings.RATE_LIMIT_PER_HOUR:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
