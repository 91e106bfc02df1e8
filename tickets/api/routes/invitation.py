from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from uuid import UUID

from ...api.deps import get_invitation_store
from ...core.config import settings
from ...core.errors import NotFoundError
from ...services import qr
from ...services.invitation_store import InvitationStore
from ...schemas.invitation import InvitationResponse
from ...templates import render_qr_page

router = APIRouter(prefix="/invitation", tags=["Invitations"])

def _get_or_404(store: InvitationStore, invitation_id: UUID):
    invitation = store.get(invitation_id)
    if not invitation:
        raise NotFoundError(f"Not found for {invitation_id}")
    return invitation

@router.get("/{invitation_id}", response_model=InvitationResponse)
async def get_invitation_by_id(
    invitation_id: UUID,
    store: InvitationStore = Depends(get_invitation_store)
):
    """Read-only view of an invitation, does not consume it."""
    return _get_or_404(store, invitation_id)

@router.get("/{invitation_id}/qr", response_class=HTMLResponse)
async def get_invitation_qr(
    invitation_id: UUID,
    store: InvitationStore = Depends(get_invitation_store)
):
    """HTML page with the invitation's QR code inlined as a base64 PNG."""
    invitation = _get_or_404(store, invitation_id)
    image = qr.encode_base64(
        invitation.short_url,
        box_size=settings.QR_BOX_SIZE,
        border=settings.QR_BORDER
    )
    return HTMLResponse(content=render_qr_page(image, invitation.short_url))
