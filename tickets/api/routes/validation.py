from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse
from uuid import UUID

from ...api.deps import get_redemption_validator
from ...core.errors import STATUS_CODES
from ...services.redemption import Display, Redirect, RedemptionValidator

router = APIRouter(prefix="/validations", tags=["Validation"])

@router.get("/{invitation_id}")
async def validate_invitation_by_id(
    invitation_id: UUID,
    validator: RedemptionValidator = Depends(get_redemption_validator)
):
    """Redeem an invitation.

    Success consumes the invitation: ONLINE appointments redirect to the
    meeting link, OFFLINE ones return the invitation and appointment details.
    """
    outcome = validator.redeem(invitation_id)

    if isinstance(outcome, Redirect):
        return RedirectResponse(url=outcome.link, status_code=status.HTTP_308_PERMANENT_REDIRECT)

    if isinstance(outcome, Display):
        return JSONResponse(content=jsonable_encoder(outcome.snapshot))

    return JSONResponse(
        status_code=STATUS_CODES[outcome.kind],
        content={"error": outcome.kind.value, "message": outcome.reason}
    )
