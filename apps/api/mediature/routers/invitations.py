"""Invitation endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mediature.core.deps import get_current_user, get_db, require_csrf_header
from mediature.db.models import User
from mediature.schemas.invitation import (
    AdminInviteCreate,
    InvitationRead,
    PublicFacingInvitationRead,
    PublicFacingInvitationResponse,
)
from mediature.services import invitation_service


router = APIRouter()


@router.get("/public/{token}", response_model=PublicFacingInvitationResponse)
async def get_public_facing_invitation(token: str, db: Session = Depends(get_db)):
    """Invitation details shown on the sign-up page (no authentication)."""
    invitation = invitation_service.get_public_facing_invitation(db, token)
    return PublicFacingInvitationResponse(
        invitation=PublicFacingInvitationRead.model_validate(invitation)
    )


@router.post("/{invitation_id}/cancel", dependencies=[Depends(require_csrf_header)])
async def cancel_invitation(
    invitation_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    invitation_service.cancel_invitation(db, user_id=user.id, invitation_id=invitation_id)
    return {"canceled": True}


@router.post("/admins", dependencies=[Depends(require_csrf_header)])
async def invite_admin(
    body: AdminInviteCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Invite an admin.

    Existing users are promoted right away, in which case no invitation is returned.
    """
    invitation = await invitation_service.invite_admin(
        db,
        originator_user_id=user.id,
        invitee_email=body.invitee_email,
        invitee_firstname=body.invitee_firstname,
        invitee_lastname=body.invitee_lastname,
    )
    if invitation is None:
        return {"invitation": None, "granted": True}
    return {"invitation": InvitationRead.model_validate(invitation), "granted": False}
