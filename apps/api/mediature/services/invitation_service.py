"""Invitation lifecycle: public lookup, admin invitations, cancel, accept."""

import logging
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from mediature.core import errors
from mediature.core.links import get_link
from mediature.core.security import generate_invitation_token
from mediature.core.structured_logging import build_log_context
from mediature.db.enums import InvitationStatus
from mediature.db.models import (
    Admin,
    AdminInvitation,
    AgentInvitation,
    Invitation,
    User,
)
from mediature.services import access_service, mailer


logger = logging.getLogger(__name__)

INVITATION_NOT_FOUND = "l'invitation spécifiée n'existe pas"
INVITATION_NOT_CANCELABLE = "l'invitation spécifiée ne peut pas être annulée"
INVALID_TOKEN = "le jeton d'invitation fournit n'est pas valide"
TOKEN_NOT_USABLE = "le jeton d'invitation n'est plus utilisable"
ALREADY_ADMIN = "cette personne est déjà administrateur"


def get_invitation(db: Session, invitation_id: UUID) -> Invitation | None:
    """Get an invitation with its agent/admin sub-records."""
    return (
        db.query(Invitation)
        .options(
            selectinload(Invitation.agent_invitation),
            selectinload(Invitation.admin_invitation),
            selectinload(Invitation.issuer),
        )
        .filter(Invitation.id == invitation_id)
        .first()
    )


def get_pending_invitation_by_token(db: Session, token: str) -> Invitation:
    """
    Resolve a sign-up token.

    Raises NOT_FOUND for an unknown token, INVALID_STATE once it was used or canceled.
    """
    invitation = (
        db.query(Invitation)
        .options(
            selectinload(Invitation.issuer),
            selectinload(Invitation.agent_invitation),
            selectinload(Invitation.admin_invitation),
        )
        .filter(Invitation.token == token)
        .first()
    )
    if not invitation:
        raise errors.not_found(INVALID_TOKEN)
    if invitation.status != InvitationStatus.PENDING.value:
        raise errors.invalid_state(TOKEN_NOT_USABLE, status=invitation.status)
    return invitation


def get_public_facing_invitation(db: Session, token: str) -> Invitation:
    """Invitation details for the sign-up page (no authentication)."""
    return get_pending_invitation_by_token(db, token)


def cancel_invitation(db: Session, *, user_id: UUID, invitation_id: UUID) -> None:
    """
    Cancel a PENDING invitation.

    Agent invitations: admin or main agent of the invitation authority.
    Admin invitations: admin only.
    """
    invitation = get_invitation(db, invitation_id)
    if not invitation:
        raise errors.not_found(INVITATION_NOT_FOUND, invitation_id=invitation_id)

    if invitation.status != InvitationStatus.PENDING.value:
        raise errors.invalid_state(
            INVITATION_NOT_CANCELABLE,
            invitation_id=invitation_id,
            status=invitation.status,
        )

    authority_id = None
    if invitation.agent_invitation:
        authority_id = invitation.agent_invitation.authority_id
        access_service.ensure_admin_or_main_agent(db, user_id, authority_id)
    else:
        access_service.ensure_admin(db, user_id)

    # Compare-and-swap on the status so a concurrent accept/cancel wins once
    updated = (
        db.query(Invitation)
        .filter(
            Invitation.id == invitation.id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .update(
            {
                Invitation.status: InvitationStatus.CANCELED.value,
                Invitation.updated_at: func.now(),
            },
            synchronize_session=False,
        )
    )
    if not updated:
        db.rollback()
        raise errors.invalid_state(INVITATION_NOT_CANCELABLE, invitation_id=invitation_id)

    _release_pending_key(db, invitation.id)
    db.commit()

    logger.info(
        "Invitation %s canceled",
        invitation.id,
        extra=build_log_context(user_id=user_id, authority_id=authority_id),
    )


def mark_accepted(db: Session, invitation: Invitation) -> None:
    """
    Move a PENDING invitation to ACCEPTED (flush only, caller commits).

    Raises INVALID_STATE if it was canceled or accepted meanwhile.
    """
    updated = (
        db.query(Invitation)
        .filter(
            Invitation.id == invitation.id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .update(
            {
                Invitation.status: InvitationStatus.ACCEPTED.value,
                Invitation.updated_at: func.now(),
            },
            synchronize_session=False,
        )
    )
    if not updated:
        raise errors.invalid_state(TOKEN_NOT_USABLE, invitation_id=invitation.id)

    _release_pending_key(db, invitation.id)


def _release_pending_key(db: Session, invitation_id: UUID) -> None:
    db.query(AgentInvitation).filter(AgentInvitation.invitation_id == invitation_id).update(
        {AgentInvitation.pending_key: None}, synchronize_session=False
    )


def grant_admin(db: Session, user_id: UUID) -> Admin:
    admin = Admin(user_id=user_id)
    db.add(admin)
    try:
        db.commit()
    except IntegrityError:
        # Concurrent grant to the same user
        db.rollback()
        raise errors.conflict(ALREADY_ADMIN, user_id=user_id)
    return admin


async def invite_admin(
    db: Session,
    *,
    originator_user_id: UUID,
    invitee_email: str,
    invitee_firstname: str | None = None,
    invitee_lastname: str | None = None,
) -> Invitation | None:
    """
    Invite someone to become admin (admin only).

    An existing user is granted the admin role directly and None is returned.
    """
    access_service.ensure_admin(db, originator_user_id)

    email = invitee_email.lower().strip()
    existing_user = db.query(User).filter(func.lower(User.email) == email).first()
    if existing_user:
        if access_service.is_user_an_admin(db, existing_user.id):
            raise errors.conflict(ALREADY_ADMIN, user_id=existing_user.id)
        grant_admin(db, existing_user.id)
        logger.info(
            "Admin role granted to user %s",
            existing_user.id,
            extra=build_log_context(user_id=originator_user_id),
        )
        return None

    originator = db.get(User, originator_user_id)

    invitation = Invitation(
        issuer_id=originator.id,
        invitee_email=email,
        invitee_firstname=invitee_firstname,
        invitee_lastname=invitee_lastname,
        token=generate_invitation_token(),
        status=InvitationStatus.PENDING.value,
    )
    invitation.admin_invitation = AdminInvitation()
    db.add(invitation)
    db.commit()

    logger.info(
        "Admin invitation %s created",
        invitation.id,
        extra=build_log_context(user_id=originator_user_id),
    )

    await mailer.notify(
        mailer.send_sign_up_invitation_as_admin,
        recipient=invitation.invitee_email,
        firstname=invitation.invitee_firstname,
        lastname=invitation.invitee_lastname,
        originator_firstname=originator.firstname,
        originator_lastname=originator.lastname,
        sign_up_url_with_token=get_link("signUp", {"token": invitation.token}, absolute=True),
    )
    return invitation
