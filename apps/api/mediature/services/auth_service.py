"""Sign-up through an invitation, password sign-in and password reset."""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mediature.core import errors
from mediature.core.config import settings
from mediature.core.links import get_link
from mediature.core.security import (
    generate_password_reset_token,
    hash_password,
    hash_token,
    verify_password,
)
from mediature.core.structured_logging import build_log_context
from mediature.db.models import Admin, PasswordReset, User
from mediature.services import agent_service, invitation_service, mailer


logger = logging.getLogger(__name__)

EMAIL_MISMATCH = "l'adresse email ne correspond pas à celle de l'invitation"
EMAIL_TAKEN = "un compte existe déjà avec cette adresse email"
INVALID_CREDENTIALS = "identifiants invalides"
RESET_TOKEN_NOT_FOUND = "ce lien de réinitialisation n'existe pas"
RESET_TOKEN_NOT_USABLE = "ce lien de réinitialisation a expiré ou a déjà été utilisé"

# Compared against when the email is unknown
_DUMMY_PASSWORD_HASH = hash_password(secrets.token_urlsafe(16))


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == email.lower().strip()).first()


def sign_up(
    db: Session,
    *,
    invitation_token: str,
    email: str,
    password: str,
    firstname: str,
    lastname: str,
) -> User:
    """
    Create an account by consuming a PENDING invitation.

    The invitation becomes ACCEPTED and the matching role is granted in the
    same commit: agent (optionally main agent) of the invitation authority,
    or admin.
    """
    invitation = invitation_service.get_pending_invitation_by_token(db, invitation_token)

    email = email.lower().strip()
    if email != invitation.invitee_email.lower():
        raise errors.invalid_state(EMAIL_MISMATCH, invitation_id=invitation.id)
    if get_user_by_email(db, email):
        raise errors.conflict(EMAIL_TAKEN)

    user = User(
        email=email,
        firstname=firstname,
        lastname=lastname,
        password_hash=hash_password(password),
    )
    db.add(user)
    try:
        db.flush()
        invitation_service.mark_accepted(db, invitation)

        if invitation.agent_invitation:
            authority = agent_service.get_active_authority(
                db, invitation.agent_invitation.authority_id
            )
            agent_service.attach_agent(
                db, user, authority, invitation.agent_invitation.grant_main_agent
            )
        elif invitation.admin_invitation:
            db.add(Admin(user_id=user.id))

        db.commit()
    except IntegrityError:
        db.rollback()
        raise errors.conflict(EMAIL_TAKEN)
    except errors.DomainError:
        db.rollback()
        raise

    logger.info(
        "User signed up from invitation %s",
        invitation.id,
        extra=build_log_context(user_id=user.id),
    )
    return user


def sign_in(db: Session, *, email: str, password: str) -> User:
    """Check credentials; the same error is used for unknown email and bad password."""
    user = get_user_by_email(db, email)
    if not user:
        # Same bcrypt cost as a known email
        verify_password(password, _DUMMY_PASSWORD_HASH)
        raise errors.unauthenticated(INVALID_CREDENTIALS)
    if not verify_password(password, user.password_hash):
        raise errors.unauthenticated(INVALID_CREDENTIALS)
    return user


# =============================================================================
# Password reset
# =============================================================================

async def request_password_reset(db: Session, *, email: str) -> None:
    """
    Email a single-use reset link to the account owner.

    Unknown emails are ignored silently so the endpoint cannot tell which
    addresses have an account. Links issued earlier for the same user stop
    working.
    """
    user = get_user_by_email(db, email)
    if not user:
        logger.info("Password reset requested for an unknown email")
        return

    now = datetime.now(timezone.utc)
    db.query(PasswordReset).filter(
        PasswordReset.user_id == user.id,
        PasswordReset.used_at.is_(None),
    ).update({PasswordReset.used_at: now}, synchronize_session=False)

    token = generate_password_reset_token()
    db.add(
        PasswordReset(
            user_id=user.id,
            token_hash=hash_token(token),
            expires_at=now + timedelta(minutes=settings.PASSWORD_RESET_EXPIRES_MINUTES),
        )
    )
    db.commit()

    logger.info("Password reset link issued", extra=build_log_context(user_id=user.id))

    await mailer.notify(
        mailer.send_password_reset,
        recipient=user.email,
        firstname=user.firstname,
        reset_password_url_with_token=get_link("resetPassword", {"token": token}, absolute=True),
        expires_minutes=settings.PASSWORD_RESET_EXPIRES_MINUTES,
    )


def reset_password(db: Session, *, token: str, password: str) -> User:
    """
    Set a new password from a reset link and revoke every open session.

    The link is consumed with a conditional update, so two concurrent uses
    cannot both succeed.
    """
    reset = db.query(PasswordReset).filter(PasswordReset.token_hash == hash_token(token)).first()
    if not reset:
        raise errors.not_found(RESET_TOKEN_NOT_FOUND)
    reset_id, user_id = reset.id, reset.user_id

    now = datetime.now(timezone.utc)
    consumed = (
        db.query(PasswordReset)
        .filter(
            PasswordReset.id == reset_id,
            PasswordReset.used_at.is_(None),
            PasswordReset.expires_at > now,
        )
        .update({PasswordReset.used_at: now}, synchronize_session=False)
    )
    if not consumed:
        db.rollback()
        raise errors.invalid_state(RESET_TOKEN_NOT_USABLE, password_reset_id=reset_id)

    user = db.get(User, user_id)
    user.password_hash = hash_password(password)
    user.token_version += 1
    db.commit()

    logger.info("Password reset, sessions revoked", extra=build_log_context(user_id=user.id))
    return user
