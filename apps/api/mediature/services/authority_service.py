"""Authority administration."""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mediature.core import errors
from mediature.core.structured_logging import build_log_context
from mediature.db.enums import AuthorityType
from mediature.db.models import Agent, Authority
from mediature.services import access_service
from mediature.services.agent_service import (
    AGENT_NOT_IN_AUTHORITY,
    AUTHORITY_NOT_FOUND,
    get_active_authority,
)


logger = logging.getLogger(__name__)

SLUG_TAKEN = "ce nom d'URL (slug) est déjà utilisé par une autre collectivité"
MAX_LIST_RESULTS = 200


def _ensure_slug_available(db: Session, slug: str, exclude_id: UUID | None = None) -> None:
    query = db.query(Authority.id).filter(Authority.slug == slug)
    if exclude_id:
        query = query.filter(Authority.id != exclude_id)
    if query.first():
        raise errors.conflict(SLUG_TAKEN, slug=slug)


def _commit_or_slug_conflict(db: Session, slug: str) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise errors.conflict(SLUG_TAKEN, slug=slug)


def create_authority(
    db: Session,
    *,
    user_id: UUID,
    name: str,
    slug: str,
    type: AuthorityType,
    logo_attachment_id: UUID | None = None,
) -> Authority:
    access_service.ensure_admin(db, user_id)
    _ensure_slug_available(db, slug)

    authority = Authority(
        name=name,
        slug=slug,
        type=type.value,
        logo_attachment_id=logo_attachment_id,
    )
    db.add(authority)
    _commit_or_slug_conflict(db, slug)

    logger.info("Authority created", extra=build_log_context(user_id=user_id, authority_id=authority.id))
    return authority


def update_authority(
    db: Session,
    *,
    user_id: UUID,
    authority_id: UUID,
    name: str,
    slug: str,
    type: AuthorityType,
    main_agent_id: UUID | None = None,
    logo_attachment_id: UUID | None = None,
) -> Authority:
    """Update an authority; main_agent_id must be an agent of this authority."""
    access_service.ensure_admin(db, user_id)
    authority = get_active_authority(db, authority_id)
    _ensure_slug_available(db, slug, exclude_id=authority.id)

    if main_agent_id is not None:
        agent = db.get(Agent, main_agent_id)
        if not agent or agent.authority_id != authority.id:
            raise errors.conflict(
                AGENT_NOT_IN_AUTHORITY, agent_id=main_agent_id, authority_id=authority_id
            )

    authority.name = name
    authority.slug = slug
    authority.type = type.value
    authority.main_agent_id = main_agent_id
    authority.logo_attachment_id = logo_attachment_id
    _commit_or_slug_conflict(db, slug)

    logger.info("Authority updated", extra=build_log_context(user_id=user_id, authority_id=authority_id))
    return authority


def delete_authority(db: Session, *, user_id: UUID, authority_id: UUID) -> None:
    """Soft delete (admin only)."""
    access_service.ensure_admin(db, user_id)
    authority = get_active_authority(db, authority_id)
    authority.deleted_at = datetime.now(timezone.utc)
    db.commit()

    logger.info("Authority deleted", extra=build_log_context(user_id=user_id, authority_id=authority_id))


def get_authority(db: Session, *, user_id: UUID, authority_id: UUID) -> Authority:
    access_service.ensure_admin_or_agent_of(
        db, user_id, [authority_id], message=errors.AUTHORITY_ACTION_FORBIDDEN
    )
    return get_active_authority(db, authority_id)


def get_public_facing_authority(db: Session, slug: str) -> Authority:
    authority = (
        db.query(Authority)
        .filter(Authority.slug == slug.lower(), Authority.deleted_at.is_(None))
        .first()
    )
    if not authority:
        raise errors.not_found(AUTHORITY_NOT_FOUND, slug=slug)
    return authority


def list_authorities(db: Session, *, user_id: UUID, query: str | None = None) -> list[Authority]:
    """List authorities (admin only), optionally filtered by name."""
    access_service.ensure_admin(db, user_id)

    q = db.query(Authority).filter(Authority.deleted_at.is_(None))
    if query:
        q = q.filter(func.lower(Authority.name).contains(query.lower().strip()))
    return q.order_by(Authority.name.asc()).limit(MAX_LIST_RESULTS).all()
