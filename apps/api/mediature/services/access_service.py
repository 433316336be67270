"""
Authorization predicates over persisted relationships.

Every check is conjunctive over the requested authorities: the batched
helpers return the ids the user is NOT entitled to, so an empty result
means access to all of them. Duplicate ids are ignored and an empty
request is vacuously granted.
"""

from typing import Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from mediature.core import errors
from mediature.db.models import Admin, Agent, Authority


def _distinct(authority_ids: Iterable[UUID]) -> set[UUID]:
    return set(authority_ids)


def is_user_an_admin(db: Session, user_id: UUID) -> bool:
    """Check if the user holds an admin role."""
    return db.query(Admin.id).filter(Admin.user_id == user_id).first() is not None


def find_authorities_not_main_agent_of(
    db: Session,
    user_id: UUID,
    authority_ids: Iterable[UUID],
) -> set[UUID]:
    """Return the requested authority ids where the user is not the main agent."""
    requested = _distinct(authority_ids)
    if not requested:
        return set()

    rows = (
        db.query(Authority.id)
        .join(Agent, Agent.id == Authority.main_agent_id)
        .filter(
            Authority.id.in_(requested),
            Agent.user_id == user_id,
        )
        .all()
    )
    return requested - {row[0] for row in rows}


def find_authorities_not_agent_of(
    db: Session,
    user_id: UUID,
    authority_ids: Iterable[UUID],
) -> set[UUID]:
    """Return the requested authority ids where the user is not an agent."""
    requested = _distinct(authority_ids)
    if not requested:
        return set()

    rows = (
        db.query(Agent.authority_id)
        .filter(
            Agent.authority_id.in_(requested),
            Agent.user_id == user_id,
        )
        .distinct()
        .all()
    )
    return requested - {row[0] for row in rows}


def is_user_main_agent_of_authorities(
    db: Session, authority_ids: Iterable[UUID], user_id: UUID
) -> bool:
    return not find_authorities_not_main_agent_of(db, user_id, authority_ids)


def is_user_main_agent_of_authority(db: Session, authority_id: UUID, user_id: UUID) -> bool:
    return is_user_main_agent_of_authorities(db, [authority_id], user_id)


def is_user_an_agent_part_of_authorities(
    db: Session, authority_ids: Iterable[UUID], user_id: UUID
) -> bool:
    return not find_authorities_not_agent_of(db, user_id, authority_ids)


def is_user_an_agent_part_of_authority(db: Session, authority_id: UUID, user_id: UUID) -> bool:
    return is_user_an_agent_part_of_authorities(db, [authority_id], user_id)


# =============================================================================
# Guards (raise before any write)
# =============================================================================

def ensure_admin(db: Session, user_id: UUID) -> None:
    if not is_user_an_admin(db, user_id):
        raise errors.forbidden(errors.ADMIN_REQUIRED, user_id=user_id)


def ensure_admin_or_main_agent(db: Session, user_id: UUID, authority_id: UUID) -> None:
    """Allow admins and the main agent of the authority."""
    if is_user_an_admin(db, user_id):
        return

    denied = find_authorities_not_main_agent_of(db, user_id, [authority_id])
    if denied:
        raise errors.forbidden(
            errors.MAIN_AGENT_OR_ADMIN_REQUIRED,
            user_id=user_id,
            denied_authority_ids=denied,
        )


def ensure_admin_or_agent_of(
    db: Session,
    user_id: UUID,
    authority_ids: Iterable[UUID],
    message: str = errors.AUTHORITIES_SEARCH_FORBIDDEN,
) -> None:
    """Allow admins and agents of every requested authority."""
    if is_user_an_admin(db, user_id):
        return

    denied = find_authorities_not_agent_of(db, user_id, authority_ids)
    if denied:
        raise errors.forbidden(message, user_id=user_id, denied_authority_ids=denied)
