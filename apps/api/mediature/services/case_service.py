"""Case assignment bookkeeping."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from mediature.core import errors
from mediature.core.structured_logging import build_log_context
from mediature.db.models import Agent, Case
from mediature.services import access_service
from mediature.services.agent_service import AGENT_NOT_FOUND, AGENT_NOT_IN_AUTHORITY


logger = logging.getLogger(__name__)

CASE_NOT_FOUND = "ce dossier n'existe pas"
CASE_CLOSED = "ce dossier est clos et ne peut pas être réattribué"


def _get_case_for_agent_action(db: Session, case_id: UUID, user_id: UUID) -> Case:
    case = db.get(Case, case_id)
    if not case:
        raise errors.not_found(CASE_NOT_FOUND, case_id=case_id)

    access_service.ensure_admin_or_agent_of(
        db, user_id, [case.authority_id], message=errors.AUTHORITY_ACTION_FORBIDDEN
    )
    return case


def assign_case(db: Session, *, user_id: UUID, case_id: UUID, agent_id: UUID) -> Case:
    """Assign an open case to an agent of the same authority."""
    case = _get_case_for_agent_action(db, case_id, user_id)
    if case.closed_at is not None:
        raise errors.invalid_state(CASE_CLOSED, case_id=case_id)

    agent = db.get(Agent, agent_id)
    if not agent:
        raise errors.not_found(AGENT_NOT_FOUND, agent_id=agent_id)
    if agent.authority_id != case.authority_id:
        raise errors.conflict(
            AGENT_NOT_IN_AUTHORITY, agent_id=agent_id, authority_id=case.authority_id
        )

    case.agent_id = agent.id
    db.commit()

    logger.info(
        "Case %s assigned to agent %s",
        case_id,
        agent_id,
        extra=build_log_context(user_id=user_id, authority_id=case.authority_id),
    )
    return case


def unassign_case(db: Session, *, user_id: UUID, case_id: UUID) -> Case:
    case = _get_case_for_agent_action(db, case_id, user_id)
    case.agent_id = None
    db.commit()

    logger.info(
        "Case %s unassigned",
        case_id,
        extra=build_log_context(user_id=user_id, authority_id=case.authority_id),
    )
    return case
