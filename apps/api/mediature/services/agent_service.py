"""Agent membership workflow: add, invite, remove, grant main agent, list."""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from mediature.core import errors
from mediature.core.links import get_link
from mediature.core.security import generate_invitation_token
from mediature.core.structured_logging import build_log_context
from mediature.db.enums import InvitationStatus
from mediature.db.models import (
    Agent,
    AgentInvitation,
    Authority,
    Case,
    Invitation,
    User,
    build_pending_key,
)
from mediature.services import access_service, mailer


logger = logging.getLogger(__name__)

AGENT_NOT_FOUND = "ce médiateur n'existe pas"
AGENT_NOT_IN_AUTHORITY = "ce médiateur ne fait pas partie de la collectivité"
AUTHORITY_NOT_FOUND = "cette collectivité n'existe pas"
USER_NOT_FOUND = "cet utilisateur n'existe pas"
ALREADY_AGENT = "cette personne est déjà médiateur de la collectivité"
DUPLICATE_AGENT_INVITATION = (
    "une invitation pour devenir médiateur de cette collectivité a déjà été envoyée à cette personne"
)


@dataclass
class AgentWrapper:
    """Agent with its assigned case counts."""
    agent: Agent
    open_cases: int
    close_cases: int


@dataclass
class InviteAgentResult:
    """Outcome of an invitation: a direct add or a pending invitation."""
    agent: Agent | None = None
    invitation: Invitation | None = None


def get_active_authority(db: Session, authority_id: UUID) -> Authority:
    """Get a non-deleted authority or raise NOT_FOUND."""
    authority = (
        db.query(Authority)
        .filter(Authority.id == authority_id, Authority.deleted_at.is_(None))
        .first()
    )
    if not authority:
        raise errors.not_found(AUTHORITY_NOT_FOUND, authority_id=authority_id)
    return authority


def attach_agent(
    db: Session,
    user: User,
    authority: Authority,
    grant_main_agent: bool = False,
) -> Agent:
    """
    Create the agent row (flush only, caller commits).

    Raises CONFLICT if the user is already agent of the authority.
    """
    existing = (
        db.query(Agent.id)
        .filter(Agent.user_id == user.id, Agent.authority_id == authority.id)
        .first()
    )
    if existing:
        raise errors.conflict(ALREADY_AGENT, user_id=user.id, authority_id=authority.id)

    agent = Agent(user_id=user.id, authority_id=authority.id)
    db.add(agent)
    db.flush()

    if grant_main_agent:
        authority.main_agent_id = agent.id
        db.flush()

    return agent


async def _add_agent(
    db: Session,
    user: User,
    authority: Authority,
    originator_user_id: UUID,
    grant_main_agent: bool,
) -> Agent:
    try:
        agent = attach_agent(db, user, authority, grant_main_agent)
        db.commit()
    except IntegrityError:
        # Concurrent add of the same (user, authority)
        db.rollback()
        raise errors.conflict(ALREADY_AGENT, user_id=user.id, authority_id=authority.id)

    logger.info(
        "Agent added to authority",
        extra=build_log_context(user_id=originator_user_id, authority_id=authority.id),
    )

    await mailer.notify(
        mailer.send_new_authority_as_agent,
        recipient=user.email,
        firstname=user.firstname,
        authority_name=authority.name,
        authority_url=get_link("authority", {"authorityId": authority.id}, absolute=True),
    )
    return agent


async def add_agent(
    db: Session,
    *,
    originator_user_id: UUID,
    user_id: UUID,
    authority_id: UUID,
    grant_main_agent: bool = False,
) -> Agent:
    """Make an existing user agent of an authority (admin or main agent only)."""
    access_service.ensure_admin_or_main_agent(db, originator_user_id, authority_id)

    user = db.get(User, user_id)
    if not user:
        raise errors.not_found(USER_NOT_FOUND, user_id=user_id)
    authority = get_active_authority(db, authority_id)

    return await _add_agent(db, user, authority, originator_user_id, grant_main_agent)


async def invite_agent(
    db: Session,
    *,
    originator_user_id: UUID,
    authority_id: UUID,
    invitee_email: str,
    invitee_firstname: str | None = None,
    invitee_lastname: str | None = None,
    grant_main_agent: bool = False,
) -> InviteAgentResult:
    """
    Invite someone to become agent of an authority.

    - Known email: the user is added directly, no invitation is created.
    - Unknown email: a PENDING invitation is created and a sign-up link is
      emailed. A second pending invitation for the same (authority, email)
      is rejected by the unique pending key.
    """
    access_service.ensure_admin_or_main_agent(db, originator_user_id, authority_id)

    email = invitee_email.lower().strip()
    authority = get_active_authority(db, authority_id)

    existing_user = db.query(User).filter(func.lower(User.email) == email).first()
    if existing_user:
        agent = await _add_agent(db, existing_user, authority, originator_user_id, grant_main_agent)
        return InviteAgentResult(agent=agent)

    originator = db.get(User, originator_user_id)
    if not originator:
        raise errors.not_found(USER_NOT_FOUND, user_id=originator_user_id)

    invitation = Invitation(
        issuer_id=originator.id,
        invitee_email=email,
        invitee_firstname=invitee_firstname,
        invitee_lastname=invitee_lastname,
        token=generate_invitation_token(),
        status=InvitationStatus.PENDING.value,
    )
    invitation.agent_invitation = AgentInvitation(
        authority_id=authority.id,
        grant_main_agent=grant_main_agent,
        pending_key=build_pending_key(authority.id, email),
    )
    db.add(invitation)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise errors.conflict(
            DUPLICATE_AGENT_INVITATION,
            authority_id=authority_id,
            invitee_email=email,
        )

    logger.info(
        "Agent invitation %s created",
        invitation.id,
        extra=build_log_context(user_id=originator_user_id, authority_id=authority_id),
    )

    await mailer.notify(
        mailer.send_sign_up_invitation_as_agent,
        recipient=invitation.invitee_email,
        firstname=invitation.invitee_firstname,
        lastname=invitation.invitee_lastname,
        originator_firstname=originator.firstname,
        originator_lastname=originator.lastname,
        authority_name=authority.name,
        sign_up_url_with_token=get_link("signUp", {"token": invitation.token}, absolute=True),
    )
    return InviteAgentResult(invitation=invitation)


async def remove_agent(
    db: Session,
    *,
    originator_user_id: UUID,
    authority_id: UUID,
    agent_id: UUID,
) -> None:
    """
    Remove an agent from its authority.

    Assigned cases are released and the main agent reference is cleared in
    the same commit as the deletion. The removed user is emailed afterwards.
    """
    access_service.ensure_admin_or_main_agent(db, originator_user_id, authority_id)

    agent = (
        db.query(Agent)
        .options(selectinload(Agent.user))
        .filter(Agent.id == agent_id)
        .first()
    )
    if not agent:
        raise errors.not_found(AGENT_NOT_FOUND, agent_id=agent_id)
    if agent.authority_id != authority_id:
        raise errors.conflict(AGENT_NOT_IN_AUTHORITY, agent_id=agent_id, authority_id=authority_id)

    authority = db.get(Authority, authority_id)
    if not authority:
        raise errors.not_found(AUTHORITY_NOT_FOUND, authority_id=authority_id)

    recipient = agent.user.email
    firstname = agent.user.firstname
    authority_name = authority.name

    db.query(Case).filter(Case.agent_id == agent.id).update(
        {Case.agent_id: None}, synchronize_session=False
    )
    db.query(Authority).filter(Authority.main_agent_id == agent.id).update(
        {Authority.main_agent_id: None}, synchronize_session=False
    )
    db.delete(agent)
    db.commit()

    logger.info(
        "Agent %s removed",
        agent_id,
        extra=build_log_context(user_id=originator_user_id, authority_id=authority_id),
    )

    await mailer.notify(
        mailer.send_authority_agent_removed,
        recipient=recipient,
        firstname=firstname,
        authority_name=authority_name,
    )


def grant_main_agent(
    db: Session,
    *,
    originator_user_id: UUID,
    authority_id: UUID,
    agent_id: UUID,
) -> None:
    """
    Make an agent the main agent of its authority.

    Single conditional UPDATE: it only applies when the agent belongs to
    the authority, the reason is looked up when nothing was updated.
    """
    access_service.ensure_admin_or_main_agent(db, originator_user_id, authority_id)

    agent_in_authority = (
        select(Agent.id)
        .where(Agent.id == agent_id, Agent.authority_id == authority_id)
        .exists()
    )
    updated = (
        db.query(Authority)
        .filter(
            Authority.id == authority_id,
            Authority.deleted_at.is_(None),
            agent_in_authority,
        )
        .update({Authority.main_agent_id: agent_id}, synchronize_session=False)
    )

    if not updated:
        db.rollback()
        agent = db.get(Agent, agent_id)
        if not agent:
            raise errors.not_found(AGENT_NOT_FOUND, agent_id=agent_id)
        if agent.authority_id != authority_id:
            raise errors.conflict(
                AGENT_NOT_IN_AUTHORITY, agent_id=agent_id, authority_id=authority_id
            )
        raise errors.not_found(AUTHORITY_NOT_FOUND, authority_id=authority_id)

    db.commit()
    logger.info(
        "Agent %s granted main agent",
        agent_id,
        extra=build_log_context(user_id=originator_user_id, authority_id=authority_id),
    )


def get_agent(db: Session, *, user_id: UUID, agent_id: UUID) -> Agent:
    """Get an agent; the caller must work for the same authority (or be admin)."""
    agent = (
        db.query(Agent)
        .options(selectinload(Agent.user), selectinload(Agent.authority))
        .filter(Agent.id == agent_id)
        .first()
    )
    if not agent:
        raise errors.not_found(AGENT_NOT_FOUND, agent_id=agent_id)

    access_service.ensure_admin_or_agent_of(
        db, user_id, [agent.authority_id], message=errors.AUTHORITY_ACTION_FORBIDDEN
    )
    return agent


def list_agents(db: Session, *, user_id: UUID, authority_ids: list[UUID]) -> list[AgentWrapper]:
    """List agents of the authorities with their open/closed case counts."""
    access_service.ensure_admin_or_agent_of(db, user_id, authority_ids)

    agents = (
        db.query(Agent)
        .options(
            selectinload(Agent.user),
            selectinload(Agent.authority),
            selectinload(Agent.assigned_cases),
        )
        .filter(Agent.authority_id.in_(set(authority_ids)))
        .order_by(Agent.created_at.asc())
        .all()
    )

    wrappers: list[AgentWrapper] = []
    for agent in agents:
        close_cases = sum(1 for case in agent.assigned_cases if not case.is_open)
        wrappers.append(
            AgentWrapper(
                agent=agent,
                open_cases=len(agent.assigned_cases) - close_cases,
                close_cases=close_cases,
            )
        )
    return wrappers


def list_agent_invitations(
    db: Session,
    *,
    user_id: UUID,
    authority_ids: list[UUID],
    status: InvitationStatus | None = None,
) -> list[Invitation]:
    """List agent invitations of the authorities, optionally by status."""
    access_service.ensure_admin_or_agent_of(db, user_id, authority_ids)

    query = (
        db.query(Invitation)
        .join(AgentInvitation, AgentInvitation.invitation_id == Invitation.id)
        .options(selectinload(Invitation.issuer))
        .filter(AgentInvitation.authority_id.in_(set(authority_ids)))
    )
    if status:
        query = query.filter(Invitation.status == status.value)

    return query.order_by(Invitation.created_at.desc()).all()
