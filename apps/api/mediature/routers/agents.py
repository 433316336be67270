"""Agent membership endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mediature.core.deps import get_current_user, get_db, require_csrf_header
from mediature.db.enums import InvitationStatus
from mediature.db.models import Agent, User
from mediature.schemas.agent import (
    AddAgentRequest,
    AgentListResponse,
    AgentRead,
    AgentWrapperRead,
    GrantMainAgentRequest,
    InviteAgentRequest,
    InviteAgentResponse,
)
from mediature.schemas.invitation import InvitationListResponse, InvitationRead
from mediature.services import agent_service


router = APIRouter()


def _agent_to_read(agent: Agent) -> AgentRead:
    return AgentRead(
        id=agent.id,
        user_id=agent.user_id,
        authority_id=agent.authority_id,
        email=agent.user.email,
        firstname=agent.user.firstname,
        lastname=agent.user.lastname,
        profile_picture=agent.user.profile_picture,
        is_main_agent=agent.is_main_agent,
        created_at=agent.created_at,
    )


@router.get("", response_model=AgentListResponse)
async def list_agents(
    authority_ids: list[UUID] = Query(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List agents of the authorities with their case counts."""
    wrappers = agent_service.list_agents(db, user_id=user.id, authority_ids=authority_ids)
    return AgentListResponse(
        agents_wrappers=[
            AgentWrapperRead(
                agent=_agent_to_read(w.agent),
                open_cases=w.open_cases,
                close_cases=w.close_cases,
            )
            for w in wrappers
        ]
    )


@router.get("/invitations", response_model=InvitationListResponse)
async def list_agent_invitations(
    authority_ids: list[UUID] = Query(...),
    status: InvitationStatus | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    invitations = agent_service.list_agent_invitations(
        db, user_id=user.id, authority_ids=authority_ids, status=status
    )
    return InvitationListResponse(
        invitations=[InvitationRead.model_validate(inv) for inv in invitations]
    )


@router.get("/{agent_id}", response_model=AgentRead)
async def get_agent(
    agent_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    agent = agent_service.get_agent(db, user_id=user.id, agent_id=agent_id)
    return _agent_to_read(agent)


@router.post("", response_model=AgentRead, status_code=201, dependencies=[Depends(require_csrf_header)])
async def add_agent(
    body: AddAgentRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Add an existing user as agent (admin or main agent only)."""
    agent = await agent_service.add_agent(
        db,
        originator_user_id=user.id,
        user_id=body.user_id,
        authority_id=body.authority_id,
        grant_main_agent=body.grant_main_agent,
    )
    return _agent_to_read(agent)


@router.post("/invite", response_model=InviteAgentResponse, dependencies=[Depends(require_csrf_header)])
async def invite_agent(
    body: InviteAgentRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Invite someone by email to become agent (admin or main agent only)."""
    result = await agent_service.invite_agent(
        db,
        originator_user_id=user.id,
        authority_id=body.authority_id,
        invitee_email=body.invitee_email,
        invitee_firstname=body.invitee_firstname,
        invitee_lastname=body.invitee_lastname,
        grant_main_agent=body.grant_main_agent,
    )
    if result.agent:
        return InviteAgentResponse(agent=_agent_to_read(result.agent))
    return InviteAgentResponse(invitation_id=result.invitation.id)


@router.post("/{agent_id}/grant-main", dependencies=[Depends(require_csrf_header)])
async def grant_main_agent(
    agent_id: UUID,
    body: GrantMainAgentRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    agent_service.grant_main_agent(
        db,
        originator_user_id=user.id,
        authority_id=body.authority_id,
        agent_id=agent_id,
    )
    return {"granted": True}


@router.delete("/{agent_id}", dependencies=[Depends(require_csrf_header)])
async def remove_agent(
    agent_id: UUID,
    authority_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Remove an agent from an authority and release its cases."""
    await agent_service.remove_agent(
        db,
        originator_user_id=user.id,
        authority_id=authority_id,
        agent_id=agent_id,
    )
    return {"removed": True}
