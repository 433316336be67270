"""Agent-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator


class AddAgentRequest(BaseModel):
    user_id: UUID
    authority_id: UUID
    grant_main_agent: bool = False


class InviteAgentRequest(BaseModel):
    """
    Invite someone to become an agent of an authority.

    Existing users are added directly, others receive a sign-up link.
    """
    authority_id: UUID
    invitee_email: EmailStr
    invitee_firstname: str | None = Field(default=None, max_length=100)
    invitee_lastname: str | None = Field(default=None, max_length=100)
    grant_main_agent: bool = False

    @field_validator("invitee_email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower()


class GrantMainAgentRequest(BaseModel):
    authority_id: UUID


class AgentRead(BaseModel):
    id: UUID
    user_id: UUID
    authority_id: UUID
    email: str
    firstname: str
    lastname: str
    profile_picture: str | None
    is_main_agent: bool
    created_at: datetime


class AgentWrapperRead(BaseModel):
    agent: AgentRead
    open_cases: int
    close_cases: int


class AgentListResponse(BaseModel):
    agents_wrappers: list[AgentWrapperRead]


class InviteAgentResponse(BaseModel):
    """Either the agent created directly or the id of the invitation sent."""
    agent: AgentRead | None = None
    invitation_id: UUID | None = None
