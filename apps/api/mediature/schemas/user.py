"""User-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class UserSummary(BaseModel):
    """Public identity of a user (issuer of an invitation, agent...)."""
    id: UUID
    email: str
    firstname: str
    lastname: str

    model_config = {"from_attributes": True}


class UserRead(BaseModel):
    """Full profile. The password hash is never part of it."""
    id: UUID
    email: str
    firstname: str
    lastname: str
    profile_picture: str | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ProfileResponse(BaseModel):
    user: UserRead


class ProfileUpdate(BaseModel):
    firstname: str = Field(..., min_length=1, max_length=100)
    lastname: str = Field(..., min_length=1, max_length=100)
    profile_picture: str | None = Field(default=None, max_length=500)


class AgentOfRead(BaseModel):
    """Authority the user works for, as shown in the interface."""
    id: UUID
    name: str
    slug: str
    logo_attachment_id: UUID | None
    is_main_agent: bool


class InterfaceSessionRead(BaseModel):
    agent_of: list[AgentOfRead]
    is_admin: bool


class InterfaceSessionResponse(BaseModel):
    session: InterfaceSessionRead


class LiveChatSettingsRead(BaseModel):
    user_id: UUID
    email: str
    email_signature: str
    firstname: str
    lastname: str
    session_token: str


class LiveChatSettingsResponse(BaseModel):
    settings: LiveChatSettingsRead
