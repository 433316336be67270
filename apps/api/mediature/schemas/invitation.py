"""Invitation-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from mediature.db.enums import InvitationStatus
from mediature.schemas.user import UserSummary


class InvitationRead(BaseModel):
    """Invitation as listed to authority managers."""
    id: UUID
    invitee_email: str
    invitee_firstname: str | None
    invitee_lastname: str | None
    issuer: UserSummary
    status: InvitationStatus
    created_at: datetime
    updated_at: datetime
    deleted_at: datetime | None

    model_config = {"from_attributes": True}


class InvitationListResponse(BaseModel):
    invitations: list[InvitationRead]


class PublicFacingInvitationRead(BaseModel):
    """What a sign-up page may show about an invitation (no token, no ids of records)."""
    invitee_email: str
    invitee_firstname: str | None
    invitee_lastname: str | None
    issuer: UserSummary
    status: InvitationStatus

    model_config = {"from_attributes": True}


class PublicFacingInvitationResponse(BaseModel):
    invitation: PublicFacingInvitationRead


class AdminInviteCreate(BaseModel):
    invitee_email: EmailStr
    invitee_firstname: str | None = Field(default=None, max_length=100)
    invitee_lastname: str | None = Field(default=None, max_length=100)

    @field_validator("invitee_email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower()
