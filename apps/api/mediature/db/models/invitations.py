"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mediature.db.base import Base
from mediature.db.enums import InvitationStatus

if TYPE_CHECKING:
    from mediature.db.models import Authority, User


class Invitation(Base):
    """
    Token-bearing invitation to sign up as an agent or an admin.

    Status moves PENDING -> CANCELED or PENDING -> ACCEPTED, never back.
    """

    __tablename__ = "invitations"
    __table_args__ = (
        Index("idx_invitations_invitee_email", "invitee_email"),
        Index("idx_invitations_issuer_id", "issuer_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    issuer_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    invitee_email: Mapped[str] = mapped_column(String(255), nullable=False)
    invitee_firstname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    invitee_lastname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    token: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=InvitationStatus.PENDING.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Relationships
    issuer: Mapped["User"] = relationship(back_populates="issued_invitations")
    agent_invitation: Mapped["AgentInvitation | None"] = relationship(
        back_populates="invitation", cascade="all, delete-orphan", uselist=False
    )
    admin_invitation: Mapped["AdminInvitation | None"] = relationship(
        back_populates="invitation", cascade="all, delete-orphan", uselist=False
    )


class AgentInvitation(Base):
    """
    Agent-specific part of an invitation.

    pending_key is "<authority_id>:<invitee_email>" while the invitation is
    PENDING and NULL afterwards, so the unique constraint allows a single
    pending invitation per (authority, email).
    """

    __tablename__ = "agent_invitations"
    __table_args__ = (Index("idx_agent_invitations_authority_id", "authority_id"),)

    invitation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("invitations.id", ondelete="CASCADE"), primary_key=True
    )
    authority_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("authorities.id", ondelete="CASCADE"), nullable=False
    )
    grant_main_agent: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    pending_key: Mapped[str | None] = mapped_column(String(320), unique=True, nullable=True)

    invitation: Mapped["Invitation"] = relationship(back_populates="agent_invitation")
    authority: Mapped["Authority"] = relationship()


class AdminInvitation(Base):
    """Admin-specific part of an invitation."""

    __tablename__ = "admin_invitations"

    invitation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("invitations.id", ondelete="CASCADE"), primary_key=True
    )

    invitation: Mapped["Invitation"] = relationship(back_populates="admin_invitation")


def build_pending_key(authority_id: uuid.UUID, email: str) -> str:
    """Marker held by a PENDING agent invitation for duplicate detection."""
    return f"{authority_id}:{email.lower().strip()}"
