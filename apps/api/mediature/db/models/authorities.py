"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mediature.db.base import Base
from mediature.db.enums import AuthorityType

if TYPE_CHECKING:
    from mediature.db.models import Case, User


class Authority(Base):
    """
    A tenant in the multi-tenant system (e.g. a municipality).

    Agents and cases belong to exactly one authority.
    main_agent_id, when set, must reference an agent of this authority.
    """

    __tablename__ = "authorities"
    __table_args__ = (Index("ix_authorities_deleted_at", "deleted_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    type: Mapped[str] = mapped_column(String(20), default=AuthorityType.CITY.value, nullable=False)
    logo_attachment_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    main_agent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey(
            "agents.id",
            ondelete="SET NULL",
            use_alter=True,
            name="fk_authorities_main_agent_id",
        ),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )
    deleted_at: Mapped[datetime | None] = mapped_column(nullable=True)

    # Relationships
    agents: Mapped[list["Agent"]] = relationship(
        back_populates="authority",
        foreign_keys="Agent.authority_id",
        cascade="all, delete-orphan",
    )
    main_agent: Mapped["Agent | None"] = relationship(
        foreign_keys=[main_agent_id], post_update=True
    )
    cases: Mapped[list["Case"]] = relationship(back_populates="authority")


class Agent(Base):
    """
    Links a user to one authority as a mediator.

    Constraint: UNIQUE(user_id, authority_id).
    """

    __tablename__ = "agents"
    __table_args__ = (
        UniqueConstraint("user_id", "authority_id", name="uq_agents_user_authority"),
        Index("idx_agents_authority_id", "authority_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    authority_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("authorities.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    # Relationships
    user: Mapped["User"] = relationship(back_populates="agents")
    authority: Mapped["Authority"] = relationship(
        back_populates="agents", foreign_keys=[authority_id]
    )
    assigned_cases: Mapped[list["Case"]] = relationship(back_populates="agent")

    @property
    def is_main_agent(self) -> bool:
        return self.authority is not None and self.authority.main_agent_id == self.id
