"""SQLAlchemy ORM models."""

from __future__ import annotations

from typing import TYPE_CHECKING

import uuid
from datetime import datetime

from sqlalchemy import ForeignKey, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from mediature.db.base import Base

if TYPE_CHECKING:
    from mediature.db.models import Agent, Authority


class Case(Base):
    """
    A dispute submitted by a citizen to an authority.

    closed_at IS NULL means the case is open.
    """

    __tablename__ = "cases"
    __table_args__ = (
        Index("idx_cases_authority_id", "authority_id"),
        Index("idx_cases_agent_id", "agent_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    authority_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("authorities.id", ondelete="CASCADE"), nullable=False
    )
    agent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("agents.id", ondelete="SET NULL"), nullable=True
    )
    citizen_email: Mapped[str] = mapped_column(String(255), nullable=False)
    citizen_firstname: Mapped[str] = mapped_column(String(100), nullable=False)
    citizen_lastname: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    authority: Mapped["Authority"] = relationship(back_populates="cases")
    agent: Mapped["Agent | None"] = relationship(back_populates="assigned_cases")

    @property
    def is_open(self) -> bool:
        return self.closed_at is None
