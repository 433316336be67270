"""SQLAlchemy ORM models."""

from mediature.db.models.auth import Admin, LiveChatSettings, User
from mediature.db.models.authorities import Agent, Authority
from mediature.db.models.cases import Case
from mediature.db.models.invitations import (
    AdminInvitation,
    AgentInvitation,
    Invitation,
    build_pending_key,
)
from mediature.db.models.password_resets import PasswordReset

__all__ = [
    "Admin",
    "AdminInvitation",
    "Agent",
    "AgentInvitation",
    "Authority",
    "Case",
    "Invitation",
    "LiveChatSettings",
    "PasswordReset",
    "User",
    "build_pending_key",
]
