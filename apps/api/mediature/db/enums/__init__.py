"""Enum definitions for application constants."""

from mediature.db.enums.authorities import AuthorityType
from mediature.db.enums.invitations import InvitationStatus

__all__ = [
    "AuthorityType",
    "InvitationStatus",
]
