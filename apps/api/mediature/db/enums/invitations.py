"""Invitation-related enums."""

from enum import Enum


class InvitationStatus(str, Enum):
    """
    Invitation lifecycle.

    - PENDING: issued, token usable for sign-up
    - CANCELED: revoked by an admin or the authority main agent (terminal)
    - ACCEPTED: consumed by a sign-up (terminal)
    """

    PENDING = "PENDING"
    CANCELED = "CANCELED"
    ACCEPTED = "ACCEPTED"
