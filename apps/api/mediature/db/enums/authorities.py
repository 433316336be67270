"""Authority-related enums."""

from enum import Enum


class AuthorityType(str, Enum):
    """Kind of local authority running a mediation service."""

    CITY = "CITY"
    SUBDIVISION = "SUBDIVISION"
