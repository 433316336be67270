"""Domain errors raised by services and rendered by the API."""

from enum import Enum
from typing import Any
from uuid import UUID


class ErrorKind(str, Enum):
    """
    Closed set of failure categories.

    Callers branch on the kind; the message is for humans.
    """

    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    INVALID_STATE = "invalid_state"
    UNAUTHENTICATED = "unauthenticated"

    @property
    def http_status(self) -> int:
        return ERROR_HTTP_STATUS[self]


ERROR_HTTP_STATUS: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_STATE: 400,
    ErrorKind.UNAUTHENTICATED: 401,
}


class DomainError(Exception):
    """Failure of a service operation, with structured context."""

    def __init__(self, kind: ErrorKind, message: str, **context: Any) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.context = context

    def __repr__(self) -> str:
        return f"DomainError({self.kind.value!r}, {self.message!r}, {self.context!r})"

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation for API responses."""
        return {
            "detail": self.message,
            "kind": self.kind.value,
            "context": {key: _jsonable(value) for key, value in self.context.items()},
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, list, tuple)):
        return sorted(_jsonable(v) for v in value)
    return value


# Messages shared by several services
MAIN_AGENT_OR_ADMIN_REQUIRED = (
    "vous devez être médiateur principal de la collectivité ou administrateur pour effectuer cette action"
)
ADMIN_REQUIRED = "vous devez être un administrateur pour effectuer cette action"
AUTHORITIES_SEARCH_FORBIDDEN = (
    "vous n'avez pas les droits pour effectuer une recherche sur toutes les collectivités précisées"
)
AUTHORITY_ACTION_FORBIDDEN = (
    "vous n'avez pas les droits pour effectuer une action sur cette collectivité"
)


def not_found(message: str, **context: Any) -> DomainError:
    return DomainError(ErrorKind.NOT_FOUND, message, **context)


def forbidden(message: str, **context: Any) -> DomainError:
    return DomainError(ErrorKind.FORBIDDEN, message, **context)


def conflict(message: str, **context: Any) -> DomainError:
    return DomainError(ErrorKind.CONFLICT, message, **context)


def invalid_state(message: str, **context: Any) -> DomainError:
    return DomainError(ErrorKind.INVALID_STATE, message, **context)


def unauthenticated(message: str, **context: Any) -> DomainError:
    return DomainError(ErrorKind.UNAUTHENTICATED, message, **context)
