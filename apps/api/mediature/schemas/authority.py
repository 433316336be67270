"""Authority-related Pydantic schemas."""

import re
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from mediature.db.enums import AuthorityType

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def _validate_slug(value: str) -> str:
    value = value.lower().strip()
    if not SLUG_PATTERN.match(value):
        raise ValueError("slug must be lowercase alphanumeric words separated by hyphens")
    return value


class AuthorityCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=100)
    type: AuthorityType
    logo_attachment_id: UUID | None = None

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str) -> str:
        return _validate_slug(v)


class AuthorityUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=100)
    type: AuthorityType
    main_agent_id: UUID | None = None
    logo_attachment_id: UUID | None = None

    @field_validator("slug")
    @classmethod
    def normalize_slug(cls, v: str) -> str:
        return _validate_slug(v)


class AuthorityRead(BaseModel):
    id: UUID
    name: str
    slug: str
    type: AuthorityType
    logo_attachment_id: UUID | None
    main_agent_id: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AuthorityListResponse(BaseModel):
    authorities: list[AuthorityRead]


class PublicFacingAuthorityRead(BaseModel):
    id: UUID
    name: str
    slug: str
    type: AuthorityType
    logo_attachment_id: UUID | None

    model_config = {"from_attributes": True}
