"""Case-related Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class CaseAssign(BaseModel):
    agent_id: UUID


class CaseRead(BaseModel):
    id: UUID
    authority_id: UUID
    agent_id: UUID | None
    citizen_firstname: str
    citizen_lastname: str
    description: str
    closed_at: datetime | None
    created_at: datetime

    model_config = {"from_attributes": True}
