"""Case assignment endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mediature.core.deps import get_current_user, get_db, require_csrf_header
from mediature.db.models import User
from mediature.schemas.case import CaseAssign, CaseRead
from mediature.services import case_service


router = APIRouter(dependencies=[Depends(require_csrf_header)])


@router.post("/{case_id}/assign", response_model=CaseRead)
async def assign_case(
    case_id: UUID,
    body: CaseAssign,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return case_service.assign_case(db, user_id=user.id, case_id=case_id, agent_id=body.agent_id)


@router.post("/{case_id}/unassign", response_model=CaseRead)
async def unassign_case(
    case_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return case_service.unassign_case(db, user_id=user.id, case_id=case_id)
