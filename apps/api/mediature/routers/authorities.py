"""Authority endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mediature.core.deps import get_current_user, get_db, require_csrf_header
from mediature.db.models import User
from mediature.schemas.authority import (
    AuthorityCreate,
    AuthorityListResponse,
    AuthorityRead,
    AuthorityUpdate,
    PublicFacingAuthorityRead,
)
from mediature.services import authority_service


router = APIRouter()


@router.post("", response_model=AuthorityRead, status_code=201, dependencies=[Depends(require_csrf_header)])
async def create_authority(
    body: AuthorityCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    authority = authority_service.create_authority(
        db,
        user_id=user.id,
        name=body.name,
        slug=body.slug,
        type=body.type,
        logo_attachment_id=body.logo_attachment_id,
    )
    return authority


@router.get("", response_model=AuthorityListResponse)
async def list_authorities(
    q: str | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List authorities (admin only). `q` filters on the name."""
    authorities = authority_service.list_authorities(db, user_id=user.id, query=q)
    return AuthorityListResponse(
        authorities=[AuthorityRead.model_validate(a) for a in authorities]
    )


@router.get("/public/{slug}", response_model=PublicFacingAuthorityRead)
async def get_public_facing_authority(slug: str, db: Session = Depends(get_db)):
    return authority_service.get_public_facing_authority(db, slug)


@router.get("/{authority_id}", response_model=AuthorityRead)
async def get_authority(
    authority_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return authority_service.get_authority(db, user_id=user.id, authority_id=authority_id)


@router.patch("/{authority_id}", response_model=AuthorityRead, dependencies=[Depends(require_csrf_header)])
async def update_authority(
    authority_id: UUID,
    body: AuthorityUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return authority_service.update_authority(
        db,
        user_id=user.id,
        authority_id=authority_id,
        name=body.name,
        slug=body.slug,
        type=body.type,
        main_agent_id=body.main_agent_id,
        logo_attachment_id=body.logo_attachment_id,
    )


@router.delete("/{authority_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
async def delete_authority(
    authority_id: UUID,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    authority_service.delete_authority(db, user_id=user.id, authority_id=authority_id)
