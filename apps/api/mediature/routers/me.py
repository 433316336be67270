"""Endpoints about the signed-in user."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mediature.core.deps import get_current_user, get_db, require_csrf_header
from mediature.db.models import User
from mediature.schemas.user import (
    AgentOfRead,
    InterfaceSessionRead,
    InterfaceSessionResponse,
    LiveChatSettingsRead,
    LiveChatSettingsResponse,
    ProfileResponse,
    ProfileUpdate,
    UserRead,
)
from mediature.services import user_service


router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    profile = user_service.get_profile(db, user.id)
    return ProfileResponse(user=UserRead.model_validate(profile))


@router.patch("/profile", response_model=ProfileResponse, dependencies=[Depends(require_csrf_header)])
async def update_profile(
    body: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    profile = user_service.update_profile(db, user.id, body)
    return ProfileResponse(user=UserRead.model_validate(profile))


@router.get("/session", response_model=InterfaceSessionResponse)
async def get_interface_session(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Authorities the user works for and whether they are admin."""
    session = user_service.get_interface_session(db, user.id)
    return InterfaceSessionResponse(
        session=InterfaceSessionRead(
            agent_of=[
                AgentOfRead(
                    id=a.id,
                    name=a.name,
                    slug=a.slug,
                    logo_attachment_id=a.logo_attachment_id,
                    is_main_agent=a.is_main_agent,
                )
                for a in session.agent_of
            ],
            is_admin=session.is_admin,
        )
    )


@router.get("/live-chat", response_model=LiveChatSettingsResponse)
async def get_live_chat_settings(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    profile, chat_settings = user_service.get_live_chat_settings(db, user.id)
    return LiveChatSettingsResponse(
        settings=LiveChatSettingsRead(
            user_id=profile.id,
            email=profile.email,
            email_signature=user_service.live_chat_email_signature(profile),
            firstname=profile.firstname,
            lastname=profile.lastname,
            session_token=chat_settings.session_token,
        )
    )
