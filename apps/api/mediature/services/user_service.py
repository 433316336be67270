"""Profile, interface session and live chat settings of the current user."""

from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from mediature.core import errors
from mediature.core.security import generate_live_chat_session_token, sign_email
from mediature.db.models import Agent, LiveChatSettings, User
from mediature.schemas.user import ProfileUpdate


USER_NOT_FOUND = "cet utilisateur n'existe pas"


@dataclass
class AgentOf:
    id: UUID
    name: str
    slug: str
    logo_attachment_id: UUID | None
    is_main_agent: bool


@dataclass
class InterfaceSession:
    agent_of: list[AgentOf] = field(default_factory=list)
    is_admin: bool = False


def get_profile(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if not user:
        raise errors.not_found(USER_NOT_FOUND, user_id=user_id)
    return user


def update_profile(db: Session, user_id: UUID, data: ProfileUpdate) -> User:
    """
    Update profile fields.

    Uses exclude_unset=True so only explicitly provided fields are updated.
    An explicit null clears the profile picture.
    """
    user = get_profile(db, user_id)
    for field_name, value in data.model_dump(exclude_unset=True).items():
        setattr(user, field_name, value)
    db.commit()
    db.refresh(user)
    return user


def get_interface_session(db: Session, user_id: UUID) -> InterfaceSession:
    """
    What the interface needs to render menus: authorities and admin flag.

    An unknown user gets an empty session rather than an error.
    """
    user = (
        db.query(User)
        .options(
            selectinload(User.admin),
            selectinload(User.agents).selectinload(Agent.authority),
        )
        .filter(User.id == user_id)
        .first()
    )
    if not user:
        return InterfaceSession()

    agent_of = [
        AgentOf(
            id=agent.authority.id,
            name=agent.authority.name,
            slug=agent.authority.slug,
            logo_attachment_id=agent.authority.logo_attachment_id,
            is_main_agent=agent.id == agent.authority.main_agent_id,
        )
        for agent in user.agents
        if agent.authority.deleted_at is None
    ]
    return InterfaceSession(agent_of=agent_of, is_admin=user.admin is not None)


def get_live_chat_settings(db: Session, user_id: UUID) -> tuple[User, LiveChatSettings]:
    """Return the live chat settings, creating them on first access."""
    user = (
        db.query(User)
        .options(selectinload(User.live_chat_settings))
        .filter(User.id == user_id)
        .first()
    )
    if not user:
        raise errors.not_found(USER_NOT_FOUND, user_id=user_id)

    settings = user.live_chat_settings
    if settings is None:
        settings = LiveChatSettings(
            user_id=user.id,
            session_token=generate_live_chat_session_token(),
        )
        db.add(settings)
        db.commit()
        db.refresh(user)

    return user, settings


def live_chat_email_signature(user: User) -> str:
    return sign_email(user.email)
