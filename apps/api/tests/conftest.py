"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database, schema recreated for each test
- Users, authorities and agents in their usual roles
- HTTPX AsyncClient authenticated as any user (JWT cookie + CSRF header)
- Captured outgoing emails
"""
import os
import uuid
from datetime import datetime, timezone
from typing import AsyncGenerator, Callable, Generator

import pytest

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["TESTING"] = "1"
os.environ["MAILER_API_KEY"] = ""
os.environ["LIVE_CHAT_SIGNATURE_SECRET"] = "test-live-chat-secret"

from httpx import AsyncClient, ASGITransport
from sqlalchemy.orm import Session

from mediature.main import app
from mediature.core.deps import get_db, COOKIE_NAME, CSRF_HEADER, CSRF_HEADER_VALUE
from mediature.core.security import create_session_token, hash_password
from mediature.db.base import Base
from mediature.db.enums import AuthorityType
from mediature.db.models import Admin, Agent, Authority, Case, User
from mediature.db.session import engine, SessionLocal
from mediature.services import mailer


TEST_PASSWORD = "correct-horse-battery"
# bcrypt is slow on purpose: hash once for every fixture user
TEST_PASSWORD_HASH = hash_password(TEST_PASSWORD)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """
    Creates a fresh schema and a session for each test.

    App code commits freely; the whole schema is dropped afterwards.
    """
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def make_user(db: Session) -> Callable[..., User]:
    """Factory creating users that can sign in with TEST_PASSWORD."""
    def _make(
        email: str | None = None,
        firstname: str = "Jean",
        lastname: str = "Derrien",
    ) -> User:
        user = User(
            id=uuid.uuid4(),
            email=email or f"user-{uuid.uuid4().hex[:8]}@example.com",
            firstname=firstname,
            lastname=lastname,
            password_hash=TEST_PASSWORD_HASH,
        )
        db.add(user)
        db.commit()
        return user

    return _make


@pytest.fixture(scope="function")
def make_authority(db: Session) -> Callable[..., Authority]:
    def _make(name: str = "Ville de Test") -> Authority:
        authority = Authority(
            id=uuid.uuid4(),
            name=name,
            slug=f"ville-{uuid.uuid4().hex[:8]}",
            type=AuthorityType.CITY.value,
        )
        db.add(authority)
        db.commit()
        return authority

    return _make


@pytest.fixture(scope="function")
def make_agent(db: Session, make_user) -> Callable[..., Agent]:
    """Factory creating an agent (and its user) in an authority."""
    def _make(authority: Authority, user: User | None = None, main: bool = False) -> Agent:
        agent = Agent(id=uuid.uuid4(), user_id=(user or make_user()).id, authority_id=authority.id)
        db.add(agent)
        db.flush()
        if main:
            authority.main_agent_id = agent.id
        db.commit()
        return agent

    return _make


@pytest.fixture(scope="function")
def make_case(db: Session) -> Callable[..., Case]:
    def _make(authority: Authority, agent: Agent | None = None, closed: bool = False) -> Case:
        case = Case(
            id=uuid.uuid4(),
            authority_id=authority.id,
            agent_id=agent.id if agent else None,
            citizen_email=f"citizen-{uuid.uuid4().hex[:8]}@example.com",
            citizen_firstname="Marie",
            citizen_lastname="Curie",
            description="Litige avec le service des eaux",
            closed_at=datetime.now(timezone.utc) if closed else None,
        )
        db.add(case)
        db.commit()
        return case

    return _make


@pytest.fixture(scope="function")
def admin(db: Session, make_user) -> User:
    """A platform admin."""
    user = make_user(email="admin@example.com", firstname="Alice", lastname="Admin")
    db.add(Admin(user_id=user.id))
    db.commit()
    return user


@pytest.fixture(scope="function")
def authority(make_authority) -> Authority:
    return make_authority("Ville de Paris")


@pytest.fixture(scope="function")
def other_authority(make_authority) -> Authority:
    return make_authority("Ville de Lyon")


@pytest.fixture(scope="function")
def main_agent(make_agent, make_user, authority: Authority) -> Agent:
    """Main agent of `authority`."""
    user = make_user(email="main@example.com", firstname="Martin", lastname="Principal")
    return make_agent(authority, user=user, main=True)


@pytest.fixture(scope="function")
def agent(make_agent, make_user, authority: Authority) -> Agent:
    """Regular agent of `authority`."""
    user = make_user(email="agent@example.com", firstname="Sophie", lastname="Martin")
    return make_agent(authority, user=user)


@pytest.fixture(scope="function")
def outsider(make_user) -> User:
    """A user with no role at all."""
    return make_user(email="outsider@example.com", firstname="Paul", lastname="Dehors")


# =============================================================================
# Email Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def sent_emails(monkeypatch) -> list[dict]:
    """Capture emails instead of calling the mail API."""
    sent: list[dict] = []

    async def fake_deliver(*, to_email: str, subject: str, html: str, text: str) -> dict:
        sent.append({"to": to_email, "subject": subject, "html": html, "text": text})
        return {"success": True, "message_id": f"test-{len(sent)}"}

    monkeypatch.setattr(mailer, "_deliver", fake_deliver)
    return sent


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient for testing public endpoints.
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={CSRF_HEADER: CSRF_HEADER_VALUE},
    ) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def client_as(db: Session) -> AsyncGenerator[Callable[[User], AsyncClient], None]:
    """
    Factory of authenticated AsyncClients with JWT cookie and CSRF header.

    Usage: `response = await client_as(admin).get("/authorities")`
    """
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    clients: list[AsyncClient] = []

    def _make(user: User) -> AsyncClient:
        token = create_session_token(user_id=user.id, token_version=user.token_version)
        c = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies={COOKIE_NAME: token},
            headers={CSRF_HEADER: CSRF_HEADER_VALUE},
        )
        clients.append(c)
        return c

    yield _make

    for c in clients:
        await c.aclose()
    app.dependency_overrides.clear()


@pytest.fixture
def password() -> str:
    """Password of every fixture user."""
    return TEST_PASSWORD
