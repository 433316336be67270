"""Authentication endpoints: invitation sign-up, password sign-in and reset, sign-out."""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from mediature.core.config import settings
from mediature.core.deps import COOKIE_NAME, get_db, require_csrf_header
from mediature.core.rate_limit import AUTH_LIMIT, limiter
from mediature.core.security import create_session_token
from mediature.schemas.auth import (
    AuthResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    SignInRequest,
    SignUpRequest,
)
from mediature.schemas.user import UserRead
from mediature.services import auth_service


router = APIRouter(dependencies=[Depends(require_csrf_header)])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


@router.post("/sign-up", response_model=AuthResponse, status_code=201)
@limiter.limit(AUTH_LIMIT)
async def sign_up(
    request: Request,
    body: SignUpRequest,
    db: Session = Depends(get_db),
):
    """Create an account from an invitation token."""
    user = auth_service.sign_up(
        db,
        invitation_token=body.invitation_token,
        email=body.email,
        password=body.password,
        firstname=body.firstname,
        lastname=body.lastname,
    )
    return AuthResponse(user=UserRead.model_validate(user))


@router.post("/sign-in", response_model=AuthResponse)
@limiter.limit(AUTH_LIMIT)
async def sign_in(
    request: Request,
    response: Response,
    body: SignInRequest,
    db: Session = Depends(get_db),
):
    """Check credentials and open a cookie session."""
    user = auth_service.sign_in(db, email=body.email, password=body.password)
    _set_session_cookie(response, create_session_token(user.id, user.token_version))
    return AuthResponse(user=UserRead.model_validate(user))


@router.post("/sign-out")
async def sign_out(response: Response):
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"status": "logged_out"}


@router.post("/password/request-reset", status_code=202)
@limiter.limit(AUTH_LIMIT)
async def request_password_reset(
    request: Request,
    body: PasswordResetRequest,
    db: Session = Depends(get_db),
):
    """Email a reset link. The answer is the same whether the account exists or not."""
    await auth_service.request_password_reset(db, email=body.email)
    return {"status": "accepted"}


@router.post("/password/reset")
@limiter.limit(AUTH_LIMIT)
async def reset_password(
    request: Request,
    response: Response,
    body: PasswordResetConfirm,
    db: Session = Depends(get_db),
):
    """Set a new password; the caller signs in again afterwards."""
    auth_service.reset_password(db, token=body.token, password=body.password)
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"status": "password_reset"}
