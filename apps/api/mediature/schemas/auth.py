"""Authentication-related Pydantic schemas."""

from pydantic import BaseModel, EmailStr, Field, field_validator

from mediature.schemas.user import UserRead


class SignUpRequest(BaseModel):
    """
    Sign-up through an invitation.

    The email must match the one the invitation was sent to.
    """
    invitation_token: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    firstname: str = Field(..., min_length=1, max_length=100)
    lastname: str = Field(..., min_length=1, max_length=100)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        """Normalize email to lowercase."""
        return v.lower()


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class AuthResponse(BaseModel):
    user: UserRead


class PasswordResetRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class PasswordResetConfirm(BaseModel):
    """New password, with the token carried by the emailed link."""
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)
