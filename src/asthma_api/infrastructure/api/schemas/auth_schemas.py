"""Pydantic schemas for authentication endpoints.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from asthma_api.domain.entities.user import Role, normalize_email
from asthma_api.infrastructure.auth.token_types import TokenPair

MAX_EMAIL_LENGTH = 255


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _normalize_email(value: str) -> str:
    if len(value) > MAX_EMAIL_LENGTH:
        raise PydanticCustomError("email_too_long", "Email too long")
    return normalize_email(value)


class RegisterRequest(CamelModel):
    """Request body for account registration."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, description="User's password")
    confirm_password: str = Field(..., description="Must match password")
    # Self-service role choice is part of the public registration contract;
    # restricting ADMIN signups would change the mobile client API.
    role: Role = Field(Role.PATIENT, description="Account role")
    terms_accepted: bool = Field(..., description="Terms of service accepted")
    hipaa_notice_acknowledged: bool = Field(..., description="HIPAA notice acknowledged")

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        if "password" in info.data and v != info.data["password"]:
            raise PydanticCustomError("password_mismatch", "Passwords don't match")
        return v

    @field_validator("terms_accepted")
    @classmethod
    def terms_must_be_accepted(cls, v: bool) -> bool:
        if not v:
            raise PydanticCustomError("terms_not_accepted", "Must accept terms")
        return v

    @field_validator("hipaa_notice_acknowledged")
    @classmethod
    def hipaa_notice_must_be_acknowledged(cls, v: bool) -> bool:
        if not v:
            raise PydanticCustomError(
                "hipaa_notice_not_acknowledged", "Must acknowledge HIPAA notice"
            )
        return v


class LoginRequest(CamelModel):
    """Request body for login."""

    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, description="User's password")

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return _normalize_email(v)


class RefreshRequest(CamelModel):
    """Request body for token refresh."""

    refresh_token: str | None = Field(None, description="Refresh token from login")


class UserResponse(CamelModel):
    """User information in auth responses."""

    id: str = Field(..., description="User ID")
    email: str = Field(..., description="User's email address")
    role: Role = Field(..., description="User's role")
    onboarding_completed: bool = Field(..., description="Whether onboarding is finished")
    current_onboarding_step: int = Field(..., description="Last onboarding step reached")
    created_at: datetime = Field(..., description="When the user was created")

    model_config = ConfigDict(from_attributes=True)


class TokensResponse(CamelModel):
    """Token pair returned on login, registration and refresh."""

    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    expires_in: int = Field(..., description="Access token lifetime in seconds")

    @classmethod
    def from_pair(cls, pair: TokenPair) -> "TokensResponse":
        return cls(
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            expires_in=pair.expires_in,
        )


class AuthResponse(CamelModel):
    """Response for successful authentication (login/register)."""

    success: bool = True
    message: str
    user: UserResponse
    tokens: TokensResponse


class RefreshResponse(CamelModel):
    """Response for a successful token refresh."""

    success: bool = True
    tokens: TokensResponse


class MeResponse(CamelModel):
    """Response for the current user lookup."""

    success: bool = True
    user: UserResponse


class MessageResponse(CamelModel):
    """Generic acknowledgement."""

    success: bool = True
    message: str


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Machine-readable error code")


class ValidationErrorDetail(BaseModel):
    """Detail for a single validation error."""

    field: str = Field(..., description="Field name that failed validation")
    message: str = Field(..., description="Human-readable error message")
    code: str | None = Field(None, description="Machine-readable error code")


class ValidationErrorResponse(ErrorResponse):
    """Response for validation errors."""

    details: list[ValidationErrorDetail] = Field(..., description="List of validation errors")


class RateLimitErrorResponse(ErrorResponse):
    """Response for rejected authentication attempts."""

    retry_after: int = Field(..., alias="retryAfter", description="Seconds until retry is allowed")
