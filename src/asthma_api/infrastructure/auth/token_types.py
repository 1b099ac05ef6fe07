"""Token types and claim models for access and refresh tokens."""

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from asthma_api.domain.entities.user import Principal, Role


class TokenType(str, Enum):
    """Purpose of a signed token."""

    ACCESS = "access"
    REFRESH = "refresh"


class TokenClaims(BaseModel):
    """Verified payload of an access or refresh token."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    subject_id: str = Field(..., alias="sub", description="User ID the token was issued to")
    email: str = Field(..., description="User's email address")
    role: Role = Field(..., description="User's role")
    issued_at: int = Field(..., alias="iat", description="Unix timestamp of issuance")
    expires_at: int = Field(..., alias="exp", description="Unix timestamp of expiry")
    issuer: str = Field(..., alias="iss")
    audience: str = Field(..., alias="aud")
    type: TokenType = Field(..., description="Whether this is an access or refresh token")
    token_id: str = Field(..., alias="jti", description="Unique identifier of the token")

    def to_principal(self) -> Principal:
        """Build the principal the token asserts."""
        return Principal(id=self.subject_id, email=self.email, role=self.role)


@dataclass(frozen=True)
class TokenPair:
    """An access token and the refresh token issued alongside it.

    Attributes:
        access_token: Short-lived token for protected requests.
        refresh_token: Long-lived token exchanged for a new pair.
        expires_in: Access token lifetime in seconds.
    """

    access_token: str
    refresh_token: str
    expires_in: int
