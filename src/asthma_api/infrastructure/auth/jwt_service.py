"""JWT token service.

Issues and verifies HS256-signed access and refresh tokens. Both token
kinds share one claim shape, one signing secret, and a fixed issuer and
audience so tokens minted for another context are rejected.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import jwt
from pydantic import ValidationError

from asthma_api.core.config import Settings, get_settings
from asthma_api.core.exceptions import ConfigError, TokenExpiredError, TokenInvalidError
from asthma_api.domain.entities.user import Principal
from asthma_api.infrastructure.auth.token_types import TokenClaims, TokenPair, TokenType

Clock = Callable[[], datetime]

REQUIRED_CLAIMS = ["sub", "email", "role", "iat", "exp", "iss", "aud", "type", "jti"]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class JWTService:
    """Service for creating and validating JWT tokens.

    Expiry is checked against the injected clock rather than the system
    time, so the same clock governs issuance and verification.
    """

    ALGORITHM = "HS256"

    def __init__(
        self,
        secret_key: str | None,
        issuer: str = "asthma-api",
        audience: str = "asthma-app",
        access_token_ttl: timedelta = timedelta(minutes=15),
        refresh_token_ttl: timedelta = timedelta(days=7),
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the JWT service.

        Args:
            secret_key: Secret used to sign and verify tokens.
            issuer: Value of the ``iss`` claim.
            audience: Value of the ``aud`` claim.
            access_token_ttl: Lifetime of access tokens.
            refresh_token_ttl: Lifetime of refresh tokens.
            clock: Returns the current UTC time.

        Raises:
            ConfigError: If no secret key is configured.
        """
        if not secret_key:
            raise ConfigError("JWT secret is not configured")
        self._secret_key = secret_key
        self.issuer = issuer
        self.audience = audience
        self.access_token_ttl = access_token_ttl
        self.refresh_token_ttl = refresh_token_ttl
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings | None = None, clock: Clock = utc_now) -> "JWTService":
        """Build the service from application settings.

        Raises:
            ConfigError: If ``jwt_secret`` is not set.
        """
        settings = settings or get_settings()
        return cls(
            secret_key=settings.jwt_secret,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            access_token_ttl=timedelta(minutes=settings.access_token_expire_minutes),
            refresh_token_ttl=timedelta(days=settings.refresh_token_expire_days),
            clock=clock,
        )

    def _encode(self, principal: Principal, token_type: TokenType, ttl: timedelta) -> str:
        now = self.clock()
        payload: dict[str, Any] = {
            "iss": self.issuer,
            "aud": self.audience,
            "sub": principal.id,
            "email": principal.email,
            "role": principal.role.value,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
            "type": token_type.value,
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.ALGORITHM)

    def create_access_token(self, principal: Principal) -> str:
        """Create an access token for a principal."""
        return self._encode(principal, TokenType.ACCESS, self.access_token_ttl)

    def create_refresh_token(self, principal: Principal) -> str:
        """Create a refresh token for a principal."""
        return self._encode(principal, TokenType.REFRESH, self.refresh_token_ttl)

    def issue_token_pair(self, principal: Principal) -> TokenPair:
        """Issue a fresh access/refresh token pair.

        Args:
            principal: The identity the tokens assert.

        Returns:
            TokenPair with both tokens and the access token lifetime.
        """
        return TokenPair(
            access_token=self.create_access_token(principal),
            refresh_token=self.create_refresh_token(principal),
            expires_in=self.get_expires_in(),
        )

    def verify(self, token: str) -> TokenClaims:
        """Decode and validate a token of either type.

        Args:
            token: The encoded JWT.

        Returns:
            The verified claims.

        Raises:
            TokenExpiredError: If the token is past its expiry.
            TokenInvalidError: If signature, issuer, audience or claims are invalid.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.ALGORITHM],
                issuer=self.issuer,
                audience=self.audience,
                options={
                    "require": REQUIRED_CLAIMS,
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise TokenInvalidError("Invalid token") from e

        try:
            claims = TokenClaims.model_validate(payload)
        except ValidationError as e:
            raise TokenInvalidError("Invalid token claims") from e

        if self.clock().timestamp() >= claims.expires_at:
            raise TokenExpiredError("Token has expired")
        return claims

    def validate_access_token(self, token: str) -> TokenClaims:
        """Verify a token and require it to be an access token."""
        claims = self.verify(token)
        if claims.type != TokenType.ACCESS:
            raise TokenInvalidError("Not an access token")
        return claims

    def validate_refresh_token(self, token: str) -> TokenClaims:
        """Verify a token and require it to be a refresh token."""
        claims = self.verify(token)
        if claims.type != TokenType.REFRESH:
            raise TokenInvalidError("Not a refresh token")
        return claims

    def get_expires_in(self) -> int:
        """Access token lifetime in seconds."""
        return int(self.access_token_ttl.total_seconds())
