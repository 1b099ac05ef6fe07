"""Bearer token authentication for protected routes.

Resolves the ``Authorization`` header of a request to a ``Principal``:
verify the access token, load the user it names, and report the outcome
to the audit sink.
"""

from typing import Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from asthma_api.core.exceptions import (
    NoTokenError,
    TokenExpiredError,
    TokenInvalidError,
    UserNotFoundError,
)
from asthma_api.core.logging import get_logger
from asthma_api.domain.entities.audit_event import AuditEvent, AuditEventType
from asthma_api.domain.entities.user import Principal
from asthma_api.infrastructure.audit.audit_logger import AuditSink
from asthma_api.infrastructure.auth.jwt_service import JWTService
from asthma_api.infrastructure.persistence.repositories.user_repository import UserRepository

logger = get_logger(__name__)


def extract_bearer_token(headers: Mapping[str, str]) -> str | None:
    """Return the token from an ``Authorization: Bearer <token>`` header.

    Returns:
        The token, or None when the header is missing, empty or uses
        another scheme.
    """
    auth_header = headers.get("authorization") or headers.get("Authorization")
    if not auth_header:
        return None
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


class Authenticator:
    """Authenticates requests carrying access tokens."""

    def __init__(self, jwt_service: JWTService, audit_sink: AuditSink) -> None:
        self.jwt_service = jwt_service
        self.audit_sink = audit_sink

    async def authenticate(
        self,
        headers: Mapping[str, str],
        session: AsyncSession,
        *,
        client_address: str | None = None,
        endpoint: str | None = None,
        method: str | None = None,
    ) -> Principal:
        """Authenticate from request headers.

        Args:
            headers: Request headers.
            session: Database session used to look up the user.
            client_address: Source address, recorded in audit events.
            endpoint: Request path, recorded in audit events.
            method: HTTP method, recorded in audit events.

        Returns:
            Principal: The authenticated identity. Role comes from the
            stored user, not from the token.

        Raises:
            NoTokenError: If no bearer token is present.
            TokenExpiredError: If the access token has expired.
            TokenInvalidError: If the token fails verification.
            UserNotFoundError: If the token's subject no longer exists.
        """
        context = {"client_address": client_address, "endpoint": endpoint, "method": method}

        token = extract_bearer_token(headers)
        if token is None:
            self._audit_failure("NO_TOKEN", None, context)
            raise NoTokenError()

        try:
            claims = self.jwt_service.validate_access_token(token)
        except TokenExpiredError:
            self._audit_failure("TOKEN_EXPIRED", None, context)
            raise
        except TokenInvalidError as e:
            logger.debug("Access token rejected", reason=e.message)
            self._audit_failure("TOKEN_INVALID", None, context)
            raise TokenInvalidError() from e

        user = await UserRepository(session).get_by_id(claims.subject_id)
        if user is None:
            self._audit_failure("USER_NOT_FOUND", claims.subject_id, context)
            raise UserNotFoundError()

        principal = user.to_principal()
        self.audit_sink.emit(
            AuditEvent(event=AuditEventType.AUTH_SUCCESS, principal_id=principal.id, **context)
        )
        return principal

    def _audit_failure(self, reason: str, principal_id: str | None, context: dict) -> None:
        self.audit_sink.emit(
            AuditEvent(
                event=AuditEventType.AUTH_FAILED,
                principal_id=principal_id,
                reason=reason,
                **context,
            )
        )
