"""FastAPI dependencies for authentication and authorization.

Shared services live on ``app.state`` and are created once per
application by ``create_app``.
"""

from typing import Annotated, Awaitable, Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from asthma_api.core.exceptions import InsufficientPermissionsError
from asthma_api.core.logging import get_logger
from asthma_api.domain.entities.audit_event import AuditEvent, AuditEventType
from asthma_api.domain.entities.user import Principal, Role
from asthma_api.infrastructure.audit.audit_logger import AuditSink
from asthma_api.infrastructure.auth.authenticator import Authenticator
from asthma_api.infrastructure.auth.jwt_service import JWTService
from asthma_api.infrastructure.persistence.database import get_db_session

logger = get_logger(__name__)


def get_jwt_service(request: Request) -> JWTService:
    """Get the token service from app state."""
    return request.app.state.jwt_service


def get_audit_sink(request: Request) -> AuditSink:
    """Get the audit sink from app state."""
    return request.app.state.audit_sink


def client_address(request: Request) -> str | None:
    return request.client.host if request.client else None


async def get_current_principal(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    jwt_service: Annotated[JWTService, Depends(get_jwt_service)],
    audit_sink: Annotated[AuditSink, Depends(get_audit_sink)],
) -> Principal:
    """Authenticate the request and attach the principal to ``request.state``.

    Returns:
        Principal: The authenticated user's identity.

    Raises:
        NoTokenError: 401 if the Authorization header is missing.
        TokenExpiredError: 401 if the access token has expired.
        TokenInvalidError: 401 if the access token is invalid.
        UserNotFoundError: 401 if the token's user no longer exists.
    """
    authenticator = Authenticator(jwt_service, audit_sink)
    principal = await authenticator.authenticate(
        request.headers,
        session,
        client_address=client_address(request),
        endpoint=request.url.path,
        method=request.method,
    )
    request.state.principal = principal
    return principal


# Type alias for dependency injection
CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]


def require_role(*roles: Role | str) -> Callable[..., Awaitable[Principal]]:
    """Build a dependency that admits only principals holding one of ``roles``.

    Example:
        @router.get("/admin/users", dependencies=[Depends(require_role(Role.ADMIN))])

    Args:
        roles: Allowed roles.

    Returns:
        A dependency resolving to the authenticated principal.

    Raises:
        ValueError: If no roles are given or a role name is unknown.
    """
    if not roles:
        raise ValueError("require_role needs at least one role")
    allowed = frozenset(Role(role) for role in roles)

    async def check_role(
        request: Request,
        principal: CurrentPrincipal,
        audit_sink: Annotated[AuditSink, Depends(get_audit_sink)],
    ) -> Principal:
        if principal.role not in allowed:
            logger.info(
                "Authorization denied",
                user_id=principal.id,
                role=principal.role.value,
                path=request.url.path,
            )
            audit_sink.emit(
                AuditEvent(
                    event=AuditEventType.AUTHORIZATION_FAILED,
                    principal_id=principal.id,
                    client_address=client_address(request),
                    endpoint=request.url.path,
                    method=request.method,
                    reason="INSUFFICIENT_PERMISSIONS",
                    details={"required_roles": sorted(r.value for r in allowed)},
                )
            )
            raise InsufficientPermissionsError()
        return principal

    return check_role


# Type alias for admin-only routes
AdminPrincipal = Annotated[Principal, Depends(require_role(Role.ADMIN))]
