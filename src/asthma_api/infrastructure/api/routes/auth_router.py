"""Authentication API routes.

Provides endpoints for user registration, login, and token management.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from asthma_api.core.exceptions import (
    DuplicateEmailError,
    InputValidationError,
    InvalidCredentialsError,
    NoTokenError,
    TokenExpiredError,
    TokenInvalidError,
    UserNotFoundError,
)
from asthma_api.core.logging import get_logger
from asthma_api.domain.entities.audit_event import AuditEvent, AuditEventType
from asthma_api.domain.services import default_password_validator
from asthma_api.infrastructure.api.dependencies import (
    CurrentPrincipal,
    client_address,
    get_audit_sink,
    get_jwt_service,
)
from asthma_api.infrastructure.api.middleware.auth_rate_limiter import enforce_auth_rate_limit
from asthma_api.infrastructure.api.schemas import (
    AuthResponse,
    ErrorResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    RateLimitErrorResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    TokensResponse,
    UserResponse,
    ValidationErrorResponse,
)
from asthma_api.infrastructure.audit.audit_logger import AuditSink
from asthma_api.infrastructure.auth import (
    JWTService,
    get_dummy_password_hash,
    hash_password,
    needs_rehash,
    verify_password,
)
from asthma_api.infrastructure.persistence.database import get_db_session
from asthma_api.infrastructure.persistence.models import UserModel
from asthma_api.infrastructure.persistence.repositories import UserRepository

logger = get_logger(__name__)

router = APIRouter()

Session = Annotated[AsyncSession, Depends(get_db_session)]
Tokens = Annotated[JWTService, Depends(get_jwt_service)]
Audit = Annotated[AuditSink, Depends(get_audit_sink)]


def _verify_against_dummy(password: str, rounds: int) -> None:
    verify_password(password, get_dummy_password_hash(rounds))


def _bcrypt_rounds(request: Request) -> int:
    return request.app.state.settings.bcrypt_rounds


def _audit(request: Request, event: AuditEventType, principal_id: str | None = None, **kwargs) -> AuditEvent:
    return AuditEvent(
        event=event,
        principal_id=principal_id,
        client_address=client_address(request),
        endpoint=request.url.path,
        method=request.method,
        **kwargs,
    )


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=AuthResponse,
    dependencies=[Depends(enforce_auth_rate_limit)],
    responses={
        400: {"model": ValidationErrorResponse, "description": "Validation error"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
        429: {"model": RateLimitErrorResponse, "description": "Too many attempts"},
    },
)
async def register(
    body: RegisterRequest,
    request: Request,
    session: Session,
    jwt_service: Tokens,
    audit_sink: Audit,
) -> AuthResponse:
    """Register a new user.

    Flow:
    1. Validate password strength
    2. Check email uniqueness (case-insensitive)
    3. Hash password
    4. Create user record
    5. Issue access and refresh tokens
    """
    # 1. Validate password strength
    password_errors = default_password_validator.validate(body.password)
    if password_errors:
        logger.info("Registration failed: password validation", error_count=len(password_errors))
        raise InputValidationError(
            details=[
                {"field": e.field, "message": e.message, "code": e.code}
                for e in password_errors
            ]
        )

    user_repo = UserRepository(session)

    # 2. Check email uniqueness
    if await user_repo.get_by_email(body.email) is not None:
        logger.info("Registration failed: email exists")
        raise DuplicateEmailError()

    # 3. Hash password
    password_hash = await run_in_threadpool(
        hash_password, body.password, rounds=_bcrypt_rounds(request)
    )

    # 4. Create user record (the unique index still guards concurrent inserts)
    user = await user_repo.create(
        UserModel(
            id=str(uuid.uuid4()),
            email=body.email,
            password_hash=password_hash,
            role=body.role,
        )
    )

    # 5. Issue tokens
    tokens = jwt_service.issue_token_pair(user.to_principal())

    logger.info("User registered", user_id=user.id, role=user.role.value)
    audit_sink.emit(_audit(request, AuditEventType.USER_REGISTERED, user.id))

    return AuthResponse(
        message="Registration successful",
        user=UserResponse.model_validate(user),
        tokens=TokensResponse.from_pair(tokens),
    )


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=AuthResponse,
    dependencies=[Depends(enforce_auth_rate_limit)],
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
        429: {"model": RateLimitErrorResponse, "description": "Too many attempts"},
    },
)
async def login(
    body: LoginRequest,
    request: Request,
    session: Session,
    jwt_service: Tokens,
    audit_sink: Audit,
) -> AuthResponse:
    """Authenticate a user and return JWT tokens.

    Security:
    - Unknown email and wrong password return the same 401 body
    - Password verification is always performed (against a dummy hash for
      unknown emails) so timing does not reveal registered accounts
    """
    user_repo = UserRepository(session)
    rounds = _bcrypt_rounds(request)
    user = await user_repo.get_by_email(body.email)

    if user is None:
        await run_in_threadpool(_verify_against_dummy, body.password, rounds)
        logger.info("Login failed: user not found")
        audit_sink.emit(_audit(request, AuditEventType.LOGIN_FAILED, reason="USER_NOT_FOUND"))
        raise InvalidCredentialsError()

    if not await run_in_threadpool(verify_password, body.password, user.password_hash):
        logger.info("Login failed: invalid password", user_id=user.id)
        audit_sink.emit(
            _audit(request, AuditEventType.LOGIN_FAILED, user.id, reason="INVALID_PASSWORD")
        )
        raise InvalidCredentialsError()

    # Upgrade hashes created with an older cost factor
    if needs_rehash(user.password_hash, rounds=rounds):
        new_hash = await run_in_threadpool(hash_password, body.password, rounds=rounds)
        await user_repo.update_password_hash(user, new_hash)
        logger.info("Password hash upgraded", user_id=user.id)

    tokens = jwt_service.issue_token_pair(user.to_principal())

    logger.info("User logged in", user_id=user.id)
    audit_sink.emit(_audit(request, AuditEventType.LOGIN_SUCCESS, user.id))

    return AuthResponse(
        message="Login successful",
        user=UserResponse.model_validate(user),
        tokens=TokensResponse.from_pair(tokens),
    )


@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    response_model=RefreshResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid or expired refresh token"},
    },
)
async def refresh(
    body: RefreshRequest,
    request: Request,
    session: Session,
    jwt_service: Tokens,
    audit_sink: Audit,
) -> RefreshResponse:
    """Exchange a refresh token for a new token pair.

    The user must still exist; role and email in the new tokens come from
    the stored user.
    """
    if not body.refresh_token:
        raise NoTokenError("Refresh token required")

    try:
        claims = jwt_service.validate_refresh_token(body.refresh_token)
    except TokenExpiredError:
        audit_sink.emit(
            _audit(request, AuditEventType.TOKEN_REFRESH_FAILED, reason="TOKEN_EXPIRED")
        )
        raise
    except TokenInvalidError as e:
        logger.info("Token refresh failed", reason=e.message)
        audit_sink.emit(
            _audit(request, AuditEventType.TOKEN_REFRESH_FAILED, reason="TOKEN_INVALID")
        )
        raise TokenInvalidError("Invalid refresh token") from e

    user = await UserRepository(session).get_by_id(claims.subject_id)
    if user is None:
        audit_sink.emit(
            _audit(
                request,
                AuditEventType.TOKEN_REFRESH_FAILED,
                claims.subject_id,
                reason="USER_NOT_FOUND",
            )
        )
        raise UserNotFoundError()

    tokens = jwt_service.issue_token_pair(user.to_principal())
    audit_sink.emit(_audit(request, AuditEventType.TOKEN_REFRESHED, user.id))

    return RefreshResponse(tokens=TokensResponse.from_pair(tokens))


@router.post(
    "/logout",
    status_code=status.HTTP_200_OK,
    response_model=MessageResponse,
    responses={401: {"model": ErrorResponse, "description": "Not authenticated"}},
)
async def logout(
    request: Request,
    principal: CurrentPrincipal,
    audit_sink: Audit,
) -> MessageResponse:
    """Log out the current user.

    Tokens are stateless; the client discards them. The logout is audited.
    """
    audit_sink.emit(_audit(request, AuditEventType.LOGOUT, principal.id))
    return MessageResponse(message="Logged out successfully")


@router.get(
    "/me",
    status_code=status.HTTP_200_OK,
    response_model=MeResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def me(principal: CurrentPrincipal, session: Session) -> MeResponse:
    """Return the current user."""
    user = await UserRepository(session).get_by_id(principal.id)
    if user is None:
        raise UserNotFoundError(status_code=status.HTTP_404_NOT_FOUND)
    return MeResponse(user=UserResponse.model_validate(user))
