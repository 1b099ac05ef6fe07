"""Profile and onboarding API routes.

All routes require a valid access token and act on the caller's own record.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from asthma_api.core.exceptions import UserNotFoundError
from asthma_api.core.logging import get_logger
from asthma_api.domain.entities.audit_event import AuditEvent, AuditEventType
from asthma_api.domain.entities.user import Principal
from asthma_api.infrastructure.api.dependencies import (
    CurrentPrincipal,
    client_address,
    get_audit_sink,
)
from asthma_api.infrastructure.api.schemas import (
    CompleteOnboardingRequest,
    ErrorResponse,
    OnboardingCompletedResponse,
    OnboardingStatusResponse,
    ProfileEnvelope,
    ProfileResponse,
    ProfileUpdatedResponse,
    UpdateProfileRequest,
    ValidationErrorResponse,
)
from asthma_api.infrastructure.audit.audit_logger import AuditSink
from asthma_api.infrastructure.persistence.database import get_db_session
from asthma_api.infrastructure.persistence.models import UserModel
from asthma_api.infrastructure.persistence.repositories import UserRepository

logger = get_logger(__name__)

router = APIRouter(
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)

Session = Annotated[AsyncSession, Depends(get_db_session)]
Audit = Annotated[AuditSink, Depends(get_audit_sink)]


def _found(user: UserModel | None) -> UserModel:
    if user is None:
        raise UserNotFoundError(status_code=status.HTTP_404_NOT_FOUND)
    return user


def _audit(request: Request, event: AuditEventType, principal: Principal, fields: list[str]) -> AuditEvent:
    return AuditEvent(
        event=event,
        principal_id=principal.id,
        client_address=client_address(request),
        endpoint=request.url.path,
        method=request.method,
        details={"fields": fields},
    )


@router.get("", response_model=ProfileEnvelope)
async def get_profile(principal: CurrentPrincipal, session: Session) -> ProfileEnvelope:
    """Return the caller's complete profile."""
    user = _found(await UserRepository(session).get_by_id(principal.id))
    return ProfileEnvelope(user=ProfileResponse.model_validate(user))


@router.patch(
    "",
    response_model=ProfileUpdatedResponse,
    responses={400: {"model": ValidationErrorResponse, "description": "Validation error"}},
)
async def update_profile(
    body: UpdateProfileRequest,
    request: Request,
    principal: CurrentPrincipal,
    session: Session,
    audit_sink: Audit,
) -> ProfileUpdatedResponse:
    """Update any subset of the caller's profile fields.

    Omitted fields and fields sent as null are left unchanged.
    """
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    user = _found(await UserRepository(session).update_profile(principal.id, fields))

    # Field names only; values may be PHI
    updated = sorted(fields)
    logger.info("User profile updated", user_id=principal.id, updated_fields=updated)
    audit_sink.emit(_audit(request, AuditEventType.PROFILE_UPDATED, principal, updated))

    return ProfileUpdatedResponse(user=ProfileResponse.model_validate(user))


@router.post(
    "/onboarding/complete",
    response_model=OnboardingCompletedResponse,
    responses={400: {"model": ValidationErrorResponse, "description": "Validation error"}},
)
async def complete_onboarding(
    body: CompleteOnboardingRequest,
    request: Request,
    principal: CurrentPrincipal,
    session: Session,
    audit_sink: Audit,
) -> OnboardingCompletedResponse:
    """Save everything collected by the onboarding flow and mark it complete."""
    fields = body.model_dump(exclude_none=True)
    user = _found(await UserRepository(session).complete_onboarding(principal.id, fields))

    logger.info("Onboarding completed", user_id=principal.id)
    audit_sink.emit(
        _audit(request, AuditEventType.ONBOARDING_COMPLETED, principal, sorted(fields))
    )

    return OnboardingCompletedResponse(onboarding_completed=user.onboarding_completed)


@router.get("/onboarding/status", response_model=OnboardingStatusResponse)
async def onboarding_status(principal: CurrentPrincipal, session: Session) -> OnboardingStatusResponse:
    """Return whether the caller has completed onboarding."""
    user = _found(await UserRepository(session).get_by_id(principal.id))
    return OnboardingStatusResponse(onboarding_completed=user.onboarding_completed)
