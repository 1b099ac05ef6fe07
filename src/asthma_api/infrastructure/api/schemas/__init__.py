"""API Schemas for request/response validation."""

from asthma_api.infrastructure.api.schemas.auth_schemas import (
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
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from asthma_api.infrastructure.api.schemas.profile_schemas import (
    CompleteOnboardingRequest,
    OnboardingCompletedResponse,
    OnboardingStatusResponse,
    ProfileEnvelope,
    ProfileResponse,
    ProfileUpdatedResponse,
    UpdateProfileRequest,
)

__all__ = [
    "AuthResponse",
    "CompleteOnboardingRequest",
    "ErrorResponse",
    "LoginRequest",
    "MeResponse",
    "MessageResponse",
    "OnboardingCompletedResponse",
    "OnboardingStatusResponse",
    "ProfileEnvelope",
    "ProfileResponse",
    "ProfileUpdatedResponse",
    "RateLimitErrorResponse",
    "RefreshRequest",
    "RefreshResponse",
    "RegisterRequest",
    "TokensResponse",
    "UpdateProfileRequest",
    "UserResponse",
    "ValidationErrorDetail",
    "ValidationErrorResponse",
]
