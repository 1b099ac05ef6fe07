"""Pydantic schemas for profile and onboarding endpoints."""

from datetime import datetime

from pydantic import ConfigDict, Field

from asthma_api.domain.entities.user import ChildSex, Role
from asthma_api.infrastructure.api.schemas.auth_schemas import CamelModel

ZIP_CODE_PATTERN = r"^\d{5}(-\d{4})?$"
# e.g. "8:30 AM", "12:05 PM"
REMINDER_TIME_PATTERN = r"^(1[0-2]|0?[1-9]):[0-5][0-9] (AM|PM)$"


class UpdateProfileRequest(CamelModel):
    """Request body for a partial profile update. Omitted fields are left as is."""

    first_name: str | None = Field(None, min_length=1, max_length=50)
    last_name: str | None = Field(None, min_length=1, max_length=50)
    child_first_name: str | None = Field(None, min_length=1, max_length=50)
    child_last_name: str | None = Field(None, min_length=1, max_length=50)
    child_date_of_birth: datetime | None = None
    child_sex: ChildSex | None = None
    zip_code: str | None = Field(None, pattern=ZIP_CODE_PATTERN)
    medication_reminders_enabled: bool | None = None
    daily_medication_doses: int | None = Field(None, ge=0, le=10)
    preferred_medication_time: str | None = Field(None, pattern=REMINDER_TIME_PATTERN)
    daily_log_reminders_enabled: bool | None = None
    preferred_daily_log_time: str | None = Field(None, pattern=REMINDER_TIME_PATTERN)
    current_onboarding_step: int | None = Field(None, ge=0)


class CompleteOnboardingRequest(CamelModel):
    """Everything the onboarding flow collects, submitted at once."""

    child_first_name: str = Field(..., min_length=1, max_length=50)
    child_last_name: str = Field(..., min_length=1, max_length=50)
    child_date_of_birth: datetime
    child_sex: ChildSex
    zip_code: str = Field(..., pattern=ZIP_CODE_PATTERN)
    medication_reminders_enabled: bool
    daily_medication_doses: int | None = Field(None, ge=0, le=10)
    preferred_medication_time: str | None = Field(None, pattern=REMINDER_TIME_PATTERN)
    daily_log_reminders_enabled: bool
    preferred_daily_log_time: str | None = Field(None, pattern=REMINDER_TIME_PATTERN)


class ProfileResponse(CamelModel):
    """A user's full profile. Never includes the password hash."""

    id: str
    email: str
    role: Role
    first_name: str | None = None
    last_name: str | None = None
    child_first_name: str | None = None
    child_last_name: str | None = None
    child_date_of_birth: datetime | None = None
    child_sex: ChildSex | None = None
    zip_code: str | None = None
    medication_reminders_enabled: bool
    daily_medication_doses: int | None = None
    preferred_medication_time: str | None = None
    daily_log_reminders_enabled: bool
    preferred_daily_log_time: str | None = None
    onboarding_completed: bool
    current_onboarding_step: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileEnvelope(CamelModel):
    """Response wrapping a profile."""

    success: bool = True
    user: ProfileResponse


class ProfileUpdatedResponse(ProfileEnvelope):
    """Response for a successful profile update."""

    message: str = "Profile updated successfully"


class OnboardingStatusResponse(CamelModel):
    """Whether the user has completed onboarding."""

    success: bool = True
    onboarding_completed: bool


class OnboardingCompletedResponse(OnboardingStatusResponse):
    """Response for a completed onboarding submission."""

    message: str = "Onboarding completed successfully"
