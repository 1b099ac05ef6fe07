"""Domain services for the Asthma API.

Services contain business logic that doesn't naturally fit within a single entity.
They have no dependencies on infrastructure or external frameworks.
"""

from asthma_api.domain.services.password_validator import (
    PasswordValidationError,
    PasswordValidator,
    default_password_validator,
)

__all__ = [
    "PasswordValidationError",
    "PasswordValidator",
    "default_password_validator",
]
