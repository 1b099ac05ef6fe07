"""Application error taxonomy.

Every error carries a stable machine-readable ``code`` and the HTTP status
it maps to. The API layer renders them as ``{"error": ..., "code": ...}``.
"""

from typing import Any


class AsthmaAPIError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"
    message: str = "Internal server error"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.message = message or self.message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Render the error as a response body."""
        return {"error": self.message, "code": self.code}


class ConfigError(AsthmaAPIError):
    """Raised at startup when required configuration is missing."""

    code = "CONFIG_ERROR"
    message = "Invalid configuration"


class InputValidationError(AsthmaAPIError):
    """Raised when request input fails validation."""

    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Validation failed"

    def __init__(self, message: str | None = None, details: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.details = details or []

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["details"] = self.details
        return body


class DuplicateEmailError(AsthmaAPIError):
    """Raised when registering an email that already exists."""

    status_code = 409
    code = "EMAIL_EXISTS"
    message = "Email already registered"


class InvalidCredentialsError(AsthmaAPIError):
    """Raised for any login failure.

    Unknown email and wrong password share this error so responses do not
    reveal which accounts exist.
    """

    status_code = 401
    code = "INVALID_CREDENTIALS"
    message = "Invalid credentials"


class NoTokenError(AsthmaAPIError):
    """Raised when a protected route is called without a bearer token."""

    status_code = 401
    code = "NO_TOKEN"
    message = "Access token required"


class TokenInvalidError(AsthmaAPIError):
    """Raised when a token fails signature, issuer, audience or shape checks."""

    status_code = 401
    code = "TOKEN_INVALID"
    message = "Invalid token"


class TokenExpiredError(TokenInvalidError):
    """Raised when a token is past its expiry."""

    code = "TOKEN_EXPIRED"
    message = "Token has expired"


class UserNotFoundError(AsthmaAPIError):
    """Raised when a token refers to a user that no longer exists.

    Token paths answer 401; direct lookups pass ``status_code=404``.
    """

    status_code = 401
    code = "USER_NOT_FOUND"
    message = "User not found"


class InsufficientPermissionsError(AsthmaAPIError):
    """Raised when the principal's role is not allowed on a route."""

    status_code = 403
    code = "INSUFFICIENT_PERMISSIONS"
    message = "Insufficient permissions"


class RateLimitExceededError(AsthmaAPIError):
    """Raised when a client exceeds the authentication attempt limit."""

    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"
    message = "Too many attempts. Please try again later."

    def __init__(self, retry_after: int) -> None:
        super().__init__()
        self.retry_after = retry_after

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["retryAfter"] = self.retry_after
        return body
