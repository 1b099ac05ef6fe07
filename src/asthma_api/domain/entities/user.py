"""User-facing identity types.

Roles are a closed set; every authorization check compares against
``Role`` members rather than free strings.
"""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Roles a user can hold."""

    PATIENT = "PATIENT"
    ADMIN = "ADMIN"


class ChildSex(str, Enum):
    """Sex of the child whose asthma is being tracked."""

    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"
    PREFER_NOT_TO_SAY = "PREFER_NOT_TO_SAY"


@dataclass(frozen=True)
class Principal:
    """The authenticated identity attached to a request.

    Attributes:
        id: User ID (UUID string).
        email: User's normalised email address.
        role: User's role.
    """

    id: str
    email: str
    role: Role

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Principal ID is required")
        if not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))


def normalize_email(email: str) -> str:
    """Normalise an email address for storage and lookup."""
    return email.strip().lower()
