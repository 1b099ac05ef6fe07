"""SQLAlchemy model for the users table.

Users are uniquely identified by their lower-cased email address.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from asthma_api.domain.entities.user import ChildSex, Principal, Role
from asthma_api.infrastructure.persistence.database import Base


class UserModel(Base):
    """SQLAlchemy model for the users table.

    Attributes:
        id: Primary key (UUID string).
        email: Lower-cased email address, unique.
        password_hash: bcrypt hash. Never returned by the API.
        role: PATIENT or ADMIN.
        onboarding_completed: Whether the onboarding wizard has been finished.
        current_onboarding_step: Last onboarding step the client reported.
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, comment="User ID (UUID)")
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        index=True,
        comment="Lower-cased email address",
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="user_role"),
        nullable=False,
        default=Role.PATIENT,
    )

    # Parent/guardian
    first_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Child
    child_first_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    child_last_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    child_date_of_birth: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    child_sex: Mapped[ChildSex | None] = mapped_column(Enum(ChildSex, name="child_sex"), nullable=True)

    # Location
    zip_code: Mapped[str | None] = mapped_column(String(10), nullable=True)

    # Reminders
    medication_reminders_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    daily_medication_doses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    preferred_medication_time: Mapped[str | None] = mapped_column(String(8), nullable=True)
    daily_log_reminders_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    preferred_daily_log_time: Mapped[str | None] = mapped_column(String(8), nullable=True)

    # Onboarding
    onboarding_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    current_onboarding_step: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    def to_principal(self) -> Principal:
        """Identity used for token issuance and request context."""
        return Principal(id=self.id, email=self.email, role=self.role)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role})>"
