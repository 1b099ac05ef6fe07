"""User repository for database operations."""

from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from asthma_api.core.exceptions import DuplicateEmailError
from asthma_api.domain.entities.user import normalize_email
from asthma_api.infrastructure.persistence.models import UserModel

# Columns a client is allowed to change through the profile endpoints
PROFILE_FIELDS = frozenset(
    {
        "first_name",
        "last_name",
        "child_first_name",
        "child_last_name",
        "child_date_of_birth",
        "child_sex",
        "zip_code",
        "medication_reminders_enabled",
        "daily_medication_doses",
        "preferred_medication_time",
        "daily_log_reminders_enabled",
        "preferred_daily_log_time",
        "current_onboarding_step",
    }
)


class UserRepository:
    """Repository for user database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the repository.

        Args:
            session: SQLAlchemy async session.
        """
        self.session = session

    async def create(self, user: UserModel) -> UserModel:
        """Create a new user.

        Args:
            user: User model to create. Its email is normalised before insert.

        Returns:
            Created user model.

        Raises:
            DuplicateEmailError: If the email is already registered.
        """
        user.email = normalize_email(user.email)
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateEmailError() from e
        await self.session.refresh(user)
        return user

    async def get_by_id(self, user_id: str) -> UserModel | None:
        """Get a user by ID.

        Args:
            user_id: User ID (UUID string).

        Returns:
            User model if found, None otherwise.
        """
        result = await self.session.execute(select(UserModel).where(UserModel.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> UserModel | None:
        """Get a user by email, case-insensitively.

        Args:
            email: Email address as entered by the client.

        Returns:
            User model if found, None otherwise.
        """
        result = await self.session.execute(
            select(UserModel).where(UserModel.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> UserModel | None:
        """Apply profile changes to a user.

        Keys outside the editable profile columns are ignored.

        Args:
            user_id: ID of the user to update.
            fields: Column name to new value.

        Returns:
            Updated user model, or None if the user does not exist.
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return None

        for name, value in fields.items():
            if name in PROFILE_FIELDS:
                setattr(user, name, value)

        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def complete_onboarding(self, user_id: str, fields: dict[str, Any]) -> UserModel | None:
        """Save onboarding answers and mark onboarding as finished.

        Args:
            user_id: ID of the user.
            fields: Profile values collected by the onboarding flow.

        Returns:
            Updated user model, or None if the user does not exist.
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return None

        for name, value in fields.items():
            if name in PROFILE_FIELDS:
                setattr(user, name, value)
        user.onboarding_completed = True

        await self.session.commit()
        await self.session.refresh(user)
        return user

    async def update_password_hash(self, user: UserModel, password_hash: str) -> None:
        """Replace a user's stored password hash.

        Args:
            user: The user to update.
            password_hash: New bcrypt hash.
        """
        user.password_hash = password_hash
        await self.session.commit()

    async def delete(self, user_id: str) -> bool:
        """Delete a user.

        Returns:
            True if a row was removed.
        """
        result = await self.session.execute(delete(UserModel).where(UserModel.id == user_id))
        await self.session.commit()
        return result.rowcount > 0
