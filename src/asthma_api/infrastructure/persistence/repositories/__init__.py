"""Repositories for database access."""

from asthma_api.infrastructure.persistence.repositories.user_repository import UserRepository

__all__ = ["UserRepository"]
