"""SQLAlchemy models for the Asthma API.

All models inherit from the Base class defined in database.py.
"""

from asthma_api.infrastructure.persistence.models.user import UserModel

__all__ = ["UserModel"]
