"""API route modules."""

from asthma_api.infrastructure.api.routes.auth_router import router as auth_router
from asthma_api.infrastructure.api.routes.profile_router import router as profile_router

__all__ = ["auth_router", "profile_router"]
