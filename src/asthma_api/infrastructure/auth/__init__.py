"""Authentication infrastructure components.

This module provides password hashing, JWT token services, and the
bearer token authenticator used by protected routes.
"""

from asthma_api.infrastructure.auth.authenticator import Authenticator, extract_bearer_token
from asthma_api.infrastructure.auth.jwt_service import JWTService
from asthma_api.infrastructure.auth.password_hasher import (
    get_dummy_password_hash,
    hash_password,
    needs_rehash,
    verify_password,
)
from asthma_api.infrastructure.auth.token_types import TokenClaims, TokenPair, TokenType

__all__ = [
    "Authenticator",
    "JWTService",
    "TokenClaims",
    "TokenPair",
    "TokenType",
    "extract_bearer_token",
    "get_dummy_password_hash",
    "hash_password",
    "needs_rehash",
    "verify_password",
]
