"""Asthma API - authentication and profile backend for the asthma care app.

Serves registration, login, token refresh, profile and onboarding endpoints
for the mobile client, with HIPAA-style audit logging of every
authenticated request.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
