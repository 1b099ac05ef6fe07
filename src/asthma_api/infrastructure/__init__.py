"""Infrastructure layer - External dependencies and implementations.

This layer contains all external dependencies including:
- Database adapters (SQLAlchemy)
- API routes and middleware (FastAPI)
- Authentication (bcrypt, JWT)
- Audit log sinks
"""
