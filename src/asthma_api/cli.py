"""Command-line interface for the Asthma API.

This module provides the CLI commands for running and managing
the Asthma API service.
"""

import asyncio
import uuid

import click

from asthma_api import __version__
from asthma_api.core.config import get_settings
from asthma_api.core.logging import configure_logging, get_logger
from asthma_api.domain.entities.user import Role


@click.group()
@click.version_option(version=__version__, prog_name="Asthma API")
def cli() -> None:
    """Asthma API - authentication, profile and onboarding backend.

    Configuration is read from ASTHMA_API_* environment variables and .env.
    """


@cli.command()
@click.option("--host", type=str, default=None, help="Host to bind to (overrides config)")
@click.option("--port", type=int, default=None, help="Port to bind to (overrides config)")
@click.option(
    "--workers",
    type=int,
    default=None,
    help="Number of worker processes (overrides config)",
)
@click.option(
    "--reload/--no-reload",
    default=None,
    help="Enable auto-reload (defaults to on in development)",
)
def serve(host: str | None, port: int | None, workers: int | None, reload: bool | None) -> None:
    """Start the API server.

    The app is built by its factory in each worker, so a missing JWT
    secret stops the server at startup.
    """
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port
    bind_workers = workers or settings.workers

    # The auth rate limiter and SQLite file locking are both per-process
    if bind_workers > 1 and settings.database_url.startswith("sqlite"):
        click.echo("Error: SQLite does not support multiple worker processes", err=True)
        raise SystemExit(1)

    if reload is None:
        reload = settings.is_development

    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info(
        "Starting Asthma API server",
        host=bind_host,
        port=bind_port,
        workers=bind_workers,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "asthma_api.infrastructure.api.app:create_app",
        factory=True,
        host=bind_host,
        port=bind_port,
        workers=1 if reload else bind_workers,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
@click.option("--force", is_flag=True, help="Skip confirmation prompt")
def init_db(force: bool) -> None:
    """Initialize the database.

    Creates all database tables from the model definitions.
    """
    from asthma_api.infrastructure.persistence.database import close_database, init_database

    settings = get_settings()
    configure_logging(settings)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize() -> None:
        try:
            await init_database(settings)
            click.echo("Database initialized successfully.")
        finally:
            await close_database()

    asyncio.run(initialize())


@cli.command()
@click.option("--email", type=str, default=None, help="User email (prompts if not provided)")
@click.option(
    "--password",
    type=str,
    default=None,
    help="User password (prompts if not provided)",
)
@click.option(
    "--role",
    type=click.Choice([r.value for r in Role], case_sensitive=False),
    default=Role.PATIENT.value,
    show_default=True,
    help="Role to assign",
)
def create_user(email: str | None, password: str | None, role: str) -> None:
    """Create a user directly in the database.

    Useful for seeding test accounts and the first administrator.
    """
    from pydantic import EmailStr, TypeAdapter, ValidationError

    from asthma_api.core.exceptions import DuplicateEmailError
    from asthma_api.domain.entities.user import normalize_email
    from asthma_api.domain.services import default_password_validator
    from asthma_api.infrastructure.api.schemas.auth_schemas import MAX_EMAIL_LENGTH
    from asthma_api.infrastructure.auth import hash_password
    from asthma_api.infrastructure.persistence.database import (
        close_database,
        get_db_manager,
        init_database,
    )
    from asthma_api.infrastructure.persistence.models import UserModel
    from asthma_api.infrastructure.persistence.repositories import UserRepository

    settings = get_settings()
    configure_logging(settings)
    logger = get_logger(__name__)

    if email is None:
        email = click.prompt("Email", type=str)
    # Same rules as the registration endpoint, so the account can log in
    try:
        email = normalize_email(TypeAdapter(EmailStr).validate_python(email.strip()))
    except ValidationError:
        click.echo("Error: Invalid email format", err=True)
        raise SystemExit(1)
    if len(email) > MAX_EMAIL_LENGTH:
        click.echo("Error: Email too long", err=True)
        raise SystemExit(1)

    if password is None:
        password = click.prompt("Password", hide_input=True, confirmation_prompt=True)

    password_errors = default_password_validator.validate(password)
    if password_errors:
        for error in password_errors:
            click.echo(f"Error: {error.message}", err=True)
        raise SystemExit(1)

    async def create() -> str:
        try:
            await init_database(settings)
            async with get_db_manager().session() as session:
                user = await UserRepository(session).create(
                    UserModel(
                        id=str(uuid.uuid4()),
                        email=email,
                        password_hash=hash_password(password, rounds=settings.bcrypt_rounds),
                        role=Role(role.upper()),
                    )
                )
                return user.id
        finally:
            await close_database()

    try:
        user_id = asyncio.run(create())
    except DuplicateEmailError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)

    logger.info("User created via CLI", user_id=user_id, role=role.upper())
    click.echo(
        f"\nUser created successfully!\n"
        f"  User ID: {user_id}\n"
        f"  Email:   {email}\n"
        f"  Role:    {role.upper()}\n"
    )


@cli.command()
def info() -> None:
    """Display configuration and system information."""
    settings = get_settings()

    click.echo(f"""
{settings.app_name} v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}
  API Prefix:   {settings.api_prefix}

Server:
  Host:         {settings.host}
  Port:         {settings.port}
  Workers:      {settings.workers}

Database:
  URL:          {settings.database_url}
  Echo:         {settings.db_echo}

Security:
  JWT Secret:   {'configured' if settings.jwt_secret else 'MISSING'}
  Token Expire: {settings.access_token_expire_minutes} minutes
  Refresh Exp:  {settings.refresh_token_expire_days} days
  Bcrypt Cost:  {settings.bcrypt_rounds}
  Rate Limit:   {settings.rate_limit_max_attempts} attempts / {settings.rate_limit_window_seconds}s ({'on' if settings.rate_limit_enabled else 'off'})

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> None:
    """Main entry point for the CLI.

    This function is called when the `asthma-api` command is run
    or when using `python -m asthma_api`.
    """
    cli()


if __name__ == "__main__":
    main()
