"""API dependencies."""

import json
import logging
import secrets
from typing import Any, AsyncGenerator

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from tasktrail.audit import AuditLogger, LogStore
from tasktrail.auth import API_KEY_HEADER, AuthContext
from tasktrail.config import Environment, settings
from tasktrail.db import base as db_base
from tasktrail.db.repositories import TaskRepository
from tasktrail.engine import (
    ServiceMisconfigured,
    TaskService,
    UnauthorizedError,
    ValidationError,
)
from tasktrail.utils.strings import trim_strings


logger = logging.getLogger("tasktrail.api")


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with db_base.async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_log_store(request: Request) -> LogStore:
    """Log store opened by the application lifespan."""
    store = getattr(request.app.state, "log_store", None)
    if store is None:
        raise ServiceMisconfigured("Log store is not initialized")
    return store


def get_audit_logger(store: LogStore = Depends(get_log_store)) -> AuditLogger:
    return AuditLogger(store, default_limit=settings.default_log_limit)


def get_task_service(
    session: AsyncSession = Depends(get_db_session),
    audit: AuditLogger = Depends(get_audit_logger),
) -> TaskService:
    return TaskService(TaskRepository(session), audit)


async def verify_api_key(
    x_api_key: str | None = Header(None, alias=API_KEY_HEADER),
) -> AuthContext:
    """
    Verify the shared API key sent in the X-API-KEY header.

    Returns AuthContext on success. Raises UnauthorizedError with code
    MISSING_API_KEY or INVALID_API_KEY on failure.

    Fails closed: without a configured key, and outside explicit insecure
    dev mode, every request is rejected.
    """
    # Insecure dev mode bypass (must be explicitly enabled)
    if settings.allow_insecure_dev and settings.env == Environment.DEVELOPMENT:
        return AuthContext(auth_type="insecure_dev", authenticated=False)

    if not settings.api_key:
        logger.error(
            "SECURITY VIOLATION: No API key configured. Set TASKTRAIL_API_KEY."
        )
        raise ServiceMisconfigured(
            "Server misconfigured: authentication not properly initialized"
        )

    if not x_api_key:
        raise UnauthorizedError(
            f"The {API_KEY_HEADER} header is required for this operation",
            "MISSING_API_KEY",
        )

    if not secrets.compare_digest(x_api_key.encode(), settings.api_key.encode()):
        raise UnauthorizedError("The provided API key is not valid", "INVALID_API_KEY")

    return AuthContext(auth_type="api_key", authenticated=True)


async def get_json_body(request: Request) -> dict[str, Any]:
    """Decoded JSON object body with strings trimmed (blank strings become null)."""
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError({"body": "The request body must be valid JSON."})
    if not isinstance(payload, dict):
        raise ValidationError({"body": "The request body must be a JSON object."})
    return trim_strings(payload)


def validate_auth_config() -> None:
    """
    Validate authentication configuration at startup.

    Ensures the server cannot start with an insecure configuration in
    non-dev environments, or without any key outside insecure dev mode.

    Raises:
        RuntimeError: If configuration is insecure for the current environment
    """
    # Insecure dev mode is only allowed in development
    if settings.allow_insecure_dev and settings.env != Environment.DEVELOPMENT:
        raise RuntimeError(
            f"SECURITY ERROR: allow_insecure_dev=true is only permitted in development. "
            f"Current environment: {settings.env.value}. "
            f"Set TASKTRAIL_ALLOW_INSECURE_DEV=false for {settings.env.value}."
        )

    if not settings.allow_insecure_dev and not settings.api_key:
        raise RuntimeError(
            "SECURITY ERROR: TASKTRAIL_API_KEY is not set. "
            "Configure an API key or enable TASKTRAIL_ALLOW_INSECURE_DEV in development."
        )

    # Log security status
    if settings.allow_insecure_dev:
        logger.warning(
            "=" * 80 + "\n"
            "WARNING: Running in INSECURE DEV MODE\n"
            "  - API key checks are DISABLED\n"
            "  - All write requests will be accepted without verification\n"
            "  - This mode is ONLY for local development\n"
            "  - Set TASKTRAIL_ALLOW_INSECURE_DEV=false for any deployment\n"
            + "=" * 80
        )
    else:
        logger.info(f"Authentication enabled: X-API-KEY required for writes in {settings.env.value}")
