"""TaskTrail main application."""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tasktrail.api import router
from tasktrail.api.deps import validate_auth_config
from tasktrail.api.handlers import UnhandledErrorMiddleware, register_exception_handlers
from tasktrail.audit import create_log_store
from tasktrail.config import settings
from tasktrail.db.base import close_db, init_db
from tasktrail.middleware.security_headers import SecurityHeadersMiddleware

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("tasktrail")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting TaskTrail server...")
    logger.info(f"Environment: {settings.env.value}")

    # Validate authentication configuration (fail fast if insecure)
    validate_auth_config()

    # Initialize task store
    await init_db()
    logger.info("Database initialized")

    # Open log store
    log_store = create_log_store(settings)
    await log_store.ensure_indexes()
    app.state.log_store = log_store
    logger.info(f"Log store ready ({settings.log_store_backend.value})")

    yield

    # Cleanup
    logger.info("Shutting down TaskTrail server...")
    await log_store.close()
    await close_db()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Task management API with an audit trail of every task mutation",
    version=settings.api_version,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Innermost: unhandled errors become 500s that still get the headers below
app.add_middleware(UnhandledErrorMiddleware)

# Security headers on every response
app.add_middleware(
    SecurityHeadersMiddleware,
    api_version=settings.api_version,
    hsts=settings.is_production,
)

# Add CORS middleware (explicit allowlist, no wildcards with credentials)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allowed_methods,
    allow_headers=settings.cors_allowed_headers,
)

# Include API router
app.include_router(router)


def main():
    """Entry point for the application."""
    uvicorn.run(
        "tasktrail.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
