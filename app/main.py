"""
Page permissions backend - main application entry point
"""
import logging
from urllib.parse import urlparse, urlunparse

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import IntegrityError, OperationalError

from app.api.router import api_router
from app.core.config import settings
from app.core.errors import (
    AppError,
    app_error_handler,
    generic_exception_handler,
    http_exception_handler,
    integrity_error_handler,
    validation_exception_handler,
)
from app.core.logging import setup_logging
from app.db.init_db import seed_defaults
from app.db.session import SessionLocal

# Setup logging first
setup_logging()
logger = logging.getLogger(__name__)


def _mask_database_url(url: str) -> str:
    """Mask password in DATABASE_URL for safe logging; show full path for sqlite."""
    try:
        parsed = urlparse(url)
        if parsed.scheme.startswith("sqlite"):
            return url
        if parsed.password:
            netloc = f"{parsed.username}:****@{parsed.hostname or ''}"
            if parsed.port:
                netloc += f":{parsed.port}"
            return urlunparse(parsed._replace(netloc=netloc))
    except ValueError:
        return "***"
    return url


app = FastAPI(
    title="Page Permissions Backend",
    description="Role/page permission gate in front of a relational store",
    version=settings.VERSION or "1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_allowed_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(api_router)


@app.on_event("startup")
def startup_log_config() -> None:
    """Log DATABASE_URL at startup so it can be verified against the store."""
    logger.info("DATABASE_URL (app): %s", _mask_database_url(settings.DATABASE_URL))


@app.on_event("startup")
def bootstrap_defaults() -> None:
    """Seed default pages and roles when they are missing."""
    if not settings.SEED_DEFAULTS:
        return
    db = SessionLocal()
    try:
        seed_defaults(db)
    except OperationalError as e:
        # tables may not exist yet on a fresh store
        logger.warning("Database not ready, skipping default seeding: %s", e)
    except AppError as e:
        logger.error("Default seeding failed: %s", e.message)
    finally:
        db.close()
