"""FastAPI application — main entry point."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError as FastAPIRequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from syncrelay.config import check_settings, get_settings
from syncrelay.core.exceptions import (
    AppError,
    app_error_handler,
    global_exception_handler,
    request_validation_handler,
)
from syncrelay.core.logging import configure_logging
from syncrelay.core.middleware import setup_middleware
from syncrelay.infrastructure.database import Base, engine

# Import models so SQLAlchemy knows about them
from syncrelay.domain.models.user import User  # noqa: F401

from syncrelay.interfaces.api.auth import router as auth_router
from syncrelay.interfaces.api.n8n import router as n8n_router
from syncrelay.interfaces.webhooks.clerk import router as clerk_webhook_router

settings = get_settings()

configure_logging(settings)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — startup and shutdown events."""
    check_settings(settings)
    logger.info("Starting SyncRelay", env=settings.ENVIRONMENT)

    # Creates missing tables only; existing ones are left as they are
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    yield

    engine.dispose()
    logger.info("SyncRelay stopped")


app = FastAPI(
    title="SyncRelay",
    description="Clerk user sync webhook and n8n analysis relay",
    version="1.0.0",
    lifespan=lifespan,
)

setup_middleware(app)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(FastAPIRequestValidationError, request_validation_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(clerk_webhook_router)
app.include_router(n8n_router)
app.include_router(auth_router)


@app.get("/")
def root():
    return {
        "name": "SyncRelay",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
