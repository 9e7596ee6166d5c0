"""
Global exception handling for the application.
Every error leaves the API as {"error": <message>, "code": <class>, "details": {...}}.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError as FastAPIRequestValidationError
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(AppError):
    """A required setting is missing or unusable."""
    def __init__(self, message: str = "Configuration error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class MissingSignatureHeadersError(AppError):
    """One or more Svix headers were not sent."""
    def __init__(self, missing_headers: list[str]):
        super().__init__(
            f"Missing signature headers: {', '.join(missing_headers)}",
            status.HTTP_400_BAD_REQUEST,
            {"missing_headers": list(missing_headers)},
        )
        self.missing_headers = list(missing_headers)


class SignatureVerificationError(AppError):
    """Webhook signature did not match the body, or is stale."""
    def __init__(self, message: str = "Signature verification failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class WebhookProcessingError(AppError):
    """A verified webhook event could not be applied."""
    def __init__(self, message: str = "Webhook processing failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class InvalidEventPayloadError(AppError):
    """Event payload lacks a field the handler cannot do without."""
    def __init__(self, message: str = "Invalid event payload", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


class MalformedWebhookPayloadError(AppError):
    """Authentic webhook body that is not a JSON object."""
    def __init__(self, message: str = "Webhook payload is not a JSON object", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class RequestValidationError(AppError):
    """Caller input rejected before any downstream call."""
    def __init__(self, message: str = "Invalid request", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class EntityNotFoundException(AppError):
    """Resource not found error."""
    def __init__(self, message: str = "Entity not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class UnauthorizedException(AppError):
    """Authentication failure error."""
    def __init__(self, message: str = "Unauthorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED, details)


class ForbiddenException(AppError):
    """Authorization failure error."""
    def __init__(self, message: str = "Forbidden", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_403_FORBIDDEN, details)


class ExternalServiceError(AppError):
    """An upstream API (Clerk) answered with an error."""
    def __init__(self, message: str = "Upstream service error", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, details)


class WorkflowConfigurationError(ConfigurationError):
    """n8n base URL or workflow id is not configured."""


class WorkflowTriggerError(AppError):
    """n8n was unreachable or answered with a non-2xx status."""
    def __init__(self, message: str = "Failed to trigger workflow", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, details)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError with its own status code."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "code": exc.__class__.__name__,
            "details": exc.details,
            "path": request.url.path,
        },
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""
    if isinstance(exc, AppError):
        return await app_error_handler(request, exc)

    logger.exception("Unexpected error occurred", path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "code": "InternalServerError",
            "path": request.url.path,
        },
    )


async def request_validation_handler(request: Request, exc: FastAPIRequestValidationError) -> JSONResponse:
    """Render body/query parsing failures as a 400 in the AppError envelope."""
    errors = [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]
    logger.info("Request validation failed", path=request.url.path, errors=len(errors))

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request",
            "code": "RequestValidationError",
            "details": {"errors": errors},
            "path": request.url.path,
        },
    )
