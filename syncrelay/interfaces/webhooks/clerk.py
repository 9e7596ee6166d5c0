"""Clerk webhook — keeps the users table in step with Clerk.

Flow:
1. Read the raw body (signature is computed over the exact bytes)
2. Verify the Svix signature
3. Dispatch the event to its handler
4. 200 {"received": true}; 400 on signature problems; 500 when an
   identity change could not be applied (Clerk then retries)
"""

import json
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from syncrelay.application.services.event_dispatcher import ClerkEventDispatcher
from syncrelay.application.services.webhook_verifier import REQUIRED_HEADERS, verify_clerk_webhook
from syncrelay.config import Settings, get_settings
from syncrelay.core.exceptions import AppError, EntityNotFoundException, WebhookProcessingError
from syncrelay.domain.schemas.clerk import ClerkEvent
from syncrelay.interfaces.deps import get_db, get_event_dispatcher

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/webhook", tags=["Webhooks"])


@router.post("/clerk")
async def clerk_webhook(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    dispatcher: ClerkEventDispatcher = Depends(get_event_dispatcher),
):
    body = await request.body()

    logger.info(
        "Clerk webhook received",
        body_length=len(body),
        **{name.replace("-", "_"): name in request.headers for name in REQUIRED_HEADERS},
    )

    # Raises 400/500 AppErrors, rendered by the global handler
    raw_event = verify_clerk_webhook(body, request.headers, settings.CLERK_WEBHOOK_SECRET)
    event = ClerkEvent.model_validate(raw_event)

    try:
        handled = dispatcher.dispatch(event, db)
    except Exception as e:
        message = e.message if isinstance(e, AppError) else str(e)
        raise WebhookProcessingError(
            f"Failed to process {event.type}: {message}",
            details={"event_type": event.type},
        ) from e

    logger.info("Clerk webhook processed", event_type=event.type, handled=handled)
    return {"received": True}


def require_debug_enabled(settings: Settings = Depends(get_settings)) -> None:
    if not settings.WEBHOOK_DEBUG_ENABLED:
        raise EntityNotFoundException("Not Found")


@router.get("/clerk/debug", dependencies=[Depends(require_debug_enabled)])
def clerk_webhook_debug_status():
    return {
        "status": "ok",
        "message": "Clerk webhook debug endpoint is active",
        "usage": "Point a Clerk endpoint here temporarily to inspect what it sends",
    }


@router.post("/clerk/debug", dependencies=[Depends(require_debug_enabled)])
async def clerk_webhook_debug(request: Request, settings: Settings = Depends(get_settings)):
    """Echo what a delivery looks like without verifying or applying it."""
    body = await request.body()
    text = body.decode("utf-8", errors="replace")

    try:
        parsed = json.loads(text)
    except ValueError:
        parsed = None

    debug_info = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request": {
            "method": request.method,
            "url": str(request.url),
            "body_length": len(body),
            "body_preview": text[:200],
        },
        "headers": {
            "svix": {name: name in request.headers for name in REQUIRED_HEADERS},
            "names": sorted(request.headers.keys()),
        },
        "body": {
            "is_json": parsed is not None,
            "event_type": parsed.get("type") if isinstance(parsed, dict) else None,
        },
        "environment": {
            "has_webhook_secret": bool(settings.CLERK_WEBHOOK_SECRET),
        },
    }

    logger.info("Clerk webhook debug delivery", **debug_info["body"], body_length=len(body))
    return {"success": True, "message": "Debug information logged and returned", "debug": debug_info}
