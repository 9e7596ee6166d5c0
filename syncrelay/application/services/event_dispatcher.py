"""Clerk event dispatcher — routes a verified event to its handler.

Error policy is declared per handler:
- critical=True  -> failures propagate, the webhook answers 500 and Clerk retries
- critical=False -> failures are logged and swallowed, the webhook answers 200

Unknown event types are logged and ignored so new Clerk events never break
an existing deployment.
"""

from dataclasses import dataclass
from typing import Callable, Type

import structlog
from pydantic import BaseModel
from sqlalchemy.orm import Session

from syncrelay.application.services import user_sync_service
from syncrelay.domain.schemas.clerk import (
    ClerkDeletedObject,
    ClerkEmailData,
    ClerkEvent,
    ClerkEventType,
    ClerkMembershipData,
    ClerkOrganizationData,
    ClerkSessionData,
    ClerkUserData,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class EventHandler:
    """Handler registration for one event type."""

    func: Callable[[Session, BaseModel], object]
    payload_model: Type[BaseModel]
    critical: bool = True


class ClerkEventDispatcher:
    def __init__(self, handlers: dict[ClerkEventType, EventHandler] | None = None):
        self.handlers: dict[ClerkEventType, EventHandler] = dict(handlers or {})

    def register(self, event_type: ClerkEventType, handler: EventHandler) -> None:
        self.handlers[event_type] = handler

    def dispatch(self, event: ClerkEvent, db: Session) -> bool:
        """Apply one event. Returns False when the type is not handled."""
        event_type = event.event_type
        handler = self.handlers.get(event_type) if event_type else None

        if handler is None:
            logger.info("Unhandled Clerk event type, ignoring", event_type=event.type)
            return False

        try:
            payload = handler.payload_model.model_validate(event.data)
            handler.func(db, payload)
        except Exception:
            db.rollback()
            if handler.critical:
                logger.exception("Clerk event handler failed", event_type=event.type)
                raise
            logger.exception("Best-effort Clerk event handler failed, continuing", event_type=event.type)

        return True


def build_default_dispatcher() -> ClerkEventDispatcher:
    svc = user_sync_service
    return ClerkEventDispatcher(
        {
            ClerkEventType.USER_CREATED: EventHandler(svc.handle_user_created, ClerkUserData),
            ClerkEventType.USER_UPDATED: EventHandler(svc.handle_user_updated, ClerkUserData),
            ClerkEventType.USER_DELETED: EventHandler(svc.handle_user_deleted, ClerkDeletedObject),
            ClerkEventType.SESSION_CREATED: EventHandler(
                svc.handle_session_created, ClerkSessionData, critical=False
            ),
            ClerkEventType.SESSION_ENDED: EventHandler(
                svc.handle_session_ended, ClerkSessionData, critical=False
            ),
            ClerkEventType.EMAIL_CREATED: EventHandler(svc.handle_email_created, ClerkEmailData),
            ClerkEventType.ORGANIZATION_CREATED: EventHandler(
                svc.handle_organization_created, ClerkOrganizationData
            ),
            ClerkEventType.MEMBERSHIP_CREATED: EventHandler(
                svc.handle_membership_created, ClerkMembershipData
            ),
            ClerkEventType.MEMBERSHIP_DELETED: EventHandler(
                svc.handle_membership_deleted, ClerkMembershipData
            ),
        }
    )


dispatcher = build_default_dispatcher()
