"""User sync service — applies Clerk identity events to the users table.

Features:
- Idempotent create (a repeated user.created is a no-op)
- Update falls back to create when the row is missing
- Soft delete only
- Login timestamp bookkeeping from session events
- Lazy provisioning of callers that never came through the webhook
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from syncrelay.application.services.clerk_user_mapper import format_clerk_user
from syncrelay.domain.models.user import DEFAULT_PREFERENCES, User
from syncrelay.domain.schemas.clerk import (
    ClerkDeletedObject,
    ClerkEmailData,
    ClerkMembershipData,
    ClerkOrganizationData,
    ClerkSessionData,
    ClerkUserData,
)
from syncrelay.domain.schemas.user import PreferencesUpdate
from syncrelay.infrastructure.clerk_api import ClerkAPIClient
from syncrelay.infrastructure.repositories.user_repository import SQLAlchemyUserRepository

logger = structlog.get_logger(__name__)


def _repo(db: Session) -> SQLAlchemyUserRepository:
    return SQLAlchemyUserRepository(db, User)


# ── Identity events (failures propagate) ───────────────────────────────────


def handle_user_created(db: Session, data: ClerkUserData) -> bool:
    """Insert the user unless it already exists. Returns True on insert."""
    profile = format_clerk_user(data)
    repo = _repo(db)

    if repo.get_by_id(profile.id) is not None:
        logger.info("User already exists, skipping create", user_id=profile.id)
        return False

    created = repo.insert_if_absent(profile.insert_columns())
    if created:
        logger.info("User created", user_id=profile.id, email=profile.email)
    return created


def handle_user_updated(db: Session, data: ClerkUserData) -> None:
    profile = format_clerk_user(data)

    if _repo(db).update_fields(profile.id, profile.profile_columns()):
        logger.info("User updated", user_id=profile.id, email=profile.email)
        return

    logger.info("User missing on update, creating instead", user_id=profile.id)
    handle_user_created(db, data)


def handle_user_deleted(db: Session, data: ClerkDeletedObject) -> None:
    if not data.id:
        logger.warning("user.deleted without id, nothing to do")
        return

    if _repo(db).soft_delete(data.id):
        logger.info("User deactivated", user_id=data.id)
    else:
        logger.info("user.deleted for unknown user", user_id=data.id)


def handle_email_created(db: Session, data: ClerkEmailData) -> None:
    email_object = data.object or {}
    user_id = email_object.get("user_id") or data.user_id
    email_address = data.email_address

    if not (user_id and email_address and email_object.get("primary")):
        logger.debug("email.created is not a primary address change, ignoring", email_id=data.id)
        return

    _repo(db).update_email(user_id, email_address)
    logger.info("Primary email updated", user_id=user_id, email=email_address)


# Organizations are not stored locally; these only leave an audit trail.


def handle_organization_created(db: Session, data: ClerkOrganizationData) -> None:
    logger.info(
        "Organization created",
        organization_id=data.id,
        name=data.name,
        created_by=data.created_by,
    )


def handle_membership_created(db: Session, data: ClerkMembershipData) -> None:
    logger.info(
        "Organization member added",
        user_id=(data.public_user_data or {}).get("user_id"),
        organization_id=(data.organization or {}).get("id"),
        role=data.role,
    )


def handle_membership_deleted(db: Session, data: ClerkMembershipData) -> None:
    logger.info(
        "Organization member removed",
        user_id=(data.public_user_data or {}).get("user_id"),
        organization_id=(data.organization or {}).get("id"),
    )


# ── Session events (best effort) ───────────────────────────────────────────


def handle_session_created(db: Session, data: ClerkSessionData) -> None:
    if not data.user_id:
        logger.warning("session.created without user_id", session_id=data.id)
        return

    if _repo(db).touch_last_login(data.user_id):
        logger.info("Login recorded", user_id=data.user_id)
    else:
        logger.info("Login for unknown user not recorded", user_id=data.user_id)


def handle_session_ended(db: Session, data: ClerkSessionData) -> None:
    logger.info("Logout recorded", user_id=data.user_id, session_id=data.id)


# ── Caller-driven sync ─────────────────────────────────────────────────────


async def ensure_user(db: Session, user_id: str, clerk: ClerkAPIClient) -> User:
    """Return the stored user, provisioning it from Clerk when absent."""
    repo = _repo(db)
    user = repo.get_by_id(user_id)
    if user is not None:
        return user

    logger.info("User not in database, provisioning from Clerk", user_id=user_id)
    clerk_user = await clerk.get_user(user_id)
    profile = format_clerk_user(ClerkUserData.model_validate(clerk_user))

    values = profile.insert_columns()
    values["last_login_at"] = datetime.now(timezone.utc)
    repo.insert_if_absent(values)

    return repo.get_by_id(user_id)


async def sync_user_from_clerk(db: Session, user_id: str, clerk: ClerkAPIClient) -> User:
    """Refresh the stored profile from Clerk, creating the row if needed."""
    clerk_user = await clerk.get_user(user_id)
    profile = format_clerk_user(ClerkUserData.model_validate(clerk_user))
    repo = _repo(db)
    now = datetime.now(timezone.utc)

    updated = repo.update_fields(
        user_id,
        {
            "email": profile.email,
            "full_name": profile.full_name,
            "avatar_url": profile.avatar_url,
            "last_login_at": now,
        },
    )
    if not updated:
        values = profile.insert_columns()
        values["last_login_at"] = now
        repo.insert_if_absent(values)

    logger.info("User synced from Clerk", user_id=user_id, created=not updated)
    return repo.get_by_id(user_id)


def update_profile(
    db: Session,
    user: User,
    full_name: Optional[str] = None,
    preferences: Optional[PreferencesUpdate] = None,
) -> User:
    values = {}

    if full_name is not None:
        values["full_name"] = full_name

    if preferences is not None:
        merged = dict(user.preferences or DEFAULT_PREFERENCES)
        merged.update(preferences.model_dump(exclude_none=True))
        values["preferences"] = merged

    repo = _repo(db)
    repo.update_fields(user.id, values)
    logger.info("Profile updated", user_id=user.id, changes=sorted(values))
    return repo.get_by_id(user.id)
