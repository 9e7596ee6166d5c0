"""Auth API routes — current user, auth status, profile, Clerk resync."""

from typing import Optional

import pytz
import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from syncrelay.application.services.user_sync_service import (
    ensure_user,
    sync_user_from_clerk,
    update_profile,
)
from syncrelay.core.exceptions import RequestValidationError
from syncrelay.domain.models.user import User
from syncrelay.domain.schemas.user import AuthStatus, ProfileUpdate, UserRead
from syncrelay.infrastructure.clerk_api import ClerkAPIClient
from syncrelay.interfaces.api.deps import get_current_user, get_current_user_id, get_optional_user_id
from syncrelay.interfaces.deps import get_clerk_client, get_db

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.get("/me", response_model=UserRead)
def get_me(user: User = Depends(get_current_user)):
    return UserRead.model_validate(user)


@router.get("/status", response_model=AuthStatus)
async def auth_status(
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: Session = Depends(get_db),
    clerk: ClerkAPIClient = Depends(get_clerk_client),
):
    if user_id is None:
        return AuthStatus(is_authenticated=False)

    try:
        user = await ensure_user(db, user_id, clerk)
    except Exception:
        # Signed in, but the local record could not be provisioned
        db.rollback()
        logger.exception("Auth status sync failed", user_id=user_id)
        return AuthStatus(is_authenticated=True)

    return AuthStatus(
        is_authenticated=True,
        user=UserRead.model_validate(user),
        is_admin=bool(user.is_admin),
    )


@router.patch("/profile", response_model=UserRead)
def patch_profile(
    body: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    timezone_name = body.preferences.timezone if body.preferences else None
    if timezone_name is not None and timezone_name not in pytz.all_timezones_set:
        raise RequestValidationError("Unknown timezone", details={"timezone": timezone_name})

    updated = update_profile(db, user, full_name=body.full_name, preferences=body.preferences)
    return UserRead.model_validate(updated)


@router.post("/sync", response_model=UserRead)
async def sync_from_clerk(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clerk: ClerkAPIClient = Depends(get_clerk_client),
):
    user = await sync_user_from_clerk(db, user_id, clerk)
    return UserRead.model_validate(user)
