"""FastAPI dependency — Clerk session token authentication."""

from typing import Optional

import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from syncrelay.application.services.user_sync_service import ensure_user
from syncrelay.config import Settings, get_settings
from syncrelay.core.exceptions import ForbiddenException, UnauthorizedException
from syncrelay.domain.models.user import User
from syncrelay.infrastructure.clerk_api import ClerkAPIClient
from syncrelay.interfaces.deps import get_clerk_client, get_db

logger = structlog.get_logger(__name__)
security = HTTPBearer(auto_error=False)


def decode_session_token(token: str, settings: Settings) -> Optional[dict]:
    """Verify a Clerk session JWT; None when it is invalid or unverifiable."""
    if not settings.CLERK_JWT_KEY:
        logger.error("CLERK_JWT_KEY not configured, cannot verify session token")
        return None
    try:
        return jwt.decode(
            token,
            settings.CLERK_JWT_KEY,
            algorithms=[settings.CLERK_JWT_ALGORITHM],
            options={"verify_aud": False},
        )
    except JWTError as e:
        logger.info("Session token rejected", reason=str(e))
        return None


def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> Optional[str]:
    if credentials is None:
        return None
    payload = decode_session_token(credentials.credentials, settings)
    if payload is None:
        return None
    return payload.get("sub") or None


def get_current_user_id(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    """Require an authenticated Clerk caller."""
    if user_id is None:
        raise UnauthorizedException("Unauthorized")
    return user_id


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    clerk: ClerkAPIClient = Depends(get_clerk_client),
) -> User:
    """Authenticated caller's record, provisioned on first access."""
    user = await ensure_user(db, user_id, clerk)
    if not user.is_active:
        raise ForbiddenException("User is deactivated")
    return user
