"""Clerk user mapper — turns a loosely typed Clerk user into column values.

Fallback rules:
- email: primary address -> first address -> `email_address` -> `email` -> ""
- full name: "first last" trimmed, None when both parts are empty
- avatar: `image_url` -> `profile_image_url` -> None
- timestamps: anything unparseable becomes "now"
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from syncrelay.core.exceptions import InvalidEventPayloadError
from syncrelay.domain.models.user import DEFAULT_PREFERENCES
from syncrelay.domain.schemas.clerk import ClerkUserData

DEFAULT_LOCALE = "zh"


@dataclass
class ClerkUserProfile:
    id: str
    email: str
    full_name: Optional[str]
    avatar_url: Optional[str]
    is_admin: bool
    admin_level: int
    preferences: dict
    country: Optional[str]
    locale: str
    created_at: datetime
    updated_at: datetime
    last_sign_in_at: datetime
    last_active_at: datetime
    public_metadata: dict = field(default_factory=dict)

    def profile_columns(self) -> dict:
        """Columns refreshed on every user.updated event."""
        return {
            "email": self.email,
            "full_name": self.full_name,
            "avatar_url": self.avatar_url,
            "is_active": True,
            "is_admin": self.is_admin,
            "admin_level": self.admin_level,
            "country": self.country,
            "locale": self.locale,
        }

    def insert_columns(self) -> dict:
        """Columns for a brand-new row."""
        return {
            "id": self.id,
            **self.profile_columns(),
            "total_use_cases": 0,
            "total_tutorials": 0,
            "total_blogs": 0,
            "preferences": self.preferences,
            "last_login_at": self.last_sign_in_at,
            "created_at": self.created_at,
        }


def parse_timestamp(value: Any, now: Optional[datetime] = None) -> datetime:
    """Parse a Clerk timestamp, never raising.

    Numbers are epoch milliseconds. Strings must be ISO-8601.
    """
    fallback = now or datetime.now(timezone.utc)

    if value is None or isinstance(value, bool):
        return fallback

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return fallback

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return fallback
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return fallback
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)

    return fallback


def extract_email(data: ClerkUserData) -> str:
    addresses = data.email_addresses or []

    if data.primary_email_address_id:
        for address in addresses:
            if address.id == data.primary_email_address_id and address.email_address:
                return address.email_address

    if addresses and addresses[0].email_address:
        return addresses[0].email_address

    return data.email_address or data.email or ""


def build_full_name(first_name: Optional[str], last_name: Optional[str]) -> Optional[str]:
    full_name = f"{first_name or ''} {last_name or ''}".strip()
    return full_name or None


def _admin_level(metadata: dict) -> int:
    try:
        level = int(metadata.get("adminLevel") or 0)
    except (TypeError, ValueError):
        return 0
    return max(level, 0)


def format_clerk_user(data: ClerkUserData, now: Optional[datetime] = None) -> ClerkUserProfile:
    if not data.id:
        raise InvalidEventPayloadError("Clerk user payload has no id")

    now = now or datetime.now(timezone.utc)
    metadata = data.public_metadata or {}
    preferences = metadata.get("preferences")

    return ClerkUserProfile(
        id=data.id,
        email=extract_email(data),
        full_name=build_full_name(data.first_name, data.last_name),
        avatar_url=data.image_url or data.profile_image_url or None,
        is_admin=bool(metadata.get("isAdmin") or False),
        admin_level=_admin_level(metadata),
        preferences=preferences if isinstance(preferences, dict) else dict(DEFAULT_PREFERENCES),
        country=metadata.get("country") or None,
        locale=metadata.get("locale") or DEFAULT_LOCALE,
        created_at=parse_timestamp(data.created_at, now),
        updated_at=parse_timestamp(data.updated_at, now),
        last_sign_in_at=parse_timestamp(data.last_sign_in_at, now),
        last_active_at=parse_timestamp(data.last_active_at, now),
        public_metadata=metadata,
    )
