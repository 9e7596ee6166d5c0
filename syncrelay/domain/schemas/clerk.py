"""Pydantic schemas for Clerk webhook events.

Clerk payloads are loosely typed and grow new fields over time, so every
model allows extra keys and treats almost every field as optional. Fallback
rules for missing values live in `clerk_user_mapper`.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ClerkEventType(str, Enum):
    USER_CREATED = "user.created"
    USER_UPDATED = "user.updated"
    USER_DELETED = "user.deleted"
    SESSION_CREATED = "session.created"
    SESSION_ENDED = "session.ended"
    EMAIL_CREATED = "email.created"
    ORGANIZATION_CREATED = "organization.created"
    MEMBERSHIP_CREATED = "organizationMembership.created"
    MEMBERSHIP_DELETED = "organizationMembership.deleted"


class ClerkPayload(BaseModel):
    model_config = ConfigDict(extra="allow")


class ClerkEmailAddress(ClerkPayload):
    id: Optional[str] = None
    email_address: Optional[str] = None


class ClerkUserData(ClerkPayload):
    id: Optional[str] = None
    email_addresses: Optional[list[ClerkEmailAddress]] = None
    primary_email_address_id: Optional[str] = None
    email_address: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    image_url: Optional[str] = None
    profile_image_url: Optional[str] = None
    public_metadata: Optional[dict[str, Any]] = None
    private_metadata: Optional[dict[str, Any]] = None
    # Epoch milliseconds in practice; parsed defensively by the mapper
    created_at: Any = None
    updated_at: Any = None
    last_sign_in_at: Any = None
    last_active_at: Any = None


class ClerkDeletedObject(ClerkPayload):
    id: Optional[str] = None
    object: Optional[str] = None
    deleted: Optional[bool] = None


class ClerkSessionData(ClerkPayload):
    id: Optional[str] = None
    user_id: Optional[str] = None
    client_id: Optional[str] = None
    status: Optional[str] = None


class ClerkEmailData(ClerkPayload):
    id: Optional[str] = None
    email_address: Optional[str] = None
    to_email_address: Optional[str] = None
    user_id: Optional[str] = None
    object: Optional[dict[str, Any]] = None


class ClerkOrganizationData(ClerkPayload):
    id: Optional[str] = None
    name: Optional[str] = None
    slug: Optional[str] = None
    created_by: Optional[str] = None


class ClerkMembershipData(ClerkPayload):
    id: Optional[str] = None
    role: Optional[str] = None
    organization: Optional[dict[str, Any]] = None
    public_user_data: Optional[dict[str, Any]] = None


class ClerkEvent(ClerkPayload):
    """Envelope of a verified webhook delivery."""

    type: str = ""
    data: dict[str, Any] = Field(default_factory=dict)
    object: Optional[str] = None
    timestamp: Any = None
    instance_id: Optional[str] = None

    @field_validator("data", mode="before")
    @classmethod
    def _null_data(cls, value):
        return {} if value is None else value

    @property
    def event_type(self) -> Optional[ClerkEventType]:
        try:
            return ClerkEventType(self.type)
        except ValueError:
            return None
