"""Pydantic schemas for User and profile updates."""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserRead(CamelModel):
    id: str
    email: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    is_active: bool
    is_admin: bool
    admin_level: int
    total_use_cases: int = 0
    total_tutorials: int = 0
    total_blogs: int = 0
    preferences: dict[str, Any] = Field(default_factory=dict)
    country: Optional[str] = None
    locale: Optional[str] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PreferencesUpdate(CamelModel):
    theme: Optional[Literal["light", "dark"]] = None
    language: Optional[Literal["en", "zh"]] = None
    currency: Optional[Literal["USD", "CNY"]] = None
    timezone: Optional[str] = None


class ProfileUpdate(CamelModel):
    full_name: Optional[str] = None
    preferences: Optional[PreferencesUpdate] = None


class AuthStatus(CamelModel):
    is_authenticated: bool
    user: Optional[UserRead] = None
    is_admin: bool = False
