"""
API Dependencies.
"""

from fastapi import Depends

from syncrelay.application.services.event_dispatcher import ClerkEventDispatcher, dispatcher
from syncrelay.config import Settings, get_settings
from syncrelay.infrastructure.clerk_api import ClerkAPIClient
from syncrelay.infrastructure.database import get_db
from syncrelay.infrastructure.n8n_client import N8nClient

__all__ = [
    "get_db",
    "get_clerk_client",
    "get_n8n_client",
    "get_event_dispatcher",
]


def get_clerk_client(settings: Settings = Depends(get_settings)) -> ClerkAPIClient:
    return ClerkAPIClient(settings)


def get_n8n_client(settings: Settings = Depends(get_settings)) -> N8nClient:
    return N8nClient(settings)


def get_event_dispatcher() -> ClerkEventDispatcher:
    return dispatcher
