"""Clerk Backend API HTTP client.

Only what lazy provisioning needs: reading a user by id. The response is the
same snake_case user object that webhooks carry, so it goes through the same
mapper.
"""

import logging

import httpx

from syncrelay.config import Settings
from syncrelay.core.exceptions import ConfigurationError, EntityNotFoundException, ExternalServiceError

logger = logging.getLogger(__name__)


class ClerkAPIClient:
    """Client for the Clerk Backend API (v1)."""

    def __init__(self, settings: Settings):
        self.base_url = settings.CLERK_API_URL.rstrip("/")
        self.secret_key = settings.CLERK_SECRET_KEY
        self.timeout = 10

    @property
    def headers(self) -> dict:
        return {"Authorization": f"Bearer {self.secret_key}"}

    async def get_user(self, user_id: str) -> dict:
        """Fetch a user object by id."""
        if not self.secret_key:
            raise ConfigurationError(
                "CLERK_SECRET_KEY is not configured",
                details={"setting": "CLERK_SECRET_KEY"},
            )

        url = f"{self.base_url}/v1/users/{user_id}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=self.headers)
        except httpx.HTTPError as e:
            logger.error(f"Clerk API unreachable while fetching {user_id}: {e}")
            raise ExternalServiceError("Clerk API unreachable", details={"user_id": user_id}) from e

        if response.status_code == 404:
            raise EntityNotFoundException("Clerk user not found", details={"user_id": user_id})

        if response.is_error:
            logger.warning(f"Clerk API error for {user_id}: {response.status_code} {response.text[:200]}")
            raise ExternalServiceError(
                f"Clerk API error: {response.status_code}",
                details={"user_id": user_id},
            )

        try:
            user = response.json()
        except ValueError as e:
            logger.warning(f"Clerk API returned a non-JSON body for {user_id}")
            raise ExternalServiceError("Clerk API returned an invalid response", details={"user_id": user_id}) from e

        if not isinstance(user, dict):
            raise ExternalServiceError("Clerk API returned an invalid response", details={"user_id": user_id})

        return user
