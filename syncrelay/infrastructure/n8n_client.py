"""n8n webhook HTTP client.

Relays analysis jobs to n8n workflows:
- Video files go out as multipart (`Video`, `userId`, `timestamp`)
- YouTube links go out as JSON (`videoUrl`, `userId`, `timestamp`)

No retries and no client-side timeout: a failed call is reported once, a
hung call is bounded by the hosting platform's request timeout.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from syncrelay.config import Settings
from syncrelay.core.exceptions import WorkflowConfigurationError, WorkflowTriggerError

logger = logging.getLogger(__name__)


class N8nClient:
    """Client for n8n production webhooks."""

    def __init__(self, settings: Settings):
        self.base_url = (settings.N8N_WEBHOOK_URL or "").rstrip("/")
        self.video_webhook_id = settings.N8N_VIDEO_ANALYSIS_WEBHOOK_ID
        self.youtube_webhook_id = settings.N8N_YOUTUBE_ANALYSIS_WEBHOOK_ID
        self.api_key = settings.N8N_API_KEY

    @property
    def headers(self) -> dict:
        return {"X-N8N-API-KEY": self.api_key} if self.api_key else {}

    def webhook_url(self, webhook_id: Optional[str], setting_name: str) -> str:
        if not self.base_url:
            logger.error("N8N_WEBHOOK_URL is not configured")
            raise WorkflowConfigurationError(
                "N8N_WEBHOOK_URL is not configured",
                details={"setting": "N8N_WEBHOOK_URL"},
            )
        if not webhook_id:
            logger.error(f"{setting_name} is not configured")
            raise WorkflowConfigurationError(
                f"{setting_name} is not configured",
                details={"setting": setting_name},
            )
        return f"{self.base_url}/webhook/{webhook_id}"

    @staticmethod
    def _timestamp() -> str:
        return datetime.now(timezone.utc).isoformat()

    async def _post(self, url: str, **kwargs) -> Any:
        try:
            async with httpx.AsyncClient(timeout=None) as client:
                response = await client.post(url, headers=self.headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"n8n webhook unreachable: {e}")
            raise WorkflowTriggerError(f"n8n webhook unreachable: {e}") from e

        if response.is_error:
            logger.warning(f"n8n webhook failed: {response.status_code} {response.reason_phrase}")
            raise WorkflowTriggerError(
                f"n8n webhook failed: {response.reason_phrase}",
                details={"status_code": response.status_code},
            )

        try:
            return response.json()
        except ValueError:
            # Workflows answering with "Workflow was started" plain text
            return {"raw": response.text}

    async def trigger_video_analysis(
        self,
        content: bytes,
        filename: str,
        content_type: str,
        user_id: str,
    ) -> Any:
        url = self.webhook_url(self.video_webhook_id, "N8N_VIDEO_ANALYSIS_WEBHOOK_ID")
        logger.info(f"Triggering n8n video analysis for {user_id}: {filename} ({len(content)} bytes)")

        result = await self._post(
            url,
            files={"Video": (filename, content, content_type)},
            data={"userId": user_id, "timestamp": self._timestamp()},
        )
        logger.info(f"n8n video analysis triggered for {user_id}")
        return result

    async def trigger_youtube_analysis(self, youtube_url: str, user_id: str) -> Any:
        url = self.webhook_url(self.youtube_webhook_id, "N8N_YOUTUBE_ANALYSIS_WEBHOOK_ID")
        logger.info(f"Triggering n8n YouTube analysis for {user_id}: {youtube_url}")

        # The workflow reads "videoUrl", not the "url" the API accepts
        result = await self._post(
            url,
            json={"videoUrl": youtube_url, "userId": user_id, "timestamp": self._timestamp()},
        )
        logger.info(f"n8n YouTube analysis triggered for {user_id}")
        return result

    def is_configured(self) -> bool:
        return bool(self.base_url and self.video_webhook_id)

    def status(self) -> dict:
        """Which settings are present. Values are never exposed."""
        return {
            "configured": self.is_configured(),
            "webhook_url": bool(self.base_url),
            "video_analysis_webhook": bool(self.video_webhook_id),
            "youtube_analysis_webhook": bool(self.youtube_webhook_id),
        }
