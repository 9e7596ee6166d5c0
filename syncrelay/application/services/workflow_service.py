"""Workflow service — validates analysis requests and relays them to n8n.

Every check here runs before any outbound call.
"""

import re
from typing import Optional

import structlog

from syncrelay.core.exceptions import RequestValidationError
from syncrelay.domain.schemas.workflow import TriggerResponse
from syncrelay.infrastructure.n8n_client import N8nClient

logger = structlog.get_logger(__name__)

ALLOWED_VIDEO_TYPES = frozenset({"video/mp4", "video/mpeg", "video/quicktime", "video/x-msvideo"})
MAX_VIDEO_SIZE = 100 * 1024 * 1024  # 100 MiB

YOUTUBE_URL_RE = re.compile(r"^(https?://)?(www\.)?(youtube\.com|youtu\.be)/.+$")


def validate_video_upload(content_type: Optional[str], size: Optional[int]) -> None:
    if content_type not in ALLOWED_VIDEO_TYPES:
        raise RequestValidationError(
            "Invalid file type. Please upload a video file (MP4, MOV, AVI, MPEG)",
            details={"content_type": content_type, "allowed": sorted(ALLOWED_VIDEO_TYPES)},
        )
    if size is not None and size > MAX_VIDEO_SIZE:
        raise RequestValidationError(
            "File too large. Maximum size is 100MB",
            details={"size": size, "max_size": MAX_VIDEO_SIZE},
        )


def validate_youtube_url(url: Optional[str]) -> str:
    if not url or not url.strip():
        raise RequestValidationError("No YouTube URL provided")

    url = url.strip()
    if not YOUTUBE_URL_RE.match(url):
        raise RequestValidationError("Invalid YouTube URL format", details={"url": url})
    return url


async def start_video_analysis(
    client: N8nClient,
    content: bytes,
    filename: str,
    content_type: Optional[str],
    user_id: str,
) -> TriggerResponse:
    validate_video_upload(content_type, len(content))

    logger.info(
        "Received video analysis request",
        user_id=user_id,
        file_name=filename,
        file_size=len(content),
        file_type=content_type,
    )
    data = await client.trigger_video_analysis(content, filename, content_type, user_id)
    return TriggerResponse(success=True, message="Video analysis started successfully", data=data)


async def start_youtube_analysis(client: N8nClient, url: Optional[str], user_id: str) -> TriggerResponse:
    youtube_url = validate_youtube_url(url)

    logger.info("Received YouTube analysis request", user_id=user_id, youtube_url=youtube_url)
    data = await client.trigger_youtube_analysis(youtube_url, user_id)
    return TriggerResponse(success=True, message="YouTube analysis started successfully", data=data)
