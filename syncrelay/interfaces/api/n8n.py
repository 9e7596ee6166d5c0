"""n8n API routes — start video and YouTube analysis workflows."""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from syncrelay.application.services.workflow_service import (
    start_video_analysis,
    start_youtube_analysis,
    validate_video_upload,
)
from syncrelay.core.exceptions import RequestValidationError
from syncrelay.domain.schemas.workflow import N8nStatus, TriggerResponse, YouTubeAnalysisRequest
from syncrelay.infrastructure.n8n_client import N8nClient
from syncrelay.interfaces.api.deps import get_current_user_id
from syncrelay.interfaces.deps import get_n8n_client

router = APIRouter(prefix="/api/n8n", tags=["n8n"])


@router.post("/video-analysis", response_model=TriggerResponse)
async def video_analysis(
    video: Optional[UploadFile] = File(None),
    user_id: str = Depends(get_current_user_id),
    client: N8nClient = Depends(get_n8n_client),
):
    if video is None or not video.filename:
        raise RequestValidationError("No video file provided")

    # Reject on declared size before reading the whole upload into memory
    validate_video_upload(video.content_type, video.size)

    content = await video.read()
    return await start_video_analysis(client, content, video.filename, video.content_type, user_id)


@router.post("/youtube-analysis", response_model=TriggerResponse)
async def youtube_analysis(
    body: YouTubeAnalysisRequest,
    user_id: str = Depends(get_current_user_id),
    client: N8nClient = Depends(get_n8n_client),
):
    return await start_youtube_analysis(client, body.url, user_id)


@router.get("/status", response_model=N8nStatus)
def n8n_status(
    user_id: str = Depends(get_current_user_id),
    client: N8nClient = Depends(get_n8n_client),
):
    return N8nStatus(**client.status())
