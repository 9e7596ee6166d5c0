"""Pydantic schemas for the n8n analysis relay."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field


class YouTubeAnalysisRequest(BaseModel):
    # Shape is checked by the service so a bad URL is a 400, not a 422
    url: Optional[str] = Field(default=None, validation_alias=AliasChoices("url", "youtubeUrl"))


class TriggerResponse(BaseModel):
    success: bool
    message: Optional[str] = None
    data: Any = None


class N8nStatus(BaseModel):
    configured: bool
    webhook_url: bool
    video_analysis_webhook: bool
    youtube_analysis_webhook: bool
