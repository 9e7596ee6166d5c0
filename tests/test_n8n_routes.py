"""Tests for the /api/n8n relay routes and their input validation."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from syncrelay.application.services.workflow_service import (
    MAX_VIDEO_SIZE,
    validate_video_upload,
    validate_youtube_url,
)
from syncrelay.core.exceptions import RequestValidationError, WorkflowTriggerError
from syncrelay.infrastructure.n8n_client import N8nClient


@pytest.fixture()
def trigger_youtube():
    with patch.object(
        N8nClient, "trigger_youtube_analysis", new_callable=AsyncMock, return_value={"ok": True}
    ) as mock:
        yield mock


@pytest.fixture()
def trigger_video():
    with patch.object(
        N8nClient, "trigger_video_analysis", new_callable=AsyncMock, return_value={"ok": True}
    ) as mock:
        yield mock


# ── Validation helpers ──────────────────────────────────────────────────────


class TestValidation:
    def test_oversized_video_rejected(self):
        with pytest.raises(RequestValidationError) as exc:
            validate_video_upload("video/mp4", 150 * 1024 * 1024)
        assert exc.value.status_code == 400

    def test_exact_limit_accepted(self):
        validate_video_upload("video/quicktime", MAX_VIDEO_SIZE)

    @pytest.mark.parametrize("content_type", ["image/png", "application/octet-stream", None])
    def test_non_video_rejected(self, content_type):
        with pytest.raises(RequestValidationError):
            validate_video_upload(content_type, 10)

    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "http://youtube.com/shorts/abc",
            "youtu.be/dQw4w9WgXcQ",
            "  https://youtu.be/dQw4w9WgXcQ  ",
        ],
    )
    def test_youtube_urls_accepted(self, url):
        assert validate_youtube_url(url) == url.strip()

    @pytest.mark.parametrize("url", ["not-a-url", "https://vimeo.com/123", "https://youtube.com/", "", None])
    def test_bad_youtube_urls_rejected(self, url):
        with pytest.raises(RequestValidationError):
            validate_youtube_url(url)


# ── YouTube route ───────────────────────────────────────────────────────────


class TestYouTubeRoute:
    URL = "/api/n8n/youtube-analysis"

    def test_requires_auth(self, client, trigger_youtube):
        response = client.post(self.URL, json={"url": "https://youtu.be/x"})

        assert response.status_code == 401
        trigger_youtube.assert_not_called()

    def test_invalid_token_rejected(self, client, trigger_youtube):
        response = client.post(
            self.URL, json={"url": "https://youtu.be/x"}, headers={"Authorization": "Bearer nope"}
        )
        assert response.status_code == 401

    def test_relays_url(self, client, auth_headers, trigger_youtube):
        response = client.post(
            self.URL, json={"url": "https://youtu.be/dQw4w9WgXcQ"}, headers=auth_headers("user_7")
        )

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "YouTube analysis started successfully",
            "data": {"ok": True},
        }
        trigger_youtube.assert_awaited_once_with("https://youtu.be/dQw4w9WgXcQ", "user_7")

    def test_youtube_url_alias(self, client, auth_headers, trigger_youtube):
        response = client.post(
            self.URL, json={"youtubeUrl": "https://youtu.be/abc"}, headers=auth_headers()
        )
        assert response.status_code == 200
        trigger_youtube.assert_awaited_once()

    def test_not_a_url_is_400_without_outbound_call(self, client, auth_headers, trigger_youtube):
        response = client.post(self.URL, json={"url": "not-a-url"}, headers=auth_headers())

        assert response.status_code == 400
        assert response.json()["code"] == "RequestValidationError"
        trigger_youtube.assert_not_called()

    def test_missing_url_is_400(self, client, auth_headers, trigger_youtube):
        response = client.post(self.URL, json={}, headers=auth_headers())

        assert response.status_code == 400
        trigger_youtube.assert_not_called()

    def test_non_string_url_is_400(self, client, auth_headers, trigger_youtube):
        response = client.post(self.URL, json={"url": 123}, headers=auth_headers())

        assert response.status_code == 400
        payload = response.json()
        assert payload["code"] == "RequestValidationError"
        assert payload["details"]["errors"][0]["loc"][-1] == "url"
        assert "detail" not in payload
        trigger_youtube.assert_not_called()

    def test_non_json_body_is_400(self, client, auth_headers, trigger_youtube):
        headers = {**auth_headers(), "Content-Type": "application/json"}

        response = client.post(self.URL, content=b"not json", headers=headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid request"
        trigger_youtube.assert_not_called()

    def test_missing_body_is_400(self, client, auth_headers, trigger_youtube):
        response = client.post(self.URL, headers=auth_headers())

        assert response.status_code == 400
        trigger_youtube.assert_not_called()

    def test_n8n_failure_is_500(self, client, auth_headers, trigger_youtube):
        trigger_youtube.side_effect = WorkflowTriggerError(
            "n8n webhook failed: Internal Server Error", details={"status_code": 500}
        )

        response = client.post(self.URL, json={"url": "https://youtu.be/x"}, headers=auth_headers())

        assert response.status_code == 500
        assert response.json()["error"] == "n8n webhook failed: Internal Server Error"


# ── Video route ─────────────────────────────────────────────────────────────


class TestVideoRoute:
    URL = "/api/n8n/video-analysis"

    def test_requires_auth(self, client, trigger_video):
        response = client.post(self.URL, files={"video": ("clip.mp4", b"data", "video/mp4")})

        assert response.status_code == 401
        trigger_video.assert_not_called()

    def test_relays_file(self, client, auth_headers, trigger_video):
        response = client.post(
            self.URL,
            files={"video": ("clip.mp4", b"fake-mp4-bytes", "video/mp4")},
            headers=auth_headers("user_7"),
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Video analysis started successfully"
        trigger_video.assert_awaited_once_with(b"fake-mp4-bytes", "clip.mp4", "video/mp4", "user_7")

    def test_missing_file_is_400(self, client, auth_headers, trigger_video):
        response = client.post(self.URL, data={"note": "no file"}, headers=auth_headers())

        assert response.status_code == 400
        assert response.json()["error"] == "No video file provided"
        trigger_video.assert_not_called()

    def test_wrong_type_is_400(self, client, auth_headers, trigger_video):
        response = client.post(
            self.URL, files={"video": ("cat.png", b"png", "image/png")}, headers=auth_headers()
        )

        assert response.status_code == 400
        trigger_video.assert_not_called()

    def test_oversized_is_400_without_outbound_call(self, client, auth_headers, trigger_video):
        with patch("syncrelay.application.services.workflow_service.MAX_VIDEO_SIZE", 8):
            response = client.post(
                self.URL,
                files={"video": ("clip.mp4", b"more than eight bytes", "video/mp4")},
                headers=auth_headers(),
            )

        assert response.status_code == 400
        assert response.json()["error"] == "File too large. Maximum size is 100MB"
        trigger_video.assert_not_called()


# ── Status route ────────────────────────────────────────────────────────────


class TestStatusRoute:
    def test_reports_configuration(self, client, auth_headers):
        response = client.get("/api/n8n/status", headers=auth_headers())

        assert response.status_code == 200
        assert response.json() == {
            "configured": True,
            "webhook_url": True,
            "video_analysis_webhook": True,
            "youtube_analysis_webhook": True,
        }

    def test_requires_auth(self, client):
        assert client.get("/api/n8n/status").status_code == 401
