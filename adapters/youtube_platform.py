"""YouTube Data API platform implementation."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaFileUpload

from domain.models import VideoData
from ports.adapter_error import ErrorCode
from ports.video_platform import PermanentError, PlatformError, RetryableError, VideoPlatform

logger = logging.getLogger(__name__)

VIDEO_MIME_TYPE = "video/mp4"


class YouTubePlatform(VideoPlatform):
    """
    YouTube Data API v3 implementation of VideoPlatform.

    Wraps an already authorized API client for one account.
    """

    RETRYABLE_STATUS_CODES = {429, 500, 502, 503, 504}

    def __init__(self, youtube: Any, account: str = "unknown"):
        """
        Initialize platform.

        Args:
            youtube: Client returned by googleapiclient.discovery.build("youtube", "v3", ...).
            account: Account name used in log messages.
        """
        self.youtube = youtube
        self.account = account

    @classmethod
    def from_credentials(cls, credentials: Credentials, account: str = "unknown") -> "YouTubePlatform":
        """
        Build the YouTube API client for authorized credentials.

        Raises:
            PermanentError: If the client can't be built.
        """
        try:
            youtube = build("youtube", "v3", credentials=credentials)
        except Exception as e:
            raise PermanentError(
                code=ErrorCode.PLATFORM_REQUEST_FAILED,
                message=f"Failed to build YouTube API client: {e}",
            ) from e
        logger.info(f"YouTube API client initialized for account {account}")
        return cls(youtube, account)

    def create_playlist(self, data: VideoData) -> str:
        body = {
            "snippet": {
                "title": data.playlist_title,
                "description": data.playlist_description,
            },
            "status": {
                "privacyStatus": data.playlist_privacy.value,
            },
        }
        logger.debug(f"Creating playlist: {body}")

        response = self._call(
            "create playlist",
            lambda: self.youtube.playlists().insert(part="snippet,status", body=body).execute(),
        )
        return self._require_id(response, "playlist creation")

    def upload_video(self, path: Path, data: VideoData) -> str:
        body = self._prepare_metadata(data)
        logger.info(f"Starting upload of part {data.part_number}: {data.video_title}")

        def upload():
            media = MediaFileUpload(
                str(path),
                mimetype=VIDEO_MIME_TYPE,
                chunksize=-1,
                resumable=True,
            )
            request = self.youtube.videos().insert(
                part=",".join(body.keys()),
                body=body,
                media_body=media,
            )

            response = None
            while response is None:
                status, response = request.next_chunk()
                if status:
                    progress = int(status.progress() * 100)
                    logger.debug(f"Upload progress: {progress}%")
            return response

        try:
            response = self._call("upload video", upload)
        except PlatformError:
            logger.info("upload request done with result: Error")
            raise
        logger.info("upload request done with result: Ok")
        return self._require_id(response, "video upload")

    def add_to_playlist(self, video_id: str, playlist_id: str) -> None:
        body = {
            "snippet": {
                "playlistId": playlist_id,
                "resourceId": {
                    "kind": "youtube#video",
                    "videoId": video_id,
                },
            },
        }
        self._call(
            "add video to playlist",
            lambda: self.youtube.playlistItems().insert(part="snippet", body=body).execute(),
        )
        logger.debug(f"Added video {video_id} to playlist {playlist_id}")

    def _prepare_metadata(self, data: VideoData) -> dict:
        """
        Prepare video metadata for YouTube API.

        Args:
            data: Render payload of one part.

        Returns:
            Metadata dictionary for API request.
        """
        body = {
            "snippet": {
                "title": data.video_title,
                "description": data.video_description,
                "categoryId": data.video_category,
                "tags": list(data.video_tags),
            },
            "status": {
                "privacyStatus": data.video_privacy.value,
                "publicStatsViewable": True,
                "embeddable": True,
                "selfDeclaredMadeForKids": False,
            },
        }

        logger.debug(f"Video metadata prepared: {body}")
        return body

    def _call(self, action: str, request: Callable[[], dict]) -> dict:
        """
        Run an API request and map failures to PlatformError.

        Raises:
            RetryableError: For temporary errors.
            PermanentError: For everything else.
        """
        try:
            return request()
        except HttpError as e:
            raise self._map_http_error(e, action) from e
        except FileNotFoundError as e:
            raise PermanentError(
                code=ErrorCode.PLATFORM_REQUEST_FAILED,
                message=f"Failed to {action}: file not found",
                details={"error": str(e)},
            ) from e
        except Exception as e:
            logger.exception(f"Unexpected error during {action}")
            raise PlatformError(
                code=ErrorCode.PLATFORM_REQUEST_FAILED,
                message=f"Unexpected error during {action}: {e}",
            ) from e

    def _map_http_error(self, error: HttpError, action: str) -> PlatformError:
        """
        Convert an HTTP error from YouTube API.

        Args:
            error: HTTP error from API.
            action: What was being done, for the message.

        Returns:
            RetryableError for temporary errors, PermanentError otherwise.
        """
        status_code = error.resp.status
        error_content = error.content.decode("utf-8") if error.content else ""

        logger.error(f"YouTube API error {status_code} during {action}: {error_content}")

        if status_code in self.RETRYABLE_STATUS_CODES:
            return RetryableError(
                code=ErrorCode.PLATFORM_REQUEST_FAILED,
                message=f"Temporary error {status_code} during {action}",
                details=error_content,
            )

        permanent_errors = {
            400: "Invalid request (check media format, metadata)",
            401: "Authentication failed (check credentials)",
            403: "Forbidden (check quota, permissions)",
            404: "Resource not found",
        }
        reason = permanent_errors.get(status_code, f"HTTP error {status_code}")
        return PermanentError(
            code=ErrorCode.PLATFORM_REQUEST_FAILED,
            message=f"{reason} during {action}",
            details=error_content,
        )

    @staticmethod
    def _require_id(response: dict, action: str) -> str:
        resource_id = (response or {}).get("id")
        if not resource_id:
            raise PermanentError(
                code=ErrorCode.MISSING_ID,
                message=f"{action} did not return an ID",
            )
        return resource_id
