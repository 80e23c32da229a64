"""Interface for the video hosting platform (e.g., YouTube API)."""
from abc import ABC, abstractmethod
from pathlib import Path

from domain.models import VideoData
from ports.adapter_error import AdapterError


class VideoPlatform(ABC):
    """
    Platform operations needed to publish a split video.

    One instance is bound to one authorized account.
    Implementation examples: YouTube Data API, in-memory fake for tests.
    """

    @abstractmethod
    def create_playlist(self, data: VideoData) -> str:
        """
        Create a playlist from the playlist fields of the payload.

        Args:
            data: Render payload (playlist_title, playlist_description, playlist_privacy).

        Returns:
            Platform playlist ID.

        Raises:
            PlatformError: If the request fails or no ID is returned.
        """
        pass

    @abstractmethod
    def upload_video(self, path: Path, data: VideoData) -> str:
        """
        Upload one part using a resumable transfer.

        Args:
            path: Local segment file.
            data: Render payload (video_* fields).

        Returns:
            Platform video ID.

        Raises:
            PlatformError: If the upload fails or no ID is returned.
        """
        pass

    @abstractmethod
    def add_to_playlist(self, video_id: str, playlist_id: str) -> None:
        """
        Append an uploaded video to a playlist.

        Raises:
            PlatformError: If the request fails.
        """
        pass


class PlatformError(AdapterError):
    """Base exception for platform errors."""
    pass


class RetryableError(PlatformError):
    """
    Temporary error; a later run may succeed.

    Examples: Rate limiting (429), server errors (5xx).
    """
    pass


class PermanentError(PlatformError):
    """
    Error that will not go away by itself.

    Examples: Invalid credentials, quota exceeded, response without an ID.
    """
    pass
