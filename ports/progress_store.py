"""Interface for the persistent upload progress store."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, FrozenSet, List, Optional, Sequence

from domain.models import User, Video, VideoPartUpload, VideoStatus
from ports.adapter_error import AdapterError

# Allowed source statuses for each target status. Setting the current status
# again is always allowed (no-op).
ALLOWED_TRANSITIONS: Dict[VideoStatus, FrozenSet[VideoStatus]] = {
    VideoStatus.SPLIT: frozenset(),
    VideoStatus.UPLOADING: frozenset({VideoStatus.SPLIT}),
    VideoStatus.PARTIALLY_UPLOADED: frozenset({VideoStatus.SPLIT, VideoStatus.UPLOADING}),
    VideoStatus.UPLOADED: frozenset(
        {VideoStatus.SPLIT, VideoStatus.UPLOADING, VideoStatus.PARTIALLY_UPLOADED}
    ),
    VideoStatus.UPLOAD_FAILED: frozenset(
        {VideoStatus.SPLIT, VideoStatus.UPLOADING, VideoStatus.PARTIALLY_UPLOADED}
    ),
}


def allowed_sources(status: VideoStatus) -> FrozenSet[VideoStatus]:
    """Statuses from which `status` may be set, including itself."""
    return ALLOWED_TRANSITIONS[status] | {status}


class ProgressStore(ABC):
    """
    Read/write access to videos, users and per-part upload records.

    Every mutation is a single-row update scoped by primary key.
    Implementation examples: SQL database, in-memory store.
    """

    @abstractmethod
    def get_videos_by_status(
        self, statuses: Sequence[VideoStatus], limit: Optional[int] = None
    ) -> List[Video]:
        """
        Fetch videos in any of the given statuses.

        Videos with fewer recorded failures come first, then oldest first,
        so videos that keep failing do not use up the limit ahead of new ones.

        Args:
            statuses: Statuses to select.
            limit: Maximum number of videos (None for all).

        Raises:
            ProgressStoreError: If the query fails.
        """
        pass

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]:
        """Fetch a user by id, None if it does not exist."""
        pass

    @abstractmethod
    def get_users(self, active_only: bool = True) -> List[User]:
        """Fetch all (active) users."""
        pass

    @abstractmethod
    def get_part_uploads(self, video_id: int) -> List[VideoPartUpload]:
        """Fetch part records of a video ordered by part number."""
        pass

    @abstractmethod
    def insert_part_upload(self, video_id: int, part: int) -> VideoPartUpload:
        """
        Record the start of a part upload (status Uploading).

        An existing Uploading record for the same part is reused.

        Raises:
            ProgressStoreError: If the part is already Uploaded or the write fails.
        """
        pass

    @abstractmethod
    def mark_part_uploaded(self, video_id: int, part: int, youtube_video_id: str) -> None:
        """Set a part record to Uploaded with its platform video ID."""
        pass

    @abstractmethod
    def set_video_status(self, video_id: int, status: VideoStatus) -> None:
        """
        Advance a video's status.

        Raises:
            InvalidStatusTransition: If the transition would move status backwards.
            ProgressStoreError: If the video doesn't exist or the write fails.
        """
        pass

    @abstractmethod
    def set_playlist_id(self, video_id: int, playlist_id: str) -> None:
        """Persist the platform playlist ID of a video."""
        pass

    @abstractmethod
    def record_failure(self, video_id: int, fail_count: int, fail_reason: str) -> None:
        """Persist failure counter and failure log of a video."""
        pass


class ProgressStoreError(AdapterError):
    """Base exception for progress store errors."""
    pass


class InvalidStatusTransition(ProgressStoreError):
    """Raised when a status update would regress a video."""
    pass
