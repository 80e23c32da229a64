"""Domain models for segment uploading."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union


class VideoStatus(str, Enum):
    """Upload progress of a whole video."""
    SPLIT = "Split"
    UPLOADING = "Uploading"
    PARTIALLY_UPLOADED = "PartiallyUploaded"
    UPLOADED = "Uploaded"
    UPLOAD_FAILED = "UploadFailed"  # reserved, never set by the uploader


class UploadStatus(str, Enum):
    """Upload progress of a single part."""
    UPLOADING = "Uploading"
    UPLOADED = "Uploaded"


class PrivacyStatus(str, Enum):
    """YouTube video privacy status."""
    PUBLIC = "public"
    UNLISTED = "unlisted"
    PRIVATE = "private"


# Statuses a batch run picks up. In-progress statuses are what a crash or a
# failed run leaves behind.
RESUMABLE_STATUSES = (
    VideoStatus.SPLIT,
    VideoStatus.UPLOADING,
    VideoStatus.PARTIALLY_UPLOADED,
)


@dataclass
class Video:
    """
    A recording that was split into ordered parts by the upstream stage.

    created_at is a UTC instant; naive values are treated as UTC and
    localized per user when rendering.
    """
    id: int
    user_id: int
    name: str
    created_at: datetime
    part_count: int

    status: VideoStatus = VideoStatus.SPLIT
    playlist_id: Optional[str] = None

    # Failure tracking
    fail_count: int = 0
    fail_reason: Optional[str] = None

    # Source platform data used for description substitution
    source_url: Optional[str] = None
    source_id: str = ""

    def __post_init__(self):
        """Convert string enums to proper enum types."""
        if isinstance(self.status, str):
            self.status = VideoStatus(self.status)


@dataclass
class User:
    """Account that owns videos and authenticates to YouTube."""
    id: int
    channel_name: str = ""
    channel_id: str = ""
    timezone: str = "+00:00"  # offset ("-07:00") or IANA name ("Europe/Berlin")
    youtube_account: str = ""
    active: bool = True


@dataclass
class VideoPartUpload:
    """Persisted record of one part's upload attempt."""
    video_id: int
    part: int  # 1-based
    status: UploadStatus = UploadStatus.UPLOADING
    youtube_video_id: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.status, str):
            self.status = UploadStatus(self.status)


@dataclass(frozen=True)
class PartFile:
    """A segment file on disk and the part number parsed from its name."""
    path: Path
    part_number: int


@dataclass(frozen=True)
class VideoTarget:
    """Render target for a single uploaded part."""
    part: int


@dataclass(frozen=True)
class PlaylistTarget:
    """Render target for the playlist grouping all parts."""


Target = Union[VideoTarget, PlaylistTarget]


@dataclass
class VideoData:
    """
    Render payload sent to the platform.

    Combines a Video, its User and a target into concrete metadata. Playlist
    fields are shared by every part of a video, the video fields are filled
    per part.
    """
    part_number: int = 0
    video_title: str = ""
    video_description: str = ""
    video_tags: List[str] = field(default_factory=list)
    video_category: str = "22"  # People & Blogs
    video_privacy: PrivacyStatus = PrivacyStatus.PRIVATE
    playlist_title: str = ""
    playlist_description: str = ""
    playlist_privacy: PrivacyStatus = PrivacyStatus.PRIVATE
