"""Title and description rendering for uploaded parts and playlists."""
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from domain.models import (
    PrivacyStatus,
    Target,
    User,
    Video,
    VideoData,
    VideoTarget,
)
from ports.adapter_error import ErrorCode, TemplateError

# Hard limit set by YouTube for video and playlist titles.
YOUTUBE_TITLE_MAX_LENGTH = 100

SHORTEN_CHARS = "..."

# Substitution tokens
ORIGINAL_TITLE = "$$original_title$$"
ORIGINAL_DESCRIPTION = "$$original_description$$"
UPLOAD_DATE = "$$upload_date$$"
UPLOAD_DATE_SHORT = "$$upload_date_short$$"
SOURCE_URL = "$$twitch_url$$"
SOURCE_CHANNEL_NAME = "$$twitch_channel_name$$"
SOURCE_CHANNEL_URL = "$$twitch_channel_url$$"
PART_COUNT = "$$part_count$$"
PART_IDENT = "$$part_ident$$"

SOURCE_CHANNEL_URL_PATTERN = "https://twitch.tv/{channel_id}"

_DEFAULT_DESCRIPTION = (
    f"default description for video: {ORIGINAL_TITLE} from {UPLOAD_DATE}\n\n"
    f"Original stream here: \n{SOURCE_URL}\n\n"
    f"Watch {SOURCE_CHANNEL_NAME} live at: {SOURCE_CHANNEL_URL}"
)


@dataclass(frozen=True)
class Templates:
    """Built-in templates."""
    video_title: str = f"[{UPLOAD_DATE_SHORT}]{PART_IDENT} {ORIGINAL_TITLE}"
    video_description: str = _DEFAULT_DESCRIPTION
    playlist_title: str = f"[{UPLOAD_DATE_SHORT}] {ORIGINAL_TITLE}"
    playlist_description: str = _DEFAULT_DESCRIPTION


class TemplateRenderer:
    """
    Renders titles and descriptions by literal token substitution.

    Rendering is deterministic and does no I/O. Titles are always rendered
    from the built-in templates and shortened to the YouTube limit; the
    description template can be overridden and is never shortened.
    """

    def __init__(
        self,
        description_template: Optional[str] = None,
        templates: Optional[Templates] = None,
        category_id: str = "22",
    ):
        """
        Initialize renderer.

        Args:
            description_template: Override for video and playlist descriptions.
                Empty or None uses the built-in templates.
            templates: Built-in templates (defaults to Templates()).
            category_id: YouTube category of uploaded parts.
        """
        self.description_template = description_template or None
        self.templates = templates or Templates()
        self.category_id = category_id

    def render_title(self, video: Video, user: User, target: Target) -> str:
        if isinstance(target, VideoTarget):
            template = self.templates.video_title
        else:
            template = self.templates.playlist_title
        title = self.substitute(template, video, user, target)
        return shorten_string(title, YOUTUBE_TITLE_MAX_LENGTH)

    def render_description(self, video: Video, user: User, target: Target) -> str:
        template = self.description_template
        if template is None:
            if isinstance(target, VideoTarget):
                template = self.templates.video_description
            else:
                template = self.templates.playlist_description
        return self.substitute(template, video, user, target)

    def build_video_data(self, video: Video, user: User, target: Target) -> VideoData:
        """
        Build a render payload for a target.

        A PlaylistTarget fills the playlist fields, a VideoTarget fills the
        video fields and part number. Use `with_part` to derive part payloads
        from a playlist payload.
        """
        data = VideoData(
            video_category=self.category_id,
            video_privacy=PrivacyStatus.PRIVATE,
            playlist_privacy=PrivacyStatus.PRIVATE,
        )
        if isinstance(target, VideoTarget):
            return self.with_part(data, video, user, target.part)
        data.playlist_title = self.render_title(video, user, target)
        data.playlist_description = self.render_description(video, user, target)
        return data

    def with_part(self, base: VideoData, video: Video, user: User, part: int) -> VideoData:
        """Copy `base` with the video fields rendered for one part."""
        target = VideoTarget(part)
        return VideoData(
            part_number=part,
            video_title=self.render_title(video, user, target),
            video_description=self.render_description(video, user, target),
            video_tags=list(base.video_tags),
            video_category=base.video_category,
            video_privacy=base.video_privacy,
            playlist_title=base.playlist_title,
            playlist_description=base.playlist_description,
            playlist_privacy=base.playlist_privacy,
        )

    def substitute(self, template: str, video: Video, user: User, target: Target) -> str:
        total = video.part_count
        text = substitute_common(template, video, user, total)
        if isinstance(target, VideoTarget):
            part_ident = format_progress(total, target.part) if total > 1 else ""
            text = text.replace(PART_IDENT, part_ident)
        return text


def substitute_common(template: str, video: Video, user: User, total: int) -> str:
    """Replace every token shared by video and playlist targets."""
    date = localize(video.created_at, user.timezone)
    return (
        template.replace(ORIGINAL_TITLE, video.name)
        .replace(ORIGINAL_DESCRIPTION, "")
        .replace(UPLOAD_DATE, date.isoformat(sep=" "))
        .replace(UPLOAD_DATE_SHORT, date.strftime("%Y-%m-%d"))
        .replace(SOURCE_URL, video.source_url or "")
        .replace(SOURCE_CHANNEL_NAME, user.channel_name)
        .replace(SOURCE_CHANNEL_URL, SOURCE_CHANNEL_URL_PATTERN.format(channel_id=user.channel_id))
        .replace(PART_COUNT, str(total))
    )


def parse_timezone(value: str) -> tzinfo:
    """
    Parse a user timezone.

    Accepts a UTC offset ("+02:00", "-0700") or an IANA name ("Europe/Berlin").
    An empty value means UTC.

    Raises:
        TemplateError: If the value is neither.
    """
    value = (value or "").strip()
    if not value:
        return timezone.utc
    try:
        return datetime.strptime(value, "%z").tzinfo
    except ValueError:
        pass
    try:
        return ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise TemplateError(
            code=ErrorCode.PARSE_DATE,
            message=f"Invalid timezone: {value!r}",
        ) from e


def localize(instant: datetime, tz: str) -> datetime:
    """Convert a UTC instant (naive means UTC) to the given user timezone."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(parse_timezone(tz))


def format_progress(total: int, current: int) -> str:
    """Format "[current/total]", zero-padded to the digit count of total."""
    width = len(str(total))
    return f"[{current:0{width}d}/{total:0{width}d}]"


def shorten_string(s: str, target_len: Optional[int]) -> str:
    """
    Shorten a string to target_len characters, ending in "...".

    Strings within the limit (or with no limit) are returned unchanged.
    """
    if target_len is None:
        return s
    if target_len < len(SHORTEN_CHARS):
        return SHORTEN_CHARS[:target_len]
    if len(s) > target_len:
        return s[: target_len - len(SHORTEN_CHARS)] + SHORTEN_CHARS
    return s
