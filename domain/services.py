"""Domain service for split video upload orchestration."""
import logging
from typing import List, Optional, Set

from domain.client_registry import AccountClientRegistry
from domain.models import (
    RESUMABLE_STATUSES,
    PartFile,
    PlaylistTarget,
    UploadStatus,
    User,
    Video,
    VideoData,
    VideoStatus,
)
from domain.templates import TemplateRenderer
from ports.adapter_error import AdapterError, ConfigurationError, ErrorCode, SegmentError
from ports.progress_store import ProgressStore
from ports.segment_store import SegmentStore
from ports.video_platform import PlatformError, VideoPlatform

logger = logging.getLogger(__name__)


class UploadService:
    """
    Orchestrates uploading of split videos.

    Responsibilities:
    - Fetch videos ready for upload (or interrupted earlier) from the progress store
    - Resolve the owner's platform client
    - Validate segment files before any remote call
    - Create one playlist per video and attach every part in ascending order
    - Persist video and part progress after every remote step
    - Record failure diagnostics and continue with the next video

    Everything runs sequentially; each persisted state change happens after
    the remote call it describes has returned.
    """

    def __init__(
        self,
        progress_store: ProgressStore,
        segment_store: SegmentStore,
        clients: AccountClientRegistry,
        renderer: TemplateRenderer,
        max_items: Optional[int] = None,
        dry_run: bool = False,
    ):
        """
        Initialize upload service.

        Args:
            progress_store: Store for videos, users and part records.
            segment_store: Store for locating segment files.
            clients: Platform client per owning user.
            renderer: Title/description renderer.
            max_items: Maximum videos per run (None for no limit).
            dry_run: If True, validate and render but don't upload or change state.
        """
        self.progress_store = progress_store
        self.segment_store = segment_store
        self.clients = clients
        self.renderer = renderer
        self.max_items = max_items
        self.dry_run = dry_run

    def run(self) -> dict:
        """
        Upload every eligible video once.

        Returns:
            Summary dict with counts: processed, succeeded, failed.
        """
        logger.info("Starting upload workflow")
        videos = self.progress_store.get_videos_by_status(RESUMABLE_STATUSES, self.max_items)
        logger.info(f"Got {len(videos)} videos to upload")

        stats = {
            "processed": 0,
            "succeeded": 0,
            "failed": 0,
        }

        for video in videos:
            stats["processed"] += 1
            try:
                self.upload_video(video)
                stats["succeeded"] += 1
                logger.info(f"Uploaded video: {video.id}: {video.name}")
            except AdapterError as e:
                logger.error(f"Error while uploading the video: {video.id}: {e}")
                stats["failed"] += 1
                self._record_failure(video, e)
            except Exception as e:
                logger.exception(f"Unexpected error while uploading the video: {video.id}: {e}")
                stats["failed"] += 1
                self._record_failure(video, e)

        logger.info(
            f"Upload workflow completed: "
            f"processed={stats['processed']}, "
            f"succeeded={stats['succeeded']}, "
            f"failed={stats['failed']}"
        )

        return stats

    def upload_video(self, video: Video) -> None:
        """
        Upload all remaining parts of a video.

        Workflow:
        1. Resolve the owner's client
        2. Mark video Uploading
        3. Discover and validate remaining part files
        4. Look up the owner
        5. Create the playlist unless one is already persisted
        6. Upload, attach and record each part in order
        7. Mark video Uploaded

        Raises:
            AdapterError: On any failure; the video is left in its last reached status.
        """
        logger.info(f"Processing video {video.id} ({video.name}), status={video.status.value}")

        client = None if self.dry_run else self.clients.get(video.user_id)

        if video.status == VideoStatus.SPLIT and not self.dry_run:
            self._set_status(video, VideoStatus.UPLOADING)

        done = self._uploaded_parts(video)
        pending = self._discover_parts(video, done)

        user = self.progress_store.get_user(video.user_id)
        if user is None:
            raise ConfigurationError(
                code=ErrorCode.UNKNOWN_USER,
                message=f"Unknown user {video.user_id}",
            )

        playlist_data = self.renderer.build_video_data(video, user, PlaylistTarget())

        if self.dry_run:
            self._log_dry_run(video, user, playlist_data, pending)
            return

        playlist_id = self._ensure_playlist(video, client, playlist_data)

        for part_file in pending:
            self._upload_part(video, user, client, playlist_data, playlist_id, part_file)

        logger.info(f"All parts uploaded for video: {video.id}")
        self._set_status(video, VideoStatus.UPLOADED)

    def _uploaded_parts(self, video: Video) -> Set[int]:
        """Part numbers already recorded as Uploaded."""
        return {
            record.part
            for record in self.progress_store.get_part_uploads(video.id)
            if record.status == UploadStatus.UPLOADED
        }

    def _discover_parts(self, video: Video, done: Set[int]) -> List[PartFile]:
        """
        Return part files still to upload, ascending.

        Files of parts already recorded as Uploaded are deleted instead of
        being uploaded again.

        Raises:
            SegmentError: If files are invalid or their count doesn't match.
        """
        remaining = video.part_count - len(done)
        if remaining <= 0:
            logger.info(f"Video {video.id}: all {video.part_count} parts already recorded as uploaded")
            return []

        if done:
            logger.info(f"Video {video.id}: resuming, {len(done)} of {video.part_count} parts already uploaded")
            for leftover in self.segment_store.list_part_files(video.id):
                if leftover.part_number in done and not self.dry_run:
                    logger.warning(
                        f"Video {video.id}: part {leftover.part_number} is already uploaded, "
                        f"removing leftover file {leftover.path}"
                    )
                    self.segment_store.remove(leftover)

        pending = self.segment_store.get_part_files(video.id, remaining, exclude=done)

        for part_file in pending:
            if not 1 <= part_file.part_number <= video.part_count:
                raise SegmentError(
                    code=ErrorCode.PARSE_PART_NUMBER,
                    message=(
                        f"Part {part_file.part_number} is out of range "
                        f"for a video with {video.part_count} parts"
                    ),
                    details={"path": str(part_file.path)},
                )

        logger.debug(f"Video {video.id}: parts to upload: {[p.part_number for p in pending]}")
        return pending

    def _ensure_playlist(self, video: Video, client: VideoPlatform, data: VideoData) -> str:
        """Create the playlist of a video unless one is already persisted."""
        if video.playlist_id:
            logger.info(f"Video {video.id}: reusing playlist {video.playlist_id}")
            return video.playlist_id

        logger.debug(f"Video {video.id}: creating playlist '{data.playlist_title}'")
        playlist_id = client.create_playlist(data)
        self.progress_store.set_playlist_id(video.id, playlist_id)
        video.playlist_id = playlist_id
        logger.info(f"Video {video.id}: created playlist {playlist_id}")
        return playlist_id

    def _upload_part(
        self,
        video: Video,
        user: User,
        client: VideoPlatform,
        playlist_data: VideoData,
        playlist_id: str,
        part_file: PartFile,
    ) -> None:
        part_number = part_file.part_number
        self.progress_store.insert_part_upload(video.id, part_number)

        data = self.renderer.with_part(playlist_data, video, user, part_number)
        logger.debug(
            f"Uploading part {part_number} for video: {video.id} from path: {part_file.path}"
        )

        try:
            youtube_video_id = client.upload_video(part_file.path, data)
        except PlatformError as e:
            logger.error(f"Video {video.id}: could not upload part {part_number}: {e}")
            raise

        logger.info(f"Video {video.id}: uploaded part {part_number} as {youtube_video_id}")
        client.add_to_playlist(youtube_video_id, playlist_id)
        self.progress_store.mark_part_uploaded(video.id, part_number, youtube_video_id)
        self.segment_store.remove(part_file)

        self._set_status(video, VideoStatus.PARTIALLY_UPLOADED)

    def _set_status(self, video: Video, status: VideoStatus) -> None:
        logger.debug(f"Setting status of video {video.id} to {status.value}")
        self.progress_store.set_video_status(video.id, status)
        video.status = status

    def _record_failure(self, video: Video, error: Exception) -> None:
        """
        Persist failure counter and prepend the error to the failure log.

        Args:
            video: Failed video.
            error: Error that aborted the video.
        """
        fail_count = video.fail_count + 1
        fail_reason = f"{fail_count}: {error}\n\n{video.fail_reason or ''}"
        try:
            self.progress_store.record_failure(video.id, fail_count, fail_reason)
        except Exception as e:
            logger.error(f"Video {video.id}: failed to record failure: {e}", exc_info=True)
            return
        video.fail_count = fail_count
        video.fail_reason = fail_reason

    def _log_dry_run(
        self, video: Video, user: User, playlist_data: VideoData, pending: List[PartFile]
    ) -> None:
        logger.info(f"Video {video.id}: DRY RUN - playlist '{playlist_data.playlist_title}'")
        for part_file in pending:
            data = self.renderer.with_part(playlist_data, video, user, part_file.part_number)
            logger.info(f"Video {video.id}: DRY RUN - would upload {part_file.path} as '{data.video_title}'")
