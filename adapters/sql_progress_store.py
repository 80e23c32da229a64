"""SQL database progress store implementation."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    select,
    update,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from domain.models import UploadStatus, User, Video, VideoPartUpload, VideoStatus
from ports.adapter_error import ErrorCode
from ports.progress_store import (
    InvalidStatusTransition,
    ProgressStore,
    ProgressStoreError,
    allowed_sources,
)

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    channel_id: Mapped[str] = mapped_column(String(100), default="")
    channel_name: Mapped[str] = mapped_column(String(100), default="")
    timezone: Mapped[str] = mapped_column(String(64), default="+00:00")
    youtube_account: Mapped[str] = mapped_column(String(100), default="")
    active: Mapped[bool] = mapped_column(Boolean, default=True)


class VideoRow(Base):
    __tablename__ = "videos"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    name: Mapped[str] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime, index=True)  # naive UTC
    status: Mapped[str] = mapped_column(String(32), index=True, default=VideoStatus.SPLIT.value)
    part_count: Mapped[int] = mapped_column(Integer, default=0)
    youtube_playlist_id: Mapped[Optional[str]] = mapped_column(String(64))
    fail_count: Mapped[int] = mapped_column(Integer, default=0)
    fail_reason: Mapped[Optional[str]] = mapped_column(Text)
    source_id: Mapped[str] = mapped_column(String(100), default="")
    source_url: Mapped[Optional[str]] = mapped_column(String(500))


class VideoPartUploadRow(Base):
    __tablename__ = "video_part_uploads"

    # Composite key: one record per (video, part)
    video_id: Mapped[int] = mapped_column(ForeignKey("videos.id"), primary_key=True)
    part: Mapped[int] = mapped_column(Integer, primary_key=True)
    status: Mapped[str] = mapped_column(String(32), default=UploadStatus.UPLOADING.value)
    youtube_video_id: Mapped[Optional[str]] = mapped_column(String(64))


def open_database(url: str, echo: bool = False) -> Engine:
    """
    Create an engine for a database URL.

    For file-based SQLite the parent directory is created.
    """
    parsed = make_url(url)
    if parsed.drivername.startswith("sqlite") and parsed.database not in (None, "", ":memory:"):
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, echo=echo)


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class SqlProgressStore(ProgressStore):
    """
    SQLAlchemy implementation of ProgressStore.

    Each operation runs in its own short transaction. Status updates are
    guarded in the UPDATE statement itself so a regression never reaches
    the database.
    """

    def __init__(self, engine: Engine):
        """
        Initialize store.

        Args:
            engine: SQLAlchemy engine (see open_database()).
        """
        self.engine = engine
        self._sessions = sessionmaker(engine, expire_on_commit=False)

    def create_schema(self) -> None:
        """Create all tables that don't exist yet."""
        Base.metadata.create_all(self.engine)
        logger.debug(f"Schema ready on {self.engine.url.render_as_string(hide_password=True)}")

    @contextmanager
    def _transaction(self, action: str) -> Iterator[Session]:
        try:
            with self._sessions.begin() as session:
                yield session
        except ProgressStoreError:
            raise
        except SQLAlchemyError as e:
            raise ProgressStoreError(
                code=ErrorCode.DATABASE_ERROR,
                message=f"Failed to {action}",
                details={"error": str(e)},
            ) from e

    # Reads

    def get_videos_by_status(
        self, statuses: Sequence[VideoStatus], limit: Optional[int] = None
    ) -> List[Video]:
        query = (
            select(VideoRow)
            .where(VideoRow.status.in_([s.value for s in statuses]))
            .order_by(VideoRow.fail_count.asc(), VideoRow.created_at.asc(), VideoRow.id.asc())
        )
        if limit is not None:
            query = query.limit(limit)

        with self._transaction("fetch videos") as session:
            return [self._to_video(row) for row in session.scalars(query)]

    def get_video(self, video_id: int) -> Optional[Video]:
        with self._transaction("fetch video") as session:
            row = session.get(VideoRow, video_id)
            return self._to_video(row) if row else None

    def get_user(self, user_id: int) -> Optional[User]:
        with self._transaction("fetch user") as session:
            row = session.get(UserRow, user_id)
            return self._to_user(row) if row else None

    def get_users(self, active_only: bool = True) -> List[User]:
        query = select(UserRow).order_by(UserRow.id)
        if active_only:
            query = query.where(UserRow.active.is_(True))
        with self._transaction("fetch users") as session:
            return [self._to_user(row) for row in session.scalars(query)]

    def get_part_uploads(self, video_id: int) -> List[VideoPartUpload]:
        query = (
            select(VideoPartUploadRow)
            .where(VideoPartUploadRow.video_id == video_id)
            .order_by(VideoPartUploadRow.part)
        )
        with self._transaction("fetch part uploads") as session:
            return [self._to_part(row) for row in session.scalars(query)]

    # Writes

    def add_user(self, user: User) -> None:
        """Insert a user (used by upstream stages and tests)."""
        with self._transaction("insert user") as session:
            session.add(
                UserRow(
                    id=user.id,
                    channel_id=user.channel_id,
                    channel_name=user.channel_name,
                    timezone=user.timezone,
                    youtube_account=user.youtube_account,
                    active=user.active,
                )
            )

    def add_video(self, video: Video) -> None:
        """Insert a video (used by upstream stages and tests)."""
        with self._transaction("insert video") as session:
            session.add(
                VideoRow(
                    id=video.id,
                    user_id=video.user_id,
                    name=video.name,
                    created_at=_to_naive_utc(video.created_at),
                    status=video.status.value,
                    part_count=video.part_count,
                    youtube_playlist_id=video.playlist_id,
                    fail_count=video.fail_count,
                    fail_reason=video.fail_reason,
                    source_id=video.source_id,
                    source_url=video.source_url,
                )
            )

    def insert_part_upload(self, video_id: int, part: int) -> VideoPartUpload:
        with self._transaction("insert part upload") as session:
            row = session.get(VideoPartUploadRow, (video_id, part))
            if row is None:
                row = VideoPartUploadRow(
                    video_id=video_id,
                    part=part,
                    status=UploadStatus.UPLOADING.value,
                    youtube_video_id=None,
                )
                session.add(row)
            elif row.status == UploadStatus.UPLOADED.value:
                raise ProgressStoreError(
                    code=ErrorCode.PART_ALREADY_UPLOADED,
                    message=f"Part {part} of video {video_id} is already uploaded",
                    details={"youtube_video_id": row.youtube_video_id},
                )
            else:
                logger.info(f"Video {video_id}: retrying interrupted upload of part {part}")
            return self._to_part(row)

    def mark_part_uploaded(self, video_id: int, part: int, youtube_video_id: str) -> None:
        with self._transaction("update part upload") as session:
            result = session.execute(
                update(VideoPartUploadRow)
                .where(
                    VideoPartUploadRow.video_id == video_id,
                    VideoPartUploadRow.part == part,
                )
                .values(status=UploadStatus.UPLOADED.value, youtube_video_id=youtube_video_id)
            )
            if result.rowcount == 0:
                raise ProgressStoreError(
                    code=ErrorCode.ROW_NOT_FOUND,
                    message=f"No upload record for part {part} of video {video_id}",
                )

    def set_video_status(self, video_id: int, status: VideoStatus) -> None:
        sources = [s.value for s in allowed_sources(status)]
        with self._transaction("save video status") as session:
            result = session.execute(
                update(VideoRow)
                .where(VideoRow.id == video_id, VideoRow.status.in_(sources))
                .values(status=status.value)
            )
            if result.rowcount:
                return

            current = session.scalar(select(VideoRow.status).where(VideoRow.id == video_id))
            if current is None:
                raise ProgressStoreError(
                    code=ErrorCode.ROW_NOT_FOUND,
                    message=f"Video {video_id} not found",
                )
            raise InvalidStatusTransition(
                code=ErrorCode.INVALID_STATUS_TRANSITION,
                message=f"Video {video_id} can't go from {current} to {status.value}",
                details={"from": current, "to": status.value},
            )

    def set_playlist_id(self, video_id: int, playlist_id: str) -> None:
        self._update_video(video_id, "save playlist id", youtube_playlist_id=playlist_id)

    def record_failure(self, video_id: int, fail_count: int, fail_reason: str) -> None:
        self._update_video(video_id, "save failure", fail_count=fail_count, fail_reason=fail_reason)

    def _update_video(self, video_id: int, action: str, **values) -> None:
        with self._transaction(action) as session:
            result = session.execute(update(VideoRow).where(VideoRow.id == video_id).values(**values))
            if result.rowcount == 0:
                raise ProgressStoreError(
                    code=ErrorCode.ROW_NOT_FOUND,
                    message=f"Video {video_id} not found",
                )

    # Row mapping

    @staticmethod
    def _to_video(row: VideoRow) -> Video:
        return Video(
            id=row.id,
            user_id=row.user_id,
            name=row.name,
            created_at=row.created_at,
            part_count=row.part_count,
            status=VideoStatus(row.status),
            playlist_id=row.youtube_playlist_id,
            fail_count=row.fail_count,
            fail_reason=row.fail_reason,
            source_url=row.source_url,
            source_id=row.source_id,
        )

    @staticmethod
    def _to_user(row: UserRow) -> User:
        return User(
            id=row.id,
            channel_name=row.channel_name,
            channel_id=row.channel_id,
            timezone=row.timezone,
            youtube_account=row.youtube_account,
            active=row.active,
        )

    @staticmethod
    def _to_part(row: VideoPartUploadRow) -> VideoPartUpload:
        return VideoPartUpload(
            video_id=row.video_id,
            part=row.part,
            status=UploadStatus(row.status),
            youtube_video_id=row.youtube_video_id,
        )
