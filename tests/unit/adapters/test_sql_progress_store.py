"""Unit tests for SqlProgressStore adapter."""
from datetime import datetime, timedelta, timezone

import pytest

from adapters.sql_progress_store import SqlProgressStore, open_database
from domain.models import RESUMABLE_STATUSES, UploadStatus, User, Video, VideoStatus
from ports.adapter_error import ErrorCode
from ports.progress_store import InvalidStatusTransition, ProgressStoreError


@pytest.fixture
def store(tmp_path):
    """SqlProgressStore on a SQLite file with one user."""
    engine = open_database(f"sqlite:///{tmp_path / 'db' / 'progress.db'}")
    store = SqlProgressStore(engine)
    store.create_schema()
    store.add_user(User(id=1, channel_name="streamer", channel_id="sid", timezone="-07:00"))
    yield store
    engine.dispose()


def add_video(store, video_id, status=VideoStatus.SPLIT, created_at=None, **kwargs):
    video = Video(
        id=video_id,
        user_id=1,
        name=f"Video {video_id}",
        created_at=created_at or datetime(2023, 10, 9, 5, 33, 59) + timedelta(minutes=video_id),
        part_count=3,
        status=status,
        **kwargs,
    )
    store.add_video(video)
    return video


@pytest.mark.unit
class TestOpenDatabase:
    """Tests for engine creation."""

    def test_creates_parent_directory(self, tmp_path):
        engine = open_database(f"sqlite:///{tmp_path / 'nested' / 'dir' / 'db.sqlite'}")
        try:
            assert (tmp_path / "nested" / "dir").is_dir()
        finally:
            engine.dispose()

    def test_in_memory(self):
        engine = open_database("sqlite:///:memory:")
        SqlProgressStore(engine).create_schema()
        engine.dispose()


@pytest.mark.unit
class TestReads:
    """Tests for queries."""

    def test_videos_by_status_oldest_first(self, store):
        add_video(store, 3, created_at=datetime(2023, 1, 3))
        add_video(store, 1, created_at=datetime(2023, 1, 1))
        add_video(store, 2, status=VideoStatus.UPLOADED, created_at=datetime(2023, 1, 2))
        add_video(store, 4, status=VideoStatus.PARTIALLY_UPLOADED, created_at=datetime(2023, 1, 4))

        videos = store.get_videos_by_status(RESUMABLE_STATUSES)

        assert [v.id for v in videos] == [1, 3, 4]
        assert videos[2].status == VideoStatus.PARTIALLY_UPLOADED

    def test_videos_by_status_limit(self, store):
        for video_id in (1, 2, 3):
            add_video(store, video_id)

        assert [v.id for v in store.get_videos_by_status([VideoStatus.SPLIT], limit=2)] == [1, 2]

    def test_videos_with_fewer_failures_first(self, store):
        add_video(store, 1, status=VideoStatus.UPLOADING, created_at=datetime(2023, 1, 1), fail_count=3)
        add_video(store, 2, created_at=datetime(2023, 1, 2))
        add_video(store, 3, status=VideoStatus.PARTIALLY_UPLOADED, created_at=datetime(2023, 1, 3), fail_count=1)

        assert [v.id for v in store.get_videos_by_status(RESUMABLE_STATUSES)] == [2, 3, 1]
        assert [v.id for v in store.get_videos_by_status(RESUMABLE_STATUSES, limit=1)] == [2]

    def test_video_round_trip(self, store):
        add_video(
            store,
            7,
            created_at=datetime(2023, 10, 9, 5, 33, 59, tzinfo=timezone.utc),
            playlist_id="PL1",
            source_url="https://www.twitch.tv/videos/1",
        )

        video = store.get_video(7)

        assert video.created_at == datetime(2023, 10, 9, 5, 33, 59)
        assert video.playlist_id == "PL1"
        assert video.source_url == "https://www.twitch.tv/videos/1"
        assert video.fail_count == 0
        assert video.fail_reason is None

    def test_aware_created_at_is_stored_as_utc(self, store):
        add_video(store, 7, created_at=datetime(2023, 10, 8, 22, 33, 59, tzinfo=timezone(timedelta(hours=-7))))
        assert store.get_video(7).created_at == datetime(2023, 10, 9, 5, 33, 59)

    def test_unknown_video_and_user(self, store):
        assert store.get_video(99) is None
        assert store.get_user(99) is None

    def test_get_user(self, store):
        user = store.get_user(1)
        assert user.channel_name == "streamer"
        assert user.timezone == "-07:00"

    def test_get_users_active_only(self, store):
        store.add_user(User(id=2, channel_name="retired", active=False))

        assert [u.id for u in store.get_users()] == [1]
        assert [u.id for u in store.get_users(active_only=False)] == [1, 2]


@pytest.mark.unit
class TestPartUploads:
    """Tests for per-part records."""

    def test_insert_and_mark(self, store):
        add_video(store, 7)

        record = store.insert_part_upload(7, 1)
        assert record.status == UploadStatus.UPLOADING
        assert record.youtube_video_id is None

        store.mark_part_uploaded(7, 1, "yt_1")

        [saved] = store.get_part_uploads(7)
        assert saved.status == UploadStatus.UPLOADED
        assert saved.youtube_video_id == "yt_1"

    def test_insert_reuses_interrupted_record(self, store):
        add_video(store, 7)
        store.insert_part_upload(7, 2)

        record = store.insert_part_upload(7, 2)

        assert record.status == UploadStatus.UPLOADING
        assert len(store.get_part_uploads(7)) == 1

    def test_insert_rejects_uploaded_part(self, store):
        add_video(store, 7)
        store.insert_part_upload(7, 1)
        store.mark_part_uploaded(7, 1, "yt_1")

        with pytest.raises(ProgressStoreError) as exc_info:
            store.insert_part_upload(7, 1)
        assert exc_info.value.code == ErrorCode.PART_ALREADY_UPLOADED

    def test_mark_without_record(self, store):
        add_video(store, 7)
        with pytest.raises(ProgressStoreError) as exc_info:
            store.mark_part_uploaded(7, 3, "yt_3")
        assert exc_info.value.code == ErrorCode.ROW_NOT_FOUND

    def test_records_ordered_by_part(self, store):
        add_video(store, 7)
        for part in (3, 1, 2):
            store.insert_part_upload(7, part)
        assert [r.part for r in store.get_part_uploads(7)] == [1, 2, 3]


@pytest.mark.unit
class TestVideoUpdates:
    """Tests for video status and bookkeeping updates."""

    def test_forward_transitions(self, store):
        add_video(store, 7)

        for status in (
            VideoStatus.UPLOADING,
            VideoStatus.PARTIALLY_UPLOADED,
            VideoStatus.PARTIALLY_UPLOADED,
            VideoStatus.UPLOADED,
        ):
            store.set_video_status(7, status)

        assert store.get_video(7).status == VideoStatus.UPLOADED

    def test_regression_is_rejected(self, store):
        add_video(store, 7, status=VideoStatus.PARTIALLY_UPLOADED)

        with pytest.raises(InvalidStatusTransition) as exc_info:
            store.set_video_status(7, VideoStatus.UPLOADING)

        assert exc_info.value.details == {"from": "PartiallyUploaded", "to": "Uploading"}
        assert store.get_video(7).status == VideoStatus.PARTIALLY_UPLOADED

    def test_uploaded_is_final(self, store):
        add_video(store, 7, status=VideoStatus.UPLOADED)
        with pytest.raises(InvalidStatusTransition):
            store.set_video_status(7, VideoStatus.PARTIALLY_UPLOADED)

    def test_status_of_unknown_video(self, store):
        with pytest.raises(ProgressStoreError) as exc_info:
            store.set_video_status(99, VideoStatus.UPLOADING)
        assert exc_info.value.code == ErrorCode.ROW_NOT_FOUND

    def test_set_playlist_id(self, store):
        add_video(store, 7)
        store.set_playlist_id(7, "PL9")
        assert store.get_video(7).playlist_id == "PL9"

    def test_record_failure(self, store):
        add_video(store, 7)
        store.record_failure(7, 2, "2: boom\n\n1: bang\n\n")

        video = store.get_video(7)
        assert video.fail_count == 2
        assert video.fail_reason == "2: boom\n\n1: bang\n\n"

    def test_update_unknown_video(self, store):
        with pytest.raises(ProgressStoreError) as exc_info:
            store.record_failure(99, 1, "1: boom\n\n")
        assert exc_info.value.code == ErrorCode.ROW_NOT_FOUND


@pytest.mark.unit
class TestDatabaseErrors:
    """Tests for SQLAlchemy error mapping."""

    def test_duplicate_video_is_database_error(self, store):
        add_video(store, 7)
        with pytest.raises(ProgressStoreError) as exc_info:
            add_video(store, 7)
        assert exc_info.value.code == ErrorCode.DATABASE_ERROR
