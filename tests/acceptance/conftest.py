from datetime import datetime
from pathlib import Path

import pytest

from adapters.local_segment_store import LocalSegmentStore
from adapters.sql_progress_store import SqlProgressStore, open_database
from domain.models import User, Video


@pytest.fixture
def downloads(tmp_path) -> Path:
    path = tmp_path / "downloads"
    path.mkdir()
    return path


@pytest.fixture
def progress_store(tmp_path):
    """Real SQLite progress store with one user."""
    engine = open_database(f"sqlite:///{tmp_path / 'data' / 'uploader.db'}")
    store = SqlProgressStore(engine)
    store.create_schema()
    store.add_user(User(id=1, channel_name="streamer", channel_id="streamer_id", youtube_account="main"))
    yield store
    engine.dispose()


@pytest.fixture
def segment_store(downloads):
    return LocalSegmentStore(base_path=downloads)


@pytest.fixture
def make_video(progress_store, downloads):
    """Insert a Split video and write its part files (0.mp4, 1.mp4, ...)."""

    def _make(video_id: int, part_count: int, files: int = None, **kwargs) -> Video:
        video = Video(
            id=video_id,
            user_id=kwargs.pop("user_id", 1),
            name=f"Stream {video_id}",
            created_at=datetime(2023, 10, 9, 5, 33, 59),
            part_count=part_count,
            **kwargs,
        )
        progress_store.add_video(video)

        folder = downloads / str(video_id)
        folder.mkdir()
        for index in range(part_count if files is None else files):
            (folder / f"{index}.mp4").write_bytes(b"\x00" * 256)
        return video

    return _make
