"""Interface for segment file discovery."""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List

from domain.models import PartFile


class SegmentStore(ABC):
    """
    Locates the part files of a split video.

    Implementation examples: local filesystem, mounted network share.
    """

    @abstractmethod
    def list_part_files(self, video_id: int) -> List[PartFile]:
        """
        List and parse all part files of a video, ascending by part number.

        Raises:
            SegmentError: If the folder can't be read or a file name is invalid.
        """
        pass

    @abstractmethod
    def get_part_files(
        self, video_id: int, expected_count: int, exclude: Iterable[int] = ()
    ) -> List[PartFile]:
        """
        List part files and require an exact count.

        Args:
            video_id: Video whose parts are listed.
            expected_count: Number of parts that must be found.
            exclude: Part numbers to leave out before counting.

        Returns:
            Part files sorted ascending by part number.

        Raises:
            SegmentError: If names are invalid or the count doesn't match.
        """
        pass

    @abstractmethod
    def remove(self, part_file: PartFile) -> None:
        """
        Delete a part file once its upload is recorded.

        Raises:
            SegmentError: If deletion fails.
        """
        pass
