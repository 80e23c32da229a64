"""Local filesystem segment store adapter."""
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Union

from domain.models import PartFile
from ports.adapter_error import ErrorCode, SegmentError
from ports.segment_store import SegmentStore

logger = logging.getLogger(__name__)


class LocalSegmentStore(SegmentStore):
    """
    Local filesystem implementation of SegmentStore.

    Parts of a video live in `<base_path>/<video_id>/` and are named by their
    zero-based index (`0.mp4`, `1.mp4`, ...). Part numbers are 1-based.
    """

    def __init__(
        self,
        base_path: Union[str, Path],
        extension: str = "mp4",
        part_number_offset: int = 1,
    ):
        """
        Initialize local segment store.

        Args:
            base_path: Download root containing one folder per video.
            extension: Container extension of part files (without dot).
            part_number_offset: Added to the numeric file stem to get the part number.
        """
        self.base_path = Path(base_path)
        self.extension = extension.lstrip(".")
        self.part_number_offset = part_number_offset

    def folder_for(self, video_id: int) -> Path:
        """Return the parts folder of a video."""
        return self.base_path / str(video_id)

    def list_part_files(self, video_id: int) -> List[PartFile]:
        folder = self.folder_for(video_id)
        logger.debug(f"Listing parts of video {video_id} in '{folder}'")

        try:
            entries = list(folder.iterdir())
        except OSError as e:
            raise SegmentError(
                code=ErrorCode.READ_PARTS_FOLDER,
                message=f"Cannot read parts folder: {folder}",
                details={"error": str(e)},
            ) from e

        parts: Dict[int, Path] = {}
        for path in entries:
            part_number = self.parse_part_number(path)
            if part_number in parts:
                raise SegmentError(
                    code=ErrorCode.DUPLICATE_PART_NUMBER,
                    message=f"Part {part_number} found more than once",
                    details={"paths": [str(parts[part_number]), str(path)]},
                )
            parts[part_number] = path

        return [PartFile(path=parts[n], part_number=n) for n in sorted(parts)]

    def get_part_files(
        self, video_id: int, expected_count: int, exclude: Iterable[int] = ()
    ) -> List[PartFile]:
        excluded = set(exclude)
        parts = [p for p in self.list_part_files(video_id) if p.part_number not in excluded]

        if len(parts) != expected_count:
            raise SegmentError(
                code=ErrorCode.PART_COUNT_MISMATCH,
                message=f"Expected {expected_count} parts but found {len(parts)}",
                details={"expected": expected_count, "actual": len(parts)},
            )
        return parts

    def remove(self, part_file: PartFile) -> None:
        try:
            part_file.path.unlink()
            logger.debug(f"Removed uploaded part file: {part_file.path}")
        except FileNotFoundError:
            logger.warning(f"Part file already gone: {part_file.path}")
        except OSError as e:
            raise SegmentError(
                code=ErrorCode.REMOVE_PART_FILE,
                message=f"Failed to remove part file: {part_file.path.name}",
                details={"path": str(part_file.path), "error": str(e)},
            ) from e

    def parse_part_number(self, path: Path) -> int:
        """
        Parse the part number from a part file name.

        Raises:
            SegmentError: If the extension, stem or encoding is invalid.
        """
        suffix = path.suffix.lstrip(".")
        if suffix != self.extension:
            if not suffix:
                logger.warning(f"Path has no extension: {path}")
            else:
                logger.warning(f"Path has not the expected extension (.{self.extension}): {path}")
            raise SegmentError(
                code=ErrorCode.WRONG_FILE_EXTENSION,
                message=f"Unexpected file in parts folder: {path.name!r}",
                details={"expected": self.extension},
            )

        stem = path.stem
        if not stem:
            raise SegmentError(
                code=ErrorCode.MISSING_FILE_STEM,
                message=f"Part file has no name: {path.name!r}",
            )

        try:
            stem.encode("utf-8")
        except UnicodeEncodeError as e:
            raise SegmentError(
                code=ErrorCode.CONVERT_PATH_TO_STRING,
                message=f"Part file name is not valid UTF-8: {path.name!r}",
            ) from e

        if not (stem.isascii() and stem.isdigit()):
            raise SegmentError(
                code=ErrorCode.PARSE_PART_NUMBER,
                message=f"Part file name is not a number: {stem!r}",
            )

        return int(stem) + self.part_number_offset
