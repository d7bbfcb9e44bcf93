"""
Collects media files pandoc extracted into a job's media directory.

pandoc writes extracted files below the ``--extract-media`` directory, usually
in a nested ``media/`` folder, so the directory is walked recursively.
"""

from pathlib import Path
from typing import Iterator, List, Optional

from ..models import BinaryPayload, MediaItem
from ..utils.logging_config import get_logger
from ..utils.mime_detector import get_mime_type

logger = get_logger()


def _snapshot(media_dir: Path) -> List[Path]:
    if not media_dir.is_dir():
        return []
    return sorted(p for p in media_dir.rglob("*") if p.is_file())


def harvest(media_dir: str, source_file_name: Optional[str]) -> Iterator[MediaItem]:
    """
    Yield a MediaItem for every file under ``media_dir``.

    The directory listing is taken when ``harvest`` is called; files added
    later are not picked up. A missing or empty directory yields nothing. A
    file that cannot be read is logged and skipped.

    Args:
        media_dir: The job's media extraction directory
        source_file_name: Name of the document the media came from

    Returns:
        A single-pass iterator of MediaItem
    """
    root = Path(media_dir)
    files = _snapshot(root)
    logger.debug(f"Found {len(files)} media files in {media_dir}")
    return _iter_media(root, files, source_file_name)


def _iter_media(root: Path, files: List[Path], source_file_name: Optional[str]) -> Iterator[MediaItem]:
    for file_path in files:
        try:
            content = file_path.read_bytes()
        except OSError as e:
            logger.warning(f"Skipping unreadable media file {file_path}: {e}")
            continue

        yield MediaItem(
            source_file_name=source_file_name,
            image_name=file_path.relative_to(root).as_posix(),
            payload=BinaryPayload(
                data=content,
                mime_type=get_mime_type(filename=file_path.name, content=content),
                file_name=file_path.name
            )
        )
