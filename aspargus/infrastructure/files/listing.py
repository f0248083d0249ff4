"""
Directory listing helpers.

The catalog doesn't care where paths come from; these helpers are the
two places we need to look at a directory: picking the videos to analyse
out of a folder, and finding the thumbnails ffmpeg wrote for a video.
"""

import logging
from pathlib import Path
from typing import Optional, Union

logger = logging.getLogger(__name__)


def filter_files_in_dir(
    dir_path: Union[str, Path],
    file_name_start: Optional[str] = None,
    file_name_end: Optional[str] = None,
) -> list[str]:
    """
    List the files of a directory, alphabetically, between two file names.

    Both bounds are inclusive and compared as plain strings, so they don't
    have to name files that actually exist. Sub-directories are ignored.

    Args:
        dir_path: The directory to list
        file_name_start: First file name to keep, None to start at the beginning
        file_name_end: Last file name to keep, None to go to the end

    Returns:
        Full paths, sorted by file name. Empty if the directory is missing.
    """
    directory = Path(dir_path)
    try:
        entries = sorted(
            (entry for entry in directory.iterdir() if entry.is_file()),
            key=lambda entry: entry.name,
        )
    except OSError as e:
        logger.error(f"Can't read directory {directory}: {e}")
        return []

    selected = []
    for entry in entries:
        if file_name_start is not None and entry.name < file_name_start:
            continue
        if file_name_end is not None and entry.name > file_name_end:
            continue
        selected.append(str(entry))

    logger.debug(f"{len(selected)} files selected in {directory}")
    return selected


def thumbnail_pattern(video_id: str) -> str:
    """The ffmpeg output pattern for a video's thumbnails."""
    return f"{video_id}_%04d.png"


def list_matching_files(temp_folder: Union[str, Path], video_id: str) -> list[str]:
    """
    Find the thumbnails extracted for a video, in frame order.

    Thumbnails are named ``<video_id>_<frame number>.png``; the frame number
    is zero padded so a name sort is a frame sort.
    """
    folder = Path(temp_folder)
    return sorted(str(path) for path in folder.glob(f"{video_id}_[0-9]*.png"))
