"""
Thumbnail extraction using FFmpeg.

For each video, ffmpeg samples one frame every ``gap`` seconds and
writes them as numbered PNGs into the shared temp folder. File names
are prefixed with the video's id, so several extractions can write to
the same folder at once without stepping on each other.

We don't trust ffmpeg's own idea of how many frames it wrote (it depends
on the real stream length, which can differ from the probed duration).
The frames on disk after it exits are the result.
"""

import logging
import os
from pathlib import Path
from typing import Union

from aspargus.core.catalog.errors import FrameExtractionError, ToolNotFoundError
from aspargus.core.catalog.models import Video

from ..files.listing import list_matching_files, thumbnail_pattern
from .commands import Command, run_command

logger = logging.getLogger(__name__)


def sampling_filter(gap: int) -> str:
    """
    The ffmpeg video filter sampling one frame every ``gap`` seconds.

    A gap of 0 (unknown or very short duration) would ask for "1/0" frames
    per second; it is clamped to one frame per second instead.
    """
    return f"fps=1/{max(gap, 1)}"


class FrameExtractor:
    """
    FFmpeg wrapper extracting sampled thumbnails for one video at a time.

    Safe to call from several threads at once: each call only touches the
    files carrying its own video's id.
    """

    def __init__(self, temp_folder: Union[str, Path], ffmpeg_path: str = "ffmpeg") -> None:
        self._temp_folder = Path(temp_folder)
        self._ffmpeg = ffmpeg_path

    @property
    def temp_folder(self) -> Path:
        return self._temp_folder

    def command_for(self, video: Video) -> Command:
        output = self._temp_folder / thumbnail_pattern(video.id)
        return Command(
            binary=self._ffmpeg,
            args=(
                "-y",
                "-i", video.path,
                "-vf", sampling_filter(video.gap),
                str(output),
            ),
        )

    def extract(self, video: Video) -> list[str]:
        """
        Extract thumbnails for a video and return their paths in frame order.

        Raises:
            ToolNotFoundError: ffmpeg isn't installed (fatal for the batch)
            FrameExtractionError: ffmpeg failed, wrote no frame for this video, or
                old thumbnails couldn't be cleared
        """
        # leftovers from an earlier run would be picked up by the glob below
        try:
            self.remove_thumbnails(video.id)
        except OSError as e:
            raise FrameExtractionError(
                f"Couldn't clear old thumbnails for {video.path}: {e}"
            ) from e

        result = run_command(self.command_for(video))
        if result.binary_missing:
            raise ToolNotFoundError(self._ffmpeg)
        if not result.ok:
            raise FrameExtractionError(
                f"Couldn't run FFmpeg for file {video.path} (exit code {result.returncode})"
            )

        thumbnails = list_matching_files(self._temp_folder, video.id)
        if not thumbnails:
            raise FrameExtractionError(f"FFmpeg extracted no frame from {video.path}")

        logger.debug(f"Extracted {len(thumbnails)} frames for {video.path}")
        return thumbnails

    def remove_thumbnails(self, video_id: str) -> int:
        """
        Delete the thumbnails of a video. Returns how many were removed.

        Raises:
            OSError: a thumbnail exists but can't be deleted
        """
        removed = 0
        for thumbnail in list_matching_files(self._temp_folder, video_id):
            try:
                os.remove(thumbnail)
                removed += 1
            except FileNotFoundError:
                pass
        return removed
