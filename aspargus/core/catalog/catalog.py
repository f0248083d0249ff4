"""
The video catalog: admission and pipeline sequencing.

The catalog owns the ordered list of videos for a run and walks them
through each stage:

1. add_videos: probe each file, give it a numeric id
2. extract_frames: sample thumbnails, all videos in parallel
3. run_models: story/resume model calls, one video at a time
4. rename_videos: rename files from a template, in parallel

A problem with one video never stops the others: it is logged and the
video is dropped (at admission) or marked skip (afterwards). The only
thing that stops a batch is a missing ffmpeg/ffprobe binary.

Frame extraction and renaming only touch each video's own files, so they
run at full host parallelism. Model calls go to servers that are often a
single local GPU, so they are deliberately kept sequential.
"""

import asyncio
import logging
import os
import threading
from typing import Iterable, Optional, Protocol

from aspargus.config.settings import AspargusSettings

from .errors import (
    FrameExtractionError,
    MetadataExtractionError,
    ModelClientError,
    RenameError,
    SummaryError,
    ToolNotFoundError,
)
from .models import Video, VideoMetadata
from .rename import rename_video
from .summarizer import ModelStage, SummaryStrategy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class MetadataProber(Protocol):
    """Something that can read a video file's duration and creation date."""

    def probe(self, video_path: str) -> VideoMetadata:
        ...


class ThumbnailExtractor(Protocol):
    """Something that can sample thumbnails out of a video file."""

    def extract(self, video: Video) -> list[str]:
        ...

    def remove_thumbnails(self, video_id: str) -> int:
        ...


# ---------------------------------------------------------------------------
# First fatal error across workers
# ---------------------------------------------------------------------------

class FirstErrorCell:
    """
    Holds the first error reported by a set of parallel workers.

    Single assignment: once an error is stored, later ones are dropped.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None

    def set(self, error: BaseException) -> bool:
        """Store ``error`` if the cell is empty. Returns True if it was stored."""
        with self._lock:
            if self._error is not None:
                return False
            self._error = error
            return True

    @property
    def error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class VideoCatalog:
    """
    Ordered collection of videos and the stages run over them.

    ``videos_number`` counts admission attempts, not admitted videos; it is
    the N in the "i/N" progress prefix.
    """

    def __init__(
        self,
        settings: AspargusSettings,
        probe: MetadataProber,
        extractor: ThumbnailExtractor,
        strategy: SummaryStrategy,
    ) -> None:
        self._settings = settings
        self._probe = probe
        self._extractor = extractor
        self._strategy = strategy
        self._videos: list[Video] = []
        self._videos_number = 0

    @property
    def settings(self) -> AspargusSettings:
        return self._settings

    @property
    def videos(self) -> list[Video]:
        return list(self._videos)

    @property
    def videos_number(self) -> int:
        return self._videos_number

    def _progress(self, video: Video) -> str:
        return f"{video.numeric_id}/{self._videos_number}"

    def _next_numeric_id(self) -> int:
        if self._videos:
            return self._videos[-1].numeric_id + 1
        return 1

    # -- Admission ---------------------------------------------------------

    def add_videos(self, paths: Iterable[str]) -> None:
        """
        Admit a list of files, in order.

        Raises:
            ToolNotFoundError: ffprobe is missing; remaining paths are not tried
        """
        for path in paths:
            self._videos_number += 1
            self.add_video(path)

    def add_video(self, path: str) -> Optional[Video]:
        """
        Probe a file and add it to the catalog.

        Returns the new video, or None if the file was rejected (not a file,
        or no usable metadata). Rejected files don't use up a numeric id.

        Raises:
            ToolNotFoundError: ffprobe is missing
        """
        if not os.path.isfile(path):
            logger.error(
                f"File {path} doesn't exist or is not a file, and therefore will be ignored."
            )
            return None

        try:
            metadata = self._probe.probe(path)
        except MetadataExtractionError as e:
            logger.error(f"{e}, it won't be processed further on.")
            return None

        video = Video.from_metadata(path, self._next_numeric_id(), metadata)
        self._videos.append(video)
        logger.debug(
            "Video admitted",
            extra={"numeric_id": video.numeric_id, "path": path, "gap": video.gap}
        )
        return video

    # -- Frame extraction --------------------------------------------------

    async def extract_frames(self) -> None:
        """
        Extract thumbnails for every video that isn't skipped, in parallel.

        Videos ffmpeg can't handle are marked skip. Every worker runs to
        completion even if ffmpeg turns out to be missing.

        Raises:
            ToolNotFoundError: ffmpeg is missing (the first such error only)
        """
        fatal = FirstErrorCell()
        await asyncio.gather(*(
            asyncio.to_thread(self._extract_video_frames, video, fatal)
            for video in self._videos
            if not video.skip
        ))

        if fatal.error is not None:
            raise fatal.error

    def _extract_video_frames(self, video: Video, fatal: FirstErrorCell) -> None:
        progress = self._progress(video)
        logger.info(f"{progress} - Extracting frames for {video.path}")
        try:
            video.thumbnails = self._extractor.extract(video)
        except ToolNotFoundError as e:
            fatal.set(e)
        except FrameExtractionError as e:
            video.mark_skipped()
            logger.error(f"{progress} - {e}, it won't be processed further on.")
        except OSError as e:
            video.mark_skipped()
            logger.error(
                f"{progress} - Couldn't extract frames for {video.path}: {e}, "
                "it won't be processed further on."
            )

    # -- Model stages ------------------------------------------------------

    async def run_models(self) -> None:
        """
        Run each stage of the summary strategy over the videos.

        Videos go one at a time, and all videos go through a stage before
        the next stage starts. A failed call marks the video skip.
        """
        for stage in self._strategy.stages:
            for video in self._videos:
                await self._run_stage(stage, video)

    async def _run_stage(self, stage: ModelStage, video: Video) -> None:
        progress = self._progress(video)
        if video.skip:
            logger.info(f"{progress} - Skipping {video.path}")
            return

        logger.info(f"{progress} - Running {stage.name} for {video.path}")
        try:
            await stage.process(video)
        except (ModelClientError, SummaryError) as e:
            video.mark_skipped()
            logger.error(f"{progress} - Error while running {stage.name}: {e}")
            return

        if stage.produces_resume:
            logger.info(f"{progress} - Title: {video.resume.title}")
            logger.info(f"{progress} - Description: {video.resume.description}")
            logger.info(f"{progress} - Keywords: {', '.join(video.resume.keywords)}")

    # -- Renaming ----------------------------------------------------------

    async def rename_videos(self, template: str) -> None:
        """Rename the files of every video that isn't skipped, in parallel."""
        await asyncio.gather(*(
            asyncio.to_thread(self._rename_video, video, template)
            for video in self._videos
            if not video.skip
        ))

    def _rename_video(self, video: Video, template: str) -> None:
        progress = self._progress(video)
        try:
            new_name = rename_video(video, template)
        except RenameError as e:
            logger.error(f"{progress} - Error while renaming file: {e}")
            return
        logger.info(f"{progress} - Renamed to: {new_name}")

    # -- Housekeeping ------------------------------------------------------

    def cleanup_thumbnails(self) -> int:
        """Delete the extracted thumbnails of every video. Returns how many went."""
        removed = 0
        for video in self._videos:
            try:
                removed += self._extractor.remove_thumbnails(video.id)
            except OSError as e:
                logger.warning(f"Could not remove the thumbnails of {video.path}: {e}")
                continue
            video.thumbnails = []
        logger.debug(f"Removed {removed} thumbnails")
        return removed
