"""
Domain models for the video catalog.

These models represent the core concepts: a video being worked on, the
metadata we know about it, and the resume the models produce. They have
no dependencies on ffmpeg, Ollama or the filesystem layout.
"""

import hashlib
import math
import os
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def video_id_for(path: str) -> str:
    """
    Stable identifier for a source path.

    Used to namespace thumbnail files in the shared temp folder. Two
    different paths hashing to the same id is an accepted risk.

    The path is hashed as its filesystem bytes, so names that are not
    valid UTF-8 (surrogate-escaped by the OS layer) hash like any other.
    """
    return hashlib.md5(os.fsencode(path)).hexdigest()


def get_capture_gap(duration_seconds: Optional[float]) -> int:
    """
    Seconds between two sampled frames: a third of the video, rounded down.

    Unknown, negative or non-finite durations give 0. A gap of 0 is kept
    as-is on the video; the sampler clamps it when building its filter.
    """
    if duration_seconds is None or not math.isfinite(duration_seconds):
        return 0
    return max(0, math.floor(duration_seconds / 3))


@dataclass(frozen=True)
class VideoMetadata:
    """What the probe found about a file. Either value may be missing."""
    duration_seconds: Optional[float] = None
    creation_date: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return self.duration_seconds is None and self.creation_date is None


@dataclass
class Resume:
    """
    The structured summary of a video.

    Empty until a model stage succeeds; skipped videos keep it empty.
    """
    title: str = ""
    description: str = ""
    keywords: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.title or self.description or self.keywords)

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "keywords": list(self.keywords),
        }


@dataclass
class Video:
    """
    One admitted unit of work.

    A video is created once its metadata has been probed and it has been
    given a numeric id. Pipeline stages then fill in thumbnails, story and
    resume. Once ``skip`` is set the video is left alone by every later
    stage, but stays in the catalog (and in the export).
    """
    path: str
    numeric_id: int
    creation_date: datetime = EPOCH
    gap: int = 0
    id: str = ""
    thumbnails: list[str] = field(default_factory=list)
    story: str = ""
    resume: Resume = field(default_factory=Resume)
    skip: bool = False

    def __post_init__(self) -> None:
        if not self.id:
            self.id = video_id_for(self.path)
        if self.gap < 0:
            raise ValueError("Capture gap cannot be negative")

    @classmethod
    def from_metadata(cls, path: str, numeric_id: int, metadata: VideoMetadata) -> "Video":
        return cls(
            path=path,
            numeric_id=numeric_id,
            creation_date=metadata.creation_date or EPOCH,
            gap=get_capture_gap(metadata.duration_seconds),
        )

    def mark_skipped(self) -> None:
        """Take the video out of the remaining stages. There is no way back."""
        self.skip = True
