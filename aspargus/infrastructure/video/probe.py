"""
Video metadata extraction using FFprobe.

We only need two things from a file: its duration (to space the sampled
frames) and its creation timestamp (for the rename template). FFprobe is
asked for exactly those, with keys and wrappers stripped, so its output
is just bare values, one per line, in no guaranteed order.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from aspargus.core.catalog.errors import MetadataExtractionError, ToolNotFoundError
from aspargus.core.catalog.models import VideoMetadata

from .commands import Command, run_command

logger = logging.getLogger(__name__)

# RFC 3339 date-time: date, 'T' (or space), time, optional fraction, mandatory offset
_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$"
)


def parse_rfc3339(value: str) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp into an aware UTC datetime.

    FFprobe reports nanosecond precision ("...T10:00:00.000000000Z") which
    datetime can't hold, so the fraction is cut to microseconds.
    """
    match = _RFC3339.match(value)
    if not match:
        return None

    date_part, time_part, fraction, offset = match.groups()
    micros = (fraction or "")[:6].ljust(6, "0")
    if offset in ("Z", "z"):
        offset = "+00:00"

    try:
        parsed = datetime.fromisoformat(f"{date_part}T{time_part}.{micros}{offset}")
    except ValueError:
        return None
    return parsed.astimezone(timezone.utc)


def dedupe_lines(output: str) -> list[str]:
    """Split probe output into lines, dropping repeats but keeping first-seen order."""
    seen: set[str] = set()
    lines = []
    for line in output.strip().splitlines():
        line = line.strip()
        if line and line not in seen:
            seen.add(line)
            lines.append(line)
    return lines


def parse_metadata(values: Iterable[str]) -> VideoMetadata:
    """
    Sort bare probe values into a duration and a creation date.

    Each value is tried as a timestamp first, then as a number. Values are
    read in order and the last one of each kind wins (a file with several
    streams reports one creation_time per stream).
    """
    duration: Optional[float] = None
    creation_date: Optional[datetime] = None

    for value in values:
        date = parse_rfc3339(value)
        if date is not None:
            creation_date = date
            continue
        try:
            duration = float(value)
        except ValueError:
            # "N/A" and friends
            continue

    return VideoMetadata(duration_seconds=duration, creation_date=creation_date)


class MetadataProbe:
    """FFprobe wrapper returning duration and creation date for one file."""

    def __init__(self, ffprobe_path: str = "ffprobe") -> None:
        self._ffprobe = ffprobe_path

    def command_for(self, video_path: str) -> Command:
        return Command(
            binary=self._ffprobe,
            args=(
                "-v", "error",
                "-show_entries", "format=duration",
                "-show_entries", "stream_tags=creation_time",
                "-of", "default=noprint_wrappers=1:nokey=1",
                video_path,
            ),
            capture_output=True,
        )

    def probe(self, video_path: str) -> VideoMetadata:
        """
        Probe one file.

        Raises:
            ToolNotFoundError: ffprobe isn't installed (fatal for the batch)
            MetadataExtractionError: ffprobe failed or reported nothing usable
        """
        result = run_command(self.command_for(video_path))

        if result.binary_missing:
            raise ToolNotFoundError(self._ffprobe)
        if not result.ok:
            raise MetadataExtractionError(
                f"Error while extracting metadata for: {video_path} "
                f"(exit code {result.returncode})"
            )

        metadata = parse_metadata(dedupe_lines(result.stdout))
        if metadata.is_empty:
            raise MetadataExtractionError(
                f"Error while extracting metadata for: {video_path} (no usable values)"
            )

        logger.debug(
            "Probed video metadata",
            extra={
                "path": video_path,
                "duration": metadata.duration_seconds,
                "creation_date": metadata.creation_date,
            }
        )
        return metadata
