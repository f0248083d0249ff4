"""
Video tool infrastructure.

Wraps the external FFmpeg binaries:
- ffprobe for duration and creation date
- ffmpeg for sampled thumbnail extraction

Both go through a typed command runner that tells "binary missing"
apart from "binary failed on this file".
"""

from .commands import Command, CommandResult, CommandStatus, run_command
from .frames import FrameExtractor, sampling_filter
from .probe import MetadataProbe, dedupe_lines, parse_metadata, parse_rfc3339

__all__ = [
    "Command",
    "CommandResult",
    "CommandStatus",
    "run_command",
    "FrameExtractor",
    "sampling_filter",
    "MetadataProbe",
    "dedupe_lines",
    "parse_metadata",
    "parse_rfc3339",
]
