"""
Error taxonomy for the video pipeline.

Three kinds of failure, handled at three different levels:
- Fatal: a required external binary is missing. Raised out of the
  catalog and aborts the batch.
- Per-video: anything that goes wrong for one file (probe, extraction,
  model call, response parsing, rename). Caught by the catalog, logged
  with the video's progress prefix, and turned into a dropped admission
  or a skip flag.
- Call-scoped: export failures, returned to whoever asked for the export.
"""


class VideoDataError(Exception):
    """Base class for errors raised by the video tool wrappers."""
    pass


class ToolNotFoundError(VideoDataError):
    """
    A required binary (ffmpeg or ffprobe) isn't installed or isn't in the PATH.

    This is the only batch-aborting error in the pipeline.
    """

    def __init__(self, binary: str) -> None:
        self.binary = binary
        super().__init__(
            f"{binary} can't be found, we're stopping here. "
            "Please install FFmpeg and FFprobe and make sure they're in the path."
        )


class MetadataExtractionError(VideoDataError):
    """The probe ran but gave nothing usable for one file."""
    pass


class FrameExtractionError(VideoDataError):
    """The decoder ran but produced no frames for one file."""
    pass


class ModelClientError(Exception):
    """Raised when a call to a model server fails (network, HTTP status, body)."""
    pass


class SummaryError(Exception):
    """Raised when a model answer can't be turned into a story or a resume."""
    pass


class RenameError(Exception):
    """Raised when a video file can't be renamed."""
    pass


class ExportError(Exception):
    """Raised when the JSON export can't be written."""
    pass
