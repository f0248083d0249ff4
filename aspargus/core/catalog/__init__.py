"""
Video catalog logic.

Contains the domain models, the catalog that sequences the pipeline,
the summarization strategies and the rename engine.
"""

from .catalog import FirstErrorCell, MetadataProber, ThumbnailExtractor, VideoCatalog
from .errors import (
    ExportError,
    FrameExtractionError,
    MetadataExtractionError,
    ModelClientError,
    RenameError,
    SummaryError,
    ToolNotFoundError,
    VideoDataError,
)
from .models import EPOCH, Resume, Video, VideoMetadata, get_capture_gap, video_id_for
from .rename import create_new_file_name, create_new_path, rename_video
from .summarizer import (
    ModelClient,
    SingleStepStrategy,
    SummaryStrategy,
    TwoStepStrategy,
    create_summary_strategy,
    extract_json,
)

__all__ = [
    "FirstErrorCell",
    "MetadataProber",
    "ThumbnailExtractor",
    "VideoCatalog",
    "ExportError",
    "FrameExtractionError",
    "MetadataExtractionError",
    "ModelClientError",
    "RenameError",
    "SummaryError",
    "ToolNotFoundError",
    "VideoDataError",
    "EPOCH",
    "Resume",
    "Video",
    "VideoMetadata",
    "get_capture_gap",
    "video_id_for",
    "create_new_file_name",
    "create_new_path",
    "rename_video",
    "ModelClient",
    "SingleStepStrategy",
    "SummaryStrategy",
    "TwoStepStrategy",
    "create_summary_strategy",
    "extract_json",
]
