"""
Filesystem helpers: folder listing and JSON export.
"""

from .export import export_to_json, videos_to_records
from .listing import filter_files_in_dir, list_matching_files, thumbnail_pattern

__all__ = [
    "export_to_json",
    "videos_to_records",
    "filter_files_in_dir",
    "list_matching_files",
    "thumbnail_pattern",
]
