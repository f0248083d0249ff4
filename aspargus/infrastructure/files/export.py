"""
JSON export of the analysis results.

Only what a user of the results needs is written out: where the file is
now and what the models said about it. Ids, thumbnails, story and the
other working fields stay internal.
"""

import json
import logging
from pathlib import Path
from typing import Iterable, Union

from aspargus.core.catalog.errors import ExportError
from aspargus.core.catalog.models import Video

logger = logging.getLogger(__name__)


def videos_to_records(videos: Iterable[Video]) -> list[dict]:
    return [
        {
            "path": video.path,
            "resume": video.resume.to_dict(),
        }
        for video in videos
    ]


def export_to_json(videos: Iterable[Video], path: Union[str, Path]) -> None:
    """
    Write the catalog to a pretty-printed JSON array.

    Paths that are not valid UTF-8 are written with their undecodable bytes
    as \\udcXX escapes, which read back to the same Python string.

    Raises:
        ExportError: the file couldn't be written. Nothing in memory changes.
    """
    contents = json.dumps(videos_to_records(videos), indent=2, ensure_ascii=False)
    try:
        Path(path).write_text(contents, encoding="utf-8", errors="backslashreplace")
    except OSError as e:
        raise ExportError(f"Could not write JSON export to {path}: {e}") from e

    logger.info(f"Results exported to {path}")
