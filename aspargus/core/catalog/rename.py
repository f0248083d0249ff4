"""
File renaming from a name template.

Templates use single-letter tokens:

    %Y  year of the creation date        %T  resume title
    %M  month, zero padded               %K  keywords joined with "-"
    %D  day, zero padded                 %J  keywords joined with ", "
    %F  original file name, without extension

All tokens are replaced in a single pass over the template, so text
coming from the models (a title containing "%K", say) is never expanded
again. The original extension is always kept as-is.
"""

import errno
import logging
import os
import re

from .errors import RenameError
from .models import Video

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"%([YMDTKJF])")

# Characters a model may return that can't appear in a file name
_UNSAFE = {os.sep, "/", "\0"}

# link() errors meaning the filesystem has no hard links (FAT, exFAT, some SMB shares)
_NO_HARD_LINKS = {errno.EPERM, errno.EXDEV, errno.EMLINK, errno.ENOTSUP, errno.EOPNOTSUPP}


def get_file_name(file_path: str) -> str:
    """The file name without directory or extension."""
    return os.path.splitext(os.path.basename(file_path))[0]


def _safe(value: str) -> str:
    # a "/" in a title would turn the new name into a directory path
    for character in _UNSAFE:
        value = value.replace(character, "-")
    return value


def create_new_file_name(video: Video, template: str) -> str:
    """Fill a template in with a video's creation date, resume and name."""
    date = video.creation_date
    keywords = video.resume.keywords
    values = {
        "Y": f"{date.year:04d}",
        "M": f"{date.month:02d}",
        "D": f"{date.day:02d}",
        "T": _safe(video.resume.title),
        "K": _safe("-".join(keywords)),
        "J": _safe(", ".join(keywords)),
        "F": get_file_name(video.path),
    }
    return _TOKEN.sub(lambda match: values[match.group(1)], template)


def create_new_path(file_path: str, new_name: str) -> str:
    """
    Path of a file once renamed: same directory, new name, same extension.

    The extension is kept verbatim, including its case.
    """
    directory = os.path.dirname(file_path)
    extension = os.path.splitext(file_path)[1]
    return os.path.join(directory, f"{new_name}{extension}")


def rename_file(original_path: str, new_path: str) -> None:
    """
    Move a file to its new path, refusing to overwrite anything.

    The move is a hard link to the new name followed by an unlink of the
    old one: link() fails if the destination exists, so two renames racing
    for the same name can't clobber each other. On filesystems without
    hard links it falls back to an existence check and a plain rename.

    Raises:
        RenameError: destination exists, or the move failed
    """
    try:
        os.link(original_path, new_path)
    except FileExistsError as e:
        raise RenameError(
            f"Could not rename file {original_path}: {new_path} already exists"
        ) from e
    except OSError as e:
        if e.errno not in _NO_HARD_LINKS:
            raise RenameError(f"Could not rename file {original_path}: {e}") from e
        _rename_without_link(original_path, new_path)
        return
    except ValueError as e:
        # embedded null byte in either path
        raise RenameError(f"Could not rename file {original_path}: {e}") from e

    try:
        os.unlink(original_path)
    except OSError as e:
        try:
            os.unlink(new_path)
        except OSError:
            logger.warning(f"{original_path} and {new_path} now both name the same file")
        raise RenameError(f"Could not rename file {original_path}: {e}") from e


def _rename_without_link(original_path: str, new_path: str) -> None:
    if os.path.lexists(new_path):
        raise RenameError(f"Could not rename file {original_path}: {new_path} already exists")
    try:
        os.rename(original_path, new_path)
    except OSError as e:
        raise RenameError(f"Could not rename file {original_path}: {e}") from e


def rename_video(video: Video, template: str) -> str:
    """
    Rename a video's file from a template and update ``video.path``.

    Returns the new file name (without extension).

    Raises:
        RenameError: the template gave an empty name, or the move failed
    """
    new_name = create_new_file_name(video, template)
    if not new_name.strip():
        raise RenameError(f"Template {template!r} gives an empty name for {video.path}")

    new_path = create_new_path(video.path, new_name)
    if new_path == video.path:
        return new_name

    rename_file(video.path, new_path)
    logger.debug(f"Moved {video.path} to {new_path}")
    video.path = new_path
    return new_name
