"""
Unit tests for the rename engine.
"""

import errno
import os
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from aspargus.core.catalog.errors import RenameError
from aspargus.core.catalog.models import Resume, Video
from aspargus.core.catalog.rename import (
    create_new_file_name,
    create_new_path,
    get_file_name,
    rename_file,
    rename_video,
)

OS_LINK = "aspargus.core.catalog.rename.os.link"


def make_video(path="/a/b/clip.MP4", title="Child rides a bike", keywords=None):
    return Video(
        path=path,
        numeric_id=1,
        creation_date=datetime(2023, 5, 1, 10, 0, tzinfo=timezone.utc),
        resume=Resume(
            title=title,
            description="A child learns to ride a bike.",
            keywords=keywords if keywords is not None else ["child", "bike"],
        ),
    )


class TestCreateNewFileName:

    def test_date_tokens_are_zero_padded(self):
        assert create_new_file_name(make_video(), "%Y-%M-%D") == "2023-05-01"

    def test_keyword_tokens(self):
        video = make_video()

        assert create_new_file_name(video, "%K") == "child-bike"
        assert create_new_file_name(video, "%J") == "child, bike"

    def test_original_name_token(self):
        assert create_new_file_name(make_video(), "%F_%T") == "clip_Child rides a bike"

    def test_substituted_text_is_not_expanded_again(self):
        """A title containing a token is inserted literally."""
        video = make_video(title="100% K done", keywords=["x"])

        assert create_new_file_name(video, "%T_%K") == "100% K done_x"

    def test_title_with_token_text_stays_literal(self):
        video = make_video(title="%K%Y", keywords=["x"])

        assert create_new_file_name(video, "%T") == "%K%Y"

    def test_unknown_tokens_are_left_alone(self):
        assert create_new_file_name(make_video(), "%Q %Y") == "%Q 2023"

    def test_path_separators_in_title_are_replaced(self):
        video = make_video(title="Before/After")

        assert create_new_file_name(video, "%T") == "Before-After"

    def test_empty_keywords_give_empty_text(self):
        assert create_new_file_name(make_video(keywords=[]), "%T %K") == "Child rides a bike "


class TestCreateNewPath:

    def test_keeps_directory_and_extension_case(self):
        assert create_new_path("/a/b/clip.MP4", "newname") == "/a/b/newname.MP4"

    def test_only_last_extension_is_kept(self):
        assert create_new_path("/a/clip.tar.gz", "x") == "/a/x.gz"

    def test_file_without_extension_gets_no_dot(self):
        assert create_new_path("/a/clip", "x") == "/a/x"

    def test_get_file_name_strips_directory_and_extension(self):
        assert get_file_name("/a/b/clip.final.mp4") == "clip.final"


class TestRenameVideo:

    def test_file_is_moved_and_path_updated(self, tmp_path):
        source = tmp_path / "clip.mp4"
        source.write_bytes(b"video")
        video = make_video(path=str(source))

        new_name = rename_video(video, "%Y-%M-%D %T")

        assert new_name == "2023-05-01 Child rides a bike"
        assert video.path == str(tmp_path / "2023-05-01 Child rides a bike.mp4")
        assert (tmp_path / "2023-05-01 Child rides a bike.mp4").read_bytes() == b"video"
        assert not source.exists()

    def test_existing_destination_is_not_overwritten(self, tmp_path):
        source = tmp_path / "clip.mp4"
        source.write_bytes(b"video")
        taken = tmp_path / "Child rides a bike.mp4"
        taken.write_bytes(b"other")
        video = make_video(path=str(source))

        with pytest.raises(RenameError, match="already exists"):
            rename_video(video, "%T")

        assert taken.read_bytes() == b"other"
        assert video.path == str(source)

    def test_same_name_is_a_no_op(self, tmp_path):
        source = tmp_path / "clip.mp4"
        source.write_bytes(b"video")
        video = make_video(path=str(source))

        assert rename_video(video, "%F") == "clip"
        assert video.path == str(source)
        assert source.exists()

    def test_empty_name_is_an_error(self, tmp_path):
        video = make_video(path=str(tmp_path / "clip.mp4"), title="")

        with pytest.raises(RenameError, match="empty name"):
            rename_video(video, "%T")

    def test_missing_source_is_an_error(self, tmp_path):
        with pytest.raises(RenameError, match="Could not rename file"):
            rename_file(str(tmp_path / "gone.mp4"), str(tmp_path / "new.mp4"))

        assert not os.path.exists(tmp_path / "new.mp4")


class TestUnsafeNames:

    def test_null_byte_in_title_is_replaced(self):
        video = make_video(title="a\u0000b", keywords=["x\u0000y"])

        assert create_new_file_name(video, "%T_%K") == "a-b_x-y"

    def test_null_byte_in_template_is_a_rename_error(self, tmp_path):
        source = tmp_path / "clip.mp4"
        source.write_bytes(b"video")
        video = make_video(path=str(source))

        with pytest.raises(RenameError, match="Could not rename file"):
            rename_video(video, "%T\u0000")

        assert source.exists()
        assert video.path == str(source)


class TestRenameWithoutHardLinks:
    """Filesystems like exFAT refuse link(); renames still go through."""

    def test_file_is_moved_with_plain_rename(self, tmp_path):
        source = tmp_path / "clip.mp4"
        source.write_bytes(b"video")

        with patch(OS_LINK, side_effect=OSError(errno.EPERM, "Operation not permitted")):
            rename_file(str(source), str(tmp_path / "new.mp4"))

        assert (tmp_path / "new.mp4").read_bytes() == b"video"
        assert not source.exists()

    def test_existing_destination_is_still_refused(self, tmp_path):
        source = tmp_path / "clip.mp4"
        source.write_bytes(b"video")
        (tmp_path / "new.mp4").write_bytes(b"other")

        with patch(OS_LINK, side_effect=OSError(errno.EPERM, "Operation not permitted")):
            with pytest.raises(RenameError, match="already exists"):
                rename_file(str(source), str(tmp_path / "new.mp4"))

        assert (tmp_path / "new.mp4").read_bytes() == b"other"

    def test_failed_unlink_leaves_the_original_name(self, tmp_path):
        source = tmp_path / "clip.mp4"
        source.write_bytes(b"video")
        real_unlink = os.unlink

        def unlink(path):
            if path == str(source):
                raise PermissionError(13, "Permission denied")
            real_unlink(path)

        with patch("aspargus.core.catalog.rename.os.unlink", side_effect=unlink):
            with pytest.raises(RenameError, match="Permission denied"):
                rename_file(str(source), str(tmp_path / "new.mp4"))

        assert source.exists()
        assert not (tmp_path / "new.mp4").exists()
