"""
Unit tests for the filesystem helpers: folder listing and JSON export.
"""

import json

import pytest

from aspargus.core.catalog.errors import ExportError
from aspargus.core.catalog.models import Resume, Video
from aspargus.infrastructure.files.export import export_to_json, videos_to_records
from aspargus.infrastructure.files.listing import (
    filter_files_in_dir,
    list_matching_files,
    thumbnail_pattern,
)


@pytest.fixture
def folder(tmp_path):
    for name in ("VID_003.mp4", "VID_001.mp4", "VID_002.mp4", "notes.txt"):
        (tmp_path / name).write_bytes(b"")
    (tmp_path / "VID_000.dir").mkdir()
    return tmp_path


class TestFilterFilesInDir:

    def test_lists_files_sorted_by_name(self, folder):
        names = [p.rsplit("/", 1)[-1] for p in filter_files_in_dir(folder)]

        assert names == ["VID_001.mp4", "VID_002.mp4", "VID_003.mp4", "notes.txt"]

    def test_bounds_are_inclusive(self, folder):
        paths = filter_files_in_dir(folder, "VID_002.mp4", "VID_003.mp4")

        assert paths == [str(folder / "VID_002.mp4"), str(folder / "VID_003.mp4")]

    def test_bounds_need_not_exist(self, folder):
        paths = filter_files_in_dir(folder, "VID_0015", "VID_9")

        assert paths == [str(folder / "VID_002.mp4"), str(folder / "VID_003.mp4")]

    def test_missing_folder_gives_nothing(self, tmp_path):
        assert filter_files_in_dir(tmp_path / "nowhere") == []


class TestThumbnailListing:

    def test_pattern_is_namespaced_by_id(self):
        assert thumbnail_pattern("abc") == "abc_%04d.png"

    def test_lists_only_this_video_in_frame_order(self, tmp_path):
        for name in ("abc_0002.png", "abc_0001.png", "abcd_0001.png", "abc_notes.png"):
            (tmp_path / name).write_bytes(b"")

        assert list_matching_files(tmp_path, "abc") == [
            str(tmp_path / "abc_0001.png"), str(tmp_path / "abc_0002.png"),
        ]


class TestExport:

    def test_round_trip_matches_memory(self, tmp_path):
        """
        Given a processed video and a skipped one,
        when exported,
        then the file holds each path with its resume, empty for the skipped one.
        """
        done = Video(
            path="/videos/a.mp4",
            numeric_id=1,
            story="internal",
            resume=Resume(title="Bike", description="A ride", keywords=["bike", "été"]),
        )
        skipped = Video(path="/videos/b.mp4", numeric_id=2, skip=True)
        output = tmp_path / "out.json"

        export_to_json([done, skipped], output)

        assert json.loads(output.read_text(encoding="utf-8")) == videos_to_records([done, skipped])
        assert json.loads(output.read_text(encoding="utf-8")) == [
            {
                "path": "/videos/a.mp4",
                "resume": {"title": "Bike", "description": "A ride", "keywords": ["bike", "été"]},
            },
            {
                "path": "/videos/b.mp4",
                "resume": {"title": "", "description": "", "keywords": []},
            },
        ]

    def test_output_is_pretty_printed_utf8(self, tmp_path):
        video = Video(path="/v.mp4", numeric_id=1, resume=Resume(title="Été"))
        output = tmp_path / "out.json"

        export_to_json([video], output)

        text = output.read_text(encoding="utf-8")
        assert "Été" in text
        assert '\n  {\n    "path"' in text

    def test_working_fields_are_not_exported(self):
        record = videos_to_records([Video(path="/v.mp4", numeric_id=1)])[0]

        assert set(record) == {"path", "resume"}

    def test_unwritable_path_raises_export_error(self, tmp_path):
        with pytest.raises(ExportError, match="Could not write JSON export"):
            export_to_json([], tmp_path / "missing" / "out.json")

    def test_non_utf8_path_is_written_as_an_escape(self, tmp_path):
        """A Latin-1 file name listed on Linux holds a surrogate escape."""
        path = "/videos/caf\udce9.mp4"
        out = tmp_path / "out.json"

        export_to_json([Video(path=path, numeric_id=1)], out)

        assert json.loads(out.read_text(encoding="utf-8"))[0]["path"] == path
