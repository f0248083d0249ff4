"""
Shared fixtures and fakes for the unit tests.

The fakes stand in for ffprobe, ffmpeg and the Ollama server so the
catalog and the summary stages can be exercised without any of them.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest
from PIL import Image

from aspargus.config.settings import AspargusSettings
from aspargus.core.catalog.models import Video, VideoMetadata

RESUME_JSON = json.dumps({
    "title": "Child rides a bike",
    "description": "A child learns to ride a bike in the park with their father.",
    "keywords": ["child", "bike", "father"],
})

CREATED = datetime(2023, 5, 1, 10, 0, 0, tzinfo=timezone.utc)


def make_png(path: Path, size: tuple[int, int] = (64, 48)) -> str:
    Image.new("RGB", size, color=(200, 120, 40)).save(path)
    return str(path)


class FakeProbe:
    """Returns canned metadata per path; an exception instance is raised instead."""

    def __init__(self, results: Optional[dict] = None) -> None:
        self.results = results or {}
        self.calls: list[str] = []

    def probe(self, video_path: str) -> VideoMetadata:
        self.calls.append(video_path)
        result = self.results.get(
            video_path, VideoMetadata(duration_seconds=30.0, creation_date=CREATED)
        )
        if isinstance(result, Exception):
            raise result
        return result


class FakeExtractor:
    """Writes real PNG thumbnails to a temp folder, or raises per path."""

    def __init__(self, temp_folder: Path, failures: Optional[dict] = None, frames: int = 3) -> None:
        self.temp_folder = temp_folder
        self.failures = failures or {}
        self.frames = frames
        self.extracted: list[str] = []

    def extract(self, video: Video) -> list[str]:
        failure = self.failures.get(video.path)
        if failure is not None:
            raise failure
        self.extracted.append(video.path)
        return [
            make_png(self.temp_folder / f"{video.id}_{index:04d}.png")
            for index in range(1, self.frames + 1)
        ]

    def remove_thumbnails(self, video_id: str) -> int:
        removed = 0
        for thumbnail in self.temp_folder.glob(f"{video_id}_*.png"):
            thumbnail.unlink()
            removed += 1
        return removed


class FakeModelClient:
    """
    ModelClient returning queued answers in order.

    An exception instance in the queue is raised instead of answered.
    Once the queue is empty every call answers ``default``.
    """

    def __init__(self, answers: Optional[list] = None, default: str = RESUME_JSON) -> None:
        self.base_url = "http://localhost:11434"
        self.answers = list(answers or [])
        self.default = default
        self.calls: list[dict] = []

    async def generate(self, model, prompt, images=None, temperature=0.5) -> str:
        self.calls.append({
            "model": model,
            "prompt": prompt,
            "images": images,
            "temperature": temperature,
        })
        answer = self.answers.pop(0) if self.answers else self.default
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def list_models(self) -> list[str]:
        return ["gemma3:latest", "gemma3:1b"]


@pytest.fixture
def settings(tmp_path) -> AspargusSettings:
    return AspargusSettings(work_folder=tmp_path / "work")


@pytest.fixture
def temp_folder(tmp_path) -> Path:
    folder = tmp_path / "thumbnails"
    folder.mkdir()
    return folder


@pytest.fixture
def video_files(tmp_path) -> list[str]:
    """Three empty files standing in for videos."""
    folder = tmp_path / "videos"
    folder.mkdir()
    paths = []
    for name in ("a.mp4", "b.mp4", "c.mp4"):
        path = folder / name
        path.write_bytes(b"")
        paths.append(str(path))
    return paths
