"""
Video summarization logic and prompt management.

This module turns a video's thumbnails into a resume (title, description,
keywords) using one or two models. It doesn't know about HTTP or Ollama;
it talks to anything implementing the ModelClient protocol.

Two topologies are supported:
- Single step: the vision model reads the thumbnails and answers with the
  resume JSON directly. Fast, but not every vision model follows the
  output format well, so the JSON is dug out of whatever it returns.
- Two steps: the vision model tells the story of the thumbnails, then a
  text model condenses that story into the resume JSON.

The prompts are here, not in config, because they define what the
product does.
"""

import asyncio
import base64
import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional, Protocol

from pydantic import BaseModel, ValidationError

from .errors import SummaryError
from .models import Resume, Video

logger = logging.getLogger(__name__)

TEMPERATURE = 0.5


# ---------------------------------------------------------------------------
# Protocols (interfaces)
# ---------------------------------------------------------------------------

class ModelClient(Protocol):
    """
    Interface for a model server.

    Images are base64 encoded by the caller. Implementations raise
    ModelClientError for any network, status or body problem.
    """

    async def generate(
        self,
        model: str,
        prompt: str,
        images: Optional[list[str]] = None,
        temperature: float = TEMPERATURE,
    ) -> str:
        """Run a prompt (and optional images) through a model, return its text."""
        ...

    async def list_models(self) -> list[str]:
        """Names of the models available on the server."""
        ...


# Resizes thumbnails in place before they are sent
ThumbnailResizer = Callable[[list[str]], object]


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

STORY_PROMPT = (
    "The following images are part of a video, they tell a story. Please describe "
    "that story focusing on the persons and their action and less on their environment."
)

_RESUME_INSTRUCTIONS = (
    "Please resume that story in 20 words focusing on the person and their action and "
    "less on their environment, from that resume please generate a title of maximum 8 "
    "words, and make a list of up to 5 keywords that resumes the story, the keywords "
    "will include the person on the video if any (e.g. woman, child...). Please format "
    "the answer in a valid json format: "
    '{"title": <<title>>, "description": <<description>>, "keywords": <<array of keywords>>}, '
    "with no other text at all, only the json result."
)

CONDENSE_PROMPT = (
    "You are a helpful assistant and expert in concise storytelling. The following text "
    "tells the story of a video. " + _RESUME_INSTRUCTIONS + " The story is:"
)

SINGLE_STEP_PROMPT = STORY_PROMPT + " " + _RESUME_INSTRUCTIONS


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

class ResumePayload(BaseModel):
    """The JSON a model must answer with. All three fields are required."""
    title: str
    description: str
    keywords: list[str]

    def to_resume(self) -> Resume:
        return Resume(
            title=self.title,
            description=self.description,
            keywords=list(self.keywords),
        )


def parse_resume(text: str) -> Resume:
    """
    Parse a model answer that should be exactly the resume JSON.

    Raises:
        SummaryError: not JSON, or not the expected shape
    """
    try:
        return ResumePayload.model_validate_json(text).to_resume()
    except ValidationError as e:
        raise SummaryError(f"Model answer is not a valid resume: {e}") from e


def extract_json(text: str) -> Optional[str]:
    """
    Find the first balanced ``{...}`` block in a model answer.

    Vision models like to wrap their JSON in prose or markdown fences.
    Braces inside JSON strings are ignored while matching. If a ``{`` never
    closes, the search moves on to the next one.
    """
    start = text.find("{")
    while start != -1:
        end = _matching_brace(text, start)
        if end is not None:
            return text[start:end + 1]
        start = text.find("{", start + 1)
    return None


def _matching_brace(text: str, start: int) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


# ---------------------------------------------------------------------------
# Model stages
# ---------------------------------------------------------------------------

class ModelStage(ABC):
    """
    One model call made for each video in turn.

    Stages share request construction (model name, temperature) and the
    thumbnail encoding; each one decides what to send and what to do with
    the answer.
    """

    #: Name used in progress logs ("Running <name> for ...")
    name: str = "model"
    #: Whether a successful run fills in video.resume
    produces_resume: bool = False

    def __init__(
        self,
        client: ModelClient,
        model: str,
        resize_thumbnails: Optional[ThumbnailResizer] = None,
    ) -> None:
        self._client = client
        self._model = model
        self._resize_thumbnails = resize_thumbnails

    @property
    def model(self) -> str:
        return self._model

    @abstractmethod
    async def process(self, video: Video) -> None:
        """
        Run the stage for one video, updating it in place.

        Raises:
            ModelClientError: the model server call failed
            SummaryError: the answer couldn't be used
        """
        ...

    async def _generate(self, prompt: str, images: Optional[list[str]] = None) -> str:
        return await self._client.generate(
            model=self._model,
            prompt=prompt,
            images=images,
            temperature=TEMPERATURE,
        )

    def _encode_thumbnails(self, video: Video) -> list[str]:
        """
        Resize the video's thumbnails (in place, for good) and base64 them.
        """
        if self._resize_thumbnails is not None:
            self._resize_thumbnails(video.thumbnails)

        images = []
        for thumbnail in video.thumbnails:
            try:
                with open(thumbnail, "rb") as f:
                    images.append(base64.b64encode(f.read()).decode("utf-8"))
            except OSError as e:
                raise SummaryError(f"Couldn't read thumbnail {thumbnail}: {e}") from e
        return images


class StoryStage(ModelStage):
    """Two steps, first step: the vision model narrates the thumbnails."""

    name = "computer vision model"

    async def process(self, video: Video) -> None:
        images = await asyncio.to_thread(self._encode_thumbnails, video)
        story = await self._generate(STORY_PROMPT, images)
        logger.debug(f"Story: {story}")
        video.story = story


class CondenseStage(ModelStage):
    """Two steps, second step: the text model condenses the story into a resume."""

    name = "resume model"
    produces_resume = True

    async def process(self, video: Video) -> None:
        if not video.story:
            raise SummaryError(f"No story to resume for: {video.path}")

        answer = await self._generate(CONDENSE_PROMPT + video.story)
        video.resume = parse_resume(answer)


class DirectResumeStage(ModelStage):
    """Single step: the vision model answers with the resume straight away."""

    name = "computer vision model"
    produces_resume = True

    async def process(self, video: Video) -> None:
        images = await asyncio.to_thread(self._encode_thumbnails, video)
        answer = await self._generate(SINGLE_STEP_PROMPT, images)

        payload = extract_json(answer)
        if payload is None:
            raise SummaryError(f"No JSON found in the model answer for: {video.path}")
        logger.debug(f"Resume JSON: {payload}")
        video.resume = parse_resume(payload)


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class SummaryStrategy(ABC):
    """
    An ordered list of stages.

    Every video goes through a stage before any video starts the next one,
    so a two steps run keeps one model busy at a time.
    """

    @property
    @abstractmethod
    def stages(self) -> list[ModelStage]:
        ...


class SingleStepStrategy(SummaryStrategy):

    def __init__(
        self,
        vision_client: ModelClient,
        vision_model: str,
        resize_thumbnails: Optional[ThumbnailResizer] = None,
    ) -> None:
        self._stages: list[ModelStage] = [
            DirectResumeStage(vision_client, vision_model, resize_thumbnails),
        ]

    @property
    def stages(self) -> list[ModelStage]:
        return list(self._stages)


class TwoStepStrategy(SummaryStrategy):

    def __init__(
        self,
        vision_client: ModelClient,
        vision_model: str,
        text_client: ModelClient,
        text_model: str,
        resize_thumbnails: Optional[ThumbnailResizer] = None,
    ) -> None:
        self._stages: list[ModelStage] = [
            StoryStage(vision_client, vision_model, resize_thumbnails),
            CondenseStage(text_client, text_model),
        ]

    @property
    def stages(self) -> list[ModelStage]:
        return list(self._stages)


def create_summary_strategy(
    two_steps: bool,
    vision_client: ModelClient,
    vision_model: str,
    text_client: ModelClient,
    text_model: str,
    resize_thumbnails: Optional[ThumbnailResizer] = None,
) -> SummaryStrategy:
    """Pick the topology from the two_steps setting."""
    if two_steps:
        return TwoStepStrategy(
            vision_client, vision_model, text_client, text_model, resize_thumbnails
        )
    return SingleStepStrategy(vision_client, vision_model, resize_thumbnails)

