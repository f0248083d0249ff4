"""
Application configuration using Pydantic settings.

Settings live in a flat ``settings.json`` inside the work folder. Values
from that file take precedence; anything it leaves out comes from
``ASPARGUS_*`` environment variables (or a ``.env`` file) and finally
from the defaults below.

The settings object is immutable. Command-line overrides produce a new
value through ``with_overrides`` and the caller decides when to persist
it, so the file is written once per run instead of on every change.
"""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

SETTINGS_FILE_NAME = "settings.json"
TEMP_FOLDER_NAME = "tmp"


class SettingsError(Exception):
    """Raised when the settings file can't be read or written."""
    pass


def _default_work_folder() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / "aspargus"


class AspargusSettings(BaseSettings):
    """
    Servers, models and pipeline mode for a run.

    The vision and text servers may point at the same Ollama instance;
    they are kept separate so a small text model can run on a different
    machine than the vision model.
    """

    computer_vision_server: str = Field(
        default="http://localhost",
        description="Base URL of the server hosting the computer vision model"
    )
    computer_vision_server_port: int = Field(
        default=11434,
        ge=1,
        le=65535,
        description="Port of the computer vision server"
    )
    computer_vision_model: str = Field(
        default="gemma3:latest",
        description="Vision model name, as listed by `ollama list`"
    )
    text_server: str = Field(
        default="http://localhost",
        description="Base URL of the server hosting the text model"
    )
    text_server_port: int = Field(
        default=11434,
        ge=1,
        le=65535,
        description="Port of the text server"
    )
    text_model: str = Field(
        default="gemma3:1b",
        description="Text model name, only used in two steps mode"
    )
    two_steps: bool = Field(
        default=False,
        description="Run the vision model for a story first, then the text model for the resume"
    )

    # Not persisted: the settings file itself lives in this folder
    work_folder: Path = Field(
        default_factory=_default_work_folder,
        exclude=True,
        description="Folder holding settings.json and the thumbnail temp folder"
    )

    model_config = SettingsConfigDict(
        env_prefix="ASPARGUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @property
    def temp_folder(self) -> Path:
        return self.work_folder / TEMP_FOLDER_NAME

    @property
    def settings_path(self) -> Path:
        return self.work_folder / SETTINGS_FILE_NAME

    @property
    def computer_vision_host(self) -> str:
        return f"{self.computer_vision_server}:{self.computer_vision_server_port}"

    @property
    def text_host(self) -> str:
        return f"{self.text_server}:{self.text_server_port}"

    def persisted(self) -> dict[str, Any]:
        """The fields written to settings.json."""
        return self.model_dump(mode="json")

    def with_overrides(self, **changes: Any) -> "AspargusSettings":
        """
        Return a copy with the given fields replaced.

        ``None`` values are ignored so optional command-line flags can be
        passed straight through. The result is validated like any other
        construction, so a bad port fails here rather than at request time.
        """
        updates = {key: value for key, value in changes.items() if value is not None}
        if not updates:
            return self

        values = {**self.persisted(), "work_folder": self.work_folder, **updates}
        return type(self)(**values)

    def describe(self) -> str:
        return "\n".join([
            "AspargusSettings:",
            f"  Computer Vision Model: {self.computer_vision_model}",
            f"  Text Model: {self.text_model}",
            f"  Computer Vision Server: {self.computer_vision_host}",
            f"  Text Server: {self.text_host}",
            f"  Two Steps mode: {self.two_steps}",
            f"  Work folder: {self.work_folder}",
            f"  Temp folder: {self.temp_folder}",
            f"  Settings path: {self.settings_path}",
        ])


@dataclass(frozen=True)
class AppFolders:
    """The application's on-disk folders."""
    work_folder: Path
    temp_folder: Path


def make_app_folders(work_folder: Path) -> AppFolders:
    """
    Create the work folder and its temp folder if they don't exist yet.
    """
    temp_folder = work_folder / TEMP_FOLDER_NAME
    for folder in (work_folder, temp_folder):
        if folder.is_dir():
            logger.debug(f"{folder} exists")
        else:
            logger.debug(f"{folder} doesn't exist, let's create it...")
            folder.mkdir(parents=True, exist_ok=True)

    return AppFolders(work_folder=work_folder, temp_folder=temp_folder)


class SettingsStore:
    """
    Flat JSON persistence for AspargusSettings.

    The store owns only the file. Everything else about the settings
    (defaults, validation, environment overrides) is the model's job.
    """

    def __init__(self, path: Path, work_folder: Optional[Path] = None) -> None:
        self._path = path
        self._work_folder = work_folder if work_folder is not None else path.parent

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> AspargusSettings:
        """
        Load settings from the file, creating it with defaults if missing.
        """
        if not self._path.is_file():
            logger.debug("No settings file found, creating a new one")
            settings = AspargusSettings(work_folder=self._work_folder)
            self.save(settings)
            return settings

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise SettingsError(f"Could not read settings file {self._path}: {e}") from e

        if not isinstance(raw, dict):
            raise SettingsError(f"Settings file {self._path} must contain a JSON object")

        raw.pop("work_folder", None)
        try:
            settings = AspargusSettings(**raw, work_folder=self._work_folder)
        except ValidationError as e:
            raise SettingsError(f"Invalid settings in {self._path}: {e}") from e

        logger.info(f"Loaded settings: {settings.describe()}")
        return settings

    def save(self, settings: AspargusSettings) -> None:
        try:
            self._path.write_text(
                json.dumps(settings.persisted(), indent=2),
                encoding="utf-8",
            )
        except OSError as e:
            raise SettingsError(f"Could not save settings file: {self._path}") from e


def default_settings_store() -> SettingsStore:
    """
    The settings store in the default work folder.

    Creates the application folders on first use. The work folder can be
    moved with the ASPARGUS_WORK_FOLDER environment variable.
    """
    folders = make_app_folders(AspargusSettings().work_folder)
    return SettingsStore(folders.work_folder / SETTINGS_FILE_NAME, folders.work_folder)
