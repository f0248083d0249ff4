"""
Application configuration using Pydantic settings.

Settings are persisted to a flat JSON file in the work folder, with
environment variables filling in anything the file leaves out.
"""

from .settings import (
    AppFolders,
    AspargusSettings,
    SettingsError,
    SettingsStore,
    default_settings_store,
    make_app_folders,
)

__all__ = [
    "AppFolders",
    "AspargusSettings",
    "SettingsError",
    "SettingsStore",
    "default_settings_store",
    "make_app_folders",
]
