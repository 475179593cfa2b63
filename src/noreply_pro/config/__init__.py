"""Configuration package."""

from noreply_pro.config.settings import (
    DraftWriterSettings,
    Settings,
    StorageSettings,
    settings,
)

__all__ = [
    "DraftWriterSettings",
    "Settings",
    "StorageSettings",
    "settings",
]
