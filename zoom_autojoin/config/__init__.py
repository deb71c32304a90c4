"""
Configuration module for the auto-join engine.
"""

from .settings import (
    Settings,
    settings,
    JoinSettings,
    MuteSettings,
    BrowserSettings,
    ServerSettings,
)
from zoom_autojoin.core.logging import logger, get_logger, setup_logging

__all__ = [
    "Settings",
    "settings",
    "JoinSettings",
    "MuteSettings",
    "BrowserSettings",
    "ServerSettings",
    "logger",
    "get_logger",
    "setup_logging",
]
