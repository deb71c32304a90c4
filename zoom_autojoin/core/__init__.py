"""
Core module exports.
"""

from zoom_autojoin.config.settings import (
    Settings,
    settings,
    JoinSettings,
    MuteSettings,
    BrowserSettings,
    ServerSettings,
)
from .logging import logger, get_logger, setup_logging

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
