"""Configuration package for Boardpilot."""

from boardpilot.config.settings import Settings
from boardpilot.config.settings import load_settings

__all__ = [
    "Settings",
    "load_settings",
]
