"""Configuration package."""

from fcd_tracker.config.settings import (
    AppSettings,
    GoogleSheetsSettings,
    Settings,
    TyphoonSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "GoogleSheetsSettings",
    "Settings",
    "TyphoonSettings",
    "get_settings",
]
