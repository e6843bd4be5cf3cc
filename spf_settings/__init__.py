"""Declarative settings pages: define, sanitize, render."""

from spf_settings.api import (
    SettingsFramework,
    build_document,
    create_settings,
    get_setting,
    sanitize,
)

__all__ = [
    "build_document",
    "create_settings",
    "get_setting",
    "sanitize",
    "SettingsFramework",
]
