"""Public API surface for spf_common."""

from spf_common.errors import (
    ConfigurationError,
    PermissionDeniedError,
    SettingsFrameworkError,
    SettingsStateError,
    StorageError,
    error_to_payload,
)
from spf_common.logging import configure_logging, option_group_context

__all__ = [
    "configure_logging",
    "ConfigurationError",
    "error_to_payload",
    "option_group_context",
    "PermissionDeniedError",
    "SettingsFrameworkError",
    "SettingsStateError",
    "StorageError",
]
