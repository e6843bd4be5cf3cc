"""Shared error taxonomy for settings-page-framework."""

from __future__ import annotations

from typing import Any, ClassVar, Mapping, TypeVar


def _normalize_context_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return normalize_context(value)
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_normalize_context_value(item) for item in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


def normalize_context(context: Mapping[Any, Any]) -> dict[str, Any]:
    """Return a JSON-friendly copy of an error context mapping."""
    return {str(key): _normalize_context_value(val) for key, val in context.items()}


class SettingsFrameworkError(Exception):
    """Base error type for typed failure handling.

    ``notice_level`` is the admin-notice severity a host should use when it
    surfaces the error to users.
    """

    notice_level: ClassVar[str] = "error"

    def __init__(
        self,
        message: str,
        *,
        context: Mapping[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.context = normalize_context(context or {})
        if cause is not None:
            self.__cause__ = cause

    @property
    def error_type(self) -> str:
        return self.__class__.__name__

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.error_type, "message": str(self), "context": self.context}


class ConfigurationError(SettingsFrameworkError):
    """The settings definition is malformed; the page cannot be built."""


class SettingsStateError(SettingsFrameworkError):
    """Operation attempted in the wrong lifecycle state."""

    notice_level = "warning"


class PermissionDeniedError(SettingsFrameworkError):
    """The current user lacks the capability required by a settings page."""


class StorageError(SettingsFrameworkError):
    """Failure reading or writing the option store."""


T = TypeVar("T", bound=SettingsFrameworkError)


def wrap_error(
    error_cls: type[T],
    message: str,
    *,
    context: Mapping[str, Any] | None = None,
    cause: Exception | None = None,
) -> T:
    """Create a typed SettingsFrameworkError with optional context and cause."""
    return error_cls(message, context=context, cause=cause)


def error_to_payload(error: SettingsFrameworkError) -> dict[str, Any]:
    """Convert an error to an admin-notice payload."""
    return {
        "error_type": error.error_type,
        "error": str(error),
        "error_context": error.context,
        "notice_level": error.notice_level,
    }
