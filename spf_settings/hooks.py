"""
Typed extension points.

Collaborators register callbacks against an `ExtensionPoint` for one option
group (or for every group with ``option_group=None``). Filters thread a value
through their callbacks; actions collect the markup fragments callbacks return.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from itertools import count
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 10


class ExtensionPoint(str, Enum):
    # filters
    REGISTER_SETTINGS = "register_settings"
    SETTINGS_VALIDATE = "settings_validate"
    FIELD_DEFAULTS = "field_defaults"
    SHOW_SAVE_BUTTON = "show_save_changes_button"
    SHOW_TAB_LINKS = "show_tab_links"
    # actions
    BEFORE_SETTINGS = "before_settings"
    AFTER_SETTINGS = "after_settings"
    BEFORE_SETTINGS_FIELDS = "before_settings_fields"
    BEFORE_FIELD = "before_field"
    AFTER_FIELD = "after_field"
    BEFORE_TAB_LINKS = "before_tab_links"
    AFTER_TAB_LINKS = "after_tab_links"

    @property
    def is_filter(self) -> bool:
        return self in FILTER_POINTS

    def hook_name(self, option_group: str) -> str:
        """Flat name of the point for one group, e.g. ``register_settings_myplugin``."""
        return f"{self.value}_{option_group}"


FILTER_POINTS = frozenset(
    {
        ExtensionPoint.REGISTER_SETTINGS,
        ExtensionPoint.SETTINGS_VALIDATE,
        ExtensionPoint.FIELD_DEFAULTS,
        ExtensionPoint.SHOW_SAVE_BUTTON,
        ExtensionPoint.SHOW_TAB_LINKS,
    }
)

FilterCallback = Callable[..., Any]
ActionCallback = Callable[..., Optional[str]]

_sequence = count()


@dataclass(order=True)
class _Registration:
    priority: int
    sequence: int
    callback: Callable[..., Any] = field(compare=False)
    option_group: Optional[str] = field(default=None, compare=False)


class HookBus:
    """Registry and dispatcher for extension-point callbacks."""

    def __init__(self) -> None:
        self._registrations: dict[ExtensionPoint, list[_Registration]] = {}

    def add_filter(
        self,
        point: ExtensionPoint,
        callback: FilterCallback,
        *,
        option_group: Optional[str] = None,
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        """Register ``callback(value, **context) -> value`` on a filter point."""
        if not point.is_filter:
            raise ValueError(f"{point.value} is an action point; use add_action")
        self._add(point, callback, option_group, priority)

    def add_action(
        self,
        point: ExtensionPoint,
        callback: ActionCallback,
        *,
        option_group: Optional[str] = None,
        priority: int = DEFAULT_PRIORITY,
    ) -> None:
        """Register ``callback(**context) -> markup | None`` on an action point."""
        if point.is_filter:
            raise ValueError(f"{point.value} is a filter point; use add_filter")
        self._add(point, callback, option_group, priority)

    def remove(
        self,
        point: ExtensionPoint,
        callback: Callable[..., Any],
        *,
        option_group: Optional[str] = None,
    ) -> bool:
        registrations = self._registrations.get(point, [])
        for registration in registrations:
            if registration.callback is callback and registration.option_group == option_group:
                registrations.remove(registration)
                return True
        return False

    def has_callbacks(self, point: ExtensionPoint, option_group: str) -> bool:
        return bool(self._matching(point, option_group))

    def apply_filters(
        self,
        point: ExtensionPoint,
        value: Any,
        *,
        option_group: str,
        **context: Any,
    ) -> Any:
        for registration in self._matching(point, option_group):
            value = registration.callback(value, option_group=option_group, **context)
        return value

    def do_action(
        self,
        point: ExtensionPoint,
        *,
        option_group: str,
        **context: Any,
    ) -> str:
        """Run the callbacks of an action point and join the markup they return."""
        fragments: list[str] = []
        for registration in self._matching(point, option_group):
            output = registration.callback(option_group=option_group, **context)
            if output:
                fragments.append(str(output))
        return "".join(fragments)

    def _add(
        self,
        point: ExtensionPoint,
        callback: Callable[..., Any],
        option_group: Optional[str],
        priority: int,
    ) -> None:
        registration = _Registration(priority, next(_sequence), callback, option_group)
        self._registrations.setdefault(point, []).append(registration)
        logger.debug(
            "Registered %s callback for %s", point.value, option_group or "all groups"
        )

    def _matching(self, point: ExtensionPoint, option_group: str) -> list[_Registration]:
        return sorted(
            registration
            for registration in self._registrations.get(point, [])
            if registration.option_group in (None, option_group)
        )
