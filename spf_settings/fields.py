"""
Field type registry.

Single source of truth for type dispatch: each field type maps to its
sanitize rule, its renderer, and the optional presentation assets it needs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from spf_settings import sanitizers, widgets
from spf_settings.models import FieldSpec, SettingsDocument
from spf_settings.sanitizers import SanitizeRule
from spf_settings.widgets import Renderer

logger = logging.getLogger(__name__)


class FieldType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    TIME = "time"
    DATE = "date"
    PASSWORD = "password"
    TEXTAREA = "textarea"
    SELECT = "select"
    RADIO = "radio"
    CHECKBOX = "checkbox"
    CHECKBOXES = "checkboxes"
    COLOR = "color"
    FILE = "file"
    EDITOR = "editor"
    UPLOADER = "uploader"
    MEDIA = "media"
    GROUP = "group"
    CUSTOM = "custom"
    MULTIINPUTS = "multiinputs"


@dataclass(frozen=True)
class FieldTypeInfo:
    """Capabilities of one field type."""

    name: str
    sanitizer: SanitizeRule
    renderer: Optional[Renderer] = None
    supports_subfields: bool = False
    assets: tuple[str, ...] = ()


def builtin_field_types() -> list[FieldTypeInfo]:
    """Return the closed set of field types shipped with the framework."""
    rules = sanitizers.BUILTIN_RULES
    default = sanitizers.default_rule
    return [
        FieldTypeInfo(FieldType.TEXT.value, default, widgets.render_text),
        FieldTypeInfo(FieldType.NUMBER.value, rules["number"], widgets.render_number),
        FieldTypeInfo(
            FieldType.TIME.value,
            rules["time"],
            widgets.render_time,
            assets=("timepicker",),
        ),
        FieldTypeInfo(
            FieldType.DATE.value,
            rules["date"],
            widgets.render_date,
            assets=("datepicker",),
        ),
        FieldTypeInfo(FieldType.PASSWORD.value, rules["password"], widgets.render_password),
        FieldTypeInfo(FieldType.TEXTAREA.value, rules["textarea"], widgets.render_textarea),
        FieldTypeInfo(FieldType.SELECT.value, rules["select"], widgets.render_select),
        FieldTypeInfo(FieldType.RADIO.value, rules["radio"], widgets.render_radio),
        FieldTypeInfo(FieldType.CHECKBOX.value, rules["checkbox"], widgets.render_checkbox),
        FieldTypeInfo(
            FieldType.CHECKBOXES.value, rules["checkboxes"], widgets.render_checkboxes
        ),
        FieldTypeInfo(
            FieldType.COLOR.value,
            rules["color"],
            widgets.render_color,
            assets=("color-picker",),
        ),
        FieldTypeInfo(
            FieldType.FILE.value,
            rules["file"],
            widgets.render_file,
            assets=("media-upload",),
        ),
        FieldTypeInfo(FieldType.EDITOR.value, rules["editor"], widgets.render_editor),
        FieldTypeInfo(
            FieldType.UPLOADER.value,
            rules["uploader"],
            widgets.render_media,
            assets=("media",),
        ),
        FieldTypeInfo(
            FieldType.MEDIA.value, default, widgets.render_media, assets=("media",)
        ),
        FieldTypeInfo(
            FieldType.GROUP.value,
            default,
            widgets.render_group,
            supports_subfields=True,
        ),
        FieldTypeInfo(FieldType.CUSTOM.value, default, widgets.render_custom),
        FieldTypeInfo(FieldType.MULTIINPUTS.value, default, widgets.render_multiinputs),
    ]


class FieldTypeRegistry:
    """In-memory registry of field types."""

    def __init__(self, field_types: Optional[Iterable[FieldTypeInfo]] = None):
        self._types: dict[str, FieldTypeInfo] = {}
        for info in builtin_field_types() if field_types is None else field_types:
            self.register(info)

    def register(self, info: FieldTypeInfo) -> None:
        """Register (or replace) a field type."""
        if not info.name:
            raise ValueError("Field type name must not be empty")
        if info.name in self._types:
            logger.debug("Replacing field type %s", info.name)
        self._types[info.name] = info

    def get(self, type_name: Optional[str]) -> Optional[FieldTypeInfo]:
        if not type_name:
            return None
        return self._types.get(type_name.lower())

    def types(self) -> list[str]:
        return list(self._types)

    def sanitizer_for(self, type_name: Optional[str]) -> SanitizeRule:
        """Sanitize rule for a type; unknown types get the plain-text rule."""
        info = self.get(type_name)
        return info.sanitizer if info else sanitizers.default_rule

    def renderer_for(self, type_name: Optional[str]) -> Optional[Renderer]:
        info = self.get(type_name)
        return info.renderer if info else None

    def supports_subfields(self, type_name: Optional[str]) -> bool:
        info = self.get(type_name)
        return bool(info and info.supports_subfields)

    def distinct_types_used(self, document: SettingsDocument) -> set[str]:
        """Every type tag appearing in the document, subfields included."""
        used: set[str] = set()

        def _collect(fields: Iterable[FieldSpec]) -> None:
            for field in fields:
                if field.type:
                    used.add(field.type)
                _collect(field.subfields)

        for section in document.sections:
            _collect(section.fields)
        return used

    def required_assets(self, type_names: Iterable[str]) -> list[str]:
        """Presentation assets needed by the given types, in registry order."""
        wanted = set(type_names)
        assets: list[str] = []
        for name, info in self._types.items():
            if name not in wanted:
                continue
            for asset in info.assets:
                if asset not in assets:
                    assets.append(asset)
        return assets


def default_registry() -> FieldTypeRegistry:
    return FieldTypeRegistry()
