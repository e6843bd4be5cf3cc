"""Public API surface for spf_settings."""

from spf_settings.builder import build_document, load_settings_file, merge_settings
from spf_settings.fields import FieldType, FieldTypeInfo, FieldTypeRegistry
from spf_settings.framework import (
    SettingsFramework,
    SettingsPage,
    SettingsState,
    create_settings,
)
from spf_settings.hooks import ExtensionPoint, HookBus
from spf_settings.keys import derive_key, option_name
from spf_settings.models import FieldSpec, SectionSpec, SettingsDocument, TabSpec
from spf_settings.render import RenderOrchestrator
from spf_settings.sanitize import SanitizationEngine, sanitize
from spf_settings.storage import (
    InMemoryOptionStore,
    JsonFileOptionStore,
    OptionStore,
    delete_settings,
    get_setting,
)

__all__ = [
    "build_document",
    "create_settings",
    "delete_settings",
    "derive_key",
    "ExtensionPoint",
    "FieldSpec",
    "FieldType",
    "FieldTypeInfo",
    "FieldTypeRegistry",
    "get_setting",
    "HookBus",
    "InMemoryOptionStore",
    "JsonFileOptionStore",
    "load_settings_file",
    "merge_settings",
    "option_name",
    "OptionStore",
    "RenderOrchestrator",
    "sanitize",
    "SanitizationEngine",
    "SectionSpec",
    "SettingsDocument",
    "SettingsFramework",
    "SettingsPage",
    "SettingsState",
    "TabSpec",
]
