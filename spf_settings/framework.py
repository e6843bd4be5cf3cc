"""
Settings facade.

`SettingsFramework` ties one settings document to its option store, its
extension points and the host lifecycle:

    UNINITIALIZED -> CONFIGURED -> REGISTERED -> (VALIDATION_IN_FLIGHT | RENDERING)

Validation and rendering always fall back to REGISTERED when they finish.
"""

from __future__ import annotations

import copy
import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Iterator, Mapping, Optional, Protocol

from spf_common.discovery.entrypoints import discover_entrypoints, iter_loaded_entrypoints
from spf_common.errors import (
    ConfigurationError,
    PermissionDeniedError,
    SettingsFrameworkError,
    SettingsStateError,
    error_to_payload,
)
from spf_common.logging import option_group_context
from spf_settings.builder import (
    build_document,
    load_settings_file,
    merge_settings,
    resolve_option_group,
)
from spf_settings.fields import FieldTypeRegistry, default_registry
from spf_settings.hooks import ExtensionPoint, HookBus
from spf_settings.keys import option_name, page_name, settings_page_slug
from spf_settings.models import FieldSpec, SectionSpec, SettingsDocument
from spf_settings.render import RenderOrchestrator, is_displayable_field, is_displayable_section
from spf_settings.sanitize import ExternalSanitizer, SanitizationEngine
from spf_settings.storage import OptionStore

logger = logging.getLogger(__name__)

CONTRIBUTOR_ENTRYPOINT_GROUP = "settings_page.contributors"
DEFAULT_CAPABILITY = "manage_options"


class SettingsState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONFIGURED = "configured"
    REGISTERED = "registered"
    VALIDATION_IN_FLIGHT = "validation_in_flight"
    RENDERING = "rendering"


class SettingsRegistrar(Protocol):
    """Host hook that binds an option name to its validation callback."""

    def register_setting(
        self,
        option_group: str,
        option_name: str,
        sanitize_callback: Callable[[Mapping[str, Any]], dict[str, Any]],
    ) -> None:
        ...


@dataclass
class SettingsPage:
    """Admin page metadata; menu registration is up to the host."""

    slug: str
    title: str = ""
    menu_title: str = ""
    capability: str = DEFAULT_CAPABILITY
    parent_slug: Optional[str] = None


@dataclass
class DisplaySection:
    """A section as attached to a page (or tab pane) after registration."""

    page: str
    section: SectionSpec
    fields: list[FieldSpec] = field(default_factory=list)


def load_contributions(option_group: str, bus: Optional[HookBus] = None) -> Any:
    """
    Collect sections contributed for `option_group`.

    Entry points in `CONTRIBUTOR_ENTRYPOINT_GROUP` are callables taking the
    option group; their results are merged in discovery order, then the
    REGISTER_SETTINGS filter gets the final say.
    """
    contributed: Any = []
    entry_points = discover_entrypoints(CONTRIBUTOR_ENTRYPOINT_GROUP)
    for name, contributor in iter_loaded_entrypoints(entry_points, label="settings contributor"):
        if not callable(contributor):
            logger.warning("Settings contributor %s is not callable", name)
            continue
        try:
            contribution = contributor(option_group)
        except Exception as exc:
            logger.warning("Settings contributor %s failed: %s", name, exc)
            continue
        contributed = merge_settings(contributed, contribution)

    if bus is not None:
        contributed = bus.apply_filters(
            ExtensionPoint.REGISTER_SETTINGS, contributed, option_group=option_group
        )
    return contributed


class SettingsFramework:
    """Public entry point for one settings page."""

    def __init__(
        self,
        store: OptionStore,
        *,
        bus: Optional[HookBus] = None,
        registry: Optional[FieldTypeRegistry] = None,
        sanitizers: Optional[Mapping[str, ExternalSanitizer]] = None,
        load_entrypoints: bool = False,
    ):
        self.store = store
        self.bus = bus or HookBus()
        self.registry = registry or default_registry()
        self.engine = SanitizationEngine(self.registry, sanitizers)
        self.load_entrypoints = load_entrypoints
        self.state = SettingsState.UNINITIALIZED
        self.document: Optional[SettingsDocument] = None
        self.settings_page: Optional[SettingsPage] = None
        self.display_sections: list[DisplaySection] = []
        self.errors: list[SettingsFrameworkError] = []
        self._settings_cache: Optional[dict[str, Any]] = None

    # -- lifecycle ---------------------------------------------------------

    def configure(self, raw_config: Any, option_group: Optional[str] = None) -> SettingsDocument:
        """Build the settings document (UNINITIALIZED -> CONFIGURED)."""
        self._require(SettingsState.UNINITIALIZED)
        try:
            group = resolve_option_group(raw_config, option_group)
            contributed = (
                load_contributions(group, self.bus)
                if self.load_entrypoints
                else self.bus.apply_filters(
                    ExtensionPoint.REGISTER_SETTINGS, [], option_group=group
                )
            )
            document = build_document(raw_config, contributed, option_group=group)
        except ConfigurationError as exc:
            self.errors.append(exc)
            logger.error("Invalid settings configuration: %s", exc)
            raise

        self.document = document
        self.settings_page = SettingsPage(slug=settings_page_slug(document.option_group))
        self.state = SettingsState.CONFIGURED
        logger.info(
            "Configured settings %s (%d sections, tabs=%s)",
            document.option_group,
            len(document.sections),
            document.has_tabs,
        )
        return document

    def configure_from_file(
        self, path: Path, option_group: Optional[str] = None
    ) -> SettingsDocument:
        """Configure from a YAML/JSON file; the file name is the fallback group."""
        try:
            raw_config, file_group = load_settings_file(path)
        except ConfigurationError as exc:
            self.errors.append(exc)
            raise
        if option_group is None and not (
            isinstance(raw_config, Mapping) and raw_config.get("option_group")
        ):
            option_group = file_group
        return self.configure(raw_config, option_group)

    def register(self, registrar: Optional[SettingsRegistrar] = None) -> list[DisplaySection]:
        """Host init phase (CONFIGURED -> REGISTERED).

        Binds the option name to `validate` and attaches displayable sections
        and fields to their pages.
        """
        self._require(SettingsState.CONFIGURED)
        document = self._document()
        if registrar is not None:
            registrar.register_setting(
                document.option_group, option_name(document.option_group), self.validate
            )

        self.display_sections = []
        for section in document.sections:
            if not is_displayable_section(section):
                continue
            self.display_sections.append(
                DisplaySection(
                    page=page_name(document.option_group, section.tab_id),
                    section=section,
                    fields=[f for f in section.fields if is_displayable_field(f)],
                )
            )
        self.state = SettingsState.REGISTERED
        logger.debug(
            "Registered %s with %d displayable sections",
            document.option_group,
            len(self.display_sections),
        )
        return self.display_sections

    def validate(self, submission: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        """Sanitize one submission and run the SETTINGS_VALIDATE filter."""
        with self._transition(SettingsState.VALIDATION_IN_FLIGHT):
            document = self._document()
            cleaned = self.engine.sanitize(document, submission)
            return self.bus.apply_filters(
                ExtensionPoint.SETTINGS_VALIDATE,
                cleaned,
                option_group=document.option_group,
            )

    def save(self, submission: Optional[Mapping[str, Any]]) -> dict[str, Any]:
        """Validate a submission and write it to the store as one blob."""
        cleaned = self.validate(submission)
        self.store.write(option_name(self.option_group), cleaned)
        self.invalidate_cache()
        return cleaned

    def render(self) -> str:
        """Render the settings form against the stored values."""
        with self._transition(SettingsState.RENDERING):
            document = self._document()
            stored = self.store.read(option_name(document.option_group)) or {}
            orchestrator = RenderOrchestrator(
                document, stored, registry=self.registry, bus=self.bus
            )
            return orchestrator.render_form()

    # -- page --------------------------------------------------------------

    def add_settings_page(
        self,
        page_title: str,
        menu_title: str = "",
        capability: str = DEFAULT_CAPABILITY,
        parent_slug: Optional[str] = None,
    ) -> SettingsPage:
        document = self._document()
        self.settings_page = SettingsPage(
            slug=settings_page_slug(document.option_group),
            title=page_title,
            menu_title=menu_title or page_title,
            capability=capability,
            parent_slug=parent_slug,
        )
        return self.settings_page

    def page_content(self, current_user_can: Callable[[str], bool]) -> str:
        """Full page markup; raises PermissionDeniedError without the capability."""
        page = self.settings_page or SettingsPage(slug=settings_page_slug(self.option_group))
        if not current_user_can(page.capability):
            raise PermissionDeniedError(
                "You do not have sufficient permissions to access this page.",
                context={"page": page.slug, "capability": page.capability},
            )
        return (
            '<div class="wrap">'
            f"<h2>{page.title}</h2>"
            f"{self.render()}"
            "</div>"
        )

    def admin_notices(self) -> list[dict[str, Any]]:
        """Configuration errors for the host to display."""
        return [error_to_payload(error) for error in self.errors]

    # -- read-back ---------------------------------------------------------

    @property
    def option_group(self) -> str:
        return self._document().option_group

    @property
    def has_tabs(self) -> bool:
        return self._document().has_tabs

    @property
    def configured_field_types(self) -> set[str]:
        return self.registry.distinct_types_used(self._document())

    def required_assets(self) -> list[str]:
        return self.registry.required_assets(self.configured_field_types)

    def get_settings(self) -> dict[str, Any]:
        """
        Stored values merged with defaults, keyed by storage key.

        Memoised on the instance; `save` and `invalidate_cache` drop the memo.
        """
        if self._settings_cache is None:
            document = self._document()
            saved = self.store.read(option_name(document.option_group)) or {}
            settings: dict[str, Any] = {}
            for section, spec in document.iter_fields():
                key = document.storage_key(section, spec)
                if key in saved:
                    settings[key] = saved[key]
                    continue
                default = spec.default
                if isinstance(default, Mapping) and default:
                    default = list(default.values())
                settings[key] = copy.deepcopy(default)
            self._settings_cache = settings
        return copy.deepcopy(self._settings_cache)

    def invalidate_cache(self) -> None:
        self._settings_cache = None

    def delete_settings(self) -> None:
        self.store.delete(option_name(self.option_group))
        self.invalidate_cache()

    # -- helpers -----------------------------------------------------------

    def _document(self) -> SettingsDocument:
        if self.document is None:
            raise SettingsStateError(
                "Settings are not configured",
                context={"state": self.state.value},
            )
        return self.document

    def _require(self, *states: SettingsState) -> None:
        if self.state not in states:
            raise SettingsStateError(
                f"Operation not allowed in state {self.state.value}",
                context={"state": self.state.value, "expected": [s.value for s in states]},
            )

    @contextmanager
    def _transition(self, state: SettingsState) -> Iterator[None]:
        self._require(SettingsState.REGISTERED)
        self.state = state
        try:
            with option_group_context(self._document().option_group):
                yield
        finally:
            self.state = SettingsState.REGISTERED


def create_settings(
    raw_config: Any,
    store: OptionStore,
    option_group: Optional[str] = None,
    **kwargs: Any,
) -> SettingsFramework:
    """Build a configured `SettingsFramework` in one call."""
    framework = SettingsFramework(store, **kwargs)
    framework.configure(raw_config, option_group)
    return framework
