"""
Rendering orchestrator.

Walks a settings document and turns every field into markup: field arguments
are merged as defaults -> field definition -> stored value, then dispatched to
the renderer registered for the field type.
"""

from __future__ import annotations

import html
import logging
from typing import Any, Mapping, Optional

from spf_settings.fields import FieldTypeRegistry, default_registry
from spf_settings.hooks import ExtensionPoint, HookBus
from spf_settings.keys import field_input_name, option_name
from spf_settings.models import FieldSpec, SectionSpec, SettingsDocument

logger = logging.getLogger(__name__)

FIELD_DEFAULTS: Mapping[str, Any] = {
    "id": "default_field",
    "title": "Default Field",
    "subtitle": "",
    "description": "",
    "default": None,
    "type": "text",
    "placeholder": "",
    "choices": {},
    "css_class": "",
    "subfields": [],
}


def is_displayable_section(section: SectionSpec) -> bool:
    return bool(section.section_id and section.title)


def is_displayable_field(field: FieldSpec) -> bool:
    return bool(field.id and field.title)


class RenderOrchestrator:
    """Render one settings document against a snapshot of stored values."""

    def __init__(
        self,
        document: SettingsDocument,
        stored: Optional[Mapping[str, Any]] = None,
        *,
        registry: Optional[FieldTypeRegistry] = None,
        bus: Optional[HookBus] = None,
    ):
        self.document = document
        self.stored: Mapping[str, Any] = stored or {}
        self.registry = registry or default_registry()
        self.bus = bus or HookBus()
        self._defaults: Optional[dict[str, Any]] = None

    @property
    def option_group(self) -> str:
        return self.document.option_group

    def field_defaults(self) -> dict[str, Any]:
        """Base field arguments, after the FIELD_DEFAULTS filter."""
        if self._defaults is None:
            self._defaults = dict(
                self.bus.apply_filters(
                    ExtensionPoint.FIELD_DEFAULTS,
                    dict(FIELD_DEFAULTS),
                    option_group=self.option_group,
                )
            )
        return self._defaults

    def field_args(self, section: SectionSpec, field: FieldSpec) -> dict[str, Any]:
        """Merged arguments handed to the field renderer."""
        args = {**self.field_defaults(), **field.model_dump(exclude_unset=True)}
        key = self.document.storage_key(section, field)
        args["id"] = key
        args["name"] = field_input_name(self.option_group, key)
        if key in self.stored:
            args["value"] = self.stored[key]
        elif args.get("default") is not None:
            args["value"] = args["default"]
        else:
            args["value"] = ""
        return args

    def dispatch(self, args: dict[str, Any]) -> str:
        """Render merged arguments with the renderer of their type.

        Unknown types render nothing.
        """
        merged = {**self.field_defaults(), **args}
        renderer = self.registry.renderer_for(merged.get("type"))
        if renderer is None:
            logger.debug("No renderer for field type %r", merged.get("type"))
            return ""
        return renderer(merged, self.dispatch)

    def render_field(self, section: SectionSpec, field: FieldSpec) -> str:
        args = self.field_args(section, field)
        key = args["id"]
        before = self.bus.do_action(
            ExtensionPoint.BEFORE_FIELD, option_group=self.option_group, field_key=key
        )
        body = self.dispatch(args)
        after = self.bus.do_action(
            ExtensionPoint.AFTER_FIELD, option_group=self.option_group, field_key=key
        )
        return before + body + after

    def field_label(self, field: FieldSpec) -> str:
        if field.subtitle:
            return f'{field.title} <span class="spf-subtitle">{field.subtitle}</span>'
        return field.title

    def render_section(self, section: SectionSpec) -> str:
        parts = [f"<h2>{html.escape(section.title)}</h2>"]
        if section.description:
            parts.append(
                '<div class="spf-section-description '
                f'spf-section-description--{html.escape(section.section_id)}">'
                f"{section.description}</div>"
            )
        rows = []
        for field in section.fields:
            if not is_displayable_field(field):
                continue
            rows.append(
                "<tr>"
                f'<th scope="row">{self.field_label(field)}</th>'
                f"<td>{self.render_field(section, field)}</td>"
                "</tr>"
            )
        if rows:
            parts.append('<table class="form-table" role="presentation">')
            parts.extend(rows)
            parts.append("</table>")
        return "".join(parts)

    def _render_sections(self, sections: list[SectionSpec]) -> str:
        return "".join(
            self.render_section(section)
            for section in sections
            if is_displayable_section(section)
        )

    def render_tab_links(self) -> str:
        if not self.document.has_tabs:
            return ""
        if not self.bus.apply_filters(
            ExtensionPoint.SHOW_TAB_LINKS, True, option_group=self.option_group
        ):
            return ""
        links = []
        for index, tab in enumerate(self.document.tabs):
            active = " nav-tab-active" if index == 0 else ""
            links.append(
                f'<a class="nav-tab spf-tab-link{active}" '
                f'href="#tab-{html.escape(tab.id)}">{html.escape(tab.title)}</a>'
            )
        return (
            self.bus.do_action(ExtensionPoint.BEFORE_TAB_LINKS, option_group=self.option_group)
            + '<h2 class="nav-tab-wrapper">'
            + "".join(links)
            + "</h2>"
            + self.bus.do_action(ExtensionPoint.AFTER_TAB_LINKS, option_group=self.option_group)
        )

    def render_sections(self) -> str:
        """Tabbed documents get one pane per tab; others a single container."""
        if not self.document.has_tabs:
            return (
                '<div class="spf-section spf-tabless">'
                + self._render_sections(self.document.sections)
                + "</div>"
            )
        panes = []
        for index, tab in enumerate(self.document.tabs):
            active = " spf-tab--active" if index == 0 else ""
            tab_id = html.escape(tab.id)
            panes.append(
                f'<div id="tab-{tab_id}" class="spf-section spf-tab spf-tab--{tab_id}{active}">'
                '<div class="postbox">'
                + self._render_sections(self.document.sections_for_tab(tab.id))
                + "</div></div>"
            )
        return "".join(panes)

    def render_form(self) -> str:
        """The full settings form: tab links, sections, save button and hooks."""
        group = self.option_group
        parts = [
            self.bus.do_action(ExtensionPoint.BEFORE_SETTINGS, option_group=group),
            self.render_tab_links(),
            '<form action="options.php" method="post" novalidate>',
            self.bus.do_action(ExtensionPoint.BEFORE_SETTINGS_FIELDS, option_group=group),
            f'<input type="hidden" name="option_page" value="{html.escape(group)}" />',
            f'<input type="hidden" name="option_name" value="{html.escape(option_name(group))}" />',
            self.render_sections(),
        ]
        if self.bus.apply_filters(ExtensionPoint.SHOW_SAVE_BUTTON, True, option_group=group):
            parts.append(
                '<p class="submit">'
                '<input type="submit" class="button-primary" value="Save Changes" />'
                "</p>"
            )
        parts.append("</form>")
        parts.append(self.bus.do_action(ExtensionPoint.AFTER_SETTINGS, option_group=group))
        return "".join(parts)
