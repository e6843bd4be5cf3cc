"""
Settings model builder.

Normalizes raw configuration (plain data or a YAML/JSON file), merged with
sections contributed by collaborating extensions, into a `SettingsDocument`.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import yaml
from pydantic import ValidationError

from spf_common.errors import ConfigurationError
from spf_settings.models import SectionSpec, SettingsDocument, TabSpec

logger = logging.getLogger(__name__)

_OPTION_GROUP_RE = re.compile(r"[^a-z0-9_\-]")
_FILE_GROUP_RE = re.compile(r"[^a-z0-9]+", re.IGNORECASE)


def normalize_option_group(value: Any) -> Optional[str]:
    """Lower-case `value` and keep only ``[a-z0-9_-]``; None when nothing is left."""
    if value is None or isinstance(value, bool):
        return None
    normalized = _OPTION_GROUP_RE.sub("", str(value).lower())
    return normalized or None


def option_group_from_path(path: Path) -> Optional[str]:
    return _FILE_GROUP_RE.sub("", Path(path).stem) or None


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def merge_settings(direct: Any, contributed: Any) -> Any:
    """
    Merge contributed configuration into the direct configuration.

    - mappings merge key by key, recursively;
    - on collision, lists concatenate (direct entries first);
    - on any other collision the direct value wins;
    - a flat section list meeting a wrapper mapping is lifted to
      ``{"sections": [...]}`` first.
    """
    if contributed is None or (not contributed and _is_sequence(contributed)):
        return direct
    if direct is None:
        return contributed

    if _is_sequence(direct) and _is_sequence(contributed):
        return [*direct, *contributed]
    if _is_sequence(direct) and isinstance(contributed, Mapping):
        direct = {"sections": list(direct)}
    elif isinstance(direct, Mapping) and _is_sequence(contributed):
        contributed = {"sections": list(contributed)}

    if isinstance(direct, Mapping) and isinstance(contributed, Mapping):
        merged: dict[str, Any] = dict(direct)
        for key, value in contributed.items():
            if key not in merged:
                merged[key] = value
                continue
            current = merged[key]
            if _is_sequence(current) and _is_sequence(value):
                merged[key] = [*current, *value]
            elif isinstance(current, Mapping) and isinstance(value, Mapping):
                merged[key] = merge_settings(current, value)
        return merged

    logger.warning(
        "Ignoring contributed settings of type %s", type(contributed).__name__
    )
    return direct


def sort_sections(sections: Iterable[SectionSpec]) -> list[SectionSpec]:
    """Stable sort by `order`; unordered sections follow, in input order."""
    return sorted(
        sections,
        key=lambda section: (section.order is None, section.order or 0),
    )


def resolve_option_group(raw_config: Any, option_group: Optional[str]) -> str:
    """Pick the option group: explicit argument first, then ``raw_config['option_group']``."""
    resolved = normalize_option_group(option_group)
    if resolved is None and isinstance(raw_config, Mapping):
        resolved = normalize_option_group(raw_config.get("option_group"))
    if resolved is None:
        raise ConfigurationError(
            "undefined option_group: pass it explicitly or set settings['option_group']"
        )
    return resolved


def _split_document(raw: Any) -> tuple[list[Any], list[Any]]:
    if _is_sequence(raw):
        return list(raw), []
    if isinstance(raw, Mapping):
        sections = raw.get("sections")
        if sections is None:
            raise ConfigurationError("settings mapping has no 'sections' list")
        if not _is_sequence(sections):
            raise ConfigurationError(
                "'sections' must be a list",
                context={"type": type(sections).__name__},
            )
        tabs = raw.get("tabs") or []
        if not _is_sequence(tabs):
            raise ConfigurationError(
                "'tabs' must be a list",
                context={"type": type(tabs).__name__},
            )
        return list(sections), list(tabs)
    raise ConfigurationError(
        "settings must be a mapping or a list of sections",
        context={"type": type(raw).__name__},
    )


def _parse_sections(raw_sections: list[Any]) -> list[SectionSpec]:
    sections: list[SectionSpec] = []
    for index, raw_section in enumerate(raw_sections):
        if not isinstance(raw_section, Mapping):
            raise ConfigurationError(
                f"section #{index} is not a mapping",
                context={"type": type(raw_section).__name__},
            )
        try:
            sections.append(SectionSpec.model_validate(dict(raw_section)))
        except ValidationError as exc:
            raise ConfigurationError(
                f"invalid section #{index}: {exc}",
                context={"section": raw_section.get("section_id")},
                cause=exc,
            ) from exc
    return sections


def _parse_tabs(raw_tabs: list[Any]) -> list[TabSpec]:
    try:
        return [TabSpec.model_validate(tab) for tab in raw_tabs]
    except ValidationError as exc:
        raise ConfigurationError(f"invalid tabs: {exc}", cause=exc) from exc


def _reject_nested_groups(sections: Iterable[SectionSpec]) -> None:
    for section in sections:
        for field in section.fields:
            if not field.is_group:
                continue
            nested = [sub.id for sub in field.subfields if sub.is_group]
            if nested:
                raise ConfigurationError(
                    f"group field '{field.id}' in section '{section.section_id}' "
                    "contains nested groups",
                    context={"subfields": nested},
                )


def build_document(
    raw_config: Any,
    contributed: Any = None,
    option_group: Optional[str] = None,
) -> SettingsDocument:
    """
    Build a `SettingsDocument` from raw configuration.

    Args:
        raw_config: a list of sections, or a mapping with ``sections`` and
            optionally ``tabs`` and ``option_group``.
        contributed: configuration supplied by collaborating extensions, in
            the same shapes; merged per `merge_settings`.
        option_group: explicit option group, overriding the configuration.

    Raises:
        ConfigurationError: malformed input, missing option group, no
            sections, invalid tab references, nested groups, or duplicate
            storage keys.
    """
    if not isinstance(raw_config, (Mapping, list, tuple)):
        raise ConfigurationError(
            "settings must be a mapping or a list of sections",
            context={"type": type(raw_config).__name__},
        )

    group = resolve_option_group(raw_config, option_group)
    merged = merge_settings(raw_config, contributed)
    raw_sections, raw_tabs = _split_document(merged)
    if not raw_sections:
        raise ConfigurationError(
            f"settings for '{group}' define no sections",
            context={"option_group": group},
        )

    sections = sort_sections(_parse_sections(raw_sections))
    tabs = _parse_tabs(raw_tabs)
    _reject_nested_groups(sections)
    has_tabs = bool(tabs) or any(section.tab_id for section in sections)

    try:
        document = SettingsDocument(
            option_group=group,
            sections=sections,
            tabs=tabs,
            has_tabs=has_tabs,
        )
    except ValidationError as exc:
        raise ConfigurationError(
            f"invalid settings for '{group}': {exc}",
            context={"option_group": group},
            cause=exc,
        ) from exc

    logger.debug(
        "Built settings document %s: %d sections, %d tabs",
        group,
        len(document.sections),
        len(document.tabs),
    )
    return document


def load_settings_file(path: Path) -> tuple[Any, Optional[str]]:
    """
    Load a YAML or JSON settings definition.

    Returns the raw configuration and the option group derived from the file
    name (used when neither the caller nor the file provides one).
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Settings file not found: {path}", context={"path": path})
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Settings file {path} is not valid YAML/JSON",
            context={"path": path},
            cause=exc,
        ) from exc
    if data is None:
        raise ConfigurationError(f"Settings file {path} is empty", context={"path": path})
    return data, option_group_from_path(path)
