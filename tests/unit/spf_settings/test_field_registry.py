"""Tests for the field type registry."""

from __future__ import annotations

import pytest

from spf_settings import sanitizers, widgets
from spf_settings.builder import build_document
from spf_settings.fields import FieldType, FieldTypeInfo, FieldTypeRegistry


pytestmark = pytest.mark.unit_settings


def test_every_builtin_type_is_registered() -> None:
    registry = FieldTypeRegistry()
    assert set(registry.types()) == {member.value for member in FieldType}
    for name in registry.types():
        assert registry.renderer_for(name) is not None


def test_lookup_is_case_insensitive_and_unknown_types_fall_back() -> None:
    registry = FieldTypeRegistry()
    assert registry.get("Number").name == "number"
    assert registry.get("mystery") is None
    assert registry.sanitizer_for("mystery") is sanitizers.default_rule
    assert registry.renderer_for(None) is None


def test_only_groups_support_subfields() -> None:
    registry = FieldTypeRegistry()
    assert registry.supports_subfields("group")
    assert not registry.supports_subfields("text")
    assert not registry.supports_subfields("mystery")


def test_uploader_and_media_share_the_widget_not_the_rule() -> None:
    registry = FieldTypeRegistry()
    assert registry.renderer_for("uploader") is widgets.render_media
    assert registry.renderer_for("media") is widgets.render_media
    assert registry.sanitizer_for("uploader") is sanitizers.uploader_rule
    assert registry.sanitizer_for("media") is sanitizers.default_rule


def test_register_replaces_and_rejects_empty_names() -> None:
    registry = FieldTypeRegistry(field_types=[])
    assert registry.types() == []
    registry.register(FieldTypeInfo("slug", sanitizers.plain_text_rule))
    registry.register(FieldTypeInfo("slug", sanitizers.textarea_rule))
    assert registry.sanitizer_for("slug") is sanitizers.textarea_rule
    with pytest.raises(ValueError):
        registry.register(FieldTypeInfo("", sanitizers.plain_text_rule))


def test_distinct_types_and_assets(tabless_config: dict) -> None:
    tabless_config["sections"][0]["fields"].append(
        {"id": "when", "title": "When", "type": "date"}
    )
    registry = FieldTypeRegistry()
    used = registry.distinct_types_used(build_document(tabless_config))
    assert used == {"text", "select", "checkbox", "number", "group", "color", "date"}
    assert registry.required_assets(used) == ["datepicker", "color-picker"]


def test_no_assets_for_plain_types() -> None:
    assert FieldTypeRegistry().required_assets({"text", "number"}) == []
