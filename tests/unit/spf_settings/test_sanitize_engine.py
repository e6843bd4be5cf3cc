"""Tests for the sanitization engine."""

from __future__ import annotations

from pathlib import Path

import pytest

from spf_settings.builder import build_document
from spf_settings.fields import FieldTypeInfo, FieldTypeRegistry
from spf_settings.sanitize import SanitizationEngine, sanitize


pytestmark = pytest.mark.unit_settings


def shout(value):
    return str(value).upper()


def _document(fields, **section):
    return build_document(
        [{"section_id": "general", "section_title": "General", "fields": fields, **section}],
        option_group="demo",
    )


def test_only_declared_keys_survive(tabless_config: dict) -> None:
    document = build_document(tabless_config)
    cleaned = sanitize(
        document,
        {
            "general_name": "<b>Ada</b>",
            "general_mode": "z",
            "general_enabled": "1",
            "advanced_limit": "42",
            "injected": "evil",
        },
    )
    assert "injected" not in cleaned
    assert cleaned == {
        "general_name": "Ada",
        "general_mode": "a",
        "general_enabled": 1,
        "advanced_limit": 42,
    }


def test_missing_values_become_empty_strings() -> None:
    document = _document([{"id": "name"}, {"id": "enabled", "type": "checkbox"}])
    assert sanitize(document, {}) == {"general_name": "", "general_enabled": ""}
    assert sanitize(document, None) == {"general_name": "", "general_enabled": ""}


def test_empty_values_pass_through_verbatim() -> None:
    document = _document(
        [
            {"id": "tags", "type": "checkboxes", "choices": {"a": "A"}},
            {"id": "when", "type": "date"},
        ]
    )
    assert sanitize(document, {"general_tags": [], "general_when": ""}) == {
        "general_tags": [],
        "general_when": "",
    }


def test_zero_checkbox_is_not_empty() -> None:
    document = _document([{"id": "enabled", "type": "checkbox"}])
    assert sanitize(document, {"general_enabled": 0}) == {"general_enabled": ""}


def test_group_rows_are_sanitized_per_subfield(tabless_config: dict) -> None:
    document = build_document(tabless_config)
    rows = [
        {"label": "<i>One</i>", "color": "#fff", "extra": "x"},
        {"label": "Two", "color": "blue"},
        {"label": "Three"},
    ]
    cleaned = sanitize(document, {"advanced_links": rows})
    assert cleaned["advanced_links"] == [
        {"label": "One", "color": "#fff"},
        {"label": "Two", "color": ""},
        {"label": "Three", "color": ""},
    ]


def test_group_rows_from_indexed_mapping(tabless_config: dict) -> None:
    document = build_document(tabless_config)
    posted = {"advanced_links": {"10": {"label": "b"}, "2": {"label": "a"}, "3": "junk"}}
    cleaned = sanitize(document, posted)
    assert cleaned["advanced_links"] == [
        {"label": "a", "color": ""},
        {},
        {"label": "b", "color": ""},
    ]


def test_empty_group_is_not_stored(tabless_config: dict) -> None:
    document = build_document(tabless_config)
    assert "advanced_links" not in sanitize(document, {"advanced_links": []})
    assert "advanced_links" not in sanitize(document, {})


def test_override_no_keeps_raw_value() -> None:
    document = _document([{"id": "snippet", "sanitize": "no"}])
    assert sanitize(document, {"general_snippet": "<b>raw</b>"}) == {
        "general_snippet": "<b>raw</b>"
    }


def test_named_and_imported_overrides() -> None:
    document = _document(
        [
            {"id": "code", "sanitize": "shout"},
            {"id": "path", "sanitize": f"{__name__}:shout"},
        ]
    )
    engine = SanitizationEngine(sanitizers={"shout": shout})
    cleaned = engine.sanitize(document, {"general_code": "abc", "general_path": "xyz"})
    assert cleaned == {"general_code": "ABC", "general_path": "XYZ"}


def test_unknown_or_failing_override_uses_type_rule(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def explode(value):
        raise RuntimeError("boom")

    (tmp_path / "spf_broken_sanitizers.py").write_text(
        "raise RuntimeError('import failed')\n", encoding="utf-8"
    )
    monkeypatch.syspath_prepend(str(tmp_path))

    overrides = [
        "missing",
        "explode",
        ":fn",
        "json:",
        ".rel:fn",
        "spf_no_such_module:fn",
        "spf_broken_sanitizers:fn",
    ]
    document = _document(
        [
            {"id": f"n{index}", "type": "number", "sanitize": override}
            for index, override in enumerate(overrides)
        ]
    )
    engine = SanitizationEngine(sanitizers={"explode": explode})
    submission = {f"general_n{index}": "7" for index in range(len(overrides))}
    submission["general_n0"] = "7x"
    expected = {f"general_n{index}": 7 for index in range(len(overrides))}
    expected["general_n0"] = 0
    assert engine.sanitize(document, submission) == expected


def test_oversized_number_is_kept_not_replaced_by_default() -> None:
    document = _document([{"id": "n", "type": "number", "default": 5}])
    huge = "1" * 5000
    assert sanitize(document, {"general_n": huge}) == {"general_n": huge}


def test_failing_custom_rule_falls_back_to_default() -> None:
    def broken_rule(field, value):
        raise ValueError("nope")

    registry = FieldTypeRegistry()
    registry.register(FieldTypeInfo("slug", broken_rule))
    document = _document([{"id": "slug", "type": "slug", "default": "home"}])
    assert sanitize(document, {"general_slug": "x"}, registry=registry) == {
        "general_slug": "home"
    }


def test_unknown_type_uses_plain_text_rule() -> None:
    document = _document([{"id": "odd", "type": "mystery"}])
    assert sanitize(document, {"general_odd": "<b>x</b>\ny"}) == {"general_odd": "x y"}


def test_sanitize_is_idempotent(tabless_config: dict) -> None:
    document = build_document(tabless_config)
    once = sanitize(
        document,
        {
            "general_name": " a < b ",
            "general_mode": "b",
            "general_enabled": "on",
            "advanced_limit": "3.5",
            "advanced_links": [{"label": "<b>x</b>", "color": "#000000"}],
        },
    )
    assert sanitize(document, once) == once


def test_tabbed_keys_are_used(tabbed_config: dict) -> None:
    document = build_document(tabbed_config)
    cleaned = sanitize(document, {"main_general_name": "x", "general_name": "y"})
    assert cleaned == {"main_general_name": "x", "extra_colors_accent": ""}
