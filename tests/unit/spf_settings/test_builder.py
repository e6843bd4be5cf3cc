"""Tests for building settings documents from raw configuration."""

from __future__ import annotations

from pathlib import Path

import pytest

from spf_common.errors import ConfigurationError
from spf_settings.builder import (
    build_document,
    load_settings_file,
    merge_settings,
    normalize_option_group,
    option_group_from_path,
)


pytestmark = pytest.mark.unit_settings


def _section(section_id: str, order=None, **extra) -> dict:
    section = {"section_id": section_id, "section_title": section_id.title(), **extra}
    if order is not None:
        section["section_order"] = order
    return section


def test_sections_sorted_by_order(tabless_config: dict) -> None:
    document = build_document(tabless_config)
    assert [s.section_id for s in document.sections] == ["advanced", "general"]


def test_order_sort_is_stable_with_unordered_last() -> None:
    raw = [_section("c", 3), _section("x"), _section("a", 1), _section("b", 2), _section("y")]
    document = build_document(raw, option_group="demo")
    assert [s.section_id for s in document.sections] == ["a", "b", "c", "x", "y"]


def test_option_group_explicit_wins(tabless_config: dict) -> None:
    document = build_document(tabless_config, option_group="Other Group!")
    assert document.option_group == "othergroup"


def test_missing_option_group_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError, match="option_group"):
        build_document([_section("general")])


def test_empty_sections_rejected() -> None:
    with pytest.raises(ConfigurationError, match="no sections"):
        build_document({"option_group": "demo", "sections": []})


def test_non_mapping_input_rejected() -> None:
    with pytest.raises(ConfigurationError):
        build_document("sections", option_group="demo")


def test_tabbed_document(tabbed_config: dict) -> None:
    document = build_document(tabbed_config)
    assert document.has_tabs
    assert document.storage_keys() == ["main_general_name", "extra_colors_accent"]


def test_sections_wrapper_without_tabs_is_tabless(tabless_config: dict) -> None:
    document = build_document(tabless_config)
    assert not document.has_tabs
    assert "general_name" in document.storage_keys()


def test_undeclared_tab_rejected(tabbed_config: dict) -> None:
    tabbed_config["sections"][1]["tab_id"] = "missing"
    with pytest.raises(ConfigurationError, match="unknown tab"):
        build_document(tabbed_config)


def test_nested_groups_rejected() -> None:
    raw = [
        _section(
            "general",
            fields=[
                {
                    "id": "outer",
                    "type": "group",
                    "subfields": [{"id": "inner", "type": "group"}],
                }
            ],
        )
    ]
    with pytest.raises(ConfigurationError, match="nested groups"):
        build_document(raw, option_group="demo")


def test_duplicate_storage_key_rejected() -> None:
    raw = [
        _section("general", fields=[{"id": "name"}]),
        _section("general", fields=[{"id": "name"}]),
    ]
    with pytest.raises(ConfigurationError, match="duplicate storage key"):
        build_document(raw, option_group="demo")


def test_contributed_sections_are_appended(tabless_config: dict) -> None:
    contributed = [_section("addon", 5, fields=[{"id": "token", "title": "Token"}])]
    document = build_document(tabless_config, contributed)
    assert [s.section_id for s in document.sections] == ["advanced", "general", "addon"]
    assert "addon_token" in document.storage_keys()


def test_merge_settings_policy() -> None:
    direct = {"option_group": "a", "sections": [1], "meta": {"x": 1, "keep": True}}
    contributed = {"option_group": "b", "sections": [2], "meta": {"x": 2, "y": 3}, "new": 4}
    assert merge_settings(direct, contributed) == {
        "option_group": "a",
        "sections": [1, 2],
        "meta": {"x": 1, "keep": True, "y": 3},
        "new": 4,
    }


def test_merge_settings_lifts_flat_lists() -> None:
    assert merge_settings([1], {"sections": [2], "tabs": []}) == {
        "sections": [1, 2],
        "tabs": [],
    }
    assert merge_settings({"sections": [1]}, [2]) == {"sections": [1, 2]}
    assert merge_settings([1], None) == [1]
    assert merge_settings([1], "junk") == [1]


def test_normalize_option_group() -> None:
    assert normalize_option_group("My-Plugin_2") == "my-plugin_2"
    assert normalize_option_group("!!") is None
    assert normalize_option_group(None) is None


def test_option_group_from_path() -> None:
    assert option_group_from_path(Path("/tmp/my-plugin.settings.yaml")) == "mypluginsettings"


def test_load_settings_file_yaml(tmp_path: Path) -> None:
    path = tmp_path / "demo.yaml"
    path.write_text(
        "sections:\n"
        "  - section_id: general\n"
        "    section_title: General\n"
        "    fields:\n"
        "      - id: name\n"
        "        title: Name\n"
    )
    data, file_group = load_settings_file(path)
    assert file_group == "demo"
    document = build_document(data, option_group=file_group)
    assert document.storage_keys() == ["general_name"]


def test_load_settings_file_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_settings_file(tmp_path / "missing.yaml")

    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    with pytest.raises(ConfigurationError, match="empty"):
        load_settings_file(empty)

    broken = tmp_path / "broken.yaml"
    broken.write_text("sections: [unclosed\n")
    with pytest.raises(ConfigurationError, match="not valid"):
        load_settings_file(broken)
