"""Tests for storage-key derivation."""

from __future__ import annotations

import pytest

from spf_settings.keys import (
    derive_key,
    field_input_name,
    group_row_element_id,
    group_row_input_name,
    option_name,
    page_name,
    settings_page_slug,
)


pytestmark = pytest.mark.unit_settings


def test_tabbed_and_tabless_keys_differ() -> None:
    assert derive_key(False, None, "general", "name") == "general_name"
    assert derive_key(True, "main", "general", "name") == "main_general_name"


def test_tabbed_key_requires_tab_id() -> None:
    with pytest.raises(ValueError):
        derive_key(True, None, "general", "name")


def test_tabless_key_ignores_tab_id() -> None:
    assert derive_key(False, "main", "general", "name") == "general_name"


def test_input_names() -> None:
    assert option_name("myplugin") == "myplugin_settings"
    assert field_input_name("myplugin", "general_name") == "myplugin_settings[general_name]"
    assert (
        group_row_input_name("myplugin_settings[advanced_links]", 2, "label")
        == "myplugin_settings[advanced_links][2][label]"
    )
    assert group_row_element_id("advanced_links", 2, "label") == "advanced_links_2_label"


def test_page_names() -> None:
    assert page_name("myplugin") == "myplugin"
    assert page_name("myplugin", "main") == "myplugin_main"
    assert settings_page_slug("my_plugin") == "my-plugin-settings"
