"""Tests for typed extension points."""

from __future__ import annotations

import pytest

from spf_settings.hooks import ExtensionPoint, HookBus


pytestmark = pytest.mark.unit_settings


def test_filters_run_in_priority_then_registration_order(bus: HookBus) -> None:
    bus.add_filter(ExtensionPoint.FIELD_DEFAULTS, lambda v, **_: v + ["late"], priority=20)
    bus.add_filter(ExtensionPoint.FIELD_DEFAULTS, lambda v, **_: v + ["first"])
    bus.add_filter(ExtensionPoint.FIELD_DEFAULTS, lambda v, **_: v + ["second"])
    assert bus.apply_filters(ExtensionPoint.FIELD_DEFAULTS, [], option_group="demo") == [
        "first",
        "second",
        "late",
    ]


def test_callbacks_are_scoped_to_option_groups(bus: HookBus) -> None:
    bus.add_filter(ExtensionPoint.SHOW_SAVE_BUTTON, lambda v, **_: False, option_group="demo")
    assert bus.apply_filters(ExtensionPoint.SHOW_SAVE_BUTTON, True, option_group="demo") is False
    assert bus.apply_filters(ExtensionPoint.SHOW_SAVE_BUTTON, True, option_group="other") is True
    assert bus.has_callbacks(ExtensionPoint.SHOW_SAVE_BUTTON, "demo")
    assert not bus.has_callbacks(ExtensionPoint.SHOW_SAVE_BUTTON, "other")


def test_filter_receives_context(bus: HookBus) -> None:
    seen = {}

    def record(value, **context):
        seen.update(context)
        return value

    bus.add_filter(ExtensionPoint.SETTINGS_VALIDATE, record)
    bus.apply_filters(ExtensionPoint.SETTINGS_VALIDATE, {}, option_group="demo", extra=1)
    assert seen == {"option_group": "demo", "extra": 1}


def test_actions_join_markup(bus: HookBus) -> None:
    bus.add_action(ExtensionPoint.BEFORE_FIELD, lambda **ctx: f"<i>{ctx['field_key']}</i>")
    bus.add_action(ExtensionPoint.BEFORE_FIELD, lambda **ctx: None)
    bus.add_action(ExtensionPoint.BEFORE_FIELD, lambda **ctx: "!")
    assert (
        bus.do_action(ExtensionPoint.BEFORE_FIELD, option_group="demo", field_key="a_b")
        == "<i>a_b</i>!"
    )


def test_wrong_registration_kind_is_rejected(bus: HookBus) -> None:
    with pytest.raises(ValueError):
        bus.add_filter(ExtensionPoint.BEFORE_FIELD, lambda v, **_: v)
    with pytest.raises(ValueError):
        bus.add_action(ExtensionPoint.FIELD_DEFAULTS, lambda **_: "")


def test_remove(bus: HookBus) -> None:
    def callback(value, **_):
        return value + 1

    bus.add_filter(ExtensionPoint.FIELD_DEFAULTS, callback, option_group="demo")
    assert not bus.remove(ExtensionPoint.FIELD_DEFAULTS, callback)
    assert bus.remove(ExtensionPoint.FIELD_DEFAULTS, callback, option_group="demo")
    assert bus.apply_filters(ExtensionPoint.FIELD_DEFAULTS, 1, option_group="demo") == 1


def test_hook_names() -> None:
    assert ExtensionPoint.REGISTER_SETTINGS.hook_name("demo") == "register_settings_demo"
    assert ExtensionPoint.REGISTER_SETTINGS.is_filter
    assert not ExtensionPoint.AFTER_SETTINGS.is_filter
