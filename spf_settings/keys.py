"""
Storage-key derivation shared by sanitize, render and read-back.

Every pass that touches stored values must go through these helpers: a key
computed one way on save and another way on render would silently lose data.
"""

from __future__ import annotations

from typing import Optional


def derive_key(
    has_tabs: bool,
    tab_id: Optional[str],
    section_id: str,
    field_id: str,
) -> str:
    """Return the storage key of a field.

    Tabbed documents key fields as ``tab_section_field``; tabless documents as
    ``section_field``.
    """
    if has_tabs:
        if not tab_id:
            raise ValueError(
                f"Section '{section_id}' has no tab_id in a tabbed settings document"
            )
        return f"{tab_id}_{section_id}_{field_id}"
    return f"{section_id}_{field_id}"


def option_name(option_group: str) -> str:
    """Name of the single stored blob holding every value of an option group."""
    return f"{option_group}_settings"


def field_input_name(option_group: str, key: str) -> str:
    """Form input name of a top-level field."""
    return f"{option_name(option_group)}[{key}]"


def group_row_input_name(group_input_name: str, row: int, subfield_id: str) -> str:
    """Form input name of a subfield inside one row of a group field."""
    return f"{group_input_name}[{row}][{subfield_id}]"


def group_row_element_id(group_key: str, row: int, subfield_id: str) -> str:
    """DOM id of a subfield inside one row of a group field."""
    return f"{group_key}_{row}_{subfield_id}"


def page_name(option_group: str, tab_id: Optional[str] = None) -> str:
    """Name of the page (or tab pane) that sections are attached to."""
    if tab_id:
        return f"{option_group}_{tab_id}"
    return option_group


def settings_page_slug(option_group: str) -> str:
    return "{}-settings".format(option_group.replace("_", "-"))
