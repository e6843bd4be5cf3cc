"""
HTML widgets, one renderer per field type.

A renderer receives the merged field arguments (``id``, ``name``, ``value``
plus everything the field declared) and a ``dispatch`` callable used by
container widgets to render nested fields. It returns markup.
"""

from __future__ import annotations

import html
import json
from typing import Any, Callable, Mapping

from spf_settings.keys import group_row_element_id, group_row_input_name

Dispatch = Callable[[dict[str, Any]], str]
Renderer = Callable[[dict[str, Any], Dispatch], str]

DEFAULT_MEDIA_PLACEHOLDER = "https://www.placehold.it/115x115"


def _attr(value: Any) -> str:
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return html.escape(str(value), quote=False)


def _scalar(value: Any) -> Any:
    return "" if isinstance(value, (list, tuple, dict)) else value


def description(args: Mapping[str, Any]) -> str:
    text = args.get("description")
    if not text:
        return ""
    return f'<p class="description">{text}</p>'


def _input(args: Mapping[str, Any], input_type: str | None, css: str, **extra: Any) -> str:
    parts = []
    if input_type:
        parts.append(f'type="{input_type}"')
    parts.append(f'name="{_attr(args["name"])}"')
    parts.append(f'id="{_attr(args["id"])}"')
    parts.append(f'value="{_attr(_scalar(args.get("value")))}"')
    if args.get("placeholder"):
        parts.append(f'placeholder="{_attr(args["placeholder"])}"')
    parts.append(f'class="{_attr((css + " " + (args.get("css_class") or "")).strip())}"')
    for key, value in extra.items():
        if value is not None:
            parts.append(f'{key.replace("_", "-")}="{_attr(value)}"')
    return "<input " + " ".join(parts) + " />"


def render_text(args: dict[str, Any], dispatch: Dispatch) -> str:
    return _input(args, "text", "regular-text") + description(args)


def render_number(args: dict[str, Any], dispatch: Dispatch) -> str:
    return _input(args, "number", "regular-text") + description(args)


def render_password(args: dict[str, Any], dispatch: Dispatch) -> str:
    return _input(args, "password", "regular-text") + description(args)


def _picker_options(args: Mapping[str, Any], key: str) -> str | None:
    options = args.get(key)
    return json.dumps(options) if options else None


def render_time(args: dict[str, Any], dispatch: Dispatch) -> str:
    return _input(
        args,
        None,
        "timepicker regular-text",
        data_timepicker=_picker_options(args, "timepicker"),
    ) + description(args)


def render_date(args: dict[str, Any], dispatch: Dispatch) -> str:
    return _input(
        args,
        None,
        "datepicker regular-text",
        data_datepicker=_picker_options(args, "datepicker"),
    ) + description(args)


def render_textarea(args: dict[str, Any], dispatch: Dispatch) -> str:
    placeholder = args.get("placeholder") or ""
    return (
        f'<textarea name="{_attr(args["name"])}" id="{_attr(args["id"])}" '
        f'placeholder="{_attr(placeholder)}" rows="5" cols="60" '
        f'class="{_attr(args.get("css_class"))}">{_text(_scalar(args.get("value")))}</textarea>'
    ) + description(args)


def render_editor(args: dict[str, Any], dispatch: Dispatch) -> str:
    # Stored editor values are already filtered HTML; the textarea carries it escaped.
    return (
        f'<textarea name="{_attr(args["name"])}" id="{_attr(args["id"])}" '
        f'rows="10" class="spf-editor {_attr(args.get("css_class"))}">'
        f"{_text(_scalar(args.get('value')))}</textarea>"
    ) + description(args)


def render_select(args: dict[str, Any], dispatch: Dispatch) -> str:
    current = str(_scalar(args.get("value")))
    options = []
    for value, label in (args.get("choices") or {}).items():
        selected = ' selected="selected"' if str(value) == current else ""
        options.append(f'<option value="{_attr(value)}"{selected}>{_text(label)}</option>')
    return (
        f'<select name="{_attr(args["name"])}" id="{_attr(args["id"])}" '
        f'class="{_attr(args.get("css_class"))}">' + "".join(options) + "</select>"
    ) + description(args)


def render_radio(args: dict[str, Any], dispatch: Dispatch) -> str:
    current = str(_scalar(args.get("value")))
    items = []
    for value, label in (args.get("choices") or {}).items():
        checked = ' checked="checked"' if str(value) == current else ""
        element_id = f'{args["id"]}_{value}'
        items.append(
            f'<label><input type="radio" name="{_attr(args["name"])}" '
            f'id="{_attr(element_id)}" value="{_attr(value)}" '
            f'class="{_attr(args.get("css_class"))}"{checked}> {_text(label)}</label><br />'
        )
    return "".join(items) + description(args)


def render_checkbox(args: dict[str, Any], dispatch: Dispatch) -> str:
    checked = ' checked="checked"' if _scalar(args.get("value")) else ""
    return (
        f'<input type="hidden" name="{_attr(args["name"])}" value="0" />'
        f'<label><input type="checkbox" name="{_attr(args["name"])}" '
        f'id="{_attr(args["id"])}" value="1" class="{_attr(args.get("css_class"))}"{checked}> '
        f'{args.get("description") or ""}</label>'
    )


def render_checkboxes(args: dict[str, Any], dispatch: Dispatch) -> str:
    value = args.get("value")
    selected = {str(item) for item in value} if isinstance(value, (list, tuple)) else set()
    items = []
    for choice, label in (args.get("choices") or {}).items():
        checked = ' checked="checked"' if str(choice) in selected else ""
        element_id = f'{args["id"]}_{choice}'
        items.append(
            f'<li><label><input type="checkbox" name="{_attr(args["name"])}[]" '
            f'id="{_attr(element_id)}" value="{_attr(choice)}" '
            f'class="{_attr(args.get("css_class"))}"{checked}> {_text(label)}</label></li>'
        )
    return (
        f'<input type="hidden" name="{_attr(args["name"])}" value="0" />'
        '<ul class="spf-list spf-list--checkboxes">' + "".join(items) + "</ul>"
    ) + description(args)


def render_color(args: dict[str, Any], dispatch: Dispatch) -> str:
    picker_id = f'{args["id"]}_cp'
    return (
        '<div class="spf-color">'
        + _input(args, "text", "spf-color__input", data_picker=picker_id)
        + f'<div id="{_attr(picker_id)}" class="spf-color__picker"></div>'
        + description(args)
        + "</div>"
    )


def render_file(args: dict[str, Any], dispatch: Dispatch) -> str:
    button_id = f'{args["id"]}_button'
    return (
        _input(args, "text", "regular-text")
        + f' <input type="button" class="button spf-browse" id="{_attr(button_id)}" '
        f'value="Browse" data-target="{_attr(args["id"])}" />'
        + description(args)
    )


def render_media(args: dict[str, Any], dispatch: Dispatch) -> str:
    placeholder = args.get("default") or DEFAULT_MEDIA_PLACEHOLDER
    max_width = args.get("max_width") or 400
    button_text = args.get("btn") or "Upload"
    value = _scalar(args.get("value")) or ""
    return (
        f'<div class="upload" style="max-width:{_attr(max_width)}px;">'
        f'<img data-src="{_attr(placeholder)}" src="{_attr(placeholder)}" '
        f'data-attachment="{_attr(value)}" style="max-width:100%; height:auto;" />'
        "<div>"
        f'<input type="hidden" name="{_attr(args["name"])}" id="{_attr(args["id"])}" '
        f'value="{_attr(value)}" />'
        f'<button type="submit" class="spf-image-upload button">{_text(button_text)}</button>'
        '<button type="submit" class="spf-image-remove button">&times;</button>'
        "</div></div>"
    ) + description(args)


def render_custom(args: dict[str, Any], dispatch: Dispatch) -> str:
    default = args.get("default")
    return "" if default is None else str(default)


def render_multiinputs(args: dict[str, Any], dispatch: Dispatch) -> str:
    default = args.get("default")
    titles = list(default.keys()) if isinstance(default, dict) else []
    value = args.get("value")
    if isinstance(value, dict):
        values = list(value.values())
    elif isinstance(value, (list, tuple)):
        values = list(value)
    else:
        values = []
    items = []
    for index, item in enumerate(values):
        element_id = f'{args["id"]}_{index}'
        title = titles[index] if index < len(titles) else ""
        items.append(
            '<div class="spf-multifields__field">'
            f'<input type="text" name="{_attr(args["name"])}[]" id="{_attr(element_id)}" '
            f'value="{_attr(item)}" class="regular-text {_attr(args.get("css_class"))}" '
            f'placeholder="{_attr(args.get("placeholder"))}" />'
            f"<br><span>{_text(title)}</span></div>"
        )
    return '<div class="spf-multifields">' + "".join(items) + "</div>" + description(args)


def render_group_row(
    args: Mapping[str, Any],
    dispatch: Dispatch,
    row: int,
    *,
    blank: bool = False,
) -> str:
    """Render one row of a group field; `blank` rows carry no values."""
    subfields = args.get("subfields") or []
    if not subfields:
        return ""
    rows = args.get("value") if isinstance(args.get("value"), list) else []
    stored_row = rows[row] if not blank and row < len(rows) else {}
    if not isinstance(stored_row, Mapping):
        stored_row = {}

    row_class = "alternate" if row % 2 == 0 else ""
    parts = [
        f'<tr class="spf-group__row {row_class}">',
        f'<td class="spf-group__row-index"><span>{row}</span></td>',
        '<td class="spf-group__row-fields">',
    ]
    for subfield in subfields:
        sub_id = subfield.get("id")
        if not sub_id:
            continue
        sub_args = dict(subfield)
        sub_args["value"] = "" if blank else stored_row.get(sub_id, "")
        sub_args["name"] = group_row_input_name(args["name"], row, sub_id)
        sub_args["id"] = group_row_element_id(args["id"], row, sub_id)
        parts.append('<div class="spf-group__field-wrapper">')
        parts.append(
            f'<label for="{_attr(sub_args["id"])}" class="spf-group__field-label">'
            f'{_text(subfield.get("title", ""))}</label>'
        )
        parts.append(dispatch(sub_args))
        parts.append("</div>")
    parts.append("</td>")
    parts.append(
        '<td class="spf-group__row-actions">'
        f'<a href="#" class="spf-group__row-add" data-template="{_attr(args["id"])}_template">'
        '<span class="dashicons dashicons-plus-alt"></span></a>'
        '<a href="#" class="spf-group__row-remove">'
        '<span class="dashicons dashicons-trash"></span></a>'
        "</td>"
    )
    parts.append("</tr>")
    return "".join(parts)


def render_group(args: dict[str, Any], dispatch: Dispatch) -> str:
    """One row per stored entry plus a blank template row for duplication."""
    value = args.get("value")
    row_count = len(value) if isinstance(value, list) else 0
    rows = "".join(render_group_row(args, dispatch, row) for row in range(row_count))
    template = render_group_row(args, dispatch, 0, blank=True)
    return (
        '<table class="widefat spf-group" cellspacing="0">'
        f"<tbody>{rows}</tbody></table>"
        f'<script type="text/html" id="{_attr(args["id"])}_template">{template}</script>'
    ) + description(args)
