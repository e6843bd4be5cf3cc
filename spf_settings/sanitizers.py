"""
Built-in sanitize rules, one per field type.

A rule is a pure function ``(field, raw_value) -> clean_value``. Rules never
raise: out-of-range values fall back to the field default or an empty value.
Every rule is idempotent, so re-sanitizing stored values is harmless.
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime
from typing import Any, Callable, Mapping

from spf_settings.html_filter import filter_html
from spf_settings.models import FieldSpec

logger = logging.getLogger(__name__)

SanitizeRule = Callable[[FieldSpec, Any], Any]

EPOCH_DATE = "1970-01-01"

_SCRIPT_STYLE_RE = re.compile(r"<(script|style)[^>]*?>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)
_COMMENT_RE = re.compile(r"<!--.*?(-->|$)", re.DOTALL)
_TAG_RE = re.compile(r"</?[a-zA-Z!?][^>]*(>|$)")
_OCTET_RE = re.compile(r"%[a-fA-F0-9]{2}")
_LINE_WHITESPACE_RE = re.compile(r"[\r\n\t ]+")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_NUMERIC_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$")
_HEX_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{3}){1,2}$")

_DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%Y%m%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d %Y",
    "%b %d %Y",
)


def is_empty(value: Any) -> bool:
    """True for values that are stored verbatim without running a rule."""
    if value is None:
        return True
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value) == 0
    return False


def _strip_tags(text: str) -> str:
    text = _SCRIPT_STYLE_RE.sub("", text)
    text = _COMMENT_RE.sub("", text)
    text = _TAG_RE.sub("", text)
    # A lone "<" left behind must not be able to form a tag later on.
    return text.replace("<", "&lt;")


def _remove_octets(text: str) -> str:
    while True:
        cleaned = _OCTET_RE.sub("", text)
        if cleaned == text:
            return cleaned
        text = cleaned


def _clean_text(value: Any, *, keep_newlines: bool) -> str:
    if isinstance(value, (list, tuple, dict, set)):
        return ""
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    text = _remove_octets(_strip_tags(str(value)))
    if not keep_newlines:
        text = _LINE_WHITESPACE_RE.sub(" ", text)
    return text.strip()


def sanitize_text_field(value: Any) -> str:
    """Plain single-line text: no markup, no line breaks, no URL octets."""
    return _clean_text(value, keep_newlines=False)


def sanitize_textarea_field(value: Any) -> str:
    """Plain multi-line text: like `sanitize_text_field` but newlines survive."""
    return _clean_text(value, keep_newlines=True)


def sanitize_hex_color(value: Any) -> str:
    if isinstance(value, str) and _HEX_COLOR_RE.fullmatch(value):
        return value
    return ""


def coerce_int(value: Any) -> int:
    """Integer value of `value`, reading only leading digits of strings.

    Non-finite floats and digit runs too long to convert read as 0.
    """
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else 0
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if match:
            try:
                return int(match.group(1))
            except ValueError:
                return 0
    return 0


def absint(value: Any) -> int:
    return abs(coerce_int(value))


def parse_number(value: Any) -> int | float | str | None:
    """Return the numeric value of `value`, or None when it is not numeric.

    Integer strings too long for `int` are returned stripped, unconverted.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str) and _NUMERIC_RE.match(value):
        text = value.strip()
        if any(marker in text for marker in (".", "e", "E")):
            return float(text)
        try:
            return int(text)
        except ValueError:
            return text
    return None


def parse_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def _field_default(field: FieldSpec, fallback: Any = "") -> Any:
    return field.default if field.default is not None else fallback


def plain_text_rule(field: FieldSpec, value: Any) -> str:
    return sanitize_text_field(value)


def textarea_rule(field: FieldSpec, value: Any) -> str:
    return sanitize_textarea_field(value)


def date_rule(field: FieldSpec, value: Any) -> str:
    parsed = parse_date(value)
    if parsed is None:
        logger.debug("Unparsable date for field %s; storing %s", field.id, EPOCH_DATE)
        return EPOCH_DATE
    return parsed.strftime("%Y-%m-%d")


def number_rule(field: FieldSpec, value: Any) -> int | float | str:
    parsed = parse_number(value)
    return 0 if parsed is None else parsed


def choice_rule(field: FieldSpec, value: Any) -> Any:
    """select/radio: a declared choice key, else the field default."""
    if not isinstance(value, (list, tuple, dict, set)) and str(value) in field.choices:
        return value
    return _field_default(field)


def checkboxes_rule(field: FieldSpec, value: Any) -> Any:
    """checkboxes: a subset of the declared choice keys, else the default list."""
    default = _field_default(field, [])
    if isinstance(value, (list, tuple)) and field.choices:
        if all(str(item) in field.choices for item in value):
            return list(value)
        return default
    return default


def checkbox_rule(field: FieldSpec, value: Any) -> int | str:
    return 1 if coerce_int(value) == 1 else ""


def color_rule(field: FieldSpec, value: Any) -> str:
    return sanitize_hex_color(value)


def editor_rule(field: FieldSpec, value: Any) -> str:
    if not isinstance(value, str):
        return sanitize_text_field(value)
    return filter_html(value)


def uploader_rule(field: FieldSpec, value: Any) -> int:
    return absint(value)


def default_rule(field: FieldSpec, value: Any) -> str:
    return sanitize_text_field(value) if not is_empty(value) else ""


BUILTIN_RULES: Mapping[str, SanitizeRule] = {
    "time": plain_text_rule,
    "password": plain_text_rule,
    "date": date_rule,
    "number": number_rule,
    "textarea": textarea_rule,
    "select": choice_rule,
    "radio": choice_rule,
    "checkboxes": checkboxes_rule,
    "checkbox": checkbox_rule,
    "color": color_rule,
    "editor": editor_rule,
    "uploader": uploader_rule,
    "file": default_rule,
}
