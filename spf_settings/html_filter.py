"""Allow-list HTML filter used for rich-text (editor) fields."""

from __future__ import annotations

import html
import re
from html.parser import HTMLParser
from typing import Optional

ALLOWED_TAGS: dict[str, frozenset[str]] = {
    "a": frozenset({"href", "target", "rel", "name"}),
    "abbr": frozenset(),
    "b": frozenset(),
    "blockquote": frozenset({"cite"}),
    "br": frozenset(),
    "caption": frozenset(),
    "code": frozenset(),
    "dd": frozenset(),
    "del": frozenset({"datetime"}),
    "div": frozenset({"align"}),
    "dl": frozenset(),
    "dt": frozenset(),
    "em": frozenset(),
    "figcaption": frozenset(),
    "figure": frozenset(),
    "h1": frozenset(),
    "h2": frozenset(),
    "h3": frozenset(),
    "h4": frozenset(),
    "h5": frozenset(),
    "h6": frozenset(),
    "hr": frozenset(),
    "i": frozenset(),
    "img": frozenset({"src", "alt", "width", "height"}),
    "ins": frozenset({"datetime"}),
    "li": frozenset(),
    "ol": frozenset({"start"}),
    "p": frozenset({"align"}),
    "pre": frozenset(),
    "s": frozenset(),
    "span": frozenset(),
    "strong": frozenset(),
    "sub": frozenset(),
    "sup": frozenset(),
    "table": frozenset({"border", "cellpadding", "cellspacing"}),
    "tbody": frozenset(),
    "td": frozenset({"colspan", "rowspan", "align"}),
    "tfoot": frozenset(),
    "th": frozenset({"colspan", "rowspan", "align", "scope"}),
    "thead": frozenset(),
    "tr": frozenset(),
    "u": frozenset(),
    "ul": frozenset(),
}

GLOBAL_ATTRIBUTES = frozenset({"class", "id", "title", "dir", "lang"})

# Content of these elements is dropped together with the element itself.
DROP_CONTENT_TAGS = frozenset(
    {"script", "style", "iframe", "object", "embed", "noscript", "template", "textarea"}
)

VOID_TAGS = frozenset({"br", "hr", "img"})

URL_ATTRIBUTES = frozenset({"href", "src", "cite"})
ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto", "ftp", "tel"})

_PROTOCOL_RE = re.compile(r"^\s*([a-zA-Z][a-zA-Z0-9+.\-]*)\s*:")
_CONTROL_RE = re.compile(r"[\x00-\x20]+")


def _safe_url(value: str) -> bool:
    # Browsers ignore control characters and whitespace inside the scheme.
    match = _PROTOCOL_RE.match(_CONTROL_RE.sub("", value))
    if match is None:
        return True
    return match.group(1).lower() in ALLOWED_PROTOCOLS


class SafeHTMLFilter(HTMLParser):
    """
    Re-serialise markup keeping only allow-listed tags and attributes.

    Entities are re-emitted verbatim and text is escaped, so filtering the
    output a second time yields the same string.
    """

    def __init__(self) -> None:
        super().__init__(convert_charrefs=False)
        self._parts: list[str] = []
        self._drop_depth = 0

    def handle_starttag(self, tag: str, attrs: list[tuple[str, Optional[str]]]) -> None:
        self._emit_tag(tag, attrs, self_closing=False)

    def handle_startendtag(
        self, tag: str, attrs: list[tuple[str, Optional[str]]]
    ) -> None:
        self._emit_tag(tag, attrs, self_closing=True)

    def handle_endtag(self, tag: str) -> None:
        if tag in DROP_CONTENT_TAGS:
            self._drop_depth = max(0, self._drop_depth - 1)
            return
        if self._drop_depth or tag not in ALLOWED_TAGS or tag in VOID_TAGS:
            return
        self._parts.append(f"</{tag}>")

    def handle_data(self, data: str) -> None:
        if self._drop_depth:
            return
        self._parts.append(html.escape(data, quote=False))

    def handle_entityref(self, name: str) -> None:
        if not self._drop_depth:
            self._parts.append(f"&{name};")

    def handle_charref(self, name: str) -> None:
        if not self._drop_depth:
            self._parts.append(f"&#{name};")

    def result(self) -> str:
        return "".join(self._parts)

    def _emit_tag(
        self,
        tag: str,
        attrs: list[tuple[str, Optional[str]]],
        *,
        self_closing: bool,
    ) -> None:
        if tag in DROP_CONTENT_TAGS:
            if not self_closing:
                self._drop_depth += 1
            return
        if self._drop_depth or tag not in ALLOWED_TAGS:
            return

        allowed = ALLOWED_TAGS[tag] | GLOBAL_ATTRIBUTES
        rendered: list[str] = []
        for name, value in attrs:
            if name not in allowed:
                continue
            if value is None:
                rendered.append(name)
                continue
            if name in URL_ATTRIBUTES and not _safe_url(value):
                continue
            rendered.append(f'{name}="{html.escape(value, quote=True)}"')

        body = " ".join([tag, *rendered])
        if self_closing:
            self._parts.append(f"<{body} />")
        else:
            self._parts.append(f"<{body}>")


def filter_html(value: str) -> str:
    """Strip scripting and unknown markup, keeping block/inline formatting."""
    parser = SafeHTMLFilter()
    parser.feed(value)
    parser.close()
    return parser.result()
