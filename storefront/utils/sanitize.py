"""Shared string sanitization utilities."""

from __future__ import annotations

import re

# Comprehensive control character pattern covering:
# C0 controls (\x00-\x1f), DEL (\x7f), C1 controls (\x80-\x9f),
# Unicode line/paragraph separators (\u2028-\u2029),
# bidi overrides (\u200b-\u200f, \u202a-\u202e, \u2066-\u2069),
# zero-width no-break space / BOM (\ufeff).
CONTROL_CHARS_RE = re.compile(
    r"[\x00-\x1f\x7f-\x9f\u2028\u2029\u200b-\u200f\u202a-\u202e\u2066-\u2069\ufeff]"
)

HTML_TAG_RE = re.compile(r"<[^>]*>")

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}
_HTML_ESCAPE_RE = re.compile(r"[&<>\"'/]")


def strip_control_chars(value: str) -> str:
    """Strip all control characters from a string."""
    return CONTROL_CHARS_RE.sub("", value)


def strip_html_tags(value: str) -> str:
    """Remove anything that looks like an HTML tag."""
    return HTML_TAG_RE.sub("", value)


def escape_html(value: str) -> str:
    """Escape the six HTML-significant characters, including ``/``.

    Not idempotent: ``&amp;`` becomes ``&amp;amp;`` on a second pass.
    """
    return _HTML_ESCAPE_RE.sub(lambda m: _HTML_ESCAPES[m.group(0)], value)
