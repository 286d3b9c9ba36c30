# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import re

import bleach
from bleach.css_sanitizer import CSSSanitizer

ALLOWED_TAGS = frozenset(
    {
        "p", "br", "strong", "em", "u",
        "h1", "h2", "h3", "h4", "h5", "h6",
        "ul", "ol", "li", "a", "span", "div",
    }
)

ALLOWED_ATTRIBUTES = {
    "a": ["href", "target", "rel"],
    "span": ["style"],
    "p": ["style"],
    "div": ["style"],
}

# Property -> accepted values (full match). Anything else is dropped.
ALLOWED_CSS_VALUES = {
    "color": (
        re.compile(r"#[0-9a-fA-F]{3,6}"),
        re.compile(r"rgb\(\s*\d{1,3}\s*,\s*\d{1,3}\s*,\s*\d{1,3}\s*\)"),
    ),
    "text-align": (re.compile(r"left|right|center|justify", re.IGNORECASE),),
}


class _StrictCSSSanitizer(CSSSanitizer):
    """bleach only filters property names; this also checks each value."""

    def sanitize_css(self, style: str) -> str:
        kept = []
        for declaration in super().sanitize_css(style).split(";"):
            prop, sep, value = declaration.partition(":")
            prop, value = prop.strip().lower(), value.strip()
            if not sep:
                continue
            if any(p.fullmatch(value) for p in ALLOWED_CSS_VALUES.get(prop, ())):
                kept.append(f"{prop}: {value};")
        return " ".join(kept)


_CLEANER = bleach.Cleaner(
    tags=ALLOWED_TAGS,
    attributes=ALLOWED_ATTRIBUTES,
    css_sanitizer=_StrictCSSSanitizer(allowed_css_properties=list(ALLOWED_CSS_VALUES)),
    strip=True,
    strip_comments=True,
)


def sanitize_html(raw: str) -> str:
    """Strip everything outside the rich-text editor's allow-list."""
    return _CLEANER.clean(raw or "").strip()
