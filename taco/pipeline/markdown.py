"""
Markdown-lite for hover help text.

Supports *bold*, _italic_ and [text](url). Raw HTML is escaped first, then the
three expansions run unconditionally in that order. Matching is non-greedy,
so nested markup (e.g. a link label containing "*") is not supported.
"""

from __future__ import annotations

import re
from html import escape as _html_escape
from typing import Optional

_BOLD_RE = re.compile(r"\*(.*?)\*")
_ITALIC_RE = re.compile(r"_(.*?)_")
_LINK_RE = re.compile(r"\[(.*?)\]\((.*?)\)")


def escape(text: str) -> str:
    """Escape &, < and >. Quotes are left alone."""
    return _html_escape(str(text), quote=False)


def parse_markdown(text: Optional[str]) -> str:
    if not text:
        return ""
    out = escape(text)
    out = _BOLD_RE.sub(r"<strong>\1</strong>", out)
    out = _ITALIC_RE.sub(r"<em>\1</em>", out)
    out = _LINK_RE.sub(r'<a href="\2" target="_blank" rel="noopener noreferrer">\1</a>', out)
    return out
