"""Sanitization helpers for model-generated HTML."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

_FENCE_OPEN_RE = re.compile(r"```(?:html)?\s*", re.IGNORECASE)
_FENCE_CLOSE_RE = re.compile(r"```\s*$")

_DROPPED_ELEMENTS = ["script", "style"]
_URL_ATTRS = {"href", "src"}


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences a model may wrap around HTML."""
    text = _FENCE_OPEN_RE.sub("", text)
    return _FENCE_CLOSE_RE.sub("", text).strip()


def _is_javascript_url(value: object) -> bool:
    return isinstance(value, str) and value.strip().lower().startswith("javascript:")


def sanitize_llm_html(html: str) -> str:
    """Drop code fences, script/style elements, inline event handlers and javascript: URLs.

    The markup is parsed into a tree, so attribute values containing ``>`` or
    attributes separated by ``/`` are handled like a browser would.
    """
    soup = BeautifulSoup(strip_code_fences(html), "html.parser")

    for element in soup.find_all(_DROPPED_ELEMENTS):
        element.decompose()

    for tag in soup.find_all(True):
        for name in list(tag.attrs):
            key = name.lower()
            if key.startswith("on"):
                del tag.attrs[name]
            elif key in _URL_ATTRS and _is_javascript_url(tag.attrs[name]):
                tag.attrs[name] = "#"

    return str(soup).strip()
