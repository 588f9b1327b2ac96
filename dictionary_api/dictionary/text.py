"""Text cleanup for string values the upstream source embeds markup in."""

from __future__ import annotations

import html
import json
import re
from typing import Any

_TAG_PATTERN = re.compile(r"<[^>]+>")


def clean_text(text: str) -> str:
    """Strip HTML tags and decode entities from ``text``."""

    if not text:
        return text
    if "<" not in text and "&" not in text:
        return text
    stripped = _TAG_PATTERN.sub("", text)
    return html.unescape(stripped)


def clean_payload(value: Any) -> Any:
    """Return a copy of ``value`` with :func:`clean_text` applied to every string leaf."""

    if isinstance(value, str):
        return clean_text(value)
    if isinstance(value, dict):
        return {key: clean_payload(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [clean_payload(item) for item in value]
    return value


def serialize_payload(value: Any) -> str:
    """Render a cleaned payload as the compact JSON used for response bodies."""

    return json.dumps(clean_payload(value), ensure_ascii=False, separators=(",", ":"))


__all__ = ["clean_payload", "clean_text", "serialize_payload"]
