"""Plain-text cleanup applied to generated explanations before display."""

from __future__ import annotations

import re

_BOLD_PATTERN = re.compile(r"\*\*(.*?)\*\*")
_ITALIC_PATTERN = re.compile(r"\*(.*?)\*")
_ORDINAL_MARKER_PATTERN = re.compile(r"^\s*\d+\.\s*", re.MULTILINE)


def sanitize_explanation(text: str) -> str:
    """Strip markdown emphasis and leading ``1. `` list markers."""
    cleaned = _BOLD_PATTERN.sub(r"\1", text)
    cleaned = _ITALIC_PATTERN.sub(r"\1", cleaned)
    cleaned = _ORDINAL_MARKER_PATTERN.sub("", cleaned)
    return cleaned.strip()
