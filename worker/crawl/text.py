"""
Text normalization for extracted fields (whitespace collapse, trim).
"""

from __future__ import annotations

import re

from worker.models import SENTINEL


def normalize_whitespace(text: str) -> str:
    """Normalize whitespace: collapse multiples, trim."""
    # Collapse multiple whitespace to single space
    text = re.sub(r"\s+", " ", text)
    # Trim
    text = text.strip()
    return text


def or_sentinel(text: str | None) -> str:
    """Normalized text, or the sentinel when the text is missing or blank."""
    if not text:
        return SENTINEL
    return normalize_whitespace(text) or SENTINEL
