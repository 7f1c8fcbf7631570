"""Text cleaning for feed fields."""

import html
import re
from typing import Optional


def clean_text(text: Optional[str]) -> Optional[str]:
    """Clean text by stripping HTML, fixing escapes, and collapsing whitespace."""
    if not text:
        return None
    # Strip HTML tags (keep text content)
    text = re.sub(r"<[^>]+>", " ", text)
    text = html.unescape(text)
    # Remove escaped quotes
    text = text.replace('\\"', '"')
    # Collapse whitespace
    text = re.sub(r"\s+", " ", text).strip()
    return text if text else None


def combine_text(*parts: Optional[str]) -> str:
    """Join non-empty parts, skipping a part already contained in the previous ones."""
    combined: list[str] = []
    for part in parts:
        if not part:
            continue
        if any(part in existing for existing in combined):
            continue
        combined.append(part)
    return " ".join(combined)
