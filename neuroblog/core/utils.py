"""Utility functions for text, dates and identifiers."""

from __future__ import annotations

import hashlib
import re
from datetime import datetime
from typing import List


def format_long_date(moment: datetime) -> str:
    """Format a date the way it appears in prompts and footers, e.g. 'May 3, 2025'."""
    return f"{moment:%B} {moment.day}, {moment.year}"


def topic_unique_id(title: str, published_at: str) -> str:
    """Derive a stable identifier for a topic from its title and timestamp."""
    digest = hashlib.sha256(f"{title}{published_at}".encode("utf-8"))
    return digest.hexdigest()[:16]


def significant_words(title: str, min_length: int = 4) -> List[str]:
    """Return lower-cased words of at least ``min_length`` characters, in order.

    Punctuation attached to a word is dropped so that 'AI-driven,' and
    'ai-driven' compare equal.
    """
    if not title:
        return []

    words = []
    for raw in title.lower().split():
        word = re.sub(r"^[^\w]+|[^\w]+$", "", raw)
        if len(word) >= min_length:
            words.append(word)
    return words


def clean_topic_title(title: str) -> str:
    """Clean headlines by removing noisy prefixes and extra whitespace."""
    if not title:
        return ""

    cleaned = re.sub(r"^\[.*?\]\s*", "", title)
    cleaned = re.sub(r"^(BREAKING:|UPDATE:|LIVE:)\s*", "", cleaned, flags=re.IGNORECASE)
    return " ".join(cleaned.split()).strip()


def strip_search_query(text: str, max_length: int = 60) -> str:
    """Reduce free text to a plain alphanumeric search query."""
    query = re.sub(r"[^a-zA-Z0-9\s]", "", text or "")
    return " ".join(query.split())[:max_length].strip()


def keyword_pattern(keywords) -> re.Pattern:
    """Compile keywords into one case-insensitive pattern anchored at word starts.

    Short keywords such as 'ai' or 'app' must be whole words (an optional
    plural 's' is allowed) so that 'said' or 'approach' do not match.
    """
    parts = []
    for keyword in keywords:
        escaped = re.escape(keyword)
        parts.append(rf"{escaped}s?\b" if len(keyword) <= 3 else escaped)
    return re.compile(r"\b(?:" + "|".join(parts) + ")", re.IGNORECASE)
