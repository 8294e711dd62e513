"""Plain-text formatting of generated posts."""

import re
from datetime import datetime
from typing import Callable, Optional, Sequence

from bs4 import BeautifulSoup

from neuroblog.core.utils import format_long_date
from neuroblog.models.content import ImageAttachment, utcnow

HTML_TAG_PATTERN = re.compile(r"<[^>]+>")

# Applied in order
MARKUP_RULES = [
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),  # bold
    (re.compile(r"__([^_]+)__"), r"\1"),  # bold, underscore form
    (re.compile(r"\*([^*\n]+)\*"), r"\1"),  # italic
    (re.compile(r"^[ \t]*#{1,6}[ \t]*", re.MULTILINE), ""),  # headings
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),  # links
    (re.compile(r"^[ \t]*>[ \t]?", re.MULTILINE), ""),  # blockquotes
    (re.compile(r"•"), "-"),  # bullets
    (re.compile(r"\n{3,}"), "\n\n"),
]


def strip_markup(text: str) -> str:
    """Reduce HTML/markdown to near-plain prose, keeping paragraph breaks."""
    if HTML_TAG_PATTERN.search(text):
        text = BeautifulSoup(text, "html.parser").get_text()
        # Escaped markup decodes into tags; drop those too
        text = HTML_TAG_PATTERN.sub("", text)
    for pattern, replacement in MARKUP_RULES:
        text = pattern.sub(replacement, text)
    # Unpaired emphasis markers left behind by truncated output
    text = text.replace("**", "")
    return text.strip()


class ContentFormatter:
    """Cleans generated prose and appends the metadata footer."""

    def __init__(
        self,
        site_name: str = "NeuroBlog",
        now: Callable[[], datetime] = utcnow,
    ):
        self.site_name = site_name
        self.now = now

    def format(
        self,
        body: str,
        images: Sequence[ImageAttachment],
        topic_title: str,
        origin_url: Optional[str] = None,
    ) -> str:
        now = self.now()
        clean = strip_markup(body or "")

        lines = [clean, ""]
        if images:
            lines.append(f"Image: {images[0].url}")
            lines.append(f"Photo Credit: {images[0].credit}")
            lines.append("")
        if len(images) > 1:
            lines.append(f"Additional Image: {images[1].url}")
            lines.append("")
        lines.extend(
            [
                "Related Resources:",
                f"- Original Source: {origin_url or 'Not available'}",
                f"- Topic: {topic_title}",
                f"- Published: {format_long_date(now)}",
                "- Reading Time: 8-12 minutes",
                "",
                "Stay updated with the latest technology insights!",
                "",
                f"© {now.year} {self.site_name} - All rights reserved.",
            ]
        )
        return "\n".join(lines)
