"""Parsing of upstream completions into suggestion drafts."""

import json
import logging
import re
from datetime import datetime
from typing import Callable, List, Optional

from neuroblog.core.errors import MalformedUpstreamResponse
from neuroblog.core.utils import format_long_date
from neuroblog.models.content import Draft, FallbackDraft, ParsedDraft, TopicCandidate, utcnow

logger = logging.getLogger(__name__)

CODE_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?\s*")


def extract_json_object(text: str) -> str:
    """Return the first balanced ``{...}`` substring of ``text``.

    Braces inside JSON strings are ignored.

    Raises:
        MalformedUpstreamResponse: if no balanced object exists
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        start = text.find("{", start + 1)

    raise MalformedUpstreamResponse("No JSON object found in completion")


class ResponseParser:
    """Turns raw completions into drafts; never raises."""

    def __init__(
        self,
        title_max_length: int = 75,
        site_name: str = "NeuroBlog",
        now: Callable[[], datetime] = utcnow,
    ):
        self.title_max_length = title_max_length
        self.site_name = site_name
        self.now = now

    def parse(self, raw_text: Optional[str]) -> Draft:
        """Decode ``raw_text`` into a ParsedDraft, or synthesize a FallbackDraft."""
        raw_text = raw_text if isinstance(raw_text, str) else ""
        try:
            return self._decode(raw_text)
        except MalformedUpstreamResponse as e:
            logger.warning(
                f"Failed to parse AI response ({e}): {raw_text[:200]!r}"
            )
            return self.fallback(raw_text, reason=str(e))

    def _decode(self, raw_text: str) -> ParsedDraft:
        cleaned = CODE_FENCE_PATTERN.sub("", raw_text).strip()
        try:
            payload = json.loads(extract_json_object(cleaned))
        except (ValueError, TypeError) as e:
            raise MalformedUpstreamResponse(f"Invalid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise MalformedUpstreamResponse("Completion is not a JSON object")

        title = payload.get("title")
        body = payload.get("content") or payload.get("body")
        if not isinstance(title, str) or not title.strip():
            raise MalformedUpstreamResponse("Missing required field: title")
        if not isinstance(body, str) or not body.strip():
            raise MalformedUpstreamResponse("Missing required field: content")

        title = title.strip()[: self.title_max_length]
        summary = payload.get("summary")
        tags = payload.get("tags")
        category = payload.get("category")

        return ParsedDraft(
            title=title,
            body=body,
            summary=summary if isinstance(summary, str) and summary.strip() else title,
            tags=[str(tag) for tag in tags] if isinstance(tags, list) else self._default_tags(),
            category=category if isinstance(category, str) and category.strip() else "General",
            read_time=self._text_or(payload.get("readTime"), "8-10 min read"),
            publish_date=self._text_or(
                payload.get("publishDate"), format_long_date(self.now())
            ),
        )

    def fallback(self, raw_text: str, reason: str = "") -> FallbackDraft:
        """Build the deterministic draft used when a completion is unusable."""
        now = self.now()
        current_date = format_long_date(now)
        year = now.year
        body = (
            f"## Latest Technology Update\n\n{raw_text[:600]}\n\n"
            "## Key Points\n\n"
            "• Breaking development in technology sector\n"
            "• Significant industry impact and implications\n"
            f"• Future outlook for {year}\n"
            "• Market reactions and expert opinions\n\n"
            "## Analysis\n\n"
            "This development represents a significant shift in the technology "
            "landscape, with far-reaching implications for businesses and "
            "consumers alike.\n\n"
            "## Key Takeaways\n\n"
            "• Monitor industry developments closely\n"
            "• Assess impact on current technology strategies\n"
            "• Stay informed about emerging trends\n\n"
            f"**Published:** {current_date}\n\n"
            f"© {year} {self.site_name} Technology Insights"
        )
        return FallbackDraft(
            title=f"Breaking Tech News - {current_date}",
            body=body,
            summary=f"Latest technology news and comprehensive analysis - {current_date}",
            tags=[str(year), "breaking-news", "trending", "ai-generated"],
            category="General",
            publish_date=current_date,
            reason=reason,
        )

    def fallback_from_topic(self, topic: TopicCandidate, reason: str = "") -> FallbackDraft:
        """Draft built from the topic alone when the upstream produced nothing."""
        return FallbackDraft(
            title=topic.title[:80],
            body=(
                f"# {topic.title}\n\n{topic.description}\n\n"
                "This is a trending topic that deserves deeper analysis and discussion."
            ),
            summary=topic.description or "A trending topic worth exploring.",
            tags=["technology", "trends", "innovation"],
            category=topic.category or "Technology",
            publish_date=format_long_date(self.now()),
            reason=reason,
        )

    def _default_tags(self) -> List[str]:
        return [str(self.now().year), "trending"]

    @staticmethod
    def _text_or(value, default: str) -> str:
        return value if isinstance(value, str) and value.strip() else default
