"""Duplicate detection against recent suggestions and posts."""

import logging
import random
import re
from datetime import datetime, timedelta
from typing import Callable, Optional, Pattern, Union

from neuroblog.core.utils import significant_words
from neuroblog.models.content import TopicCandidate, utcnow

logger = logging.getLogger(__name__)

TITLE_QUALIFIERS = ["Insights", "Analysis", "Perspective", "Guide", "Deep Dive", "Update"]


class DuplicateFilter:
    """Decides whether similar content already exists within a trailing window.

    Similarity is keyword based: the first few significant words of the
    candidate title form a case-insensitive alternation, and any recent
    suggestion or post whose title matches it counts as a duplicate. For
    topic candidates the source name and topic id are compared as well.
    """

    def __init__(
        self,
        store,
        keyword_count: int = 3,
        now: Callable[[], datetime] = utcnow,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.keyword_count = keyword_count
        self.now = now
        self.rng = rng or random.Random()

    def title_pattern(self, title: str) -> Optional[Pattern[str]]:
        """Build the keyword alternation for ``title``, or None if it has no significant words."""
        keywords = significant_words(title)[: self.keyword_count]
        if not keywords:
            return None
        return re.compile("|".join(re.escape(word) for word in keywords), re.IGNORECASE)

    async def is_duplicate(
        self,
        candidate: Union[str, TopicCandidate],
        window_hours: float,
        post_window_hours: Optional[float] = None,
    ) -> bool:
        """Check a topic or a bare title against recent content.

        Args:
            candidate: Topic candidate or generated title
            window_hours: Trailing window for suggestions
            post_window_hours: Trailing window for posts (defaults to ``window_hours``)
        """
        if isinstance(candidate, TopicCandidate):
            title = candidate.title
            source_pattern = (
                re.compile(re.escape(candidate.source), re.IGNORECASE)
                if candidate.source
                else None
            )
            unique_id = candidate.unique_id
        else:
            title, source_pattern, unique_id = candidate, None, None

        pattern = self.title_pattern(title)
        now = self.now()

        suggestions = await self.store.find_suggestions(
            since=now - timedelta(hours=window_hours)
        )
        for suggestion in suggestions:
            if (
                self._title_matches(suggestion.title, title, pattern)
                or (source_pattern is not None and source_pattern.search(suggestion.source))
                or (unique_id is not None and suggestion.external_id == unique_id)
            ):
                logger.info(
                    f"Duplicate of suggestion '{suggestion.title}' detected for '{title}'"
                )
                return True

        posts = await self.store.find_posts(
            since=now - timedelta(hours=post_window_hours or window_hours)
        )
        for post in posts:
            if self._title_matches(post.title, title, pattern) or (
                source_pattern is not None
                and post.news_source
                and source_pattern.search(post.news_source)
            ):
                logger.info(f"Duplicate of post '{post.title}' detected for '{title}'")
                return True

        return False

    def disambiguate(self, title: str) -> str:
        """Make a generated title distinct with a qualifier and an HHMM stamp."""
        qualifier = self.rng.choice(TITLE_QUALIFIERS)
        stamp = self.now().strftime("%H%M")
        return f"{title[:55].rstrip()} - {qualifier} {stamp}"

    @staticmethod
    def _title_matches(existing: str, title: str, pattern: Optional[Pattern[str]]) -> bool:
        if existing.strip().lower() == title.strip().lower():
            return True
        return pattern is not None and pattern.search(existing) is not None
