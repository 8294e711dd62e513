"""Topic source aggregation with a curated offline fallback."""

import logging
import random
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from neuroblog.core.errors import ProviderUnavailable
from neuroblog.core.utils import keyword_pattern, topic_unique_id
from neuroblog.models.content import TopicCandidate

logger = logging.getLogger(__name__)

# Ordered: the first matching rule wins
CATEGORY_RULES = [
    ("Technology", ("technology", "ai", "software")),
    ("Business", ("business", "finance", "economy")),
    ("Health", ("health", "medical", "healthcare")),
    ("Science", ("science", "research", "study")),
    ("Entertainment", ("entertainment", "movie", "music")),
    ("Sports", ("sports", "game", "team")),
    ("Education", ("education", "learning", "school")),
    ("Environment", ("environment", "climate", "green")),
]
CATEGORY_PATTERNS = [
    (category, keyword_pattern(keywords)) for category, keywords in CATEGORY_RULES
]

FALLBACK_TOPICS = [
    # Technology
    ("AI Revolution in Software Development", "How AI is transforming coding and development workflows", "Tech News", "Technology"),
    ("Quantum Computing Breakthroughs", "Latest advances in quantum technology and applications", "Science Today", "Technology"),
    ("Cybersecurity Trends 2025", "Emerging threats and security solutions", "Security Weekly", "Technology"),
    # Business & Finance
    ("Startup Funding Landscape Changes", "New trends in venture capital and startup investments", "Business Weekly", "Business"),
    ("Cryptocurrency Market Evolution", "Latest developments in digital currency markets", "Finance Today", "Finance"),
    ("Remote Work Revolution Continues", "How remote work is reshaping business operations", "Work Trends", "Business"),
    # Health & Science
    ("Medical AI Breakthrough", "Artificial intelligence revolutionizing healthcare diagnostics", "Health Science", "Health"),
    ("Climate Change Solutions", "Innovative approaches to environmental challenges", "Environmental News", "Environment"),
    ("Space Exploration Milestones", "Recent achievements in space technology and exploration", "Space Today", "Science"),
    # Entertainment & Culture
    ("Digital Entertainment Trends", "How streaming and gaming are evolving", "Entertainment Weekly", "Entertainment"),
    ("Social Media Platform Changes", "Latest updates in social media landscape", "Digital Culture", "Social Media"),
    ("Gaming Industry Innovation", "New technologies transforming gaming experiences", "Gaming News", "Gaming"),
    # Education & Career
    ("Online Learning Revolution", "How digital education is transforming learning", "Education Today", "Education"),
    ("Future of Work Skills", "Essential skills for the modern workplace", "Career Insights", "Career"),
    ("Professional Development Trends", "New approaches to career advancement", "Professional Growth", "Career"),
    # Lifestyle & Health
    ("Wellness Technology Advances", "How technology is improving personal health", "Wellness Weekly", "Health"),
    ("Sustainable Living Practices", "Practical approaches to environmental responsibility", "Green Living", "Lifestyle"),
    ("Travel Industry Recovery", "How travel is adapting to new global realities", "Travel News", "Travel"),
]


def categorize_article(text: str) -> str:
    """Assign a coarse category by keyword match."""
    for category, pattern in CATEGORY_PATTERNS:
        if pattern.search(text or ""):
            return category
    return "General"


def is_usable_article(article: Dict[str, Any], min_title_length: int = 20) -> bool:
    """Check that a raw provider article can seed a generation attempt."""
    title = article.get("title")
    description = article.get("description")
    if not isinstance(title, str) or not isinstance(description, str):
        return False
    if not title.strip() or not description.strip():
        return False
    if "[Removed]" in title:
        return False
    return len(title.strip()) > min_title_length


def fallback_topics(
    count: int = 8,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> List[TopicCandidate]:
    """Return a shuffled slice of the curated fallback list."""
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)

    pool = list(FALLBACK_TOPICS)
    rng.shuffle(pool)
    return [
        TopicCandidate(
            title=title,
            description=description,
            source=source,
            url=None,
            published_at=now,
            category=category,
            unique_id=topic_unique_id(title, now.isoformat()),
        )
        for title, description, source, category in pool[:count]
    ]


class TopicAggregator:
    """Queries topic providers in priority order and never comes back empty."""

    def __init__(
        self,
        providers: Sequence = (),
        fallback_count: int = 8,
        min_title_length: int = 20,
        rng: Optional[random.Random] = None,
    ):
        self.providers = sorted(providers, key=lambda p: p.get_priority())
        self.fallback_count = fallback_count
        self.min_title_length = min_title_length
        self.rng = rng or random.Random()

    async def fetch_topics(self) -> List[TopicCandidate]:
        """Collect topics from every provider, or the fallback list if none delivered."""
        logger.info("🌍 Fetching topics from multiple sources...")
        collected: List[TopicCandidate] = []

        for provider in self.providers:
            try:
                topics = await provider.fetch_topics()
            except ProviderUnavailable as e:
                logger.warning(f"❌ Topic provider unavailable: {e}")
                continue
            except Exception as e:
                logger.warning(
                    f"❌ Unexpected error from topic provider "
                    f"{provider.provider_name}: {e}"
                )
                continue

            usable = [topic for topic in topics if self._is_usable(topic)]
            logger.info(
                f"✅ Fetched {len(usable)} topics from {provider.provider_name}"
            )
            collected.extend(usable)

        if not collected:
            logger.info("Using curated fallback topics")
            return fallback_topics(self.fallback_count, rng=self.rng)

        logger.info(f"✅ Total topics collected: {len(collected)}")
        return collected

    def _is_usable(self, topic: TopicCandidate) -> bool:
        return is_usable_article(
            {"title": topic.title, "description": topic.description},
            self.min_title_length,
        )
