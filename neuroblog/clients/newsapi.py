"""NewsAPI client for trending topic discovery."""

import asyncio
import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import aiohttp

from neuroblog.clients.interfaces import TopicProvider
from neuroblog.core.errors import ProviderUnavailable
from neuroblog.core.topics import categorize_article, is_usable_article
from neuroblog.core.utils import clean_topic_title, topic_unique_id
from neuroblog.models.content import TopicCandidate

logger = logging.getLogger(__name__)

# Diverse keywords across multiple fields so consecutive cycles cover different ground
TOPIC_KEYWORDS = [
    # Technology
    "AI technology", "machine learning", "blockchain", "cybersecurity",
    "cloud computing", "quantum computing",
    # Business & Finance
    "startup funding", "market trends", "economic news", "cryptocurrency",
    "stock market", "business innovation",
    # Health & Science
    "medical breakthrough", "scientific discovery", "health research",
    "climate change", "space exploration", "biotechnology",
    # Entertainment & Culture
    "entertainment news", "movie industry", "music trends", "gaming industry",
    "social media trends", "digital culture",
    # Sports & Lifestyle
    "sports news", "fitness trends", "travel industry", "food trends",
    "fashion industry", "lifestyle changes",
    # Education & Career
    "education technology", "career trends", "remote work", "skill development",
    "online learning", "job market",
    # Environment & Sustainability
    "renewable energy", "environmental protection", "sustainable living",
    "green technology", "conservation efforts",
    # Politics & Society
    "policy changes", "social movements", "government initiatives",
    "public health", "urban development",
]


class NewsAPIClient(TopicProvider):
    """Client for the NewsAPI 'everything' endpoint."""

    def __init__(self, api_key: Optional[str], settings=None, rng=None):
        """Initialize NewsAPI client.

        Args:
            api_key: NewsAPI key
            settings: Settings instance for configuration values
            rng: Random source used to pick the search keyword
        """
        self.api_key = api_key
        self.base_url = "https://newsapi.org/v2"
        self.rng = rng or random.Random()

        if settings:
            self.timeout = settings.newsapi_timeout
            self.lookback_hours = settings.topic_lookback_hours
            self.page_size = settings.topic_page_size
            self.max_results = settings.topic_max_results
            self.min_title_length = settings.topic_min_title_length
            self.description_max_length = settings.topic_description_max_length
        else:
            self.timeout = 15.0
            self.lookback_hours = 4
            self.page_size = 20
            self.max_results = 10
            self.min_title_length = 20
            self.description_max_length = 300

    @property
    def provider_name(self) -> str:
        return "newsapi"

    def get_priority(self) -> int:
        return 10

    async def fetch_topics(self) -> List[TopicCandidate]:
        """Fetch recent articles for one randomly chosen keyword."""
        if not self.api_key:
            raise ProviderUnavailable(self.provider_name, "no API key configured")

        keyword = self.rng.choice(TOPIC_KEYWORDS)
        since = datetime.now(timezone.utc) - timedelta(hours=self.lookback_hours)
        params = {
            "q": keyword,
            "language": "en",
            "sortBy": "publishedAt",
            "from": since.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "pageSize": self.page_size,
            "apiKey": self.api_key,
        }
        logger.info(f"🔄 Fetching NewsAPI articles for '{keyword}'")

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    f"{self.base_url}/everything",
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise ProviderUnavailable(
                            self.provider_name,
                            f"HTTP {response.status} - {error_text[:200]}",
                        )
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderUnavailable(self.provider_name, f"network error: {e}") from e
        except (KeyError, ValueError, TypeError) as e:
            raise ProviderUnavailable(self.provider_name, f"bad payload: {e}") from e

        return self.normalize_articles(data.get("articles") or [])

    def normalize_articles(self, articles: List[Dict[str, Any]]) -> List[TopicCandidate]:
        """Turn raw NewsAPI articles into topic candidates.

        Malformed entries are dropped and the result is capped at
        ``max_results``.
        """
        topics = []
        for article in articles:
            if not is_usable_article(article, self.min_title_length):
                continue

            title = clean_topic_title(article["title"])
            description = article["description"][: self.description_max_length]
            published_raw = article.get("publishedAt") or ""
            source = (article.get("source") or {}).get("name") or "NewsAPI"

            topics.append(
                TopicCandidate(
                    title=title,
                    description=description,
                    source=source,
                    url=article.get("url"),
                    published_at=_parse_timestamp(published_raw),
                    category=categorize_article(f"{title} {description}"),
                    unique_id=topic_unique_id(title, published_raw),
                )
            )
            if len(topics) >= self.max_results:
                break

        logger.debug(f"NewsAPI returned {len(articles)} articles, kept {len(topics)}")
        return topics


def _parse_timestamp(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return datetime.now(timezone.utc)
