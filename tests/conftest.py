import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from neuroblog.clients.generation import GenerationClient, RetryPolicy
from neuroblog.clients.interfaces import TopicProvider
from neuroblog.core.dedup import DuplicateFilter
from neuroblog.core.formatter import ContentFormatter
from neuroblog.core.images import ImageResolver
from neuroblog.core.lifecycle import SuggestionLifecycleManager
from neuroblog.core.parser import ResponseParser
from neuroblog.core.pipeline import CyclePolicy, SuggestionGenerator
from neuroblog.core.topics import TopicAggregator
from neuroblog.core.utils import topic_unique_id
from neuroblog.models.content import (
    Caller,
    GenerationMode,
    Suggestion,
    SuggestionStatus,
    TopicCandidate,
)
from neuroblog.models.settings import Settings
from neuroblog.storage import MemorySuggestionStore

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

VALID_COMPLETION = """```json
{
  "title": "Robots Learn To Fold Laundry At Scale",
  "summary": "Household robotics crosses a threshold.",
  "content": "## Introduction\\n\\n**Robots** are folding laundry.",
  "tags": ["2026", "robots"],
  "category": "Technology",
  "readTime": "9 min read",
  "publishDate": "October 19, 2026"
}
```"""


class FakeTopicProvider(TopicProvider):
    """Topic provider returning canned topics, or failing."""

    def __init__(self, topics=None, error: Optional[Exception] = None, priority=50):
        self.topics = topics or []
        self.error = error
        self.priority = priority
        self.calls = 0

    @property
    def provider_name(self) -> str:
        return "fake"

    def get_priority(self) -> int:
        return self.priority

    async def fetch_topics(self) -> List[TopicCandidate]:
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.topics)


class FakeGenerationClient(GenerationClient):
    """Generation client answering from a script of texts and exceptions."""

    def __init__(self, responses=None, default=VALID_COMPLETION):
        super().__init__(retry_policy=RetryPolicy(backoff_base=0, backoff_cap=0))
        self.responses = list(responses or [])
        self.default = default
        self.prompts: List[str] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def is_configured(self) -> bool:
        return True

    async def _request_completion(self, prompt: str) -> str:
        self.prompts.append(prompt)
        response = self.responses.pop(0) if self.responses else self.default
        if isinstance(response, Exception):
            raise response
        return response


def make_topic(title: str, source: str = "Example Wire", **kwargs) -> TopicCandidate:
    published = kwargs.pop("published_at", NOW)
    return TopicCandidate(
        title=title,
        description=kwargs.pop("description", f"Coverage of {title.lower()}"),
        source=source,
        url=kwargs.pop("url", "https://news.example.com/story"),
        published_at=published,
        unique_id=topic_unique_id(title, published.isoformat()),
        **kwargs,
    )


def make_suggestion(title: str = "Quantum Computing Breakthroughs 2025", **kwargs) -> Suggestion:
    defaults = dict(
        body="Body text",
        summary="Summary",
        source="Science Today - Quantum Computing Breakthroughs",
        generated_at=NOW,
    )
    defaults.update(kwargs)
    return Suggestion(title=title, **defaults)


@pytest.fixture
def now():
    return lambda: NOW


@pytest.fixture
def settings():
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        newsapi_api_key=None,
        gemini_api_key=None,
        openrouter_api_key=None,
        unsplash_api_key=None,
        pexels_api_key=None,
    )


@pytest.fixture
def store():
    return MemorySuggestionStore()


@pytest.fixture
def admin():
    return Caller(user_id="admin", role="admin")


@pytest.fixture
def regular_user():
    return Caller(user_id="user-1", role="user")


@pytest.fixture
def distinct_topics():
    return [
        make_topic("Robotics Startups Raise Record Seed Rounds", source="Robot Report"),
        make_topic("Ocean Shipping Rates Climb Before Holidays", source="Freight Daily"),
        make_topic("Vaccine Trial Reports Promising Early Data", source="Medical Journal"),
    ]


@pytest.fixture
def make_generator(store, settings, now):
    """Build a SuggestionGenerator around fakes."""

    def _make(provider=None, client=None, images=()):
        aggregator = TopicAggregator(
            providers=[provider] if provider else [],
            rng=random.Random(7),
        )
        return SuggestionGenerator(
            store=store,
            aggregator=aggregator,
            generation_client=client or FakeGenerationClient(),
            image_resolver=ImageResolver(providers=list(images), clock=lambda: 1000.0),
            duplicate_filter=DuplicateFilter(store, now=now, rng=random.Random(7)),
            parser=ResponseParser(now=now),
            formatter=ContentFormatter(now=now),
            policies={
                GenerationMode.ON_DEMAND: CyclePolicy.on_demand(settings),
                GenerationMode.AUTONOMOUS: CyclePolicy.autonomous(settings),
            },
            now=now,
            rng=random.Random(7),
        )

    return _make


@pytest.fixture
def manager(store, make_generator, distinct_topics, now):
    generator = make_generator(provider=FakeTopicProvider(distinct_topics))
    return SuggestionLifecycleManager(
        store=store,
        generator=generator,
        default_author_id="author-1",
        now=now,
    )


async def seed_pending(store, count: int, start: datetime = NOW):
    """Insert ``count`` pending suggestions with unrelated titles."""
    created = []
    for index in range(count):
        suggestion = make_suggestion(
            title=f"Seeded Entry Number {index}",
            source=f"Seed Source {index}",
            generated_at=start - timedelta(days=2, minutes=index),
            status=SuggestionStatus.PENDING,
        )
        created.append(await store.create_suggestion(suggestion))
    return created
