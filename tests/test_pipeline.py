"""Tests for the suggestion generation cycle."""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest

from neuroblog.clients.gemini import GeminiClient
from neuroblog.clients.generation import RetryPolicy
from neuroblog.core.errors import (
    ProviderUnavailable,
    UpstreamRequestError,
    UpstreamUnavailable,
)
from neuroblog.core.pipeline import CyclePolicy
from neuroblog.models.content import GenerationMode, SuggestionStatus

from conftest import (
    NOW,
    VALID_COMPLETION,
    FakeGenerationClient,
    FakeTopicProvider,
    make_suggestion,
    make_topic,
    seed_pending,
)


def test_cycle_policies(settings):
    on_demand = CyclePolicy.on_demand(settings)
    autonomous = CyclePolicy.autonomous(settings)

    assert (on_demand.max_suggestions, on_demand.pending_ceiling) == (10, 8)
    assert (autonomous.max_suggestions, autonomous.pending_ceiling) == (1, 15)
    assert autonomous.suggestion_window_hours == 3
    assert autonomous.post_window_hours == 6


@pytest.mark.asyncio
async def test_on_demand_cycle_creates_pending_suggestions(make_generator, store, distinct_topics):
    client = FakeGenerationClient()
    generator = make_generator(provider=FakeTopicProvider(distinct_topics), client=client)

    result = await generator.run_cycle(GenerationMode.ON_DEMAND)

    assert result.count == 3
    assert result.skipped_reason is None
    assert len(client.prompts) == 3
    assert all("BREAKING NEWS" in prompt for prompt in client.prompts)

    stored = await store.find_suggestions(status=SuggestionStatus.PENDING)
    assert len(stored) == 3
    first = next(s for s in stored if s.external_id == distinct_topics[0].unique_id)
    assert first.title == "Robots Learn To Fold Laundry At Scale"
    assert first.source == "Robot Report - Robotics Startups Raise Record Seed Rounds"
    assert len(first.images) == 2
    assert "**" not in first.body
    assert "https://news.example.com/story" in first.body
    assert first.images[0].url in first.body


@pytest.mark.asyncio
async def test_repeated_generated_titles_are_disambiguated(make_generator, store, distinct_topics):
    generator = make_generator(provider=FakeTopicProvider(distinct_topics))

    result = await generator.run_cycle(GenerationMode.ON_DEMAND)

    titles = [s.title for s in result.suggestions]
    assert titles[0] == "Robots Learn To Fold Laundry At Scale"
    assert all(t.startswith("Robots Learn To Fold Laundry At Scale - ") for t in titles[1:])
    assert all(t.endswith(" 1200") for t in titles[1:])


@pytest.mark.asyncio
async def test_pending_ceiling_skips_cycle(make_generator, store, distinct_topics):
    await seed_pending(store, 8)
    provider = FakeTopicProvider(distinct_topics)
    client = FakeGenerationClient()
    generator = make_generator(provider=provider, client=client)

    result = await generator.run_cycle(GenerationMode.ON_DEMAND)

    assert result.count == 0
    assert result.skipped_reason == "pending_ceiling"
    assert provider.calls == 0
    assert client.prompts == []
    assert await store.count_suggestions(SuggestionStatus.PENDING) == 8


@pytest.mark.asyncio
async def test_autonomous_cycle_takes_one_topic(make_generator, store, distinct_topics):
    await seed_pending(store, 8)
    client = FakeGenerationClient()
    generator = make_generator(provider=FakeTopicProvider(distinct_topics), client=client)

    result = await generator.run_cycle(GenerationMode.AUTONOMOUS)

    assert result.count == 1
    suggestion = result.suggestions[0]
    assert suggestion.source == "Auto: Robot Report"
    assert "LIVE UPDATE" in client.prompts[0]


@pytest.mark.asyncio
async def test_duplicate_topics_are_skipped(make_generator, store, distinct_topics):
    await store.create_suggestion(
        make_suggestion(
            "Robotics Roundup", source="Somewhere", generated_at=NOW - timedelta(minutes=30)
        )
    )
    client = FakeGenerationClient()
    generator = make_generator(provider=FakeTopicProvider(distinct_topics), client=client)

    result = await generator.run_cycle(GenerationMode.ON_DEMAND)

    assert result.count == 2
    assert distinct_topics[0].unique_id not in {s.external_id for s in result.suggestions}


@pytest.mark.asyncio
async def test_generation_error_uses_topic_fallback(make_generator, store, distinct_topics):
    client = FakeGenerationClient(responses=[UpstreamRequestError("bad key", status=401)])
    generator = make_generator(provider=FakeTopicProvider(distinct_topics[:1]), client=client)

    result = await generator.run_cycle(GenerationMode.ON_DEMAND)

    suggestion = result.suggestions[0]
    assert suggestion.title == distinct_topics[0].title
    assert suggestion.tags == ["technology", "trends", "innovation"]
    assert suggestion.status == SuggestionStatus.PENDING


@pytest.mark.asyncio
async def test_unparseable_completion_uses_generic_fallback(make_generator, distinct_topics):
    client = FakeGenerationClient(default="Sorry, no JSON today.")
    generator = make_generator(provider=FakeTopicProvider(distinct_topics[:1]), client=client)

    result = await generator.run_cycle(GenerationMode.ON_DEMAND)

    assert result.suggestions[0].title == "Breaking Tech News - October 19, 2026"


@pytest.mark.asyncio
async def test_upstream_unavailable_on_demand_raises_after_saving(make_generator, store, distinct_topics):
    client = FakeGenerationClient(
        responses=[
            VALID_COMPLETION,
            UpstreamUnavailable("down", attempts=3),
        ]
    )
    generator = make_generator(provider=FakeTopicProvider(distinct_topics), client=client)

    with pytest.raises(UpstreamUnavailable):
        await generator.run_cycle(GenerationMode.ON_DEMAND)

    assert await store.count_suggestions(SuggestionStatus.PENDING) == 1


@pytest.mark.asyncio
async def test_upstream_unavailable_autonomous_ends_quietly(make_generator, store, distinct_topics):
    client = FakeGenerationClient(responses=[UpstreamUnavailable("down", attempts=3)])
    generator = make_generator(provider=FakeTopicProvider(distinct_topics), client=client)

    result = await generator.run_cycle(GenerationMode.AUTONOMOUS)

    assert result.count == 0
    assert await store.count_suggestions() == 0


@pytest.mark.asyncio
async def test_fallback_topics_when_provider_down(make_generator, store):
    provider = FakeTopicProvider(error=ProviderUnavailable("fake", "no key"))
    client = FakeGenerationClient(default=UpstreamRequestError("no key"))
    generator = make_generator(provider=provider, client=client)

    result = await generator.run_cycle(GenerationMode.ON_DEMAND)

    assert 1 <= result.count <= 8
    assert all(s.status == SuggestionStatus.PENDING for s in result.suggestions)
    assert all(s.images for s in result.suggestions)


@pytest.mark.asyncio
async def test_topic_without_url(make_generator):
    topic = make_topic("Robotics Startups Raise Record Seed Rounds", url=None)
    generator = make_generator(provider=FakeTopicProvider([topic]))

    result = await generator.run_cycle(GenerationMode.ON_DEMAND)

    assert "Original Source: Not available" in result.suggestions[0].body


@pytest.mark.asyncio
async def test_unreachable_generation_service_uses_topic_fallbacks(
    make_generator, store, distinct_topics
):
    client = GeminiClient("test_key", retry_policy=RetryPolicy(backoff_base=0, backoff_cap=0))
    generator = make_generator(provider=FakeTopicProvider(distinct_topics), client=client)

    with patch(
        "aiohttp.ClientSession.post",
        side_effect=aiohttp.ClientConnectionError("reset"),
    ):
        result = await generator.run_cycle(GenerationMode.ON_DEMAND)

    assert result.count == 3
    titles = {s.title for s in result.suggestions}
    assert titles == {topic.title for topic in distinct_topics}
    assert await store.count_suggestions(SuggestionStatus.PENDING) == 3


@pytest.mark.asyncio
async def test_plain_string_error_body_uses_topic_fallback(make_generator, distinct_topics):
    client = GeminiClient("test_key", retry_policy=RetryPolicy(backoff_base=0, backoff_cap=0))
    generator = make_generator(provider=FakeTopicProvider(distinct_topics[:1]), client=client)

    with patch.object(
        client, "_post", AsyncMock(return_value=(400, {"error": "API key not valid"}))
    ):
        result = await generator.run_cycle(GenerationMode.ON_DEMAND)

    assert result.count == 1
    assert result.suggestions[0].title == distinct_topics[0].title
