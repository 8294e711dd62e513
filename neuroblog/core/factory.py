"""Factory: build the suggestion pipeline from settings."""

from __future__ import annotations

import logging
from typing import Optional

from neuroblog.clients.gemini import GeminiClient
from neuroblog.clients.generation import GenerationClient, RetryPolicy
from neuroblog.clients.newsapi import NewsAPIClient
from neuroblog.clients.openrouter import OpenRouterClient
from neuroblog.clients.pexels import PexelsClient
from neuroblog.clients.unsplash import UnsplashClient
from neuroblog.core.dedup import DuplicateFilter
from neuroblog.core.formatter import ContentFormatter
from neuroblog.core.images import ImageResolver
from neuroblog.core.lifecycle import SuggestionLifecycleManager
from neuroblog.core.parser import ResponseParser
from neuroblog.core.pipeline import CyclePolicy, SuggestionGenerator
from neuroblog.core.topics import TopicAggregator
from neuroblog.models.content import GenerationMode
from neuroblog.models.settings import Settings
from neuroblog.storage import SQLiteSuggestionStore, SuggestionStore

logger = logging.getLogger(__name__)


def build_generation_client(settings: Settings) -> GenerationClient:
    """Return the client for the configured generation backend."""
    retry_policy = RetryPolicy.from_settings(settings)
    if settings.generation_backend == "openrouter":
        return OpenRouterClient(
            settings.openrouter_api_key,
            model=settings.openrouter_model,
            settings=settings,
            retry_policy=retry_policy,
        )
    return GeminiClient(
        settings.gemini_api_key,
        model=settings.gemini_model,
        settings=settings,
        retry_policy=retry_policy,
    )


def build_generator(
    settings: Settings,
    store: SuggestionStore,
    generation_client: Optional[GenerationClient] = None,
) -> SuggestionGenerator:
    """Wire providers, filters and clients into a SuggestionGenerator.

    Providers without credentials are still registered; they report
    themselves unavailable and the fallbacks take over.
    """
    aggregator = TopicAggregator(
        providers=[NewsAPIClient(settings.newsapi_api_key, settings=settings)],
        fallback_count=settings.fallback_topic_count,
        min_title_length=settings.topic_min_title_length,
    )
    image_resolver = ImageResolver(
        providers=[
            UnsplashClient(settings.unsplash_api_key, settings=settings),
            PexelsClient(settings.pexels_api_key, settings=settings),
        ]
    )
    client = generation_client or build_generation_client(settings)
    if not client.is_configured:
        logger.warning(
            f"⚠️  {client.name} has no API key - suggestions will use topic fallbacks"
        )

    return SuggestionGenerator(
        store=store,
        aggregator=aggregator,
        generation_client=client,
        image_resolver=image_resolver,
        duplicate_filter=DuplicateFilter(store),
        parser=ResponseParser(
            title_max_length=settings.title_max_length, site_name=settings.site_name
        ),
        formatter=ContentFormatter(site_name=settings.site_name),
        policies={
            GenerationMode.ON_DEMAND: CyclePolicy.on_demand(settings),
            GenerationMode.AUTONOMOUS: CyclePolicy.autonomous(settings),
        },
        generated_title_window_hours=settings.generated_title_window_hours,
        images_per_suggestion=settings.images_per_suggestion,
    )


def build_lifecycle_manager(
    settings: Optional[Settings] = None,
    store: Optional[SuggestionStore] = None,
    generation_client: Optional[GenerationClient] = None,
) -> SuggestionLifecycleManager:
    """Build a fully wired lifecycle manager, defaulting to SQLite storage."""
    settings = settings or Settings()
    store = store or SQLiteSuggestionStore(settings.database_path)
    return SuggestionLifecycleManager(
        store=store,
        generator=build_generator(settings, store, generation_client),
        default_author_id=settings.default_author_id,
        pending_list_limit=settings.pending_list_limit,
        schedule_interval=settings.auto_generation_interval,
    )
