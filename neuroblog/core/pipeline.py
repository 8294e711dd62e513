"""Suggestion generation cycle."""

import asyncio
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from neuroblog.core.dedup import DuplicateFilter
from neuroblog.core.errors import GenerationError, UpstreamUnavailable
from neuroblog.core.formatter import ContentFormatter
from neuroblog.core.images import ImageResolver
from neuroblog.core.parser import ResponseParser
from neuroblog.core.prompts import build_prompt
from neuroblog.core.topics import TopicAggregator
from neuroblog.models.content import (
    Draft,
    GenerationMode,
    GenerationResult,
    Suggestion,
    SuggestionStatus,
    TopicCandidate,
    utcnow,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CyclePolicy:
    """Limits and dedup windows for one kind of generation cycle."""

    max_suggestions: int
    pending_ceiling: int
    suggestion_window_hours: float
    post_window_hours: float

    @classmethod
    def on_demand(cls, settings) -> "CyclePolicy":
        return cls(
            max_suggestions=settings.on_demand_max_suggestions,
            pending_ceiling=settings.on_demand_pending_ceiling,
            suggestion_window_hours=settings.on_demand_suggestion_window_hours,
            post_window_hours=settings.on_demand_post_window_hours,
        )

    @classmethod
    def autonomous(cls, settings) -> "CyclePolicy":
        return cls(
            max_suggestions=settings.autonomous_max_suggestions,
            pending_ceiling=settings.autonomous_pending_ceiling,
            suggestion_window_hours=settings.autonomous_suggestion_window_hours,
            post_window_hours=settings.autonomous_post_window_hours,
        )


class SuggestionGenerator:
    """Runs topic → dedup → generate → parse → format → persist.

    The pending-ceiling check is a read followed by writes, so concurrent
    cycles may overshoot the ceiling slightly. It is backpressure, not a
    hard limit.
    """

    def __init__(
        self,
        store,
        aggregator: TopicAggregator,
        generation_client,
        image_resolver: ImageResolver,
        duplicate_filter: DuplicateFilter,
        parser: ResponseParser,
        formatter: ContentFormatter,
        policies: dict,
        generated_title_window_hours: float = 6.0,
        images_per_suggestion: int = 2,
        now: Callable[[], datetime] = utcnow,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.aggregator = aggregator
        self.generation_client = generation_client
        self.image_resolver = image_resolver
        self.duplicate_filter = duplicate_filter
        self.parser = parser
        self.formatter = formatter
        self.policies = policies
        self.generated_title_window_hours = generated_title_window_hours
        self.images_per_suggestion = images_per_suggestion
        self.now = now
        self.rng = rng or random.Random()

    async def run_cycle(self, mode: GenerationMode) -> GenerationResult:
        """Generate and persist pending suggestions for one cycle.

        Raises:
            UpstreamUnavailable: on demand only, when the generation retry
                budget is exhausted; suggestions saved before that stay saved
            PersistenceError: if the store fails
        """
        policy: CyclePolicy = self.policies[mode]

        pending = await self.store.count_suggestions(status=SuggestionStatus.PENDING)
        if pending >= policy.pending_ceiling:
            logger.info(
                f"Too many pending suggestions ({pending} >= {policy.pending_ceiling}), "
                f"skipping {mode.value} generation"
            )
            return GenerationResult(mode=mode, skipped_reason="pending_ceiling")

        topics = await self.aggregator.fetch_topics()
        created: List[Suggestion] = []

        for topic in topics:
            if len(created) >= policy.max_suggestions:
                break

            if await self.duplicate_filter.is_duplicate(
                topic,
                window_hours=policy.suggestion_window_hours,
                post_window_hours=policy.post_window_hours,
            ):
                logger.info(f"Skipping duplicate content: {topic.title}")
                continue

            try:
                suggestion = await self._generate_for_topic(topic, mode)
            except UpstreamUnavailable as e:
                if mode == GenerationMode.ON_DEMAND:
                    logger.error(
                        f"Generation service unavailable after {len(created)} "
                        f"suggestions: {e}"
                    )
                    raise
                logger.error(f"Generation service unavailable, ending cycle: {e}")
                break

            created.append(suggestion)

        logger.info(f"✅ Generated {len(created)} {mode.value} suggestions")
        return GenerationResult(mode=mode, suggestions=created)

    async def _generate_for_topic(
        self, topic: TopicCandidate, mode: GenerationMode
    ) -> Suggestion:
        prompt = build_prompt(topic, mode, self.now(), rng=self.rng)

        images, completion = await asyncio.gather(
            self.image_resolver.resolve_images(topic.title, self.images_per_suggestion),
            self.generation_client.complete(prompt),
            return_exceptions=True,
        )
        if isinstance(images, BaseException):
            raise images
        if isinstance(completion, UpstreamUnavailable):
            raise completion

        if isinstance(completion, GenerationError):
            logger.warning(
                f"Generation failed for '{topic.title}', using topic fallback: {completion}"
            )
            draft: Draft = self.parser.fallback_from_topic(topic, reason=str(completion))
        elif isinstance(completion, BaseException):
            raise completion
        else:
            draft = self.parser.parse(completion)

        title = draft.title
        if await self.duplicate_filter.is_duplicate(
            title, window_hours=self.generated_title_window_hours
        ):
            title = self.duplicate_filter.disambiguate(title)
            logger.info(f"🔄 Made title unique: {title}")

        if mode == GenerationMode.AUTONOMOUS:
            source = f"Auto: {topic.source}"
        else:
            source = f"{topic.source} - {topic.title}"

        suggestion = Suggestion(
            title=title,
            body=self.formatter.format(draft.body, images, topic.title, topic.url),
            summary=draft.summary,
            tags=draft.tags,
            category=topic.category or draft.category,
            images=images,
            source=source,
            origin_url=topic.url,
            external_id=topic.unique_id,
            read_time=draft.read_time,
            publish_date=draft.publish_date,
            status=SuggestionStatus.PENDING,
            generated_at=self.now(),
        )
        await self.store.create_suggestion(suggestion)
        logger.info(f"💡 Saved {draft.kind} suggestion: {suggestion.title}")
        return suggestion
