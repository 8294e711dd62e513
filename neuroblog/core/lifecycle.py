"""Moderation lifecycle for AI-generated suggestions."""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from neuroblog.core.errors import Forbidden, NotFound, StateConflict
from neuroblog.models.content import (
    Caller,
    GenerationMode,
    GenerationResult,
    ModerationResult,
    Post,
    PostStatus,
    Suggestion,
    SuggestionStatus,
    utcnow,
)
from neuroblog.scheduler import AutoGenerationScheduler

logger = logging.getLogger(__name__)


def is_admin(caller: Caller) -> bool:
    return caller.is_admin


class SuggestionLifecycleManager:
    """Owns suggestion state transitions and the autonomous schedule.

    State machine::

        pending -> approved -> published (the draft post is published)
        pending -> published
        pending -> rejected (re-rejecting overwrites notes)

    Every transition is committed with a compare-and-set on the status the
    suggestion had when it was read, so two moderators acting on the same
    suggestion cannot both succeed.
    """

    def __init__(
        self,
        store,
        generator,
        authorizer: Callable[[Caller], bool] = is_admin,
        default_author_id: str = "system",
        pending_list_limit: int = 10,
        schedule_interval: float = 300.0,
        now: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.generator = generator
        self.authorizer = authorizer
        self.default_author_id = default_author_id
        self.pending_list_limit = pending_list_limit
        self.now = now
        self.scheduler = AutoGenerationScheduler(
            self._run_scheduled_cycle, interval=schedule_interval
        )

    async def list_pending(self, caller: Caller) -> List[Suggestion]:
        """Pending suggestions, newest first."""
        self._authorize(caller)
        return await self.store.find_suggestions(
            status=SuggestionStatus.PENDING, limit=self.pending_list_limit
        )

    async def get(self, caller: Caller, suggestion_id: str) -> Suggestion:
        self._authorize(caller)
        return await self._require(suggestion_id)

    async def generate(
        self, caller: Caller, mode: GenerationMode = GenerationMode.ON_DEMAND
    ) -> GenerationResult:
        """Run one generation cycle on behalf of ``caller``."""
        self._authorize(caller)
        return await self.generator.run_cycle(mode)

    async def approve(
        self,
        caller: Caller,
        suggestion_id: str,
        notes: Optional[str] = None,
        should_publish: bool = True,
    ) -> ModerationResult:
        """Approve a pending suggestion and create its post.

        The post is published when ``should_publish`` is set, otherwise it
        is saved as a draft and the suggestion stays ``approved``.
        """
        self._authorize(caller)
        suggestion = await self._require(suggestion_id)
        self._expect(suggestion, SuggestionStatus.PENDING)

        now = self.now()
        post = self._build_post(
            suggestion,
            caller,
            PostStatus.PUBLISHED if should_publish else PostStatus.DRAFT,
        )
        updated = suggestion.transitioned(
            status=SuggestionStatus.PUBLISHED if should_publish else SuggestionStatus.APPROVED,
            moderator_notes=notes,
            approved_at=now,
            published_at=now if should_publish else None,
            post_id=post.id,
        )
        updated = await self.store.commit_transition(
            updated, expected_status=SuggestionStatus.PENDING, post=post
        )
        logger.info(
            f"✅ Suggestion {suggestion_id} approved "
            f"({'published' if should_publish else 'draft'} post {post.id})"
        )
        return ModerationResult(suggestion=updated, post=post)

    async def publish(self, caller: Caller, suggestion_id: str) -> ModerationResult:
        """Publish a pending suggestion directly, or the draft of an approved one."""
        self._authorize(caller)
        suggestion = await self._require(suggestion_id)
        if suggestion.status == SuggestionStatus.APPROVED:
            post = await self._promote_draft(suggestion, caller)
        elif suggestion.status == SuggestionStatus.PENDING:
            post = self._build_post(suggestion, caller, PostStatus.PUBLISHED)
        else:
            raise StateConflict(suggestion_id, suggestion.status.value, "pending or approved")

        updated = suggestion.transitioned(
            status=SuggestionStatus.PUBLISHED,
            published_at=self.now(),
            post_id=post.id,
        )
        updated = await self.store.commit_transition(
            updated, expected_status=suggestion.status, post=post
        )
        logger.info(f"🚀 Suggestion {suggestion_id} published as post {post.id}")
        return ModerationResult(suggestion=updated, post=post)

    async def reject(
        self, caller: Caller, suggestion_id: str, notes: Optional[str] = None
    ) -> ModerationResult:
        """Reject a pending suggestion, or overwrite the notes of a rejected one."""
        self._authorize(caller)
        suggestion = await self._require(suggestion_id)
        if suggestion.status not in (SuggestionStatus.PENDING, SuggestionStatus.REJECTED):
            raise StateConflict(suggestion_id, suggestion.status.value, "pending")

        updated = suggestion.transitioned(
            status=SuggestionStatus.REJECTED, moderator_notes=notes
        )
        updated = await self.store.commit_transition(
            updated, expected_status=suggestion.status
        )
        logger.info(f"Suggestion {suggestion_id} rejected")
        return ModerationResult(suggestion=updated)

    async def delete(self, caller: Caller, suggestion_id: str) -> None:
        """Delete a suggestion in any state; posts created from it are kept."""
        self._authorize(caller)
        if not await self.store.delete_suggestion(suggestion_id):
            raise NotFound(suggestion_id)
        logger.info(f"Suggestion {suggestion_id} deleted")

    def start_schedule(self, caller: Caller) -> Dict[str, Any]:
        self._authorize(caller)
        self.scheduler.start()
        return self.scheduler.status()

    def stop_schedule(self, caller: Caller) -> Dict[str, Any]:
        self._authorize(caller)
        self.scheduler.stop()
        return self.scheduler.status()

    def schedule_status(self, caller: Caller) -> Dict[str, Any]:
        self._authorize(caller)
        return self.scheduler.status()

    async def _run_scheduled_cycle(self) -> GenerationResult:
        logger.info("Auto-generating blog suggestions from latest news...")
        return await self.generator.run_cycle(GenerationMode.AUTONOMOUS)

    def _authorize(self, caller: Caller) -> None:
        if caller is None or not self.authorizer(caller):
            raise Forbidden()

    async def _require(self, suggestion_id: str) -> Suggestion:
        suggestion = await self.store.get_suggestion(suggestion_id)
        if suggestion is None:
            raise NotFound(suggestion_id)
        return suggestion

    @staticmethod
    def _expect(suggestion: Suggestion, status: SuggestionStatus) -> None:
        if suggestion.status != status:
            raise StateConflict(suggestion.id, suggestion.status.value, status.value)

    async def _promote_draft(self, suggestion: Suggestion, caller: Caller) -> Post:
        draft = None
        if suggestion.post_id:
            draft = await self.store.get_post(suggestion.post_id)
        if draft is None:
            logger.warning(f"Draft post for {suggestion.id} is gone, creating a new post")
            return self._build_post(suggestion, caller, PostStatus.PUBLISHED)
        return draft.model_copy(update={"status": PostStatus.PUBLISHED})

    def _build_post(
        self, suggestion: Suggestion, caller: Caller, status: PostStatus
    ) -> Post:
        # The pseudo-user 'admin' has no account of its own
        author_id = (
            self.default_author_id
            if caller.user_id in ("admin", "system")
            else caller.user_id
        )
        return Post(
            title=suggestion.title,
            body=suggestion.body,
            summary=suggestion.summary,
            tags=list(suggestion.tags),
            status=status,
            author_id=author_id,
            news_source=suggestion.source,
            featured=True,
            read_time=suggestion.read_time,
            publish_date=suggestion.publish_date or None,
            featured_image=suggestion.images[0] if suggestion.images else None,
            created_at=self.now(),
        )
