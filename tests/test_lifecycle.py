"""Tests for suggestion moderation."""

import asyncio

import pytest
import pytest_asyncio

from neuroblog.core.errors import Forbidden, NotFound, ProviderUnavailable, StateConflict
from neuroblog.core.lifecycle import SuggestionLifecycleManager
from neuroblog.models.content import (
    Caller,
    GenerationMode,
    PostStatus,
    SuggestionStatus,
)

from conftest import NOW, FakeTopicProvider, make_suggestion, seed_pending


@pytest_asyncio.fixture
async def pending(store):
    return await store.create_suggestion(make_suggestion())


class TestAuthorization:
    @pytest.mark.asyncio
    async def test_non_admin_is_forbidden(self, manager, regular_user, pending):
        with pytest.raises(Forbidden):
            await manager.list_pending(regular_user)
        with pytest.raises(Forbidden):
            await manager.generate(regular_user)
        with pytest.raises(Forbidden):
            await manager.approve(regular_user, pending.id)
        with pytest.raises(Forbidden):
            manager.start_schedule(regular_user)

    @pytest.mark.asyncio
    async def test_custom_authorizer(self, store, make_generator):
        manager = SuggestionLifecycleManager(
            store, make_generator(), authorizer=lambda caller: caller.user_id == "editor"
        )
        assert await manager.list_pending(Caller(user_id="editor")) == []
        with pytest.raises(Forbidden):
            await manager.list_pending(Caller(user_id="someone", role="admin"))


class TestApprove:
    @pytest.mark.asyncio
    async def test_approve_and_publish(self, manager, admin, store, pending):
        result = await manager.approve(admin, pending.id, notes="Looks good")

        assert result.suggestion.status == SuggestionStatus.PUBLISHED
        assert result.suggestion.post_id == result.post.id
        assert result.suggestion.moderator_notes == "Looks good"
        assert result.suggestion.approved_at == NOW
        assert result.suggestion.published_at == NOW
        assert result.post.status == PostStatus.PUBLISHED
        assert result.post.title == pending.title
        assert result.post.news_source == pending.source
        assert result.post.featured is True
        assert await store.get_post(result.post.id) == result.post

    @pytest.mark.asyncio
    async def test_approve_as_draft(self, manager, admin, store, pending):
        result = await manager.approve(admin, pending.id, should_publish=False)

        assert result.suggestion.status == SuggestionStatus.APPROVED
        assert result.suggestion.published_at is None
        assert result.post.status == PostStatus.DRAFT
        stored = await store.get_suggestion(pending.id)
        assert stored.status == SuggestionStatus.APPROVED

    @pytest.mark.asyncio
    async def test_admin_pseudo_user_maps_to_default_author(self, manager, admin, pending):
        result = await manager.approve(admin, pending.id)
        assert result.post.author_id == "author-1"

    @pytest.mark.asyncio
    async def test_real_user_is_author(self, manager, pending):
        editor = Caller(user_id="user-42", role="admin")
        result = await manager.approve(editor, pending.id)
        assert result.post.author_id == "user-42"

    @pytest.mark.asyncio
    async def test_approve_twice_conflicts(self, manager, admin, store, pending):
        await manager.approve(admin, pending.id)

        with pytest.raises(StateConflict):
            await manager.approve(admin, pending.id)

        assert len(await store.find_posts()) == 1

    @pytest.mark.asyncio
    async def test_concurrent_approvals_create_one_post(self, manager, admin, store, pending):
        results = await asyncio.gather(
            manager.approve(admin, pending.id),
            manager.publish(admin, pending.id),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        conflicts = [r for r in results if isinstance(r, StateConflict)]
        assert len(successes) == 1
        assert len(conflicts) == 1
        assert len(await store.find_posts()) == 1

    @pytest.mark.asyncio
    async def test_missing_suggestion(self, manager, admin):
        with pytest.raises(NotFound):
            await manager.approve(admin, "missing")


class TestPublishAndReject:
    @pytest.mark.asyncio
    async def test_publish(self, manager, admin, pending):
        result = await manager.publish(admin, pending.id)

        assert result.suggestion.status == SuggestionStatus.PUBLISHED
        assert result.post.status == PostStatus.PUBLISHED

    @pytest.mark.asyncio
    async def test_publish_approved_draft(self, manager, admin, store, pending):
        approved = await manager.approve(
            admin, pending.id, notes="needs a pass", should_publish=False
        )

        result = await manager.publish(admin, pending.id)

        assert result.suggestion.status == SuggestionStatus.PUBLISHED
        assert result.suggestion.published_at == NOW
        assert result.suggestion.moderator_notes == "needs a pass"
        assert result.suggestion.post_id == approved.post.id
        assert result.post.id == approved.post.id
        assert result.post.status == PostStatus.PUBLISHED

        posts = await store.find_posts()
        assert [(p.id, p.status) for p in posts] == [(approved.post.id, PostStatus.PUBLISHED)]

    @pytest.mark.asyncio
    async def test_publish_twice_conflicts(self, manager, admin, pending):
        await manager.publish(admin, pending.id)
        with pytest.raises(StateConflict):
            await manager.publish(admin, pending.id)

    @pytest.mark.asyncio
    async def test_publish_after_reject_conflicts(self, manager, admin, pending):
        await manager.reject(admin, pending.id)
        with pytest.raises(StateConflict):
            await manager.publish(admin, pending.id)

    @pytest.mark.asyncio
    async def test_reject_after_publish_conflicts(self, manager, admin, pending):
        await manager.approve(admin, pending.id)

        with pytest.raises(StateConflict):
            await manager.reject(admin, pending.id, notes="too late")

    @pytest.mark.asyncio
    async def test_reject_again_overwrites_notes(self, manager, admin, store, pending):
        first = await manager.reject(admin, pending.id, notes="off topic")
        second = await manager.reject(admin, pending.id, notes="duplicate")

        assert first.post is None
        assert second.suggestion.status == SuggestionStatus.REJECTED
        stored = await store.get_suggestion(pending.id)
        assert stored.moderator_notes == "duplicate"
        assert stored.post_id is None


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_keeps_post(self, manager, admin, store, pending):
        result = await manager.approve(admin, pending.id)

        await manager.delete(admin, pending.id)

        assert await store.get_suggestion(pending.id) is None
        assert await store.get_post(result.post.id) is not None

    @pytest.mark.asyncio
    async def test_delete_missing(self, manager, admin):
        with pytest.raises(NotFound):
            await manager.delete(admin, "missing")


class TestGenerate:
    @pytest.mark.asyncio
    async def test_list_pending_newest_first_and_limited(self, store, make_generator, admin):
        await seed_pending(store, 12)
        manager = SuggestionLifecycleManager(store, make_generator(), pending_list_limit=10)

        listed = await manager.list_pending(admin)

        assert len(listed) == 10
        assert listed[0].title == "Seeded Entry Number 0"
        assert all(
            a.generated_at >= b.generated_at for a, b in zip(listed, listed[1:])
        )

    @pytest.mark.asyncio
    async def test_end_to_end_with_fallback_topics(self, store, make_generator, admin):
        generator = make_generator(
            provider=FakeTopicProvider(error=ProviderUnavailable("fake", "no key"))
        )
        manager = SuggestionLifecycleManager(store, generator, default_author_id="author-1")

        result = await manager.generate(admin, GenerationMode.ON_DEMAND)
        assert result.count >= 1

        listed = await manager.list_pending(admin)
        assert listed

        moderated = await manager.approve(admin, listed[0].id, should_publish=False)
        assert moderated.post.status == PostStatus.DRAFT
        assert moderated.suggestion.status == SuggestionStatus.APPROVED

    @pytest.mark.asyncio
    async def test_generate_noop_at_ceiling(self, manager, admin, store):
        await seed_pending(store, 8)

        result = await manager.generate(admin)

        assert result.count == 0
        assert result.skipped_reason == "pending_ceiling"


class TestSchedule:
    @pytest.mark.asyncio
    async def test_start_and_stop(self, manager, admin):
        status = manager.start_schedule(admin)
        assert status["running"] is True
        assert status["interval_seconds"] == 300

        status = manager.stop_schedule(admin)
        assert status["running"] is False
        await manager.scheduler.shutdown()

    @pytest.mark.asyncio
    async def test_scheduled_cycle_is_autonomous(self, manager, admin, store):
        await manager.scheduler.run_once()

        assert manager.scheduler.status()["runs"] == 1
        suggestions = await store.find_suggestions()
        assert len(suggestions) == 1
        assert suggestions[0].source.startswith("Auto: ")
