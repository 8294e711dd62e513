"""In-process suggestion store."""

import asyncio
from datetime import datetime
from typing import Dict, List, Optional

from neuroblog.core.errors import NotFound, StateConflict
from neuroblog.models.content import Post, Suggestion, SuggestionStatus
from neuroblog.storage.base import SuggestionStore


class MemorySuggestionStore(SuggestionStore):
    """Dict-backed store; mutations are serialized by one asyncio lock."""

    def __init__(self):
        self._suggestions: Dict[str, Suggestion] = {}
        self._posts: Dict[str, Post] = {}
        self._lock = asyncio.Lock()

    async def create_suggestion(self, suggestion: Suggestion) -> Suggestion:
        async with self._lock:
            self._suggestions[suggestion.id] = suggestion
        return suggestion

    async def get_suggestion(self, suggestion_id: str) -> Optional[Suggestion]:
        return self._suggestions.get(suggestion_id)

    async def find_suggestions(
        self,
        status: Optional[SuggestionStatus] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Suggestion]:
        matches = [
            s
            for s in self._suggestions.values()
            if (status is None or s.status == status)
            and (since is None or s.generated_at >= since)
        ]
        matches.sort(key=lambda s: s.generated_at, reverse=True)
        return matches[:limit] if limit is not None else matches

    async def count_suggestions(self, status: Optional[SuggestionStatus] = None) -> int:
        return sum(
            1 for s in self._suggestions.values() if status is None or s.status == status
        )

    async def update_suggestion(
        self,
        suggestion: Suggestion,
        expected_status: Optional[SuggestionStatus] = None,
    ) -> Suggestion:
        async with self._lock:
            self._check_status(suggestion.id, expected_status)
            self._suggestions[suggestion.id] = suggestion
        return suggestion

    async def delete_suggestion(self, suggestion_id: str) -> bool:
        async with self._lock:
            return self._suggestions.pop(suggestion_id, None) is not None

    async def create_post(self, post: Post) -> Post:
        async with self._lock:
            self._posts[post.id] = post
        return post

    async def get_post(self, post_id: str) -> Optional[Post]:
        return self._posts.get(post_id)

    async def find_posts(
        self, since: Optional[datetime] = None, limit: Optional[int] = None
    ) -> List[Post]:
        matches = [p for p in self._posts.values() if since is None or p.created_at >= since]
        matches.sort(key=lambda p: p.created_at, reverse=True)
        return matches[:limit] if limit is not None else matches

    async def commit_transition(
        self,
        suggestion: Suggestion,
        expected_status: SuggestionStatus,
        post: Optional[Post] = None,
    ) -> Suggestion:
        async with self._lock:
            self._check_status(suggestion.id, expected_status)
            if post is not None:
                self._posts[post.id] = post
            self._suggestions[suggestion.id] = suggestion
        return suggestion

    def _check_status(
        self, suggestion_id: str, expected_status: Optional[SuggestionStatus]
    ) -> None:
        current = self._suggestions.get(suggestion_id)
        if current is None:
            raise NotFound(suggestion_id)
        if expected_status is not None and current.status != expected_status:
            raise StateConflict(
                suggestion_id, current.status.value, expected_status.value
            )
