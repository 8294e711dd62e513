"""Storage interface consumed by the suggestion pipeline."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from neuroblog.models.content import Post, Suggestion, SuggestionStatus


class SuggestionStore(ABC):
    """Async persistence for suggestions and posts.

    Every mutating method is a single atomic operation against the
    backing store. Implementations raise PersistenceError on failure.
    """

    @abstractmethod
    async def create_suggestion(self, suggestion: Suggestion) -> Suggestion:
        pass

    @abstractmethod
    async def get_suggestion(self, suggestion_id: str) -> Optional[Suggestion]:
        pass

    @abstractmethod
    async def find_suggestions(
        self,
        status: Optional[SuggestionStatus] = None,
        since: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Suggestion]:
        """Suggestions matching the filter, newest ``generated_at`` first."""
        pass

    @abstractmethod
    async def count_suggestions(self, status: Optional[SuggestionStatus] = None) -> int:
        pass

    @abstractmethod
    async def update_suggestion(
        self,
        suggestion: Suggestion,
        expected_status: Optional[SuggestionStatus] = None,
    ) -> Suggestion:
        """Overwrite a stored suggestion.

        Raises:
            NotFound: if the suggestion does not exist
            StateConflict: if ``expected_status`` is given and differs from the stored status
        """
        pass

    @abstractmethod
    async def delete_suggestion(self, suggestion_id: str) -> bool:
        """Delete a suggestion; returns False if it did not exist."""
        pass

    @abstractmethod
    async def create_post(self, post: Post) -> Post:
        pass

    @abstractmethod
    async def get_post(self, post_id: str) -> Optional[Post]:
        pass

    @abstractmethod
    async def find_posts(
        self, since: Optional[datetime] = None, limit: Optional[int] = None
    ) -> List[Post]:
        """Posts created at or after ``since``, newest first."""
        pass

    @abstractmethod
    async def commit_transition(
        self,
        suggestion: Suggestion,
        expected_status: SuggestionStatus,
        post: Optional[Post] = None,
    ) -> Suggestion:
        """Atomically apply a moderation transition.

        Checks that the stored status still equals ``expected_status``,
        saves ``post`` if given (replacing a stored post with the same id),
        and overwrites the suggestion. Either all of it is applied or none
        of it.

        Raises:
            NotFound: if the suggestion does not exist
            StateConflict: if the stored status changed
        """
        pass

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
