"""Interfaces for pluggable topic and image providers."""

from abc import ABC, abstractmethod
from typing import List

from neuroblog.models.content import ImageAttachment, TopicCandidate


class TopicProvider(ABC):
    """Interface for a source of trending topic candidates."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """A unique name for this provider, e.g., 'newsapi'."""
        pass

    @abstractmethod
    async def fetch_topics(self) -> List[TopicCandidate]:
        """
        Fetch recent topic candidates.

        Returns:
            Normalized topic candidates, possibly empty

        Raises:
            ProviderUnavailable: if the provider is unconfigured or failing
        """
        pass

    def get_priority(self) -> int:
        """
        Get the priority of this provider.
        Lower numbers are queried first.

        Returns:
            Priority value (default: 100)
        """
        return 100


class ImageProvider(ABC):
    """Interface for an image search provider."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """A unique name for this provider, e.g., 'unsplash'."""
        pass

    @abstractmethod
    async def search_images(self, query: str, count: int) -> List[ImageAttachment]:
        """
        Search for images illustrating ``query``.

        Args:
            query: Free-text topic
            count: Maximum number of images wanted

        Returns:
            Up to ``count`` images, possibly empty

        Raises:
            ProviderUnavailable: if the provider is unconfigured or failing
        """
        pass

    def get_priority(self) -> int:
        return 100
