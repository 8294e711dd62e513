"""Unsplash API client for suggestion illustrations."""

import asyncio
import logging
from typing import Dict, List, Optional

import aiohttp

from neuroblog.clients.interfaces import ImageProvider
from neuroblog.core.errors import ProviderUnavailable
from neuroblog.core.utils import strip_search_query
from neuroblog.models.content import ImageAttachment

logger = logging.getLogger(__name__)


class UnsplashClient(ImageProvider):
    """Client for Unsplash photo search."""

    def __init__(self, api_key: Optional[str], settings=None):
        """Initialize Unsplash client.

        Args:
            api_key: Unsplash Access Key
            settings: Settings instance for configuration values
        """
        self.api_key = api_key
        self.base_url = "https://api.unsplash.com"
        self.headers = {
            "Authorization": f"Client-ID {api_key}",
            "Accept-Version": "v1",
        }
        # Timeout configuration
        self.timeout = settings.unsplash_timeout if settings else 10.0

    @property
    def provider_name(self) -> str:
        return "unsplash"

    def get_priority(self) -> int:
        return 10

    async def search_images(self, query: str, count: int) -> List[ImageAttachment]:
        """Search Unsplash for landscape photos matching the topic."""
        if not self.api_key:
            raise ProviderUnavailable(self.provider_name, "no API key configured")

        search_query = strip_search_query(query, max_length=50)
        params = {
            "query": search_query,
            "per_page": count,
            "orientation": "landscape",
            "content_filter": "high",  # Family-friendly content
        }

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    f"{self.base_url}/search/photos",
                    headers=self.headers,
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise ProviderUnavailable(
                            self.provider_name, f"HTTP {response.status}"
                        )
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderUnavailable(self.provider_name, f"network error: {e}") from e

        try:
            images = [
                self._to_attachment(result, query)
                for result in data.get("results", [])[:count]
            ]
        except (KeyError, ValueError, TypeError) as e:
            raise ProviderUnavailable(self.provider_name, f"bad payload: {e}") from e

        logger.debug(f"Found {len(images)} Unsplash images for '{search_query}'")
        return images

    def _to_attachment(self, image_data: Dict, topic: str) -> ImageAttachment:
        """Format an Unsplash search result with blog-sized parameters."""
        base_url = image_data["urls"]["regular"]
        user = image_data.get("user") or {}
        return ImageAttachment(
            url=f"{base_url}&w=800&h=400&fit=crop&auto=format&q=80"
            if "?" in base_url
            else f"{base_url}?w=800&h=400&fit=crop&auto=format&q=80",
            caption=image_data.get("alt_description") or f"{topic} - Professional Image",
            credit=user.get("name") or "Unsplash",
            credit_url=(user.get("links") or {}).get("html"),
        )
