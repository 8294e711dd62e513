"""Pexels API client for suggestion illustrations."""

import asyncio
import logging
import random
from typing import List, Optional

import aiohttp

from neuroblog.clients.interfaces import ImageProvider
from neuroblog.core.errors import ProviderUnavailable
from neuroblog.core.utils import strip_search_query
from neuroblog.models.content import ImageAttachment

logger = logging.getLogger(__name__)

# Broad terms appended to topic queries so Pexels returns usable stock photos
QUERY_HINTS = ["technology", "business", "innovation", "digital", "computer", "data"]


class PexelsClient(ImageProvider):
    """Client for Pexels photo search."""

    def __init__(self, api_key: Optional[str], settings=None, rng=None):
        self.api_key = api_key
        self.base_url = "https://api.pexels.com/v1"
        self.timeout = settings.pexels_timeout if settings else 8.0
        self.rng = rng or random.Random()

    @property
    def provider_name(self) -> str:
        return "pexels"

    def get_priority(self) -> int:
        return 20

    async def search_images(self, query: str, count: int) -> List[ImageAttachment]:
        if not self.api_key:
            raise ProviderUnavailable(self.provider_name, "no API key configured")

        search_query = f"{strip_search_query(query)} {self.rng.choice(QUERY_HINTS)}"
        params = {"query": search_query, "per_page": count, "orientation": "landscape"}

        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    f"{self.base_url}/search",
                    headers={"Authorization": self.api_key},
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise ProviderUnavailable(
                            self.provider_name, f"HTTP {response.status}"
                        )
                    data = await response.json()

            return [
                ImageAttachment(
                    url=photo["src"]["large"],
                    caption=f"{query} - Professional Image",
                    credit=photo.get("photographer") or "Pexels",
                    credit_url=photo.get("photographer_url"),
                )
                for photo in data.get("photos", [])[:count]
            ]
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise ProviderUnavailable(self.provider_name, f"network error: {e}") from e
        except (KeyError, ValueError, TypeError) as e:
            raise ProviderUnavailable(self.provider_name, f"bad payload: {e}") from e
