"""Image resolution with themed placeholder fallbacks."""

import logging
import time
from typing import Callable, List, Sequence

from neuroblog.core.errors import ProviderUnavailable
from neuroblog.core.utils import keyword_pattern
from neuroblog.models.content import ImageAttachment

logger = logging.getLogger(__name__)

# Ordered: the first matching rule wins
THEME_RULES = [
    ("artificial-intelligence", ("ai", "artificial")),
    ("cryptocurrency", ("crypto", "blockchain")),
    ("mobile-technology", ("mobile", "app")),
    ("cloud-computing", ("cloud", "server")),
    ("cybersecurity", ("cyber", "security")),
    ("healthcare", ("health", "medical")),
    ("business", ("business", "finance")),
    ("education", ("education", "learning")),
    ("nature", ("environment", "climate")),
    ("entertainment", ("entertainment", "gaming")),
    ("lifestyle", ("travel", "lifestyle")),
    ("science", ("science", "research")),
]
THEME_PATTERNS = [(theme, keyword_pattern(keywords)) for theme, keywords in THEME_RULES]
DEFAULT_THEME = "business"


def classify_theme(topic: str) -> str:
    """Map a topic to a placeholder image theme by keyword match."""
    for theme, pattern in THEME_PATTERNS:
        if pattern.search(topic or ""):
            return theme
    return DEFAULT_THEME


def placeholder_images(
    topic: str, count: int, seed: int
) -> List[ImageAttachment]:
    """Synthesize ``count`` placeholder images, cycling across backends."""
    theme = classify_theme(topic)
    images = []
    for index in range(count):
        value = seed + index
        backends = [
            f"https://source.unsplash.com/800x400/?{theme}&sig={value}",
            f"https://picsum.photos/800/400?random={value}",
            f"https://loremflickr.com/800/400/{theme}?random={value}",
        ]
        images.append(
            ImageAttachment(
                url=backends[index % len(backends)],
                caption=f"{topic} - Professional {theme} Image",
                credit="Free Stock Photos",
                credit_url=None,
            )
        )
    return images


class ImageResolver:
    """Resolves illustrative images from providers, then placeholders."""

    def __init__(
        self,
        providers: Sequence = (),
        clock: Callable[[], float] = time.time,
    ):
        self.providers = sorted(providers, key=lambda p: p.get_priority())
        self.clock = clock

    async def resolve_images(self, topic: str, count: int = 2) -> List[ImageAttachment]:
        """Return exactly ``count`` images for ``topic``; never raises."""
        images: List[ImageAttachment] = []

        for provider in self.providers:
            try:
                images = list(await provider.search_images(topic, count))[:count]
            except ProviderUnavailable as e:
                logger.info(f"Image provider unavailable: {e}")
                continue
            except Exception as e:
                logger.warning(
                    f"Unexpected error from image provider {provider.provider_name}: {e}"
                )
                continue

            if images:
                logger.info(
                    f"✅ Fetched {len(images)} images from {provider.provider_name}"
                )
                break

        if len(images) < count:
            logger.info("🖼️ Using placeholder images")
            seed = int(self.clock() * 1000)
            images.extend(placeholder_images(topic, count - len(images), seed))

        return images
