"""OpenRouter API client for writing blog suggestions."""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from neuroblog.clients.generation import GenerationClient, RetryPolicy
from neuroblog.core.errors import (
    EmptyResponse,
    UpstreamOverloaded,
    UpstreamRequestError,
    UpstreamUnreachable,
)

logger = logging.getLogger(__name__)

OVERLOAD_CODES = {429, 502, 503}

# Completions containing these are refusals, not blog posts
REFUSAL_PATTERNS = [
    "i cannot fulfill your request",
    "i am just an ai model",
    "i can't provide assistance",
    "i cannot create content",
    "it is not within my programming",
    "i'm unable to",
    "i cannot help with",
    "i'm not able to",
    "as an ai language model",
]


class OpenRouterClient(GenerationClient):
    """Client for OpenRouter chat completions."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "openai/gpt-4o-mini",
        settings=None,
        retry_policy: Optional[RetryPolicy] = None,
        **kwargs,
    ):
        """Initialize OpenRouter client.

        Args:
            api_key: OpenRouter API key
            model: Model to use
            settings: Settings instance for configuration values
            retry_policy: Overrides the policy derived from ``settings``
        """
        if retry_policy is None and settings is not None:
            retry_policy = RetryPolicy.from_settings(settings)
        super().__init__(retry_policy=retry_policy, **kwargs)

        self.api_key = api_key
        self.model = model
        self.base_url = "https://openrouter.ai/api/v1"
        site_name = settings.site_name if settings else "NeuroBlog"
        self.headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "X-Title": f"{site_name} Suggestions",
        }
        if settings:
            self.temperature = settings.generation_temperature
            self.max_tokens = settings.generation_max_output_tokens
        else:
            self.temperature = 0.7
            self.max_tokens = 2048

    @property
    def name(self) -> str:
        return f"OpenRouter ({self.model})"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _request_completion(self, prompt: str) -> str:
        if not self.api_key:
            raise UpstreamRequestError("No OpenRouter API key configured")

        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "stream": False,
        }
        status, data = await self._post(payload)

        if status == 200:
            return self._extract_text(data)

        error = data.get("error") or {}
        if not isinstance(error, dict):
            error = {"message": str(error)}
        message = error.get("message") or f"HTTP {status}"
        if status in OVERLOAD_CODES or error.get("code") in OVERLOAD_CODES:
            raise UpstreamOverloaded(message, status=status)
        raise UpstreamRequestError(f"OpenRouter API error: {message}", status=status)

    async def _post(self, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        """Send one request and return the HTTP status with the decoded body."""
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    f"{self.base_url}/chat/completions",
                    headers=self.headers,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.retry_policy.timeout),
                ) as response:
                    try:
                        data = await response.json(content_type=None)
                    except ValueError:
                        data = {}
                    return response.status, data if isinstance(data, dict) else {}
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamUnreachable(f"Network error calling OpenRouter: {e}") from e

    def _extract_text(self, data: Dict[str, Any]) -> str:
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise EmptyResponse("OpenRouter returned no choices") from e

        if not isinstance(content, str) or not content.strip():
            raise EmptyResponse("OpenRouter returned an empty completion")

        content_lower = content.lower()
        for pattern in REFUSAL_PATTERNS:
            if pattern in content_lower:
                logger.warning(f"LLM refusal detected: {pattern}")
                raise EmptyResponse(f"Completion was a refusal ({pattern})")

        return content.strip()
