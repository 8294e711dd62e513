"""Google Gemini client for writing blog suggestions."""

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

OVERLOAD_CODES = {429, 503}
OVERLOAD_STATUSES = {"UNAVAILABLE", "RESOURCE_EXHAUSTED"}


class GeminiClient(GenerationClient):
    """Client for the Gemini ``generateContent`` endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.0-flash-exp",
        settings=None,
        retry_policy: Optional[RetryPolicy] = None,
        **kwargs,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key
            model: Model name used in the endpoint path
            settings: Settings instance for configuration values
            retry_policy: Overrides the policy derived from ``settings``
        """
        if retry_policy is None and settings is not None:
            retry_policy = RetryPolicy.from_settings(settings)
        super().__init__(retry_policy=retry_policy, **kwargs)

        self.api_key = api_key
        self.model = model
        self.base_url = "https://generativelanguage.googleapis.com/v1beta"
        if settings:
            self.temperature = settings.generation_temperature
            self.max_output_tokens = settings.generation_max_output_tokens
        else:
            self.temperature = 0.7
            self.max_output_tokens = 2048

    @property
    def name(self) -> str:
        return f"Gemini ({self.model})"

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _request_completion(self, prompt: str) -> str:
        if not self.api_key:
            raise UpstreamRequestError("No Gemini API key configured")

        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "topK": 40,
                "topP": 0.95,
                "maxOutputTokens": self.max_output_tokens,
            },
        }
        status, data = await self._post(payload)

        if status == 200:
            return self._extract_text(data)

        error = data.get("error") or {}
        if not isinstance(error, dict):
            error = {"message": str(error)}
        message = error.get("message") or f"HTTP {status}"
        if (
            status in OVERLOAD_CODES
            or error.get("code") in OVERLOAD_CODES
            or error.get("status") in OVERLOAD_STATUSES
        ):
            raise UpstreamOverloaded(message, status=status)
        raise UpstreamRequestError(f"Gemini API error: {message}", status=status)

    async def _post(self, payload: Dict[str, Any]) -> Tuple[int, Dict[str, Any]]:
        """Send one request and return the HTTP status with the decoded body."""
        url = f"{self.base_url}/models/{self.model}:generateContent"
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    url,
                    params={"key": self.api_key},
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.retry_policy.timeout),
                ) as response:
                    try:
                        data = await response.json(content_type=None)
                    except ValueError:
                        data = {}
                    return response.status, data if isinstance(data, dict) else {}
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamUnreachable(f"Network error calling Gemini: {e}") from e

    def _extract_text(self, data: Dict[str, Any]) -> str:
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as e:
            raise EmptyResponse("No valid response from Gemini") from e

        if not isinstance(text, str) or not text.strip():
            raise EmptyResponse("Gemini returned an empty completion")
        return text.strip()
