"""Base text generation client with bounded retry and exponential backoff."""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from neuroblog.core.errors import (
    UpstreamOverloaded,
    UpstreamUnavailable,
    UpstreamUnreachable,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently an overloaded upstream is retried."""

    max_attempts: int = 3
    backoff_base: float = 1.0
    backoff_cap: float = 10.0
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings) -> "RetryPolicy":
        return cls(
            max_attempts=settings.generation_max_attempts,
            backoff_base=settings.generation_backoff_base,
            backoff_cap=settings.generation_backoff_cap,
            timeout=settings.generation_timeout,
        )

    def delay_for(self, attempt: int) -> float:
        """Delay to wait after failed attempt number ``attempt`` (1-based)."""
        return min(self.backoff_base * (2 ** (attempt - 1)), self.backoff_cap)


class GenerationClient(ABC):
    """Wraps a text completion upstream behind ``complete(prompt) -> text``."""

    def __init__(
        self,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable upstream name used in logs."""
        pass

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for the upstream are present."""
        pass

    @abstractmethod
    async def _request_completion(self, prompt: str) -> str:
        """Perform one attempt.

        Raises:
            UpstreamOverloaded: transient overload, the attempt may be retried
            UpstreamRequestError: non-transient failure
            UpstreamUnreachable: upstream unreachable
            EmptyResponse: no usable completion in the answer
        """
        pass

    async def complete(self, prompt: str) -> str:
        """Return the first text completion for ``prompt``.

        Only overload responses are retried; every other failure is raised
        on the attempt that produced it.

        Raises:
            UpstreamUnavailable: after ``max_attempts`` overloaded attempts
            UpstreamUnreachable: network failure or per-attempt timeout
        """
        max_attempts = self.retry_policy.max_attempts

        for attempt in range(1, max_attempts + 1):
            try:
                text = await asyncio.wait_for(
                    self._request_completion(prompt),
                    timeout=self.retry_policy.timeout,
                )
                if attempt > 1:
                    logger.info(f"{self.name} succeeded on attempt {attempt}")
                return text
            except asyncio.TimeoutError as e:
                raise UpstreamUnreachable(
                    f"{self.name} timed out after {self.retry_policy.timeout}s"
                ) from e
            except UpstreamOverloaded as e:
                logger.warning(
                    f"{self.name} attempt {attempt}/{max_attempts} failed: {e}"
                )
                if attempt >= max_attempts:
                    logger.error(f"{self.name} still overloaded, giving up")
                    raise UpstreamUnavailable(
                        f"{self.name} temporarily unavailable", attempts=attempt
                    ) from e

                delay = self.retry_policy.delay_for(attempt)
                logger.info(f"Retrying in {delay:.1f}s...")
                await self._sleep(delay)

        raise UpstreamUnavailable(f"{self.name} temporarily unavailable", max_attempts)
