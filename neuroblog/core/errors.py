"""Exception hierarchy for the suggestion pipeline."""

from typing import Optional


class NeuroBlogError(Exception):
    """Base class for all pipeline errors."""


class ProviderUnavailable(NeuroBlogError):
    """A topic or image provider could not be used."""

    def __init__(self, provider: str, reason: str):
        super().__init__(f"{provider}: {reason}")
        self.provider = provider
        self.reason = reason


class GenerationError(NeuroBlogError):
    """The text generation upstream did not produce a completion."""


class UpstreamOverloaded(GenerationError):
    """Transient overload reported by the upstream; safe to retry."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class UpstreamUnavailable(GenerationError):
    """The upstream stayed unavailable after the retry budget was spent."""

    def __init__(self, message: str, attempts: int = 1):
        super().__init__(message)
        self.attempts = attempts


class UpstreamUnreachable(GenerationError):
    """A single attempt could not reach the upstream or timed out."""


class UpstreamRequestError(GenerationError):
    """Non-transient upstream failure such as bad credentials or a bad request."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class EmptyResponse(GenerationError):
    """The upstream answered without a usable completion."""


class MalformedUpstreamResponse(NeuroBlogError):
    """A completion could not be decoded into a draft."""


class LifecycleError(NeuroBlogError):
    """Base class for errors surfaced by moderation operations."""


class NotFound(LifecycleError):
    """The referenced suggestion does not exist."""

    def __init__(self, suggestion_id: str):
        super().__init__(f"Suggestion not found: {suggestion_id}")
        self.suggestion_id = suggestion_id


class Forbidden(LifecycleError):
    """The caller is not allowed to perform the operation."""

    def __init__(self, message: str = "Admin access required"):
        super().__init__(message)


class StateConflict(LifecycleError):
    """The suggestion is not in a state that allows the transition."""

    def __init__(self, suggestion_id: str, current: str, expected: str):
        super().__init__(
            f"Suggestion {suggestion_id} is {current}, expected {expected}"
        )
        self.suggestion_id = suggestion_id
        self.current = current
        self.expected = expected


class PersistenceError(NeuroBlogError):
    """The suggestion/post store failed; the operation was not applied."""
