"""Error taxonomy of the acquisition pipeline.

None of these reach the caller of ``acquire``: each is absorbed at the
boundary that knows how to degrade around it.
"""


class NewsEngineError(Exception):
    """Base class for Chornex News errors."""


class ProviderUnavailable(NewsEngineError):
    """A provider could not produce an answer.

    Covers missing credentials, transport errors, error statuses (including
    quota exhaustion) and empty answers alike.
    """

    def __init__(self, provider: str, reason: str) -> None:
        super().__init__(f"{provider} unavailable: {reason}")
        self.provider = provider
        self.reason = reason


class MalformedResponse(NewsEngineError):
    """Provider text could not be parsed into a highlight set."""

    def __init__(self, message: str, raw_text: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text


class CacheCorrupt(NewsEngineError):
    """A stored cache record could not be decoded."""
