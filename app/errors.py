"""Error taxonomy for the answer pipeline.

Only ``QueryValidationError`` and an unrecovered ``UpstreamProviderError``
ever reach the HTTP layer. The other errors are absorbed where they are raised.
"""
from __future__ import annotations


class AnswerEngineError(Exception):
    """Base class for all pipeline errors."""


class QueryValidationError(AnswerEngineError):
    """The incoming query is empty or whitespace-only."""


class UpstreamFetchError(AnswerEngineError):
    """A page fetch or media check failed. Always recovered locally."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class UpstreamProviderError(AnswerEngineError):
    """A search, LLM or embedding provider call failed outright."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class MalformedStructuredReply(AnswerEngineError):
    """The LLM was asked for structured data and returned something else."""

    def __init__(self, raw_text: str, reason: str):
        super().__init__(reason)
        self.raw_text = raw_text
