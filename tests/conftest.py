"""Shared fakes for the provider boundaries (OpenAI client, embeddings)."""
from __future__ import annotations

from types import SimpleNamespace

import pytest

KEYWORDS = ("quicksort", "pivot", "partition", "array", "python", "weather")


class KeywordEmbedder:
    """Deterministic embedder: one dimension per keyword plus a constant bias."""

    def __init__(self, fail_on: str | None = None):
        self.fail_on = fail_on
        self.calls: list[list[str]] = []

    def _vector(self, text: str) -> list[float]:
        lowered = text.lower()
        return [float(lowered.count(word)) for word in KEYWORDS] + [0.01]

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        if self.fail_on and any(self.fail_on in text for text in texts):
            raise RuntimeError("embedding backend unavailable")
        return [self._vector(text) for text in texts]

    async def embed_text(self, text: str) -> list[float]:
        return (await self.embed_texts([text]))[0]


def text_chunk(content: str | None, finish_reason: str | None = None, usage=None):
    choice = SimpleNamespace(
        delta=SimpleNamespace(content=content),
        finish_reason=finish_reason,
    )
    return SimpleNamespace(choices=[choice], usage=usage)


def usage_chunk(prompt_tokens: int, completion_tokens: int):
    return SimpleNamespace(
        choices=[],
        usage=SimpleNamespace(prompt_tokens=prompt_tokens, completion_tokens=completion_tokens),
    )


class _ChunkStream:
    def __init__(self, chunks, error: Exception | None = None):
        self._chunks = list(chunks)
        self._error = error

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._chunks:
            return self._chunks.pop(0)
        if self._error is not None:
            error, self._error = self._error, None
            raise error
        raise StopAsyncIteration


class FakeCompletions:
    """Stands in for ``AsyncOpenAI().chat.completions``.

    ``replies`` feed non-streamed calls in order; ``stream_chunks`` feed
    every streamed call.
    """

    def __init__(
        self,
        replies: list[str] | None = None,
        stream_chunks: list | None = None,
        error: Exception | None = None,
        stream_error: Exception | None = None,
    ):
        self.replies = list(replies or [])
        self.stream_chunks = list(stream_chunks or [])
        self.error = error
        self.stream_error = stream_error
        self.calls: list[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if kwargs.get("stream"):
            return _ChunkStream(self.stream_chunks, self.stream_error)
        text = self.replies.pop(0) if self.replies else ""
        choice = SimpleNamespace(
            message=SimpleNamespace(content=text),
            finish_reason="stop",
        )
        return SimpleNamespace(
            choices=[choice],
            usage=SimpleNamespace(prompt_tokens=12, completion_tokens=5),
        )


def fake_openai(completions: FakeCompletions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


@pytest.fixture
def embedder():
    return KeywordEmbedder()
