"""OpenAI-compatible chat client with streaming through a token channel."""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any

from app.config import Settings
from app.errors import UpstreamProviderError
from app.services import logger as log_service
from app.services.token_stream import TokenChannel


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class ChatReply:
    text: str
    usage: Usage = field(default_factory=Usage)
    finish_reason: str | None = None


def _usage_from(raw: Any) -> Usage:
    return Usage(
        input_tokens=getattr(raw, "prompt_tokens", 0) or 0,
        output_tokens=getattr(raw, "completion_tokens", 0) or 0,
    )


class ChatClient:
    """Stateless chat-completion capability shared by every pipeline stage."""

    def __init__(self, openai_client: Any, *, max_tokens: int = 2048):
        self._client = openai_client
        self.max_tokens = max_tokens

    @staticmethod
    def _temperature_for_model(model: str) -> int:
        # Some OpenAI GPT-5-compatible gateways reject temperature=0.
        lowered = (model or "").lower()
        if "gpt-5" in lowered:
            return 1
        return 0

    async def complete(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        json_mode: bool = False,
        caller: str = "llm",
    ) -> ChatReply:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self._temperature_for_model(model),
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        t0 = time.monotonic()
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except Exception as exc:
            log_service.log_llm_call(
                model=model,
                caller=caller,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(exc),
            )
            raise UpstreamProviderError("llm", str(exc)) from exc

        choice = response.choices[0]
        usage = _usage_from(getattr(response, "usage", None))
        log_service.log_llm_call(
            model=model,
            caller=caller,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            duration_ms=int((time.monotonic() - t0) * 1000),
        )
        return ChatReply(
            text=getattr(choice.message, "content", None) or "",
            usage=usage,
            finish_reason=getattr(choice, "finish_reason", None),
        )

    def stream(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        caller: str = "llm",
    ) -> TokenChannel:
        """Start a streamed completion and return the channel its fragments arrive on."""
        channel = TokenChannel(provider="llm")
        task = asyncio.create_task(self._produce(channel, model, messages, caller))
        channel.attach_producer(task)
        return channel

    async def _produce(
        self,
        channel: TokenChannel,
        model: str,
        messages: list[dict[str, str]],
        caller: str,
    ) -> None:
        t0 = time.monotonic()
        usage = Usage()
        try:
            stream = await self._client.chat.completions.create(
                model=model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self._temperature_for_model(model),
                stream=True,
                stream_options={"include_usage": True},
            )
            finished = False
            async for chunk in stream:
                raw_usage = getattr(chunk, "usage", None)
                if raw_usage:
                    usage = _usage_from(raw_usage)
                choices = getattr(chunk, "choices", None) or []
                if finished or not choices:
                    continue
                if getattr(choices[0], "finish_reason", None):
                    # Anything carried on the finishing chunk is not part of the answer.
                    finished = True
                    continue
                delta = getattr(choices[0], "delta", None)
                text = getattr(delta, "content", None) if delta else None
                if text:
                    await channel.send(text)
        except Exception as exc:
            log_service.log_llm_call(
                model=model,
                caller=caller,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(exc),
                streamed=True,
            )
            await channel.fail(exc)
            return

        log_service.log_llm_call(
            model=model,
            caller=caller,
            input_tokens=usage.input_tokens,
            output_tokens=usage.output_tokens,
            duration_ms=int((time.monotonic() - t0) * 1000),
            streamed=True,
        )
        await channel.close()


def get_client(settings: Settings) -> ChatClient:
    """Build a chat client against the configured OpenAI-compatible endpoint."""
    from openai import AsyncOpenAI

    base_url = settings.llm_base_url.strip() or "https://api.openai.com/v1"
    openai_client = AsyncOpenAI(api_key=settings.llm_api_key, base_url=base_url)
    return ChatClient(openai_client, max_tokens=settings.llm_max_tokens)


def get_model(settings: Settings) -> str:
    return settings.default_model
