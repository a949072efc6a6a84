"""
Agent LLM streaming: OpenAI (primary) or Hugging Face router (fallback).
When OPENAI_API_KEY is set, uses OpenAI chat completions; otherwise uses HF router.

Providers yield raw text increments. They may raise at any point, including
after some increments have been produced; the orchestrator handles that.
"""

import asyncio
import contextlib
import json
import logging
from typing import Any, AsyncIterator, Protocol

import httpx

from app.core.config import (
    AGENT_MAX_TOKENS,
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
    OPENAI_TEMPERATURE,
)
from app.core.errors import ServiceUnavailableError

logger = logging.getLogger(__name__)


class StreamProvider(Protocol):
    """Given role-tagged messages ({"role", "content"}), produce text increments or fail."""

    def stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]: ...


class OpenAIStreamProvider:
    def __init__(
        self,
        api_key: str = OPENAI_API_KEY,
        model: str = OPENAI_LLM_MODEL,
        temperature: float = OPENAI_TEMPERATURE,
        max_tokens: int = AGENT_MAX_TOKENS,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        if not self.api_key:
            raise ServiceUnavailableError("openai", "OPENAI_API_KEY must be set in .env")
        from openai import AsyncOpenAI

        logger.info("[llm:openai] IN  model=%s messages=%d", self.model, len(messages))
        client = AsyncOpenAI(api_key=self.api_key, timeout=LLM_API_TIMEOUT)
        stream = await client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            stream=True,
        )
        produced = 0
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            content = getattr(delta, "content", None) or ""
            produced += len(content)
            yield content
        logger.info("[llm:openai] OUT streamed_len=%d", produced)


class HFStreamProvider:
    """Hugging Face router chat completions with `stream: true` (OpenAI-compatible SSE)."""

    def __init__(
        self,
        api_key: str = HF_API_KEY,
        model: str = HF_LLM_MODEL,
        url: str = HF_CHAT_URL,
        max_tokens: int = AGENT_MAX_TOKENS,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.url = url
        self.max_tokens = max_tokens

    async def stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        if not self.api_key:
            raise ServiceUnavailableError("huggingface", "HF_API_KEY must be set in .env when OPENAI_API_KEY is not set")
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        payload = {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "stream": True,
        }
        logger.info("[llm:hf] IN  model=%s messages=%d", self.model, len(messages))
        async with httpx.AsyncClient(timeout=LLM_API_TIMEOUT) as client:
            async with client.stream("POST", self.url, json=payload, headers=headers) as response:
                if response.status_code != 200:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise RuntimeError(f"HF LLM error {response.status_code}: {body[:200]}")
                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if data == "[DONE]":
                        break
                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError:
                        logger.warning("[llm:hf] skipping malformed event %r", data[:200])
                        continue
                    choices = event.get("choices") or []
                    if choices and isinstance(choices[0], dict):
                        delta = choices[0].get("delta") or {}
                        yield delta.get("content") or ""
        logger.info("[llm:hf] OUT stream finished")


def get_stream_provider() -> StreamProvider:
    """OpenAI when OPENAI_API_KEY is set, else Hugging Face."""
    if OPENAI_API_KEY:
        return OpenAIStreamProvider()
    logger.info("[llm] OPENAI_API_KEY not set; streaming from Hugging Face")
    return HFStreamProvider()


async def iter_until_cancelled(
    increments: AsyncIterator[str],
    cancel_event: asyncio.Event | None = None,
) -> AsyncIterator[str]:
    """
    Re-yield increments until the source ends or `cancel_event` is set.

    Cancellation is honored while waiting on the provider, not only between
    increments; the pending read is cancelled and the source stream closed.
    Provider errors propagate unchanged.
    """
    iterator = increments.__aiter__()
    if cancel_event is None:
        try:
            async for increment in iterator:
                yield increment
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()
        return

    waiter = asyncio.ensure_future(cancel_event.wait())
    step = None
    try:
        while not cancel_event.is_set():
            step = asyncio.ensure_future(iterator.__anext__())
            await asyncio.wait({step, waiter}, return_when=asyncio.FIRST_COMPLETED)
            if not step.done():
                break
            try:
                increment = step.result()
            except StopAsyncIteration:
                break
            if cancel_event.is_set():
                break
            yield increment
    finally:
        waiter.cancel()
        if step is not None and not step.done():
            step.cancel()
            with contextlib.suppress(asyncio.CancelledError, StopAsyncIteration):
                await step
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
