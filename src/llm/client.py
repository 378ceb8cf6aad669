"""Async Claude API client for the finance mentor's replies."""

from __future__ import annotations

import logging
from typing import Any

import anthropic

from src.config import settings

logger = logging.getLogger(__name__)

_client: anthropic.AsyncAnthropic | None = None


class GenerationError(RuntimeError):
    """The AI model could not produce a reply."""


def _get_client() -> anthropic.AsyncAnthropic:
    """Lazily initialize the Anthropic client."""
    global _client  # noqa: PLW0603
    if _client is None:
        _client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
    return _client


async def complete_text(
    messages: list[dict[str, Any]],
    *,
    system: str | list[dict[str, Any]] | None = None,
    model: str | None = None,
    max_tokens: int | None = None,
) -> str:
    """Single-shot Claude call: no tools, no streaming."""
    client = _get_client()
    kwargs: dict[str, Any] = {
        "model": model or settings.chat_model,
        "max_tokens": max_tokens or settings.max_tokens,
        "messages": messages,
    }
    if system is not None:
        kwargs["system"] = system
    response = await client.messages.create(**kwargs)
    return "".join(block.text for block in response.content if getattr(block, "text", None))


async def generate_reply(system: str | list[dict[str, Any]], prompt: str) -> str:
    """Ask the chat model for the mentor's next reply.

    Raises:
        GenerationError: The API call failed or returned no text.
    """
    try:
        text = await complete_text([{"role": "user", "content": prompt}], system=system)
    except anthropic.APIError as exc:
        logger.exception("Reply generation failed")
        raise GenerationError(str(exc)) from exc

    if not text.strip():
        raise GenerationError("empty reply from model")
    return text
