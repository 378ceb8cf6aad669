"""Tests for the Claude client wrappers."""

from unittest.mock import AsyncMock, MagicMock, patch

import anthropic
import httpx
import pytest

from src.llm.client import GenerationError, complete_text, generate_reply


def _mock_client(*texts: str) -> MagicMock:
    mock_response = MagicMock()
    mock_response.content = [MagicMock(text=text) for text in texts]

    mock_client = MagicMock()
    mock_client.messages.create = AsyncMock(return_value=mock_response)
    return mock_client


async def test_complete_text_basic() -> None:
    mock_client = _mock_client("hello world")

    with patch("src.llm.client._get_client", return_value=mock_client):
        result = await complete_text([{"role": "user", "content": "hi"}])

    assert result == "hello world"
    mock_client.messages.create.assert_awaited_once()
    call_kwargs = mock_client.messages.create.call_args.kwargs
    assert call_kwargs["messages"] == [{"role": "user", "content": "hi"}]
    assert call_kwargs["model"] == "claude-sonnet-4-5-20250929"
    assert call_kwargs["max_tokens"] == 2048
    assert "system" not in call_kwargs


async def test_complete_text_joins_text_blocks() -> None:
    with patch("src.llm.client._get_client", return_value=_mock_client("part one, ", "part two")):
        result = await complete_text([{"role": "user", "content": "hi"}])

    assert result == "part one, part two"


async def test_complete_text_with_system_and_model() -> None:
    mock_client = _mock_client("response")
    system = [{"type": "text", "text": "You are helpful."}]

    with patch("src.llm.client._get_client", return_value=mock_client):
        await complete_text(
            [{"role": "user", "content": "hi"}],
            system=system,
            model="claude-haiku-4-5-20251001",
            max_tokens=100,
        )

    call_kwargs = mock_client.messages.create.call_args.kwargs
    assert call_kwargs["system"] == system
    assert call_kwargs["model"] == "claude-haiku-4-5-20251001"
    assert call_kwargs["max_tokens"] == 100


async def test_generate_reply_sends_prompt_as_user_turn() -> None:
    mock_client = _mock_client("Sounds good.")

    with patch("src.llm.client._get_client", return_value=mock_client):
        reply = await generate_reply("system text", "Conversation:\nUSER: hi")

    assert reply == "Sounds good."
    call_kwargs = mock_client.messages.create.call_args.kwargs
    assert call_kwargs["messages"] == [{"role": "user", "content": "Conversation:\nUSER: hi"}]
    assert call_kwargs["system"] == "system text"


async def test_generate_reply_wraps_api_errors() -> None:
    mock_client = MagicMock()
    mock_client.messages.create = AsyncMock(
        side_effect=anthropic.APIError(
            "overloaded",
            httpx.Request("POST", "https://api.anthropic.com/v1/messages"),
            body=None,
        )
    )

    with (
        patch("src.llm.client._get_client", return_value=mock_client),
        pytest.raises(GenerationError),
    ):
        await generate_reply("system", "prompt")


async def test_generate_reply_rejects_empty_text() -> None:
    with (
        patch("src.llm.client._get_client", return_value=_mock_client("   ")),
        pytest.raises(GenerationError, match="empty reply"),
    ):
        await generate_reply("system", "prompt")
