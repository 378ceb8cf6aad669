"""Bearer-token authentication for the HTTP API."""

from __future__ import annotations

import logging
from typing import Protocol

from src.config import settings

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class TokenVerifier(Protocol):
    async def verify(self, token: str) -> str | None:
        """Return the user id for *token*, or None if it is not valid."""


class StaticTokenVerifier:
    """Verifies tokens against a fixed token → user id table."""

    def __init__(self, tokens: dict[str, str] | None = None) -> None:
        self._tokens = tokens if tokens is not None else settings.get_api_tokens()
        if not self._tokens:
            logger.warning("API_TOKENS is empty, every API request will be rejected")

    async def verify(self, token: str) -> str | None:
        return self._tokens.get(token)


def bearer_token(header: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX) :].strip()
    return token or None
