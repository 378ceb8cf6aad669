"""One chat turn: extract, ask the model, persist what came out of it.

The user's latest message goes through the finance and memory parsers while
the model is prompted with the user's context. Directives in the reply win
over the heuristic parsers: message-derived records are only kept for a
family the model said nothing about.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from src.config import settings
from src.finance.parser import parse_finance_from_message
from src.finance.portfolio import apply_investment_update
from src.llm.client import generate_reply
from src.llm.context import build_ai_context, format_context_for_ai
from src.llm.directives import InvestmentUpdate, MemoryUpdate, parse_ai_response
from src.llm.prompt import build_conversation_prompt, build_system_prompt
from src.memory.manager import MemoryManager
from src.memory.parser import parse_memory_from_message
from src.store import FINANCES, PROFILES
from src.validators import (
    validate_finance_entry,
    validate_investment_update,
    validate_memory_update,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from src.finance.models import FinanceEntry, ParsedFinanceResult
    from src.memory.models import MemoryEntry, ParsedMemoryResult
    from src.store import DocumentStore

    Generate = Callable[[list[dict[str, Any]], str], Awaitable[str]]

logger = logging.getLogger(__name__)


@dataclass
class ChatResult:
    reply: str
    finance_entries: list[dict[str, Any]] = field(default_factory=list)
    memory_ids: list[str] = field(default_factory=list)
    memory_updates: list[MemoryUpdate] = field(default_factory=list)
    investment_updates: list[InvestmentUpdate] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)


def latest_user_message(messages: list[dict[str, str]]) -> str:
    for msg in reversed(messages):
        if msg.get("role") == "user" and isinstance(msg.get("content"), str):
            return msg["content"]
    return ""


def _unique_by_content(entries: list[MemoryEntry]) -> list[MemoryEntry]:
    seen: set[str] = set()
    unique = []
    for entry in entries:
        if entry.content not in seen:
            seen.add(entry.content)
            unique.append(entry)
    return unique


class ChatPipeline:
    """Runs chat turns against an injected store and model."""

    def __init__(self, store: DocumentStore, generate: Generate | None = None) -> None:
        self._store = store
        self._memories = MemoryManager(store)
        self._generate = generate or generate_reply

    async def extract(self, message: str) -> tuple[ParsedFinanceResult, ParsedMemoryResult]:
        """Run both heuristic parsers on *message* concurrently."""
        return await asyncio.gather(
            asyncio.to_thread(parse_finance_from_message, message),
            asyncio.to_thread(parse_memory_from_message, message),
        )

    async def handle(self, user_id: str, messages: list[dict[str, str]]) -> ChatResult:
        """Process one turn of *messages* for *user_id*.

        Raises:
            GenerationError: The model could not produce a reply.
        """
        user_message = latest_user_message(messages)
        finance_result, memory_result = await self.extract(user_message)

        context = await build_ai_context(self._store, user_id, user_message, messages)
        memory_context = await self._memories.build_memory_context(user_id, user_message)
        system = build_system_prompt(
            format_context_for_ai(context), memory_context.context_summary
        )
        raw_reply = await self._generate(system, build_conversation_prompt(messages))
        parsed = parse_ai_response(raw_reply)

        result = ChatResult(reply=parsed.reply)

        # -- Finances -----------------------------------------------------------
        directive_entries = [
            e for e in parsed.finance_entries if validate_finance_entry(e, allow_investment=True)
        ]
        if directive_entries:
            for entry in directive_entries:
                result.finance_entries.append(
                    await self._save_finance(user_id, entry, user_message, "directive")
                )
        elif finance_result.confidence > settings.finance_autosave_threshold:
            for entry in finance_result.entries:
                if validate_finance_entry(entry):
                    result.finance_entries.append(
                        await self._save_finance(user_id, entry, user_message, "message")
                    )

        # -- Memories -----------------------------------------------------------
        result.memory_updates = [u for u in parsed.memory_updates if validate_memory_update(u)]
        if result.memory_updates:
            for update in result.memory_updates:
                result.memory_ids.append(
                    await self._memories.create_memory(
                        user_id,
                        update.content,
                        category=update.category,
                        importance=update.importance,
                        source_message=user_message,
                    )
                )
        else:
            for entry in _unique_by_content(memory_result.entries):
                if validate_memory_update(entry):
                    result.memory_ids.append(
                        await self._memories.create_memory(
                            user_id,
                            entry.content,
                            category=entry.category,
                            importance=entry.importance,
                            source_message=user_message,
                        )
                    )

        # -- Investments --------------------------------------------------------
        for update in parsed.investment_updates:
            if validate_investment_update(update) and await self._apply_investment(user_id, update):
                result.investment_updates.append(update)

        result.metadata = {
            "finance_parsing": {
                "entries_found": len(finance_result.entries),
                "confidence": finance_result.confidence,
            },
            "memory_parsing": {
                "entries_found": len(memory_result.entries),
                "confidence": memory_result.confidence,
            },
            "directives": {"confidence": parsed.confidence},
            "memory_context": {
                "memories_used": len(memory_context.relevant_memories),
                "confidence": memory_context.confidence,
            },
        }
        logger.info(
            "Chat turn for %s: %d finances, %d memories, %d investment updates",
            user_id,
            len(result.finance_entries),
            len(result.memory_ids),
            len(result.investment_updates),
        )
        return result

    async def _save_finance(
        self, user_id: str, entry: FinanceEntry, source_message: str, origin: str
    ) -> dict[str, Any]:
        finance_id = uuid.uuid4().hex
        record = {
            **entry.model_dump(),
            "month": entry.date[:7],
            "year": entry.date[:4],
            "ai_generated": True,
            "confidence_score": entry.confidence,
            "source_message": source_message,
            "ai_reasoning": f'Auto-detected ({origin}) from conversation: "{source_message}"',
            "tags": [],
            "created_by": "ai",
        }
        await self._store.set(FINANCES, finance_id, user_id, record)
        logger.info(
            "Saved %s %s %s (%s) for %s",
            entry.type,
            entry.currency or "",
            entry.amount,
            entry.category,
            user_id,
        )
        return {"id": finance_id, **record}

    async def _apply_investment(self, user_id: str, update: InvestmentUpdate) -> bool:
        profile = await self._store.get(PROFILES, user_id)
        if profile is None or not apply_investment_update(profile, update):
            return False
        return await self._store.update(PROFILES, user_id, {"investments": profile["investments"]})
