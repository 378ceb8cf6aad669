"""Lifecycle of persisted memories: create, update, rank, consolidate, clean up."""

from __future__ import annotations

import logging
import random
import re
import string
import time
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from src.config import settings
from src.memory.models import Memory
from src.memory.relevance import select_relevant
from src.store import MEMORIES

if TYPE_CHECKING:
    from src.store import DocumentStore

logger = logging.getLogger(__name__)

SUMMARY_LENGTH = 100
MAX_KEYWORDS = 10

_STOP_WORDS = frozenset(
    {"the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by"}
)
_POSITIVE = (
    "good", "great", "excellent", "amazing", "wonderful", "fantastic", "love", "like", "enjoy",
)
_NEGATIVE = ("bad", "terrible", "awful", "hate", "dislike", "worst", "poor", "horrible")

THEMES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("saving", ("saving", "save")),
    ("investment", ("investment", "invest")),
    ("budgeting", ("budget", "expense")),
    ("debt_management", ("debt", "loan")),
    ("income", ("salary", "income")),
    ("spending", ("shopping", "spending")),
    ("habits", ("habit", "routine")),
    ("goals", ("goal", "target")),
    ("risk_tolerance", ("risk", "conservative")),
)

_ID_ALPHABET = string.digits + string.ascii_lowercase
_WORD_SPLIT = re.compile(r"\W+")


class MemoryContext(BaseModel):
    user_id: str
    relevant_memories: list[Memory] = []
    context_summary: str = ""
    confidence: float = 0.0


# -- Derived fields ------------------------------------------------------------


def generate_summary(content: str) -> str:
    if len(content) > SUMMARY_LENGTH:
        return content[:SUMMARY_LENGTH] + "..."
    return content


def extract_keywords(content: str) -> list[str]:
    words = [w for w in _WORD_SPLIT.split(content.lower()) if len(w) > 3 and w not in _STOP_WORDS]
    return list(dict.fromkeys(words))[:MAX_KEYWORDS]


def analyze_sentiment(content: str) -> str:
    lowered = content.lower()
    positive = sum(1 for word in _POSITIVE if word in lowered)
    negative = sum(1 for word in _NEGATIVE if word in lowered)
    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def extract_themes(content: str) -> list[str]:
    lowered = content.lower()
    return [theme for theme, words in THEMES if any(word in lowered for word in words)]


def new_memory_id(user_id: str) -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{user_id}_{int(time.time() * 1000)}_{suffix}"


def ranking_score(memory: Memory) -> float:
    return memory.importance_score * 0.4 + memory.access_count * 0.3 + memory.confidence_score * 0.3


def _as_utc(moment: datetime) -> datetime:
    return moment if moment.tzinfo else moment.replace(tzinfo=UTC)


def is_stale(memory: Memory, now: datetime | None = None) -> bool:
    """True when cleanup should delete *memory*."""
    now = now or datetime.now(UTC)
    old = now - _as_utc(memory.created_at) > timedelta(days=365)
    rarely_accessed = memory.access_count < 2
    expired = False
    if memory.is_temporal and memory.valid_until is not None:
        expired = _as_utc(memory.valid_until) < now
    return (
        (old and rarely_accessed)
        or memory.importance_score < 3
        or memory.confidence_score < 0.4
        or expired
    )


# -- Manager -------------------------------------------------------------------


class MemoryManager:
    """Reads and writes a user's memories through an injected DocumentStore."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def create_memory(
        self,
        user_id: str,
        content: str,
        category: str | None = None,
        importance: int | None = None,
        source_type: str = "conversation",
        source_message: str | None = None,
        derived_from: list[str] | None = None,
        is_temporal: bool = False,
    ) -> str:
        """Store a new memory and return its id."""
        memory_id = new_memory_id(user_id)
        memory = Memory(
            id=memory_id,
            user_id=user_id,
            content=content,
            summary=generate_summary(content),
            categories=[category] if category else ["general"],
            importance_score=importance or 5,
            confidence_score=0.8,
            source_type=source_type,
            source_message=source_message,
            derived_from=derived_from,
            is_temporal=is_temporal,
            keywords=extract_keywords(content),
            sentiment=analyze_sentiment(content),
            themes=extract_themes(content),
        )
        await self._store.set(MEMORIES, memory_id, user_id, memory.model_dump(mode="json"))
        logger.info("Created memory %s [%s]: %s", memory_id, memory.categories[0], content[:80])
        return memory_id

    async def get_memory(self, user_id: str, memory_id: str) -> Memory | None:
        doc = await self._store.get(MEMORIES, memory_id)
        if doc is None or doc.get("user_id") != user_id:
            return None
        return Memory(**doc)

    async def update_memory(self, user_id: str, memory_id: str, **changes: Any) -> bool:
        """Merge *changes* into a memory; every call counts as one access.

        Returns False when the memory does not exist or belongs to someone else.
        """
        current = await self.get_memory(user_id, memory_id)
        if current is None:
            return False

        now = datetime.now(UTC)
        merged = {
            **current.model_dump(),
            **{k: v for k, v in changes.items() if v is not None},
            "updated_at": now,
            "last_accessed": now,
            "access_count": current.access_count + 1,
        }
        updated = Memory(**merged)
        await self._store.update(MEMORIES, memory_id, updated.model_dump(mode="json"))
        return True

    async def delete_memory(self, user_id: str, memory_id: str) -> bool:
        if await self.get_memory(user_id, memory_id) is None:
            return False
        return await self._store.delete(MEMORIES, memory_id)

    async def get_user_memories(self, user_id: str) -> list[Memory]:
        """All of the user's memories, most important and most used first."""
        docs = await self._store.list_for_user(MEMORIES, user_id)
        memories = [Memory(**doc) for doc in docs]
        memories.sort(key=ranking_score, reverse=True)
        return memories

    async def get_relevant_memories(
        self, user_id: str, topic: str, limit: int = 5
    ) -> list[Memory]:
        memories = await self.get_user_memories(user_id)
        return select_relevant(
            memories, topic, limit=limit, threshold=settings.memory_relevance_threshold
        )

    async def build_memory_context(self, user_id: str, topic: str) -> MemoryContext:
        relevant = await self.get_relevant_memories(
            user_id, topic, limit=settings.memory_context_limit
        )
        summary = "\n".join(f"{', '.join(m.categories)}: {m.content}" for m in relevant)
        confidence = (
            sum(m.confidence_score for m in relevant) / len(relevant) if relevant else 0.0
        )
        return MemoryContext(
            user_id=user_id,
            relevant_memories=relevant,
            context_summary=summary,
            confidence=confidence,
        )

    async def consolidate_memories(
        self, user_id: str, memory_ids: list[str], consolidated_content: str
    ) -> str:
        """Fold several memories into a new one; the originals point at it."""
        consolidated_id = await self.create_memory(
            user_id,
            consolidated_content,
            category="consolidated",
            importance=8,
            derived_from=memory_ids,
        )
        for memory_id in memory_ids:
            await self.update_memory(
                user_id,
                memory_id,
                content=f"[CONSOLIDATED INTO: {consolidated_id}] {consolidated_content}",
                categories=["consolidated"],
                importance_score=1,
            )
        return consolidated_id

    async def cleanup_memories(self, user_id: str) -> int:
        """Delete stale memories. Returns how many were removed."""
        removed = 0
        for memory in await self.get_user_memories(user_id):
            if is_stale(memory) and await self._store.delete(MEMORIES, memory.id):
                removed += 1
        if removed:
            logger.info("Cleaned up %d memories for user %s", removed, user_id)
        return removed
