"""Topic relevance of stored memories.

Two retrieval helpers sit on top of the shared score, both keeping only
memories strictly above the threshold:

- ``select_relevant`` ranks memories for the AI prompt (best first, top N).
- ``filter_by_topic`` narrows a user's own memory list.

The context builder's boolean ``is_memory_relevant`` is a third, looser
check that also lets recent and high-importance memories through.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.memory.models import Memory

DEFAULT_THRESHOLD = 0.3
RECENT_DAYS = 7
STALE_DAYS = 30


def _days_since(moment: datetime, now: datetime) -> float:
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return (now - moment).total_seconds() / 86400


def _first_word(topic: str) -> str:
    return topic.split(" ")[0]


def _category_matches(categories: list[str], topic: str) -> bool:
    head = _first_word(topic)
    return any(category in topic or head in category for category in categories)


def calculate_relevance_score(memory: Memory, topic: str, now: datetime | None = None) -> float:
    """Score in [0, 1] of how closely *memory* relates to *topic*."""
    now = now or datetime.now(UTC)
    topic = topic.lower()
    score = 0.0

    if _category_matches(memory.categories, topic):
        score += 0.4

    score += 0.1 * sum(1 for keyword in memory.keywords if keyword in topic)

    if any(theme in topic for theme in memory.themes):
        score += 0.3

    days = _days_since(memory.last_accessed, now)
    if days < RECENT_DAYS:
        score += 0.2
    elif days < STALE_DAYS:
        score += 0.1

    score += (memory.importance_score / 10) * 0.2

    return max(0.0, min(1.0, score))


def select_relevant(
    memories: list[Memory],
    topic: str,
    limit: int = 5,
    threshold: float = DEFAULT_THRESHOLD,
    now: datetime | None = None,
) -> list[Memory]:
    """Best *limit* memories scoring strictly above *threshold*, highest first."""
    scored = [(calculate_relevance_score(m, topic, now), m) for m in memories]
    kept = [item for item in scored if item[0] > threshold]
    kept.sort(key=lambda item: item[0], reverse=True)
    return [memory for _, memory in kept[:limit]]


def filter_by_topic(
    memories: list[Memory],
    topic: str,
    threshold: float = DEFAULT_THRESHOLD,
    now: datetime | None = None,
) -> list[Memory]:
    """Memories scoring strictly above *threshold*, highest first."""
    scored = [(calculate_relevance_score(m, topic, now), m) for m in memories]
    kept = [item for item in scored if item[0] > threshold]
    kept.sort(key=lambda item: item[0], reverse=True)
    return [memory for _, memory in kept]


def is_memory_relevant(memory: Memory, topic: str, now: datetime | None = None) -> bool:
    now = now or datetime.now(UTC)
    topic = topic.lower()
    content = memory.content.lower()

    keyword_match = any(k in topic or k in content for k in memory.keywords)
    category_match = _category_matches(memory.categories, topic)
    theme_match = any(theme in topic for theme in memory.themes)
    recent = _days_since(memory.last_accessed, now) < RECENT_DAYS

    return keyword_match or category_match or theme_match or recent or memory.importance_score > 7
