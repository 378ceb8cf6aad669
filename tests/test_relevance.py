"""Tests for memory relevance scoring and filtering."""

from datetime import UTC, datetime, timedelta

import pytest

from src.memory.models import Memory
from src.memory.relevance import (
    calculate_relevance_score,
    filter_by_topic,
    is_memory_relevant,
    select_relevant,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _memory(**overrides) -> Memory:
    data = {
        "id": "m1",
        "user_id": "u1",
        "content": "User invests in mutual funds every month",
        "categories": ["investments"],
        "keywords": ["saving", "mutual", "funds"],
        "themes": ["saving"],
        "importance_score": 8,
        "last_accessed": NOW - timedelta(days=40),
    }
    data.update(overrides)
    return Memory(**data)


def test_category_match() -> None:
    score = calculate_relevance_score(_memory(), "investments advice", now=NOW)
    assert score == pytest.approx(0.56)


def test_keyword_and_theme_match() -> None:
    score = calculate_relevance_score(_memory(), "saving in mutual funds", now=NOW)
    assert score == pytest.approx(0.76)


def test_topic_is_case_insensitive() -> None:
    score = calculate_relevance_score(_memory(), "INVESTMENTS advice", now=NOW)
    assert score == pytest.approx(0.56)


def test_recency_bonus() -> None:
    recent = _memory(last_accessed=NOW - timedelta(days=2))
    month_old = _memory(last_accessed=NOW - timedelta(days=20))
    assert calculate_relevance_score(recent, "weather", now=NOW) == pytest.approx(0.36)
    assert calculate_relevance_score(month_old, "weather", now=NOW) == pytest.approx(0.26)


def test_naive_timestamps_are_utc() -> None:
    naive = _memory(last_accessed=(NOW - timedelta(days=2)).replace(tzinfo=None))
    assert calculate_relevance_score(naive, "weather", now=NOW) == pytest.approx(0.36)


def test_score_is_capped() -> None:
    memory = _memory(
        keywords=["saving", "mutual", "funds", "monthly", "sip"],
        importance_score=10,
        last_accessed=NOW,
    )
    topic = "investments saving mutual funds monthly sip"
    assert calculate_relevance_score(memory, topic, now=NOW) == 1.0


def test_select_relevant_orders_and_limits() -> None:
    strong = _memory(id="strong")
    weak = _memory(id="weak", categories=["housing"], keywords=[], themes=[], importance_score=2)
    middle = _memory(id="middle", keywords=[], themes=[])
    picked = select_relevant([weak, middle, strong], "saving in mutual funds investments", now=NOW)
    assert [m.id for m in picked] == ["strong", "middle"]

    top = select_relevant([middle, strong], "investments in mutual funds", limit=1, now=NOW)
    assert [m.id for m in top] == ["strong"]


def test_filter_by_topic_excludes_low_scores() -> None:
    low = _memory(id="low", categories=["housing"], keywords=[], themes=[], importance_score=5)
    high = _memory(id="high")
    assert [m.id for m in filter_by_topic([low, high], "investments", now=NOW)] == ["high"]


def test_is_memory_relevant() -> None:
    unrelated = _memory(
        categories=["housing"], keywords=["lease"], themes=[], importance_score=4,
        content="Rents an apartment",
    )
    assert not is_memory_relevant(unrelated, "retirement planning", now=NOW)
    # Keywords also match against the memory's own content.
    assert is_memory_relevant(_memory(), "weather", now=NOW)
    assert is_memory_relevant(
        unrelated.model_copy(update={"importance_score": 9}), "weather", now=NOW
    )
    assert is_memory_relevant(
        unrelated.model_copy(update={"last_accessed": NOW - timedelta(days=1)}), "weather", now=NOW
    )


def test_score_is_stable_across_calls() -> None:
    memory = _memory(last_accessed=NOW - timedelta(days=3))
    first = calculate_relevance_score(memory, "saving in mutual funds", now=NOW)
    second = calculate_relevance_score(memory, "saving in mutual funds", now=NOW)
    assert first == second
    assert memory.last_accessed == NOW - timedelta(days=3)


def test_select_relevant_excludes_score_equal_to_threshold() -> None:
    # category 0.4 + importance 5 -> 0.1, no recency bonus
    memory = _memory(keywords=[], themes=[], importance_score=5)
    assert calculate_relevance_score(memory, "investments", now=NOW) == pytest.approx(0.5)

    assert select_relevant([memory], "investments", threshold=0.5, now=NOW) == []
    assert select_relevant([memory], "investments", threshold=0.49, now=NOW) == [memory]
    assert filter_by_topic([memory], "investments", threshold=0.5, now=NOW) == []
