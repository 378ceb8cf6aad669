"""Tests for memory scoring helpers."""

import pytest

from src.memory.classifier import (
    analyze_sentiment,
    calculate_memory_confidence,
    determine_importance,
    determine_memory_category,
    extract_keywords,
)


def test_first_category_wins() -> None:
    # "big spender" (spending) is checked before "saving" (habits).
    assert determine_memory_category("a big spender trying saving", "saving") == "spending"


def test_pattern_alone_selects_category() -> None:
    assert determine_memory_category("", "mortgage") == "debts"


def test_unmatched_is_conversation() -> None:
    assert determine_memory_category("nothing here", "general") == "conversation"


def test_acronyms_match_whole_words_only() -> None:
    assert determine_memory_category("a premium gossip session", "general") == "conversation"
    assert determine_memory_category("monthly sip of 5000", "sip") == "investments"
    assert determine_memory_category("my emi is due", "general") == "debts"


@pytest.mark.parametrize(
    ("context", "category", "expected"),
    [
        ("i have a loan", "debts", 7),
        ("i really have a loan", "debts", 8),
        ("i really plan to retire", "goals", 10),
        ("just chatting", "conversation", 5),
        ("i will sort it", "unknown", 6),
    ],
)
def test_importance(context: str, category: str, expected: int) -> None:
    assert determine_importance(context, category) == expected


def test_confidence_is_capped() -> None:
    context = "i really really want to save money, i will plan my budget"
    assert calculate_memory_confidence(context, "save money", "habits") == 1.0


def test_confidence_baseline() -> None:
    assert calculate_memory_confidence("family", "family", "relationships") == pytest.approx(0.6)


def test_keywords_skip_short_and_stop_words() -> None:
    keywords = extract_keywords("They said: I will invest in stocks, stocks, and bonds!")
    assert keywords == ["invest", "stocks", "bonds"]


def test_keywords_limited_to_ten() -> None:
    message = " ".join(f"word{chr(97 + i)}" for i in range(15))
    assert len(extract_keywords(message)) == 10


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("I love saving and investing", "positive"),
        ("I am worried about my loan", "negative"),
        ("I bought a chair", "neutral"),
    ],
)
def test_sentiment(message: str, expected: str) -> None:
    assert analyze_sentiment(message) == expected
