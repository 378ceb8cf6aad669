"""Trigger phrases that mark a message as worth remembering."""

import re

from src.memory.models import MemoryMatch

MIN_MESSAGE_LENGTH = 5
MIN_GENERIC_LENGTH = 10
GENERIC_PATTERN = "general"

_SMALL_TALK = re.compile(r"^(hi|hello|hey|ok|yes|no|thanks|thank you)$", re.IGNORECASE)

_FINANCE_RELATED = re.compile(
    r"money|financial|₹|dollar|price|cost|buy|sell|pay|spend|earn|save|invest",
    re.IGNORECASE,
)

# Grouped by topic; matched against the lower-cased message.
MEMORY_PHRASES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("spending", ("big spender", "spend a lot", "spending too much", "expensive taste",
                  "love shopping", "shopaholic")),
    ("saving", ("save money", "saving up", "frugal", "budget", "cut expenses", "save more",
                "saving", "financial discipline")),
    ("income", ("income", "salary", "earn", "paycheck", "bonus", "good pay", "high salary")),
    ("investment", ("invest", "stocks", "mutual fund", "sip", "portfolio", "trading", "crypto")),
    ("debt", ("loan", "debt", "owe", "borrow", "mortgage", "credit", "emi")),
    ("goals", ("financial goal", "investment plan", "retire", "save for", "planning to buy",
               "future planning")),
    ("family", ("family", "parents", "spouse", "kids", "children", "dependents")),
    ("housing", ("house", "rent", "moving", "apartment", "home", "property")),
)

# Short acronyms only count as whole words ("sip" is not part of "gossip").
WHOLE_WORD_TERMS = frozenset({"sip", "emi"})


def _phrase_pattern(phrase: str) -> re.Pattern[str]:
    if phrase in WHOLE_WORD_TERMS:
        return re.compile(rf"\b{re.escape(phrase)}\b")
    return re.compile(re.escape(phrase))


MEMORY_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    _phrase_pattern(phrase) for _, phrases in MEMORY_PHRASES for phrase in phrases
)


def is_small_talk(message: str) -> bool:
    """Too short, or a bare greeting/acknowledgement."""
    return len(message) < MIN_MESSAGE_LENGTH or bool(_SMALL_TALK.match(message.strip()))


def is_finance_related(message: str) -> bool:
    return bool(_FINANCE_RELATED.search(message))


def match_memory_patterns(message: str) -> list[MemoryMatch]:
    """Return trigger-phrase matches in *message*, ordered by position.

    When no phrase matches but the message talks about money in general, a
    single whole-message match with pattern ``"general"`` stands in.
    """
    if is_small_talk(message):
        return []

    lowered = message.lower()
    matches: list[MemoryMatch] = []
    seen: set[tuple[str, int]] = set()

    for pattern in MEMORY_PATTERNS:
        for found in pattern.finditer(lowered):
            key = (found.group(0), found.start())
            if key in seen:
                continue
            seen.add(key)
            matches.append(
                MemoryMatch(pattern=found.group(0), start=found.start(), end=found.end())
            )

    matches.sort(key=lambda m: m.start)

    if not matches and is_finance_related(message) and len(message) > MIN_GENERIC_LENGTH:
        return [MemoryMatch(pattern=GENERIC_PATTERN, start=0, end=len(message))]

    return matches
