"""Score a trigger-phrase match and turn it into a MemoryEntry."""

import logging
import re

from src.finance.classifier import context_window
from src.memory.models import MemoryEntry, MemoryMatch, clamp_confidence, clamp_importance
from src.memory.patterns import WHOLE_WORD_TERMS

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 0.5
MAX_KEYWORDS = 10

# Order matters: first category with a hit wins.
MEMORY_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("spending", ("big spender", "spend a lot", "spending too much", "expensive taste",
                  "love shopping", "shopaholic")),
    ("habits", ("save money", "saving up", "frugal", "budget", "cut expenses", "save more",
                "saving", "financial discipline")),
    ("income", ("income", "salary", "earn", "paycheck", "bonus", "good pay", "high salary")),
    ("investments", ("invest", "stocks", "mutual fund", "sip", "portfolio", "trading", "crypto")),
    ("debts", ("loan", "debt", "owe", "borrow", "mortgage", "credit", "emi")),
    ("goals", ("financial goal", "investment plan", "retire", "save for", "planning to buy",
               "future planning")),
    ("relationships", ("family", "parents", "spouse", "kids", "children", "dependents")),
    ("housing", ("house", "rent", "moving", "apartment", "home", "property")),
)

BASE_IMPORTANCE: dict[str, int] = {
    "goals": 8,
    "investments": 8,
    "debts": 7,
    "spending": 7,
    "income": 7,
    "housing": 7,
    "relationships": 6,
    "habits": 6,
    "conversation": 5,
}

CONTENT_PREFIXES: dict[str, str] = {
    "spending": "User identified their spending behavior: ",
    "habits": "User mentioned saving habits: ",
    "income": "User mentioned income details: ",
    "investments": "User mentioned investment details: ",
    "debts": "User mentioned debt situation: ",
    "goals": "User mentioned financial goals: ",
    "relationships": "User mentioned family context: ",
    "housing": "User mentioned housing situation: ",
    "conversation": "User mentioned: ",
}

INTENSIFIERS = ("very", "really", "extremely")
FUTURE_INTENT = ("plan", "will", "going to")

FINANCE_TERMS = (
    "money", "financial", "₹", "dollar", "spend", "save", "earn", "invest", "loan", "debt",
)
STRONG_PATTERNS = ("big spender", "financial goal", "investment plan", "save money")
CATEGORY_SIGNALS: dict[str, tuple[str, ...]] = {
    "spending": ("expensive", "shopping", "buy", "purchase"),
    "habits": ("budget", "discipline", "regular", "consistent"),
    "income": ("salary", "bonus", "paycheck", "earn"),
    "investments": ("stocks", "mutual", "sip", "portfolio"),
    "debts": ("loan", "emi", "mortgage", "credit"),
    "goals": ("plan", "future", "retirement", "goal"),
    "relationships": ("family", "parents", "spouse", "kids"),
    "housing": ("house", "rent", "apartment", "home"),
}
INTENT_CLUES = ("very", "really", "plan", "will", "going to", "want to")

STOP_WORDS = frozenset(
    {"this", "that", "with", "have", "will", "been", "from", "they", "them", "were", "said"}
)

POSITIVE_WORDS = (
    "good", "great", "excellent", "happy", "love", "amazing", "wonderful", "excited",
    "proud", "saving", "investing",
)
NEGATIVE_WORDS = (
    "bad", "terrible", "awful", "hate", "worried", "stressed", "scared", "disappointed",
    "frustrated", "debt", "loan",
)

_PUNCTUATION = re.compile(r"[^\w\s]")


def _mentions(text: str, term: str) -> bool:
    if term in WHOLE_WORD_TERMS:
        return re.search(rf"\b{term}\b", text) is not None
    return term in text


def determine_memory_category(context: str, pattern: str) -> str:
    for category, keywords in MEMORY_CATEGORIES:
        if any(_mentions(context, k) or _mentions(pattern, k) for k in keywords):
            return category
    return "conversation"


def determine_importance(context: str, category: str) -> int:
    importance = BASE_IMPORTANCE.get(category, 5)
    if any(word in context for word in INTENSIFIERS):
        importance = min(10, importance + 1)
    if any(word in context for word in FUTURE_INTENT):
        importance = min(10, importance + 1)
    return clamp_importance(importance)


def memory_content(message: str, category: str) -> str:
    prefix = CONTENT_PREFIXES.get(category, CONTENT_PREFIXES["conversation"])
    return f'{prefix}"{message}"'


def calculate_memory_confidence(context: str, pattern: str, category: str) -> float:
    confidence = 0.5

    if any(term in context for term in FINANCE_TERMS):
        confidence += 0.2

    if any(strong in pattern for strong in STRONG_PATTERNS):
        confidence += 0.3

    if any(_mentions(context, signal) for signal in CATEGORY_SIGNALS.get(category, ())):
        confidence += 0.1

    clues = sum(1 for clue in INTENT_CLUES if clue in context)
    confidence += min(clues * 0.05, 0.2)

    return clamp_confidence(confidence)


def extract_keywords(message: str) -> list[str]:
    """Distinct lower-case words longer than three letters, at most ten."""
    words = _PUNCTUATION.sub(" ", message.lower()).split()
    keywords = [word for word in words if len(word) > 3 and word not in STOP_WORDS]
    return list(dict.fromkeys(keywords))[:MAX_KEYWORDS]


def analyze_sentiment(message: str) -> str:
    lowered = message.lower()
    positive = sum(1 for word in POSITIVE_WORDS if word in lowered)
    negative = sum(1 for word in NEGATIVE_WORDS if word in lowered)
    if positive > negative:
        return "positive"
    if negative > positive:
        return "negative"
    return "neutral"


def classify_memory(message: str, match: MemoryMatch, lower_message: str) -> MemoryEntry | None:
    """Build a MemoryEntry for *match*, or None when confidence is too low."""
    context = context_window(lower_message, match.start, match.end)

    category = determine_memory_category(context, match.pattern)
    confidence = calculate_memory_confidence(context, match.pattern, category)
    if confidence < MIN_CONFIDENCE:
        logger.debug("Dropped memory match %r (confidence %.2f)", match.pattern, confidence)
        return None

    return MemoryEntry(
        content=memory_content(message, category),
        category=category,
        importance=determine_importance(context, category),
        confidence=confidence,
        keywords=extract_keywords(message),
        sentiment=analyze_sentiment(message),
    )
