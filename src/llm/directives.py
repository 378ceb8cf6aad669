"""Structured directives embedded in AI replies.

The chat model is asked to append lines such as::

    FINANCE_ENTRY: {"type": "expense", "amount": 250, "category": "food", ...}
    UPDATE_MEMORY: {"content": "Prefers UPI for small purchases", "category": "habits"}
    INVESTMENT_UPDATE: {"investmentName": "Nifty Index Fund", "newValue": 52000}

``parse_ai_response`` pulls every such payload out, validates it against the
schema for its family, and returns the reply with the directives removed.
A payload that is not JSON or does not fit its schema is skipped.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date, timedelta
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from src.config import settings
from src.finance.models import FinanceEntry

logger = logging.getLogger(__name__)

DEFAULT_FINANCE_CONFIDENCE = 0.8
DEFAULT_MEMORY_IMPORTANCE = 5
INVESTMENT_CONFIDENCE = 0.9

_RELATIVE_DATES = {"yesterday": -1, "today": 0, "tomorrow": 1}


def _is_blank(value: Any) -> bool:
    """Empty, zero or missing: the model's way of saying "use the default"."""
    return value is None or value == "" or value == 0


# -- Schemas -------------------------------------------------------------------


class FinanceDirective(FinanceEntry):
    """Payload of FINANCE_ENTRY / FINANCE_ENTRY_MULTIPLE."""

    category: str = ""
    description: str = "Transaction"
    date: str = Field(default="", validate_default=True)
    confidence: float = DEFAULT_FINANCE_CONFIDENCE
    currency: str | None = Field(default=None, validate_default=True)

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, value: Any) -> Any:
        return "Transaction" if _is_blank(value) else value

    @field_validator("date", mode="before")
    @classmethod
    def _resolve_date(cls, value: Any) -> str:
        if _is_blank(value):
            return date.today().isoformat()
        offset = _RELATIVE_DATES.get(str(value).strip().lower())
        if offset is not None:
            return (date.today() + timedelta(days=offset)).isoformat()
        return str(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _default_confidence(cls, value: Any) -> Any:
        if _is_blank(value):
            return DEFAULT_FINANCE_CONFIDENCE
        try:
            return float(value)
        except (TypeError, ValueError):
            return DEFAULT_FINANCE_CONFIDENCE

    @field_validator("currency", mode="before")
    @classmethod
    def _default_currency(cls, value: Any) -> Any:
        return settings.default_currency if _is_blank(value) else value

    def to_entry(self) -> FinanceEntry:
        return FinanceEntry(**self.model_dump())


class MemoryUpdate(BaseModel):
    """Payload of UPDATE_MEMORY / MEMORY / CREATE_MEMORY / SAVE_MEMORY."""

    model_config = ConfigDict(populate_by_name=True)

    content: str = ""
    category: str = "general"
    importance: int = DEFAULT_MEMORY_IMPORTANCE
    reason: str | None = None
    is_new: bool = Field(default=True, alias="isNew")

    @field_validator("content", mode="before")
    @classmethod
    def _content_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> Any:
        return "general" if _is_blank(value) else value

    @field_validator("importance", mode="before")
    @classmethod
    def _default_importance(cls, value: Any) -> int:
        if _is_blank(value):
            return DEFAULT_MEMORY_IMPORTANCE
        try:
            return round(float(value))
        except (TypeError, ValueError):
            return DEFAULT_MEMORY_IMPORTANCE

    @field_validator("is_new", mode="before")
    @classmethod
    def _only_false_is_false(cls, value: Any) -> bool:
        return value is not False


class InvestmentUpdate(BaseModel):
    """Payload of INVESTMENT_UPDATE / UPDATE_INVESTMENT / INVESTMENT_VALUE_UPDATE."""

    model_config = ConfigDict(populate_by_name=True)

    investment_id: str | None = Field(default=None, alias="investmentId")
    investment_name: str | None = Field(default=None, alias="investmentName")
    new_value: float = Field(default=0.0, alias="newValue")
    change_type: Literal["absolute", "percentage"] = Field(default="absolute", alias="changeType")
    reason: str | None = None

    @field_validator("new_value", mode="before")
    @classmethod
    def _missing_value(cls, value: Any) -> Any:
        return 0.0 if value is None else value

    @field_validator("change_type", mode="before")
    @classmethod
    def _default_change_type(cls, value: Any) -> Any:
        return "absolute" if _is_blank(value) else value


class ParsedAIResponse(BaseModel):
    reply: str
    finance_entries: list[FinanceEntry] = []
    memory_updates: list[MemoryUpdate] = []
    investment_updates: list[InvestmentUpdate] = []
    confidence: float = 1.0


# -- Markers -------------------------------------------------------------------

FINANCE_MARKERS = ("FINANCE_ENTRY",)
FINANCE_MULTIPLE_MARKERS = ("FINANCE_ENTRY_MULTIPLE",)
MEMORY_MARKERS = ("UPDATE_MEMORY", "MEMORY", "CREATE_MEMORY", "SAVE_MEMORY")
INVESTMENT_MARKERS = ("INVESTMENT_UPDATE", "UPDATE_INVESTMENT", "INVESTMENT_VALUE_UPDATE")
# Still stripped from replies, but no longer acted on.
RETIRED_MARKERS = ("CONSOLIDATE_MEMORY",)

_OBJECT = r"(\{[\s\S]*?\})"
_ARRAY = r"(\[[\s\S]*?\])"


def _directive_pattern(markers: tuple[str, ...], payload: str) -> re.Pattern[str]:
    # The lookbehind stops MEMORY from matching inside UPDATE_MEMORY.
    names = "|".join(sorted(markers, key=len, reverse=True))
    return re.compile(rf"(?<![A-Za-z0-9_])(?:{names}):?\s*{payload}")


_FINANCE_RE = _directive_pattern(FINANCE_MARKERS, _OBJECT)
_FINANCE_MULTIPLE_RE = _directive_pattern(FINANCE_MULTIPLE_MARKERS, _ARRAY)
_MEMORY_RE = _directive_pattern(MEMORY_MARKERS, _OBJECT)
_INVESTMENT_RE = _directive_pattern(INVESTMENT_MARKERS, _OBJECT)
_RETIRED_RE = _directive_pattern(RETIRED_MARKERS, _OBJECT)

_STRIP_ORDER = (
    _FINANCE_RE,
    _FINANCE_MULTIPLE_RE,
    _MEMORY_RE,
    _RETIRED_RE,
    _INVESTMENT_RE,
)
_BLANK_LINES = re.compile(r"\n\s*\n")


# -- Parsing -------------------------------------------------------------------


def _payloads(pattern: re.Pattern[str], text: str) -> list[Any]:
    """Decoded JSON payloads for every match of *pattern*; bad JSON is skipped."""
    decoded = []
    for match in pattern.finditer(text):
        try:
            decoded.append(json.loads(match.group(1)))
        except json.JSONDecodeError:
            logger.warning("Skipping directive with invalid JSON: %s", match.group(0)[:80])
    return decoded


def _validated(model: type[BaseModel], data: Any) -> Any:
    if not isinstance(data, dict):
        logger.warning("Skipping %s payload that is not an object", model.__name__)
        return None
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.warning("Skipping invalid %s payload: %s", model.__name__, exc.errors()[:1])
        return None


def parse_finance_entries(text: str) -> list[FinanceEntry]:
    entries: list[FinanceEntry] = []
    candidates = _payloads(_FINANCE_RE, text)
    for batch in _payloads(_FINANCE_MULTIPLE_RE, text):
        if isinstance(batch, list):
            candidates.extend(batch)
    for data in candidates:
        directive = _validated(FinanceDirective, data)
        if directive is not None:
            entries.append(directive.to_entry())
    return entries


def parse_memory_updates(text: str) -> list[MemoryUpdate]:
    updates = (_validated(MemoryUpdate, data) for data in _payloads(_MEMORY_RE, text))
    return [u for u in updates if u is not None]


def parse_investment_updates(text: str) -> list[InvestmentUpdate]:
    updates = (_validated(InvestmentUpdate, data) for data in _payloads(_INVESTMENT_RE, text))
    return [u for u in updates if u is not None]


def clean_response_text(text: str) -> str:
    """Remove every directive from *text* and tidy the blank lines left behind."""
    for pattern in _STRIP_ORDER:
        text = pattern.sub("", text)
    return _BLANK_LINES.sub("\n", text).strip()


def _overall_confidence(
    finance: list[FinanceEntry],
    memory: list[MemoryUpdate],
    investment: list[InvestmentUpdate],
) -> float:
    finance_conf = sum(e.confidence for e in finance) / len(finance) if finance else 1.0
    memory_conf = sum(u.importance / 10 for u in memory) / len(memory) if memory else 1.0
    investment_conf = INVESTMENT_CONFIDENCE if investment else 1.0
    return (finance_conf + memory_conf + investment_conf) / 3


def parse_ai_response(text: str) -> ParsedAIResponse:
    """Extract directives from an AI reply and return the cleaned reply."""
    finance = parse_finance_entries(text)
    memory = parse_memory_updates(text)
    investment = parse_investment_updates(text)

    if finance or memory or investment:
        logger.info(
            "AI reply carried %d finance, %d memory, %d investment directives",
            len(finance),
            len(memory),
            len(investment),
        )

    return ParsedAIResponse(
        reply=clean_response_text(text),
        finance_entries=finance,
        memory_updates=memory,
        investment_updates=investment,
        confidence=_overall_confidence(finance, memory, investment),
    )
