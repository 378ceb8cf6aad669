"""Data models for memory extraction and storage."""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

Sentiment = Literal["positive", "negative", "neutral"]
SourceType = Literal["conversation", "transaction_analysis", "profile_data", "external_data"]


def _now() -> datetime:
    return datetime.now(UTC)


def clamp_importance(value: float) -> int:
    return int(max(1, min(10, round(float(value)))))


def clamp_confidence(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class MemoryMatch:
    """A trigger phrase found in a message."""

    pattern: str
    start: int
    end: int


class MemoryEntry(BaseModel):
    """A memory-worthy statement detected in a single message."""

    content: str
    category: str
    importance: int
    confidence: float
    source_type: SourceType = "conversation"
    keywords: list[str] = []
    sentiment: Sentiment = "neutral"


class ParsedMemoryResult(BaseModel):
    entries: list[MemoryEntry] = []
    confidence: float = 0.0
    original_message: str = ""


class Memory(BaseModel):
    """A persisted fact about the user's financial life."""

    id: str = ""
    user_id: str
    content: str
    summary: str | None = None
    categories: list[str] = ["general"]
    importance_score: int = 5
    confidence_score: float = 0.8
    last_accessed: datetime = Field(default_factory=_now)
    access_count: int = 0
    source_type: SourceType = "conversation"
    source_message: str | None = None
    derived_from: list[str] | None = None
    valid_from: datetime | None = None
    valid_until: datetime | None = None
    is_temporal: bool = False
    keywords: list[str] = []
    sentiment: Sentiment = "neutral"
    themes: list[str] = []
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    created_by: str = "ai_system"

    @field_validator("importance_score", mode="before")
    @classmethod
    def _clamp_importance(cls, value: float) -> int:
        try:
            return clamp_importance(value)
        except TypeError as exc:
            raise ValueError(f"importance must be a number, got {type(value).__name__}") from exc

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _clamp_confidence(cls, value: float) -> float:
        try:
            return clamp_confidence(value)
        except TypeError as exc:
            raise ValueError(f"confidence must be a number, got {type(value).__name__}") from exc

    @field_validator("categories", mode="before")
    @classmethod
    def _dedupe_categories(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @field_validator("access_count", mode="before")
    @classmethod
    def _non_negative(cls, value: int) -> int:
        return max(0, int(value))
