"""Data models for finance extraction."""

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel


@dataclass(frozen=True)
class AmountMatch:
    """A monetary amount located in a message."""

    amount: float
    currency: str
    start: int
    end: int


class FinanceEntry(BaseModel):
    """A single detected income/expense (or investment, from AI directives)."""

    type: Literal["income", "expense", "investment"]
    amount: float
    category: str
    description: str
    date: str
    confidence: float
    currency: str | None = None
    payment_method: str | None = None
    merchant: str | None = None


class ParsedFinanceResult(BaseModel):
    entries: list[FinanceEntry] = []
    confidence: float = 0.0
    original_message: str = ""
