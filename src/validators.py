"""Structural checks run before extracted records are persisted.

Each validator is a predicate: a False result means the caller drops the
record, nothing is raised.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.finance.models import FinanceEntry
    from src.llm.directives import InvestmentUpdate, MemoryUpdate
    from src.memory.models import MemoryEntry

MESSAGE_ENTRY_TYPES = frozenset({"income", "expense"})
DIRECTIVE_ENTRY_TYPES = frozenset({"income", "expense", "investment"})
CHANGE_TYPES = frozenset({"absolute", "percentage"})


def validate_finance_entry(entry: FinanceEntry, allow_investment: bool = False) -> bool:
    """Check a finance entry.

    Args:
        entry: Entry from the message parser or an AI directive.
        allow_investment: Accept ``type="investment"`` (AI directives only).
    """
    allowed = DIRECTIVE_ENTRY_TYPES if allow_investment else MESSAGE_ENTRY_TYPES
    if entry.type not in allowed:
        return False
    if not entry.amount or not math.isfinite(entry.amount) or entry.amount <= 0:
        return False
    if not entry.category or not entry.description:
        return False
    if entry.confidence is not None and not 0 <= entry.confidence <= 1:
        return False
    return True


def validate_memory_update(update: MemoryUpdate | MemoryEntry) -> bool:
    if not update.content or not update.content.strip():
        return False
    if not update.category:
        return False
    if update.importance is not None and not 1 <= update.importance <= 10:
        return False
    return True


def validate_investment_update(update: InvestmentUpdate) -> bool:
    if not update.new_value or not math.isfinite(update.new_value) or update.new_value <= 0:
        return False
    if update.change_type not in CHANGE_TYPES:
        return False
    return bool(update.investment_id or update.investment_name)
