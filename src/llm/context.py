"""Per-user context handed to the chat model alongside the conversation."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel

from src.finance.summary import FinancialSummary, generate_financial_summary
from src.llm.prompt import DEFAULT_PROFILE
from src.memory.models import Memory
from src.memory.relevance import is_memory_relevant
from src.store import FINANCES, MEMORIES, PROFILES

if TYPE_CHECKING:
    from src.store import DocumentStore

logger = logging.getLogger(__name__)

HISTORY_MESSAGES = 5
HISTORY_PREVIEW_CHARS = 100
CONTEXT_MEMORIES = 5
LISTED_TRANSACTIONS = 10


class AIContext(BaseModel):
    user_profile: dict[str, Any] | None = None
    finances: list[dict[str, Any]] = []
    relevant_memories: list[Memory] = []
    financial_summary: FinancialSummary = FinancialSummary()
    conversation_history: str = ""


def summarize_conversation_history(messages: list[dict[str, str]]) -> str:
    if not messages:
        return ""

    lines = []
    for msg in messages[-HISTORY_MESSAGES:]:
        content = str(msg.get("content", ""))
        preview = content[:HISTORY_PREVIEW_CHARS]
        if len(content) > HISTORY_PREVIEW_CHARS:
            preview += "..."
        lines.append(f"{str(msg.get('role', '')).upper()}: {preview}")
    return "Recent conversation:\n" + "\n".join(lines)


async def _load_profile(store: DocumentStore, user_id: str) -> dict[str, Any]:
    profile = await store.get(PROFILES, user_id)
    return profile if profile is not None else dict(DEFAULT_PROFILE)


async def _load_finances(store: DocumentStore, user_id: str) -> list[dict[str, Any]]:
    finances = await store.list_for_user(FINANCES, user_id)
    finances.sort(key=lambda f: str(f.get("date", "")), reverse=True)
    return finances


async def _load_relevant_memories(store: DocumentStore, user_id: str, topic: str) -> list[Memory]:
    memories = [Memory(**doc) for doc in await store.list_for_user(MEMORIES, user_id)]
    return [m for m in memories if is_memory_relevant(m, topic)][:CONTEXT_MEMORIES]


async def build_ai_context(
    store: DocumentStore,
    user_id: str,
    topic: str,
    recent_messages: list[dict[str, str]] | None = None,
) -> AIContext:
    """Gather profile, finances and memories for one chat turn.

    A storage failure yields an empty context rather than failing the chat.
    """
    try:
        finances = await _load_finances(store, user_id)
        context = AIContext(
            user_profile=await _load_profile(store, user_id),
            finances=finances,
            relevant_memories=await _load_relevant_memories(store, user_id, topic),
            financial_summary=generate_financial_summary(finances),
            conversation_history=summarize_conversation_history(recent_messages or []),
        )
    except Exception:
        logger.exception("Failed to build AI context for user %s", user_id)
        return AIContext()

    logger.debug(
        "AI context for %s: %d finances, %d memories",
        user_id,
        len(context.finances),
        len(context.relevant_memories),
    )
    return context


def _format_amount(value: float) -> str:
    return f"₹{value:g}"


def format_context_for_ai(context: AIContext) -> str:
    """Render an AIContext as plain text for the system prompt."""
    parts: list[str] = []

    if context.user_profile:
        parts.append(f"USER PROFILE: {json.dumps(context.user_profile, default=str)}")

    summary = context.financial_summary
    top = ", ".join(f"{c.category} ({_format_amount(c.amount)})" for c in summary.top_categories)
    trend = " | ".join(
        f"{m.month}: +{_format_amount(m.income)} -{_format_amount(m.expenses)}"
        for m in summary.monthly_trend
    )
    parts.append(
        "FINANCIAL SUMMARY (ALL TIME):\n"
        f"- Total Income: {_format_amount(summary.total_income)}\n"
        f"- Total Expenses: {_format_amount(summary.total_expenses)}\n"
        f"- Net Position: {_format_amount(summary.net_savings)}\n"
        f"- AI Generated Entries: {summary.ai_generated_entries}\n"
        f"- Top Expense Categories: {top}\n"
        f"- Monthly Trend (Last 12 months): {trend}"
    )

    if context.finances:
        total = len(context.finances)
        lines = [
            f"{f.get('type')}: {_format_amount(float(f.get('amount') or 0))} "
            f"({f.get('category')}) - {f.get('description', '')} [{str(f.get('date', ''))[:10]}]"
            for f in context.finances[:LISTED_TRANSACTIONS]
        ]
        if total > LISTED_TRANSACTIONS:
            lines.append(f"... and {total - LISTED_TRANSACTIONS} more entries")
        parts.append(f"FINANCIAL TRANSACTIONS ({total} total entries):\n" + "\n".join(lines))

    if context.relevant_memories:
        lines = [f"{', '.join(m.categories)}: {m.content}" for m in context.relevant_memories]
        parts.append("RELEVANT MEMORIES:\n" + "\n".join(lines))

    if context.conversation_history:
        parts.append(context.conversation_history)

    return "\n\n".join(parts)
