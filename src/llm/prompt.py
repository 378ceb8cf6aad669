"""System prompt and conversation prompt assembly."""

import json
from typing import Any

ASSISTANT_NAME = "A.I.D.A."
DEFAULT_PROFILE: dict[str, Any] = {
    "full_name": "User",
    "goals": "Financial management",
    "risk_tolerance": 5,
    "monthly_income": 0,
    "currency": "INR",
}

PERSONA = f"""\
You are {ASSISTANT_NAME}, an AI personal finance mentor that tracks the user's money \
from conversation.

# Finance tracking
- Identify income and expenses the user mentions, including several in one message.
- Categorise them (income: salary, freelance, bonus, ...; expense: food, rent, ...).
- Extract amounts, dates and short descriptions from natural language.

When you record a transaction, end your reply with exactly:
FINANCE_ENTRY: {{"type": "income|expense|investment", "amount": <number>, \
"category": "<category>", "description": "<brief description>", \
"date": "<YYYY-MM-DD, today or yesterday>", "confidence": <0-1>}}

For several transactions:
FINANCE_ENTRY_MULTIPLE: [{{...}}, {{...}}]

# Memory
Remember lasting financial habits and life events (spending style, saving routine, \
risk appetite, big purchases). To save one:
UPDATE_MEMORY: {{"content": "<memory>", "category": "<category>", "importance": <1-10>}}

# Investments
When the user reports a new value for a holding:
INVESTMENT_UPDATE: {{"investmentName": "<name>", "newValue": <number>, \
"changeType": "absolute|percentage"}}

# Guidelines
- Be empathetic and SEBI-compliant; give actionable advice.
- Keep replies concise and reference the user's profile and memories.
- Put directives after your reply text, never inside it."""


def build_system_prompt(context_text: str = "", memory_context: str = "") -> list[dict[str, Any]]:
    """Assemble the Claude ``system`` blocks.

    The persona and directive formats never change, so that block is marked
    for prompt caching; the per-user context follows uncached, with the
    relevance-ranked memory summary appended when there is one.
    """
    if not context_text:
        context_text = f"USER PROFILE: {json.dumps(DEFAULT_PROFILE)}"
    if memory_context:
        context_text += f"\n\nMEMORY CONTEXT:\n{memory_context}"
    return [
        {"type": "text", "text": PERSONA, "cache_control": {"type": "ephemeral"}},
        {"type": "text", "text": context_text},
    ]


def build_conversation_prompt(messages: list[dict[str, str]]) -> str:
    """Linearise the chat history into one prompt ending on the assistant's turn."""
    lines = [
        f"{str(m.get('role', 'user')).upper()}: {m.get('content', '')}"
        for m in messages
        if isinstance(m.get("content"), str)
    ]
    return "Conversation:\n" + "\n".join(lines) + f"\n\n{ASSISTANT_NAME}:"
