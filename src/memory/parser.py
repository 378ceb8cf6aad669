"""Memory extraction over a whole chat message."""

import logging

from src.memory.classifier import classify_memory
from src.memory.models import ParsedMemoryResult
from src.memory.patterns import match_memory_patterns

logger = logging.getLogger(__name__)


def parse_memory_from_message(message: str) -> ParsedMemoryResult:
    """Extract memory-worthy statements from *message*.

    One candidate per trigger-phrase match; the result confidence is the
    mean over kept entries (0 if none).
    """
    result = ParsedMemoryResult(original_message=message)
    lower_message = message.lower()

    for match in match_memory_patterns(message):
        entry = classify_memory(message, match, lower_message)
        if entry is not None:
            result.entries.append(entry)

    if result.entries:
        result.confidence = sum(e.confidence for e in result.entries) / len(result.entries)
        logger.debug(
            "Found %d memory entries (confidence %.2f)", len(result.entries), result.confidence
        )

    return result
