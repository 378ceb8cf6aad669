"""Finance extraction over a whole chat message."""

import logging
from datetime import date

from src.finance.amounts import extract_amounts
from src.finance.classifier import classify_transaction
from src.finance.models import ParsedFinanceResult

logger = logging.getLogger(__name__)


def parse_finance_from_message(message: str, today: date | None = None) -> ParsedFinanceResult:
    """Extract income/expense entries from *message*.

    Each amount is classified independently; low-confidence amounts are
    dropped. The result confidence is the mean over kept entries (0 if none).
    """
    result = ParsedFinanceResult(original_message=message)
    lower_message = message.lower()

    for match in extract_amounts(message):
        entry = classify_transaction(message, match, lower_message, today=today)
        if entry is not None:
            result.entries.append(entry)

    if result.entries:
        result.confidence = sum(e.confidence for e in result.entries) / len(result.entries)
        logger.debug(
            "Found %d finance entries (confidence %.2f)", len(result.entries), result.confidence
        )

    return result
