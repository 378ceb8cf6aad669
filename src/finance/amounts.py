"""Locate monetary amounts and their currencies in free text."""

import re

from src.finance.models import AmountMatch

_NUMBER = r"(\d+(?:,\d+)*(?:\.\d{2})?)"

# Applied in order against the lower-cased message.
CURRENCY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"₹\s*" + _NUMBER),  # ₹500, ₹ 1,000, ₹500.50
    re.compile(r"rs\.?\s*" + _NUMBER),  # rs 500, rs. 1000
    re.compile(r"\$" + _NUMBER),  # $500
    re.compile(r"€" + _NUMBER),  # €500
    re.compile(_NUMBER + r"\s*(?:rupees?|inr|usd|eur)"),  # 500 rupees, 1000 inr
)

# First hit wins; anything unrecognised is treated as rupees.
_CURRENCY_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("INR", ("₹", "rs", "inr")),
    ("USD", ("$", "usd")),
    ("EUR", ("€", "eur")),
)


def detect_currency(matched_text: str, default: str = "INR") -> str:
    """Infer an ISO currency code from the text of an amount match."""
    lowered = matched_text.lower()
    for code, markers in _CURRENCY_MARKERS:
        if any(marker in lowered for marker in markers):
            return code
    return default


def _parse_amount(raw: str) -> float | None:
    try:
        amount = float(raw.replace(",", ""))
    except ValueError:
        return None
    if amount <= 0:
        return None
    return amount


def extract_amounts(message: str) -> list[AmountMatch]:
    """Find every currency amount in *message*, left to right.

    Matches that repeat the same amount at the same offset (two patterns
    catching one token) are reported once.
    """
    lowered = message.lower()
    found: list[AmountMatch] = []
    seen: set[tuple[float, int]] = set()

    for pattern in CURRENCY_PATTERNS:
        for match in pattern.finditer(lowered):
            amount = _parse_amount(match.group(1))
            if amount is None:
                continue
            key = (amount, match.start())
            if key in seen:
                continue
            seen.add(key)
            found.append(
                AmountMatch(
                    amount=amount,
                    currency=detect_currency(match.group(0)),
                    start=match.start(),
                    end=match.end(),
                )
            )

    found.sort(key=lambda m: m.start)
    return found
