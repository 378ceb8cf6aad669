"""Classify a single amount found in a message as a transaction.

Every decision reads a window of text around the amount. Keyword tables are
ordered: the first category whose keyword appears in the window wins.
"""

import logging
import re
from datetime import date, timedelta

from src.finance.models import AmountMatch, FinanceEntry

logger = logging.getLogger(__name__)

CONTEXT_RADIUS = 50
MIN_CONFIDENCE = 0.5

INCOME_KEYWORDS = (
    "received", "got", "earned", "salary", "income", "deposit", "credited",
    "bonus", "dividend", "refund", "reimbursement", "won", "prize",
)

EXPENSE_KEYWORDS = (
    "spent", "paid", "bought", "purchased", "cost", "fee", "bill", "rent",
    "charged", "debited", "withdrew", "gave", "donated",
)

INCOME_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("salary", ("salary", "payroll", "wage", "compensation")),
    ("freelance", ("freelance", "gig", "contract", "consulting")),
    ("business", ("business", "revenue", "sales", "profit")),
    ("investment", ("dividend", "interest", "return", "capital", "investment")),
    ("rental", ("rent", "rental", "lease")),
    ("bonus", ("bonus", "incentive", "commission")),
    ("gift", ("gift", "present", "donation", "received")),
)

EXPENSE_CATEGORIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("food", ("food", "restaurant", "lunch", "dinner", "meal", "grocery", "snack")),
    ("transportation", (
        "taxi", "uber", "ola", "bus", "train", "flight", "travel", "fuel", "petrol",
    )),
    ("entertainment", ("movie", "game", "party", "event", "concert", "show")),
    ("shopping", ("shopping", "clothes", "shirt", "dress", "shoes", "watch", "jewelry", "frock")),
    ("utilities", (
        "electricity", "water", "gas", "internet", "phone", "mobile", "utility", "bill",
    )),
    ("rent", ("rent", "house", "apartment", "accommodation")),
    ("insurance", ("insurance", "premium", "policy")),
    ("medical", ("medical", "doctor", "hospital", "medicine", "pharmacy", "health")),
    ("education", ("education", "school", "college", "course", "book", "tuition")),
    ("household", ("household", "furniture", "appliance", "repair", "maintenance")),
)

PAYMENT_METHODS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("cash", ("cash", "cash payment")),
    ("card", ("card", "credit card", "debit card", "atm")),
    ("upi", ("upi", "gpay", "phonepe", "paytm", "bhim")),
    ("net_banking", ("net banking", "online banking", "bank transfer")),
    ("cheque", ("cheque", "check")),
)

MERCHANT_PATTERNS = (
    re.compile(r"\b(?:at|from)\s+([A-Z][a-zA-Z]*(?:\s+[A-Z][a-zA-Z]*)*)"),
    re.compile(r"\b([A-Z][a-zA-Z]+(?:\s+[A-Z][a-zA-Z]+)*)\s+(?:restaurant|store|shop|mall)"),
)

ACTION_KEYWORDS = ("spent", "paid", "bought", "received", "got", "earned", "cost")
CLEAR_CATEGORY_KEYWORDS = (
    "food", "shopping", "transport", "rent", "salary", "bonus",
    "electricity", "water", "gas", "medical", "education",
)
CONTEXT_CLUES = ("₹", "$", "rs", "paid", "bought", "spent")

_RELATIVE_DAYS = (("yesterday", -1), ("today", 0), ("tomorrow", 1))


def context_window(text: str, start: int, end: int, radius: int = CONTEXT_RADIUS) -> str:
    """Slice *radius* characters either side of ``text[start:end]``."""
    return text[max(0, start - radius) : min(len(text), end + radius)]


def _first_match(context: str, table: tuple[tuple[str, tuple[str, ...]], ...]) -> str | None:
    for name, keywords in table:
        if any(keyword in context for keyword in keywords):
            return name
    return None


def determine_transaction_type(context: str) -> str:
    """Income only when its keywords strictly outnumber expense keywords."""
    income_score = sum(1 for keyword in INCOME_KEYWORDS if keyword in context)
    expense_score = sum(1 for keyword in EXPENSE_KEYWORDS if keyword in context)
    return "income" if income_score > expense_score else "expense"


def determine_category(context: str, transaction_type: str) -> str:
    if transaction_type == "income":
        return _first_match(context, INCOME_CATEGORIES) or "other_income"
    return _first_match(context, EXPENSE_CATEGORIES) or "miscellaneous"


def extract_description(message: str, match: AmountMatch) -> str:
    """Up to five wordy tokens from the three words either side of the amount."""
    before = message[: match.start].strip().split(" ")[-3:]
    after = message[match.end :].strip().split(" ")[:3]
    words = [
        word
        for word in before + after
        if len(word) > 2 and not any(ch.isdigit() for ch in word)
    ][:5]
    return " ".join(words) if words else "Transaction"


def extract_date(context: str, today: date | None = None) -> str:
    today = today or date.today()
    for word, offset in _RELATIVE_DAYS:
        if word in context:
            return (today + timedelta(days=offset)).isoformat()
    return today.isoformat()


def determine_payment_method(context: str) -> str:
    return _first_match(context, PAYMENT_METHODS) or "unknown"


def extract_merchant(context: str) -> str | None:
    """Find "at Big Bazaar" / "Cafe Mocha restaurant" style names.

    Needs the original casing, so pass a window cut from the unlowered message.
    """
    for pattern in MERCHANT_PATTERNS:
        match = pattern.search(context)
        if match and match.group(1).strip():
            return match.group(1).strip()
    return None


def calculate_confidence(context: str, amount: float) -> float:
    confidence = 0.5

    if any(keyword in context for keyword in ACTION_KEYWORDS):
        confidence += 0.2

    # Very small or very large amounts are more likely noise.
    if amount < 10 or amount > 1_000_000:
        confidence -= 0.1

    if any(keyword in context for keyword in CLEAR_CATEGORY_KEYWORDS):
        confidence += 0.1

    clues = sum(1 for clue in CONTEXT_CLUES if clue in context)
    confidence += min(clues * 0.05, 0.2)

    return max(0.0, min(1.0, confidence))


def classify_transaction(
    message: str,
    match: AmountMatch,
    lower_message: str,
    today: date | None = None,
) -> FinanceEntry | None:
    """Turn one amount into a FinanceEntry, or None when confidence is too low."""
    context = context_window(lower_message, match.start, match.end)

    transaction_type = determine_transaction_type(context)
    confidence = calculate_confidence(context, match.amount)
    if confidence < MIN_CONFIDENCE:
        logger.debug(
            "Dropped amount %s at %d (confidence %.2f)", match.amount, match.start, confidence
        )
        return None

    return FinanceEntry(
        type=transaction_type,
        amount=match.amount,
        category=determine_category(context, transaction_type),
        description=extract_description(message, match),
        date=extract_date(context, today),
        confidence=confidence,
        currency=match.currency,
        payment_method=determine_payment_method(context),
        merchant=extract_merchant(context_window(message, match.start, match.end)),
    )
