"""Tests for directive extraction from AI replies."""

from datetime import date, timedelta

import pytest

from src.llm.directives import (
    FinanceDirective,
    InvestmentUpdate,
    MemoryUpdate,
    clean_response_text,
    parse_ai_response,
    parse_finance_entries,
    parse_investment_updates,
    parse_memory_updates,
)


def test_plain_reply_has_no_directives() -> None:
    parsed = parse_ai_response("Sounds like a good plan!")
    assert parsed.reply == "Sounds like a good plan!"
    assert parsed.finance_entries == []
    assert parsed.memory_updates == []
    assert parsed.investment_updates == []
    assert parsed.confidence == 1.0


def test_finance_entry_is_extracted_and_stripped() -> None:
    text = (
        "Noted your lunch.\n"
        'FINANCE_ENTRY: {"type": "expense", "amount": 250, "category": "food", '
        '"description": "Lunch", "date": "2024-03-10", "confidence": 0.9}'
    )
    parsed = parse_ai_response(text)
    assert parsed.reply == "Noted your lunch."
    assert len(parsed.finance_entries) == 1
    entry = parsed.finance_entries[0]
    assert entry.type == "expense"
    assert entry.amount == 250
    assert entry.category == "food"
    assert entry.date == "2024-03-10"
    assert entry.currency == "INR"
    assert parsed.confidence == pytest.approx((0.9 + 1.0 + 1.0) / 3)


def test_finance_defaults() -> None:
    entries = parse_finance_entries('FINANCE_ENTRY {"type": "income", "amount": 1000}')
    assert len(entries) == 1
    entry = entries[0]
    assert entry.description == "Transaction"
    assert entry.confidence == 0.8
    assert entry.date == date.today().isoformat()
    assert entry.category == ""


def test_relative_date_words() -> None:
    directive = FinanceDirective.model_validate(
        {"type": "expense", "amount": 10, "date": "Yesterday"}
    )
    assert directive.date == (date.today() - timedelta(days=1)).isoformat()


def test_finance_multiple() -> None:
    text = (
        'FINANCE_ENTRY_MULTIPLE: [{"type": "expense", "amount": 100, "category": "food"}, '
        '{"type": "income", "amount": 500, "category": "gift"}]\nDone.'
    )
    parsed = parse_ai_response(text)
    assert [e.amount for e in parsed.finance_entries] == [100, 500]
    assert parsed.reply == "Done."


def test_invalid_json_is_skipped() -> None:
    text = 'FINANCE_ENTRY: {"type": "expense", amount: 1}\nOK'
    parsed = parse_ai_response(text)
    assert parsed.finance_entries == []
    assert parsed.reply == "OK"


def test_schema_mismatch_is_skipped() -> None:
    assert parse_finance_entries('FINANCE_ENTRY: {"type": "transfer", "amount": 5}') == []


@pytest.mark.parametrize("marker", ["UPDATE_MEMORY", "MEMORY", "CREATE_MEMORY", "SAVE_MEMORY"])
def test_memory_marker_variants(marker: str) -> None:
    updates = parse_memory_updates(f'{marker}: {{"content": "Saves 20% monthly"}}')
    assert len(updates) == 1
    assert updates[0].content == "Saves 20% monthly"
    assert updates[0].category == "general"
    assert updates[0].importance == 5
    assert updates[0].is_new is True


def test_memory_is_new_false_is_kept() -> None:
    update = MemoryUpdate.model_validate({"content": "x", "isNew": False})
    assert update.is_new is False


def test_memory_importance_contributes_to_confidence() -> None:
    parsed = parse_ai_response(
        'Sure.\nUPDATE_MEMORY: {"content": "Wants a car", "category": "goals", "importance": 8}'
    )
    assert parsed.memory_updates[0].importance == 8
    assert parsed.confidence == pytest.approx((1.0 + 0.8 + 1.0) / 3)
    assert parsed.reply == "Sure."


@pytest.mark.parametrize(
    "marker", ["INVESTMENT_UPDATE", "UPDATE_INVESTMENT", "INVESTMENT_VALUE_UPDATE"]
)
def test_investment_marker_variants(marker: str) -> None:
    updates = parse_investment_updates(
        f'{marker}: {{"investmentName": "Nifty Index Fund", "newValue": 52000}}'
    )
    assert len(updates) == 1
    assert updates[0].investment_name == "Nifty Index Fund"
    assert updates[0].new_value == 52000
    assert updates[0].change_type == "absolute"


def test_investment_percentage() -> None:
    update = InvestmentUpdate.model_validate(
        {"investmentId": "fd-1", "newValue": 5, "changeType": "percentage"}
    )
    assert update.investment_id == "fd-1"
    assert update.change_type == "percentage"


def test_investment_directive_confidence() -> None:
    parsed = parse_ai_response('INVESTMENT_UPDATE: {"investmentId": "a", "newValue": 10}')
    assert parsed.confidence == pytest.approx((1.0 + 1.0 + 0.9) / 3)


def test_consolidate_memory_is_stripped_but_ignored() -> None:
    parsed = parse_ai_response('All set.\nCONSOLIDATE_MEMORY: {"memoryIds": ["a", "b"]}')
    assert parsed.reply == "All set."
    assert parsed.memory_updates == []


def test_clean_collapses_blank_lines() -> None:
    text = 'Line one.\n\nUPDATE_MEMORY: {"content": "x"}\n\nLine two.'
    assert clean_response_text(text) == "Line one.\nLine two."


def test_finance_directive_round_trip() -> None:
    directive = (
        'FINANCE_ENTRY: {"type":"expense","amount":100,"category":"food",'
        '"description":"lunch","confidence":0.9}'
    )
    parsed = parse_ai_response(f"Enjoy your meal!\n{directive}")

    entry = parsed.finance_entries[0]
    assert (entry.type, entry.amount, entry.category, entry.description, entry.confidence) == (
        "expense",
        100,
        "food",
        "lunch",
        0.9,
    )
    assert "FINANCE_ENTRY" not in parsed.reply


def test_memory_directive_with_trailing_prose() -> None:
    parsed = parse_ai_response(
        'UPDATE_MEMORY: {"content":"User saves regularly","category":"habits","importance":6}\n'
        "Keep it up!"
    )
    assert parsed.memory_updates[0].category == "habits"
    assert "UPDATE_MEMORY" not in parsed.reply
    assert parsed.reply == "Keep it up!"
