"""Tests for pre-persistence validation."""

import pytest

from src.finance.models import FinanceEntry
from src.llm.directives import FinanceDirective, InvestmentUpdate, MemoryUpdate
from src.validators import (
    validate_finance_entry,
    validate_investment_update,
    validate_memory_update,
)


def _entry(**overrides) -> FinanceEntry:
    data = {
        "type": "expense",
        "amount": 100.0,
        "category": "food",
        "description": "Lunch",
        "date": "2024-03-10",
        "confidence": 0.8,
    }
    data.update(overrides)
    return FinanceEntry.model_construct(**data)


def test_valid_entry() -> None:
    assert validate_finance_entry(_entry())


@pytest.mark.parametrize(
    "overrides",
    [
        {"amount": 0},
        {"amount": -5},
        {"amount": float("nan")},
        {"category": ""},
        {"description": ""},
        {"confidence": 1.5},
        {"type": "transfer"},
    ],
)
def test_invalid_entry(overrides: dict) -> None:
    assert not validate_finance_entry(_entry(**overrides))


def test_investment_type_needs_directive_flag() -> None:
    entry = _entry(type="investment")
    assert not validate_finance_entry(entry)
    assert validate_finance_entry(entry, allow_investment=True)


def test_directive_without_category_is_rejected() -> None:
    directive = FinanceDirective.model_validate({"type": "expense", "amount": 40})
    assert not validate_finance_entry(directive.to_entry(), allow_investment=True)


def test_memory_update() -> None:
    assert validate_memory_update(MemoryUpdate(content="Likes index funds"))
    assert not validate_memory_update(MemoryUpdate(content="   "))
    assert not validate_memory_update(MemoryUpdate(content="x", importance=11))
    assert not validate_memory_update(MemoryUpdate(content="x", importance=-2))


def test_investment_update() -> None:
    assert validate_investment_update(InvestmentUpdate(investment_name="Gold", new_value=10))
    assert not validate_investment_update(InvestmentUpdate(investment_name="Gold", new_value=0))
    assert not validate_investment_update(InvestmentUpdate(investment_name="Gold", new_value=-3))
    assert not validate_investment_update(InvestmentUpdate(new_value=10))
