"""Tests for the financial summary roll-up."""

import pytest

from src.finance.summary import generate_financial_summary


def _record(kind: str, amount: float, category: str, date: str, **extra) -> dict:
    return {"type": kind, "amount": amount, "category": category, "date": date, **extra}


def test_empty() -> None:
    summary = generate_financial_summary([])
    assert summary.total_income == 0
    assert summary.total_expenses == 0
    assert summary.net_savings == 0
    assert summary.top_categories == []
    assert summary.monthly_trend == []


def test_totals_and_categories() -> None:
    summary = generate_financial_summary(
        [
            _record("income", 50000, "salary", "2024-03-01", ai_generated=True),
            _record("expense", 2000, "food", "2024-03-05"),
            _record("expense", 500, "food", "2024-03-07", ai_generated=True),
            _record("expense", 8000, "rent", "2024-03-02"),
            _record("investment", 5000, "mutual_funds", "2024-03-10"),
        ]
    )
    assert summary.total_income == 50000
    assert summary.total_expenses == 15500
    assert summary.net_savings == 34500
    assert [(c.category, c.amount) for c in summary.top_categories] == [
        ("rent", 8000),
        ("mutual_funds", 5000),
        ("food", 2500),
    ]
    assert summary.ai_generated_entries == 2


def test_monthly_trend_sorted_and_limited() -> None:
    records = [_record("expense", 100, "food", f"2023-{month:02d}-15") for month in range(1, 13)]
    records.append(_record("income", 1000, "salary", "2024-01-01"))
    records.append(_record("expense", 1, "food", "2024-02-01"))

    trend = generate_financial_summary(records).monthly_trend
    assert len(trend) == 12
    assert trend[0].month == "2023-03"
    assert trend[-2].month == "2024-01"
    assert trend[-2].income == 1000
    assert trend[-1].month == "2024-02"
    assert trend[-1].expenses == pytest.approx(1)


def test_month_field_preferred_over_date() -> None:
    trend = generate_financial_summary(
        [_record("expense", 10, "food", "2024-03-31", month="2024-04")]
    ).monthly_trend
    assert [t.month for t in trend] == ["2024-04"]


def test_top_categories_capped_at_ten() -> None:
    records = [_record("expense", i + 1, f"cat{i}", "2024-01-01") for i in range(15)]
    top = generate_financial_summary(records).top_categories
    assert len(top) == 10
    assert top[0].category == "cat14"
