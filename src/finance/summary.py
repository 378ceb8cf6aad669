"""Roll stored finance records up into the figures shown to the AI."""

from __future__ import annotations

from collections import defaultdict
from typing import Any

from pydantic import BaseModel

TOP_CATEGORY_LIMIT = 10
TREND_MONTHS = 12

# Investments leave the account, so they count as outflows.
_OUTFLOW_TYPES = ("expense", "investment")


class CategoryTotal(BaseModel):
    category: str
    amount: float


class MonthlyTotal(BaseModel):
    month: str
    income: float
    expenses: float


class FinancialSummary(BaseModel):
    total_income: float = 0.0
    total_expenses: float = 0.0
    net_savings: float = 0.0
    top_categories: list[CategoryTotal] = []
    monthly_trend: list[MonthlyTotal] = []
    ai_generated_entries: int = 0


def _month_key(record: dict[str, Any]) -> str:
    return record.get("month") or str(record.get("date", ""))[:7]


def generate_financial_summary(finances: list[dict[str, Any]]) -> FinancialSummary:
    """Summarise every finance record a user has."""
    summary = FinancialSummary()
    category_totals: dict[str, float] = defaultdict(float)
    monthly: dict[str, dict[str, float]] = defaultdict(lambda: {"income": 0.0, "expenses": 0.0})

    for record in finances:
        amount = float(record.get("amount") or 0)
        kind = record.get("type")

        if kind == "income":
            summary.total_income += amount
            monthly[_month_key(record)]["income"] += amount
        elif kind in _OUTFLOW_TYPES:
            summary.total_expenses += amount
            category_totals[record.get("category") or "Other"] += amount
            monthly[_month_key(record)]["expenses"] += amount

        if record.get("ai_generated"):
            summary.ai_generated_entries += 1

    summary.net_savings = summary.total_income - summary.total_expenses

    ranked = sorted(category_totals.items(), key=lambda item: item[1], reverse=True)
    summary.top_categories = [
        CategoryTotal(category=category, amount=amount)
        for category, amount in ranked[:TOP_CATEGORY_LIMIT]
    ]
    summary.monthly_trend = [
        MonthlyTotal(month=month, income=totals["income"], expenses=totals["expenses"])
        for month, totals in sorted(monthly.items())[-TREND_MONTHS:]
    ]
    return summary
