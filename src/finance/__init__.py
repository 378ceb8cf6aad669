"""Heuristic extraction of money transactions from chat text."""

from src.finance.parser import parse_finance_from_message

__all__ = ["parse_finance_from_message"]
