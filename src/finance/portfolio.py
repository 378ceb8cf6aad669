"""Apply AI-reported investment values to a stored profile portfolio."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from src.llm.directives import InvestmentUpdate

logger = logging.getLogger(__name__)

# Holding list → the field that names a holding in that list.
HOLDING_NAME_FIELDS: tuple[tuple[str, str], ...] = (
    ("mutual_funds", "fund_name"),
    ("stocks", "company"),
    ("fixed_deposits", "bank"),
)

# Where to read a holding's value from when it has no current_value yet.
_BASE_VALUE_FIELDS = ("current_value", "investment_amount", "principal")


def _matches(holding: dict[str, Any], name_field: str, update: InvestmentUpdate) -> bool:
    if update.investment_id and holding.get("id") == update.investment_id:
        return True
    name = holding.get(name_field)
    return bool(
        update.investment_name
        and isinstance(name, str)
        and name.strip().lower() == update.investment_name.strip().lower()
    )


def _base_value(holding: dict[str, Any]) -> float:
    for field in _BASE_VALUE_FIELDS:
        if holding.get(field):
            return float(holding[field])
    return 0.0


def apply_investment_update(profile: dict[str, Any], update: InvestmentUpdate) -> bool:
    """Set ``current_value`` on every matching holding in *profile*, in place.

    ``absolute`` updates replace the value; ``percentage`` updates grow it by
    ``new_value`` percent. Returns False when nothing matched.
    """
    investments = profile.get("investments") or {}
    applied = False

    for list_name, name_field in HOLDING_NAME_FIELDS:
        for holding in investments.get(list_name) or []:
            if not isinstance(holding, dict) or not _matches(holding, name_field, update):
                continue
            if update.change_type == "percentage":
                holding["current_value"] = _base_value(holding) * (1 + update.new_value / 100)
            else:
                holding["current_value"] = update.new_value
            applied = True

    if not applied:
        logger.info(
            "No holding matched investment update (id=%s, name=%s)",
            update.investment_id,
            update.investment_name,
        )
    return applied
