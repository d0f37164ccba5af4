"""Context budgeting for LLM requests.

Keeps the total estimated token cost of selected document summaries within
the model's context limit. Pure functions, no UI or storage state.
"""

from docchat.context.budget import (
    DEFAULT_TOKEN_LIMIT,
    BudgetUsage,
    UsageLevel,
    can_select,
    chars_per_token_estimator,
    estimate_cost,
    toggle,
    total_cost,
    usage,
    would_exceed,
)

__all__ = [
    "DEFAULT_TOKEN_LIMIT",
    "BudgetUsage",
    "UsageLevel",
    "can_select",
    "chars_per_token_estimator",
    "estimate_cost",
    "toggle",
    "total_cost",
    "usage",
    "would_exceed",
]
