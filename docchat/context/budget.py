"""Token budgeting for documents selected as chat context.

Decides whether a document can join the current selection without pushing
the estimated token count past the model's context limit, and reports the
current usage for display.

All functions are pure: they take the selection, the candidate documents
and the budget, and return a value. Nothing here knows about the UI, the
API or storage.
"""

import math
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, Field

DEFAULT_CHARS_PER_TOKEN = 4
DEFAULT_TOKEN_LIMIT = 200_000

# Usage thresholds, as fractions of the budget
WARNING_THRESHOLD = 0.7
CRITICAL_THRESHOLD = 0.9

CostFunction = Callable[[str], int]
SelectionSet = frozenset[str]


class Budgeted(Protocol):
    """Anything with an identifier and summarized text."""

    id: str
    summary: str


class UsageLevel(str, Enum):
    """Coarse usage level used to colour the usage bar."""

    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


class BudgetUsage(BaseModel):
    """Current token usage of a selection.

    Attributes:
        used: Estimated tokens of all selected documents.
        limit: The capacity budget.
        ratio: used / limit, clamped to 1.0 for display.
        level: ok, warning (> 70%) or critical (> 90%).
    """

    used: int = Field(ge=0)
    limit: int = Field(ge=1)
    ratio: float = Field(ge=0.0, le=1.0)
    level: UsageLevel


def chars_per_token_estimator(chars_per_token: float) -> CostFunction:
    """Build a cost function charging one token per `chars_per_token` characters.

    Args:
        chars_per_token: Characters per estimated token. Must be positive.

    Returns:
        A cost function rounding up, so any non-empty text costs at least 1.

    Raises:
        ValueError: If chars_per_token is not positive.
    """
    if chars_per_token <= 0:
        raise ValueError("chars_per_token must be positive")

    def estimate(text: str) -> int:
        return math.ceil(len(text) / chars_per_token)

    return estimate


def estimate_cost(text: str) -> int:
    """Estimate the token cost of text (~1 token per 4 characters)."""
    return math.ceil(len(text) / DEFAULT_CHARS_PER_TOKEN)


def _index(documents: Iterable[Budgeted]) -> dict[str, Budgeted]:
    return {doc.id: doc for doc in documents}


def total_cost(
    selection: Iterable[str],
    documents: Iterable[Budgeted],
    estimate: CostFunction = estimate_cost,
) -> int:
    """Sum the estimated cost of every selected document.

    Identifiers without a matching document contribute nothing.
    """
    by_id = _index(documents)
    return sum(
        estimate(by_id[doc_id].summary) for doc_id in set(selection) if doc_id in by_id
    )


def would_exceed(
    candidate_id: str,
    selection: Iterable[str],
    documents: Iterable[Budgeted],
    budget: int,
    estimate: CostFunction = estimate_cost,
) -> bool:
    """Check whether adding a document would push the selection over budget.

    Always False for a document that is already selected.
    """
    selected = frozenset(selection)
    if candidate_id in selected:
        return False
    return total_cost(selected | {candidate_id}, documents, estimate) > budget


def can_select(
    candidate_id: str,
    selection: Iterable[str],
    documents: Iterable[Budgeted],
    budget: int,
    estimate: CostFunction = estimate_cost,
) -> bool:
    """True if the document is selected already or would fit."""
    return not would_exceed(candidate_id, selection, documents, budget, estimate)


def toggle(
    candidate_id: str,
    selection: Iterable[str],
    documents: Iterable[Budgeted],
    budget: int,
    estimate: CostFunction = estimate_cost,
) -> SelectionSet:
    """Add or remove a document from the selection.

    Removal always succeeds. Adding is refused when it would exceed the
    budget, in which case the selection comes back unchanged and the
    caller is responsible for telling the user.

    Returns:
        The new selection. The input is never mutated.
    """
    selected = frozenset(selection)
    if candidate_id in selected:
        return selected - {candidate_id}
    if would_exceed(candidate_id, selected, documents, budget, estimate):
        return selected
    return selected | {candidate_id}


def usage(
    selection: Iterable[str],
    documents: Iterable[Budgeted],
    budget: int,
    estimate: CostFunction = estimate_cost,
) -> BudgetUsage:
    """Report how much of the budget the selection uses.

    Raises:
        ValueError: If budget is less than 1.
    """
    if budget < 1:
        raise ValueError(f"budget must be at least 1, got {budget}")
    used = total_cost(selection, documents, estimate)
    ratio = used / budget
    if ratio > CRITICAL_THRESHOLD:
        level = UsageLevel.CRITICAL
    elif ratio > WARNING_THRESHOLD:
        level = UsageLevel.WARNING
    else:
        level = UsageLevel.OK
    return BudgetUsage(used=used, limit=budget, ratio=min(ratio, 1.0), level=level)
