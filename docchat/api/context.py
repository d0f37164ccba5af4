"""Context selection endpoints backed by the token budget."""

from fastapi import APIRouter, HTTPException, status

from docchat.api.deps import Budget, CurrentUser, Store
from docchat.context import budget as context_budget
from docchat.context.budget import BudgetUsage
from docchat.models.schemas import SelectionRequest, SelectionResponse, UsageRequest

router = APIRouter(prefix="/context", tags=["context"])


def rejection_message(token_limit: int) -> str:
    return (
        f"Cannot select this file. It would exceed the {token_limit:,} token limit "
        "for the Gemini API."
    )


@router.post("/selection", response_model=SelectionResponse)
def toggle_selection(
    request: SelectionRequest,
    user: CurrentUser,
    store: Store,
    budget: Budget,
) -> SelectionResponse:
    """Toggle a document in the selection.

    Removing always succeeds. Adding is refused, with accepted=false and the
    selection unchanged, when it would push the total over the token limit.
    """
    documents = store.list_documents(user.id)
    known = {doc.id for doc in documents}
    if request.document_id not in known:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Document {request.document_id} not found",
        )

    # Drop ids of documents deleted since the client last refreshed
    current = frozenset(request.selected_ids) & known
    updated = context_budget.toggle(request.document_id, current, documents, budget.token_limit)

    accepted = request.document_id in current or request.document_id in updated
    return SelectionResponse(
        selected_ids=sorted(updated),
        accepted=accepted,
        usage=context_budget.usage(updated, documents, budget.token_limit),
        message=None if accepted else rejection_message(budget.token_limit),
    )


@router.post("/usage", response_model=BudgetUsage)
def selection_usage(
    request: UsageRequest,
    user: CurrentUser,
    store: Store,
    budget: Budget,
) -> BudgetUsage:
    """Report token usage of a selection."""
    documents = store.list_documents(user.id)
    return context_budget.usage(request.selected_ids, documents, budget.token_limit)
